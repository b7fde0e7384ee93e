"""
Service interfaces for dependency inversion.
Allows swapping implementations without changing business logic.
"""

from .checkin import (
    AttendanceMarkerStore,
    CheckInClient,
    CookieAttendanceMarkerStore,
    GeolocationProvider,
    InMemoryAttendanceMarkerStore,
)
from .repositories import (
    AttendeeRepository,
    EventRepository,
    LocationRepository,
    OrganizationRepository,
    RecurringEventRepository,
)
from .secrets import SecretProvider, SettingsSecretProvider, StaticSecretProvider

__all__ = [
    'AttendanceMarkerStore',
    'AttendeeRepository',
    'CheckInClient',
    'CookieAttendanceMarkerStore',
    'EventRepository',
    'GeolocationProvider',
    'InMemoryAttendanceMarkerStore',
    'LocationRepository',
    'OrganizationRepository',
    'RecurringEventRepository',
    'SecretProvider',
    'SettingsSecretProvider',
    'StaticSecretProvider',
]
