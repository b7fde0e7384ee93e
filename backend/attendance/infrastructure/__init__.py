"""
Infrastructure layer - external system integrations.
Keeps business logic clean from implementation details.
"""

from .checkin_client import HttpCheckInClient
from .repositories import (
    SqlAttendeeRepository,
    SqlEventRepository,
    SqlLocationRepository,
    SqlOrganizationRepository,
    SqlRecurringEventRepository,
)

__all__ = [
    "HttpCheckInClient",
    "SqlAttendeeRepository",
    "SqlEventRepository",
    "SqlLocationRepository",
    "SqlOrganizationRepository",
    "SqlRecurringEventRepository",
]
