"""
Persistence ports, one per entity.

Services depend on these interfaces only; the SQLAlchemy implementations
live in `attendance.infrastructure.repositories`.
"""

from abc import ABC, abstractmethod
from typing import Awaitable, Callable, Optional, Sequence

from attendance.models import Attendee, Event, Organization, OrganizationLocation, RecurringEvent
from attendance.services.recurrence import EventInstanceDraft


class OrganizationRepository(ABC):

    @abstractmethod
    async def get(self, organization_id: str) -> Optional[Organization]:
        pass

    @abstractmethod
    async def get_by_username(self, username: str) -> Optional[Organization]:
        pass

    @abstractmethod
    async def create(self, *, username: str, name: str, hashed_password: str) -> Organization:
        pass


class EventRepository(ABC):

    @abstractmethod
    async def get(self, event_id: str) -> Optional[Event]:
        """Unscoped lookup, used by the public check-in path."""
        pass

    @abstractmethod
    async def get_for_organization(self, event_id: str, organization_id: str) -> Optional[Event]:
        pass

    @abstractmethod
    async def list_for_organization(self, organization_id: str) -> list[tuple[Event, int]]:
        """Events with their attendee counts, newest start first."""
        pass

    @abstractmethod
    async def create(self, organization_id: str, **fields) -> Event:
        pass

    @abstractmethod
    async def create_many(
        self, organization_id: str, drafts: Sequence[EventInstanceDraft]
    ) -> list[Event]:
        """Insert a batch of instances. All of them are stored or none are."""
        pass

    @abstractmethod
    async def update(self, event: Event, changes: dict) -> Event:
        pass

    @abstractmethod
    async def delete(self, event: Event) -> None:
        pass

    @abstractmethod
    async def delete_for_recurring_event(self, recurring_event_id: str) -> list[str]:
        """Delete every instance of a pattern, returning the deleted event ids."""
        pass

    @abstractmethod
    def after_commit(self, callback: Callable[[], Awaitable[None]]) -> None:
        """Run `callback` once the current transaction has committed."""
        pass


class RecurringEventRepository(ABC):

    @abstractmethod
    async def get_for_organization(
        self, recurring_event_id: str, organization_id: str
    ) -> Optional[RecurringEvent]:
        pass

    @abstractmethod
    async def list_for_organization(self, organization_id: str) -> list[tuple[RecurringEvent, int]]:
        """Patterns with the number of instances each still has."""
        pass

    @abstractmethod
    async def create(self, organization_id: str, **fields) -> RecurringEvent:
        pass

    @abstractmethod
    async def delete(self, recurring_event: RecurringEvent) -> None:
        pass


class AttendeeRepository(ABC):

    @abstractmethod
    async def create(
        self,
        *,
        event_id: str,
        name: str,
        email: str,
        check_in_lat: float,
        check_in_lng: float,
        user_agent: Optional[str] = None,
    ) -> Attendee:
        pass

    @abstractmethod
    async def list_for_event(self, event_id: str) -> list[Attendee]:
        pass

    @abstractmethod
    async def list_for_organization(
        self,
        organization_id: str,
        *,
        event_id: Optional[str] = None,
        search: Optional[str] = None,
    ) -> list[tuple[Attendee, Event]]:
        """Attendees across the organization's events, latest check-in first."""
        pass

    @abstractmethod
    async def delete_many(self, organization_id: str, attendee_ids: Sequence[str]) -> int:
        """Delete the given attendees that belong to the organization; returns the count."""
        pass


class LocationRepository(ABC):

    @abstractmethod
    async def upsert(
        self, organization_id: str, *, address: str, lat: float, lng: float
    ) -> OrganizationLocation:
        """Insert a location, or bump `use_count`/`last_used_at` if it exists."""
        pass

    @abstractmethod
    async def list_for_organization(self, organization_id: str) -> list[OrganizationLocation]:
        pass

    @abstractmethod
    async def get_for_organization(
        self, location_id: str, organization_id: str
    ) -> Optional[OrganizationLocation]:
        pass

    @abstractmethod
    async def delete(self, location: OrganizationLocation) -> None:
        pass
