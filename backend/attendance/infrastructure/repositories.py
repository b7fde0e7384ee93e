"""
SQLAlchemy implementations of the persistence ports.

Repositories flush but never commit; the request-scoped session in
`attendance.db.session.get_db` owns the transaction.
"""

from datetime import datetime, timezone
from typing import Awaitable, Callable, Optional, Sequence

from sqlalchemy import delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from attendance.db.session import after_commit
from attendance.models import Attendee, Event, Organization, OrganizationLocation, RecurringEvent
from attendance.services.interfaces.repositories import (
    AttendeeRepository,
    EventRepository,
    LocationRepository,
    OrganizationRepository,
    RecurringEventRepository,
)
from attendance.services.recurrence import EventInstanceDraft


class SqlOrganizationRepository(OrganizationRepository):
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, organization_id: str) -> Optional[Organization]:
        return await self.db.get(Organization, organization_id)

    async def get_by_username(self, username: str) -> Optional[Organization]:
        result = await self.db.execute(
            select(Organization).where(Organization.username == username)
        )
        return result.scalar_one_or_none()

    async def create(self, *, username: str, name: str, hashed_password: str) -> Organization:
        organization = Organization(username=username, name=name, hashed_password=hashed_password)
        self.db.add(organization)
        await self.db.flush()
        await self.db.refresh(organization)
        return organization


class SqlEventRepository(EventRepository):
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, event_id: str) -> Optional[Event]:
        return await self.db.get(Event, event_id)

    async def get_for_organization(self, event_id: str, organization_id: str) -> Optional[Event]:
        result = await self.db.execute(
            select(Event).where(Event.id == event_id, Event.organization_id == organization_id)
        )
        return result.scalar_one_or_none()

    async def list_for_organization(self, organization_id: str) -> list[tuple[Event, int]]:
        attendee_count = (
            select(func.count(Attendee.id))
            .where(Attendee.event_id == Event.id)
            .correlate(Event)
            .scalar_subquery()
        )
        result = await self.db.execute(
            select(Event, attendee_count)
            .where(Event.organization_id == organization_id)
            .order_by(Event.start_time.desc())
        )
        return [(event, count) for event, count in result.all()]

    async def create(self, organization_id: str, **fields) -> Event:
        event = Event(organization_id=organization_id, **fields)
        self.db.add(event)
        await self.db.flush()
        await self.db.refresh(event)
        return event

    async def create_many(
        self, organization_id: str, drafts: Sequence[EventInstanceDraft]
    ) -> list[Event]:
        events = [Event(organization_id=organization_id, **draft.as_dict()) for draft in drafts]
        # SAVEPOINT: a failed batch is rolled back as a whole while the
        # enclosing transaction stays usable for the caller's cleanup
        async with self.db.begin_nested():
            self.db.add_all(events)
            await self.db.flush()
        return events

    async def update(self, event: Event, changes: dict) -> Event:
        for field, value in changes.items():
            setattr(event, field, value)
        await self.db.flush()
        await self.db.refresh(event)
        return event

    async def delete(self, event: Event) -> None:
        await self.db.execute(delete(Attendee).where(Attendee.event_id == event.id))
        await self.db.delete(event)
        await self.db.flush()

    async def delete_for_recurring_event(self, recurring_event_id: str) -> list[str]:
        result = await self.db.execute(
            select(Event.id).where(Event.recurring_event_id == recurring_event_id)
        )
        event_ids = list(result.scalars().all())
        if not event_ids:
            return []

        await self.db.execute(delete(Attendee).where(Attendee.event_id.in_(event_ids)))
        await self.db.execute(delete(Event).where(Event.id.in_(event_ids)))
        return event_ids

    def after_commit(self, callback: Callable[[], Awaitable[None]]) -> None:
        after_commit(self.db, callback)


class SqlRecurringEventRepository(RecurringEventRepository):
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_for_organization(
        self, recurring_event_id: str, organization_id: str
    ) -> Optional[RecurringEvent]:
        result = await self.db.execute(
            select(RecurringEvent).where(
                RecurringEvent.id == recurring_event_id,
                RecurringEvent.organization_id == organization_id,
            )
        )
        return result.scalar_one_or_none()

    async def list_for_organization(self, organization_id: str) -> list[tuple[RecurringEvent, int]]:
        event_count = (
            select(func.count(Event.id))
            .where(Event.recurring_event_id == RecurringEvent.id)
            .correlate(RecurringEvent)
            .scalar_subquery()
        )
        result = await self.db.execute(
            select(RecurringEvent, event_count)
            .where(RecurringEvent.organization_id == organization_id)
            .order_by(RecurringEvent.start_date.desc())
        )
        return [(pattern, count) for pattern, count in result.all()]

    async def create(self, organization_id: str, **fields) -> RecurringEvent:
        recurring_event = RecurringEvent(organization_id=organization_id, **fields)
        self.db.add(recurring_event)
        await self.db.flush()
        await self.db.refresh(recurring_event)
        return recurring_event

    async def delete(self, recurring_event: RecurringEvent) -> None:
        await self.db.delete(recurring_event)
        await self.db.flush()


class SqlAttendeeRepository(AttendeeRepository):
    def __init__(self, db: AsyncSession):
        self.db = db

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
        attendee = Attendee(
            event_id=event_id,
            name=name,
            email=email,
            check_in_lat=check_in_lat,
            check_in_lng=check_in_lng,
            user_agent=user_agent,
        )
        self.db.add(attendee)
        await self.db.flush()
        await self.db.refresh(attendee)
        return attendee

    async def list_for_event(self, event_id: str) -> list[Attendee]:
        result = await self.db.execute(
            select(Attendee)
            .where(Attendee.event_id == event_id)
            .order_by(Attendee.checked_in_at.desc())
        )
        return list(result.scalars().all())

    async def list_for_organization(
        self,
        organization_id: str,
        *,
        event_id: Optional[str] = None,
        search: Optional[str] = None,
    ) -> list[tuple[Attendee, Event]]:
        query = (
            select(Attendee, Event)
            .join(Event, Attendee.event_id == Event.id)
            .where(Event.organization_id == organization_id)
            .order_by(Attendee.checked_in_at.desc())
        )
        if event_id:
            query = query.where(Attendee.event_id == event_id)
        if search:
            pattern = f"%{search}%"
            query = query.where(or_(Attendee.name.ilike(pattern), Attendee.email.ilike(pattern)))

        result = await self.db.execute(query)
        return [(attendee, event) for attendee, event in result.all()]

    async def delete_many(self, organization_id: str, attendee_ids: Sequence[str]) -> int:
        result = await self.db.execute(
            select(Attendee.id)
            .join(Event, Attendee.event_id == Event.id)
            .where(Attendee.id.in_(attendee_ids), Event.organization_id == organization_id)
        )
        owned = list(result.scalars().all())
        if not owned:
            return 0

        await self.db.execute(delete(Attendee).where(Attendee.id.in_(owned)))
        await self.db.flush()
        return len(owned)


class SqlLocationRepository(LocationRepository):
    def __init__(self, db: AsyncSession):
        self.db = db

    async def upsert(
        self, organization_id: str, *, address: str, lat: float, lng: float
    ) -> OrganizationLocation:
        # Runs in a SAVEPOINT so a failure here never aborts the event insert
        async with self.db.begin_nested():
            result = await self.db.execute(
                select(OrganizationLocation).where(
                    OrganizationLocation.organization_id == organization_id,
                    OrganizationLocation.lat == lat,
                    OrganizationLocation.lng == lng,
                )
            )
            location = result.scalar_one_or_none()

            if location is None:
                location = OrganizationLocation(
                    organization_id=organization_id,
                    label=address or f"{lat}, {lng}",
                    address=address,
                    lat=lat,
                    lng=lng,
                )
                self.db.add(location)
            else:
                location.use_count = OrganizationLocation.use_count + 1
                location.last_used_at = datetime.now(timezone.utc)

            await self.db.flush()
        await self.db.refresh(location)
        return location

    async def list_for_organization(self, organization_id: str) -> list[OrganizationLocation]:
        result = await self.db.execute(
            select(OrganizationLocation)
            .where(OrganizationLocation.organization_id == organization_id)
            .order_by(OrganizationLocation.last_used_at.desc())
        )
        return list(result.scalars().all())

    async def get_for_organization(
        self, location_id: str, organization_id: str
    ) -> Optional[OrganizationLocation]:
        result = await self.db.execute(
            select(OrganizationLocation).where(
                OrganizationLocation.id == location_id,
                OrganizationLocation.organization_id == organization_id,
            )
        )
        return result.scalar_one_or_none()

    async def delete(self, location: OrganizationLocation) -> None:
        await self.db.delete(location)
        await self.db.flush()
