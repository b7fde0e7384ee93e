"""
Event service handling CRUD operations, manual close and QR token minting.

All organizer operations are scoped to the caller's organization: an event
owned by someone else is reported as missing, never as forbidden, so ids
cannot be discovered across organizations.
"""

from typing import Optional
from datetime import datetime

from fastapi import HTTPException, status

from attendance.models import Attendee, Event
from attendance.schemas.event import EventCreate, EventUpdate, PublicEventResponse, QrTokenResponse
from attendance.services.interfaces.repositories import (
    AttendeeRepository,
    EventRepository,
    LocationRepository,
)
from attendance.services.cache_service import (
    get_cached_public_event,
    invalidate_public_events,
    set_cached_public_event,
)
from attendance.services.location_service import remember_location
from attendance.services.qr_tokens import QrSecretNotConfiguredError, QrTokenService
from attendance.services.recurrence import is_known_timezone
from attendance.services.registration_window import (
    classify_registration,
    ensure_utc,
    is_valid_time_range,
)
from attendance.core.config import get_settings
from attendance.core.logging import get_logger
from attendance.core.metrics import record_token_issued

logger = get_logger(__name__)
settings = get_settings()


def _check_time_range(start_time: datetime, end_time: datetime) -> None:
    if not is_valid_time_range(ensure_utc(start_time), ensure_utc(end_time)):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="End time must be after start time",
        )


def _check_timezone(name: Optional[str]) -> None:
    if name is not None and not is_known_timezone(name):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unknown timezone: {name}",
        )


async def create_event(
    events: EventRepository,
    locations: LocationRepository,
    event_data: EventCreate,
    organization_id: str,
) -> Event:
    """Create a single (non-recurring) event, filling unset fields from settings."""
    _check_time_range(event_data.start_time, event_data.end_time)
    _check_timezone(event_data.timezone)

    event = await events.create(
        organization_id,
        title=event_data.title.strip(),
        start_time=ensure_utc(event_data.start_time),
        end_time=ensure_utc(event_data.end_time),
        timezone=event_data.timezone or settings.DEFAULT_TIMEZONE,
        location_address=event_data.location_address,
        location_lat=event_data.location_lat,
        location_lng=event_data.location_lng,
        location_radius_meters=(
            event_data.location_radius_meters or settings.DEFAULT_RADIUS_METERS
        ),
        registration_window_before_minutes=(
            event_data.registration_window_before_minutes
            if event_data.registration_window_before_minutes is not None
            else settings.DEFAULT_WINDOW_BEFORE_MINUTES
        ),
        registration_window_after_minutes=(
            event_data.registration_window_after_minutes
            if event_data.registration_window_after_minutes is not None
            else settings.DEFAULT_WINDOW_AFTER_MINUTES
        ),
    )

    await remember_location(
        locations,
        organization_id,
        event_data.location_address,
        event_data.location_lat,
        event_data.location_lng,
    )

    logger.info(
        "event_created",
        event_id=event.id,
        organization_id=organization_id,
        start_time=event.start_time.isoformat(),
    )
    return event


async def list_events(events: EventRepository, organization_id: str) -> list[tuple[Event, int]]:
    return await events.list_for_organization(organization_id)


async def get_event(events: EventRepository, event_id: str, organization_id: str) -> Event:
    """Get a single event owned by the organization."""
    event = await events.get_for_organization(event_id, organization_id)
    if not event:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Event {event_id} not found",
        )
    return event


async def update_event(
    events: EventRepository,
    locations: LocationRepository,
    event_id: str,
    event_data: EventUpdate,
    organization_id: str,
) -> Event:
    """
    Apply a partial update. Time ordering is checked against the merged
    values, so moving only the start past the stored end is rejected.
    """
    event = await get_event(events, event_id, organization_id)
    changes = {
        field: value
        for field, value in event_data.model_dump(exclude_unset=True).items()
        if value is not None
    }
    if not changes:
        return event

    _check_time_range(
        changes.get("start_time", event.start_time),
        changes.get("end_time", event.end_time),
    )
    _check_timezone(changes.get("timezone"))
    for field in ("start_time", "end_time"):
        if field in changes:
            changes[field] = ensure_utc(changes[field])

    event = await events.update(event, changes)
    event_ids = [event.id]
    events.after_commit(lambda: invalidate_public_events(event_ids))

    if "location_lat" in changes or "location_lng" in changes:
        await remember_location(
            locations,
            organization_id,
            event.location_address,
            event.location_lat,
            event.location_lng,
        )

    logger.info("event_updated", event_id=event.id, fields=sorted(changes))
    return event


async def delete_event(events: EventRepository, event_id: str, organization_id: str) -> None:
    event = await get_event(events, event_id, organization_id)
    await events.delete(event)
    events.after_commit(lambda: invalidate_public_events([event_id]))
    logger.info("event_deleted", event_id=event_id, organization_id=organization_id)


async def set_event_closed(
    events: EventRepository, event_id: str, organization_id: str, closed: bool
) -> Event:
    """Manually close an event, or reopen it so the time window applies again."""
    event = await get_event(events, event_id, organization_id)
    event = await events.update(event, {"is_closed": closed})
    events.after_commit(lambda: invalidate_public_events([event_id]))

    logger.info("event_closed" if closed else "event_reopened", event_id=event.id)
    return event


def issue_qr_token(event: Event, qr_tokens: QrTokenService) -> QrTokenResponse:
    """Mint a fresh check-in token for display as a rotating QR code."""
    issued_at = qr_tokens.now_ms()
    try:
        token = qr_tokens.issue(event.id, issued_at_ms=issued_at)
    except QrSecretNotConfiguredError:
        logger.error("qr_secret_not_configured", event_id=event.id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="QR code signing is not configured",
        )

    record_token_issued()
    logger.info("qr_token_issued", event_id=event.id, issued_at=issued_at)
    return QrTokenResponse(
        token=token,
        expires_at=qr_tokens.expires_at_ms(issued_at),
        check_in_url=f"{settings.PUBLIC_BASE_URL.rstrip('/')}/event/{event.id}?qr={token}",
    )


async def list_attendees(
    events: EventRepository,
    attendees: AttendeeRepository,
    event_id: str,
    organization_id: str,
) -> list[Attendee]:
    await get_event(events, event_id, organization_id)
    return await attendees.list_for_event(event_id)


async def get_public_event(
    events: EventRepository, event_id: str, now: Optional[datetime] = None
) -> PublicEventResponse:
    """
    Public check-in view of an event.

    The event fields come from Redis when cached; the registration status
    is always classified against the current time.
    """
    cached = await get_cached_public_event(event_id)
    if cached:
        public_event = PublicEventResponse.model_validate(cached)
    else:
        event = await events.get(event_id)
        if not event:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Event not found",
            )
        public_event = PublicEventResponse.model_validate(event)
        public_event.start_time = ensure_utc(public_event.start_time)
        public_event.end_time = ensure_utc(public_event.end_time)
        await set_cached_public_event(
            event_id, public_event.model_dump(mode="json", exclude={"registration_status"})
        )

    public_event.registration_status = classify_registration(
        public_event.start_time,
        public_event.end_time,
        public_event.registration_window_before_minutes,
        public_event.registration_window_after_minutes,
        public_event.is_closed,
        now=now,
    )
    return public_event
