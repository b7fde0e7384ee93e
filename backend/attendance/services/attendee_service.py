"""
Organizer-side attendee management: the organization-wide attendee list,
manual additions and bulk removal.
"""

from typing import Optional, Sequence

from email_validator import EmailNotValidError, validate_email
from fastapi import HTTPException, status

from attendance.models import Attendee
from attendance.schemas.attendance import AttendeeResponse, AttendeeWithEvent, ManualAttendeeCreate
from attendance.services.interfaces.repositories import AttendeeRepository, EventRepository
from attendance.services.event_service import get_event
from attendance.core.logging import get_logger

logger = get_logger(__name__)

MANUAL_ENTRY_USER_AGENT = "Manual entry by admin"


async def search_attendees(
    attendees: AttendeeRepository,
    organization_id: str,
    event_id: Optional[str] = None,
    search: Optional[str] = None,
) -> list[AttendeeWithEvent]:
    """Attendees of every event the organization owns, optionally narrowed
    to one event and to names or emails containing `search`."""
    term = search.strip() if search else None
    rows = await attendees.list_for_organization(
        organization_id, event_id=event_id or None, search=term or None
    )
    return [
        AttendeeWithEvent(
            **AttendeeResponse.model_validate(attendee).model_dump(),
            user_agent=attendee.user_agent,
            event_title=event.title,
            event_start_time=event.start_time,
            event_location=event.location_address or "Unknown Location",
        )
        for attendee, event in rows
    ]


async def add_attendee_manually(
    events: EventRepository,
    attendees: AttendeeRepository,
    data: ManualAttendeeCreate,
    organization_id: str,
) -> Attendee:
    """
    Record an attendee without a check-in. The event's own coordinates
    stand in for the check-in position.
    """
    name = data.name.strip()
    email = data.email.strip()
    if not data.event_id or not name or not email:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing required fields: event_id, name, email",
        )
    try:
        validate_email(email, check_deliverability=False)
    except EmailNotValidError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid email format")

    event = await get_event(events, data.event_id, organization_id)
    attendee = await attendees.create(
        event_id=event.id,
        name=name,
        email=email.lower(),
        check_in_lat=event.location_lat,
        check_in_lng=event.location_lng,
        user_agent=MANUAL_ENTRY_USER_AGENT,
    )

    logger.info("attendee_added_manually", event_id=event.id, attendee_id=attendee.id)
    return attendee


async def delete_attendees(
    attendees: AttendeeRepository, attendee_ids: Sequence[str], organization_id: str
) -> int:
    """Delete attendees by id. Ids of other organizations' attendees are skipped."""
    if not attendee_ids:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing required field: ids (array of attendee IDs)",
        )

    deleted = await attendees.delete_many(organization_id, attendee_ids)
    logger.info(
        "attendees_deleted",
        organization_id=organization_id,
        requested=len(attendee_ids),
        deleted=deleted,
    )
    return deleted
