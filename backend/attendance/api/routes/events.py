"""
Organizer event endpoints: CRUD, manual close, QR tokens and attendee lists.
"""

from fastapi import APIRouter, Depends, Response, status

from attendance.api.deps import (
    get_attendee_repository,
    get_event_repository,
    get_location_repository,
    get_qr_token_service,
)
from attendance.schemas.attendance import AttendeeResponse
from attendance.schemas.event import (
    EventCreate,
    EventResponse,
    EventUpdate,
    EventWithCount,
    QrTokenResponse,
)
from attendance.services.interfaces.repositories import (
    AttendeeRepository,
    EventRepository,
    LocationRepository,
)
from attendance.services.qr_tokens import QrTokenService
from attendance.services.event_service import (
    create_event,
    delete_event,
    get_event,
    issue_qr_token,
    list_attendees,
    list_events,
    set_event_closed,
    update_event,
)
from attendance.core.security import get_current_organization_id

router = APIRouter(prefix="/events", tags=["Events"])


@router.post("/", response_model=EventResponse, status_code=status.HTTP_201_CREATED)
async def create_event_endpoint(
    event_data: EventCreate,
    organization_id: str = Depends(get_current_organization_id),
    events: EventRepository = Depends(get_event_repository),
    locations: LocationRepository = Depends(get_location_repository),
):
    """Create a single event. Its location is saved for reuse."""
    return await create_event(events, locations, event_data, organization_id)


@router.get("/", response_model=list[EventWithCount])
async def list_events_endpoint(
    organization_id: str = Depends(get_current_organization_id),
    events: EventRepository = Depends(get_event_repository),
):
    """List the organization's events, newest first, with attendee counts."""
    rows = await list_events(events, organization_id)
    return [
        EventWithCount.model_validate(event).model_copy(update={"attendee_count": count})
        for event, count in rows
    ]


@router.get("/{event_id}", response_model=EventResponse)
async def get_event_endpoint(
    event_id: str,
    organization_id: str = Depends(get_current_organization_id),
    events: EventRepository = Depends(get_event_repository),
):
    return await get_event(events, event_id, organization_id)


@router.put("/{event_id}", response_model=EventResponse)
async def update_event_endpoint(
    event_id: str,
    event_data: EventUpdate,
    organization_id: str = Depends(get_current_organization_id),
    events: EventRepository = Depends(get_event_repository),
    locations: LocationRepository = Depends(get_location_repository),
):
    """Partially update an event. Omitted fields keep their values."""
    return await update_event(events, locations, event_id, event_data, organization_id)


@router.delete("/{event_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_event_endpoint(
    event_id: str,
    organization_id: str = Depends(get_current_organization_id),
    events: EventRepository = Depends(get_event_repository),
):
    """Delete an event together with its attendee records."""
    await delete_event(events, event_id, organization_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{event_id}/close", response_model=EventResponse)
async def close_event_endpoint(
    event_id: str,
    organization_id: str = Depends(get_current_organization_id),
    events: EventRepository = Depends(get_event_repository),
):
    """Stop accepting check-ins regardless of the registration window."""
    return await set_event_closed(events, event_id, organization_id, closed=True)


@router.delete("/{event_id}/close", response_model=EventResponse)
async def reopen_event_endpoint(
    event_id: str,
    organization_id: str = Depends(get_current_organization_id),
    events: EventRepository = Depends(get_event_repository),
):
    """Lift a manual close; the registration window applies again."""
    return await set_event_closed(events, event_id, organization_id, closed=False)


@router.get("/{event_id}/qr-token", response_model=QrTokenResponse)
async def qr_token_endpoint(
    event_id: str,
    organization_id: str = Depends(get_current_organization_id),
    events: EventRepository = Depends(get_event_repository),
    qr_tokens: QrTokenService = Depends(get_qr_token_service),
):
    """
    Mint a check-in token for the QR code shown at the venue.
    Tokens expire quickly; the display polls this endpoint to rotate them.
    """
    event = await get_event(events, event_id, organization_id)
    return issue_qr_token(event, qr_tokens)


@router.get("/{event_id}/attendees", response_model=list[AttendeeResponse])
async def list_attendees_endpoint(
    event_id: str,
    organization_id: str = Depends(get_current_organization_id),
    events: EventRepository = Depends(get_event_repository),
    attendees: AttendeeRepository = Depends(get_attendee_repository),
):
    return await list_attendees(events, attendees, event_id, organization_id)
