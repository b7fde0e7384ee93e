"""
Organization-wide attendee endpoints.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from attendance.api.deps import get_attendee_repository, get_event_repository
from attendance.schemas.attendance import (
    AttendeeBulkDelete,
    AttendeeBulkDeleteResult,
    AttendeeResponse,
    AttendeeWithEvent,
    ManualAttendeeCreate,
)
from attendance.services.interfaces.repositories import AttendeeRepository, EventRepository
from attendance.services.attendee_service import (
    add_attendee_manually,
    delete_attendees,
    search_attendees,
)
from attendance.core.security import get_current_organization_id

router = APIRouter(prefix="/attendees", tags=["Attendees"])


@router.get("/", response_model=list[AttendeeWithEvent])
async def list_attendees_endpoint(
    event_id: Optional[str] = Query(None),
    search: Optional[str] = Query(None, max_length=255),
    organization_id: str = Depends(get_current_organization_id),
    attendees: AttendeeRepository = Depends(get_attendee_repository),
):
    """Attendees across all events, latest check-in first."""
    return await search_attendees(attendees, organization_id, event_id, search)


@router.post("/", response_model=AttendeeResponse, status_code=status.HTTP_201_CREATED)
async def add_attendee_endpoint(
    data: ManualAttendeeCreate,
    organization_id: str = Depends(get_current_organization_id),
    events: EventRepository = Depends(get_event_repository),
    attendees: AttendeeRepository = Depends(get_attendee_repository),
):
    """Add an attendee by hand, e.g. someone whose phone could not check in."""
    return await add_attendee_manually(events, attendees, data, organization_id)


@router.delete("/", response_model=AttendeeBulkDeleteResult)
async def delete_attendees_endpoint(
    data: AttendeeBulkDelete,
    organization_id: str = Depends(get_current_organization_id),
    attendees: AttendeeRepository = Depends(get_attendee_repository),
):
    deleted = await delete_attendees(attendees, data.ids, organization_id)
    return AttendeeBulkDeleteResult(deleted=deleted)
