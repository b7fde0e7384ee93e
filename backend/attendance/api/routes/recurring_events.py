"""
Recurring event endpoints. Creating a pattern generates all of its
instances in the same request.
"""

from fastapi import APIRouter, Depends, Response, status

from attendance.api.deps import (
    get_event_repository,
    get_location_repository,
    get_recurring_event_repository,
)
from attendance.schemas.recurring_event import (
    RecurringEventCreate,
    RecurringEventCreated,
    RecurringEventResponse,
    RecurringEventWithCount,
)
from attendance.services.interfaces.repositories import (
    EventRepository,
    LocationRepository,
    RecurringEventRepository,
)
from attendance.services.recurring_event_service import (
    create_recurring_event,
    delete_recurring_event,
    get_recurring_event,
    list_recurring_events,
)
from attendance.core.security import get_current_organization_id

router = APIRouter(prefix="/recurring-events", tags=["Recurring Events"])


@router.post("/", response_model=RecurringEventCreated, status_code=status.HTTP_201_CREATED)
async def create_recurring_event_endpoint(
    data: RecurringEventCreate,
    organization_id: str = Depends(get_current_organization_id),
    recurring_events: RecurringEventRepository = Depends(get_recurring_event_repository),
    events: EventRepository = Depends(get_event_repository),
    locations: LocationRepository = Depends(get_location_repository),
):
    """
    Create a recurrence pattern and its event instances.

    Returns 400 with every validation error at once, or when the pattern
    produces no instances. Nothing is stored in either case.
    """
    recurring_event, created = await create_recurring_event(
        recurring_events, events, locations, data, organization_id
    )
    return RecurringEventCreated(
        recurring_event=RecurringEventResponse.model_validate(recurring_event),
        events_created=created,
    )


@router.get("/", response_model=list[RecurringEventWithCount])
async def list_recurring_events_endpoint(
    organization_id: str = Depends(get_current_organization_id),
    recurring_events: RecurringEventRepository = Depends(get_recurring_event_repository),
):
    rows = await list_recurring_events(recurring_events, organization_id)
    return [
        RecurringEventWithCount.model_validate(pattern).model_copy(update={"event_count": count})
        for pattern, count in rows
    ]


@router.get("/{recurring_event_id}", response_model=RecurringEventResponse)
async def get_recurring_event_endpoint(
    recurring_event_id: str,
    organization_id: str = Depends(get_current_organization_id),
    recurring_events: RecurringEventRepository = Depends(get_recurring_event_repository),
):
    return await get_recurring_event(recurring_events, recurring_event_id, organization_id)


@router.delete("/{recurring_event_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_recurring_event_endpoint(
    recurring_event_id: str,
    organization_id: str = Depends(get_current_organization_id),
    recurring_events: RecurringEventRepository = Depends(get_recurring_event_repository),
    events: EventRepository = Depends(get_event_repository),
):
    """Delete a pattern and every instance generated from it."""
    await delete_recurring_event(recurring_events, events, recurring_event_id, organization_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
