"""
Recurring event service.

Creating a pattern is a multi-step write:

  1. Validate the pattern (every violation reported at once)
  2. Store the pattern
  3. Expand it into dated instances
  4. Insert all instances in one batch

Steps 3 and 4 can fail after the pattern row exists. An empty expansion
or a failed batch insert deletes the pattern again, so a request either
leaves a pattern together with all of its instances or nothing.
"""

import dataclasses

from fastapi import HTTPException, status
from sqlalchemy.exc import SQLAlchemyError

from attendance.models import RecurringEvent
from attendance.schemas.recurring_event import RecurringEventCreate
from attendance.services.interfaces.repositories import (
    EventRepository,
    LocationRepository,
    RecurringEventRepository,
)
from attendance.services.cache_service import invalidate_public_events
from attendance.services.location_service import remember_location
from attendance.services.recurrence import (
    RecurrencePattern,
    generate_event_instances,
    validate_recurrence_pattern,
)
from attendance.core.config import get_settings
from attendance.core.logging import get_logger
from attendance.core.metrics import record_instances_generated

logger = get_logger(__name__)
settings = get_settings()


def build_pattern(data: RecurringEventCreate) -> RecurrencePattern:
    """Map a create request onto a pattern, filling unset fields from settings."""
    return RecurrencePattern(
        title=data.title.strip() if data.title else data.title,
        start_date=data.start_date,
        start_time=data.start_time,
        duration_minutes=data.duration_minutes,
        recurrence_type=data.recurrence_type,
        recurrence_interval=data.recurrence_interval,
        recurrence_days=sorted(set(data.recurrence_days)) if data.recurrence_days else None,
        recurrence_monthly_date=data.recurrence_monthly_date,
        recurrence_monthly_week=data.recurrence_monthly_week,
        recurrence_monthly_weekday=data.recurrence_monthly_weekday,
        end_date=data.end_date,
        timezone=data.timezone or settings.DEFAULT_TIMEZONE,
        location_address=data.location_address,
        location_lat=data.location_lat,
        location_lng=data.location_lng,
        registration_window_before_minutes=(
            data.registration_window_before_minutes
            if data.registration_window_before_minutes is not None
            else settings.DEFAULT_WINDOW_BEFORE_MINUTES
        ),
        registration_window_after_minutes=(
            data.registration_window_after_minutes
            if data.registration_window_after_minutes is not None
            else settings.DEFAULT_WINDOW_AFTER_MINUTES
        ),
        location_radius_meters=data.location_radius_meters or settings.DEFAULT_RADIUS_METERS,
    )


async def create_recurring_event(
    recurring_events: RecurringEventRepository,
    events: EventRepository,
    locations: LocationRepository,
    data: RecurringEventCreate,
    organization_id: str,
) -> tuple[RecurringEvent, int]:
    """
    Store a pattern and all of its generated instances.
    Returns the pattern and the number of instances created.
    """
    pattern = build_pattern(data)
    validation = validate_recurrence_pattern(pattern)
    if not validation.valid:
        logger.info("recurring_event_invalid", organization_id=organization_id, errors=validation.errors)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "Validation failed", "details": validation.errors},
        )

    fields = dataclasses.asdict(pattern)
    fields.pop("id")
    recurring_event = await recurring_events.create(organization_id, **fields)
    logger.info(
        "recurring_event_created",
        recurring_event_id=recurring_event.id,
        organization_id=organization_id,
        recurrence_type=pattern.recurrence_type,
    )

    drafts = generate_event_instances(
        dataclasses.replace(pattern, id=recurring_event.id),
        max_occurrences=settings.RECURRENCE_MAX_OCCURRENCES,
    )
    if not drafts:
        await recurring_events.delete(recurring_event)
        logger.info("recurring_event_rolled_back", recurring_event_id=recurring_event.id, reason="no_instances")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No event instances could be generated from this pattern",
        )

    try:
        await events.create_many(organization_id, drafts)
    except SQLAlchemyError as e:
        logger.error(
            "event_instance_insert_failed",
            recurring_event_id=recurring_event.id,
            instances=len(drafts),
            error=str(e),
        )
        await recurring_events.delete(recurring_event)
        logger.warning("recurring_event_rolled_back", recurring_event_id=recurring_event.id, reason="insert_failed")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create event instances",
        )

    record_instances_generated(len(drafts))
    logger.info(
        "event_instances_generated",
        recurring_event_id=recurring_event.id,
        count=len(drafts),
        first=drafts[0].start_time.isoformat(),
        last=drafts[-1].start_time.isoformat(),
    )

    await remember_location(
        locations, organization_id, pattern.location_address, pattern.location_lat, pattern.location_lng
    )
    return recurring_event, len(drafts)


async def list_recurring_events(
    recurring_events: RecurringEventRepository, organization_id: str
) -> list[tuple[RecurringEvent, int]]:
    return await recurring_events.list_for_organization(organization_id)


async def get_recurring_event(
    recurring_events: RecurringEventRepository, recurring_event_id: str, organization_id: str
) -> RecurringEvent:
    recurring_event = await recurring_events.get_for_organization(recurring_event_id, organization_id)
    if not recurring_event:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Recurring event {recurring_event_id} not found",
        )
    return recurring_event


async def delete_recurring_event(
    recurring_events: RecurringEventRepository,
    events: EventRepository,
    recurring_event_id: str,
    organization_id: str,
) -> int:
    """Delete a pattern together with its instances. Returns the instance count."""
    recurring_event = await get_recurring_event(recurring_events, recurring_event_id, organization_id)

    deleted_ids = await events.delete_for_recurring_event(recurring_event.id)
    await recurring_events.delete(recurring_event)
    events.after_commit(lambda: invalidate_public_events(deleted_ids))

    logger.info(
        "recurring_event_deleted",
        recurring_event_id=recurring_event_id,
        instances_deleted=len(deleted_ids),
    )
    return len(deleted_ids)
