"""
Pydantic schemas for recurring event patterns.

Create requests accept incomplete patterns; the recurrence validator
reports every inconsistency in a single response.
"""

from datetime import date, datetime
from typing import Optional
from pydantic import BaseModel, Field


class RecurringEventCreate(BaseModel):
    title: Optional[str] = Field(None, max_length=255)
    location_address: str = Field("", max_length=500)
    location_lat: float
    location_lng: float
    start_time: Optional[str] = Field(None, max_length=8)
    duration_minutes: Optional[int] = None
    timezone: Optional[str] = Field(None, max_length=64)
    recurrence_type: Optional[str] = None
    recurrence_interval: int = 1
    recurrence_days: Optional[list[int]] = None
    recurrence_monthly_date: Optional[int] = None
    recurrence_monthly_week: Optional[int] = None
    recurrence_monthly_weekday: Optional[int] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    registration_window_before_minutes: Optional[int] = Field(None, ge=0)
    registration_window_after_minutes: Optional[int] = Field(None, ge=0)
    location_radius_meters: Optional[int] = Field(None, gt=0, le=100000)


class RecurringEventResponse(BaseModel):
    id: str
    organization_id: str
    title: str
    location_address: str
    location_lat: float
    location_lng: float
    start_time: str
    duration_minutes: int
    timezone: str
    recurrence_type: str
    recurrence_interval: int
    recurrence_days: Optional[list[int]]
    recurrence_monthly_date: Optional[int]
    recurrence_monthly_week: Optional[int]
    recurrence_monthly_weekday: Optional[int]
    start_date: date
    end_date: Optional[date]
    registration_window_before_minutes: int
    registration_window_after_minutes: int
    location_radius_meters: int
    created_at: datetime

    model_config = {"from_attributes": True}


class RecurringEventWithCount(RecurringEventResponse):
    event_count: int = 0


class RecurringEventCreated(BaseModel):
    recurring_event: RecurringEventResponse
    events_created: int
