"""
Pydantic schemas for event-related request/response validation.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field

from attendance.services.registration_window import RegistrationStatus


class EventCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    start_time: datetime
    end_time: datetime
    timezone: Optional[str] = Field(None, max_length=64)
    location_address: str = Field("", max_length=500)
    location_lat: float = Field(..., ge=-90, le=90)
    location_lng: float = Field(..., ge=-180, le=180)
    location_radius_meters: Optional[int] = Field(None, gt=0, le=100000)
    registration_window_before_minutes: Optional[int] = Field(None, ge=0)
    registration_window_after_minutes: Optional[int] = Field(None, ge=0)


class EventUpdate(BaseModel):
    """Partial update; only fields present in the request are applied."""

    title: Optional[str] = Field(None, min_length=1, max_length=255)
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    timezone: Optional[str] = Field(None, max_length=64)
    location_address: Optional[str] = Field(None, max_length=500)
    location_lat: Optional[float] = Field(None, ge=-90, le=90)
    location_lng: Optional[float] = Field(None, ge=-180, le=180)
    location_radius_meters: Optional[int] = Field(None, gt=0, le=100000)
    registration_window_before_minutes: Optional[int] = Field(None, ge=0)
    registration_window_after_minutes: Optional[int] = Field(None, ge=0)
    is_closed: Optional[bool] = None


class EventResponse(BaseModel):
    id: str
    organization_id: str
    recurring_event_id: Optional[str]
    title: str
    start_time: datetime
    end_time: datetime
    timezone: Optional[str]
    location_address: str
    location_lat: float
    location_lng: float
    location_radius_meters: int
    registration_window_before_minutes: int
    registration_window_after_minutes: int
    is_closed: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class EventWithCount(EventResponse):
    attendee_count: int = 0


class PublicEventResponse(BaseModel):
    """The subset of an event the unauthenticated check-in page needs."""

    id: str
    title: str
    start_time: datetime
    end_time: datetime
    timezone: Optional[str] = None
    location_address: str
    location_lat: float
    location_lng: float
    location_radius_meters: int
    registration_window_before_minutes: int
    registration_window_after_minutes: int
    is_closed: bool
    registration_status: Optional[RegistrationStatus] = None

    model_config = {"from_attributes": True}


class QrTokenResponse(BaseModel):
    token: str
    expires_at: int  # epoch milliseconds
    check_in_url: str
