"""
Pydantic schemas for attendee check-in.

The submission is validated by the attendance service rather than by
pydantic, so malformed input is answered in the same
`{success, error, code}` shape as every other check-in rejection.
"""

from datetime import datetime
from typing import Literal, Optional
from pydantic import BaseModel


class CheckInSubmission(BaseModel):
    event_id: str = ""
    name: str = ""
    email: str = ""
    lat: Optional[float] = None
    lng: Optional[float] = None
    qr_token: Optional[str] = None


class AttendeeResponse(BaseModel):
    id: str
    event_id: str = ""
    name: str
    email: str
    check_in_lat: float
    check_in_lng: float
    checked_in_at: datetime

    model_config = {"from_attributes": True}


class CheckInSuccess(BaseModel):
    success: Literal[True] = True
    message: str
    attendee: AttendeeResponse


class CheckInError(BaseModel):
    success: Literal[False] = False
    error: str
    code: str


class AttendeeWithEvent(AttendeeResponse):
    """Organization-wide attendee row with its event flattened in."""

    user_agent: Optional[str] = None
    event_title: str
    event_start_time: Optional[datetime] = None
    event_location: str


class ManualAttendeeCreate(BaseModel):
    # Checked by the service so missing fields answer 400 rather than 422
    event_id: str = ""
    name: str = ""
    email: str = ""


class AttendeeBulkDelete(BaseModel):
    ids: list[str] = []


class AttendeeBulkDeleteResult(BaseModel):
    success: bool = True
    deleted: int
