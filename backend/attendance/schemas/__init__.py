from attendance.schemas.organization import OrganizationCreate, OrganizationResponse, OrganizationLogin, Token
from attendance.schemas.event import (
    EventCreate, EventUpdate, EventResponse, EventWithCount, PublicEventResponse, QrTokenResponse,
)
from attendance.schemas.recurring_event import (
    RecurringEventCreate, RecurringEventResponse, RecurringEventWithCount, RecurringEventCreated,
)
from attendance.schemas.attendance import (
    CheckInSubmission, CheckInSuccess, CheckInError, AttendeeResponse, AttendeeWithEvent,
    ManualAttendeeCreate, AttendeeBulkDelete, AttendeeBulkDeleteResult,
)
from attendance.schemas.location import LocationResponse

__all__ = [
    "OrganizationCreate", "OrganizationResponse", "OrganizationLogin", "Token",
    "EventCreate", "EventUpdate", "EventResponse", "EventWithCount", "PublicEventResponse",
    "QrTokenResponse",
    "RecurringEventCreate", "RecurringEventResponse", "RecurringEventWithCount",
    "RecurringEventCreated",
    "CheckInSubmission", "CheckInSuccess", "CheckInError", "AttendeeResponse", "AttendeeWithEvent",
    "ManualAttendeeCreate", "AttendeeBulkDelete", "AttendeeBulkDeleteResult",
    "LocationResponse",
]
