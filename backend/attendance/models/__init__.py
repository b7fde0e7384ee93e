from attendance.models.organization import Organization
from attendance.models.recurring_event import RecurringEvent
from attendance.models.event import Event
from attendance.models.attendee import Attendee
from attendance.models.location import OrganizationLocation

__all__ = ["Organization", "RecurringEvent", "Event", "Attendee", "OrganizationLocation"]
