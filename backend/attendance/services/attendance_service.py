"""
Server-side check-in.

A submission passes through these checks in order; the first failing one
rejects it:

  1. Input (name, email syntax, coordinates)
  2. Duplicate marker cookie
  3. Event exists
  4. QR token present, then valid for this event
  5. Event not manually closed
  6. Registration window open
  7. Attendee within the event radius

Only then is the attendee stored. The duplicate marker is a cookie the
caller sets on success; it is advisory, so a cleared cookie or a second
device can still check in twice.
"""

from datetime import datetime
from typing import Optional

from email_validator import EmailNotValidError, validate_email
from sqlalchemy.exc import SQLAlchemyError

from attendance.models import Attendee
from attendance.schemas.attendance import CheckInSubmission
from attendance.services.interfaces.repositories import AttendeeRepository, EventRepository
from attendance.services.geolocation import (
    Coordinates,
    distance_meters,
    format_distance,
    is_valid_coordinates,
)
from attendance.services.qr_tokens import QrTokenService, TokenRejection
from attendance.services.registration_window import RegistrationStatus, classify_registration
from attendance.core.logging import get_logger
from attendance.core.metrics import record_check_in, record_token_verification

logger = get_logger(__name__)

QR_SCAN_AGAIN_MESSAGE = "This check-in link has expired. Please scan the QR code again."


class CheckInRejected(Exception):
    """A check-in that failed one of the checks, rendered as `{success, error, code}`."""

    def __init__(self, code: str, message: str, status_code: int = 400):
        super().__init__(message)
        self.code = code
        self.message = message
        self.status_code = status_code


def _reject(event_id: Optional[str], code: str, message: str, status_code: int = 400) -> CheckInRejected:
    record_check_in(code)
    logger.info("check_in_rejected", event_id=event_id, code=code)
    return CheckInRejected(code, message, status_code)


def _validate_submission(submission: CheckInSubmission) -> tuple[str, str]:
    """Return the cleaned (name, email) or raise a validation rejection."""
    name = (submission.name or "").strip()
    email = (submission.email or "").strip()
    if not submission.event_id or not name or not email or submission.lat is None or submission.lng is None:
        raise _reject(submission.event_id, "validation_error", "Missing required fields")

    if len(name) > 255:
        raise _reject(submission.event_id, "validation_error", "Name is too long")

    try:
        validate_email(email, check_deliverability=False)
    except EmailNotValidError:
        raise _reject(submission.event_id, "validation_error", "Invalid email format")

    if not is_valid_coordinates(Coordinates(submission.lat, submission.lng)):
        raise _reject(submission.event_id, "validation_error", "Invalid coordinates")

    return name, email.lower()


async def check_in(
    events: EventRepository,
    attendees: AttendeeRepository,
    qr_tokens: QrTokenService,
    submission: CheckInSubmission,
    *,
    already_checked_in: bool = False,
    user_agent: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Attendee:
    """
    Record an attendee check-in.
    Raises CheckInRejected for every check that fails.
    """
    name, email = _validate_submission(submission)
    event_id = submission.event_id

    if already_checked_in:
        raise _reject(event_id, "duplicate", "You have already checked in to this event")

    event = await events.get(event_id)
    if not event:
        raise _reject(event_id, "event_not_found", "Event not found", status_code=404)

    if not submission.qr_token:
        raise _reject(
            event_id, "qr_required", "Please scan the QR code at the event to check in"
        )

    verification = qr_tokens.verify(event_id, submission.qr_token)
    record_token_verification(verification.reason.value if verification.reason else "valid")
    if not verification.valid:
        logger.info("qr_token_rejected", event_id=event_id, reason=verification.reason.value)
        if verification.reason == TokenRejection.SECRET_MISSING:
            logger.error("qr_secret_not_configured", event_id=event_id)
        raise _reject(event_id, "qr_invalid", QR_SCAN_AGAIN_MESSAGE, status_code=403)

    if event.is_closed:
        raise _reject(
            event_id, "event_closed", "Registration for this event has been closed by admin"
        )

    registration = classify_registration(
        event.start_time,
        event.end_time,
        event.registration_window_before_minutes,
        event.registration_window_after_minutes,
        event.is_closed,
        now=now,
    )
    if registration == RegistrationStatus.NOT_STARTED:
        raise _reject(event_id, "outside_window", "Registration has not opened yet for this event")
    if registration != RegistrationStatus.OPEN:
        raise _reject(event_id, "outside_window", "Registration has closed for this event")

    distance = distance_meters(
        Coordinates(submission.lat, submission.lng),
        Coordinates(event.location_lat, event.location_lng),
    )
    if distance > event.location_radius_meters:
        raise _reject(
            event_id,
            "outside_radius",
            f"You are too far from the event location. You are {format_distance(distance)} "
            f"away, but must be within {event.location_radius_meters}m.",
        )

    try:
        attendee = await attendees.create(
            event_id=event_id,
            name=name,
            email=email,
            check_in_lat=submission.lat,
            check_in_lng=submission.lng,
            user_agent=user_agent,
        )
    except SQLAlchemyError as e:
        logger.error("attendee_insert_failed", event_id=event_id, error=str(e))
        raise _reject(event_id, "server_error", "Failed to record attendance", status_code=500)

    record_check_in("success")
    logger.info(
        "check_in_recorded",
        event_id=event_id,
        attendee_id=attendee.id,
        distance_m=round(distance, 1),
    )
    return attendee
