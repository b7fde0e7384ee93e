"""
Attendee-side check-in flow.

    loading ─┬─> not_found
             ├─> already_checked_in
             ├─> closed
             ├─> countdown ──(window opens)──> re-check
             ├─> qr_required
             └─> location_verification ─┬─> check_in_form ─┬─> success
                                        └─> error          └─> error

`error` goes back to `location_verification` on retry when a QR token
was scanned, otherwise to `qr_required`. Terminal states: not_found,
closed, already_checked_in, success.

Only one geolocation request or submission is in flight per flow; a
second call of either kind while one is outstanding is ignored.
"""

import asyncio
import enum
from datetime import datetime, timedelta
from typing import Awaitable, Callable, Optional

from attendance.core.config import get_settings
from attendance.core.logging import get_logger
from attendance.schemas.attendance import CheckInSubmission
from attendance.schemas.event import PublicEventResponse
from attendance.services.geolocation import Coordinates, distance_meters, format_distance
from attendance.services.interfaces.checkin import (
    AttendanceMarkerStore,
    CheckInClient,
    GeolocationErrorCode,
    GeolocationFailure,
    GeolocationProvider,
)
from attendance.services.registration_window import (
    RegistrationStatus,
    classify_registration,
    format_duration,
    registration_window_bounds,
    time_until_registration,
    utcnow,
)

logger = get_logger(__name__)

GEOLOCATION_MESSAGES = {
    GeolocationErrorCode.PERMISSION_DENIED: (
        "Location permission denied. Please enable location access in your "
        "browser settings and try again."
    ),
    GeolocationErrorCode.UNAVAILABLE: (
        "Location information is unavailable. Please ensure location services "
        "are enabled on your device."
    ),
    GeolocationErrorCode.TIMEOUT: "Location request timed out. Please try again.",
}


class FlowState(str, enum.Enum):
    LOADING = "loading"
    NOT_FOUND = "not_found"
    COUNTDOWN = "countdown"
    QR_REQUIRED = "qr_required"
    LOCATION_VERIFICATION = "location_verification"
    CHECK_IN_FORM = "check_in_form"
    SUCCESS = "success"
    ERROR = "error"
    CLOSED = "closed"
    ALREADY_CHECKED_IN = "already_checked_in"


TERMINAL_STATES = frozenset({
    FlowState.NOT_FOUND,
    FlowState.CLOSED,
    FlowState.ALREADY_CHECKED_IN,
    FlowState.SUCCESS,
})


class FlowTransitionError(RuntimeError):
    """An action was attempted from a state that does not allow it."""


class CheckInFlow:
    def __init__(
        self,
        event_id: str,
        *,
        client: CheckInClient,
        geolocation: GeolocationProvider,
        markers: AttendanceMarkerStore,
        qr_token: Optional[str] = None,
        clock: Callable[[], datetime] = utcnow,
        geolocation_timeout_ms: Optional[int] = None,
    ):
        self.event_id = event_id
        self.qr_token = qr_token or None
        self._client = client
        self._geolocation = geolocation
        self._markers = markers
        self._clock = clock
        self._geolocation_timeout_ms = geolocation_timeout_ms or get_settings().GEOLOCATION_TIMEOUT_MS

        self.state = FlowState.LOADING
        self.event: Optional[PublicEventResponse] = None
        self.coords: Optional[Coordinates] = None
        self.error_message = ""
        self.error_code: Optional[str] = None
        self.submitting = False
        self.locating = False

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES

    async def load(self) -> FlowState:
        self.event = await self._client.fetch_event(self.event_id)
        if self.event is None:
            return self._transition(FlowState.NOT_FOUND)
        return self.check_status()

    def check_status(self) -> FlowState:
        """Route to the next state from the marker, window and token."""
        if self.event is None:
            raise FlowTransitionError("Event has not been loaded")

        if self._markers.has_marker(self.event_id):
            return self._transition(FlowState.ALREADY_CHECKED_IN)

        status = classify_registration(
            self.event.start_time,
            self.event.end_time,
            self.event.registration_window_before_minutes,
            self.event.registration_window_after_minutes,
            self.event.is_closed,
            now=self._clock(),
        )

        if status in (RegistrationStatus.MANUALLY_CLOSED, RegistrationStatus.CLOSED):
            return self._transition(FlowState.CLOSED)
        if status == RegistrationStatus.NOT_STARTED:
            return self._transition(FlowState.COUNTDOWN)
        if not self.qr_token:
            return self._transition(FlowState.QR_REQUIRED)
        return self._transition(FlowState.LOCATION_VERIFICATION)

    @property
    def countdown_target(self) -> Optional[datetime]:
        """The instant the registration window opens."""
        if self.event is None:
            return None
        window_start, _ = registration_window_bounds(
            self.event.start_time,
            self.event.end_time,
            self.event.registration_window_before_minutes,
            self.event.registration_window_after_minutes,
        )
        return window_start

    def countdown_remaining(self) -> timedelta:
        self._require(FlowState.COUNTDOWN)
        remaining = time_until_registration(
            self.event.start_time,
            self.event.registration_window_before_minutes,
            now=self._clock(),
        )
        return max(remaining, timedelta(0))

    def countdown_label(self) -> str:
        return format_duration(self.countdown_remaining())

    def on_countdown_complete(self) -> FlowState:
        self._require(FlowState.COUNTDOWN)
        return self.check_status()

    async def wait_for_registration(
        self,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> FlowState:
        """Sleep until the window opens, then re-run the status check once."""
        remaining = self.countdown_remaining()
        await sleep(remaining.total_seconds())
        return self.on_countdown_complete()

    async def verify_location(self) -> FlowState:
        self._require(FlowState.LOCATION_VERIFICATION)
        if self.locating:
            return self.state

        self.locating = True
        try:
            result = await self._geolocation.get_current_position(
                high_accuracy=True,
                timeout_ms=self._geolocation_timeout_ms,
                maximum_age_ms=0,
            )
        finally:
            self.locating = False

        if isinstance(result, GeolocationFailure):
            message = result.message or GEOLOCATION_MESSAGES.get(
                result.code, "Failed to get your location"
            )
            return self._fail(message, result.code.value)

        center = Coordinates(self.event.location_lat, self.event.location_lng)
        distance = distance_meters(result, center)
        radius = self.event.location_radius_meters
        if distance > radius:
            return self._fail(
                f"You are too far from the event location. You are "
                f"{format_distance(distance)} away, but must be within {radius}m to check in.",
                GeolocationErrorCode.OUT_OF_RADIUS.value,
            )

        self.coords = result
        return self._transition(FlowState.CHECK_IN_FORM)

    async def submit(self, name: str, email: str) -> FlowState:
        self._require(FlowState.CHECK_IN_FORM)
        if self.submitting:
            return self.state
        if not self.qr_token:
            return self._transition(FlowState.QR_REQUIRED)

        self.submitting = True
        self.error_message = ""
        try:
            result = await self._client.submit(
                CheckInSubmission(
                    event_id=self.event_id,
                    name=name,
                    email=email,
                    lat=self.coords.lat,
                    lng=self.coords.lng,
                    qr_token=self.qr_token,
                )
            )
        finally:
            self.submitting = False

        if not result.success:
            return self._fail(result.message, result.code)

        self._markers.mark(self.event_id)
        return self._transition(FlowState.SUCCESS)

    def retry(self) -> FlowState:
        self._require(FlowState.ERROR)
        self.error_message = ""
        self.error_code = None
        if self.qr_token:
            return self._transition(FlowState.LOCATION_VERIFICATION)
        return self._transition(FlowState.QR_REQUIRED)

    def _require(self, state: FlowState) -> None:
        if self.state != state:
            raise FlowTransitionError(f"Expected state {state.value}, flow is in {self.state.value}")

    def _fail(self, message: str, code: Optional[str]) -> FlowState:
        self.error_message = message
        self.error_code = code
        return self._transition(FlowState.ERROR)

    def _transition(self, state: FlowState) -> FlowState:
        if state != self.state:
            logger.debug(
                "check_in_flow_transition",
                event_id=self.event_id,
                from_state=self.state.value,
                to_state=state.value,
            )
        self.state = state
        return state
