"""
Ports the attendee-side check-in flow is driven through.

- GeolocationProvider: single-shot device position request
- AttendanceMarkerStore: per-event "already checked in" marker
- CheckInClient: fetches the public event and submits the check-in

The attendance marker is advisory only. A second device or a cleared
cookie jar bypasses it, and nothing on the server enforces uniqueness.
"""

import enum
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timedelta
from http.cookiejar import Cookie
from typing import Callable, Optional, Union

import httpx

from attendance.core.config import get_settings
from attendance.schemas.attendance import CheckInSubmission
from attendance.schemas.event import PublicEventResponse
from attendance.services.geolocation import Coordinates
from attendance.services.registration_window import utcnow

ATTENDANCE_COOKIE_PREFIX = "attended_"
DEFAULT_MARKER_TTL = timedelta(hours=get_settings().ATTENDANCE_MARKER_TTL_HOURS)


def attendance_cookie_name(event_id: str) -> str:
    return f"{ATTENDANCE_COOKIE_PREFIX}{event_id}"


class GeolocationErrorCode(str, enum.Enum):
    PERMISSION_DENIED = "permission_denied"
    UNAVAILABLE = "unavailable"
    TIMEOUT = "timeout"
    OUT_OF_RADIUS = "out_of_radius"


@dataclass(frozen=True)
class GeolocationFailure:
    code: GeolocationErrorCode
    message: str = ""


GeolocationResult = Union[Coordinates, GeolocationFailure]


class GeolocationProvider(ABC):

    @abstractmethod
    async def get_current_position(
        self,
        *,
        high_accuracy: bool = True,
        timeout_ms: int = 10_000,
        maximum_age_ms: int = 0,
    ) -> GeolocationResult:
        """Request the device position once. Never retries."""
        pass


class AttendanceMarkerStore(ABC):

    @abstractmethod
    def has_marker(self, event_id: str) -> bool:
        pass

    @abstractmethod
    def mark(self, event_id: str) -> None:
        pass


class InMemoryAttendanceMarkerStore(AttendanceMarkerStore):
    """Markers held in process memory, expiring after `ttl`."""

    def __init__(
        self,
        ttl: timedelta = DEFAULT_MARKER_TTL,
        clock: Callable[[], datetime] = utcnow,
    ):
        self._ttl = ttl
        self._clock = clock
        self._expires_at: dict[str, datetime] = {}

    def has_marker(self, event_id: str) -> bool:
        expires_at = self._expires_at.get(event_id)
        if expires_at is None:
            return False
        if self._clock() >= expires_at:
            del self._expires_at[event_id]
            return False
        return True

    def mark(self, event_id: str) -> None:
        self._expires_at[event_id] = self._clock() + self._ttl


class CookieAttendanceMarkerStore(AttendanceMarkerStore):
    """Markers stored as `attended_<event_id>=true` cookies in an httpx jar.

    The server sets the cookie with its lifetime on a successful check-in;
    `mark` writes the same cookie client-side, with the same expiry, in
    case the response cookie was not captured. Expired cookies do not count.
    """

    def __init__(
        self,
        cookies: httpx.Cookies,
        domain: str = "",
        ttl: timedelta = DEFAULT_MARKER_TTL,
        clock: Callable[[], datetime] = utcnow,
    ):
        self._cookies = cookies
        self._domain = domain
        self._ttl = ttl
        self._clock = clock

    def has_marker(self, event_id: str) -> bool:
        name = attendance_cookie_name(event_id)
        now = int(self._clock().timestamp())
        return any(
            c.name == name and c.value == "true" and not c.is_expired(now)
            for c in self._cookies.jar
        )

    def mark(self, event_id: str) -> None:
        # httpx.Cookies.set cannot carry an expiry, so the cookie is built directly
        cookie = Cookie(
            version=0,
            name=attendance_cookie_name(event_id),
            value="true",
            port=None,
            port_specified=False,
            domain=self._domain,
            domain_specified=bool(self._domain),
            domain_initial_dot=self._domain.startswith("."),
            path="/",
            path_specified=True,
            secure=False,
            expires=int((self._clock() + self._ttl).timestamp()),
            discard=False,
            comment=None,
            comment_url=None,
            rest={},
        )
        self._cookies.jar.set_cookie(cookie)


@dataclass(frozen=True)
class SubmissionResult:
    success: bool
    message: str
    code: Optional[str] = None


class CheckInClient(ABC):

    @abstractmethod
    async def fetch_event(self, event_id: str) -> Optional[PublicEventResponse]:
        """Public event details, or None if it does not exist."""
        pass

    @abstractmethod
    async def submit(self, submission: CheckInSubmission) -> SubmissionResult:
        pass
