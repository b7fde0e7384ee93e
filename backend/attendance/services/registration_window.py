"""
Registration window classification.

An event accepts check-ins from `window_before` minutes before it starts
until `window_after` minutes after it ends, both bounds inclusive. The
manual close flag overrides the clock entirely.

The status depends on wall-clock time, so it has to be recomputed on
every check and never cached alongside the event.
"""

import enum
from datetime import datetime, timedelta, timezone
from typing import Optional


class RegistrationStatus(str, enum.Enum):
    NOT_STARTED = "not_started"
    OPEN = "open"
    CLOSED = "closed"
    MANUALLY_CLOSED = "manually_closed"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC; convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def registration_window_bounds(
    start_time: datetime,
    end_time: datetime,
    window_before_minutes: int,
    window_after_minutes: int,
) -> tuple[datetime, datetime]:
    window_start = ensure_utc(start_time) - timedelta(minutes=window_before_minutes)
    window_end = ensure_utc(end_time) + timedelta(minutes=window_after_minutes)
    return window_start, window_end


def classify_registration(
    start_time: datetime,
    end_time: datetime,
    window_before_minutes: int,
    window_after_minutes: int,
    is_closed: bool,
    now: Optional[datetime] = None,
) -> RegistrationStatus:
    if is_closed:
        return RegistrationStatus.MANUALLY_CLOSED

    now = ensure_utc(now or utcnow())
    window_start, window_end = registration_window_bounds(
        start_time, end_time, window_before_minutes, window_after_minutes
    )

    if now < window_start:
        return RegistrationStatus.NOT_STARTED
    if now > window_end:
        return RegistrationStatus.CLOSED
    return RegistrationStatus.OPEN


def time_until_registration(
    start_time: datetime,
    window_before_minutes: int,
    now: Optional[datetime] = None,
) -> timedelta:
    """Time left until the window opens. Negative once it is open."""
    now = ensure_utc(now or utcnow())
    window_start = ensure_utc(start_time) - timedelta(minutes=window_before_minutes)
    return window_start - now


def is_valid_time_range(start: datetime, end: datetime) -> bool:
    return ensure_utc(end) > ensure_utc(start)


def format_duration(duration: timedelta) -> str:
    """Countdown label such as "2 hours, 15 minutes" or "45 seconds"."""
    seconds = max(0, int(duration.total_seconds()))
    minutes, hours, days = seconds // 60, seconds // 3600, seconds // 86400

    def plural(n: int, unit: str) -> str:
        return f"{n} {unit}" if n == 1 else f"{n} {unit}s"

    if days > 0:
        return f"{plural(days, 'day')}, {plural(hours % 24, 'hour')}"
    if hours > 0:
        return f"{plural(hours, 'hour')}, {plural(minutes % 60, 'minute')}"
    if minutes > 0:
        return plural(minutes, "minute")
    return plural(seconds, "second")
