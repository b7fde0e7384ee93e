"""
Recurring event expansion.

A recurrence pattern is expanded into concrete, dated event instances by
scanning the calendar one day at a time from the pattern's start date:

  weekly           weekday in `recurrence_days` and
                   floor(days_since_start / 7) % interval == 0
  monthly_date     day of month == `recurrence_monthly_date` and
                   months_since_start % interval == 0
  monthly_weekday  ceil(day / 7) == `recurrence_monthly_week`, weekday ==
                   `recurrence_monthly_weekday` and
                   months_since_start % interval == 0

Weekday indices follow the 0=Sunday .. 6=Saturday convention. A monthly
date that a month does not have (e.g. the 31st in April) simply never
matches that month; there is no rollover.

Expansion depends only on calendar arithmetic, never on the current time,
so the same pattern always yields the same instances. Each matched local
date is combined with the pattern's time of day in the pattern's own IANA
timezone and converted to UTC; the host timezone plays no part.
"""

import enum
from dataclasses import asdict, dataclass, field
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

DEFAULT_MAX_OCCURRENCES = 100

# Per-search bound: the starting day plus two years of single-day advances
MAX_SCAN_DAYS = 365 * 2


class RecurrenceType(str, enum.Enum):
    WEEKLY = "weekly"
    MONTHLY_DATE = "monthly_date"
    MONTHLY_WEEKDAY = "monthly_weekday"


@dataclass(frozen=True)
class RecurrencePattern:
    """A candidate recurrence template. Fields may be unset until validated."""

    title: Optional[str] = None
    start_date: Optional[date] = None
    start_time: Optional[str] = None
    duration_minutes: Optional[int] = None
    recurrence_type: Optional[str] = None
    recurrence_interval: int = 1
    recurrence_days: Optional[list[int]] = None
    recurrence_monthly_date: Optional[int] = None
    recurrence_monthly_week: Optional[int] = None
    recurrence_monthly_weekday: Optional[int] = None
    end_date: Optional[date] = None
    timezone: Optional[str] = None
    location_address: str = ""
    location_lat: Optional[float] = None
    location_lng: Optional[float] = None
    registration_window_before_minutes: int = 30
    registration_window_after_minutes: int = 30
    location_radius_meters: int = 50
    id: Optional[str] = None


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    errors: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class EventInstanceDraft:
    title: str
    start_time: datetime
    end_time: datetime
    timezone: str
    location_address: str
    location_lat: Optional[float]
    location_lng: Optional[float]
    registration_window_before_minutes: int
    registration_window_after_minutes: int
    location_radius_meters: int
    recurring_event_id: Optional[str] = None

    def as_dict(self) -> dict:
        return asdict(self)


def parse_time_of_day(value: str) -> time:
    """Parse "HH:MM" or "HH:MM:SS". Raises ValueError otherwise."""
    for fmt in ("%H:%M", "%H:%M:%S"):
        try:
            return datetime.strptime(value, fmt).time()
        except ValueError:
            continue
    raise ValueError(f"Invalid time of day: {value!r}")


def weekday_index(day: date) -> int:
    """0=Sunday .. 6=Saturday."""
    return (day.weekday() + 1) % 7


def week_of_month(day: date) -> int:
    """Ordinal week of the month, 1-5, as ceil(day_of_month / 7)."""
    return (day.day + 6) // 7


def months_between(start: date, end: date) -> int:
    """Calendar-month difference, ignoring the day of month."""
    return (end.year - start.year) * 12 + (end.month - start.month)


def is_known_timezone(name: str) -> bool:
    try:
        ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        return False
    return True


def validate_recurrence_pattern(pattern: RecurrencePattern) -> ValidationResult:
    """Check a pattern for internal consistency, collecting every violation."""
    errors = []

    if not (pattern.title or "").strip():
        errors.append("Title is required")

    if not pattern.start_date:
        errors.append("Start date is required")

    if not pattern.start_time:
        errors.append("Start time is required")
    else:
        try:
            parse_time_of_day(pattern.start_time)
        except ValueError:
            errors.append("Start time must be in HH:MM or HH:MM:SS format")

    if not pattern.duration_minutes or pattern.duration_minutes <= 0:
        errors.append("Duration must be greater than 0")

    if pattern.recurrence_interval is None or pattern.recurrence_interval < 1:
        errors.append("Recurrence interval must be at least 1")

    recurrence_type = pattern.recurrence_type
    if not recurrence_type:
        errors.append("Recurrence type is required")
    elif recurrence_type == RecurrenceType.WEEKLY:
        if not pattern.recurrence_days:
            errors.append("At least one day must be selected for weekly recurrence")
        elif any(d < 0 or d > 6 for d in pattern.recurrence_days):
            errors.append("Recurrence days must be between 0 (Sunday) and 6 (Saturday)")
    elif recurrence_type == RecurrenceType.MONTHLY_DATE:
        if pattern.recurrence_monthly_date is None:
            errors.append("Monthly date is required for monthly date recurrence")
        elif not 1 <= pattern.recurrence_monthly_date <= 31:
            errors.append("Monthly date must be between 1 and 31")
    elif recurrence_type == RecurrenceType.MONTHLY_WEEKDAY:
        if pattern.recurrence_monthly_week is None:
            errors.append("Week of month is required for monthly weekday recurrence")
        elif not 1 <= pattern.recurrence_monthly_week <= 5:
            errors.append("Week of month must be between 1 and 5")
        # 0 is Sunday, so only None counts as unset
        if pattern.recurrence_monthly_weekday is None:
            errors.append("Weekday is required for monthly weekday recurrence")
        elif not 0 <= pattern.recurrence_monthly_weekday <= 6:
            errors.append("Weekday must be between 0 (Sunday) and 6 (Saturday)")
    else:
        errors.append(f"Unsupported recurrence type: {recurrence_type}")

    if pattern.location_lat is not None and not -90 <= pattern.location_lat <= 90:
        errors.append("Invalid latitude value")

    if pattern.location_lng is not None and not -180 <= pattern.location_lng <= 180:
        errors.append("Invalid longitude value")

    if pattern.timezone is not None and not is_known_timezone(pattern.timezone):
        errors.append(f"Unknown timezone: {pattern.timezone}")

    return ValidationResult(valid=not errors, errors=errors)


def matches_pattern(pattern: RecurrencePattern, day: date) -> bool:
    """Does `day` fit the pattern's calendar shape (ignoring the interval)?"""
    if pattern.recurrence_type == RecurrenceType.WEEKLY:
        return weekday_index(day) in (pattern.recurrence_days or ())
    if pattern.recurrence_type == RecurrenceType.MONTHLY_DATE:
        return day.day == pattern.recurrence_monthly_date
    if pattern.recurrence_type == RecurrenceType.MONTHLY_WEEKDAY:
        return (
            week_of_month(day) == pattern.recurrence_monthly_week
            and weekday_index(day) == pattern.recurrence_monthly_weekday
        )
    return False


def satisfies_interval(pattern: RecurrencePattern, day: date) -> bool:
    interval = pattern.recurrence_interval
    if pattern.recurrence_type == RecurrenceType.WEEKLY:
        weeks_since_start = (day - pattern.start_date).days // 7
        return weeks_since_start % interval == 0
    return months_between(pattern.start_date, day) % interval == 0


def next_occurrence(pattern: RecurrencePattern, from_date: date) -> Optional[date]:
    """First date on or after `from_date` that matches, or None.

    Gives up past the pattern's end date or after MAX_SCAN_DAYS advances.
    """
    for offset in range(MAX_SCAN_DAYS + 1):
        candidate = from_date + timedelta(days=offset)
        if pattern.end_date and candidate > pattern.end_date:
            return None
        if matches_pattern(pattern, candidate) and satisfies_interval(pattern, candidate):
            return candidate
    return None


def generate_event_instances(
    pattern: RecurrencePattern,
    max_occurrences: int = DEFAULT_MAX_OCCURRENCES,
) -> list[EventInstanceDraft]:
    """Expand a validated pattern into chronologically ordered instance drafts.

    An empty list means the pattern never lands on a date within its range;
    callers treat that as an error rather than an empty success.
    """
    time_of_day = parse_time_of_day(pattern.start_time)
    tz_name = pattern.timezone or "UTC"
    tz = ZoneInfo(tz_name)
    duration = timedelta(minutes=pattern.duration_minutes)

    instances = []
    cursor = pattern.start_date
    while len(instances) < max_occurrences:
        occurrence = next_occurrence(pattern, cursor)
        if occurrence is None:
            break

        start = datetime.combine(occurrence, time_of_day, tzinfo=tz).astimezone(timezone.utc)
        instances.append(
            EventInstanceDraft(
                title=pattern.title,
                start_time=start,
                end_time=start + duration,
                timezone=tz_name,
                location_address=pattern.location_address,
                location_lat=pattern.location_lat,
                location_lng=pattern.location_lng,
                registration_window_before_minutes=pattern.registration_window_before_minutes,
                registration_window_after_minutes=pattern.registration_window_after_minutes,
                location_radius_meters=pattern.location_radius_meters,
                recurring_event_id=pattern.id,
            )
        )
        # Resume the scan on the following day so other weekdays in the
        # same week are still found
        cursor = occurrence + timedelta(days=1)

    return instances
