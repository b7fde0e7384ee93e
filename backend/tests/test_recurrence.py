"""
Tests for recurrence pattern validation and instance generation.

Calendar reference for 2025: Jan 1 is a Wednesday, Jan 6 a Monday.
"""

import dataclasses
import pytest
from datetime import date, datetime, timedelta, timezone

from attendance.services.recurrence import (
    MAX_SCAN_DAYS,
    RecurrencePattern,
    generate_event_instances,
    next_occurrence,
    validate_recurrence_pattern,
    week_of_month,
    weekday_index,
)

MONDAY = date(2025, 1, 6)


def weekly(**overrides) -> RecurrencePattern:
    fields = dict(
        title="Team Practice",
        start_date=MONDAY,
        start_time="18:00",
        duration_minutes=90,
        recurrence_type="weekly",
        recurrence_days=[1, 3],
        timezone="UTC",
        location_lat=40.7128,
        location_lng=-74.0060,
    )
    fields.update(overrides)
    return RecurrencePattern(**fields)


def monthly_date(day: int, **overrides) -> RecurrencePattern:
    return weekly(
        recurrence_type="monthly_date",
        recurrence_days=None,
        recurrence_monthly_date=day,
        **overrides,
    )


def monthly_weekday(week: int, weekday: int, **overrides) -> RecurrencePattern:
    return weekly(
        recurrence_type="monthly_weekday",
        recurrence_days=None,
        recurrence_monthly_week=week,
        recurrence_monthly_weekday=weekday,
        **overrides,
    )


def dates(instances) -> list[date]:
    return [instance.start_time.date() for instance in instances]


# --- calendar helpers ---

def test_weekday_index_is_sunday_based():
    assert weekday_index(date(2025, 1, 5)) == 0  # Sunday
    assert weekday_index(MONDAY) == 1
    assert weekday_index(date(2025, 1, 11)) == 6  # Saturday


@pytest.mark.parametrize("day,week", [(1, 1), (7, 1), (8, 2), (14, 2), (28, 4), (29, 5), (31, 5)])
def test_week_of_month(day, week):
    assert week_of_month(date(2025, 1, day)) == week


# --- validation ---

def test_valid_weekly_pattern():
    result = validate_recurrence_pattern(weekly())
    assert result.valid
    assert result.errors == []


def test_empty_recurrence_days_fails_validation():
    result = validate_recurrence_pattern(weekly(recurrence_days=[]))
    assert not result.valid
    assert "At least one day must be selected for weekly recurrence" in result.errors


def test_validation_accumulates_errors():
    pattern = weekly(title="   ", start_time=None, duration_minutes=0, recurrence_days=[])
    result = validate_recurrence_pattern(pattern)

    assert not result.valid
    assert len(result.errors) == 4
    assert "Title is required" in result.errors
    assert "Start time is required" in result.errors
    assert "Duration must be greater than 0" in result.errors


def test_missing_start_date_and_type():
    result = validate_recurrence_pattern(weekly(start_date=None, recurrence_type=None))
    assert "Start date is required" in result.errors
    assert "Recurrence type is required" in result.errors


def test_unknown_recurrence_type():
    result = validate_recurrence_pattern(weekly(recurrence_type="yearly"))
    assert result.errors == ["Unsupported recurrence type: yearly"]


def test_weekday_out_of_range():
    result = validate_recurrence_pattern(weekly(recurrence_days=[1, 7]))
    assert not result.valid


@pytest.mark.parametrize("day,valid", [(0, False), (1, True), (31, True), (32, False), (None, False)])
def test_monthly_date_range(day, valid):
    assert validate_recurrence_pattern(monthly_date(day)).valid is valid


def test_monthly_weekday_accepts_sunday():
    assert validate_recurrence_pattern(monthly_weekday(1, 0)).valid


def test_monthly_weekday_requires_weekday():
    result = validate_recurrence_pattern(monthly_weekday(1, None))
    assert result.errors == ["Weekday is required for monthly weekday recurrence"]


def test_monthly_weekday_requires_both_fields():
    result = validate_recurrence_pattern(monthly_weekday(None, None))
    assert len(result.errors) == 2


def test_monthly_weekday_week_out_of_range():
    assert not validate_recurrence_pattern(monthly_weekday(6, 2)).valid


def test_coordinate_ranges():
    result = validate_recurrence_pattern(weekly(location_lat=91, location_lng=-181))
    assert result.errors == ["Invalid latitude value", "Invalid longitude value"]


def test_missing_coordinates_are_not_checked():
    assert validate_recurrence_pattern(weekly(location_lat=None, location_lng=None)).valid


def test_interval_must_be_positive():
    result = validate_recurrence_pattern(weekly(recurrence_interval=0))
    assert result.errors == ["Recurrence interval must be at least 1"]


def test_bad_start_time_format():
    result = validate_recurrence_pattern(weekly(start_time="6pm"))
    assert result.errors == ["Start time must be in HH:MM or HH:MM:SS format"]


def test_unknown_timezone():
    result = validate_recurrence_pattern(weekly(timezone="Mars/Olympus_Mons"))
    assert result.errors == ["Unknown timezone: Mars/Olympus_Mons"]


def test_validation_does_not_mutate_pattern():
    pattern = weekly(recurrence_days=[3, 1])
    validate_recurrence_pattern(pattern)
    assert pattern.recurrence_days == [3, 1]


# --- weekly generation ---

def test_weekly_mon_wed_every_week():
    instances = generate_event_instances(weekly(), max_occurrences=10)

    assert dates(instances) == [
        date(2025, 1, 6), date(2025, 1, 8),
        date(2025, 1, 13), date(2025, 1, 15),
        date(2025, 1, 20), date(2025, 1, 22),
        date(2025, 1, 27), date(2025, 1, 29),
        date(2025, 2, 3), date(2025, 2, 5),
    ]
    assert [weekday_index(d) for d in dates(instances)] == [1, 3] * 5


def test_weekly_every_other_week():
    instances = generate_event_instances(weekly(recurrence_interval=2), max_occurrences=4)

    assert dates(instances) == [
        date(2025, 1, 6), date(2025, 1, 8),
        date(2025, 1, 20), date(2025, 1, 22),
    ]
    # Occurrence #3 falls in the third week relative to the start
    assert (dates(instances)[2] - MONDAY).days // 7 == 2


def test_weekly_start_date_itself_matches():
    instances = generate_event_instances(weekly(recurrence_days=[1]), max_occurrences=1)
    assert dates(instances) == [MONDAY]


def test_weekly_start_date_not_matching_advances():
    instances = generate_event_instances(weekly(recurrence_days=[5]), max_occurrences=2)
    assert dates(instances) == [date(2025, 1, 10), date(2025, 1, 17)]


def test_weekly_all_days_yields_every_day():
    pattern = weekly(recurrence_days=list(range(7)), end_date=MONDAY + timedelta(days=13))
    instances = generate_event_instances(pattern)

    assert dates(instances) == [MONDAY + timedelta(days=n) for n in range(14)]


def test_end_date_equal_to_start_date_gives_at_most_one():
    assert len(generate_event_instances(weekly(end_date=MONDAY))) == 1
    assert generate_event_instances(weekly(recurrence_days=[2], end_date=MONDAY)) == []


def test_end_date_is_inclusive():
    instances = generate_event_instances(weekly(end_date=date(2025, 1, 15)))
    assert dates(instances)[-1] == date(2025, 1, 15)
    assert len(instances) == 4


def test_cap_limits_instances():
    pattern = weekly(recurrence_days=list(range(7)))
    assert len(generate_event_instances(pattern)) == 100
    assert len(generate_event_instances(pattern, max_occurrences=7)) == 7


# --- monthly generation ---

def test_monthly_date_31_skips_short_months():
    pattern = monthly_date(31, start_date=date(2025, 1, 1), end_date=date(2025, 4, 30))
    assert dates(generate_event_instances(pattern)) == [date(2025, 1, 31), date(2025, 3, 31)]


def test_monthly_date_with_interval():
    pattern = monthly_date(15, start_date=date(2025, 1, 20), recurrence_interval=3)
    # January's 15th is before the start date; the next eligible month is April
    assert dates(generate_event_instances(pattern, max_occurrences=3)) == [
        date(2025, 4, 15), date(2025, 7, 15), date(2025, 10, 15),
    ]


def test_monthly_interval_ignores_day_of_month():
    pattern = monthly_date(1, start_date=date(2025, 1, 31), recurrence_interval=2)
    assert dates(generate_event_instances(pattern, max_occurrences=2)) == [
        date(2025, 3, 1), date(2025, 5, 1),
    ]


def test_second_tuesday_for_three_months():
    pattern = monthly_weekday(2, 2, start_date=date(2025, 1, 1), end_date=date(2025, 3, 31))
    assert dates(generate_event_instances(pattern)) == [
        date(2025, 1, 14), date(2025, 2, 11), date(2025, 3, 11),
    ]


def test_fifth_week_only_in_long_months():
    # Saturdays in week 5 (days 29-31) of 2025: Mar 29, May 31, Aug 30, Nov 29
    pattern = monthly_weekday(5, 6, start_date=date(2025, 1, 1), end_date=date(2025, 12, 31))
    assert dates(generate_event_instances(pattern)) == [
        date(2025, 3, 29), date(2025, 5, 31), date(2025, 8, 30), date(2025, 11, 29),
    ]


def test_unreachable_pattern_gives_empty_sequence():
    # Only Februaries are eligible, and February never has a 31st
    pattern = monthly_date(31, start_date=date(2025, 2, 1), recurrence_interval=12)
    assert generate_event_instances(pattern) == []


def test_next_occurrence_gives_up_after_scan_bound():
    pattern = monthly_date(31, start_date=date(2025, 2, 1), recurrence_interval=12)
    assert next_occurrence(pattern, pattern.start_date) is None
    assert MAX_SCAN_DAYS == 730


# --- materialization ---

def test_instances_carry_pattern_fields():
    pattern = weekly(
        id="pattern-1",
        location_address="Gym",
        registration_window_before_minutes=10,
        registration_window_after_minutes=5,
        location_radius_meters=75,
    )
    instance = generate_event_instances(pattern, max_occurrences=1)[0]

    assert instance.title == "Team Practice"
    assert instance.recurring_event_id == "pattern-1"
    assert instance.location_address == "Gym"
    assert instance.registration_window_before_minutes == 10
    assert instance.registration_window_after_minutes == 5
    assert instance.location_radius_meters == 75
    assert instance.end_time - instance.start_time == timedelta(minutes=90)


def test_time_of_day_is_combined_in_pattern_timezone():
    pattern = weekly(timezone="America/New_York", start_time="09:00", recurrence_days=[1])
    winter = generate_event_instances(pattern, max_occurrences=1)[0]
    summer = generate_event_instances(
        dataclasses.replace(pattern, start_date=date(2025, 7, 7)), max_occurrences=1
    )[0]

    assert winter.start_time == datetime(2025, 1, 6, 14, 0, tzinfo=timezone.utc)
    assert summer.start_time == datetime(2025, 7, 7, 13, 0, tzinfo=timezone.utc)
    assert winter.timezone == "America/New_York"


def test_missing_timezone_means_utc():
    instance = generate_event_instances(weekly(timezone=None), max_occurrences=1)[0]
    assert instance.start_time == datetime(2025, 1, 6, 18, 0, tzinfo=timezone.utc)
    assert instance.timezone == "UTC"


def test_seconds_in_start_time():
    instance = generate_event_instances(weekly(start_time="18:30:15"), max_occurrences=1)[0]
    assert instance.start_time.time().isoformat() == "18:30:15"


def test_generation_is_deterministic():
    pattern = monthly_weekday(1, 0, start_date=date(2025, 1, 1))
    assert generate_event_instances(pattern) == generate_event_instances(pattern)


def test_instances_are_chronological():
    instances = generate_event_instances(weekly(recurrence_days=[0, 2, 4, 6]), max_occurrences=30)
    starts = [instance.start_time for instance in instances]
    assert starts == sorted(starts)
    assert len(set(starts)) == len(starts)
