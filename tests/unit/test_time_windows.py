"""Tests for business time window calculations.

The business clock is a fixed UTC-5 offset, so every business day and
week spans exactly 24 hours per day in UTC, with no DST transitions.
"""

from datetime import date, datetime

import pytest

from salesboard.core.time import WeekKey, WeekRange
from salesboard.rollups.time_windows import (
    business_timezone,
    compute_business_day_boundaries_utc,
    compute_range_boundaries_utc,
    compute_week_boundaries_utc,
    get_week_start,
    iter_week_keys,
)


def test_business_timezone_is_fixed_offset():
    """Test the business clock never observes DST."""
    tz = business_timezone()

    winter = tz.localize(datetime(2025, 1, 15, 12, 0))
    summer = tz.localize(datetime(2025, 7, 15, 12, 0))

    assert winter.utcoffset().total_seconds() == -5 * 3600
    assert summer.utcoffset() == winter.utcoffset()


@pytest.mark.parametrize(
    "week_key, monday",
    [
        (WeekKey(2025, 1), date(2024, 12, 30)),
        (WeekKey(2025, 10), date(2025, 3, 3)),
        (WeekKey(2021, 1), date(2021, 1, 4)),
        (WeekKey(2020, 53), date(2020, 12, 28)),
        (WeekKey(2026, 53), date(2026, 12, 28)),
    ],
)
def test_get_week_start(week_key, monday):
    """Test Monday of ISO weeks, including weeks starting in December."""
    assert get_week_start(week_key) == monday
    assert get_week_start(week_key).weekday() == 0


def test_business_day_boundaries():
    """Test a business day runs from 05:00 local to 05:00 local next day."""
    start_utc, end_utc = compute_business_day_boundaries_utc(date(2025, 3, 4))

    assert start_utc == "2025-03-04T10:00:00+00:00"
    assert end_utc == "2025-03-05T10:00:00+00:00"


def test_business_day_boundaries_accept_datetime():
    """Test time component of a datetime is ignored."""
    start_utc, _ = compute_business_day_boundaries_utc(datetime(2025, 3, 4, 23, 59))

    assert start_utc == "2025-03-04T10:00:00+00:00"


def test_business_day_boundaries_custom_clock():
    """Test boundaries on another offset and day start."""
    start_utc, end_utc = compute_business_day_boundaries_utc(date(2025, 3, 4), offset_hours=2, day_start_hour=0)

    assert start_utc == "2025-03-03T22:00:00+00:00"
    assert end_utc == "2025-03-04T22:00:00+00:00"


def test_week_boundaries():
    """Test ISO week boundaries in UTC."""
    start_utc, end_utc = compute_week_boundaries_utc(WeekKey(2025, 10))

    assert start_utc == "2025-03-03T10:00:00+00:00"
    assert end_utc == "2025-03-10T10:00:00+00:00"


def test_week_boundaries_across_year():
    """Test week 1 starting in the previous calendar year."""
    start_utc, end_utc = compute_week_boundaries_utc(WeekKey(2025, 1))

    assert start_utc == "2024-12-30T10:00:00+00:00"
    assert end_utc == "2025-01-06T10:00:00+00:00"


def test_range_boundaries():
    """Test range spans first week start to last week end."""
    week_range = WeekRange(start_week=51, end_week=2, start_year=2024, end_year=2025)

    start_utc, end_utc = compute_range_boundaries_utc(week_range)

    assert start_utc == "2024-12-16T10:00:00+00:00"
    assert end_utc == "2025-01-13T10:00:00+00:00"


def test_iter_week_keys_across_53_week_year():
    """Test week 53 is included when the year has one."""
    week_range = WeekRange(start_week=51, end_week=2, start_year=2020, end_year=2021)

    assert list(iter_week_keys(week_range)) == [
        WeekKey(2020, 51),
        WeekKey(2020, 52),
        WeekKey(2020, 53),
        WeekKey(2021, 1),
        WeekKey(2021, 2),
    ]


def test_iter_week_keys_single_week():
    """Test a range of one week."""
    week_range = WeekRange(start_week=10, end_week=10, start_year=2025, end_year=2025)

    assert list(iter_week_keys(week_range)) == [WeekKey(2025, 10)]


def test_iter_week_keys_inverted_range():
    """Test nothing is yielded when the range is inverted."""
    week_range = WeekRange(start_week=10, end_week=2, start_year=2025, end_year=2025)

    assert list(iter_week_keys(week_range)) == []
