"""Business time windows for report filters.

Compute UTC boundaries of business days and ISO business weeks on the fixed
business clock (UTC-5, days starting at 05:00 local).
"""

from __future__ import annotations

from collections.abc import Iterator
from datetime import date, datetime, timedelta, tzinfo

import pytz

from ..core.time import (
    DAY_START_HOUR,
    UTC_OFFSET_HOURS,
    WeekKey,
    WeekRange,
    format_utc_iso8601,
    iso_week_of,
)

__all__ = [
    "business_timezone",
    "compute_business_day_boundaries_utc",
    "compute_range_boundaries_utc",
    "compute_week_boundaries_utc",
    "get_week_start",
    "iter_week_keys",
]


def business_timezone(offset_hours: int = UTC_OFFSET_HOURS) -> tzinfo:
    """Fixed-offset timezone of the business clock (no DST)."""
    return pytz.FixedOffset(offset_hours * 60)


def get_week_start(week_key: WeekKey) -> date:
    """Monday of an ISO week.

    January 4th always falls in ISO week 1.

    >>> get_week_start(WeekKey(year=2021, week=1))
    datetime.date(2021, 1, 4)
    """
    jan_4 = date(week_key.year, 1, 4)
    return jan_4 - timedelta(days=jan_4.weekday()) + timedelta(weeks=week_key.week - 1)


def _business_start_utc(day: date, offset_hours: int, day_start_hour: int) -> datetime:
    tz = business_timezone(offset_hours)
    local_start = tz.localize(datetime(day.year, day.month, day.day, day_start_hour, 0, 0))
    return local_start.astimezone(pytz.UTC)


def compute_business_day_boundaries_utc(
    business_day: date,
    offset_hours: int = UTC_OFFSET_HOURS,
    day_start_hour: int = DAY_START_HOUR,
) -> tuple[str, str]:
    """Compute UTC boundaries of a business day.

    Parameters
    ----------
    business_day
        Business day (time component ignored)
    offset_hours
        Fixed local offset from UTC
    day_start_hour
        Local hour at which the business day starts

    Returns
    -------
    tuple[str, str]
        (start_utc, end_utc) as ISO-8601 strings, end exclusive

    Examples
    --------
    >>> compute_business_day_boundaries_utc(date(2025, 3, 4))
    ('2025-03-04T10:00:00+00:00', '2025-03-05T10:00:00+00:00')
    """
    if isinstance(business_day, datetime):
        business_day = business_day.date()

    start_utc = _business_start_utc(business_day, offset_hours, day_start_hour)
    end_utc = _business_start_utc(business_day + timedelta(days=1), offset_hours, day_start_hour)

    return (
        format_utc_iso8601(start_utc),
        format_utc_iso8601(end_utc),
    )


def compute_week_boundaries_utc(
    week_key: WeekKey,
    offset_hours: int = UTC_OFFSET_HOURS,
    day_start_hour: int = DAY_START_HOUR,
) -> tuple[str, str]:
    """Compute UTC boundaries of an ISO business week.

    The week runs from Monday at the day start hour to the following Monday
    at the same local hour.

    Returns
    -------
    tuple[str, str]
        (start_utc, end_utc) as ISO-8601 strings, end exclusive
    """
    monday = get_week_start(week_key)
    start_utc = _business_start_utc(monday, offset_hours, day_start_hour)
    end_utc = _business_start_utc(monday + timedelta(days=7), offset_hours, day_start_hour)

    return (
        format_utc_iso8601(start_utc),
        format_utc_iso8601(end_utc),
    )


def compute_range_boundaries_utc(
    week_range: WeekRange,
    offset_hours: int = UTC_OFFSET_HOURS,
    day_start_hour: int = DAY_START_HOUR,
) -> tuple[str, str]:
    """Compute UTC boundaries of an inclusive week range.

    Convenience function spanning from the start of the first week to the
    end of the last week.
    """
    start_utc, _ = compute_week_boundaries_utc(week_range.start, offset_hours, day_start_hour)
    _, end_utc = compute_week_boundaries_utc(week_range.end, offset_hours, day_start_hour)
    return start_utc, end_utc


def iter_week_keys(week_range: WeekRange) -> Iterator[WeekKey]:
    """Yield every ISO week of an inclusive range in order.

    Nothing is yielded when the range starts after it ends.
    """
    monday = get_week_start(week_range.start)
    last_monday = get_week_start(week_range.end)

    while monday <= last_monday:
        yield iso_week_of(monday)
        monday += timedelta(weeks=1)
