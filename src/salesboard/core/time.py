"""Business calendar utilities for salesboard reports.

Provides the calendar rules shared by every weekly report:
- UTC discipline: every TimePoint is read as UTC first
- Fixed local offset (UTC-5, no DST) for the business clock
- 05:00 day boundary: earlier hours belong to the previous business day
- ISO-8601 week numbering and trailing week ranges for default filters
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Any

__all__ = [
    "DAY_START_HOUR",
    "UTC_OFFSET_HOURS",
    "WeekKey",
    "WeekRange",
    "default_trailing_week_range",
    "format_utc_iso8601",
    "iso_week_of",
    "last_iso_week",
    "parse_utc_iso8601",
    "report_weekday",
    "resolve_business_day",
    "resolve_default_week_range",
    "to_utc_datetime",
    "week_anchor_day",
]

# Business clock: fixed offset, never DST aware.
UTC_OFFSET_HOURS = -5
DAY_START_HOUR = 5

DEFAULT_WEEKS_BACK = 3


@dataclass(frozen=True, order=True)
class WeekKey:
    """ISO week bucket, ordered by (year, week).

    Attributes
    ----------
    year : int
        ISO week-year (may differ from the calendar year near January 1st)
    week : int
        ISO week number, 1-53
    """

    year: int
    week: int

    @property
    def period_key(self) -> str:
        """Period identifier used by report payloads (e.g. ``"w23"``)."""
        return f"w{self.week}"

    def minus_weeks(self, weeks: int) -> WeekKey:
        """Step back ``weeks`` ISO weeks, crossing year boundaries."""
        if weeks < 0:
            raise ValueError(f"weeks must be >= 0, got {weeks}")

        year, week = self.year, self.week - weeks
        while week < 1:
            year -= 1
            week += last_iso_week(year)
        return WeekKey(year=year, week=week)

    def to_dict(self) -> dict[str, int]:
        return {"year": self.year, "week": self.week}


@dataclass(frozen=True)
class WeekRange:
    """Inclusive range of ISO weeks used as a report filter."""

    start_week: int
    end_week: int
    start_year: int
    end_year: int

    @property
    def start(self) -> WeekKey:
        return WeekKey(year=self.start_year, week=self.start_week)

    @property
    def end(self) -> WeekKey:
        return WeekKey(year=self.end_year, week=self.end_week)

    def to_dict(self) -> dict[str, int]:
        return {
            "start_week": self.start_week,
            "end_week": self.end_week,
            "start_year": self.start_year,
            "end_year": self.end_year,
        }


def parse_utc_iso8601(iso_string: str) -> datetime:
    """Parse ISO-8601 string into a UTC datetime.

    Naive strings are read as UTC. A trailing ``Z`` is accepted.

    Parameters
    ----------
    iso_string
        ISO-8601 datetime string

    Returns
    -------
    datetime
        Timezone-aware datetime in UTC

    Raises
    ------
    ValueError
        If the string is not valid ISO-8601
    """
    value = iso_string.strip()
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"

    try:
        dt = datetime.fromisoformat(value)
    except ValueError as exc:
        raise ValueError(f"Invalid ISO-8601 timestamp: {iso_string!r}") from exc

    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def format_utc_iso8601(dt: datetime) -> str:
    """Format datetime as ISO-8601 UTC string (e.g. ``2025-01-06T10:00:00+00:00``).

    Raises
    ------
    ValueError
        If ``dt`` is naive
    """
    if dt.tzinfo is None:
        raise ValueError("Cannot format naive datetime, attach a timezone first")
    return dt.astimezone(timezone.utc).replace(microsecond=0).isoformat()


def to_utc_datetime(timepoint: Any) -> datetime:
    """Normalise a TimePoint to an aware UTC datetime.

    Accepted TimePoints are epoch milliseconds (int or float), datetimes
    (naive ones are read as UTC) and ISO-8601 strings.

    Raises
    ------
    TypeError
        If the value is not a supported TimePoint
    """
    if isinstance(timepoint, datetime):
        if timepoint.tzinfo is None:
            return timepoint.replace(tzinfo=timezone.utc)
        return timepoint.astimezone(timezone.utc)
    if isinstance(timepoint, bool):
        raise TypeError("bool is not a valid TimePoint")
    if isinstance(timepoint, (int, float)):
        return datetime.fromtimestamp(timepoint / 1000, tz=timezone.utc)
    if isinstance(timepoint, str):
        return parse_utc_iso8601(timepoint)
    raise TypeError(f"Unsupported TimePoint type: {type(timepoint).__name__}")


def resolve_business_day(
    timepoint: Any,
    offset_hours: int = UTC_OFFSET_HOURS,
    day_start_hour: int = DAY_START_HOUR,
) -> date:
    """Return the business day a TimePoint belongs to.

    The instant is shifted by ``offset_hours``; when the local hour is
    earlier than ``day_start_hour`` the previous calendar date is returned.

    Examples
    --------
    >>> resolve_business_day(datetime(2025, 3, 4, 8, 0, tzinfo=timezone.utc))
    datetime.date(2025, 3, 3)
    >>> resolve_business_day(datetime(2025, 3, 4, 10, 0, tzinfo=timezone.utc))
    datetime.date(2025, 3, 4)
    """
    local = to_utc_datetime(timepoint) + timedelta(hours=offset_hours)
    business_day = local.date()
    if local.hour < day_start_hour:
        business_day -= timedelta(days=1)
    return business_day


def iso_week_of(day: date) -> WeekKey:
    """Return the ISO-8601 week of a date.

    The date is moved to the Thursday of its week; that Thursday's year is
    the week-year and its ordinal day gives the week number.
    """
    if isinstance(day, datetime):
        day = day.date()

    thursday = day + timedelta(days=4 - day.isoweekday())
    day_of_year = thursday.timetuple().tm_yday
    return WeekKey(year=thursday.year, week=math.ceil(day_of_year / 7))


def last_iso_week(year: int) -> int:
    """Number of ISO weeks in ``year`` (52 or 53).

    December 28th always falls in the last ISO week of its year.
    """
    return iso_week_of(date(year, 12, 28)).week


def week_anchor_day(business_day: date) -> date:
    """Day used to derive the week number of a business day.

    Sunday folds onto the preceding Saturday; other days are their own
    anchor. The Sunday keeps its own date for display purposes.
    """
    if business_day.isoweekday() == 7:
        return business_day - timedelta(days=1)
    return business_day


def report_weekday(
    timepoint: Any,
    offset_hours: int = UTC_OFFSET_HOURS,
    day_start_hour: int = DAY_START_HOUR,
) -> int:
    """ISO weekday (1=Monday ... 7=Sunday) of the business day."""
    return resolve_business_day(timepoint, offset_hours, day_start_hour).isoweekday()


def default_trailing_week_range(
    timepoint: Any,
    weeks_back: int = DEFAULT_WEEKS_BACK,
    offset_hours: int = UTC_OFFSET_HOURS,
    day_start_hour: int = DAY_START_HOUR,
) -> WeekRange:
    """Default week filter: the current business week and ``weeks_back`` before it.

    Parameters
    ----------
    timepoint
        Current time, injected by the caller
    weeks_back
        Number of weeks before the current one where the range starts
    offset_hours
        Fixed local offset from UTC
    day_start_hour
        Local hour at which a business day starts

    Returns
    -------
    WeekRange
        Inclusive range ending at the current business week

    Raises
    ------
    ValueError
        If ``weeks_back`` is negative
    """
    business_day = resolve_business_day(timepoint, offset_hours, day_start_hour)
    end = iso_week_of(week_anchor_day(business_day))
    start = end.minus_weeks(weeks_back)
    return WeekRange(
        start_week=start.week,
        end_week=end.week,
        start_year=start.year,
        end_year=end.year,
    )


def resolve_default_week_range(now: Any, weeks_back: int | None = None) -> WeekRange:
    """Default week range for ``now`` using the loaded settings when available."""
    from ..config.settings import ConfigError, get_settings

    try:
        settings = get_settings()
    except ConfigError:
        settings = None

    if settings is None:
        return default_trailing_week_range(
            now,
            DEFAULT_WEEKS_BACK if weeks_back is None else weeks_back,
        )

    return default_trailing_week_range(
        now,
        settings.weeks_back if weeks_back is None else weeks_back,
        settings.utc_offset_hours,
        settings.day_start_hour,
    )
