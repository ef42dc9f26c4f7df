"""Core calendar components of salesboard."""

from .time import (
    DAY_START_HOUR,
    UTC_OFFSET_HOURS,
    WeekKey,
    WeekRange,
    default_trailing_week_range,
    format_utc_iso8601,
    iso_week_of,
    last_iso_week,
    parse_utc_iso8601,
    report_weekday,
    resolve_business_day,
    resolve_default_week_range,
    to_utc_datetime,
    week_anchor_day,
)

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
