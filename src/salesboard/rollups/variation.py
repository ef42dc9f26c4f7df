"""Period-over-period variation percentages."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from .tree import is_number

__all__ = [
    "NO_ACTIVITY",
    "PeriodVariation",
    "percent_change",
    "period_over_period",
    "resolve_variation",
]

# Upstream marker for "no activity in either period"
NO_ACTIVITY = -100


def percent_change(current: float | None, previous: float | None) -> float:
    """Signed percentage change from ``previous`` to ``current``.

    A missing or zero baseline yields 0.0 (no variation), never infinity or
    NaN. The result is not rounded.

    >>> percent_change(15, 10)
    50.0
    >>> percent_change(10, 0)
    0.0
    """
    if not previous:
        return 0.0
    return (float(current or 0) - previous) / previous * 100


def resolve_variation(reported: Any, current: float | None, previous: float | None) -> float:
    """Variation to display for a row.

    A numeric value already reported by the API, including the
    ``NO_ACTIVITY`` sentinel, is returned unchanged. Otherwise the variation
    is computed locally.
    """
    if is_number(reported):
        return reported
    return percent_change(current, previous)


@dataclass(frozen=True)
class PeriodVariation:
    """Value of one period and its change against the period before it."""

    period_key: str
    value: float
    previous: float | None
    change: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "period_key": self.period_key,
            "value": self.value,
            "previous": self.previous,
            "change": self.change,
        }


def period_over_period(totals: Any, period_keys: list[str]) -> list[PeriodVariation]:
    """Week-over-week variations of a totals record.

    Parameters
    ----------
    totals
        ``GrandTotal``, ``MetricLeaf`` or a plain ``{period: value}`` mapping
    period_keys
        Periods in display order

    Returns
    -------
    list[PeriodVariation]
        One entry per period; the first has no baseline and a 0.0 change
    """
    values = totals if isinstance(totals, Mapping) else totals.values

    variations = []
    previous: float | None = None
    for key in period_keys:
        value = values.get(key, 0) or 0
        variations.append(
            PeriodVariation(
                period_key=key,
                value=value,
                previous=previous,
                change=percent_change(value, previous),
            )
        )
        previous = value

    return variations
