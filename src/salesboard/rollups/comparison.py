"""Year-over-year comparison of report totals.

Years without data can be filled with manually entered values. A manual
value only applies where the API has no real value for that year (missing,
zero or negative), and only when it parses as a number.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from ..observability.loguru_config import get_logger
from .tree import is_number
from .variation import PeriodVariation, percent_change

__all__ = [
    "YearlyComparison",
    "combine_city_totals",
    "combine_yearly_totals",
    "parse_manual_value",
    "yearly_comparison",
]

log = get_logger("rollups")


@dataclass
class YearlyComparison:
    """Combined yearly totals, their variations and per-city chart series."""

    years: list[str]
    totals: dict[str, float]
    variations: list[PeriodVariation]
    city_series: list[dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "years": list(self.years),
            "totals": dict(self.totals),
            "variations": [item.to_dict() for item in self.variations],
            "city_series": [dict(item) for item in self.city_series],
        }


def parse_manual_value(value: Any) -> float | None:
    """Parse a manually entered value; None when empty, not a number or not finite."""
    if value is None or isinstance(value, bool):
        return None
    if is_number(value):
        return float(value) if math.isfinite(value) else None
    text = str(value).strip()
    if not text:
        return None
    try:
        value = float(text)
    except ValueError:
        return None
    return value if math.isfinite(value) else None


def _has_real_value(value: Any) -> bool:
    return is_number(value) and value > 0


def combine_yearly_totals(real: Mapping[str, Any] | None, manual: Mapping[Any, Any] | None = None) -> dict[str, float]:
    """Merge API yearly totals with manual values for years without data.

    Parameters
    ----------
    real
        Year -> total from the API
    manual
        Year -> manually entered value (strings are parsed)

    Returns
    -------
    dict[str, float]
        Combined totals keyed by year string
    """
    combined: dict[str, Any] = {str(year): value for year, value in (real or {}).items()}

    for year, raw in (manual or {}).items():
        year = str(year)
        value = parse_manual_value(raw)
        if value is None:
            if raw not in (None, ""):
                log.debug("Ignoring manual value that is not a number", year=year, value=raw)
            continue
        if _has_real_value(combined.get(year)):
            continue
        combined[year] = value

    return combined


def _split_city_key(key: Any) -> tuple[str, str] | None:
    if isinstance(key, tuple) and len(key) == 2:
        return str(key[0]), str(key[1])
    if isinstance(key, str) and "_" in key:
        city, year = key.rsplit("_", 1)
        return city, year
    return None


def combine_city_totals(
    cities: Mapping[str, Mapping[str, Any]] | None,
    manual: Mapping[Any, Any] | None = None,
) -> dict[str, dict[str, Any]]:
    """Merge per-city yearly totals with manual values.

    Manual keys are ``(city, year)`` tuples or ``"city_year"`` strings.
    """
    combined = {
        str(city): dict(years) if isinstance(years, Mapping) else {}
        for city, years in (cities or {}).items()
    }

    for key, raw in (manual or {}).items():
        split = _split_city_key(key)
        value = parse_manual_value(raw)
        if split is None or value is None:
            continue

        city, year = split
        if _has_real_value(combined.get(city, {}).get(year)):
            continue
        combined.setdefault(city, {})[year] = value

    return combined


def yearly_comparison(
    payload: Mapping[str, Any] | None,
    manual: Mapping[Any, Any] | None = None,
    manual_cities: Mapping[Any, Any] | None = None,
) -> YearlyComparison:
    """Build the yearly comparison of a ``{"totals": ..., "cities": ...}`` payload.

    Each year's variation is measured against the previous year in the
    combined totals; the first year has no baseline. City series list every
    combined year, with 0 where a city has no value.
    """
    payload = payload if isinstance(payload, Mapping) else {}
    real_totals = payload.get("totals") if isinstance(payload.get("totals"), Mapping) else {}
    real_cities = payload.get("cities") if isinstance(payload.get("cities"), Mapping) else {}

    totals = combine_yearly_totals(real_totals, manual)
    years = sorted(totals)

    variations = []
    previous: float | None = None
    for year in years:
        value = totals[year] if is_number(totals[year]) else 0
        variations.append(
            PeriodVariation(period_key=year, value=value, previous=previous, change=percent_change(value, previous))
        )
        previous = value

    cities = combine_city_totals(real_cities, manual_cities)
    city_series = []
    for city, city_years in cities.items():
        point: dict[str, Any] = {"city": city}
        for year in years:
            point[year] = city_years.get(year) or 0
        city_series.append(point)

    return YearlyComparison(years=years, totals=totals, variations=variations, city_series=city_series)
