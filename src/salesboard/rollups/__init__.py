"""Weekly report rollups: tree aggregation, variations and business windows."""

from .aggregator import (
    AggregationResult,
    DisplayRow,
    GrandTotal,
    SummaryDiscrepancy,
    aggregate,
    collect_period_keys,
    compute_grand_total,
    flatten_for_display,
    has_categories,
    verify_summary_totals,
)
from .comparison import YearlyComparison, combine_city_totals, combine_yearly_totals, yearly_comparison
from .time_windows import (
    compute_business_day_boundaries_utc,
    compute_range_boundaries_utc,
    compute_week_boundaries_utc,
    get_week_start,
    iter_week_keys,
)
from .tree import GroupNode, MetricLeaf, Node, SummaryNode, is_metric_leaf, parse_tree
from .variation import NO_ACTIVITY, PeriodVariation, percent_change, period_over_period, resolve_variation

__all__ = [
    # Tree model
    "GroupNode",
    "MetricLeaf",
    "Node",
    "SummaryNode",
    "is_metric_leaf",
    "parse_tree",
    # Aggregation
    "AggregationResult",
    "DisplayRow",
    "GrandTotal",
    "SummaryDiscrepancy",
    "aggregate",
    "collect_period_keys",
    "compute_grand_total",
    "flatten_for_display",
    "has_categories",
    "verify_summary_totals",
    # Variations
    "NO_ACTIVITY",
    "PeriodVariation",
    "percent_change",
    "period_over_period",
    "resolve_variation",
    # Yearly comparison
    "YearlyComparison",
    "combine_city_totals",
    "combine_yearly_totals",
    "yearly_comparison",
    # Time windows
    "compute_business_day_boundaries_utc",
    "compute_range_boundaries_utc",
    "compute_week_boundaries_utc",
    "get_week_start",
    "iter_week_keys",
]
