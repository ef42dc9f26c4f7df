"""Hierarchical report aggregation.

Discover period keys, sum leaves into grand totals and flatten a report
tree into display rows. Every operation is lenient: malformed but
well-typed payloads degrade to empty results instead of raising.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from ..observability.loguru_config import get_logger, timing_context
from .tree import (
    MetricLeaf,
    Node,
    SummaryNode,
    iter_leaves,
    parse_period_key,
    parse_tree,
)

__all__ = [
    "CATEGORY_KEYS",
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
]

CATEGORY_KEYS = ("retornable", "no_retornable")

log = get_logger("rollups")


@dataclass
class GrandTotal:
    """Totals over every leaf of a tree, per period and overall."""

    values: dict[str, float] = field(default_factory=dict)
    total: float = 0

    def get(self, period_key: str) -> float:
        return self.values.get(period_key, 0)

    def to_dict(self) -> dict[str, float]:
        return {**self.values, "total": self.total}


@dataclass(frozen=True)
class DisplayRow:
    """One table row of a flattened report.

    Attributes
    ----------
    label : str
        Node name
    depth : int
        Nesting depth, 0 for top-level nodes (indentation only)
    period_values : dict[str, float | None]
        Value per period key; None where the node has no value to show
    total : float | None
        Row total; None for header rows
    is_leaf : bool
        True for metric leaves
    kind : str
        "header", "summary" or "leaf"
    path : tuple[str, ...]
        Names from the root to this node
    """

    label: str
    depth: int
    period_values: dict[str, float | None]
    total: float | None
    is_leaf: bool
    kind: str
    path: tuple[str, ...]

    @property
    def row_key(self) -> str:
        """Unique key of the row within its table (e.g. ``"costa-guayaquil"``)."""
        return "-".join(self.path)

    def to_dict(self) -> dict[str, Any]:
        return {
            "label": self.label,
            "depth": self.depth,
            "period_values": dict(self.period_values),
            "total": self.total,
            "is_leaf": self.is_leaf,
            "kind": self.kind,
            "path": list(self.path),
        }


@dataclass(frozen=True)
class SummaryDiscrepancy:
    """Upstream summary total that disagrees with the sum of its children."""

    path: tuple[str, ...]
    reported_total: float
    children_total: float

    @property
    def difference(self) -> float:
        return self.reported_total - self.children_total

    def to_dict(self) -> dict[str, Any]:
        return {
            "path": list(self.path),
            "reported_total": self.reported_total,
            "children_total": self.children_total,
            "difference": self.difference,
        }


@dataclass
class AggregationResult:
    """Aggregated report handed to the rendering layer."""

    period_keys: list[str]
    grand_total: GrandTotal
    rows: list[DisplayRow]
    discrepancies: list[SummaryDiscrepancy] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "period_keys": list(self.period_keys),
            "grand_total": self.grand_total.to_dict(),
            "rows": [row.to_dict() for row in self.rows],
            "discrepancies": [item.to_dict() for item in self.discrepancies],
        }


def _as_tree(root: Any) -> Node:
    return parse_tree(root)


def _walk_period_keys(node: Node, keys: set[str]) -> None:
    if isinstance(node, MetricLeaf):
        keys.update(node.values)
        return
    for child in node.children.values():
        _walk_period_keys(child, keys)


def collect_period_keys(root: Any) -> list[str]:
    """Sorted, de-duplicated period keys present anywhere in a tree.

    Only metric leaves contribute; the upstream summary rows of ``pocs``
    nodes never add a column. Keys are ordered by the integer they encode,
    so ``"w3"`` sorts before ``"w12"``.

    Parameters
    ----------
    root
        Parsed tree or raw payload

    Returns
    -------
    list[str]
        Period keys, empty for an empty tree
    """
    keys: set[str] = set()
    _walk_period_keys(_as_tree(root), keys)
    return sorted(keys, key=lambda key: (parse_period_key(key), key))


def compute_grand_total(root: Any, period_keys: list[str] | None = None) -> GrandTotal:
    """Sum every metric leaf of a tree.

    Only leaves contribute. Grouping levels, including the summary rows of
    ``pocs`` nodes, add nothing themselves, so values are never counted
    twice. Leaves missing a period count as 0 for it.

    Parameters
    ----------
    root
        Parsed tree or raw payload
    period_keys
        Periods to total (default: every period key of the tree)

    Returns
    -------
    GrandTotal
        Totals per period key and overall
    """
    tree = _as_tree(root)
    if period_keys is None:
        period_keys = collect_period_keys(tree)

    grand_total = GrandTotal(values={key: 0 for key in period_keys})
    for leaf in iter_leaves(tree):
        for key in period_keys:
            grand_total.values[key] += leaf.get(key)
        grand_total.total += leaf.total

    return grand_total


def _walk_summaries(node: Node, path: tuple[str, ...], found: list[tuple[tuple[str, ...], SummaryNode]]) -> None:
    if isinstance(node, MetricLeaf):
        return
    if isinstance(node, SummaryNode):
        found.append((path, node))
    for name, child in node.children.items():
        _walk_summaries(child, path + (name,), found)


def verify_summary_totals(root: Any, tolerance: float = 0.01) -> list[SummaryDiscrepancy]:
    """Compare upstream summary totals against the leaves below them.

    The API pre-aggregates the totals of ``pocs`` nodes. Neither side is
    corrected; each disagreement above ``tolerance`` is logged and returned.
    """
    summaries: list[tuple[tuple[str, ...], SummaryNode]] = []
    _walk_summaries(_as_tree(root), (), summaries)

    discrepancies = []
    for path, node in summaries:
        children_total = sum(leaf.total for leaf in iter_leaves(node))
        if math.isclose(node.summary.total, children_total, rel_tol=0.0, abs_tol=tolerance):
            continue

        discrepancy = SummaryDiscrepancy(
            path=path,
            reported_total=node.summary.total,
            children_total=children_total,
        )
        log.warning(
            "Summary total differs from its points of sale",
            path="-".join(path),
            reported_total=discrepancy.reported_total,
            children_total=discrepancy.children_total,
            difference=discrepancy.difference,
        )
        discrepancies.append(discrepancy)

    return discrepancies


def _flatten(
    nodes: Mapping[str, Node],
    period_keys: list[str],
    depth: int,
    parent_path: tuple[str, ...],
    rows: list[DisplayRow],
) -> None:
    for name, node in nodes.items():
        path = parent_path + (name,)

        if isinstance(node, MetricLeaf):
            rows.append(
                DisplayRow(
                    label=name,
                    depth=depth,
                    period_values={key: node.values.get(key) for key in period_keys},
                    total=node.total,
                    is_leaf=True,
                    kind="leaf",
                    path=path,
                )
            )
            continue

        if isinstance(node, SummaryNode):
            # City summary row goes before its points of sale
            rows.append(
                DisplayRow(
                    label=name,
                    depth=depth,
                    period_values={key: node.summary.get(key) for key in period_keys},
                    total=node.summary.total,
                    is_leaf=False,
                    kind="summary",
                    path=path,
                )
            )
        else:
            rows.append(
                DisplayRow(
                    label=name,
                    depth=depth,
                    period_values={key: None for key in period_keys},
                    total=None,
                    is_leaf=False,
                    kind="header",
                    path=path,
                )
            )

        _flatten(node.children, period_keys, depth + 1, path, rows)


def flatten_for_display(root: Any, period_keys: list[str] | None = None) -> list[DisplayRow]:
    """Flatten a tree into table rows, depth first in payload order.

    Grouping levels emit a header row, ``pocs`` nodes emit their summary
    row before their children and leaves emit value rows. A flat leaf
    payload has no rows; its values are the grand total.
    """
    tree = _as_tree(root)
    if period_keys is None:
        period_keys = collect_period_keys(tree)

    rows: list[DisplayRow] = []
    if isinstance(tree, MetricLeaf):
        return rows

    _flatten(tree.children, period_keys, 0, (), rows)
    return rows


def has_categories(payload: Any) -> bool:
    """True if a top-SKU payload is split into product categories."""
    if not isinstance(payload, Mapping):
        return False
    return any(isinstance(payload.get(key), Mapping) and len(payload[key]) > 0 for key in CATEGORY_KEYS)


def aggregate(tree: Any, *, verify: bool = True, tolerance: float = 0.01) -> AggregationResult:
    """Aggregate a report payload for display.

    Parameters
    ----------
    tree
        Raw report payload or parsed tree
    verify
        Check ``pocs`` summary totals against their leaves
    tolerance
        Absolute tolerance of the summary check

    Returns
    -------
    AggregationResult
        Period keys, grand total, display rows and summary discrepancies
    """
    with timing_context("aggregate", component="rollups") as ctx:
        root = parse_tree(tree)
        period_keys = collect_period_keys(root)
        result = AggregationResult(
            period_keys=period_keys,
            grand_total=compute_grand_total(root, period_keys),
            rows=flatten_for_display(root, period_keys),
            discrepancies=verify_summary_totals(root, tolerance) if verify else [],
        )
        ctx["periods"] = len(period_keys)
        ctx["rows"] = len(result.rows)

    return result
