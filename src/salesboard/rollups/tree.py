"""Report tree model.

Report endpoints return nested JSON objects such as region -> city -> point
of sale, or category -> region -> SKU. The payload is parsed once into an
explicit tagged tree:

- ``MetricLeaf``: period-keyed numbers plus a total
- ``SummaryNode``: object carrying the reserved ``pocs`` collection; its own
  period fields are totals pre-aggregated by the API
- ``GroupNode``: any other grouping level

Parsing is lenient: values that are not objects are dropped and unknown
shapes become empty groups.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

__all__ = [
    "PERIOD_KEY_PATTERN",
    "POCS_KEY",
    "GroupNode",
    "MetricLeaf",
    "Node",
    "SummaryNode",
    "is_metric_leaf",
    "is_number",
    "iter_leaves",
    "parse_period_key",
    "parse_tree",
]

# "w23" in weekly reports, a raw "23" in the hourly traffic report
PERIOD_KEY_PATTERN = re.compile(r"^w?(\d+)$")

# Reserved child collection of pre-aggregated city rows.
POCS_KEY = "pocs"

TOTAL_KEY = "total"


def parse_period_key(key: Any) -> int | None:
    """Return the integer encoded in a period key, or None if malformed.

    >>> parse_period_key("w12")
    12
    >>> parse_period_key("12")
    12
    >>> parse_period_key("week12") is None
    True
    """
    if not isinstance(key, str):
        return None
    match = PERIOD_KEY_PATTERN.match(key)
    if match is None:
        return None
    return int(match.group(1))


def is_number(value: Any) -> bool:
    """True for int and float values (bool excluded)."""
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def is_metric_leaf(node: Any) -> bool:
    """True if a raw payload object has the shape of a metric leaf.

    A leaf is a mapping with a ``total`` key, at least one period key and
    no ``pocs`` collection.
    """
    if not isinstance(node, Mapping):
        return False
    if TOTAL_KEY not in node or POCS_KEY in node:
        return False
    return any(parse_period_key(key) is not None for key in node)


@dataclass(frozen=True)
class MetricLeaf:
    """Period-keyed values and their total.

    Attributes
    ----------
    values : dict[str, float]
        Period key -> value, in payload order
    total : float
        Upstream total when provided, otherwise the sum of ``values``
    """

    values: dict[str, float] = field(default_factory=dict)
    total: float = 0

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> MetricLeaf:
        values = {
            key: value
            for key, value in data.items()
            if parse_period_key(key) is not None and is_number(value)
        }
        total = data.get(TOTAL_KEY)
        # The dashboard counted a non-numeric total as 0; the period sum is used instead
        if not is_number(total):
            total = sum(values.values())
        return cls(values=values, total=total)

    def get(self, period_key: str) -> float:
        """Value for a period, 0 when the leaf has none."""
        return self.values.get(period_key, 0)

    def to_dict(self) -> dict[str, float]:
        return {**self.values, TOTAL_KEY: self.total}


@dataclass(frozen=True)
class SummaryNode:
    """Grouping level with upstream totals and a ``pocs`` child collection."""

    summary: MetricLeaf
    children: dict[str, Node] = field(default_factory=dict)


@dataclass(frozen=True)
class GroupNode:
    """Plain grouping level (region, city, category)."""

    children: dict[str, Node] = field(default_factory=dict)


Node = MetricLeaf | SummaryNode | GroupNode


def _parse_children(data: Any) -> dict[str, Node]:
    if not isinstance(data, Mapping):
        return {}
    return {
        str(name): _parse_node(value)
        for name, value in data.items()
        if isinstance(value, Mapping)
    }


def _parse_node(data: Mapping[str, Any]) -> Node:
    if POCS_KEY in data:
        return SummaryNode(
            summary=MetricLeaf.from_mapping(data),
            children=_parse_children(data[POCS_KEY]),
        )
    if is_metric_leaf(data):
        return MetricLeaf.from_mapping(data)
    return GroupNode(children=_parse_children(data))


def parse_tree(payload: Any) -> Node:
    """Parse a report payload into a tagged tree.

    Already parsed nodes are returned unchanged. A flat leaf-shaped payload
    (ungrouped report) becomes a single ``MetricLeaf``.

    Parameters
    ----------
    payload
        Decoded JSON of a report endpoint

    Returns
    -------
    Node
        Root of the tree (an empty ``GroupNode`` for unusable payloads)
    """
    if isinstance(payload, (MetricLeaf, SummaryNode, GroupNode)):
        return payload
    if not isinstance(payload, Mapping):
        return GroupNode()
    return _parse_node(payload)


def iter_leaves(node: Node):
    """Yield every ``MetricLeaf`` reachable from ``node``, depth first.

    Summary rows of ``SummaryNode`` are not leaves and are not yielded.
    """
    if isinstance(node, MetricLeaf):
        yield node
        return
    for child in node.children.values():
        yield from iter_leaves(child)
