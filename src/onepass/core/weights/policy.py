# src/onepass/core/weights/policy.py
"""How a parent combines its children's weights during the bottom-up pass."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum
from typing import TypeAlias

from onepass.core.graph.models import Child
from onepass.core.weights.table import SUM, Combiner

Contribution: TypeAlias = Callable[[Child, float], float]
"""(edge to child, child's finalized weight) -> contribution to the parent."""


@dataclass(frozen=True, slots=True)
class AggregationPolicy:
    """A contribution function paired with the fold that accumulates it.

    ``accumulate`` must be associative and commutative; partial/reduce mode
    also uses it to combine shard tables.
    """

    name: str
    contribution: Contribution
    accumulate: Combiner = SUM


def _child_weight(edge: Child, child_weight: float) -> float:
    return child_weight


def _edge_scaled(edge: Child, child_weight: float) -> float:
    return edge.edge_weight * child_weight


# W(parent) = prior + sum of W(child); edge weights ignored.
SUM_CHILDREN = AggregationPolicy(name="sum_children", contribution=_child_weight)

# W(parent) = prior + sum of edge_weight * W(child).
EDGE_WEIGHTED_SUM = AggregationPolicy(name="edge_weighted_sum", contribution=_edge_scaled)


class AggregationMode(StrEnum):
    """Built-in policies selectable from configuration."""

    SUM_CHILDREN = "sum_children"
    EDGE_WEIGHTED_SUM = "edge_weighted_sum"

    @property
    def policy(self) -> AggregationPolicy:
        if self is AggregationMode.EDGE_WEIGHTED_SUM:
            return EDGE_WEIGHTED_SUM
        return SUM_CHILDREN
