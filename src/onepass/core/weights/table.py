# src/onepass/core/weights/table.py
"""NodeWeightIndex: thread-safe map {NodeKey -> W(node)} for the bottom-up pass.

Two write primitives support the two execution modes:

1) Finalize locally (one owner per node): the owner computes the whole
   weight and writes it once with ``set``.

2) Partial then reduce (hot parents sharded across workers): workers fold
   partial sums with ``add``; a reducer combines the shard tables with
   ``merge_from`` and finalizes each node with one ``set``.

Usage:
    # Direct
    weights.set(parent, prior + sum_of_children + leaf)

    # Partial + reduce
    partial.add(parent, child_weight, SUM)       # on workers, many times
    reduced.merge_from(partial, SUM)             # on the reducer
    weights.set(parent, prior + reduced.get(parent) + leaf)
"""

from __future__ import annotations

import operator
from collections.abc import Callable
from enum import StrEnum
from typing import TypeAlias

from onepass.core.concurrency import StripedLock
from onepass.core.graph.models import NodeKey

Combiner: TypeAlias = Callable[[float, float], float]
"""Associative, commutative fold: (existing, incoming) -> combined."""

SUM: Combiner = operator.add
MAX: Combiner = max


def OVERWRITE(existing: float, incoming: float) -> float:  # noqa: N802 - constant-style combiner
    """Keep the incoming value."""
    return incoming


class CombineOp(StrEnum):
    """Named combiners for configuration."""

    SUM = "sum"
    MAX = "max"
    OVERWRITE = "overwrite"

    @property
    def combiner(self) -> Combiner:
        return _COMBINERS[self]


_COMBINERS: dict[CombineOp, Combiner] = {
    CombineOp.SUM: SUM,
    CombineOp.MAX: MAX,
    CombineOp.OVERWRITE: OVERWRITE,
}


class WeightTable:
    """Group weight per node. Reads of absent nodes return 0.0."""

    def __init__(self) -> None:
        self._weights: dict[NodeKey, float] = {}
        self._locks = StripedLock()

    def add(self, key: NodeKey, delta: float, op: Combiner = SUM) -> None:
        """Atomically fold ``delta`` into the weight for ``key``.

        Inserts ``delta`` if the node is new, otherwise stores
        ``op(existing, delta)``.
        """
        with self._locks.for_key(key):
            existing = self._weights.get(key)
            self._weights[key] = delta if existing is None else op(existing, delta)

    def set(self, key: NodeKey, weight: float) -> None:
        """Write the final weight for a node."""
        with self._locks.for_key(key):
            self._weights[key] = weight

    def get(self, key: NodeKey) -> float:
        """Read the weight (0.0 if absent)."""
        return self._weights.get(key, 0.0)

    def snapshot(self) -> dict[NodeKey, float]:
        """Point-in-time copy; use ``key in snapshot`` to detect missing nodes."""
        return dict(self._weights)

    def merge_from(self, other: WeightTable, op: Combiner = SUM) -> None:
        """Merge every entry of ``other`` into this table.

        For each key: insert if absent, otherwise combine existing and
        other's value with ``op`` (e.g. SUM, MAX, OVERWRITE).
        """
        for key, value in other.snapshot().items():
            self.add(key, value, op)

    def __contains__(self, key: object) -> bool:
        return key in self._weights

    def __len__(self) -> int:
        return len(self._weights)
