# src/onepass/core/bayes/cpt.py
"""Conditional probability table for one adjacent layer pair (e.g. B->C).

For each left node x the table stores a row of (right y, numerator) where

    numerator(x -> y) = edge_weight(x, y) * W(y)

plus the running row total. Probabilities are normalized at read time and
never cached, so rows stay appendable while the table is being built.

Worked example (layers A, B, C):
    row A:a1 = [(B:b1, 9), (B:b2, 15)], total 24
    P(b1 | a1) = 9 / 24 = 0.375
    P(b2 | a1) = 15 / 24 = 0.625
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from onepass.core.concurrency import StripedLock
from onepass.core.graph.models import NodeKey


class RandomSource(Protocol):
    """Anything with ``random() -> float`` uniform in [0, 1).

    ``random.Random`` and ``numpy.random.Generator`` both qualify.
    """

    def random(self) -> float: ...


@dataclass(frozen=True, slots=True)
class CPTEntry:
    """One child in a row with its unnormalized weight."""

    node_key: NodeKey
    numerator: float

    def __str__(self) -> str:
        return f"{self.node_key}@{self.numerator}"


class CPTIndex:
    """Per-parent rows of raw numerators with incrementally maintained totals."""

    def __init__(self, stream: str, left_layer: str, right_layer: str) -> None:
        self._stream = stream
        self._left_layer = left_layer
        self._right_layer = right_layer
        self._rows: dict[NodeKey, list[CPTEntry]] = {}
        self._totals: dict[NodeKey, float] = {}
        self._locks = StripedLock()

    @property
    def stream(self) -> str:
        """Joined stream label, e.g. "BC"."""
        return self._stream

    @property
    def left_layer(self) -> str:
        return self._left_layer

    @property
    def right_layer(self) -> str:
        return self._right_layer

    def add(self, parent: NodeKey, child: NodeKey, numerator: float) -> None:
        """Append (child, numerator) to the parent's row.

        Non-positive (and NaN) numerators are dropped: a child that can
        never be drawn has no place in the row.
        """
        if not numerator > 0.0:
            return
        with self._locks.for_key(parent):
            self._rows.setdefault(parent, []).append(CPTEntry(child, numerator))
            self._totals[parent] = self._totals.get(parent, 0.0) + numerator

    def _row(self, parent: NodeKey) -> tuple[tuple[CPTEntry, ...], float]:
        with self._locks.for_key(parent):
            entries = self._rows.get(parent)
            return (tuple(entries) if entries else ()), self._totals.get(parent, 0.0)

    def row_total(self, parent: NodeKey) -> float:
        """Sum of the row's numerators (0.0 for an unknown parent)."""
        return self._row(parent)[1]

    def row_probabilities(self, parent: NodeKey) -> list[tuple[NodeKey, float]]:
        """Normalized row in insertion order.

        Returns an empty list when the row is missing or its total is not
        positive: there is no informative distribution for that parent.
        """
        entries, total = self._row(parent)
        if not total > 0.0:
            return []
        return [(entry.node_key, entry.numerator / total) for entry in entries]

    def sample(self, parent: NodeKey, rng: RandomSource) -> NodeKey | None:
        """Draw y ~ P(y | parent).

        Returns None if the row is empty or its total is not positive.
        """
        entries, total = self._row(parent)
        if not total > 0.0 or not entries:
            return None

        draw = rng.random() * total
        acc = 0.0
        for entry in entries:
            acc += entry.numerator
            if draw <= acc:
                return entry.node_key
        # Rounding left acc just short of the draw
        return entries[-1].node_key

    def parents(self) -> list[NodeKey]:
        """Parents with at least one stored entry, in first-seen order."""
        return list(self._rows)

    def rows(self) -> dict[NodeKey, tuple[CPTEntry, ...]]:
        """Snapshot of the raw rows, for inspection and testing."""
        return {parent: self._row(parent)[0] for parent in self.parents()}

    def __len__(self) -> int:
        return len(self._rows)

    def __repr__(self) -> str:
        return f"CPTIndex(stream={self._stream!r}, left_layer={self._left_layer!r}, right_layer={self._right_layer!r}, rows={len(self)})"
