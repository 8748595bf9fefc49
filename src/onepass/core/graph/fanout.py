# src/onepass/core/graph/fanout.py
"""Thread-safe fanout index: parent NodeKey -> children with edge weights.

This is the adjacency list that the weight engine reads during the
bottom-up pass and the CPT builder walks once per layer pair. Entries are
only ever appended; nothing is removed.
"""

from __future__ import annotations

from collections.abc import Iterator

from onepass.core.concurrency import StripedLock
from onepass.core.graph.models import Child, NodeKey, validate_edge_weight


class FanoutIndex:
    """Concurrent mapping from parent node to its ordered child links.

    Insertion under one parent is atomic. Producers writing different
    parents contend only when their keys share a lock stripe.
    """

    def __init__(self) -> None:
        self._fanout: dict[NodeKey, list[Child]] = {}
        self._locks = StripedLock()

    def add_edge(self, parent: NodeKey, child: NodeKey, edge_weight: float) -> None:
        """Append the edge ``parent -> child`` to the parent's fanout.

        Raises:
            InvalidEdgeError: If edge_weight is not finite and >= 0
        """
        link = Child(child=child, edge_weight=validate_edge_weight(edge_weight))
        with self._locks.for_key(parent):
            self._fanout.setdefault(parent, []).append(link)

    def children(self, parent: NodeKey) -> tuple[Child, ...]:
        """Snapshot of the parent's children (empty if it has none)."""
        with self._locks.for_key(parent):
            links = self._fanout.get(parent)
            return tuple(links) if links else ()

    def parents(self) -> list[NodeKey]:
        """All nodes with at least one outgoing edge, in first-seen order."""
        return list(self._fanout)

    def edges(self) -> Iterator[tuple[NodeKey, Child]]:
        """Iterate every (parent, child link) pair."""
        for parent in self.parents():
            for link in self.children(parent):
                yield parent, link

    def snapshot(self) -> dict[NodeKey, tuple[Child, ...]]:
        """Point-in-time copy for iteration or serialization."""
        return {parent: self.children(parent) for parent in self.parents()}

    def merge_from(self, other: FanoutIndex) -> None:
        """Union another index into this one by replaying all of its edges."""
        for parent, link in other.edges():
            self.add_edge(parent, link.child, link.edge_weight)

    @property
    def edge_count(self) -> int:
        return sum(len(links) for links in self.snapshot().values())

    def __len__(self) -> int:
        return len(self._fanout)

    def __contains__(self, parent: object) -> bool:
        return parent in self._fanout
