# src/onepass/core/graph/layered.py
"""Layered DAG built from side-stream edges.

Validates that every edge connects ADJACENT layers according to the
declared left-to-right order, then stores the order, the fanout adjacency
and the set of nodes observed per layer. The graph is immutable once built;
rebuild it from the full edge batch when the inputs change.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

import networkx as nx

from onepass.core.graph.fanout import FanoutIndex
from onepass.core.graph.models import GraphValidationError, NodeKey, StreamTuple
from onepass.core.logging import get_logger

logger = get_logger(__name__)


def _position_index(layers: Sequence[str]) -> dict[str, int]:
    """Map each trimmed layer name to its index in declared order.

    Names are trimmed the way NodeKey trims its layer, so a declared
    " A" matches edges in layer "A".
    """
    if not layers:
        raise GraphValidationError("Layer order must declare at least one layer")
    positions: dict[str, int] = {}
    for i, raw in enumerate(layers):
        layer = raw.strip()
        if not layer:
            raise GraphValidationError(f"Layer names must be non-empty (position {i})")
        if layer in positions:
            raise GraphValidationError(f"Duplicate layer in order: {layer}")
        positions[layer] = i
    return positions


def adjacent_pairs(layers_left_to_right: Sequence[str]) -> list[tuple[str, str]]:
    """Consecutive (left, right) layer pairs in declared order."""
    return list(zip(layers_left_to_right, layers_left_to_right[1:], strict=False))


class LayeredGraph:
    """Multipartite join graph over a declared chain of layers.

    Wraps a FanoutIndex with the layer order it was validated against.
    Construct through from_tuples(); there is no mutation API.
    """

    def __init__(
        self,
        layers_left_to_right: Sequence[str],
        children: FanoutIndex,
        nodes_by_layer: dict[str, frozenset[NodeKey]],
    ) -> None:
        self._layers: tuple[str, ...] = tuple(layers_left_to_right)
        self._children = children
        self._nodes_by_layer = nodes_by_layer

    @classmethod
    def from_tuples(cls, layers_left_to_right: Sequence[str], tuples: Iterable[StreamTuple]) -> LayeredGraph:
        """Build a layered graph from stream tuples.

        Args:
            layers_left_to_right: Join order, e.g. ["A", "B", "C"]
            tuples: Edges between adjacent layers (parent -> child)

        Returns:
            Graph with fanout adjacency and per-layer node sets

        Raises:
            GraphValidationError: If the order has duplicates, or a tuple
                uses an unknown or non-adjacent layer
        """
        positions = _position_index(layers_left_to_right)
        declared = list(positions)

        children = FanoutIndex()
        nodes_by_layer: dict[str, set[NodeKey]] = {}

        for t in tuples:
            parent, child = t.parent, t.child
            left = positions.get(parent.layer)
            right = positions.get(child.layer)
            if left is None or right is None:
                raise GraphValidationError(f"Unknown layer(s) in edge: {t} (declared order {declared})")
            if right != left + 1:
                raise GraphValidationError(
                    f"Non-adjacent edge {parent.layer}->{child.layer} for declared order {declared} (edge: {t})"
                )

            children.add_edge(parent, child, t.edge_weight)
            nodes_by_layer.setdefault(parent.layer, set()).add(parent)
            nodes_by_layer.setdefault(child.layer, set()).add(child)

        graph = cls(
            declared,
            children,
            {layer: frozenset(nodes) for layer, nodes in nodes_by_layer.items()},
        )
        logger.debug(
            "layered_graph_built",
            layers=declared,
            nodes=graph.node_count,
            edges=children.edge_count,
        )
        return graph

    @property
    def layers_left_to_right(self) -> list[str]:
        return list(self._layers)

    @property
    def layers_right_to_left(self) -> list[str]:
        """Layer order for the bottom-up pass (children before parents)."""
        return list(reversed(self._layers))

    @property
    def children(self) -> FanoutIndex:
        """The fanout adjacency shared by the weight engine and CPT builder."""
        return self._children

    def nodes_in_layer(self, layer: str) -> frozenset[NodeKey]:
        """Nodes observed at ``layer`` (empty for a layer with no edges)."""
        return self._nodes_by_layer.get(layer, frozenset())

    def adjacent_pairs(self) -> list[tuple[str, str]]:
        """Consecutive (left, right) layer pairs in declared order."""
        return adjacent_pairs(self._layers)

    @property
    def node_count(self) -> int:
        return sum(len(nodes) for nodes in self._nodes_by_layer.values())

    @property
    def edge_count(self) -> int:
        return self._children.edge_count

    def get_nx_graph(self) -> nx.DiGraph:
        """Return a frozen NetworkX view of the node-level graph.

        Nodes are NodeKeys carrying a ``layer`` attribute; edges carry the
        edge ``weight``. Parallel edges between the same pair collapse to
        the last weight seen. Mutation attempts raise nx.NetworkXError.
        """
        graph: nx.DiGraph = nx.DiGraph()
        for layer in self._layers:
            for node in sorted(self.nodes_in_layer(layer)):
                graph.add_node(node, layer=layer)
        for parent, link in self._children.edges():
            graph.add_edge(parent, link.child, weight=link.edge_weight)
        return nx.freeze(graph)
