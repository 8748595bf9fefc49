# src/onepass/core/weights/calculator.py
"""Bottom-up computation of group weights.

    W(u) = prior(u) + aggregate(contribution(edge, W(child)) for edge in fanout(u))
           + leaf_bonus if u has no children

Layers are processed right-to-left so every child's weight is final before
its parents read it. Callers running layers in parallel must place a
barrier between layers; nothing here enforces it.

Both execution modes go through aggregate_edges(): direct mode finalizes
each node with one ``set``; partial mode folds shard sums into a partial
table with ``add`` and leaves finalization to finalize_partial_weights().
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping, Sequence
from enum import StrEnum
from typing import TypeAlias

from onepass.core.graph.fanout import FanoutIndex
from onepass.core.graph.models import Child, NodeKey
from onepass.core.logging import get_logger
from onepass.core.weights.policy import SUM_CHILDREN, AggregationPolicy
from onepass.core.weights.table import WeightTable

logger = get_logger(__name__)

PriorFn: TypeAlias = Callable[[NodeKey], float]
PriorSource: TypeAlias = PriorFn | Mapping[NodeKey, float] | None

Assignment: TypeAlias = tuple[NodeKey, Sequence[Child]]
"""A node together with the outgoing edges one worker aggregates for it."""


class WriteMode(StrEnum):
    """How aggregate_edges() writes its result."""

    DIRECT = "direct"
    PARTIAL = "partial"


def resolve_prior(priors: PriorSource) -> PriorFn:
    """Normalize priors to a lookup function; absent nodes get 0.0."""
    if priors is None:
        return lambda _node: 0.0
    if isinstance(priors, Mapping):
        return lambda node: float(priors.get(node, 0.0))
    return priors


def collect_nodes_by_layer(children: FanoutIndex) -> dict[str, set[NodeKey]]:
    """Collect every parent and child in the fanout, grouped by layer."""
    nodes_by_layer: dict[str, set[NodeKey]] = {}
    for parent, links in children.snapshot().items():
        nodes_by_layer.setdefault(parent.layer, set()).add(parent)
        for link in links:
            nodes_by_layer.setdefault(link.child.layer, set()).add(link.child)
    return nodes_by_layer


def right_neighbours(layers_right_to_left: Sequence[str]) -> dict[str, str | None]:
    """Map each layer to the layer immediately to its right (None for the last)."""
    return {layer: (layers_right_to_left[i - 1] if i > 0 else None) for i, layer in enumerate(layers_right_to_left)}


def layer_assignments(
    nodes: Iterable[NodeKey],
    children: FanoutIndex,
    right_layer: str | None,
) -> tuple[list[Assignment], int]:
    """Pair each node with its contributing edges.

    Only edges into ``right_layer`` contribute; anything else in the fanout
    belongs to another layer pair and is skipped.

    Returns:
        (assignments, number of skipped edges)
    """
    assignments: list[Assignment] = []
    skipped = 0
    for node in nodes:
        links = children.children(node)
        kept = [link for link in links if link.child.layer == right_layer]
        skipped += len(links) - len(kept)
        assignments.append((node, kept))
    return assignments, skipped


def _fold(edges: Sequence[Child], weights: WeightTable, policy: AggregationPolicy) -> float:
    total = 0.0
    for edge in edges:
        total = policy.accumulate(total, policy.contribution(edge, weights.get(edge.child)))
    return total


def aggregate_edges(
    assignments: Iterable[Assignment],
    weights: WeightTable,
    out: WeightTable,
    policy: AggregationPolicy = SUM_CHILDREN,
    *,
    mode: WriteMode = WriteMode.DIRECT,
    prior: PriorFn | None = None,
    leaf_bonus: float = 0.0,
) -> None:
    """Aggregate child contributions for each assignment and write them to ``out``.

    Args:
        assignments: (node, edges) pairs to aggregate
        weights: Table holding the finalized weights of the children
        out: Table receiving the result
        policy: Contribution and accumulation functions
        mode: DIRECT writes prior + aggregate + leaf bonus with ``set``.
            PARTIAL folds the bare aggregate into ``out`` with ``add``;
            nodes with no edges in this slice are not written.
        prior: Prior lookup (DIRECT only)
        leaf_bonus: Added when a node has no edges (DIRECT only)
    """
    lookup = prior if prior is not None else resolve_prior(None)
    for node, edges in assignments:
        accum = _fold(edges, weights, policy)
        if mode is WriteMode.PARTIAL:
            if edges:
                out.add(node, accum, policy.accumulate)
            continue
        leaf = leaf_bonus if not edges else 0.0
        out.set(node, lookup(node) + accum + leaf)


def compute_group_weights(
    layers_right_to_left: Sequence[str],
    children: FanoutIndex,
    priors: PriorSource = None,
    leaf_bonus: float = 1.0,
    policy: AggregationPolicy = SUM_CHILDREN,
    *,
    target: WeightTable | None = None,
) -> WeightTable:
    """Compute group weights in direct mode.

    Args:
        layers_right_to_left: e.g. ["C", "B", "A"]
        children: Fanout (parent -> children)
        priors: Prior weight per node as a callable or mapping; missing -> 0.0
        leaf_bonus: Bonus added to nodes with no children
        policy: Downstream aggregation policy
        target: Existing table to write into (a fresh one if None)

    Returns:
        Table filled with W(u) for every node in a declared layer
    """
    weights = target if target is not None else WeightTable()
    prior = resolve_prior(priors)
    nodes_by_layer = collect_nodes_by_layer(children)
    right_of = right_neighbours(layers_right_to_left)

    skipped_total = 0
    for layer in layers_right_to_left:
        nodes = nodes_by_layer.get(layer, set())
        assignments, skipped = layer_assignments(nodes, children, right_of[layer])
        skipped_total += skipped
        aggregate_edges(
            assignments,
            weights,
            weights,
            policy,
            mode=WriteMode.DIRECT,
            prior=prior,
            leaf_bonus=leaf_bonus,
        )
        logger.debug("layer_weighted", layer=layer, nodes=len(nodes), mode=WriteMode.DIRECT.value)

    if skipped_total:
        logger.warning("non_adjacent_edges_skipped", count=skipped_total, layers=list(layers_right_to_left))
    return weights


def accumulate_partial_weights(
    assignments: Iterable[Assignment],
    weights: WeightTable,
    policy: AggregationPolicy = SUM_CHILDREN,
    partial: WeightTable | None = None,
) -> WeightTable:
    """Fold one worker's share of edges into a partial table.

    Args:
        assignments: (node, edges) pairs this worker owns; a node may
            appear in several workers' shares
        weights: Finalized weights of the children
        policy: Aggregation policy
        partial: Table to fold into (a fresh one if None)

    Returns:
        The partial table (bare aggregates, no prior or leaf bonus)
    """
    out = partial if partial is not None else WeightTable()
    aggregate_edges(assignments, weights, out, policy, mode=WriteMode.PARTIAL)
    return out


def finalize_partial_weights(
    nodes: Iterable[NodeKey],
    reduced: WeightTable,
    weights: WeightTable,
    priors: PriorSource = None,
    leaf_bonus: float = 1.0,
) -> None:
    """Finalize nodes from the reduced partial table with one ``set`` each.

    A node absent from ``reduced`` received no contributing edge from any
    worker and is therefore a leaf.
    """
    prior = resolve_prior(priors)
    for node in nodes:
        leaf = leaf_bonus if node not in reduced else 0.0
        weights.set(node, prior(node) + reduced.get(node) + leaf)
