# src/onepass/core/weights/partitioned.py
"""In-process partial/reduce execution of the bottom-up pass.

Shards every node's outgoing edges across workers by a salted hash of the
(parent, child) pair, so a high fan-in parent is split over all shards
instead of serializing through a single writer. Per layer:

    shard edges -> partial sums on the pool -> wait for all shards (barrier)
    -> reduce partial tables -> finalize each node once

The result equals direct mode up to floating-point summation order.
"""

from __future__ import annotations

import hashlib
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor

from onepass.core.graph.fanout import FanoutIndex
from onepass.core.graph.models import Child, NodeKey
from onepass.core.logging import get_logger
from onepass.core.weights.calculator import (
    Assignment,
    PriorSource,
    accumulate_partial_weights,
    collect_nodes_by_layer,
    finalize_partial_weights,
    layer_assignments,
    right_neighbours,
)
from onepass.core.weights.policy import SUM_CHILDREN, AggregationPolicy
from onepass.core.weights.table import WeightTable

logger = get_logger(__name__)


class PartitionedWeightRunner:
    """Runs the weight engine in partial/reduce mode on a thread pool.

    Example:
        runner = PartitionedWeightRunner(shards=8, max_workers=4)
        weights = runner.run(graph.layers_right_to_left, graph.children, priors)
    """

    def __init__(self, shards: int = 4, max_workers: int = 4, salt: str = "onepass") -> None:
        """Initialize the runner.

        Args:
            shards: Number of partial tables per layer
            max_workers: Thread pool size
            salt: Mixed into the shard hash; change it to re-balance hot keys

        Raises:
            ValueError: If shards or max_workers is < 1
        """
        if shards < 1:
            raise ValueError(f"shards must be >= 1, got {shards}")
        if max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {max_workers}")
        self._shards = shards
        self._max_workers = max_workers
        self._salt = salt

    @property
    def shards(self) -> int:
        return self._shards

    def shard_of(self, parent: NodeKey, child: NodeKey) -> int:
        """Stable shard index for an edge (same across processes)."""
        digest = hashlib.blake2b(
            f"{self._salt}\x1f{parent}\x1f{child}".encode(),
            digest_size=8,
        ).digest()
        return int.from_bytes(digest, "big") % self._shards

    def split(self, assignments: Sequence[Assignment]) -> list[list[Assignment]]:
        """Distribute each node's edges over the shards."""
        buckets: list[dict[NodeKey, list[Child]]] = [{} for _ in range(self._shards)]
        for node, edges in assignments:
            for edge in edges:
                buckets[self.shard_of(node, edge.child)].setdefault(node, []).append(edge)
        return [list(bucket.items()) for bucket in buckets]

    def run(
        self,
        layers_right_to_left: Sequence[str],
        children: FanoutIndex,
        priors: PriorSource = None,
        leaf_bonus: float = 1.0,
        policy: AggregationPolicy = SUM_CHILDREN,
    ) -> WeightTable:
        """Compute group weights for all declared layers.

        Args:
            layers_right_to_left: e.g. ["C", "B", "A"]
            children: Fanout (parent -> children)
            priors: Prior weight per node as a callable or mapping; missing -> 0.0
            leaf_bonus: Bonus added to nodes with no children
            policy: Downstream aggregation policy; its accumulate fold also
                reduces the shard tables

        Returns:
            Table filled with W(u) for every node in a declared layer
        """
        weights = WeightTable()
        nodes_by_layer = collect_nodes_by_layer(children)
        right_of = right_neighbours(layers_right_to_left)

        with ThreadPoolExecutor(max_workers=self._max_workers, thread_name_prefix="onepass-shard") as pool:
            for layer in layers_right_to_left:
                nodes = nodes_by_layer.get(layer, set())
                assignments, skipped = layer_assignments(nodes, children, right_of[layer])
                if skipped:
                    logger.warning("non_adjacent_edges_skipped", layer=layer, count=skipped)

                futures = [
                    pool.submit(accumulate_partial_weights, share, weights, policy)
                    for share in self.split(assignments)
                    if share
                ]

                # Barrier: every shard of this layer completes before any
                # parent-layer read. result() re-raises worker exceptions.
                reduced = WeightTable()
                for future in futures:
                    reduced.merge_from(future.result(), policy.accumulate)

                finalize_partial_weights(nodes, reduced, weights, priors, leaf_bonus)
                logger.debug(
                    "layer_weighted",
                    layer=layer,
                    nodes=len(nodes),
                    shards_used=len(futures),
                    mode="partial",
                )
        return weights
