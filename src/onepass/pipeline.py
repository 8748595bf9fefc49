# src/onepass/pipeline.py
"""Phase one end to end: edges -> layered graph -> group weights -> CPTs.

    result = run_phase_one(tuples, settings, priors)
    bc = result.bayes_net.get("BC")
    bc.sample(NodeKey("B", "b2"), create_random_source(settings))
"""

from __future__ import annotations

import random
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

from onepass.core.bayes import BayesNet, build_bayes_net
from onepass.core.config import ExecutionMode, OnePassSettings, load_settings
from onepass.core.graph import LayeredGraph, StreamTuple
from onepass.core.logging import configure_logging, get_logger
from onepass.core.weights import PartitionedWeightRunner, WeightTable, compute_group_weights
from onepass.core.weights.calculator import PriorSource

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class PhaseOneResult:
    """Everything a downstream sampler needs from phase one."""

    graph: LayeredGraph
    weights: WeightTable
    bayes_net: BayesNet


def compute_weights(graph: LayeredGraph, settings: OnePassSettings, priors: PriorSource = None) -> WeightTable:
    """Run the bottom-up pass in the configured execution mode."""
    policy = settings.aggregation.policy
    execution = settings.execution
    if execution.mode is ExecutionMode.PARTITIONED:
        runner = PartitionedWeightRunner(
            shards=execution.shards,
            max_workers=execution.max_workers,
            salt=execution.salt,
        )
        return runner.run(graph.layers_right_to_left, graph.children, priors, settings.leaf_bonus, policy)
    return compute_group_weights(graph.layers_right_to_left, graph.children, priors, settings.leaf_bonus, policy)


def run_phase_one(
    tuples: Iterable[StreamTuple],
    settings: OnePassSettings,
    priors: PriorSource = None,
) -> PhaseOneResult:
    """Build the layered graph, its group weights and the per-pair CPTs.

    Raises:
        GraphValidationError: If a tuple uses an unknown or non-adjacent layer
    """
    graph = LayeredGraph.from_tuples(settings.layers, tuples)
    weights = compute_weights(graph, settings, priors)
    bayes_net = build_bayes_net(graph.layers_left_to_right, graph.children, weights)

    logger.info(
        "phase_one_complete",
        layers=graph.layers_left_to_right,
        nodes=graph.node_count,
        edges=graph.edge_count,
        cpts=bayes_net.streams(),
        mode=settings.execution.mode.value,
        aggregation=settings.aggregation.value,
    )
    return PhaseOneResult(graph=graph, weights=weights, bayes_net=bayes_net)


def create_random_source(settings: OnePassSettings) -> random.Random:
    """Random source for CPT sampling, seeded from settings when configured."""
    return random.Random(settings.sampling.seed)


def bootstrap(config_path: Path) -> OnePassSettings:
    """Load settings and configure logging from them."""
    settings = load_settings(config_path)
    configure_logging(json_output=settings.logging.json_output, level=settings.logging.level)
    return settings
