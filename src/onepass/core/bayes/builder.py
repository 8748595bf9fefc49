# src/onepass/core/bayes/builder.py
"""Builds CPTs from the fanout and the finalized group weights.

    numerator(x -> y) = edge_weight(x, y) * W(y)

One CPT per adjacent pair of the declared order. The weight table must be
final: no weight writes may happen while CPTs are being built.
"""

from __future__ import annotations

from collections.abc import Sequence

from onepass.core.bayes.cpt import CPTIndex
from onepass.core.bayes.net import BayesNet
from onepass.core.graph.fanout import FanoutIndex
from onepass.core.graph.layered import adjacent_pairs
from onepass.core.logging import get_logger
from onepass.core.weights.table import WeightTable

logger = get_logger(__name__)


def build_bayes_net(
    layers_left_to_right: Sequence[str],
    fanout: FanoutIndex,
    weights: WeightTable,
) -> BayesNet:
    """Build one CPT per adjacent layer pair.

    Args:
        layers_left_to_right: Declared join order, e.g. ["A", "B", "C"]
        fanout: Parent -> children adjacency (may hold edges of every pair)
        weights: Finalized group weights

    Returns:
        BayesNet with CPTs keyed "AB", "BC", ...
    """
    net = BayesNet()
    snapshot = fanout.snapshot()

    for left_layer, right_layer in adjacent_pairs(layers_left_to_right):
        cpt = CPTIndex(f"{left_layer}{right_layer}", left_layer, right_layer)

        for parent, links in snapshot.items():
            if parent.layer != left_layer:
                continue
            for link in links:
                if link.child.layer != right_layer:
                    continue
                cpt.add(parent, link.child, link.edge_weight * weights.get(link.child))

        net.put(cpt)
        logger.debug("cpt_built", stream=cpt.stream, rows=len(cpt))

    return net
