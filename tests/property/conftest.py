# tests/property/conftest.py
"""Shared Hypothesis strategies for property-based tests.

Strategy Categories:
- Layered graphs: declared layers plus edges between adjacent layers only
- Priors: finite non-negative weights for a subset of the graph's nodes
"""

from __future__ import annotations

from dataclasses import dataclass

from hypothesis import strategies as st

from onepass.core.graph import NodeKey, StreamTuple

layer_names = st.lists(
    st.text(alphabet="ABCDEFGHIJ", min_size=1, max_size=2),
    min_size=2,
    max_size=4,
    unique=True,
)

edge_weights = st.floats(min_value=0.0, max_value=10.0, allow_nan=False, allow_infinity=False)
prior_weights = st.floats(min_value=0.0, max_value=100.0, allow_nan=False, allow_infinity=False)


@dataclass(frozen=True)
class LayeredCase:
    """A generated graph: declared order, edges, and priors."""

    layers: list[str]
    edges: list[StreamTuple]
    priors: dict[NodeKey, float]


@st.composite
def layered_cases(draw: st.DrawFn, max_nodes_per_layer: int = 5) -> LayeredCase:
    """Random multipartite graph whose edges only join adjacent layers."""
    layers = draw(layer_names)
    values = {layer: [f"{layer.lower()}{i}" for i in range(draw(st.integers(1, max_nodes_per_layer)))] for layer in layers}

    edges: list[StreamTuple] = []
    for left, right in zip(layers, layers[1:], strict=False):
        pairs = [(lv, rv) for lv in values[left] for rv in values[right]]
        chosen = draw(st.lists(st.sampled_from(pairs), max_size=len(pairs) * 2))
        for left_value, right_value in chosen:
            edges.append(StreamTuple.of(left, left_value, right, right_value, draw(edge_weights)))

    nodes = [NodeKey(layer, value) for layer in layers for value in values[layer]]
    prior_nodes = draw(st.lists(st.sampled_from(nodes), unique=True))
    priors = {key: draw(prior_weights) for key in prior_nodes}
    return LayeredCase(layers=layers, edges=edges, priors=priors)
