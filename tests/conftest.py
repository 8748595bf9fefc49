# tests/conftest.py
"""Shared test fixtures and helpers.

Hypothesis Configuration:
- "ci" profile: Fast tests for CI (100 examples) - default
- "nightly" profile: Thorough tests (1000 examples)
- "debug" profile: Minimal tests with verbose output (10 examples)

Set profile via environment variable:
    HYPOTHESIS_PROFILE=nightly pytest tests/property/

Fixtures:
- slide_layers / slide_edges / slide_priors: the three-layer worked example
  (A -> B -> C) whose weights and CPT rows are known by hand.
"""

import os

import pytest
from hypothesis import HealthCheck, Phase, Verbosity, settings

from onepass.core.graph import NodeKey, StreamTuple

settings.register_profile(
    "ci",
    max_examples=100,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    suppress_health_check=[HealthCheck.too_slow],
)
settings.register_profile(
    "nightly",
    max_examples=1000,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
)
settings.register_profile(
    "debug",
    max_examples=10,
    verbosity=Verbosity.verbose,
)
settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "ci"))


def node(layer: str, value: str) -> NodeKey:
    """Shorthand for NodeKey construction in tests."""
    return NodeKey(layer, value)


def edge(left: str, left_value: str, right: str, right_value: str, weight: float = 1.0) -> StreamTuple:
    """Unit-weight edge with the stream label derived from the layer names."""
    return StreamTuple.of(left, left_value, right, right_value, weight)


@pytest.fixture
def slide_layers() -> list[str]:
    return ["A", "B", "C"]


@pytest.fixture
def slide_edges() -> list[StreamTuple]:
    return [
        edge("A", "a1", "B", "b1"),
        edge("A", "a1", "B", "b2"),
        edge("B", "b1", "C", "c1"),
        edge("B", "b2", "C", "c2"),
        edge("B", "b2", "C", "c3"),
    ]


@pytest.fixture
def slide_priors() -> dict[NodeKey, float]:
    return {
        node("A", "a1"): 1.0,
        node("B", "b1"): 3.0,
        node("B", "b2"): 5.0,
        node("C", "c1"): 5.0,
        node("C", "c2"): 7.0,
        node("C", "c3"): 1.0,
    }
