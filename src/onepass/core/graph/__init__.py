# src/onepass/core/graph/__init__.py
"""Layered join graph: node identities, edges, and the fanout index."""

from onepass.core.graph.fanout import FanoutIndex
from onepass.core.graph.layered import LayeredGraph
from onepass.core.graph.models import (
    Child,
    GraphValidationError,
    InvalidEdgeError,
    InvalidNodeKeyError,
    NodeKey,
    StreamTuple,
    validate_edge_weight,
)

__all__ = [
    "Child",
    "FanoutIndex",
    "GraphValidationError",
    "InvalidEdgeError",
    "InvalidNodeKeyError",
    "LayeredGraph",
    "NodeKey",
    "StreamTuple",
    "validate_edge_weight",
]
