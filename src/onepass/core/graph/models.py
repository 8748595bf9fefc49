# src/onepass/core/graph/models.py
"""Types and exceptions for the layered join graph.

Leaf module: no intra-package imports.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field

import numpy as np

# Separator between encoded parts of a composite node value.
# Unit separator: practically never present in join-key data.
_PART_SEPARATOR = "\u001f"


class GraphValidationError(ValueError):
    """Raised when the declared layer order or an edge's layers are invalid."""

    pass


class InvalidNodeKeyError(ValueError):
    """Raised when a node identity has an empty or missing layer/value."""

    pass


class InvalidEdgeError(ValueError):
    """Raised when an edge has a missing endpoint or an unusable weight."""

    pass


def validate_edge_weight(weight: object) -> float:
    """Return ``weight`` as a float, rejecting non-finite or negative values.

    Accepts Python and NumPy real numbers. Booleans are rejected even though
    they are ints, since a True weight is almost certainly a wiring bug.

    Raises:
        InvalidEdgeError: If weight is not a finite real number >= 0
    """
    if isinstance(weight, bool | np.bool_) or not isinstance(weight, int | float | np.integer | np.floating):
        raise InvalidEdgeError(f"edge_weight must be a real number, got {type(weight).__name__}: {weight!r}")
    value = float(weight)
    if not math.isfinite(value) or value < 0.0:
        raise InvalidEdgeError(f"edge_weight must be finite and >= 0, current value: {weight!r}")
    return value


def _clean_part(name: str, raw: object) -> str:
    if raw is None:
        raise InvalidNodeKeyError(f"{name} must not be None")
    if not isinstance(raw, str):
        raise InvalidNodeKeyError(f"{name} must be a string, got {type(raw).__name__}")
    cleaned = raw.strip()
    if not cleaned:
        raise InvalidNodeKeyError("layer/value must be non-empty")
    return cleaned


@dataclass(frozen=True, slots=True, order=True)
class NodeKey:
    """Canonical identity of a node: (layer, value).

    Both fields are trimmed on construction and must be non-empty.
    Equality, ordering and hashing use both fields.
    """

    layer: str
    value: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "layer", _clean_part("layer", self.layer))
        object.__setattr__(self, "value", _clean_part("value", self.value))

    @classmethod
    def of_parts(cls, layer: str, *parts: object) -> NodeKey:
        """Build a node whose value is a composite of several parts.

        Each part is written as ``<length>:<text>`` and parts are joined
        with a unit separator, so a delimiter inside one part can never be
        confused with a part boundary.
        """
        encoded = []
        for part in parts:
            text = str(part).strip()
            encoded.append(f"{len(text)}:{text}")
        return cls(layer, _PART_SEPARATOR.join(encoded))

    def __str__(self) -> str:
        return f"{self.layer}:{self.value}"


@dataclass(frozen=True, slots=True)
class Child:
    """A child link in the fanout: the child node plus the stored edge weight."""

    child: NodeKey
    edge_weight: float


@dataclass(frozen=True, slots=True)
class StreamTuple:
    """One weighted edge between two adjacent layers.

    Encodes a directed edge ``left_layer:left_value -> right_layer:right_value``
    arriving on the side stream ``stream`` (e.g. "AB"). The weight is part of
    the payload, not the identity: two tuples with the same stream and
    endpoints compare equal whatever their weights.

    Example:
        StreamTuple("AB", "A", "a1", "B", "b1", 1.0)
        StreamTuple.of("B", "b1", "C", "c9", 3.0)  # stream "BC"
    """

    stream: str
    left_layer: str
    left_value: str
    right_layer: str
    right_value: str
    edge_weight: float = field(compare=False)
    parent: NodeKey = field(init=False, repr=False, compare=False)
    child: NodeKey = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if self.stream is None:
            raise InvalidEdgeError("stream must not be None")
        for name in ("left_layer", "left_value", "right_layer", "right_value"):
            if getattr(self, name) is None:
                raise InvalidEdgeError(f"{name} must not be None")
        object.__setattr__(self, "edge_weight", validate_edge_weight(self.edge_weight))
        object.__setattr__(self, "parent", NodeKey(self.left_layer, self.left_value))
        object.__setattr__(self, "child", NodeKey(self.right_layer, self.right_value))

    @classmethod
    def of(
        cls,
        left_layer: str,
        left_value: str,
        right_layer: str,
        right_value: str,
        edge_weight: float,
    ) -> StreamTuple:
        """Build a tuple whose stream label is the concatenated layer names."""
        return cls(f"{left_layer}{right_layer}", left_layer, left_value, right_layer, right_value, edge_weight)

    @classmethod
    def from_nodes(cls, stream: str, parent: NodeKey, child: NodeKey, edge_weight: float) -> StreamTuple:
        """Build a tuple from an identity pair."""
        if parent is None or child is None:
            raise InvalidEdgeError("parent and child must not be None")
        return cls(stream, parent.layer, parent.value, child.layer, child.value, edge_weight)

    def __str__(self) -> str:
        return f"StreamTuple{{stream='{self.stream}', {self.parent} -> {self.child}, w={self.edge_weight}}}"
