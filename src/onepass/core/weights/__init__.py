# src/onepass/core/weights/__init__.py
"""Bottom-up group weight aggregation."""

from onepass.core.weights.calculator import (
    WriteMode,
    accumulate_partial_weights,
    aggregate_edges,
    compute_group_weights,
    finalize_partial_weights,
    resolve_prior,
)
from onepass.core.weights.partitioned import PartitionedWeightRunner
from onepass.core.weights.policy import (
    EDGE_WEIGHTED_SUM,
    SUM_CHILDREN,
    AggregationMode,
    AggregationPolicy,
)
from onepass.core.weights.table import MAX, OVERWRITE, SUM, CombineOp, WeightTable

__all__ = [
    "EDGE_WEIGHTED_SUM",
    "MAX",
    "OVERWRITE",
    "SUM",
    "SUM_CHILDREN",
    "AggregationMode",
    "AggregationPolicy",
    "CombineOp",
    "PartitionedWeightRunner",
    "WeightTable",
    "WriteMode",
    "accumulate_partial_weights",
    "aggregate_edges",
    "compute_group_weights",
    "finalize_partial_weights",
    "resolve_prior",
]
