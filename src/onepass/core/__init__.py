"""Core subsystems: layered graph, weight aggregation, and CPT model."""
