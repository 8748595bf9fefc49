"""
OnePass: bottom-up group weights and conditional probability tables for
layered join graphs.

Turns weighted parent->child edges between adjacent join keys into a
probability model usable for ancestral sampling across the layer chain.
"""

__version__ = "0.1.0"
