# src/onepass/core/bayes/__init__.py
"""Conditional probability tables and the per-pair model registry."""

from onepass.core.bayes.builder import build_bayes_net
from onepass.core.bayes.cpt import CPTEntry, CPTIndex, RandomSource
from onepass.core.bayes.net import BayesNet

__all__ = [
    "BayesNet",
    "CPTEntry",
    "CPTIndex",
    "RandomSource",
    "build_bayes_net",
]
