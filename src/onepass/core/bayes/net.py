# src/onepass/core/bayes/net.py
"""Registry of CPTs for all adjacent pairs in the chain ("AB", "BC", ...)."""

from __future__ import annotations

import threading

from onepass.core.bayes.cpt import CPTIndex


class BayesNet:
    """CPTs keyed by joined stream label, in insertion order.

    This is the interface a downstream sampler uses to chain row samples
    across layer pairs. Thread-safe for concurrent access.
    """

    def __init__(self) -> None:
        self._by_stream: dict[str, CPTIndex] = {}
        self._lock = threading.Lock()

    def put(self, cpt: CPTIndex) -> None:
        """Register or replace the CPT under its stream label."""
        with self._lock:
            self._by_stream[cpt.stream] = cpt

    def get(self, stream: str) -> CPTIndex | None:
        """CPT for ``stream`` (e.g. "BC"), or None if not present."""
        with self._lock:
            return self._by_stream.get(stream)

    def cpts(self) -> list[CPTIndex]:
        """All CPTs in insertion order."""
        with self._lock:
            return list(self._by_stream.values())

    def streams(self) -> list[str]:
        with self._lock:
            return list(self._by_stream)

    def __contains__(self, stream: object) -> bool:
        return stream in self._by_stream

    def __len__(self) -> int:
        return len(self._by_stream)
