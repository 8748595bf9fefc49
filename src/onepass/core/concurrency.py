# src/onepass/core/concurrency.py
"""Lock striping for the shared per-key maps.

The fanout index, weight table and CPT rows are written by many workers at
once. Each key maps onto one of a fixed set of locks, so insert-or-combine
on a single key is atomic while writers on different stripes proceed in
parallel. Cross-key operations are not transactional.
"""

from __future__ import annotations

import threading
from collections.abc import Hashable

DEFAULT_STRIPES = 32


class StripedLock:
    """Fixed pool of locks selected by key hash."""

    def __init__(self, stripes: int = DEFAULT_STRIPES) -> None:
        if stripes < 1:
            raise ValueError(f"stripes must be >= 1, got {stripes}")
        self._locks = tuple(threading.Lock() for _ in range(stripes))

    @property
    def stripes(self) -> int:
        return len(self._locks)

    def for_key(self, key: Hashable) -> threading.Lock:
        """Return the lock guarding ``key``."""
        return self._locks[hash(key) % len(self._locks)]
