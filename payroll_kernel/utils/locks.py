"""
Per-key locking.

Contractor pipelines may run concurrently, but a single contractor's
counter or progress entry must be mutated by one pipeline at a time.
``KeyedLocks`` hands out one ``threading.RLock`` per key so that updates to
different contractors never contend while updates to the same contractor
are serialized.
"""

from __future__ import annotations

import threading
from collections.abc import Hashable, Iterator
from contextlib import contextmanager


class KeyedLocks:
    """Lazily created re-entrant lock per key."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[Hashable, threading.RLock] = {}

    def lock_for(self, key: Hashable) -> threading.RLock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.RLock()
                self._locks[key] = lock
            return lock

    @contextmanager
    def hold(self, key: Hashable) -> Iterator[None]:
        with self.lock_for(key):
            yield

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)
