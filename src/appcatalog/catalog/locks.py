"""Per-key mutual exclusion for create flows.

Two creates for the same ``(tenant_id, lower(name))`` inside one process run one
after the other, so the second one's duplicate check sees the first one's
committed row.  Across processes the UNIQUE index on
``applications (tenant_id, LOWER(name))`` is the backstop.

Examples:
    >>> locks = KeyedLock()
    >>> with locks.hold((1, "notes")):
    ...     pass

Tags:
    concurrency, locking, create
"""

from __future__ import annotations

import threading
from collections.abc import Hashable, Iterator
from contextlib import contextmanager


class KeyedLock:
    """A lock per key, created on demand and dropped when no one holds it."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[Hashable, threading.Lock] = {}
        self._waiters: dict[Hashable, int] = {}

    @contextmanager
    def hold(self, key: Hashable) -> Iterator[None]:
        with self._guard:
            lock = self._locks.setdefault(key, threading.Lock())
            self._waiters[key] = self._waiters.get(key, 0) + 1
        lock.acquire()
        try:
            yield
        finally:
            lock.release()
            with self._guard:
                self._waiters[key] -= 1
                if self._waiters[key] == 0:
                    del self._waiters[key]
                    del self._locks[key]

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)


__all__ = ["KeyedLock"]
