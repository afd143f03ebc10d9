"""Per-workspace locking for shared mutable pipeline state."""

import threading
from collections.abc import Iterator
from contextlib import contextmanager


class WorkspaceLocks:
    """Registry of one re-entrant lock per key.

    Writers to a workspace's dataset, classifier cache or version history hold
    that workspace's lock; different workspaces never contend.
    """

    def __init__(self) -> None:
        self._locks: dict[str, threading.RLock] = {}
        # Guards creation of new per-key locks
        self._guard = threading.Lock()

    def get(self, key: str) -> threading.RLock:
        """Get (or lazily create) the lock for ``key``."""
        lock = self._locks.get(key)
        if lock is None:
            with self._guard:
                lock = self._locks.setdefault(key, threading.RLock())
        return lock

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        """Hold the lock for ``key`` for the duration of the block."""
        with self.get(key):
            yield

    def __len__(self) -> int:
        return len(self._locks)
