"""
Per-key locking for account and OTP state.

Keys are normalized emails. Each key gets its own ``threading.Lock``; the
entry is dropped again once nobody holds or waits for it, so the registry
only ever contains keys with requests in flight.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Dict, Generator, List

LOCK_TIMEOUT_SECONDS = 30.0


class LockTimeoutError(TimeoutError):
    """Raised when a keyed lock could not be acquired in time."""


class KeyedLocks:
    """Mutual exclusion scoped to a single key (e.g. one account email)."""

    def __init__(self, timeout_seconds: float = LOCK_TIMEOUT_SECONDS):
        self.timeout_seconds = timeout_seconds
        self._guard = threading.Lock()
        # key -> [lock, number of holders + waiters]
        self._entries: Dict[str, List] = {}

    def _checkout(self, key: str) -> threading.Lock:
        with self._guard:
            entry = self._entries.get(key)
            if entry is None:
                entry = [threading.Lock(), 0]
                self._entries[key] = entry
            entry[1] += 1
            return entry[0]

    def _release(self, key: str) -> None:
        with self._guard:
            entry = self._entries.get(key)
            if entry is None:
                return
            entry[1] -= 1
            if entry[1] <= 0:
                del self._entries[key]

    @contextmanager
    def hold(self, key: str, timeout_seconds: float = None) -> Generator[None, None, None]:
        """
        Acquire the lock for *key*; blocks until acquired or timeout.
        Raises LockTimeoutError when the lock could not be acquired in time.
        """
        timeout = self.timeout_seconds if timeout_seconds is None else timeout_seconds
        lock = self._checkout(key)
        acquired = False
        try:
            acquired = lock.acquire(timeout=timeout)
            if not acquired:
                raise LockTimeoutError(f"Could not acquire lock {key} within {timeout}s")
            yield
        finally:
            if acquired:
                lock.release()
            self._release(key)

    def active_keys(self) -> int:
        with self._guard:
            return len(self._entries)
