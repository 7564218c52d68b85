from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Iterator, Optional

from .model import Employee

LOGGER = logging.getLogger(__name__)


class EmployeeCache:
    """Read-through, write-invalidated cache of employee aggregates.

    No TTL: entries live until evicted. ``key_lock`` hands out a re-entrant
    lock per employee id so a caller can run load/populate or
    write/evict as one critical section for that key. Locks are dropped
    once released, so unknown ids leave nothing behind.
    """

    def __init__(self):
        self._entries: dict[int, Employee] = {}
        self._lock = threading.Lock()
        # id -> [lock, number of callers holding or waiting on it]
        self._key_locks: dict[int, list] = {}

    def get(self, employee_id: int) -> Optional[Employee]:
        with self._lock:
            hit = self._entries.get(employee_id)
        LOGGER.debug("Cache %s for employee %s", "hit" if hit is not None else "miss", employee_id)
        return hit

    def put(self, employee_id: int, employee: Employee) -> None:
        with self._lock:
            self._entries[employee_id] = employee

    def evict(self, employee_id: int) -> None:
        with self._lock:
            self._entries.pop(employee_id, None)
        LOGGER.debug("Evicted employee %s from cache", employee_id)

    def evict_all(self) -> None:
        with self._lock:
            self._entries.clear()
        LOGGER.debug("Evicted all employees from cache")

    def __contains__(self, employee_id: int) -> bool:
        with self._lock:
            return employee_id in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    @contextmanager
    def key_lock(self, employee_id: int) -> Iterator[None]:
        with self._lock:
            entry = self._key_locks.get(employee_id)
            if entry is None:
                entry = self._key_locks[employee_id] = [threading.RLock(), 0]
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            # Drop the lock once no caller holds or waits on it.
            with self._lock:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._key_locks[employee_id]

    def locked_keys(self) -> int:
        """Number of ids with a live per-key lock."""
        with self._lock:
            return len(self._key_locks)
