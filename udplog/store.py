"""Fixed-capacity in-memory store of the most recently received log records."""

import threading
from typing import List, Optional

DEFAULT_CAPACITY = 100


class RetainedLogStore:
    """Ring buffer of text records, safe for one writer and many readers.

    Records live in a fixed list of ``capacity`` slots. ``_cursor`` points at
    the next slot to overwrite, which is also the oldest record once the
    buffer has wrapped. Every public operation holds the same lock for its
    whole duration, so readers never see a slot written without its cursor
    advance (or the reverse).
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY):
        """Initialize an empty store.

        Args:
            capacity: Maximum number of records retained (default 100).

        Raises:
            ValueError: If capacity is not a positive integer.
        """
        if capacity < 1:
            raise ValueError(f'capacity must be a positive integer, got {capacity}')
        self._capacity = capacity
        self._slots: List[Optional[str]] = [None] * capacity
        self._cursor = 0
        self._lock = threading.Lock()

    @property
    def capacity(self) -> int:
        return self._capacity

    def __len__(self) -> int:
        with self._lock:
            return sum(1 for slot in self._slots if slot is not None)

    def append(self, record: str) -> None:
        """Store a record, evicting the oldest one if the buffer is full."""
        with self._lock:
            self._slots[self._cursor] = record
            self._cursor = (self._cursor + 1) % self._capacity

    def snapshot(self) -> List[str]:
        """Return all retained records, oldest first."""
        with self._lock:
            return self._ordered()

    def search(self, term: str) -> List[str]:
        """Return retained records containing ``term``, ignoring case, oldest first."""
        needle = term.lower()
        with self._lock:
            return [record for record in self._ordered() if needle in record.lower()]

    def _ordered(self) -> List[str]:
        # Caller must hold the lock. Starting at the cursor yields
        # chronological order whether or not the buffer has wrapped.
        rotated = self._slots[self._cursor:] + self._slots[:self._cursor]
        return [record for record in rotated if record is not None]
