"""Bounded fault log — a fixed-capacity rolling history of engine failures.

Entries are kept in arrival order.  Once the log is full, each new entry
evicts the oldest one.  ``record`` and ``snapshot`` are serialized by a
lock, so a snapshot never observes a half-applied eviction.
"""

from __future__ import annotations

import collections
import logging
import threading
from collections.abc import Callable
from datetime import datetime, timezone

from simwatch.models.snapshot import FaultEntry

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 10


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class FaultLog:
    """Rolling FIFO buffer of the most recent ``FaultEntry`` records.

    Parameters
    ----------
    capacity:
        Maximum number of entries retained.  Defaults to 10.
    clock:
        Callable returning the timestamp for new entries.  Defaults to
        the current UTC time.
    """

    def __init__(
        self,
        capacity: int = DEFAULT_CAPACITY,
        *,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        if capacity < 1:
            raise ValueError(f"Fault log capacity must be positive, got {capacity}")
        self._capacity = capacity
        self._clock = clock
        self._entries: collections.deque[FaultEntry] = collections.deque(
            maxlen=capacity
        )
        self._lock = threading.Lock()

    @property
    def capacity(self) -> int:
        return self._capacity

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def record(self, detail: str) -> FaultEntry:
        """Append a fault stamped with the current time, evicting the oldest if full."""
        entry = FaultEntry(timestamp=self._clock(), detail=detail)
        with self._lock:
            if len(self._entries) == self._capacity:
                logger.debug(
                    "FaultLog: evicting oldest entry from %s",
                    self._entries[0].timestamp.isoformat(),
                )
            self._entries.append(entry)
        return entry

    def snapshot(self) -> tuple[FaultEntry, ...]:
        """Return an immutable copy of the current entries, oldest first."""
        with self._lock:
            return tuple(self._entries)
