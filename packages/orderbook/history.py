"""Bounded, thread-safe window of recent order book snapshots."""

from __future__ import annotations

import threading
from collections import deque
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from packages.common.types import OrderBookSnapshot


class OrderBookHistory:
    """Fixed-capacity FIFO of snapshots with a ``latest`` accessor.

    Every read and write happens under one lock. Snapshots are immutable, so
    handing out references is safe; the deque itself never leaves this class.
    """

    def __init__(self, capacity: int = 1000) -> None:
        if capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}")
        self._capacity = capacity
        self._snapshots: deque[OrderBookSnapshot] = deque()
        self._lock = threading.Lock()
        self._evicted = 0

    def append(self, snapshot: OrderBookSnapshot) -> None:
        """Add a snapshot, evicting the oldest first when full."""
        with self._lock:
            if len(self._snapshots) >= self._capacity:
                self._snapshots.popleft()
                self._evicted += 1
            self._snapshots.append(snapshot)

    def latest(self) -> OrderBookSnapshot | None:
        """Most recently appended snapshot, or None while empty."""
        with self._lock:
            return self._snapshots[-1] if self._snapshots else None

    def snapshots(self) -> list[OrderBookSnapshot]:
        """Copy of the window, oldest first."""
        with self._lock:
            return list(self._snapshots)

    def is_empty(self) -> bool:
        with self._lock:
            return not self._snapshots

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def evicted(self) -> int:
        """Total snapshots dropped by eviction since construction."""
        with self._lock:
            return self._evicted

    def __len__(self) -> int:
        with self._lock:
            return len(self._snapshots)
