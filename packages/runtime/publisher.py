"""Single-slot holder for the most recent simulation result."""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING

from packages.common.time_utils import utc_now
from packages.common.types import SimulationResult

if TYPE_CHECKING:
    from datetime import datetime


class ResultPublisher:
    """Latest result exchanged under its own lock.

    Independent of the history lock, so a stalled ingestion path never
    blocks readers. Results are immutable and replaced wholesale.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._result = SimulationResult()
        self._published_at: datetime | None = None
        self._cycles = 0

    def set(self, result: SimulationResult) -> None:
        with self._lock:
            self._result = result
            self._published_at = utc_now()
            self._cycles += 1

    def get(self) -> SimulationResult:
        with self._lock:
            return self._result

    @property
    def published_at(self) -> datetime | None:
        with self._lock:
            return self._published_at

    @property
    def cycles(self) -> int:
        with self._lock:
            return self._cycles
