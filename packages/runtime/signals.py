"""Wake condition shared by the ingestion thread and the simulation worker."""

from __future__ import annotations

import threading


class WakeSignal:
    """Data-ready notification plus the cooperative shutdown flag.

    The ingestion path calls ``notify_data`` once per stored snapshot. The
    worker blocks in ``wait_for_data`` until at least one snapshot has
    arrived since its last wake, or until shutdown is requested. The
    predicate is re-evaluated under the lock after every wake, so spurious
    wakeups are harmless.
    """

    def __init__(self) -> None:
        self._cond = threading.Condition()
        self._pending = 0
        self._shutdown = False

    def notify_data(self) -> None:
        with self._cond:
            self._pending += 1
            self._cond.notify_all()

    def request_shutdown(self) -> None:
        """Set the shutdown flag and wake every waiter."""
        with self._cond:
            self._shutdown = True
            self._cond.notify_all()

    @property
    def is_shutdown(self) -> bool:
        with self._cond:
            return self._shutdown

    @property
    def pending(self) -> int:
        """Snapshots signalled since the worker last consumed a wake."""
        with self._cond:
            return self._pending

    def wait_for_data(self, timeout: float | None = None) -> int:
        """Block until data is pending or shutdown is requested.

        Returns the number of notifications consumed; 0 means the wait ended
        on shutdown or timeout. Callers must still check ``is_shutdown``.
        """
        with self._cond:
            self._cond.wait_for(lambda: self._pending > 0 or self._shutdown, timeout)
            if self._shutdown:
                return 0
            consumed = self._pending
            self._pending = 0
            return consumed

    def wait_for_shutdown(self, timeout: float) -> bool:
        """Sleep up to ``timeout`` seconds, returning early on shutdown."""
        with self._cond:
            return self._cond.wait_for(lambda: self._shutdown, timeout)
