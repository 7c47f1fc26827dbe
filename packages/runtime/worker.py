"""Simulation worker: wakes on new order book data and publishes cost estimates."""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING

from packages.common.logging import get_logger
from packages.monitoring.metrics_exporter import record_error, record_result

if TYPE_CHECKING:
    from packages.common.types import OrderParams, SimulationResult
    from packages.orderbook.history import OrderBookHistory
    from packages.runtime.publisher import ResultPublisher
    from packages.runtime.signals import WakeSignal
    from packages.simulation.engine import SimulationEngine

logger = get_logger(__name__)


class SimulationWorker:
    """Runs one compute cycle per wake against the latest snapshot.

    Snapshots that arrive between cycles are not simulated individually;
    only the freshest one is. They stay in history for inspection.
    """

    def __init__(
        self,
        engine: SimulationEngine,
        history: OrderBookHistory,
        publisher: ResultPublisher,
        wake: WakeSignal,
        params: OrderParams,
    ) -> None:
        self._engine = engine
        self._history = history
        self._publisher = publisher
        self._wake = wake
        self._params = params
        self._thread: threading.Thread | None = None

    @property
    def params(self) -> OrderParams:
        return self._params

    def run_cycle(self) -> SimulationResult:
        """Simulate against ``history.latest()`` and publish the result."""
        snapshot = self._history.latest()
        result = self._engine.compute_for(self._params, snapshot)
        self._publisher.set(result)
        record_result(result)
        return result

    def run(self) -> None:
        """Loop until shutdown. Errors in a cycle are logged, never fatal."""
        logger.info(
            "simulation_worker_started",
            quantity=self._params.quantity,
            volatility=self._params.volatility,
            fee_tier=self._params.fee_tier,
        )
        while True:
            consumed = self._wake.wait_for_data()
            if self._wake.is_shutdown:
                break
            if consumed == 0 or self._history.is_empty():
                continue
            try:
                self.run_cycle()
            except Exception as e:
                record_error("worker")
                logger.error("simulation_cycle_failed", error=str(e), error_type=type(e).__name__)
        logger.info("simulation_worker_stopped")

    def start(self) -> threading.Thread:
        self._thread = threading.Thread(target=self.run, name="simulation-worker", daemon=True)
        self._thread.start()
        return self._thread

    def join(self, timeout: float | None = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)
