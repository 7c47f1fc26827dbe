"""Simulator process: live order book feed → cost simulation → console.

Threads:
- feed-ingestor: WebSocket receive loop, appends snapshots to history
- simulation-worker: wakes on new snapshots, publishes cost estimates
- main: renders the latest result every display.refresh_interval_ms

Shutdown order: set the shutdown flag (wakes the worker), close the feed
socket (unblocks receive), join the feed thread, then join the worker.
"""

from __future__ import annotations

import signal
from pathlib import Path
from typing import TYPE_CHECKING, Any

import click

from apps.simulator.render import ConsoleRenderer, format_result
from packages.common.config import AppConfig, load_config
from packages.common.errors import ConfigError, ProtocolError, ValidationError
from packages.common.logging import get_logger, setup_logging
from packages.common.types import OrderParams
from packages.data_ingestion.feed import FeedIngestor
from packages.data_ingestion.parser import parse_frame
from packages.monitoring.metrics_exporter import start_metrics_server
from packages.orderbook.history import OrderBookHistory
from packages.runtime.publisher import ResultPublisher
from packages.runtime.signals import WakeSignal
from packages.runtime.worker import SimulationWorker
from packages.simulation.engine import SimulationEngine

if TYPE_CHECKING:
    from packages.data_ingestion.interfaces import Connector

logger = get_logger(__name__)

JOIN_TIMEOUT_SECONDS = 10.0


class SimulatorApp:
    """Builds the components, runs the threads, and owns shutdown."""

    def __init__(
        self,
        config: AppConfig,
        params: OrderParams | None = None,
        connector: Connector | None = None,
        clear_screen: bool = True,
    ) -> None:
        self._config = config
        self.params = params or config.simulation.order_params()

        self.wake = WakeSignal()
        self.history = OrderBookHistory(config.history.capacity)
        self.publisher = ResultPublisher()
        self.engine = SimulationEngine.from_config(config.simulation)
        self.feed = FeedIngestor.from_config(config.feed, self.history, self.wake, connector)
        self.worker = SimulationWorker(
            self.engine, self.history, self.publisher, self.wake, self.params
        )
        self.renderer = ConsoleRenderer(
            config, self.params, self.publisher, self.history, self.feed, clear_screen
        )

    def start(self) -> None:
        logger.info(
            "simulator_starting",
            endpoint=self.feed.endpoint,
            history_capacity=self.history.capacity,
        )
        self.feed.start()
        self.worker.start()

    def stop(self) -> None:
        """Stop the producer before the consumer."""
        self.wake.request_shutdown()
        self.feed.close()
        self.feed.join(JOIN_TIMEOUT_SECONDS)
        self.worker.join(JOIN_TIMEOUT_SECONDS)
        logger.info("simulator_stopped", cycles=self.publisher.cycles)

    def display_loop(self, once: bool = False) -> None:
        interval = self._config.display.refresh_interval_ms / 1000.0
        while not self.wake.is_shutdown:
            try:
                self.renderer.render()
            except Exception as e:
                logger.error("render_failed", error=str(e))
            if once:
                return
            self.wake.wait_for_shutdown(interval)

    def run(self, once: bool = False) -> None:
        def _on_sigterm(signum: int, frame: Any) -> None:
            self.wake.request_shutdown()

        signal.signal(signal.SIGTERM, _on_sigterm)
        self.start()
        try:
            self.display_loop(once=once)
        except KeyboardInterrupt:
            logger.info("interrupt_received")
        finally:
            self.stop()


def _load(config_path: str) -> AppConfig:
    try:
        return load_config(config_path)
    except ConfigError as e:
        raise click.ClickException(str(e)) from e


@click.group()
def cli() -> None:
    """Order book trade cost simulator."""


@cli.command()
@click.option("--config", "config_path", default="config/default.yaml", help="Config file path")
@click.option("--quantity", type=float, default=None, help="Order quantity (overrides config)")
@click.option("--volatility", type=float, default=None, help="Volatility (overrides config)")
@click.option("--fee-tier", type=float, default=None, help="Fee tier in [0, 1] (overrides config)")
@click.option("--once", is_flag=True, help="Render a single frame and exit")
def run(
    config_path: str,
    quantity: float | None,
    volatility: float | None,
    fee_tier: float | None,
    once: bool,
) -> None:
    """Stream the live order book and display cost estimates."""
    cfg = _load(config_path)
    setup_logging(cfg.logging.level, cfg.logging.file, cfg.logging.json_logs, console=False)

    sim = cfg.simulation
    try:
        params = OrderParams(
            quantity=sim.quantity if quantity is None else quantity,
            volatility=sim.volatility if volatility is None else volatility,
            fee_tier=sim.fee_tier if fee_tier is None else fee_tier,
        )
    except ValueError as e:
        raise click.BadParameter(str(e)) from e

    if cfg.monitoring.prometheus_port:
        start_metrics_server(cfg.monitoring.prometheus_port)

    SimulatorApp(cfg, params).run(once=once)


@cli.command()
@click.option("--config", "config_path", default="config/default.yaml", help="Config file path")
@click.option("--book", "book_path", required=True, type=click.Path(exists=True, dir_okay=False))
@click.option("--quantity", type=float, default=None)
@click.option("--volatility", type=float, default=None)
@click.option("--fee-tier", type=float, default=None)
def simulate(
    config_path: str,
    book_path: str,
    quantity: float | None,
    volatility: float | None,
    fee_tier: float | None,
) -> None:
    """Run one simulation against an order book frame saved as JSON."""
    cfg = _load(config_path)
    setup_logging(cfg.logging.level, None, cfg.logging.json_logs)

    try:
        snapshot = parse_frame(Path(book_path).read_text())
    except ProtocolError as e:
        raise click.ClickException(f"Invalid order book file: {e}") from e

    sim = cfg.simulation
    engine = SimulationEngine.from_config(sim)
    try:
        result = engine.compute(
            sim.quantity if quantity is None else quantity,
            sim.volatility if volatility is None else volatility,
            sim.fee_tier if fee_tier is None else fee_tier,
            snapshot,
        )
    except ValidationError as e:
        raise click.BadParameter(str(e)) from e

    click.echo("\n".join(format_result(result, cfg.display.max_latency_ms)).lstrip())


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
