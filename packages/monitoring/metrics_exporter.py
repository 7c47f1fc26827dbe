"""Prometheus metrics exporter for simulator observability."""

from __future__ import annotations

from typing import TYPE_CHECKING

from prometheus_client import Counter, Gauge, Histogram, start_http_server

if TYPE_CHECKING:
    from packages.common.types import SimulationResult

# Counters (cumulative)
frames_ingested_counter = Counter("simulator_frames_ingested_total", "Order book frames stored")
frames_dropped_counter = Counter(
    "simulator_frames_dropped_total", "Frames rejected by validation", ["reason"]
)
reconnects_counter = Counter("simulator_reconnects_total", "Feed reconnection attempts")
heartbeat_failures_counter = Counter(
    "simulator_heartbeat_failures_total", "Heartbeat pings that failed to send"
)
errors_counter = Counter("simulator_errors_total", "Total errors", ["component"])

# Gauges (current state)
net_cost_gauge = Gauge("simulator_net_cost", "Latest estimated net cost")
slippage_gauge = Gauge("simulator_slippage_per_unit", "Latest estimated slippage per unit")
impact_gauge = Gauge("simulator_market_impact", "Latest estimated market impact")
maker_taker_gauge = Gauge("simulator_maker_taker_ratio", "Latest predicted maker/taker ratio")
history_size_gauge = Gauge("simulator_history_size", "Snapshots currently retained")
feed_connected_gauge = Gauge("simulator_feed_connected", "1 while the feed socket is open")

# Histograms (distributions)
compute_latency_histogram = Histogram(
    "simulator_compute_latency_ms",
    "Simulation compute latency in milliseconds",
    buckets=[0, 1, 2, 5, 10, 25, 50, 100, 250],
)


def start_metrics_server(port: int = 9090) -> None:
    """Start the Prometheus metrics HTTP server."""
    start_http_server(port)


def record_frame(history_size: int) -> None:
    frames_ingested_counter.inc()
    history_size_gauge.set(history_size)


def record_dropped_frame(reason: str) -> None:
    frames_dropped_counter.labels(reason=reason).inc()


def record_reconnect() -> None:
    reconnects_counter.inc()


def record_heartbeat_failure() -> None:
    heartbeat_failures_counter.inc()


def record_connected(connected: bool) -> None:
    feed_connected_gauge.set(1 if connected else 0)


def record_error(component: str) -> None:
    errors_counter.labels(component=component).inc()


def record_result(result: SimulationResult) -> None:
    """Update result gauges and the latency histogram."""
    net_cost_gauge.set(result.net_cost)
    slippage_gauge.set(result.slippage_per_unit)
    impact_gauge.set(result.market_impact)
    maker_taker_gauge.set(result.maker_taker_ratio)
    compute_latency_histogram.observe(result.compute_latency_ms)
