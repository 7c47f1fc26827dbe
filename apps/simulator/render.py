"""Console renderer. Read-only view over the publisher, history and feed."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from packages.common.time_utils import age_seconds

if TYPE_CHECKING:
    from datetime import datetime

    from packages.common.config import AppConfig
    from packages.common.types import OrderBookSnapshot, OrderParams, SimulationResult
    from packages.data_ingestion.feed import FeedIngestor
    from packages.orderbook.history import OrderBookHistory
    from packages.runtime.publisher import ResultPublisher


def _fmt(value: float | None, digits: int = 6) -> str:
    return "n/a" if value is None else f"{value:.{digits}f}"


def format_book(snapshot: OrderBookSnapshot | None, history_size: int, capacity: int) -> list[str]:
    lines = ["", "Order Book:"]
    if snapshot is None:
        lines.append("Waiting for first snapshot...")
    else:
        lines += [
            f"Symbol: {snapshot.symbol}",
            f"Best Bid: {_fmt(snapshot.best_bid, 2)}  Best Ask: {_fmt(snapshot.best_ask, 2)}",
            f"Mid: {_fmt(snapshot.mid_price, 2)}  Spread: {_fmt(snapshot.spread, 4)}",
            f"Depth: bids {snapshot.bid_depth:.4f} / asks {snapshot.ask_depth:.4f}",
            f"Captured: {snapshot.captured_at.isoformat(timespec='milliseconds')} "
            f"({age_seconds(snapshot.captured_at):.2f}s ago)",
        ]
    lines.append(f"History: {history_size}/{capacity}")
    return lines


def format_result(
    result: SimulationResult,
    max_latency_ms: float,
    published_at: datetime | None = None,
) -> list[str]:
    lines = [
        "",
        "Output Parameters:",
        f"Expected Slippage: {_fmt(result.slippage_per_unit)}",
        f"Expected Fees: {_fmt(result.fees)}",
        f"Market Impact: {_fmt(result.market_impact)}",
        f"Net Cost: {_fmt(result.net_cost)}",
        f"Maker/Taker Ratio: {_fmt(result.maker_taker_ratio, 4)}",
        f"Latency: {result.compute_latency_ms:.0f} ms",
    ]
    if published_at is not None:
        lines.append(f"Updated: {age_seconds(published_at):.2f}s ago")
    if result.is_zero():
        lines.append("Status: no estimate (book empty or one-sided)")
    if result.compute_latency_ms > max_latency_ms:
        lines += ["", "Warning: High latency detected!"]
    return lines


def format_screen(
    config: AppConfig,
    params: OrderParams,
    result: SimulationResult,
    snapshot: OrderBookSnapshot | None,
    history_size: int,
    feed_status: str,
    published_at: datetime | None = None,
) -> str:
    lines = [
        "Trade Cost Simulator",
        "----------------------",
        f"Exchange: {config.feed.exchange}",
        f"Asset: {config.feed.asset}",
        f"Feed: {feed_status}",
        "",
        "Input Parameters:",
        "Order Type: Market",
        f"Quantity: {params.quantity} USD",
        f"Volatility: {params.volatility}",
        f"Fee Tier: {params.fee_tier * 100:g}%",
    ]
    lines += format_result(result, config.display.max_latency_ms, published_at)
    lines += format_book(snapshot, history_size, config.history.capacity)
    lines += ["", "Press Ctrl+C to exit..."]
    return "\n".join(lines)


class ConsoleRenderer:
    """Polls core state and redraws the terminal. Never mutates anything."""

    def __init__(
        self,
        config: AppConfig,
        params: OrderParams,
        publisher: ResultPublisher,
        history: OrderBookHistory,
        feed: FeedIngestor,
        clear_screen: bool = True,
    ) -> None:
        self._config = config
        self._params = params
        self._publisher = publisher
        self._history = history
        self._feed = feed
        self._clear_screen = clear_screen

    def feed_status(self) -> str:
        state = "connected" if self._feed.connected else "disconnected"
        return (
            f"{state} (frames={self._feed.messages_received}, "
            f"dropped={self._feed.messages_dropped}, reconnects={self._feed.reconnects})"
        )

    def screen(self) -> str:
        return format_screen(
            self._config,
            self._params,
            self._publisher.get(),
            self._history.latest(),
            len(self._history),
            self.feed_status(),
            self._publisher.published_at,
        )

    def render(self) -> None:
        text = self.screen()
        if self._clear_screen:
            click.clear()
        click.echo(text)
