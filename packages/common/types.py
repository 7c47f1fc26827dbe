"""Domain types for the trade cost simulator."""

from __future__ import annotations

from datetime import datetime  # noqa: TC003 — Pydantic needs this at runtime

from pydantic import BaseModel, ConfigDict, Field

# (price, size)
PriceLevel = tuple[float, float]


class OrderBookSnapshot(BaseModel):
    """Point-in-time capture of the bid/ask ladder.

    ``bids`` are expected best-first (descending price) and ``asks``
    best-first (ascending price), exactly as the feed delivers them.
    Ordering is not re-checked here.
    """

    model_config = ConfigDict(frozen=True)

    symbol: str
    bids: tuple[PriceLevel, ...] = ()
    asks: tuple[PriceLevel, ...] = ()
    captured_at: datetime

    @property
    def best_bid(self) -> float | None:
        return self.bids[0][0] if self.bids else None

    @property
    def best_ask(self) -> float | None:
        return self.asks[0][0] if self.asks else None

    @property
    def mid_price(self) -> float | None:
        if self.best_bid is None or self.best_ask is None:
            return None
        return 0.5 * (self.best_bid + self.best_ask)

    @property
    def spread(self) -> float | None:
        if self.best_bid is None or self.best_ask is None:
            return None
        return self.best_ask - self.best_bid

    @property
    def bid_depth(self) -> float:
        return sum(size for _, size in self.bids)

    @property
    def ask_depth(self) -> float:
        return sum(size for _, size in self.asks)

    def is_two_sided(self) -> bool:
        return bool(self.bids) and bool(self.asks)


class SimulationResult(BaseModel):
    """Cost estimate for one hypothetical market order.

    ``net_cost`` is slippage + fees + impact. The maker/taker ratio is
    informational and not part of it.
    """

    model_config = ConfigDict(frozen=True)

    slippage_per_unit: float = 0.0
    fees: float = 0.0
    market_impact: float = 0.0
    net_cost: float = 0.0
    maker_taker_ratio: float = 0.0
    compute_latency_ms: float = 0.0

    def is_zero(self) -> bool:
        return self == SimulationResult()


class OrderParams(BaseModel):
    """Fixed order parameters the worker simulates every cycle."""

    model_config = ConfigDict(frozen=True)

    quantity: float = Field(default=100.0, gt=0.0)
    volatility: float = Field(default=0.02, ge=0.0)
    fee_tier: float = Field(default=0.001, ge=0.0, le=1.0)
