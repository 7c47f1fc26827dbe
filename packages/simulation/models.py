"""Cost models: order book walk slippage, Almgren-Chriss impact, maker/taker."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    from collections.abc import Sequence

    from packages.common.config import ImpactConfig, MakerTakerConfig
    from packages.common.types import PriceLevel


@dataclass(frozen=True)
class ImpactParams:
    """Simplified Almgren-Chriss coefficients."""

    eta: float = 0.01  # temporary impact
    gamma: float = 0.0001  # permanent impact
    time_horizon: float = 1.0  # execution horizon, seconds

    @classmethod
    def from_config(cls, config: ImpactConfig) -> ImpactParams:
        return cls(eta=config.eta, gamma=config.gamma, time_horizon=config.time_horizon)


@dataclass(frozen=True)
class MakerTakerParams:
    """Logistic model coefficients: 1 / (1 + exp(-(a*q - b*vol + c)))."""

    a: float = 0.005
    b: float = 0.1
    c: float = 2.0

    @classmethod
    def from_config(cls, config: MakerTakerConfig) -> MakerTakerParams:
        return cls(a=config.a, b=config.b, c=config.c)


def fill_cost(quantity: float, asks: Sequence[PriceLevel]) -> float:
    """Notional cost of lifting ``quantity`` from the ask ladder, best first.

    Stops once the order is filled or the ladder runs out; the unfilled
    remainder contributes nothing.
    """
    if not asks:
        return 0.0
    levels = np.asarray(asks, dtype=np.float64)
    prices = levels[:, 0]
    sizes = levels[:, 1]
    filled_before = np.concatenate(([0.0], np.cumsum(sizes)[:-1]))
    take = np.clip(quantity - filled_before, 0.0, sizes)
    return float(np.dot(take, prices))


def slippage_per_unit(quantity: float, bids: Sequence[PriceLevel], asks: Sequence[PriceLevel]) -> float:
    """Average fill price over the full requested quantity, minus best bid.

    When visible ask depth is below ``quantity`` the partial fill cost is
    still divided by the full quantity, which understates slippage on thin
    books.
    """
    best_bid = bids[0][0]
    return fill_cost(quantity, asks) / quantity - best_bid


def flat_fee(quantity: float, fee_tier: float) -> float:
    return quantity * fee_tier


def market_impact(quantity: float, volatility: float, params: ImpactParams | None = None) -> float:
    """eta*q + gamma*q^2 + vol*sqrt(q)/sqrt(T)."""
    p = params or ImpactParams()
    return (
        p.eta * quantity
        + p.gamma * quantity * quantity
        + volatility * math.sqrt(quantity) / math.sqrt(p.time_horizon)
    )


def maker_taker_ratio(
    quantity: float, volatility: float, params: MakerTakerParams | None = None
) -> float:
    p = params or MakerTakerParams()
    z = p.a * quantity - p.b * volatility + p.c
    # numerically stable logistic; math.exp overflows for z below about -709
    if z >= 0:
        return 1.0 / (1.0 + math.exp(-z))
    ez = math.exp(z)
    return ez / (1.0 + ez)
