"""Trade cost simulation against a single order book snapshot."""

from __future__ import annotations

import math
import time
from typing import TYPE_CHECKING

from packages.common.errors import InternalComputeError, ValidationError
from packages.common.logging import get_logger
from packages.common.time_utils import elapsed_ms
from packages.common.types import SimulationResult
from packages.monitoring.metrics_exporter import record_error
from packages.simulation.models import (
    ImpactParams,
    MakerTakerParams,
    flat_fee,
    maker_taker_ratio,
    market_impact,
    slippage_per_unit,
)

if TYPE_CHECKING:
    from packages.common.config import SimulationConfig
    from packages.common.types import OrderBookSnapshot, OrderParams

logger = get_logger(__name__)


def validate_inputs(quantity: float, volatility: float, fee_tier: float) -> None:
    """Raise ValidationError for out-of-range order parameters."""
    if not math.isfinite(quantity) or quantity <= 0:
        raise ValidationError(f"Quantity must be positive, got {quantity}")
    if not math.isfinite(volatility) or volatility < 0:
        raise ValidationError(f"Volatility cannot be negative, got {volatility}")
    if not (0.0 <= fee_tier <= 1.0):
        raise ValidationError(f"Fee tier must be between 0 and 1, got {fee_tier}")


class SimulationEngine:
    """Estimate slippage, fees, impact and maker/taker split for a market buy.

    Pure computation: no shared state is touched, so one engine may be used
    from any thread.

    Policy:
        - invalid inputs raise ValidationError
        - no snapshot, or a one-sided book, returns an all-zero result
        - any other failure is logged and returns an all-zero result

    ``compute_latency_ms`` is the wall-clock time of the call in whole
    milliseconds. Sub-millisecond runs, which is the common case, report 0.
    """

    def __init__(
        self,
        impact: ImpactParams | None = None,
        maker_taker: MakerTakerParams | None = None,
    ) -> None:
        self._impact = impact or ImpactParams()
        self._maker_taker = maker_taker or MakerTakerParams()

    @classmethod
    def from_config(cls, config: SimulationConfig) -> SimulationEngine:
        return cls(
            impact=ImpactParams.from_config(config.impact),
            maker_taker=MakerTakerParams.from_config(config.maker_taker),
        )

    def compute(
        self,
        quantity: float,
        volatility: float,
        fee_tier: float,
        snapshot: OrderBookSnapshot | None,
    ) -> SimulationResult:
        start = time.perf_counter()
        validate_inputs(quantity, volatility, fee_tier)

        if snapshot is None or not snapshot.is_two_sided():
            return SimulationResult()

        try:
            return self._estimate(quantity, volatility, fee_tier, snapshot, start)
        except Exception as e:
            record_error("engine")
            logger.error(
                "simulation_failed",
                symbol=snapshot.symbol,
                quantity=quantity,
                error=str(e),
                error_type=type(e).__name__,
            )
            return SimulationResult()

    def compute_for(self, params: OrderParams, snapshot: OrderBookSnapshot | None) -> SimulationResult:
        return self.compute(params.quantity, params.volatility, params.fee_tier, snapshot)

    def _estimate(
        self,
        quantity: float,
        volatility: float,
        fee_tier: float,
        snapshot: OrderBookSnapshot,
        start: float,
    ) -> SimulationResult:
        slippage = slippage_per_unit(quantity, snapshot.bids, snapshot.asks)
        fees = flat_fee(quantity, fee_tier)
        impact = market_impact(quantity, volatility, self._impact)
        ratio = maker_taker_ratio(quantity, volatility, self._maker_taker)
        net_cost = slippage + fees + impact

        values = (slippage, fees, impact, ratio, net_cost)
        if not all(math.isfinite(v) for v in values):
            raise InternalComputeError(f"Non-finite cost estimate: {values}")

        return SimulationResult(
            slippage_per_unit=slippage,
            fees=fees,
            market_impact=impact,
            net_cost=net_cost,
            maker_taker_ratio=ratio,
            compute_latency_ms=float(elapsed_ms(start)),
        )
