"""Tests for the trade cost simulation engine."""

from __future__ import annotations

import math
from datetime import UTC, datetime

import numpy as np
import pytest

from packages.common.errors import ValidationError
from packages.common.types import OrderBookSnapshot, OrderParams, SimulationResult
from packages.simulation.engine import SimulationEngine
from packages.simulation.models import ImpactParams, MakerTakerParams


def _make_snapshot(
    bids: tuple[tuple[float, float], ...] = ((100.0, 10.0),),
    asks: tuple[tuple[float, float], ...] = ((101.0, 5.0), (102.0, 10.0)),
) -> OrderBookSnapshot:
    return OrderBookSnapshot(
        symbol="BTC-USDT-SWAP",
        bids=bids,
        asks=asks,
        captured_at=datetime.now(UTC),
    )


class TestSimulationEngine:
    def test_slippage_walks_the_ask_ladder(self) -> None:
        """7 units: 5 @ 101 + 2 @ 102 = 709, averaged over 7, minus best bid 100."""
        result = SimulationEngine().compute(7.0, 0.01, 0.001, _make_snapshot())
        assert result.slippage_per_unit == pytest.approx(709.0 / 7.0 - 100.0, abs=1e-3)
        assert result.slippage_per_unit == pytest.approx(1.2857, abs=1e-3)

    def test_thin_book_divides_partial_fill_by_full_quantity(self) -> None:
        """Only 2 units visible: cost 202 is still divided by the requested 10."""
        snapshot = _make_snapshot(asks=((101.0, 2.0),))
        result = SimulationEngine().compute(10.0, 0.0, 0.0, snapshot)
        assert result.slippage_per_unit == pytest.approx(202.0 / 10.0 - 100.0)

    def test_market_impact_example(self) -> None:
        """0.01*100 + 0.0001*100^2 + 0.02*sqrt(100)/sqrt(1) = 2.2."""
        result = SimulationEngine().compute(100.0, 0.02, 0.001, _make_snapshot())
        assert result.market_impact == pytest.approx(2.2)

    def test_fees_are_flat_notional(self) -> None:
        result = SimulationEngine().compute(100.0, 0.02, 0.001, _make_snapshot())
        assert result.fees == pytest.approx(0.1)

    def test_maker_taker_logistic(self) -> None:
        result = SimulationEngine().compute(100.0, 0.02, 0.001, _make_snapshot())
        expected = 1.0 / (1.0 + math.exp(-(0.005 * 100.0 - 0.1 * 0.02 + 2.0)))
        assert result.maker_taker_ratio == pytest.approx(expected)
        assert 0.0 < result.maker_taker_ratio < 1.0

    def test_net_cost_excludes_maker_taker_ratio(self) -> None:
        result = SimulationEngine().compute(7.0, 0.01, 0.001, _make_snapshot())
        assert result.net_cost == pytest.approx(
            result.slippage_per_unit + result.fees + result.market_impact
        )

    def test_latency_is_whole_milliseconds(self) -> None:
        result = SimulationEngine().compute(7.0, 0.01, 0.001, _make_snapshot())
        assert result.compute_latency_ms >= 0.0
        assert result.compute_latency_ms == int(result.compute_latency_ms)

    def test_tunable_impact_parameters(self) -> None:
        """Impact constants come from ImpactParams, not literals."""
        engine = SimulationEngine(impact=ImpactParams(eta=0.0, gamma=0.0, time_horizon=4.0))
        result = engine.compute(100.0, 0.02, 0.0, _make_snapshot())
        assert result.market_impact == pytest.approx(0.02 * 10.0 / 2.0)

    def test_tunable_maker_taker_parameters(self) -> None:
        engine = SimulationEngine(maker_taker=MakerTakerParams(a=0.0, b=0.0, c=0.0))
        result = engine.compute(100.0, 0.02, 0.0, _make_snapshot())
        assert result.maker_taker_ratio == pytest.approx(0.5)

    def test_compute_for_uses_order_params(self) -> None:
        engine = SimulationEngine()
        params = OrderParams(quantity=7.0, volatility=0.01, fee_tier=0.001)
        direct = engine.compute(7.0, 0.01, 0.001, _make_snapshot())
        via_params = engine.compute_for(params, _make_snapshot())
        assert via_params.net_cost == pytest.approx(direct.net_cost)


class TestFallbacks:
    def test_no_snapshot_returns_zero_result(self) -> None:
        """Empty history is a documented fallback, not an error."""
        result = SimulationEngine().compute(100.0, 0.02, 0.001, None)
        assert result == SimulationResult()
        assert result.is_zero()

    def test_empty_bid_side_returns_zero_result(self) -> None:
        result = SimulationEngine().compute(100.0, 0.02, 0.001, _make_snapshot(bids=()))
        assert result.is_zero()

    def test_empty_ask_side_returns_zero_result(self) -> None:
        result = SimulationEngine().compute(100.0, 0.02, 0.001, _make_snapshot(asks=()))
        assert result.is_zero()

    def test_internal_failure_degrades_to_zero(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Unexpected errors inside the models are caught, not raised."""

        def boom(*args: object, **kwargs: object) -> float:
            raise RuntimeError("model blew up")

        monkeypatch.setattr("packages.simulation.engine.slippage_per_unit", boom)
        result = SimulationEngine().compute(100.0, 0.02, 0.001, _make_snapshot())
        assert result.is_zero()

    def test_non_finite_estimate_degrades_to_zero(self) -> None:
        """Overflowing impact terms are treated as an internal failure."""
        result = SimulationEngine().compute(1e200, 0.0, 0.0, _make_snapshot())
        assert result.is_zero()


class TestValidation:
    @pytest.mark.parametrize(
        ("quantity", "volatility", "fee_tier"),
        [
            (0.0, 0.02, 0.001),
            (-1.0, 0.02, 0.001),
            (float("nan"), 0.02, 0.001),
            (float("inf"), 0.02, 0.001),
            (100.0, -0.01, 0.001),
            (100.0, float("nan"), 0.001),
            (100.0, 0.02, 1.5),
            (100.0, 0.02, -0.1),
            (100.0, 0.02, float("nan")),
        ],
    )
    def test_invalid_inputs_raise(self, quantity: float, volatility: float, fee_tier: float) -> None:
        with pytest.raises(ValidationError):
            SimulationEngine().compute(quantity, volatility, fee_tier, _make_snapshot())

    def test_validation_runs_even_without_snapshot(self) -> None:
        """Invalid input is never silently defaulted, even on an empty history."""
        with pytest.raises(ValidationError):
            SimulationEngine().compute(0.0, 0.02, 0.001, None)

    def test_validation_error_is_a_value_error(self) -> None:
        with pytest.raises(ValueError, match="Fee tier"):
            SimulationEngine().compute(1.0, 0.0, 1.5, None)

    def test_boundary_values_are_accepted(self) -> None:
        result = SimulationEngine().compute(1e-9, 0.0, 1.0, _make_snapshot())
        assert math.isfinite(result.net_cost)


class TestFiniteOutputs:
    def test_random_books_produce_finite_results(self) -> None:
        """Every field stays finite across a spread of valid inputs and books."""
        rng = np.random.default_rng(42)
        engine = SimulationEngine()

        for _ in range(200):
            mid = rng.uniform(100.0, 100_000.0)
            n_levels = int(rng.integers(1, 30))
            bids = tuple(
                (float(mid - 0.5 * (i + 1)), float(rng.uniform(0.0, 50.0))) for i in range(n_levels)
            )
            asks = tuple(
                (float(mid + 0.5 * (i + 1)), float(rng.uniform(0.0, 50.0))) for i in range(n_levels)
            )
            quantity = float(rng.uniform(1e-3, 10_000.0))
            volatility = float(rng.uniform(0.0, 5.0))
            fee_tier = float(rng.uniform(0.0, 1.0))

            result = engine.compute(quantity, volatility, fee_tier, _make_snapshot(bids, asks))
            values = result.model_dump().values()
            assert all(math.isfinite(v) for v in values)
