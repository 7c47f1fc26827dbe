"""Tests for YAML configuration loading."""

from __future__ import annotations

from pathlib import Path

import pydantic
import pytest

from packages.common.config import AppConfig, FeedConfig, load_config
from packages.common.errors import ConfigError

REPO_ROOT = Path(__file__).resolve().parents[2]


class TestConfig:
    def test_defaults(self) -> None:
        cfg = AppConfig()
        assert cfg.history.capacity == 1000
        assert cfg.simulation.quantity == 100.0
        assert cfg.simulation.volatility == 0.02
        assert cfg.simulation.fee_tier == 0.001
        assert cfg.feed.retry_interval_seconds == 5.0
        assert cfg.feed.ping_interval_seconds == 20.0
        assert cfg.display.max_latency_ms == 100.0

    def test_default_endpoint(self) -> None:
        assert (
            FeedConfig().endpoint
            == "wss://gomarket-cpp.goquant.io/ws/l2-orderbook/okx/BTC-USDT-SWAP"
        )

    def test_endpoint_with_custom_port(self) -> None:
        cfg = FeedConfig(host="localhost", port=8765, path="/book", secure=False)
        assert cfg.endpoint == "ws://localhost:8765/book"

    def test_order_params_from_simulation_config(self) -> None:
        params = AppConfig().simulation.order_params()
        assert (params.quantity, params.volatility, params.fee_tier) == (100.0, 0.02, 0.001)

    def test_shipped_default_yaml_loads(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("FEED_HOST", raising=False)
        monkeypatch.delenv("LOG_LEVEL", raising=False)
        cfg = load_config(REPO_ROOT / "config" / "default.yaml")
        assert cfg.feed.host == "gomarket-cpp.goquant.io"
        assert cfg.logging.level == "INFO"
        assert cfg.logging.json_logs is False
        assert cfg.simulation.impact.eta == 0.01

    def test_env_var_resolution(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("FEED_HOST", "feed.internal")
        monkeypatch.delenv("FEED_PORT", raising=False)
        path = tmp_path / "cfg.yaml"
        path.write_text("feed:\n  host: ${FEED_HOST:fallback}\n  port: ${FEED_PORT:9000}\n")
        cfg = load_config(path)
        assert cfg.feed.host == "feed.internal"
        assert cfg.feed.port == 9000

    def test_missing_file_yields_defaults(self, tmp_path: Path) -> None:
        assert load_config(tmp_path / "nope.yaml") == AppConfig()

    def test_empty_file_yields_defaults(self, tmp_path: Path) -> None:
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_config(path) == AppConfig()

    @pytest.mark.parametrize(
        "body",
        [
            "history:\n  capacity: 0\n",
            "simulation:\n  fee_tier: 1.5\n",
            "simulation:\n  quantity: -1\n",
            "feed:\n  retry_interval_seconds: 0\n",
            "- just\n- a list\n",
            "feed: [unclosed\n",
        ],
    )
    def test_invalid_config_raises(self, tmp_path: Path, body: str) -> None:
        path = tmp_path / "bad.yaml"
        path.write_text(body)
        with pytest.raises(ConfigError):
            load_config(path)

    def test_config_is_frozen(self) -> None:
        cfg = AppConfig()
        with pytest.raises(pydantic.ValidationError):
            cfg.history = cfg.history  # type: ignore[misc]
