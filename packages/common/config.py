"""Configuration loading from YAML + environment variables."""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any

import pydantic
import yaml
from pydantic import BaseModel, Field

from packages.common.errors import ConfigError
from packages.common.types import OrderParams


def _resolve_env_vars(value: str) -> str:
    """Resolve ${VAR:default} patterns in strings."""
    pattern = r"\$\{(\w+)(?::([^}]*))?\}"

    def replacer(match: re.Match[str]) -> str:
        var_name = match.group(1)
        default = match.group(2)
        return os.environ.get(var_name, default if default is not None else "")

    return re.sub(pattern, replacer, value)


def _resolve_config(obj: Any) -> Any:
    """Recursively resolve environment variables in config."""
    if isinstance(obj, str):
        return _resolve_env_vars(obj)
    if isinstance(obj, dict):
        return {k: _resolve_config(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_resolve_config(v) for v in obj]
    return obj


class FeedConfig(BaseModel):
    host: str = "gomarket-cpp.goquant.io"
    port: int = 443
    path: str = "/ws/l2-orderbook/okx/BTC-USDT-SWAP"
    secure: bool = True
    exchange: str = "OKX"
    asset: str = "BTC-USDT-SWAP"
    retry_interval_seconds: float = Field(default=5.0, gt=0.0)
    ping_interval_seconds: float = Field(default=20.0, gt=0.0)
    connect_timeout_seconds: float = Field(default=10.0, gt=0.0)

    @property
    def endpoint(self) -> str:
        scheme = "wss" if self.secure else "ws"
        default_port = 443 if self.secure else 80
        netloc = self.host if self.port == default_port else f"{self.host}:{self.port}"
        return f"{scheme}://{netloc}{self.path}"


class HistoryConfig(BaseModel):
    capacity: int = Field(default=1000, ge=1)


class ImpactConfig(BaseModel):
    eta: float = 0.01  # temporary impact coefficient
    gamma: float = 0.0001  # permanent impact coefficient
    time_horizon: float = Field(default=1.0, gt=0.0)  # seconds


class MakerTakerConfig(BaseModel):
    a: float = 0.005  # quantity weight
    b: float = 0.1  # volatility weight
    c: float = 2.0  # intercept


class SimulationConfig(BaseModel):
    quantity: float = Field(default=100.0, gt=0.0)
    volatility: float = Field(default=0.02, ge=0.0)
    fee_tier: float = Field(default=0.001, ge=0.0, le=1.0)
    impact: ImpactConfig = Field(default_factory=ImpactConfig)
    maker_taker: MakerTakerConfig = Field(default_factory=MakerTakerConfig)

    def order_params(self) -> OrderParams:
        return OrderParams(
            quantity=self.quantity,
            volatility=self.volatility,
            fee_tier=self.fee_tier,
        )


class DisplayConfig(BaseModel):
    refresh_interval_ms: int = Field(default=200, gt=0)
    max_latency_ms: float = 100.0


class MonitoringConfig(BaseModel):
    prometheus_port: int = 0  # 0 disables the exporter


class LoggingConfig(BaseModel):
    level: str = "INFO"
    file: str = "simulator.log"
    json_logs: bool = Field(default=False, alias="json")

    model_config = {"populate_by_name": True}


class AppConfig(BaseModel):
    feed: FeedConfig = Field(default_factory=FeedConfig)
    history: HistoryConfig = Field(default_factory=HistoryConfig)
    simulation: SimulationConfig = Field(default_factory=SimulationConfig)
    display: DisplayConfig = Field(default_factory=DisplayConfig)
    monitoring: MonitoringConfig = Field(default_factory=MonitoringConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = {"frozen": True}


def load_config(config_path: str | Path | None = None) -> AppConfig:
    """Load config from YAML file with environment variable resolution.

    A missing file yields the built-in defaults. Unparseable YAML or values
    that fail validation raise ConfigError.
    """
    config_path = Path("config/default.yaml") if config_path is None else Path(config_path)

    if not config_path.exists():
        return AppConfig()

    try:
        with open(config_path) as f:
            raw = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Cannot parse {config_path}: {e}") from e

    if not isinstance(raw, dict):
        raise ConfigError(f"{config_path} must contain a mapping at the top level")

    try:
        return AppConfig.model_validate(_resolve_config(raw))
    except pydantic.ValidationError as e:
        raise ConfigError(f"Invalid configuration in {config_path}: {e}") from e
