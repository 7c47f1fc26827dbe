"""Order book frame parsing and validation."""

from __future__ import annotations

import json
import math
from typing import TYPE_CHECKING, Any

from packages.common.errors import ProtocolError
from packages.common.time_utils import utc_now
from packages.common.types import OrderBookSnapshot, PriceLevel

if TYPE_CHECKING:
    from datetime import datetime

REQUIRED_FIELDS = ("symbol", "bids", "asks")


def _to_float(value: Any, field: str) -> float:
    # bool is an int subclass; exchanges never send it for prices
    if isinstance(value, bool):
        raise ProtocolError(f"{field}: expected number, got bool")
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError) as e:
        raise ProtocolError(f"{field}: expected number, got {value!r}") from e
    if not math.isfinite(number):
        raise ProtocolError(f"{field}: non-finite value {value!r}")
    return number


def parse_levels(rows: Any, side: str) -> tuple[PriceLevel, ...]:
    """Convert ``[[price, size], ...]`` into float pairs, preserving order.

    Numeric strings are accepted (most venues quote as strings). Extra
    trailing elements per level, such as order counts, are ignored.
    """
    if not isinstance(rows, list):
        raise ProtocolError(f"{side}: expected a list of levels")

    levels: list[PriceLevel] = []
    for i, row in enumerate(rows):
        if not isinstance(row, (list, tuple)) or len(row) < 2:
            raise ProtocolError(f"{side}[{i}]: expected [price, size]")
        price = _to_float(row[0], f"{side}[{i}].price")
        size = _to_float(row[1], f"{side}[{i}].size")
        if price <= 0 or size < 0:
            raise ProtocolError(f"{side}[{i}]: price must be > 0 and size >= 0")
        levels.append((price, size))
    return tuple(levels)


def decode_frame(raw: str | bytes) -> dict[str, Any]:
    """JSON-decode a frame and check the required fields are present."""
    try:
        payload = json.loads(raw)
    except (ValueError, RecursionError) as e:
        # JSONDecodeError, UnicodeDecodeError and the int digit limit are all ValueError
        raise ProtocolError(f"invalid JSON: {e}") from e

    if not isinstance(payload, dict):
        raise ProtocolError("frame is not a JSON object")

    missing = [f for f in REQUIRED_FIELDS if f not in payload]
    if missing:
        raise ProtocolError(f"missing fields: {', '.join(missing)}")
    return payload


def parse_frame(raw: str | bytes, received_at: datetime | None = None) -> OrderBookSnapshot:
    """Build a snapshot from one text frame, or raise ProtocolError.

    ``captured_at`` is the local receive time; any venue timestamp in the
    frame is ignored.
    """
    payload = decode_frame(raw)

    symbol = payload["symbol"]
    if not isinstance(symbol, str) or not symbol:
        raise ProtocolError("symbol: expected a non-empty string")

    return OrderBookSnapshot(
        symbol=symbol,
        bids=parse_levels(payload["bids"], "bids"),
        asks=parse_levels(payload["asks"], "asks"),
        captured_at=received_at or utc_now(),
    )
