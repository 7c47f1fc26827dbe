"""UTC and monotonic clock helpers."""

from __future__ import annotations

import time
from datetime import UTC, datetime


def utc_now() -> datetime:
    """Current UTC time."""
    return datetime.now(UTC)


def to_utc(dt: datetime) -> datetime:
    """Ensure a datetime is UTC-aware."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def age_seconds(dt: datetime, now: datetime | None = None) -> float:
    """Seconds elapsed since ``dt``."""
    now = now or utc_now()
    return (to_utc(now) - to_utc(dt)).total_seconds()


def elapsed_ms(start: float) -> int:
    """Whole milliseconds since a ``time.perf_counter()`` reading.

    Truncates toward zero, so anything under one millisecond reports 0.
    """
    return int((time.perf_counter() - start) * 1000)
