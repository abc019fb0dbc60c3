"""Shared utilities for the market signal pipeline."""

from datetime import datetime, timezone


def utcnow() -> datetime:
    """Naive UTC now; all persisted timestamps are naive UTC."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_timestamp_ms(ts_ms: float | None) -> datetime:
    """Convert optional Unix timestamp (milliseconds) to naive UTC; fallback to now."""
    if ts_ms is None:
        return utcnow()
    return datetime.fromtimestamp(ts_ms / 1000, tz=timezone.utc).replace(tzinfo=None)
