"""Pydantic schemas for provider results and API payloads. Not persisted to DB."""
from datetime import datetime

from pydantic import BaseModel, Field

from market_pulse.db import AssetClass
from market_pulse.utils import utcnow


class Candle(BaseModel):
    """One OHLC bar; transient, only used for indicator computation."""

    open: float
    high: float
    low: float
    close: float
    timestamp: datetime


class PricePoint(BaseModel):
    """Single historical price (used for backfill)."""

    price: float
    timestamp: datetime


class MoverQuote(BaseModel):
    """Snapshot row from a market-wide list (index constituents, top-by-cap)."""

    symbol: str
    name: str | None = None
    price: float
    percent_change: float


class SymbolDetail(BaseModel):
    """Price and day change for a single symbol."""

    symbol: str
    price: float
    percent_change: float | None = None


class InstrumentCreate(BaseModel):
    """Request body for adding a tracked instrument."""

    symbol: str = Field(min_length=1)
    name: str = Field(min_length=1)
    asset_class: AssetClass


class InstrumentSummary(BaseModel):
    """Instrument with its latest observed price."""

    id: int
    symbol: str
    name: str
    asset_class: AssetClass
    latest_price: float | None = None
    latest_timestamp: datetime | None = None


class JobReport(BaseModel):
    """Counts produced by one job run; logged by the scheduler."""

    job: str
    processed: int = 0
    skipped: int = 0
    flagged: int = 0
    finished_at: datetime = Field(default_factory=utcnow)


__all__ = [
    "Candle",
    "InstrumentCreate",
    "InstrumentSummary",
    "JobReport",
    "MoverQuote",
    "PricePoint",
    "SymbolDetail",
]
