"""Database models for the market signal pipeline.

User accounts are owned by the auth service; only the fields the pipeline
reads (email, verification flag) are mirrored here. Price observations,
anomalies and alerts are append-only.
"""
from datetime import datetime
from enum import Enum

from sqlmodel import Field, SQLModel

from market_pulse.utils import utcnow


class AssetClass(str, Enum):
    """Category of a tracked instrument; decides which data source applies."""

    CRYPTO = "CRYPTO"
    EQUITY_US = "EQUITY_US"
    EQUITY_IN = "EQUITY_IN"
    COMMODITY_PROXY = "COMMODITY_PROXY"


class Severity(str, Enum):
    """Anomaly severity levels."""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class User(SQLModel, table=True):
    """User account reference (email + notification verification flag)."""

    id: int | None = Field(default=None, primary_key=True)
    email: str = Field(unique=True, index=True)
    is_verified: bool = Field(default=False)
    created_at: datetime = Field(default_factory=utcnow)


class Instrument(SQLModel, table=True):
    """A symbol tracked on behalf of one user."""

    id: int | None = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", index=True)
    symbol: str = Field(index=True)  # bitcoin | AAPL | RELIANCE.NS
    name: str
    asset_class: AssetClass
    created_at: datetime = Field(default_factory=utcnow)


class PriceObservation(SQLModel, table=True):
    """One sampled price for an instrument."""

    id: int | None = Field(default=None, primary_key=True)
    instrument_id: int = Field(foreign_key="instrument.id", index=True)
    price: float
    timestamp: datetime = Field(default_factory=utcnow, index=True)


class Anomaly(SQLModel, table=True):
    """Statistical outlier detected on an instrument's own price history."""

    id: int | None = Field(default=None, primary_key=True)
    instrument_id: int = Field(foreign_key="instrument.id", index=True)
    severity: Severity
    message: str
    price: float
    timestamp: datetime = Field(default_factory=utcnow, index=True)


class MarketAnomaly(SQLModel, table=True):
    """Large move on the global watchlist; not tied to any user."""

    id: int | None = Field(default=None, primary_key=True)
    symbol: str = Field(index=True)
    asset_class: AssetClass
    price: float
    message: str
    severity: Severity  # MEDIUM | HIGH
    timestamp: datetime = Field(default_factory=utcnow, index=True)


class Alert(SQLModel, table=True):
    """User-facing alert raised by an anomaly or a strategy signal."""

    id: int | None = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", index=True)
    message: str
    is_read: bool = Field(default=False)
    created_at: datetime = Field(default_factory=utcnow, index=True)
