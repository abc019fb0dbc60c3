"""Database package: models, session management and store primitives."""
from market_pulse.db.models import (Alert, Anomaly, AssetClass, Instrument,
                                    MarketAnomaly, PriceObservation, Severity,
                                    User)
from market_pulse.db.store import Store

__all__ = [
    "Alert",
    "Anomaly",
    "AssetClass",
    "Instrument",
    "MarketAnomaly",
    "PriceObservation",
    "Severity",
    "Store",
    "User",
]
