"""Pure analytics: indicators and anomaly detection."""
from market_pulse.analytics.anomaly import AnomalyVerdict, detect_anomaly
from market_pulse.analytics.indicators import (Trend, average_true_range, rsi,
                                               supertrend)

__all__ = [
    "AnomalyVerdict",
    "Trend",
    "average_true_range",
    "detect_anomaly",
    "rsi",
    "supertrend",
]
