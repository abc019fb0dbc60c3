"""Z-score outlier detection on an instrument's own recent prices."""
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Protocol

import numpy as np

from market_pulse.db import Severity

MIN_HISTORY = 10
WINDOW_SIZE = 30
# Moves smaller than this (percent) are never flagged, whatever the z-score.
NOISE_FLOOR_PCT = 1.0
HIGH_Z = 6.0
MEDIUM_Z = 4.0
LOW_Z = 3.0


class PricePointLike(Protocol):
    """Anything with price and timestamp (PriceObservation, PricePoint)."""

    price: float
    timestamp: datetime


@dataclass(frozen=True)
class AnomalyVerdict:
    """Classification of a new price against its prior window."""

    severity: Severity
    message: str
    z_score: float
    percent_change: float


def _classify(z_score: float) -> Severity | None:
    z = abs(z_score)
    if z > HIGH_Z:
        return Severity.HIGH
    if z > MEDIUM_Z:
        return Severity.MEDIUM
    if z > LOW_Z:
        return Severity.LOW
    return None


def detect_anomaly(
    window: Sequence[PricePointLike],
    new_price: float,
) -> AnomalyVerdict | None:
    """Classify ``new_price`` against the prior observations in ``window``.

    The window may be in any order; the percent change is measured against
    the observation with the latest timestamp. Returns None when there is
    too little history, the window has zero variance, the move is under
    the noise floor, or the z-score is unremarkable.
    """
    if len(window) < MIN_HISTORY:
        return None

    prices = np.array([p.price for p in window], dtype=float)
    mean = float(prices.mean())
    sd = float(prices.std())  # population (ddof=0)
    if sd == 0:
        return None

    last_price = float(max(window, key=lambda p: p.timestamp).price)
    z_score = (new_price - mean) / sd
    percent_change = (new_price - last_price) / last_price * 100

    if abs(percent_change) < NOISE_FLOOR_PCT:
        return None

    severity = _classify(z_score)
    if severity is None:
        return None

    if severity is Severity.LOW:
        message = (
            f"Minor deviations detected ({percent_change:.2f}%). Z-Score: {z_score:.2f}"
        )
    else:
        message = f"Unusual price movement ({percent_change:.2f}%). Z-Score: {z_score:.2f}"
    return AnomalyVerdict(
        severity=severity,
        message=message,
        z_score=z_score,
        percent_change=percent_change,
    )
