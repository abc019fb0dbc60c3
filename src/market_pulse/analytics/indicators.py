"""Technical indicators over OHLC candle sequences.

Pure functions: no I/O and no state beyond the input series.
"""
from collections.abc import Sequence
from dataclasses import dataclass
from enum import IntEnum
from typing import Protocol

import numpy as np


class Trend(IntEnum):
    """Supertrend direction."""

    UP = 1
    DOWN = -1


class OhlcLike(Protocol):
    """Anything with high/low/close attributes (e.g. schemas.Candle)."""

    high: float
    low: float
    close: float


def _rsi_value(avg_gain: float, avg_loss: float) -> float:
    if avg_loss == 0:
        return 100.0
    rs = avg_gain / avg_loss
    return 100.0 - 100.0 / (1.0 + rs)


def rsi(closes: Sequence[float], period: int = 14) -> list[float]:
    """Relative Strength Index with Wilder smoothing.

    The first average gain/loss is the simple mean of the first ``period``
    changes; later averages use ``(prev * (period - 1) + current) / period``.

    Args:
        closes: Closing prices, oldest first.
        period: Lookback length.

    Returns:
        ``len(closes) - period`` values in [0, 100], aligned to the last
        closes. Empty when fewer than ``period + 1`` closes are given.
    """
    values = np.asarray(closes, dtype=float)
    if period < 1 or values.size < period + 1:
        return []

    deltas = np.diff(values)
    gains = np.clip(deltas, 0.0, None)
    losses = np.clip(-deltas, 0.0, None)

    avg_gain = float(gains[:period].mean())
    avg_loss = float(losses[:period].mean())
    out = [_rsi_value(avg_gain, avg_loss)]
    for gain, loss in zip(gains[period:], losses[period:]):
        avg_gain = (avg_gain * (period - 1) + float(gain)) / period
        avg_loss = (avg_loss * (period - 1) + float(loss)) / period
        out.append(_rsi_value(avg_gain, avg_loss))
    return out


def true_range(highs: np.ndarray, lows: np.ndarray, closes: np.ndarray) -> np.ndarray:
    """True range per bar; the first bar has no previous close and uses high - low."""
    tr = highs - lows
    if tr.size > 1:
        prev_close = closes[:-1]
        tr[1:] = np.maximum.reduce(
            [
                highs[1:] - lows[1:],
                np.abs(highs[1:] - prev_close),
                np.abs(lows[1:] - prev_close),
            ]
        )
    return tr


def average_true_range(candles: Sequence[OhlcLike], period: int = 14) -> np.ndarray:
    """Wilder ATR aligned to the input; entries before index ``period`` are NaN.

    ATR[period] is the mean of the ``period`` true ranges that have a
    previous close (bars 1..period); later values are Wilder-smoothed.
    """
    n = len(candles)
    atr = np.full(n, np.nan)
    if period < 1 or n < period + 1:
        return atr
    highs = np.array([c.high for c in candles], dtype=float)
    lows = np.array([c.low for c in candles], dtype=float)
    closes = np.array([c.close for c in candles], dtype=float)
    tr = true_range(highs, lows, closes)

    atr[period] = tr[1 : period + 1].mean()
    for i in range(period + 1, n):
        atr[i] = (atr[i - 1] * (period - 1) + tr[i]) / period
    return atr


@dataclass(frozen=True)
class _BandState:
    """Accumulator carried from one candle to the next."""

    final_upper: float
    final_lower: float
    trend: Trend

    @property
    def band(self) -> float:
        return self.final_lower if self.trend is Trend.UP else self.final_upper


def _band_step(
    state: _BandState,
    basic_upper: float,
    basic_lower: float,
    close: float,
    prev_close: float,
) -> _BandState:
    """Advance the final bands and trend by one candle."""
    if basic_upper < state.final_upper or prev_close > state.final_upper:
        final_upper = basic_upper
    else:
        final_upper = state.final_upper

    if basic_lower > state.final_lower or prev_close < state.final_lower:
        final_lower = basic_lower
    else:
        final_lower = state.final_lower

    trend = state.trend
    if trend is Trend.UP and close < final_lower:
        trend = Trend.DOWN
    elif trend is Trend.DOWN and close > final_upper:
        trend = Trend.UP
    return _BandState(final_upper=final_upper, final_lower=final_lower, trend=trend)


def supertrend(
    candles: Sequence[OhlcLike],
    period: int = 10,
    multiplier: float = 3.0,
) -> tuple[list[float], list[Trend]]:
    """ATR-based trend band (Supertrend).

    Returns one band value and one trend per candle. The first ``period``
    entries are warmup placeholders (band 0.0, trend UP) and must not be
    used for decisions. The fold starts from the warmup state at
    ``period - 1``, so both previous final bands are 0.0 at index ``period``.

    Args:
        candles: Candles oldest first.
        period: ATR lookback.
        multiplier: ATR multiple added to / subtracted from the bar midpoint.

    Returns:
        (band_values, trends). The band is the final lower band while the
        trend is UP and the final upper band while it is DOWN.
    """
    if period < 1:
        raise ValueError("period must be >= 1")
    n = len(candles)
    warmup = min(period, n)
    bands: list[float] = [0.0] * warmup
    trends: list[Trend] = [Trend.UP] * warmup
    if n <= period:
        return bands, trends

    atr = average_true_range(candles, period)
    state = _BandState(final_upper=bands[-1], final_lower=bands[-1], trend=trends[-1])
    for i in range(period, n):
        candle = candles[i]
        mid = (candle.high + candle.low) / 2.0
        offset = multiplier * float(atr[i])
        state = _band_step(
            state,
            basic_upper=mid + offset,
            basic_lower=mid - offset,
            close=candle.close,
            prev_close=candles[i - 1].close,
        )
        bands.append(state.band)
        trends.append(state.trend)
    return bands, trends
