"""Strategy job: Supertrend + RSI buy-candidate detection.

For each instrument whose class has candles, fetch a recent series,
compute RSI(14) and Supertrend(10, 3) and raise a buy alert when the trend
is up and momentum crosses up through the neutral band. A user gets at
most one alert per instrument per cooldown window.
"""
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta

from market_pulse.analytics.indicators import Trend, rsi, supertrend
from market_pulse.db import Alert, Instrument, Store, User
from market_pulse.providers.core import Capability
from market_pulse.schemas import Candle, JobReport
from market_pulse.services.asset_classes import profile_for
from market_pulse.services.gateway import MarketDataGateway
from market_pulse.services.notifier import Notifier
from market_pulse.utils import utcnow

logger = logging.getLogger(__name__)

SIGNAL_PREFIX = "BUY SIGNAL"
COOLDOWN = timedelta(hours=24)
MIN_CANDLES = 50
# CoinGecko returns 30-minute candles for 1-2 day windows; 2 days gives ~96.
CANDLE_WINDOW_DAYS = 2
RSI_PERIOD = 14
SUPERTREND_PERIOD = 10
SUPERTREND_MULTIPLIER = 3.0
RSI_MIDLINE = 50.0
RSI_NEUTRAL_UPPER = 60.0


@dataclass(frozen=True)
class BuySignal:
    """Indicator readings at the last candle when the buy rule fired."""

    trend: Trend
    prev_rsi: float
    last_rsi: float
    momentum_confirmed: bool
    price_rising: bool

    @property
    def confidence(self) -> int:
        """Heuristic score: 40 trend + 30 momentum + 30 rising close."""
        score = 0
        if self.trend is Trend.UP:
            score += 40
        if self.momentum_confirmed:
            score += 30
        if self.price_rising:
            score += 30
        return score


def momentum_crossed_up(prev_rsi: float, last_rsi: float) -> bool:
    """RSI crossed the midline, or kept rising through the neutral band's top."""
    crossed_midline = prev_rsi <= RSI_MIDLINE < last_rsi
    crossed_upper = prev_rsi <= RSI_NEUTRAL_UPPER < last_rsi and last_rsi > prev_rsi
    return crossed_midline or crossed_upper


def evaluate_buy_signal(candles: Sequence[Candle]) -> BuySignal | None:
    """Apply the buy rule to a candle series (oldest first)."""
    if len(candles) < 2:
        return None
    rsi_values = rsi([c.close for c in candles], RSI_PERIOD)
    if len(rsi_values) < 2:
        return None
    _, trends = supertrend(candles, SUPERTREND_PERIOD, SUPERTREND_MULTIPLIER)
    if len(trends) <= SUPERTREND_PERIOD:
        return None

    last_trend = trends[-1]
    prev_rsi, last_rsi = rsi_values[-2], rsi_values[-1]
    momentum = momentum_crossed_up(prev_rsi, last_rsi)
    if last_trend is not Trend.UP or not momentum:
        return None
    return BuySignal(
        trend=last_trend,
        prev_rsi=prev_rsi,
        last_rsi=last_rsi,
        momentum_confirmed=momentum,
        price_rising=candles[-1].close > candles[-2].close,
    )


class StrategyJob:
    """Evaluate the buy rule for every eligible instrument."""

    name = "strategy"

    def __init__(
        self,
        store: Store,
        gateway: MarketDataGateway,
        notifier: Notifier,
        *,
        window_days: int = CANDLE_WINDOW_DAYS,
        min_candles: int = MIN_CANDLES,
        cooldown: timedelta = COOLDOWN,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._store = store
        self._gateway = gateway
        self._notifier = notifier
        self._window_days = window_days
        self._min_candles = min_candles
        self._cooldown = cooldown
        self._clock = clock

    async def run(self) -> JobReport:
        report = JobReport(job=self.name)
        instruments = self._store.find_many(Instrument)
        if not instruments:
            return report
        users = {
            u.id: u
            for u in self._store.find_many(
                User, User.id.in_(sorted({i.user_id for i in instruments}))
            )
        }
        has_ohlc = self._gateway.supports(Capability.OHLC_SERIES)
        candle_cache: dict[str, list[Candle]] = {}

        for instrument in instruments:
            if not (has_ohlc and profile_for(instrument.asset_class).supports_ohlc):
                report.skipped += 1
                continue
            key = instrument.symbol.lower()
            if key not in candle_cache:
                candle_cache[key] = await self._gateway.ohlc_series(
                    instrument.symbol, self._window_days
                )
            candles = candle_cache[key]
            if len(candles) < self._min_candles:
                logger.debug(
                    "Not enough candles for %s (%d)", instrument.symbol, len(candles)
                )
                report.skipped += 1
                continue

            report.processed += 1
            signal = evaluate_buy_signal(candles)
            if signal is None:
                continue
            if self.raise_alert(instrument, users.get(instrument.user_id), signal):
                report.flagged += 1
        return report

    def _signal_key(self, instrument: Instrument) -> str:
        return f"{SIGNAL_PREFIX}: {instrument.symbol} - "

    def in_cooldown(self, instrument: Instrument) -> bool:
        """True if this user already got a signal for the instrument recently."""
        recent = self._store.find_first(
            Alert,
            Alert.user_id == instrument.user_id,
            Alert.message.startswith(self._signal_key(instrument), autoescape=True),
            Alert.created_at > self._clock() - self._cooldown,
        )
        return recent is not None

    def raise_alert(self, instrument: Instrument, user: User | None, signal: BuySignal) -> bool:
        """Persist and notify a buy alert unless the cooldown suppresses it."""
        if self.in_cooldown(instrument):
            logger.debug("Signal for %s suppressed by cooldown", instrument.symbol)
            return False

        message = (
            f"{self._signal_key(instrument)}Supertrend UP, "
            f"RSI {signal.last_rsi:.1f} (Bullish)"
        )
        self._store.insert(
            Alert(user_id=instrument.user_id, message=message, created_at=self._clock())
        )
        logger.info(message)

        if user is not None and user.is_verified:
            self._notifier.dispatch(
                user.email,
                f"BUY ALERT: {instrument.symbol} (Confidence: {signal.confidence}%)",
                self._email_body(instrument, signal),
            )
        return True

    def _email_body(self, instrument: Instrument, signal: BuySignal) -> str:
        return "\n".join(
            [
                "BUY ALERT",
                "",
                f"Asset: {instrument.name} ({instrument.symbol})",
                f"Asset Class: {instrument.asset_class.value}",
                "Trend: Uptrend (Supertrend)",
                f"RSI: {signal.last_rsi:.2f} (previous {signal.prev_rsi:.2f})",
                "Reason:",
                "- Supertrend is bullish",
                "- RSI rising out of the 40-60 zone",
                "- Price shows bullish momentum" if signal.price_rising else "- Momentum pending",
                "",
                f"Confidence: {signal.confidence}% (Supertrend + RSI + Momentum)",
            ]
        )
