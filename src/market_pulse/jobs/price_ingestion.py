"""Price ingestion job: sample every tracked instrument and flag outliers.

Instruments are grouped by how their class fetches prices (see
``services.asset_classes``): crypto in one batch request, Indian listings
with one detail lookup each, US equities one quote at a time with a fixed
delay between calls. Every resolved price is stored, compared with the
instrument's recent history, and an anomaly raises a user alert.
"""
import asyncio
import logging
from collections import defaultdict
from collections.abc import Awaitable, Callable
from datetime import datetime

from market_pulse.analytics.anomaly import (WINDOW_SIZE, AnomalyVerdict,
                                            detect_anomaly)
from market_pulse.db import (Alert, Anomaly, Instrument, PriceObservation,
                             Store, User)
from market_pulse.providers.core.utils import (normalize_crypto_id,
                                               strip_exchange_suffix)
from market_pulse.schemas import JobReport
from market_pulse.services.asset_classes import PriceFetchMode, profile_for
from market_pulse.services.gateway import MarketDataGateway
from market_pulse.services.notifier import Notifier
from market_pulse.utils import utcnow

logger = logging.getLogger(__name__)

US_EQUITY_DELAY_SECONDS = 0.5


class PriceIngestionJob:
    """Fetch, persist and check prices for all tracked instruments."""

    name = "price_ingestion"

    def __init__(
        self,
        store: Store,
        gateway: MarketDataGateway,
        notifier: Notifier,
        *,
        window_size: int = WINDOW_SIZE,
        throttle_seconds: float = US_EQUITY_DELAY_SECONDS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._store = store
        self._gateway = gateway
        self._notifier = notifier
        self._window_size = window_size
        self._throttle_seconds = throttle_seconds
        self._sleep = sleep
        self._clock = clock

    async def run(self) -> JobReport:
        """Run one ingestion cycle over every instrument of every user."""
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
        groups: dict[PriceFetchMode, list[Instrument]] = defaultdict(list)
        for instrument in instruments:
            profile = profile_for(instrument.asset_class)
            if not self._gateway.supports(profile.price_capability):
                logger.debug(
                    "No price source for %s (%s)", instrument.symbol, profile.asset_class.value
                )
                continue
            groups[profile.fetch_mode].append(instrument)

        priced: list[tuple[Instrument, float]] = []
        priced += await self._fetch_batch(groups[PriceFetchMode.BATCH])
        priced += await self._fetch_detail(groups[PriceFetchMode.DETAIL])
        priced += await self._fetch_throttled(groups[PriceFetchMode.THROTTLED])

        for instrument, price in priced:
            if self.process_price(instrument, users.get(instrument.user_id), price):
                report.flagged += 1
        report.processed = len(priced)
        report.skipped = len(instruments) - len(priced)
        return report

    async def _fetch_batch(self, instruments: list[Instrument]) -> list[tuple[Instrument, float]]:
        """One request for every distinct id in the group."""
        if not instruments:
            return []
        ids = {normalize_crypto_id(i.symbol) for i in instruments}
        prices = await self._gateway.batch_spot_price(ids)
        return [
            (i, prices[normalize_crypto_id(i.symbol)])
            for i in instruments
            if prices.get(normalize_crypto_id(i.symbol))
        ]

    async def _fetch_detail(self, instruments: list[Instrument]) -> list[tuple[Instrument, float]]:
        """One detail lookup per instrument, exchange suffix stripped where the class asks."""
        out: list[tuple[Instrument, float]] = []
        for instrument in instruments:
            symbol = instrument.symbol
            if profile_for(instrument.asset_class).strip_suffix:
                symbol = strip_exchange_suffix(symbol)
            detail = await self._gateway.symbol_detail(symbol)
            if detail is not None and detail.price:
                out.append((instrument, detail.price))
        return out

    async def _fetch_throttled(
        self, instruments: list[Instrument]
    ) -> list[tuple[Instrument, float]]:
        """Sequential single quotes with a fixed delay before each call."""
        out: list[tuple[Instrument, float]] = []
        for instrument in instruments:
            await self._sleep(self._throttle_seconds)
            price = await self._gateway.single_spot_price(instrument.symbol)
            if price:
                out.append((instrument, price))
        return out

    def process_price(self, instrument: Instrument, user: User | None, price: float) -> bool:
        """Persist one observation and raise an anomaly alert if warranted.

        Returns True when an anomaly was recorded.
        """
        observation = self._store.insert(
            PriceObservation(instrument_id=instrument.id, price=price, timestamp=self._clock())
        )
        window = self._store.recent_prices(
            instrument.id, self._window_size, exclude_id=observation.id
        )
        verdict = detect_anomaly(window, price)
        if verdict is None:
            return False

        logger.info("Anomaly detected for %s: %s", instrument.symbol, verdict.severity.value)
        self._record(instrument, user, price, verdict)
        return True

    def _record(
        self,
        instrument: Instrument,
        user: User | None,
        price: float,
        verdict: AnomalyVerdict,
    ) -> None:
        now = self._clock()
        self._store.insert(
            Anomaly(
                instrument_id=instrument.id,
                severity=verdict.severity,
                message=verdict.message,
                price=price,
                timestamp=now,
            )
        )
        self._store.insert(
            Alert(
                user_id=instrument.user_id,
                message=f"{instrument.symbol}: {verdict.message}",
                created_at=now,
            )
        )
        if user is None or not user.is_verified:
            return
        self._notifier.dispatch(
            user.email,
            f"Asset Alert: {instrument.symbol} - {verdict.severity.value}",
            (
                f"At {now:%Y-%m-%d %H:%M} UTC we detected an anomaly:\n\n"
                f"{verdict.message}\n\nCurrent Price: {price}"
            ),
        )
