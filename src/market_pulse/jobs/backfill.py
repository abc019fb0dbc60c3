"""Historical price backfill for a newly added instrument."""
import logging

from market_pulse.db import Instrument, PriceObservation, Store
from market_pulse.providers.core import Capability
from market_pulse.services.asset_classes import profile_for
from market_pulse.services.gateway import MarketDataGateway

logger = logging.getLogger(__name__)

# Roughly eight years of daily closes.
DEFAULT_LOOKBACK_DAYS = 2920


class HistoricalBackfill:
    """Load daily history for classes with a free history source (crypto)."""

    def __init__(
        self,
        store: Store,
        gateway: MarketDataGateway,
        *,
        days: int = DEFAULT_LOOKBACK_DAYS,
    ) -> None:
        self._store = store
        self._gateway = gateway
        self._days = days

    async def run(self, instrument: Instrument) -> int:
        """Insert historical observations; returns how many. Never raises."""
        if not profile_for(instrument.asset_class).supports_backfill:
            logger.info("Skipping historical data for %s (no free history source)", instrument.symbol)
            return 0
        if not self._gateway.supports(Capability.PRICE_HISTORY):
            return 0

        logger.info("Backfilling %d days of history for %s", self._days, instrument.symbol)
        try:
            points = await self._gateway.price_history(instrument.symbol, self._days)
            if not points:
                logger.info("No historical data found for %s", instrument.symbol)
                return 0
            count = self._store.insert_many(
                PriceObservation(
                    instrument_id=instrument.id,
                    price=p.price,
                    timestamp=p.timestamp,
                )
                for p in points
            )
        except Exception:  # pylint: disable=broad-except
            logger.exception("Historical backfill failed for %s", instrument.symbol)
            return 0
        logger.info("Backfilled %d historical prices for %s", count, instrument.symbol)
        return count
