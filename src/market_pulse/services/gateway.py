"""Market data gateway: one entry point over every configured provider.

Holds raw providers and routes each capability to the first provider that
implements it. Every call resolves provider failures to an explicit empty
value (None / {} / []), so one failing symbol never aborts a batch job.
A capability no provider offers is structurally unavailable: ``supports()``
returns False and calls return the empty value without any network I/O.
"""
import logging
from collections.abc import Iterable

from market_pulse.providers.core import Capability, MarketProviderABC
from market_pulse.providers.core.protocols import CAPABILITY_PROTOCOLS
from market_pulse.schemas import Candle, MoverQuote, PricePoint, SymbolDetail

logger = logging.getLogger(__name__)


class MarketDataGateway:
    """Capability-oriented facade over market data providers."""

    def __init__(self, providers: Iterable[MarketProviderABC | None]) -> None:
        """Route capabilities to providers.

        Args:
            providers: Providers in priority order. ``None`` entries (a
                provider that failed to initialize) are ignored.
        """
        self._providers = [p for p in providers if p is not None]
        self._routes: dict[Capability, MarketProviderABC] = {}
        for capability, protocol in CAPABILITY_PROTOCOLS.items():
            for provider in self._providers:
                if isinstance(provider, protocol):
                    self._routes[capability] = provider
                    break
        logger.info(
            "Gateway capabilities: %s",
            ", ".join(sorted(c.value for c in self._routes)) or "none",
        )

    def supports(self, capability: Capability) -> bool:
        """True when some provider offers the capability."""
        return capability in self._routes

    def _route(self, capability: Capability) -> MarketProviderABC | None:
        provider = self._routes.get(capability)
        if provider is None:
            logger.debug("Capability %s unavailable", capability.value)
        return provider

    async def close(self) -> None:
        """Close all providers. Call from app lifespan shutdown."""
        for p in self._providers:
            try:
                await p.close()
            except Exception as exc:  # pylint: disable=broad-except
                logger.warning("Error closing provider %s: %s", type(p).__name__, exc)

    async def batch_spot_price(self, ids: set[str]) -> dict[str, float]:
        """Prices for many ids in one call; {} on failure."""
        provider = self._route(Capability.BATCH_SPOT_PRICE)
        if provider is None or not ids:
            return {}
        return await provider.fallback.call(provider.batch_spot_price(ids), {})

    async def top_by_market_cap(self, n: int, change_window: str = "24h") -> list[MoverQuote]:
        """Top ``n`` assets by market cap; [] on failure."""
        provider = self._route(Capability.TOP_BY_MARKET_CAP)
        if provider is None:
            return []
        return await provider.fallback.call(
            provider.top_by_market_cap(n, change_window), []
        )

    async def single_spot_price(self, symbol: str) -> float | None:
        """Last price for one symbol; None on failure."""
        provider = self._route(Capability.SINGLE_SPOT_PRICE)
        if provider is None:
            return None
        return await provider.fallback.call(
            provider.single_spot_price(symbol), None, symbol=symbol
        )

    async def index_constituents(self, index_name: str) -> list[MoverQuote]:
        """Constituents of an index; [] on failure."""
        provider = self._route(Capability.INDEX_CONSTITUENTS)
        if provider is None:
            return []
        return await provider.fallback.call(
            provider.index_constituents(index_name), [], symbol=index_name
        )

    async def symbol_detail(self, symbol: str) -> SymbolDetail | None:
        """Price and change for one symbol; None on failure."""
        provider = self._route(Capability.SYMBOL_DETAIL)
        if provider is None:
            return None
        return await provider.fallback.call(
            provider.symbol_detail(symbol), None, symbol=symbol
        )

    async def ohlc_series(self, symbol: str, window_days: int) -> list[Candle]:
        """Recent candles; [] on failure or when no provider has OHLC."""
        provider = self._route(Capability.OHLC_SERIES)
        if provider is None:
            return []
        return await provider.fallback.call(
            provider.ohlc_series(symbol, window_days), [], symbol=symbol
        )

    async def price_history(self, symbol: str, days: int) -> list[PricePoint]:
        """Daily prices over ``days``; [] on failure."""
        provider = self._route(Capability.PRICE_HISTORY)
        if provider is None:
            return []
        return await provider.fallback.call(
            provider.price_history(symbol, days), [], symbol=symbol
        )
