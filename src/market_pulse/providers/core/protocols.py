"""Capability protocols for market data providers.

Each concrete provider implements a subset. The gateway discovers which
capabilities a provider offers with isinstance() checks against these
runtime-checkable protocols, so callers never depend on a concrete class.
"""
from enum import Enum
from typing import Protocol, runtime_checkable

from market_pulse.schemas import Candle, MoverQuote, PricePoint, SymbolDetail


class Capability(str, Enum):
    """Named gateway operations."""

    BATCH_SPOT_PRICE = "batch_spot_price"
    TOP_BY_MARKET_CAP = "top_by_market_cap"
    SINGLE_SPOT_PRICE = "single_spot_price"
    INDEX_CONSTITUENTS = "index_constituents"
    SYMBOL_DETAIL = "symbol_detail"
    OHLC_SERIES = "ohlc_series"
    PRICE_HISTORY = "price_history"


@runtime_checkable
class BatchSpotPriceProvider(Protocol):
    """Multi-symbol quote in one request (crypto)."""

    async def batch_spot_price(self, ids: set[str]) -> dict[str, float]:
        """Return {id: price}; ids with no price are left out."""
        ...


@runtime_checkable
class TopByMarketCapProvider(Protocol):
    """Largest assets by market cap with their change over a window."""

    async def top_by_market_cap(self, n: int, change_window: str) -> list[MoverQuote]:
        ...


@runtime_checkable
class SingleSpotPriceProvider(Protocol):
    """One network call per symbol (US/global equities)."""

    async def single_spot_price(self, symbol: str) -> float:
        """Return the last price; raise ValueError if unavailable."""
        ...


@runtime_checkable
class IndexConstituentsProvider(Protocol):
    """Snapshot of every constituent of an equity index."""

    async def index_constituents(self, index_name: str) -> list[MoverQuote]:
        ...


@runtime_checkable
class SymbolDetailProvider(Protocol):
    """Price and day change for one symbol outside an index snapshot."""

    async def symbol_detail(self, symbol: str) -> SymbolDetail:
        """Return the detail; raise ValueError if unavailable."""
        ...


@runtime_checkable
class OhlcSeriesProvider(Protocol):
    """Recent OHLC candles."""

    async def ohlc_series(self, symbol: str, window_days: int) -> list[Candle]:
        ...


@runtime_checkable
class PriceHistoryProvider(Protocol):
    """Daily closing prices over a lookback window."""

    async def price_history(self, symbol: str, days: int) -> list[PricePoint]:
        ...


CAPABILITY_PROTOCOLS: dict[Capability, type] = {
    Capability.BATCH_SPOT_PRICE: BatchSpotPriceProvider,
    Capability.TOP_BY_MARKET_CAP: TopByMarketCapProvider,
    Capability.SINGLE_SPOT_PRICE: SingleSpotPriceProvider,
    Capability.INDEX_CONSTITUENTS: IndexConstituentsProvider,
    Capability.SYMBOL_DETAIL: SymbolDetailProvider,
    Capability.OHLC_SERIES: OhlcSeriesProvider,
    Capability.PRICE_HISTORY: PriceHistoryProvider,
}
