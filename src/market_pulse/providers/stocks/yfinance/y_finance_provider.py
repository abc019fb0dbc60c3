"""Yahoo Finance market data provider for US/global stocks."""
import asyncio

import yfinance as yf

from market_pulse.providers.core import MarketProviderABC
from market_pulse.providers.core.utils import normalize_stock_symbol


class YFinanceProvider(MarketProviderABC):
    """Single-symbol quotes for US/global stocks via Yahoo Finance.

    Uses the yfinance library; no API key required. yfinance is synchronous,
    so each lookup runs in a worker thread. Only the single spot price
    capability is offered: one network call per symbol, throttled by the
    caller.
    """

    resource_name = "Stock"
    api_name = "Yahoo Finance"

    def _extract_price(self, ticker: yf.Ticker, symbol: str) -> float:
        """Extract last price from ticker; raises if price unavailable."""
        info = getattr(ticker, "fast_info", None)
        if info and (price := info.get("lastPrice") or info.get("regularMarketPrice")):
            return float(price)
        full = ticker.info
        price = full.get("currentPrice") or full.get("regularMarketPrice")
        if price is None:
            raise ValueError(f"Stock '{symbol}' not found or has no price data")
        return float(price)

    def _fetch_price_sync(self, symbol: str) -> float:
        """Fetch a single price synchronously (run in thread)."""
        ticker = yf.Ticker(symbol)
        try:
            return self._extract_price(ticker, symbol)
        except ValueError:
            raise
        except Exception as e:
            raise ValueError(f"Failed to fetch quote for '{symbol}': {e}") from e

    async def single_spot_price(self, symbol: str) -> float:
        """Fetch the current price for a stock symbol."""
        sym = normalize_stock_symbol(symbol)
        return await asyncio.to_thread(self._fetch_price_sync, sym)
