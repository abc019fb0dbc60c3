"""Market data providers for crypto, US equities and Indian equities.

- CoinGeckoProvider: batch quotes, top by market cap, OHLC and daily history
- YFinanceProvider: single-symbol quotes for US/global stocks
- NseIndiaProvider: NSE index constituents and single-symbol details

Each provider implements a subset of the capability protocols in
``providers.core.protocols``; the gateway routes calls by capability.

Example:
    async with CoinGeckoProvider() as provider:
        prices = await provider.batch_spot_price({"bitcoin", "ethereum"})
"""
from market_pulse.providers.core import Capability, MarketProviderABC
from market_pulse.providers.crypto import CoinGeckoProvider
from market_pulse.providers.stocks import NseIndiaProvider, YFinanceProvider

__all__ = [
    "Capability",
    "CoinGeckoProvider",
    "MarketProviderABC",
    "NseIndiaProvider",
    "YFinanceProvider",
]
