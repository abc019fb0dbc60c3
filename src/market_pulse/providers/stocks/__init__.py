"""Stock market data providers."""
from market_pulse.providers.stocks.nse import NseIndiaProvider
from market_pulse.providers.stocks.yfinance.y_finance_provider import \
    YFinanceProvider

__all__ = ["NseIndiaProvider", "YFinanceProvider"]
