"""NSE India provider."""
from market_pulse.providers.stocks.nse.nse_provider import NseIndiaProvider

__all__ = ["NseIndiaProvider"]
