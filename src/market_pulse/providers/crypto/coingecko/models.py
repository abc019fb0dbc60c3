"""Models for CoinGecko provider (API params)."""
from pydantic import BaseModel


class CoinGeckoSimplePriceParams(BaseModel):
    """Params for /simple/price (batch quote). Merge with 'ids' at call site."""

    vs_currencies: str = "usd"


class CoinGeckoMarketsParams(BaseModel):
    """Params for /coins/markets (top by market cap)."""

    vs_currency: str = "usd"
    order: str = "market_cap_desc"
    per_page: int = 50
    page: int = 1
    sparkline: str = "false"
    price_change_percentage: str = "24h"


class CoinGeckoOhlcParams(BaseModel):
    """Params for /coins/{id}/ohlc."""

    vs_currency: str = "usd"
    days: int = 1


class CoinGeckoMarketChartParams(BaseModel):
    """Params for /coins/{id}/market_chart (daily backfill)."""

    vs_currency: str = "usd"
    days: int = 2920
    interval: str = "daily"
