"""CoinGecko market data provider for cryptocurrencies."""
import os

import httpx

from market_pulse.providers.core import MarketProviderABC
from market_pulse.providers.core.utils import normalize_crypto_id
from market_pulse.providers.crypto.coingecko.models import (
    CoinGeckoMarketChartParams, CoinGeckoMarketsParams, CoinGeckoOhlcParams,
    CoinGeckoSimplePriceParams)
from market_pulse.schemas import Candle, MoverQuote, PricePoint
from market_pulse.utils import parse_timestamp_ms


class CoinGeckoProvider(MarketProviderABC):
    """Market data provider for cryptocurrencies via CoinGecko API.

    Uses CoinGecko IDs as symbols (e.g., "bitcoin", "ethereum", "solana").
    See https://api.coingecko.com/api/v3/coins/list for all available IDs.

    Capabilities: batch spot price, top by market cap, OHLC series and
    daily price history.
    """

    BASE_URL = "https://api.coingecko.com/api/v3"
    PRO_BASE_URL = "https://pro-api.coingecko.com/api/v3"

    resource_name = "Coin"
    api_name = "CoinGecko"

    def __init__(
        self,
        api_key: str | None = None,
        use_pro_api: bool = False,
        timeout: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the CoinGecko provider.

        Args:
            api_key: CoinGecko API key. Defaults to COINGECKO_API_KEY env var.
            use_pro_api: Whether to use the Pro API endpoint.
            timeout: Per-request timeout in seconds.
            transport: Optional httpx transport (tests inject a MockTransport).
        """
        super().__init__()
        self._api_key = api_key or os.getenv("COINGECKO_API_KEY")
        self._use_pro_api = use_pro_api or bool(self._api_key)

        headers: dict[str, str] = {"Accept": "application/json"}
        if self._api_key:
            headers["x-cg-pro-api-key"] = self._api_key

        base = self.PRO_BASE_URL if self._use_pro_api else self.BASE_URL
        self._client = httpx.AsyncClient(
            base_url=base, headers=headers, timeout=timeout, transport=transport
        )

    async def batch_spot_price(self, ids: set[str]) -> dict[str, float]:
        """Fetch USD prices for many coins in one request.

        Args:
            ids: CoinGecko IDs (any case).

        Returns:
            {coin_id: price} for every id the API priced; unknown ids are omitted.
        """
        coin_ids = sorted({normalize_crypto_id(i) for i in ids})
        if not coin_ids:
            return {}
        params = CoinGeckoSimplePriceParams().model_dump() | {"ids": ",".join(coin_ids)}
        response = await self._client.get("/simple/price", params=params)
        response.raise_for_status()
        data = response.json()

        prices: dict[str, float] = {}
        for cid in coin_ids:
            row = data.get(cid) or {}
            if row.get("usd"):
                prices[cid] = float(row["usd"])
        return prices

    async def top_by_market_cap(self, n: int, change_window: str = "24h") -> list[MoverQuote]:
        """Fetch the top ``n`` coins by market cap with their price change."""
        params = CoinGeckoMarketsParams(
            per_page=n, price_change_percentage=change_window
        ).model_dump()
        response = await self._client.get("/coins/markets", params=params)
        response.raise_for_status()
        field = f"price_change_percentage_{change_window}"
        quotes: list[MoverQuote] = []
        for item in response.json():
            change = item.get(field)
            if change is None:
                change = item.get(f"{field}_in_currency")
            if change is None or item.get("current_price") is None:
                continue
            quotes.append(
                MoverQuote(
                    symbol=str(item["symbol"]).upper(),
                    name=item.get("name"),
                    price=float(item["current_price"]),
                    percent_change=float(change),
                )
            )
        return quotes

    async def ohlc_series(self, symbol: str, window_days: int = 2) -> list[Candle]:
        """Fetch OHLC candles (30-minute bars for windows of 1-2 days).

        Args:
            symbol: CoinGecko ID.
            window_days: Lookback in days; granularity is chosen by the API.

        Returns:
            Candles ordered by timestamp.
        """
        coin_id = normalize_crypto_id(symbol)
        params = CoinGeckoOhlcParams(days=window_days).model_dump()
        response = await self._client.get(f"/coins/{coin_id}/ohlc", params=params)
        response.raise_for_status()
        return [
            Candle(
                timestamp=parse_timestamp_ms(row[0]),
                open=float(row[1]),
                high=float(row[2]),
                low=float(row[3]),
                close=float(row[4]),
            )
            for row in response.json()
        ]

    async def price_history(self, symbol: str, days: int = 2920) -> list[PricePoint]:
        """Fetch daily closing prices for the last ``days`` days."""
        coin_id = normalize_crypto_id(symbol)
        params = CoinGeckoMarketChartParams(days=days).model_dump()
        response = await self._client.get(f"/coins/{coin_id}/market_chart", params=params)
        response.raise_for_status()
        return [
            PricePoint(price=float(price), timestamp=parse_timestamp_ms(ts_ms))
            for ts_ms, price in (p[:2] for p in response.json().get("prices", []))
            if price is not None
        ]

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()
