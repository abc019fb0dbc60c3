"""NSE India market data provider for domestic equities and commodity ETFs."""
import asyncio
import logging

import httpx

from market_pulse.providers.core import MarketProviderABC
from market_pulse.providers.core.utils import strip_exchange_suffix
from market_pulse.providers.stocks.nse.models import (NseIndexParams,
                                                      NseIndexRow,
                                                      NsePriceInfo,
                                                      NseQuoteParams)
from market_pulse.schemas import MoverQuote, SymbolDetail

logger = logging.getLogger(__name__)


class NseIndiaProvider(MarketProviderABC):
    """Index snapshots and single-symbol details from nseindia.com.

    The public JSON API only answers requests that carry the cookies set by
    the HTML home page, so the first call primes the session. Symbols are
    accepted with or without an exchange suffix (RELIANCE.NS -> RELIANCE).

    Capabilities: index constituents and symbol detail. NSE offers no free
    historical candles, so OHLC is not implemented.
    """

    BASE_URL = "https://www.nseindia.com"
    _HEADERS = {
        "User-Agent": (
            "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
            "(KHTML, like Gecko) Chrome/124.0 Safari/537.36"
        ),
        "Accept": "application/json,text/html;q=0.9,*/*;q=0.8",
        "Accept-Language": "en-US,en;q=0.9",
    }

    resource_name = "NSE symbol"
    api_name = "NSE India"

    def __init__(
        self,
        timeout: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the NSE provider.

        Args:
            timeout: Per-request timeout in seconds.
            transport: Optional httpx transport (tests inject a MockTransport).
        """
        super().__init__()
        self._client = httpx.AsyncClient(
            base_url=self.BASE_URL,
            headers=self._HEADERS,
            timeout=timeout,
            transport=transport,
            follow_redirects=True,
        )
        self._primed = False
        self._prime_lock = asyncio.Lock()

    async def _ensure_session(self) -> None:
        """Fetch the home page once so the API accepts our requests."""
        if self._primed:
            return
        async with self._prime_lock:
            if self._primed:
                return
            response = await self._client.get("/")
            response.raise_for_status()
            self._primed = True
            logger.debug("NSE session primed (%d cookies)", len(self._client.cookies))

    async def _get_json(self, path: str, params: dict) -> dict:
        await self._ensure_session()
        response = await self._client.get(path, params=params)
        if response.status_code in (401, 403):
            # Cookies expired; prime again on the next call.
            self._primed = False
        response.raise_for_status()
        return response.json()

    async def index_constituents(self, index_name: str = "NIFTY 50") -> list[MoverQuote]:
        """Fetch every constituent of an index with last price and day change.

        The index itself is reported as the first row by NSE; it is dropped.
        """
        data = await self._get_json(
            "/api/equity-stockIndices", NseIndexParams(index=index_name).model_dump()
        )
        quotes: list[MoverQuote] = []
        for raw in data.get("data", []):
            row = NseIndexRow.model_validate(raw)
            if row.symbol == index_name or row.last_price is None or row.p_change is None:
                continue
            quotes.append(
                MoverQuote(
                    symbol=row.symbol,
                    price=row.last_price,
                    percent_change=row.p_change,
                )
            )
        return quotes

    async def symbol_detail(self, symbol: str) -> SymbolDetail:
        """Fetch last price and day change for one NSE symbol."""
        sym = strip_exchange_suffix(symbol)
        data = await self._get_json(
            "/api/quote-equity", NseQuoteParams(symbol=sym).model_dump()
        )
        info = NsePriceInfo.model_validate(data.get("priceInfo") or {})
        if not info.last_price:
            raise ValueError(f"NSE symbol '{sym}' not found or has no price data")
        return SymbolDetail(symbol=sym, price=info.last_price, percent_change=info.p_change)

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()
