"""In-memory provider doubles and helpers shared by the tests."""
from datetime import datetime, timedelta

from market_pulse.providers.core import MarketProviderABC
from market_pulse.schemas import Candle, MoverQuote, PricePoint, SymbolDetail


class FakeClock:
    """Callable clock that tests can move forward."""

    def __init__(self, now: datetime | None = None) -> None:
        self.now = now or datetime(2026, 1, 5, 12, 0, 0)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


class FakeCryptoProvider(MarketProviderABC):
    resource_name = "Coin"
    api_name = "FakeCrypto"

    def __init__(
        self,
        prices: dict[str, float] | None = None,
        movers: list[MoverQuote] | None = None,
        candles: list[Candle] | None = None,
        history: list[PricePoint] | None = None,
        error: Exception | None = None,
    ) -> None:
        super().__init__()
        self.prices = prices or {}
        self.movers = movers or []
        self.candles = candles or []
        self.history = history or []
        self.error = error
        self.calls: list[tuple] = []

    def _maybe_raise(self) -> None:
        if self.error is not None:
            raise self.error

    async def batch_spot_price(self, ids: set[str]) -> dict[str, float]:
        self.calls.append(("batch_spot_price", frozenset(ids)))
        self._maybe_raise()
        return {i: self.prices[i] for i in ids if i in self.prices}

    async def top_by_market_cap(self, n: int, change_window: str = "24h") -> list[MoverQuote]:
        self.calls.append(("top_by_market_cap", n, change_window))
        self._maybe_raise()
        return self.movers[:n]

    async def ohlc_series(self, symbol: str, window_days: int) -> list[Candle]:
        self.calls.append(("ohlc_series", symbol, window_days))
        self._maybe_raise()
        return self.candles

    async def price_history(self, symbol: str, days: int) -> list[PricePoint]:
        self.calls.append(("price_history", symbol, days))
        self._maybe_raise()
        return self.history


class FakeNseProvider(MarketProviderABC):
    resource_name = "NSE symbol"
    api_name = "FakeNSE"

    def __init__(
        self,
        constituents: list[MoverQuote] | None = None,
        details: dict[str, SymbolDetail] | None = None,
        index_error: Exception | None = None,
    ) -> None:
        super().__init__()
        self.constituents = constituents or []
        self.details = details or {}
        self.index_error = index_error
        self.calls: list[tuple] = []

    async def index_constituents(self, index_name: str) -> list[MoverQuote]:
        self.calls.append(("index_constituents", index_name))
        if self.index_error is not None:
            raise self.index_error
        return self.constituents

    async def symbol_detail(self, symbol: str) -> SymbolDetail:
        self.calls.append(("symbol_detail", symbol))
        if symbol not in self.details:
            raise ValueError(f"NSE symbol '{symbol}' not found")
        return self.details[symbol]


class FakeUsEquityProvider(MarketProviderABC):
    resource_name = "Stock"
    api_name = "FakeStocks"

    def __init__(self, prices: dict[str, float] | None = None) -> None:
        super().__init__()
        self.prices = prices or {}
        self.calls: list[str] = []

    async def single_spot_price(self, symbol: str) -> float:
        self.calls.append(symbol)
        if symbol not in self.prices:
            raise ValueError(f"Stock '{symbol}' not found or has no price data")
        return self.prices[symbol]


def rising_candles(count: int, start: float = 100.0, step: float = 1.0) -> list[Candle]:
    """Strictly rising candles that close near their high."""
    t0 = datetime(2026, 1, 1)
    candles = []
    for i in range(count):
        close = start + step * i
        candles.append(
            Candle(
                open=close - step * 0.5,
                high=close + 0.2,
                low=close - step * 0.8,
                close=close,
                timestamp=t0 + timedelta(minutes=30 * i),
            )
        )
    return candles


def zigzag_candles(count: int = 60) -> list[Candle]:
    """Closes alternating 100 / 101, ending on an up candle when ``count`` is even.

    Equal up and down steps keep Wilder RSI oscillating just around 50: at
    or below it after a down candle, above it after an up candle. Every bar
    spans 99.75-101.25, so ATR is 1.5 and the Supertrend lower band sits at
    96, under every close.
    """
    t0 = datetime(2026, 1, 1)
    candles = []
    prev_close = 100.0
    for i in range(count):
        close = 100.0 if i % 2 == 0 else 101.0
        candles.append(
            Candle(
                open=prev_close,
                high=101.25,
                low=99.75,
                close=close,
                timestamp=t0 + timedelta(minutes=30 * i),
            )
        )
        prev_close = close
    return candles
