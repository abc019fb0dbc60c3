"""Global market scanner: flag large moves on a fixed watchlist.

Independent of any user's portfolio. Three sub-scans (index constituents,
commodity proxies, top crypto by market cap) run one after another; each
one's failure is logged and does not stop the others. A symbol already
flagged within the dedup window is not flagged again.
"""
import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta

from market_pulse.db import AssetClass, MarketAnomaly, Severity, Store
from market_pulse.providers.core import Capability
from market_pulse.schemas import JobReport
from market_pulse.services.gateway import MarketDataGateway
from market_pulse.utils import utcnow

logger = logging.getLogger(__name__)

INDEX_NAME = "NIFTY 50"
COMMODITY_PROXIES = ("GOLDBEES", "SILVERBEES", "HINDCOPPER", "ONGC")
TOP_CRYPTO_COUNT = 50
CRYPTO_CHANGE_WINDOW = "24h"
DEDUP_WINDOW = timedelta(hours=1)


@dataclass(frozen=True)
class MoveThreshold:
    """Absolute percent move that flags a symbol, and the HIGH cut-off."""

    flag_above: float
    high_above: float

    def severity(self, percent_change: float) -> Severity | None:
        move = abs(percent_change)
        if move <= self.flag_above:
            return None
        return Severity.HIGH if move > self.high_above else Severity.MEDIUM


INDEX_THRESHOLD = MoveThreshold(flag_above=2.0, high_above=4.0)
COMMODITY_THRESHOLD = MoveThreshold(flag_above=1.5, high_above=3.0)
CRYPTO_THRESHOLD = MoveThreshold(flag_above=5.0, high_above=10.0)


class MarketScannerJob:
    """Scan the fixed watchlist and persist deduplicated market anomalies."""

    name = "market_scanner"

    def __init__(
        self,
        store: Store,
        gateway: MarketDataGateway,
        *,
        index_name: str = INDEX_NAME,
        commodity_symbols: tuple[str, ...] = COMMODITY_PROXIES,
        top_crypto_count: int = TOP_CRYPTO_COUNT,
        dedup_window: timedelta = DEDUP_WINDOW,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._store = store
        self._gateway = gateway
        self._index_name = index_name
        self._commodity_symbols = commodity_symbols
        self._top_crypto_count = top_crypto_count
        self._dedup_window = dedup_window
        self._clock = clock

    async def run(self) -> JobReport:
        """Run all three sub-scans; returns how many anomalies were stored."""
        report = JobReport(job=self.name)
        scans = (
            ("index", self.scan_index),
            ("commodities", self.scan_commodities),
            ("crypto", self.scan_crypto),
        )
        for label, scan in scans:
            try:
                report.flagged += await scan()
                report.processed += 1
            except Exception:  # pylint: disable=broad-except
                report.skipped += 1
                logger.exception("Market scan '%s' failed", label)
        return report

    async def scan_index(self) -> int:
        if not self._gateway.supports(Capability.INDEX_CONSTITUENTS):
            return 0
        saved = 0
        for quote in await self._gateway.index_constituents(self._index_name):
            severity = INDEX_THRESHOLD.severity(quote.percent_change)
            if severity is None:
                continue
            saved += self.save_market_anomaly(
                MarketAnomaly(
                    symbol=f"{quote.symbol}.NS",
                    asset_class=AssetClass.EQUITY_IN,
                    price=quote.price,
                    message=f"{quote.symbol} moved {quote.percent_change:.2f}% today.",
                    severity=severity,
                )
            )
        return saved

    async def scan_commodities(self) -> int:
        if not self._gateway.supports(Capability.SYMBOL_DETAIL):
            return 0
        saved = 0
        for symbol in self._commodity_symbols:
            detail = await self._gateway.symbol_detail(symbol)
            if detail is None or detail.percent_change is None:
                continue
            severity = COMMODITY_THRESHOLD.severity(detail.percent_change)
            if severity is None:
                continue
            saved += self.save_market_anomaly(
                MarketAnomaly(
                    symbol=f"{symbol}.NS",
                    asset_class=AssetClass.COMMODITY_PROXY,
                    price=detail.price,
                    message=(
                        f"{symbol} (Commodity Proxy) moved "
                        f"{detail.percent_change:.2f}% today."
                    ),
                    severity=severity,
                )
            )
        return saved

    async def scan_crypto(self) -> int:
        if not self._gateway.supports(Capability.TOP_BY_MARKET_CAP):
            return 0
        saved = 0
        quotes = await self._gateway.top_by_market_cap(
            self._top_crypto_count, CRYPTO_CHANGE_WINDOW
        )
        for quote in quotes:
            severity = CRYPTO_THRESHOLD.severity(quote.percent_change)
            if severity is None:
                continue
            saved += self.save_market_anomaly(
                MarketAnomaly(
                    symbol=quote.symbol.upper(),
                    asset_class=AssetClass.CRYPTO,
                    price=quote.price,
                    message=(
                        f"{quote.name or quote.symbol} moved "
                        f"{quote.percent_change:.2f}% in {CRYPTO_CHANGE_WINDOW}."
                    ),
                    severity=severity,
                )
            )
        return saved

    def save_market_anomaly(self, candidate: MarketAnomaly) -> bool:
        """Insert unless the symbol was already flagged inside the dedup window."""
        now = self._clock()
        existing = self._store.find_first(
            MarketAnomaly,
            MarketAnomaly.symbol == candidate.symbol,
            MarketAnomaly.timestamp > now - self._dedup_window,
        )
        if existing is not None:
            return False
        candidate.timestamp = now
        self._store.insert(candidate)
        logger.info(
            "[MARKET ANOMALY] %s: %s (%s)",
            candidate.symbol,
            candidate.message,
            candidate.severity.value,
        )
        return True
