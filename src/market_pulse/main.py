"""Main module for the market signal pipeline service."""
import logging
import os
from collections.abc import Callable
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from market_pulse.db import Store
from market_pulse.db.sessions import init_db
from market_pulse.jobs import (HistoricalBackfill, MarketScannerJob,
                               PipelineScheduler, PriceIngestionJob,
                               StrategyJob)
from market_pulse.providers import (CoinGeckoProvider, MarketProviderABC,
                                    NseIndiaProvider, YFinanceProvider)
from market_pulse.routers import alerts_router, assets_router, market_router
from market_pulse.services import MarketDataGateway, Notifier

logger = logging.getLogger(__name__)


def _optional_provider(factory: Callable[[], MarketProviderABC]) -> MarketProviderABC | None:
    """Build a provider; a failed init leaves its capabilities unavailable."""
    try:
        return factory()
    except Exception as exc:  # pylint: disable=broad-except
        logger.warning("Provider %s unavailable: %s", getattr(factory, "__name__", factory), exc)
        return None


def build_pipeline(
    store: Store,
    gateway: MarketDataGateway,
    notifier: Notifier,
) -> PipelineScheduler:
    """Wire the jobs and the scheduler around shared collaborators."""
    return PipelineScheduler(
        price_job=PriceIngestionJob(store, gateway, notifier),
        scanner_job=MarketScannerJob(store, gateway),
        strategy_job=StrategyJob(store, gateway, notifier),
        backfill=HistoricalBackfill(store, gateway),
    )


@asynccontextmanager
async def lifespan(fastapi_app: FastAPI):
    """Create providers, jobs and scheduler at startup; close them on shutdown."""
    init_db()
    store = Store()
    gateway = MarketDataGateway(
        [
            _optional_provider(CoinGeckoProvider),
            _optional_provider(NseIndiaProvider),
            _optional_provider(YFinanceProvider),
        ]
    )
    scheduler = build_pipeline(store, gateway, Notifier())

    fastapi_app.state.store = store
    fastapi_app.state.gateway = gateway
    fastapi_app.state.scheduler = scheduler

    scheduler.start()

    yield

    scheduler.shutdown()
    await gateway.close()


app = FastAPI(
    title="Market Pulse",
    description="Price ingestion, anomaly detection and buy-signal pipeline",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(assets_router)
app.include_router(alerts_router)
app.include_router(market_router)


@app.get("/")
def health():
    """Return health check status."""
    return {"status": "ok"}


def run():
    """Run the server (uvicorn). Entry point for the `start` script."""
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(
        "market_pulse.main:app",
        host=os.getenv("HOST", "127.0.0.1"),
        port=int(os.getenv("PORT", "8000")),
    )
