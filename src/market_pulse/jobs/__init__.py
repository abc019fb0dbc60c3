"""Scheduled pipeline jobs."""
from market_pulse.jobs.backfill import HistoricalBackfill
from market_pulse.jobs.market_scanner import MarketScannerJob
from market_pulse.jobs.price_ingestion import PriceIngestionJob
from market_pulse.jobs.scheduler import PipelineScheduler
from market_pulse.jobs.strategy import StrategyJob

__all__ = [
    "HistoricalBackfill",
    "MarketScannerJob",
    "PipelineScheduler",
    "PriceIngestionJob",
    "StrategyJob",
]
