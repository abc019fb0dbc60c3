"""Pipeline scheduler using APScheduler with async support.

Cadence: price ingestion every minute, market scanner every 5 minutes
(plus once at start), strategy every 30 minutes. Each job is registered
with ``max_instances=1``: a tick that fires while the previous run of the
same job is still going is skipped, and the next tick retries.
"""
import asyncio
import logging
import os
from collections.abc import Coroutine
from datetime import datetime, timezone
from typing import Any, Protocol

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from market_pulse.db import Instrument
from market_pulse.jobs.backfill import HistoricalBackfill
from market_pulse.schemas import JobReport

logger = logging.getLogger(__name__)

PRICE_INGESTION_CRON = "*/1 * * * *"
MARKET_SCANNER_CRON = "*/5 * * * *"
STRATEGY_CRON = "*/30 * * * *"


class Job(Protocol):
    """Anything with a name and an async run() producing a JobReport."""

    name: str

    async def run(self) -> JobReport: ...


class PipelineScheduler:
    """Timer state for the three periodic jobs plus out-of-band triggers."""

    def __init__(
        self,
        price_job: Job,
        scanner_job: Job,
        strategy_job: Job,
        backfill: HistoricalBackfill,
        *,
        scheduler: AsyncIOScheduler | None = None,
    ) -> None:
        self._price_job = price_job
        self._scanner_job = scanner_job
        self._strategy_job = strategy_job
        self._backfill = backfill
        self._scheduler = scheduler or AsyncIOScheduler(
            timezone="UTC",
            job_defaults={
                "coalesce": True,  # Combine missed runs into one
                "max_instances": 1,  # Only one instance per job at a time
                "misfire_grace_time": 60,
            },
        )
        self._tasks: set[asyncio.Task] = set()
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    def start(self) -> None:
        """Register the periodic jobs and start the scheduler."""
        if self._running:
            logger.warning("Scheduler already running")
            return
        if os.getenv("SCHEDULER_ENABLED", "1").lower() in ("0", "false", "no"):
            logger.info("Scheduler disabled via SCHEDULER_ENABLED")
            return

        self._add(self._price_job, PRICE_INGESTION_CRON)
        self._add(
            self._scanner_job,
            MARKET_SCANNER_CRON,
            next_run_time=datetime.now(timezone.utc),
        )
        self._add(self._strategy_job, STRATEGY_CRON)
        self._scheduler.start()
        self._running = True
        logger.info(
            "Services started: %s(1m), %s(5m), %s(30m)",
            self._price_job.name,
            self._scanner_job.name,
            self._strategy_job.name,
        )

    def _add(self, job: Job, crontab: str, **kwargs: Any) -> None:
        self._scheduler.add_job(
            self.run_job,
            trigger=CronTrigger.from_crontab(crontab, timezone="UTC"),
            args=[job],
            id=job.name,
            name=job.name,
            replace_existing=True,
            **kwargs,
        )

    def shutdown(self) -> None:
        """Stop the scheduler and cancel pending background tasks."""
        if self._running:
            self._scheduler.shutdown(wait=False)
            self._running = False
            logger.info("Scheduler stopped")
        for task in list(self._tasks):
            task.cancel()

    async def run_job(self, job: Job) -> JobReport | None:
        """Run one job; failures are logged and never reach the scheduler."""
        logger.info("Job %s started", job.name)
        try:
            report = await job.run()
        except Exception:  # pylint: disable=broad-except
            logger.exception("Job %s failed", job.name)
            return None
        logger.info(
            "Job %s finished: processed=%d skipped=%d flagged=%d",
            job.name,
            report.processed,
            report.skipped,
            report.flagged,
        )
        return report

    def _spawn(self, coro: Coroutine[Any, Any, Any]) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def trigger_price_ingestion(self) -> asyncio.Task:
        """Start an immediate, out-of-cycle price ingestion run."""
        return self._spawn(self.run_job(self._price_job))

    def spawn_backfill(self, instrument: Instrument) -> asyncio.Task:
        """Start a historical backfill for ``instrument`` in the background."""
        return self._spawn(self._backfill.run(instrument))
