"""Runs the monitoring report on a cron cadence for a bounded lifetime."""

from __future__ import annotations

import asyncio
import signal
import sys
from datetime import datetime, timedelta
from typing import Any, Awaitable, Callable

import structlog

from ..config import MonitoringConfig
from ..errors import PersistenceError
from .job_scheduler import JobScheduler

logger = structlog.get_logger(__name__)

JOB_ID = "indexer_monitoring_report"


class MonitoringScheduler:
    """Single-flight scheduler for the monitoring report.

    A tick that fires while a run is still in flight is skipped, not queued.
    One run happens immediately at startup. Once a run completes after the
    configured lifetime has elapsed, the scheduler stops and no further ticks run.
    An interrupt stops everything at once; an in-flight run is abandoned.
    """

    def __init__(
        self,
        config: MonitoringConfig,
        run_report: Callable[[], Awaitable[Any]],
        clock: Callable[[], datetime],
        job_scheduler: JobScheduler | None = None,
    ):
        self.config = config
        self.run_report = run_report
        self.clock = clock
        self.job_scheduler = job_scheduler or JobScheduler(config.tz)

        self.start_time = clock()
        days = config.schedule.monitor_days
        self.end_time: datetime | None = self.start_time + timedelta(days=days) if days > 0 else None

        self.in_flight = False
        self.expired = False
        self._stop_event = asyncio.Event()
        self._startup_task: asyncio.Task | None = None

    def lifetime_expired(self) -> bool:
        return self.end_time is not None and self.clock() > self.end_time

    async def run_once(self, trigger: str = "cron") -> bool:
        """Execute one report run unless another is in flight.

        Returns False when the run was skipped. Failures are logged and
        swallowed so the next tick can try again.
        """
        if self.in_flight:
            logger.warning("Previous monitoring run still in progress, skipping", trigger=trigger)
            return False

        self.in_flight = True
        try:
            logger.info("Starting monitoring run", trigger=trigger)
            await self.run_report()
            logger.info("Monitoring run complete", trigger=trigger)

            if self.lifetime_expired():
                self.expired = True
                self.request_stop()
                logger.info("Monitoring lifetime reached, scheduler stopped",
                            monitor_days=self.config.schedule.monitor_days)
        except Exception as e:
            self._report_failure(trigger, e)
        finally:
            self.in_flight = False
        return True

    def _report_failure(self, trigger: str, error: Exception) -> None:
        try:
            logger.error("Monitoring run failed", trigger=trigger, error=str(error), exc_info=True)
        except PersistenceError as log_error:
            # Day log unwritable; the console is all that is left.
            print(f"Monitoring run failed ({trigger}): {error} [{log_error}]", file=sys.stderr)

    async def _tick(self) -> None:
        await self.run_once("cron")

    def start(self) -> None:
        """Register the cron job and kick off the startup run."""
        schedule = self.config.schedule
        logger.info("Starting monitoring scheduler",
                    start=self.start_time.strftime("%Y-%m-%d %H:%M:%S"),
                    end=self.end_time.strftime("%Y-%m-%d %H:%M:%S") if self.end_time else "never",
                    monitor_days=schedule.monitor_days,
                    cron=schedule.cron,
                    timezone=schedule.timezone)

        # The in-flight flag does the overlap check; APScheduler must let the tick through to reach it.
        self.job_scheduler.add_cron_job(
            job_id=JOB_ID,
            func=self._tick,
            cron_expression=schedule.cron,
            description="Indexer monitoring report",
            max_instances=2
        )
        self.job_scheduler.start()
        logger.info("Scheduler waiting for cron ticks", next_run=str(self.job_scheduler.next_run_time()))

        self._startup_task = asyncio.create_task(self.run_once("startup"))

    def request_stop(self) -> None:
        self._stop_event.set()
        self.job_scheduler.stop()

    def install_signal_handlers(self) -> None:
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, self._on_signal, sig)

    def _on_signal(self, sig: signal.Signals) -> None:
        logger.info("Received signal, stopping scheduler", signal=sig.name, run_in_flight=self.in_flight)
        self.request_stop()
        if self._startup_task is not None and not self._startup_task.done():
            self._startup_task.cancel()

    async def wait_stopped(self) -> None:
        await self._stop_event.wait()

    async def run_forever(self) -> bool:
        """Run until the lifetime expires or a stop is requested.

        Returns True when the scheduler ended because its lifetime expired.
        """
        self.start()
        await self.wait_stopped()
        return self.expired
