"""Cron job scheduling on top of APScheduler."""

from datetime import datetime
from typing import Any, Callable, Dict, Optional
from zoneinfo import ZoneInfo

import structlog
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

logger = structlog.get_logger(__name__)


_CRON_WEEKDAYS = ("sun", "mon", "tue", "wed", "thu", "fri", "sat")


def cron_day_of_week(field: str) -> str:
    """Rewrite a cron day-of-week field as weekday names.

    Cron counts Sunday as 0 (or 7) while APScheduler counts Monday as 0, so
    numeric values, ranges and steps are expanded to names. Named entries and
    ``*`` are already read the same way by both and pass through.
    """
    if field == "*":
        return field

    days: list[str] = []
    for token in field.split(","):
        if any(c.isalpha() for c in token):
            days.append(token)
            continue

        span, _, step = token.partition("/")
        if span == "*":
            first, last = 0, 6
        elif "-" in span:
            first, last = (int(part) for part in span.split("-", 1))
        else:
            first = int(span)
            last = 7 if step else first
        if not 0 <= first <= last <= 7:
            raise ValueError(f"Invalid day of week: {token}")

        for day in range(first, last + 1, int(step) if step else 1):
            name = _CRON_WEEKDAYS[day % 7]
            if name not in days:
                days.append(name)
    return ",".join(days)


def parse_cron(cron_expression: str, timezone: ZoneInfo) -> CronTrigger:
    """Build a trigger from a five-field ``minute hour day month day_of_week`` expression."""
    cron_parts = cron_expression.split()
    if len(cron_parts) != 5:
        raise ValueError(f"Invalid cron expression: {cron_expression}")

    return CronTrigger(
        minute=cron_parts[0],
        hour=cron_parts[1],
        day=cron_parts[2],
        month=cron_parts[3],
        day_of_week=cron_day_of_week(cron_parts[4]),
        timezone=timezone
    )


class JobScheduler:
    """Manages scheduled jobs using APScheduler."""

    def __init__(self, timezone: ZoneInfo):
        self.timezone = timezone
        self.scheduler = AsyncIOScheduler(timezone=timezone)
        self.jobs: Dict[str, Any] = {}
        self.running = False

    def start(self):
        """Start the job scheduler. Must be called from inside the running event loop."""
        if self.running:
            logger.warning("Scheduler already running")
            return

        self.scheduler.start()
        self.running = True
        logger.info("Job scheduler started")

    def stop(self):
        """Stop the scheduler without waiting for running jobs."""
        if not self.running:
            return

        self.scheduler.shutdown(wait=False)
        self.running = False
        logger.info("Job scheduler stopped")

    def add_cron_job(
        self,
        job_id: str,
        func: Callable,
        cron_expression: str,
        description: Optional[str] = None,
        max_instances: int = 1
    ):
        """Add a cron-scheduled job."""
        if job_id in self.jobs:
            logger.warning("Job already exists, replacing", job_id=job_id)
            self.scheduler.remove_job(job_id)

        job = self.scheduler.add_job(
            func=func,
            trigger=parse_cron(cron_expression, self.timezone),
            id=job_id,
            name=description or job_id,
            max_instances=max_instances,
            coalesce=True
        )

        self.jobs[job_id] = {
            "job": job,
            "expression": cron_expression,
            "description": description,
            "added_at": datetime.now(self.timezone)
        }

        logger.info("Added cron job",
                    job_id=job_id,
                    cron=cron_expression,
                    description=description)

    def next_run_time(self) -> Optional[datetime]:
        return min(
            (job.next_run_time for job in self.scheduler.get_jobs() if job.next_run_time),
            default=None
        )
