"""Wiring of collectors, health checks and report persistence for one run."""

from __future__ import annotations

from datetime import datetime
from typing import Callable

from .collectors.base import MetricSource
from .collectors.indexer import IndexerCollectors
from .config import MonitoringConfig
from .health.stuck import FileCheckpointStore, StuckDetector
from .models import Report
from .reporting.report_builder import ReportBuilder
from .reporting.writer import ReportWriter

Clock = Callable[[], datetime]


def make_clock(config: MonitoringConfig) -> Clock:
    """Wall clock in the configured timezone."""
    tz = config.tz
    return lambda: datetime.now(tz)


def create_report_builder(config: MonitoringConfig, source: MetricSource, clock: Clock) -> ReportBuilder:
    return ReportBuilder(
        config=config,
        source=source,
        stuck_detector=StuckDetector(FileCheckpointStore(config.checkpoint_file), clock),
        writer=ReportWriter(config.reports_directory),
        clock=clock,
    )


async def generate_report(config: MonitoringConfig, clock: Clock) -> Report:
    async with IndexerCollectors(config) as source:
        return await create_report_builder(config, source, clock).build()
