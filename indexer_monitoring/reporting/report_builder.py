"""Assembles one monitoring report per run."""

from __future__ import annotations

from datetime import datetime
from typing import Callable

import structlog

from ..collectors.base import ErrorLogScan, MetricSource
from ..config import MonitoringConfig
from ..health.disk import DiskEvaluator, parse_df_output
from ..health.progress import calculate_progress
from ..health.stuck import StuckDetector, build_health
from ..models import DiskSpaceSummary, HealthInfo, Report, TableCount
from .writer import ReportWriter

logger = structlog.get_logger(__name__)

UNKNOWN = "Unknown"


class ReportBuilder:
    """Runs every collector in turn, derives health and persists the result.

    Collectors are awaited one after another so the log reads in the order
    metrics were gathered. Collector failures become sentinel values;
    persistence failures propagate to the caller.
    """

    def __init__(
        self,
        config: MonitoringConfig,
        source: MetricSource,
        stuck_detector: StuckDetector,
        writer: ReportWriter,
        clock: Callable[[], datetime],
    ):
        self.config = config
        self.source = source
        self.stuck_detector = stuck_detector
        self.writer = writer
        self.disk_evaluator = DiskEvaluator(config.disk_monitoring)
        self.clock = clock

    async def _disk_space(self) -> DiskSpaceSummary:
        if not self.config.disk_monitoring.enabled:
            return DiskSpaceSummary()

        usage = await self.source.disk_usage()
        system, warnings = self.disk_evaluator.evaluate(parse_df_output(usage.value_or("")))
        project = self.disk_evaluator.project_space(await self.source.directory_sizes())
        return DiskSpaceSummary(system=tuple(system), project=project, warnings=tuple(warnings))

    async def _health(self, indexed_height: int | None) -> HealthInfo:
        scan = (await self.source.error_log()).value_or(ErrorLogScan())
        stuck = self.stuck_detector.check(indexed_height)
        return build_health(scan, stuck)

    async def build(self) -> Report:
        started = self.clock()
        logger.info("Generating monitoring report")

        chain_height = (await self.source.chain_height()).value_or(None)
        indexed_height = (await self.source.indexed_height()).value_or(None)
        database_size = (await self.source.database_size()).value_or(UNKNOWN)
        stats_rows = (await self.source.database_stats()).value_or([])
        container_status = (await self.source.container_status()).value_or(UNKNOWN)

        progress = calculate_progress(chain_height, indexed_height, self.config.chain.start_block)
        disk_space = await self._disk_space()
        health = await self._health(indexed_height)

        report = Report(
            timestamp=started.strftime("%Y-%m-%d %H:%M:%S"),
            chain_height=chain_height,
            indexed_height=indexed_height,
            progress=progress,
            database_size=database_size,
            table_counts=tuple(TableCount.from_row(row) for row in stats_rows),
            container_status=container_status,
            disk_space=disk_space,
            health=health,
        )

        self.writer.write(report, started)
        logger.info(
            "Monitoring report complete",
            chain_height=chain_height,
            indexed_height=indexed_height,
            progress=progress.progress_percent if progress else None,
            healthy=health.is_healthy,
        )
        return report
