"""Disk space classification against warning and critical thresholds."""

from __future__ import annotations

from dataclasses import dataclass

import structlog

from ..collectors.base import DirectorySizes
from ..config import DiskMonitoringConfig
from ..models import DiskSpaceInfo, DiskStatus, ProjectSpaceInfo

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class DfRow:
    filesystem: str
    size: str
    used: str
    available: str
    used_percent: float
    mountpoint: str


def parse_df_output(text: str) -> list[DfRow]:
    """Parse ``df -h`` output into rows, skipping the header and malformed lines.

    Mountpoints containing spaces are kept whole.
    """
    rows: list[DfRow] = []
    for line in text.splitlines()[1:]:
        parts = line.split()
        if len(parts) < 6:
            continue
        percent = parts[4].rstrip("%")
        try:
            used_percent = float(percent)
        except ValueError:
            logger.debug("Skipping df line", line=line)
            continue
        rows.append(DfRow(
            filesystem=parts[0],
            size=parts[1],
            used=parts[2],
            available=parts[3],
            used_percent=used_percent,
            mountpoint=" ".join(parts[5:]),
        ))
    return rows


def classify_usage(used_percent: float, warning_threshold: float, critical_threshold: float) -> DiskStatus:
    if used_percent >= critical_threshold:
        return DiskStatus.CRITICAL
    if used_percent >= warning_threshold:
        return DiskStatus.WARNING
    return DiskStatus.NORMAL


def matches_monitored_path(mountpoint: str, check_paths: list[str]) -> bool:
    return any(mountpoint == path or mountpoint.startswith(path) for path in check_paths)


def _format_percent(value: float) -> str:
    return f"{value:g}"


def format_kb(kilobytes: int) -> str:
    """Render a size the way ``du -h`` does (``512K``, ``1.5M``, ``12G``)."""
    size = float(kilobytes)
    unit = "K"
    for unit in ("K", "M", "G", "T"):
        if size < 1024 or unit == "T":
            break
        size /= 1024
    if unit == "K" or size >= 10:
        return f"{size:.0f}{unit}"
    return f"{size:.1f}{unit}"


class DiskEvaluator:
    """Classifies monitored mounts and summarises the project's own storage."""

    def __init__(self, config: DiskMonitoringConfig):
        self.config = config

    def evaluate(self, rows: list[DfRow]) -> tuple[list[DiskSpaceInfo], list[str]]:
        """Classify rows on monitored paths, in observed order.

        Returns the matched mounts and the warning messages emitted for them.
        """
        infos: list[DiskSpaceInfo] = []
        warnings: list[str] = []

        for row in rows:
            if not matches_monitored_path(row.mountpoint, self.config.check_paths):
                continue

            status = classify_usage(
                row.used_percent, self.config.warning_threshold, self.config.critical_threshold
            )
            percent = _format_percent(row.used_percent)
            if status is DiskStatus.CRITICAL:
                warnings.append(f"CRITICAL: disk usage on {row.mountpoint} is {percent}% "
                                f"(critical threshold {_format_percent(self.config.critical_threshold)}%)")
            elif status is DiskStatus.WARNING:
                warnings.append(f"WARNING: disk usage on {row.mountpoint} is {percent}% "
                                f"(warning threshold {_format_percent(self.config.warning_threshold)}%)")

            infos.append(DiskSpaceInfo(
                filesystem=row.filesystem,
                size=row.size,
                used=row.used,
                available=row.available,
                used_percent=row.used_percent,
                mountpoint=row.mountpoint,
                status=status,
            ))

        if warnings:
            logger.warning("Disk space warnings", count=len(warnings))
        return infos, warnings

    def project_space(self, sizes: DirectorySizes) -> ProjectSpaceInfo | None:
        """Breakdown into database, logs, reports and everything else.

        Returns None when the project tree itself could not be measured.
        """
        if sizes.total_kb is None:
            return None

        known = [kb for kb in (sizes.database_kb, sizes.logs_kb, sizes.reports_kb) if kb is not None]
        other_kb = max(sizes.total_kb - sum(known), 0)

        def render(kb: int | None) -> str:
            return format_kb(kb) if kb is not None else "Unknown"

        return ProjectSpaceInfo(
            project_path=sizes.project_path,
            total_size=render(sizes.total_kb),
            database_size=render(sizes.database_kb),
            logs_size=render(sizes.logs_kb),
            reports_size=render(sizes.reports_kb),
            other_size=render(other_kb),
        )
