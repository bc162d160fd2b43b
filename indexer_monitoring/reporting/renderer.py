"""Human readable rendering of a monitoring report."""

from __future__ import annotations

from ..models import DiskStatus, Report

STATUS_ICONS = {
    DiskStatus.NORMAL: "OK",
    DiskStatus.WARNING: "WARN",
    DiskStatus.CRITICAL: "CRIT",
}


def _number(value: int | None) -> str:
    return f"{value:,}" if value is not None else "Unknown"


def render_text_report(report: Report) -> str:
    lines = [
        "=== Subgraph Indexer Monitoring Report ===",
        f"Generated: {report.timestamp}",
        "",
        "Block progress:",
        f"  Chain head: {_number(report.chain_height)}",
        f"  Indexed block: {_number(report.indexed_height)}",
    ]

    if report.progress:
        lines += [
            f"  Progress: {report.progress.progress_percent}%",
            f"  Scanned blocks: {_number(report.progress.scanned_units)}",
            f"  Remaining blocks: {_number(report.progress.remaining_units)}",
        ]

    lines += ["", "Database:", f"  Size: {report.database_size}", "", "Table counts:"]
    lines += [f"  {entry.table}: {entry.count:,} rows" for entry in report.table_counts]
    if not report.table_counts:
        lines.append("  (unavailable)")

    lines += ["", "Containers:", report.container_status, ""]

    disk = report.disk_space
    lines.append("Disk space:")
    for info in disk.system:
        lines.append(
            f"  [{STATUS_ICONS[info.status]}] {info.mountpoint} ({info.filesystem}): "
            f"{info.used}/{info.size} used, {info.available} free ({info.used_percent:g}%)"
        )
    if disk.project:
        project = disk.project
        lines += [
            f"  Project {project.project_path}: {project.total_size}",
            f"    database: {project.database_size}, logs: {project.logs_size}, "
            f"reports: {project.reports_size}, other: {project.other_size}",
        ]
    for warning in disk.warnings:
        lines.append(f"  ! {warning}")

    health = report.health
    lines += [
        "",
        "Health:",
        f"  Status: {'healthy' if health.is_healthy else 'unhealthy'}",
        f"  Stuck: {'yes, for ' + health.stuck_duration if health.is_stuck and health.stuck_duration else 'no'}",
        f"  Retries seen: {health.retry_count}",
    ]
    if health.errors:
        lines.append(f"  Recent errors ({len(health.errors)}, last at {health.last_error_time or 'unknown'}):")
        lines += [f"    {error}" for error in health.errors]

    return "\n".join(lines) + "\n"
