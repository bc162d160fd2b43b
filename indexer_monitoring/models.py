"""Immutable report records produced once per monitoring run."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any


class DiskStatus(str, Enum):
    NORMAL = "normal"
    WARNING = "warning"
    CRITICAL = "critical"


@dataclass(frozen=True)
class ProgressInfo:
    total_units: int
    scanned_units: int
    progress_percent: float
    remaining_units: int

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class TableCount:
    table: str
    count: int

    @classmethod
    def from_row(cls, row: str) -> TableCount:
        """Parse a ``table|count`` row; an unparsable count becomes 0."""
        table, _, count = row.partition("|")
        try:
            parsed = int(count.strip())
        except ValueError:
            parsed = 0
        return cls(table=table.strip() or "unknown", count=parsed)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class DiskSpaceInfo:
    filesystem: str
    size: str
    used: str
    available: str
    used_percent: float
    mountpoint: str
    status: DiskStatus

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["status"] = self.status.value
        return data


@dataclass(frozen=True)
class ProjectSpaceInfo:
    """Advisory breakdown of the deployment's local storage."""
    project_path: str
    total_size: str
    database_size: str
    logs_size: str
    reports_size: str
    other_size: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "project_path": self.project_path,
            "total_size": self.total_size,
            "breakdown": {
                "database": self.database_size,
                "logs": self.logs_size,
                "reports": self.reports_size,
                "other": self.other_size,
            },
        }


@dataclass(frozen=True)
class DiskSpaceSummary:
    system: tuple[DiskSpaceInfo, ...] = ()
    project: ProjectSpaceInfo | None = None
    warnings: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "system": [info.to_dict() for info in self.system],
            "project": self.project.to_dict() if self.project else None,
            "warnings": list(self.warnings),
        }


@dataclass(frozen=True)
class HealthInfo:
    errors: tuple[str, ...] = ()
    last_error_time: str | None = None
    retry_count: int = 0
    is_stuck: bool = False
    stuck_duration: str | None = None

    @property
    def is_healthy(self) -> bool:
        return not self.errors and not self.is_stuck

    def to_dict(self) -> dict[str, Any]:
        return {
            "is_healthy": self.is_healthy,
            "errors": list(self.errors),
            "last_error_time": self.last_error_time,
            "retry_count": self.retry_count,
            "is_stuck": self.is_stuck,
            "stuck_duration": self.stuck_duration,
        }


@dataclass(frozen=True)
class Report:
    """Point-in-time snapshot of the indexing pipeline."""
    timestamp: str
    chain_height: int | None
    indexed_height: int | None
    progress: ProgressInfo | None
    database_size: str
    table_counts: tuple[TableCount, ...]
    container_status: str
    disk_space: DiskSpaceSummary = field(default_factory=DiskSpaceSummary)
    health: HealthInfo = field(default_factory=HealthInfo)

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "chain_height": self.chain_height,
            "indexed_height": self.indexed_height,
            "progress": self.progress.to_dict() if self.progress else None,
            "database_size": self.database_size,
            "table_counts": [entry.to_dict() for entry in self.table_counts],
            "container_status": self.container_status,
            "disk_space": self.disk_space.to_dict(),
            "health": self.health.to_dict(),
        }
