"""Result types and the collector contract consumed by the report builder."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Generic, Protocol, TypeVar

T = TypeVar("T")


class FailureReason(str, Enum):
    TIMEOUT = "timeout"
    HTTP_STATUS = "http_status"
    TRANSPORT = "transport"
    INVALID_RESPONSE = "invalid_response"
    COMMAND_FAILED = "command_failed"
    BINARY_MISSING = "binary_missing"


@dataclass(frozen=True)
class CollectorFailure:
    reason: FailureReason
    detail: str

    def __str__(self) -> str:
        return f"{self.reason.value}: {self.detail}"


@dataclass(frozen=True)
class CollectorResult(Generic[T]):
    """Either a collected value or the reason collection failed.

    Collectors return this instead of raising, so one broken metric never
    aborts a report run.
    """

    value: T | None = None
    failure: CollectorFailure | None = None

    @classmethod
    def success(cls, value: T) -> CollectorResult[T]:
        return cls(value=value)

    @classmethod
    def failed(cls, reason: FailureReason, detail: str) -> CollectorResult[T]:
        return cls(failure=CollectorFailure(reason=reason, detail=detail))

    @property
    def ok(self) -> bool:
        return self.failure is None

    def value_or(self, default: T) -> T:
        if self.failure is not None or self.value is None:
            return default
        return self.value


@dataclass(frozen=True)
class ErrorLogScan:
    """Outcome of scanning the indexer's recent log output."""
    errors: tuple[str, ...] = ()
    last_error_time: str | None = None
    retry_count: int = 0


@dataclass(frozen=True)
class DirectorySizes:
    """Local storage usage of the deployment, in kilobytes."""
    project_path: str
    total_kb: int | None = None
    database_kb: int | None = None
    logs_kb: int | None = None
    reports_kb: int | None = None


class MetricSource(Protocol):
    """Everything the report builder needs from the outside world."""

    async def chain_height(self) -> CollectorResult[int]: ...

    async def indexed_height(self) -> CollectorResult[int]: ...

    async def database_size(self) -> CollectorResult[str]: ...

    async def database_stats(self) -> CollectorResult[list[str]]: ...

    async def container_status(self) -> CollectorResult[str]: ...

    async def disk_usage(self) -> CollectorResult[str]: ...

    async def directory_sizes(self) -> DirectorySizes: ...

    async def error_log(self) -> CollectorResult[ErrorLogScan]: ...


def parse_log_timestamp(line: str) -> datetime | None:
    """Extract a leading timestamp from a log line, if it has one.

    Handles docker's RFC3339 ``--timestamps`` prefix and graph-node's
    ``May 01 07:00:03.123`` style prefix (which lacks a year; the current year is assumed).
    """
    candidate = line.split(" ", 1)[0]
    if "T" in candidate:
        base = candidate.split(".")[0].rstrip("Z")
        try:
            return datetime.fromisoformat(base)
        except ValueError:
            pass

    head = line[:15]
    try:
        parsed = datetime.strptime(f"{datetime.now().year} {head}", "%Y %b %d %H:%M:%S")
    except ValueError:
        return None
    return parsed
