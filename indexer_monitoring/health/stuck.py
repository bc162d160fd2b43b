"""No-progress detection backed by a persisted checkpoint."""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Callable, Protocol

import structlog

from ..collectors.base import ErrorLogScan
from ..errors import PersistenceError
from ..models import HealthInfo

logger = structlog.get_logger(__name__)

STUCK_THRESHOLD = timedelta(hours=1)


@dataclass(frozen=True)
class Checkpoint:
    last_indexed_height: int | None
    last_observed_at: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "last_indexed_height": self.last_indexed_height,
            "last_observed_at": self.last_observed_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Checkpoint:
        height = data.get("last_indexed_height")
        return cls(
            last_indexed_height=int(height) if height is not None else None,
            last_observed_at=datetime.fromisoformat(str(data["last_observed_at"])),
        )


class CheckpointStore(Protocol):
    def load(self) -> Checkpoint | None: ...

    def save(self, checkpoint: Checkpoint) -> None: ...


class MemoryCheckpointStore:
    def __init__(self, checkpoint: Checkpoint | None = None):
        self.checkpoint = checkpoint

    def load(self) -> Checkpoint | None:
        return self.checkpoint

    def save(self, checkpoint: Checkpoint) -> None:
        self.checkpoint = checkpoint


class FileCheckpointStore:
    """Single JSON record, overwritten on every save."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def load(self) -> Checkpoint | None:
        if not self.path.exists():
            return None
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            return Checkpoint.from_dict(data)
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.warning("Ignoring unreadable checkpoint", path=str(self.path), error=str(e))
            return None

    def save(self, checkpoint: Checkpoint) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(checkpoint.to_dict(), indent=2), encoding="utf-8")
        except OSError as e:
            raise PersistenceError(f"Cannot write checkpoint {self.path}: {e}") from e


@dataclass(frozen=True)
class StuckStatus:
    is_stuck: bool
    stuck_duration: str | None = None


def format_duration(elapsed: timedelta) -> str:
    total_minutes = int(elapsed.total_seconds() // 60)
    hours, minutes = divmod(total_minutes, 60)
    return f"{hours}h{minutes}m"


class StuckDetector:
    """Flags an indexer whose height did not move between two checks an hour or more apart.

    The checkpoint is replaced on every call, whatever the outcome. A check
    that lands less than an hour after the previous one therefore restarts the
    window, so with a cadence under an hour the detector only fires when two
    consecutive checks happen to be an hour apart.
    """

    def __init__(
        self,
        store: CheckpointStore,
        clock: Callable[[], datetime],
        threshold: timedelta = STUCK_THRESHOLD,
    ):
        self.store = store
        self.clock = clock
        self.threshold = threshold

    def check(self, current_height: int | None) -> StuckStatus:
        now = self.clock()
        previous = self.store.load()

        status = StuckStatus(is_stuck=False)
        if previous is None:
            logger.info("No checkpoint yet, starting stuck detection", height=current_height)
        elif current_height == previous.last_indexed_height:
            elapsed = now - previous.last_observed_at
            if elapsed >= self.threshold:
                status = StuckStatus(is_stuck=True, stuck_duration=format_duration(elapsed))
                logger.warning("Indexer appears stuck", height=current_height, duration=status.stuck_duration)

        self.store.save(Checkpoint(last_indexed_height=current_height, last_observed_at=now))
        return status


def build_health(scan: ErrorLogScan, stuck: StuckStatus) -> HealthInfo:
    return HealthInfo(
        errors=scan.errors,
        last_error_time=scan.last_error_time,
        retry_count=scan.retry_count,
        is_stuck=stuck.is_stuck,
        stuck_duration=stuck.stuck_duration,
    )
