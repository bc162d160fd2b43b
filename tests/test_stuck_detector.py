from __future__ import annotations

import json
from datetime import timedelta
from pathlib import Path

import pytest

from indexer_monitoring.collectors.base import ErrorLogScan
from indexer_monitoring.errors import PersistenceError
from indexer_monitoring.health.stuck import (
    Checkpoint,
    FileCheckpointStore,
    MemoryCheckpointStore,
    StuckDetector,
    StuckStatus,
    build_health,
    format_duration,
)


def test_first_check_is_never_stuck_and_creates_checkpoint(clock) -> None:
    store = MemoryCheckpointStore()
    detector = StuckDetector(store, clock)

    status = detector.check(12_000_000)

    assert status == StuckStatus(is_stuck=False)
    assert store.checkpoint == Checkpoint(last_indexed_height=12_000_000, last_observed_at=clock.now)


def test_same_height_an_hour_later_is_stuck(clock) -> None:
    store = MemoryCheckpointStore()
    detector = StuckDetector(store, clock)
    detector.check(12_000_000)

    clock.advance(hours=1, minutes=5)
    status = detector.check(12_000_000)

    assert status.is_stuck is True
    assert status.stuck_duration == "1h5m"


def test_exactly_one_hour_counts_as_stuck(clock) -> None:
    detector = StuckDetector(MemoryCheckpointStore(), clock)
    detector.check(5)
    clock.advance(hours=1)
    assert detector.check(5).is_stuck is True


def test_overwrite_resets_the_window(clock) -> None:
    store = MemoryCheckpointStore()
    detector = StuckDetector(store, clock)
    detector.check(100)

    clock.advance(hours=2)
    assert detector.check(100).is_stuck is True

    clock.advance(minutes=30)
    status = detector.check(100)
    assert status.is_stuck is False
    assert store.checkpoint is not None
    assert store.checkpoint.last_observed_at == clock.now


def test_short_cadence_never_fires_even_when_height_is_flat(clock) -> None:
    detector = StuckDetector(MemoryCheckpointStore(), clock)
    results = []
    for _ in range(6):
        results.append(detector.check(100).is_stuck)
        clock.advance(minutes=30)
    assert results == [False] * 6


def test_progress_is_not_stuck(clock) -> None:
    store = MemoryCheckpointStore()
    detector = StuckDetector(store, clock)
    detector.check(100)
    clock.advance(hours=3)
    assert detector.check(101).is_stuck is False
    assert store.checkpoint is not None
    assert store.checkpoint.last_indexed_height == 101


def test_unknown_height_is_compared_as_is(clock) -> None:
    detector = StuckDetector(MemoryCheckpointStore(), clock)
    detector.check(None)
    clock.advance(hours=1)
    assert detector.check(None).is_stuck is True


def test_format_duration() -> None:
    assert format_duration(timedelta(hours=1)) == "1h0m"
    assert format_duration(timedelta(hours=26, minutes=3, seconds=59)) == "26h3m"


def test_file_store_round_trip(tmp_path: Path, clock) -> None:
    path = tmp_path / "state" / "checkpoint.json"
    store = FileCheckpointStore(path)
    assert store.load() is None

    store.save(Checkpoint(last_indexed_height=42, last_observed_at=clock.now))

    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["last_indexed_height"] == 42
    assert store.load() == Checkpoint(last_indexed_height=42, last_observed_at=clock.now)


def test_file_store_ignores_corrupt_checkpoint(tmp_path: Path) -> None:
    path = tmp_path / "checkpoint.json"
    path.write_text("{not json", encoding="utf-8")
    assert FileCheckpointStore(path).load() is None


def test_file_store_write_failure_raises(tmp_path: Path, clock) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("", encoding="utf-8")
    store = FileCheckpointStore(blocker / "checkpoint.json")
    with pytest.raises(PersistenceError):
        store.save(Checkpoint(last_indexed_height=1, last_observed_at=clock.now))


def test_detector_persists_across_instances(tmp_path: Path, clock) -> None:
    path = tmp_path / "checkpoint.json"
    StuckDetector(FileCheckpointStore(path), clock).check(7)
    clock.advance(hours=1, minutes=30)
    status = StuckDetector(FileCheckpointStore(path), clock).check(7)
    assert status == StuckStatus(is_stuck=True, stuck_duration="1h30m")


def test_build_health() -> None:
    healthy = build_health(ErrorLogScan(retry_count=3), StuckStatus(is_stuck=False))
    assert healthy.is_healthy is True
    assert healthy.retry_count == 3

    with_errors = build_health(ErrorLogScan(errors=("ERRO boom",), last_error_time="2024-05-01 06:59:00"),
                               StuckStatus(is_stuck=False))
    assert with_errors.is_healthy is False

    stuck = build_health(ErrorLogScan(), StuckStatus(is_stuck=True, stuck_duration="2h0m"))
    assert stuck.is_healthy is False
    assert stuck.to_dict()["stuck_duration"] == "2h0m"
