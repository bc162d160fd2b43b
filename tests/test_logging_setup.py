from __future__ import annotations

from pathlib import Path

import pytest

from indexer_monitoring.errors import PersistenceError
from indexer_monitoring.logging_setup import DailyFileSink


def test_sink_appends_one_line_per_event(tmp_path: Path, clock) -> None:
    sink = DailyFileSink(tmp_path / "logs", clock)

    event = {"event": "Report saved", "path": "reports/report.json", "level": "info", "timestamp": "x"}
    assert sink(None, "info", event) is event
    clock.advance(seconds=5)
    sink(None, "warning", {"event": "Indexer appears stuck", "height": 7})

    log_file = tmp_path / "logs" / "monitor-2024-05-01.log"
    assert log_file.read_text(encoding="utf-8").splitlines() == [
        "[2024-05-01 07:00:00] Report saved path=reports/report.json",
        "[2024-05-01 07:00:05] Indexer appears stuck height=7",
    ]


def test_sink_rolls_over_by_day(tmp_path: Path, clock) -> None:
    sink = DailyFileSink(tmp_path, clock)
    sink(None, "info", {"event": "first"})
    clock.advance(days=1)
    sink(None, "info", {"event": "second"})

    assert (tmp_path / "monitor-2024-05-01.log").read_text(encoding="utf-8") == "[2024-05-01 07:00:00] first\n"
    assert (tmp_path / "monitor-2024-05-02.log").read_text(encoding="utf-8") == "[2024-05-02 07:00:00] second\n"


def test_sink_write_failure_raises(tmp_path: Path, clock) -> None:
    blocker = tmp_path / "logs"
    blocker.write_text("", encoding="utf-8")
    with pytest.raises(PersistenceError):
        DailyFileSink(blocker, clock)(None, "info", {"event": "lost"})
