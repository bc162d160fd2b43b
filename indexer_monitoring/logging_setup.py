"""structlog configuration with a day-stamped file sink."""

import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, MutableMapping

import structlog

from .errors import PersistenceError

Clock = Callable[[], datetime]

# Keys already rendered into the line prefix or irrelevant on disk.
_SKIPPED_KEYS = {"event", "timestamp", "level", "exc_info"}


class DailyFileSink:
    """structlog processor appending one line per event to ``monitor-YYYY-MM-DD.log``.

    Lines look like ``[2024-05-01 07:00:03] Report saved path=reports/report-...json``.
    The event dict is passed through untouched so the console renderer still runs.
    """

    def __init__(self, logs_directory: str | Path, clock: Clock, prefix: str = "monitor"):
        self.logs_directory = Path(logs_directory)
        self.clock = clock
        self.prefix = prefix

    def path_for(self, moment: datetime) -> Path:
        return self.logs_directory / f"{self.prefix}-{moment.strftime('%Y-%m-%d')}.log"

    def format_line(self, moment: datetime, event_dict: MutableMapping[str, Any]) -> str:
        message = str(event_dict.get("event", ""))
        context = " ".join(
            f"{key}={value}" for key, value in event_dict.items() if key not in _SKIPPED_KEYS
        )
        if context:
            message = f"{message} {context}"
        return f"[{moment.strftime('%Y-%m-%d %H:%M:%S')}] {message}"

    def __call__(self, logger: Any, method_name: str, event_dict: MutableMapping[str, Any]):
        moment = self.clock()
        path = self.path_for(moment)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, "a", encoding="utf-8") as f:
                f.write(self.format_line(moment, event_dict) + "\n")
        except OSError as e:
            raise PersistenceError(f"Cannot append to log file {path}: {e}") from e
        return event_dict


def configure_logging(
    level: str = "INFO",
    logs_directory: str | Path | None = None,
    clock: Clock | None = None,
) -> None:
    """Configure structured logging; with ``logs_directory`` every event also lands on disk."""
    processors: list[Any] = [
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="ISO"),
    ]
    if logs_directory is not None:
        processors.append(DailyFileSink(logs_directory, clock or (lambda: datetime.now().astimezone())))
    processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, level.upper(), logging.INFO)
        ),
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
