"""Persists each report as a JSON file and a paired text file."""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path

import structlog

from ..errors import PersistenceError
from ..models import Report
from .renderer import render_text_report

logger = structlog.get_logger(__name__)


class ReportWriter:
    """Writes ``report-YYYY-MM-DD-HH-MM.{json,txt}`` under the reports directory.

    Reports accumulate; nothing is rotated or deleted.
    """

    def __init__(self, reports_directory: str | Path):
        self.reports_dir = Path(reports_directory)

    def stem_for(self, moment: datetime) -> str:
        return f"report-{moment.strftime('%Y-%m-%d-%H-%M')}"

    def write(self, report: Report, moment: datetime) -> tuple[Path, Path]:
        stem = self.stem_for(moment)
        json_path = self.reports_dir / f"{stem}.json"
        text_path = self.reports_dir / f"{stem}.txt"

        try:
            self.reports_dir.mkdir(parents=True, exist_ok=True)
            with open(json_path, 'w', encoding="utf-8") as f:
                json.dump(report.to_dict(), f, indent=2, ensure_ascii=False)
            logger.info("Report saved", path=str(json_path))

            text_path.write_text(render_text_report(report), encoding="utf-8")
            logger.info("Readable report saved", path=str(text_path))
        except OSError as e:
            raise PersistenceError(f"Cannot write report {stem}: {e}") from e

        return json_path, text_path
