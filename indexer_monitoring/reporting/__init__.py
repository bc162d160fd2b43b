"""Reporting module: report assembly, rendering and persistence."""

from .renderer import render_text_report
from .report_builder import ReportBuilder
from .writer import ReportWriter

__all__ = ["ReportBuilder", "ReportWriter", "render_text_report"]
