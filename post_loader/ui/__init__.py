"""User interaction helpers."""

from .progress import ProgressActivity
from .report import ReportSummary, format_published, render_report, render_summary_table, summarise

__all__ = [
    "ProgressActivity",
    "ReportSummary",
    "format_published",
    "render_report",
    "render_summary_table",
    "summarise",
]
