"""Reports package."""

from ledgerbook.reports.generator import ReportGenerator

__all__ = ["ReportGenerator"]
