"""Report storage."""

from .report import ReportFileListener

__all__ = ["ReportFileListener"]
