"""Report assembly, persistence and console rendering."""

from sitepack.reporting.builder import ReportBuilder, ReportClosedError
from sitepack.reporting.renderer import ReportRenderer
from sitepack.reporting.writer import report_path_for, write_report

__all__ = [
    "ReportBuilder",
    "ReportClosedError",
    "ReportRenderer",
    "report_path_for",
    "write_report",
]
