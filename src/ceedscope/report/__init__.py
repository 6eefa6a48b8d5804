"""Ceedling XML report handling."""

from ceedscope.report.correlator import (
    ReportData,
    ReportEntry,
    correlate,
    delete_report,
    format_output_message,
    load_report,
    parse_report,
    report_candidates,
    resolve_report_path,
)

__all__ = [
    "ReportData",
    "ReportEntry",
    "correlate",
    "delete_report",
    "format_output_message",
    "load_report",
    "parse_report",
    "report_candidates",
    "resolve_report_path",
]
