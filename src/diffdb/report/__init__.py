"""
Comparison report generation and formatting.

Turns a RunResult into a report dictionary and renders it for the
console, or exports it as JSON or CSV.
"""

from .formatters import export_report_csv, export_report_json, format_report_console
from .generator import generate_report, generate_summary

__all__ = [
    'generate_report',
    'generate_summary',
    'export_report_json',
    'export_report_csv',
    'format_report_console',
]
