"""
Report formatting and export utilities.
"""

import csv
import json
from typing import Any


def export_report_json(report: dict[str, Any], output_path: str) -> None:
    """Export report to a JSON file"""
    with open(output_path, 'w') as f:
        json.dump(report, f, indent=2)


def export_report_csv(report: dict[str, Any], output_path: str) -> None:
    """
    Export report to CSV file

    One row per mismatch followed by one row per skipped table.
    """
    with open(output_path, 'w', newline='') as f:
        writer = csv.writer(f)

        writer.writerow(["Subject", "Result", "Description"])

        for mismatch in report.get("mismatches", []):
            writer.writerow([mismatch["subject"], "MISMATCH", mismatch["description"]])

        for warning in report.get("warnings", []):
            writer.writerow([warning["subject"], "SKIPPED", warning["reason"]])


def format_report_console(report: dict[str, Any]) -> str:
    """
    Format report for console output

    Args:
        report: Report dictionary

    Returns:
        Formatted string for console display
    """
    lines = []

    lines.append("=" * 80)
    lines.append("DATABASE COMPARISON REPORT")
    lines.append("=" * 80)
    lines.append(f"Base Database: {report['base_database']}")
    lines.append(f"Test Database: {report['test_database']}")
    if report.get("strategy"):
        lines.append(f"Strategy: {report['strategy']}")
    lines.append(f"Status: {report['status']}")
    lines.append(f"Timestamp: {report['timestamp']}")
    lines.append(f"Total Tables: {report['total_tables']}")
    lines.append(f"Tables Matched: {report['tables_matched']}")
    lines.append(f"Tables Mismatched: {report['tables_mismatched']}")
    lines.append(f"Tables Skipped: {report['tables_skipped']}")
    if report.get("stopped_early"):
        lines.append("Stopped after the first mismatch (fail-fast)")
    lines.append("")

    lines.append("SUMMARY")
    lines.append("-" * 80)
    lines.extend(report["summary"])
    lines.append("")

    if report["mismatches"]:
        lines.append("MISMATCHES")
        lines.append("-" * 80)
        for mismatch in report["mismatches"]:
            lines.append(f"Table: {mismatch['subject']} --- mismatch: {mismatch['description']}")
        lines.append("")

    if report["warnings"]:
        lines.append("WARNINGS (not verified)")
        lines.append("-" * 80)
        for warning in report["warnings"]:
            lines.append(f"Table: {warning['subject']} --- skipped: {warning['reason']}")
        lines.append("")

    lines.append("=" * 80)

    return "\n".join(lines)
