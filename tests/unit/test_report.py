"""
Unit tests for report generation and formatting.
"""

import csv
import json

from diffdb.models import TABLE_COUNT_SUBJECT, MismatchRecord, RunResult, SkippedTable
from diffdb.report import (
    export_report_csv,
    export_report_json,
    format_report_console,
    generate_report,
    generate_summary,
)


def _mismatch_result():
    return RunResult(
        overall_match=False,
        matched_table_count=1,
        total_table_count=3,
        mismatches=(
            MismatchRecord("public.b", "Table public.b has 5 rows in basedb and 4 rows in testdb"),
        ),
        skipped=(
            SkippedTable("public.ext", "Unable to select rowcount of table public.ext from basedb: external"),
        ),
    )


class TestGenerateSummary:
    """Test verdict lines"""

    def test_match(self):
        result = RunResult(overall_match=True, matched_table_count=2, total_table_count=2)

        assert generate_summary(result, "prod", "restored") == [
            "Database prod matches database restored"
        ]

    def test_table_mismatch(self):
        assert generate_summary(_mismatch_result(), "prod", "restored") == [
            "Database prod does not match database restored",
            "Found matched data for only 1 of 3 tables",
        ]

    def test_inventory_mismatch_has_no_table_tally(self):
        """No tables were compared, so there is nothing to tally"""
        result = RunResult(
            overall_match=False,
            matched_table_count=0,
            total_table_count=3,
            mismatches=(MismatchRecord(TABLE_COUNT_SUBJECT, "Found 3 tables in basedb, 2 tables in testdb"),),
        )

        assert generate_summary(result, "prod", "restored") == [
            "Database prod does not match database restored"
        ]


class TestGenerateReport:
    """Test generate_report"""

    def test_pass_report(self):
        result = RunResult(overall_match=True, matched_table_count=2, total_table_count=2)

        report = generate_report(result, "prod", "restored", "rowcount")

        assert report["status"] == "PASS"
        assert report["base_database"] == "prod"
        assert report["test_database"] == "restored"
        assert report["strategy"] == "rowcount"
        assert report["total_tables"] == 2
        assert report["tables_matched"] == 2
        assert report["tables_mismatched"] == 0
        assert report["tables_skipped"] == 0
        assert report["mismatches"] == []
        assert report["warnings"] == []
        assert "timestamp" in report

    def test_fail_report(self):
        report = generate_report(_mismatch_result(), "prod", "restored")

        assert report["status"] == "FAIL"
        assert report["tables_mismatched"] == 1
        assert report["tables_skipped"] == 1
        assert report["mismatches"][0]["subject"] == "public.b"
        assert report["warnings"][0]["subject"] == "public.ext"
        assert report["stopped_early"] is False

    def test_report_is_json_serializable(self):
        report = generate_report(_mismatch_result(), "prod", "restored")
        assert json.loads(json.dumps(report)) == report


class TestFormatReportConsole:
    """Test console rendering"""

    def test_mismatch_lines(self):
        text = format_report_console(generate_report(_mismatch_result(), "prod", "restored"))

        assert "Status: FAIL" in text
        assert "Database prod does not match database restored" in text
        assert "Found matched data for only 1 of 3 tables" in text
        assert (
            "Table: public.b --- mismatch: "
            "Table public.b has 5 rows in basedb and 4 rows in testdb"
        ) in text

    def test_warnings_listed_separately(self):
        text = format_report_console(generate_report(_mismatch_result(), "prod", "restored"))

        assert "WARNINGS (not verified)" in text
        assert "Table: public.ext --- skipped:" in text
        assert text.index("MISMATCHES") < text.index("WARNINGS")

    def test_match_has_no_mismatch_section(self):
        result = RunResult(overall_match=True, matched_table_count=1, total_table_count=1)

        text = format_report_console(generate_report(result, "prod", "restored"))

        assert "Database prod matches database restored" in text
        assert "MISMATCHES" not in text
        assert "WARNINGS" not in text

    def test_stopped_early_noted(self):
        result = RunResult(
            overall_match=False,
            matched_table_count=2,
            total_table_count=5,
            mismatches=(MismatchRecord("public.t3", "differs"),),
            stopped_early=True,
        )

        text = format_report_console(generate_report(result, "prod", "restored"))

        assert "fail-fast" in text


class TestExportReport:
    """Test JSON and CSV export"""

    def test_export_json(self, tmp_path):
        report = generate_report(_mismatch_result(), "prod", "restored")
        output = tmp_path / "report.json"

        export_report_json(report, str(output))

        assert json.loads(output.read_text()) == report

    def test_export_csv(self, tmp_path):
        report = generate_report(_mismatch_result(), "prod", "restored")
        output = tmp_path / "report.csv"

        export_report_csv(report, str(output))

        with open(output, newline="") as f:
            rows = list(csv.reader(f))

        assert rows[0] == ["Subject", "Result", "Description"]
        assert rows[1][:2] == ["public.b", "MISMATCH"]
        assert rows[2][:2] == ["public.ext", "SKIPPED"]
