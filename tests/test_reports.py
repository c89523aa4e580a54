"""Tests for reports, invoices and the Excel workbook."""

from datetime import date
from pathlib import Path
from typing import Callable

import pytest  # type: ignore[import-not-found]
from rich.console import Console  # type: ignore[import-not-found]

from time_ledger.analysis.invoice import build_invoice
from time_ledger.analysis.reports import ReportGenerator
from time_ledger.core.models import Project, TimeEntry
from time_ledger.export_import import ExcelExporter

MakeEntry = Callable[..., TimeEntry]

DAY = date(2024, 3, 4)


def _console() -> Console:
    return Console(record=True, width=140, color_system=None)


class TestBuildInvoice:
    """Test invoice line items."""

    def test_lines_match_totals(self, make_entry: MakeEntry, acme: Project) -> None:
        """Test that lines come from the rounded buckets."""
        globex = Project(id="globex", name="Globex", client="Globex Inc", default_hourly_rate=50.0)
        entries = [
            make_entry("globex", DAY, [("09:00", "09:07")]),
            make_entry("acme", DAY, [("10:00", "10:50")]),
            make_entry("acme", date(2024, 3, 5), [("10:00", "10:01")]),
        ]

        invoice = build_invoice(entries, [acme, globex], DAY, date(2024, 3, 5))

        assert [line.project_name for line in invoice.lines] == ["Acme", "Globex"]
        assert invoice.lines[0].hours == 1.25
        assert invoice.lines[0].amount == pytest.approx(125.0)
        assert invoice.lines[1].hours == 0.25
        assert invoice.lines[1].amount == pytest.approx(12.5)
        assert invoice.total_hours == 1.5
        assert invoice.total_amount == pytest.approx(137.5)
        assert invoice.clients == ["Acme AB", "Globex Inc"]

    def test_unknown_project_line(self, make_entry: MakeEntry) -> None:
        """Test that an entry without a project bills as unknown at zero."""
        invoice = build_invoice([make_entry("gone", DAY, hours=2.0)], [])

        assert invoice.lines[0].project_name == "unknown"
        assert invoice.lines[0].rate == 0
        assert invoice.total_amount == 0

    def test_empty_invoice(self) -> None:
        """Test an invoice without entries."""
        invoice = build_invoice([], [])

        assert invoice.lines == []
        assert invoice.total_hours == 0


class TestReportGenerator:
    """Test console reports."""

    def test_summary_report(self, make_entry: MakeEntry, acme: Project) -> None:
        """Test the summary figures."""
        console = _console()
        entries = [
            make_entry("acme", DAY, [("09:00", "09:07")]),
            make_entry("acme", DAY, [("10:00", "10:07")]),
        ]

        ReportGenerator(console, currency="EUR").summary_report(entries, [acme], "This Week")
        output = console.export_text()

        assert "Time Ledger - This Week" in output
        assert "0.25 h" in output
        assert "14m" in output
        assert "25.00 EUR" in output
        assert "Time by Project" in output
        assert "2024-03-04" in output

    def test_summary_report_empty(self) -> None:
        """Test the message for a period without entries."""
        console = _console()

        ReportGenerator(console).summary_report([], [], "Today")

        assert "No entries found for this period" in console.export_text()

    def test_day_report(self, make_entry: MakeEntry, acme: Project) -> None:
        """Test the daily list with rounded totals."""
        console = _console()
        entries = [
            make_entry("acme", DAY, [("09:00", "09:07")], description="Standup"),
            make_entry("acme", DAY, hours=0.5, description="Email"),
        ]

        ReportGenerator(console).day_report(entries, [acme], DAY)
        output = console.export_text()

        assert "Entries for 2024-03-04" in output
        assert "09:00-09:07" in output
        assert "manual" in output
        assert "Standup" in output
        assert "Total:" in output
        assert "0.75 h" in output

    def test_date_format(self, make_entry: MakeEntry, acme: Project) -> None:
        """Test that dates follow the configured format."""
        console = _console()
        entries = [make_entry("acme", DAY, [("09:00", "09:30")])]

        report_gen = ReportGenerator(console, date_format="%d.%m.%Y")
        report_gen.summary_report(entries, [acme], "March")
        report_gen.day_report(entries, [acme], DAY)
        output = console.export_text()

        assert "04.03.2024" in output
        assert "Entries for 04.03.2024" in output
        assert "2024-03-04" not in output

    def test_day_report_empty(self) -> None:
        """Test the message for a day without entries."""
        console = _console()

        ReportGenerator(console).day_report([], [], DAY)

        assert "No entries found for 2024-03-04" in console.export_text()


class TestExcelExporter:
    """Test the Excel workbook."""

    def test_workbook_sheets(
        self, temp_dir: Path, make_entry: MakeEntry, acme: Project
    ) -> None:
        """Test summary and entry sheets."""
        openpyxl = pytest.importorskip("openpyxl")
        output = temp_dir / "report.xlsx"
        entries = [
            make_entry("acme", DAY, [("09:00", "09:07")], description="Standup"),
            make_entry("acme", DAY, [("10:00", "10:07")]),
        ]

        ExcelExporter(output).export_entries(entries, [acme])

        wb = openpyxl.load_workbook(output)
        assert wb.sheetnames == ["Summary", "Entries"]
        assert wb["Summary"]["B3"].value == 0.25
        assert wb["Summary"]["B4"].value == 25.0
        assert wb["Entries"]["C2"].value == "Standup"
        assert wb["Entries"].max_row == 3
