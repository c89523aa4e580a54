"""Excel export functionality with charts and formatting."""

from datetime import date
from typing import Any, Optional

from time_ledger.core.intervals import format_intervals
from time_ledger.core.models import Project, TimeEntry
from time_ledger.core.rounding import (
    RoundedTotals,
    calculate_rounded_totals,
    entry_exact_minutes,
    project_label,
)
from time_ledger.export_import.base import Exporter


class ExcelExporter(Exporter):
    """Export time tracking data to Excel format with charts."""

    def get_file_extension(self) -> str:
        """Get Excel file extension.

        Returns:
            '.xlsx'
        """
        return ".xlsx"

    def export_entries(
        self,
        entries: list[TimeEntry],
        projects: list[Project],
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        **kwargs: Any,
    ) -> None:
        """Export entries to Excel file with formatting and charts.

        Args:
            entries: List of entries to export
            projects: Known projects
            start_date: Optional first day to include
            end_date: Optional last day to include
            **kwargs: Additional options
                - include_charts (bool): Include charts (default: True)
                - currency (str): Currency label (default: 'SEK')
        """
        self.ensure_output_path()

        filtered_entries = self.filter_entries(entries, start_date, end_date)
        project_map = {p.id: p for p in projects}

        try:
            import openpyxl  # type: ignore[import-untyped]
        except ImportError:
            raise ImportError(
                "openpyxl is required for Excel export. Install with: pip install openpyxl"
            )

        wb = openpyxl.Workbook()
        wb.remove(wb.active)

        totals = calculate_rounded_totals(filtered_entries, project_map)
        self._create_summary_sheet(
            wb,
            totals,
            project_map,
            kwargs.get("include_charts", True),
            kwargs.get("currency", "SEK"),
        )
        self._create_entries_sheet(wb, filtered_entries, project_map)

        wb.save(self.output_path)

    def _create_entries_sheet(
        self, wb: Any, entries: list[TimeEntry], project_map: dict[str, Project]
    ) -> None:
        """Create detailed entries sheet.

        Args:
            wb: Workbook object
            entries: List of entries
            project_map: Projects keyed by id
        """
        from openpyxl.styles import Alignment, Font, PatternFill
        from openpyxl.utils import get_column_letter

        ws = wb.create_sheet("Entries")

        headers = ["Date", "Project", "Description", "Intervals", "Logged (hrs)", "Billable"]

        header_fill = PatternFill(start_color="366092", end_color="366092", fill_type="solid")
        header_font = Font(bold=True, color="FFFFFF")

        for col, header in enumerate(headers, start=1):
            cell = ws.cell(row=1, column=col, value=header)
            cell.fill = header_fill
            cell.font = header_font
            cell.alignment = Alignment(horizontal="center", vertical="center")

        ordered = sorted(entries, key=lambda e: (e.date, e.first_start_time or "99:99"))
        for row, entry in enumerate(ordered, start=2):
            ws.cell(row, 1, entry.date.isoformat())
            ws.cell(row, 2, project_label(entry.project_id, project_map))
            ws.cell(row, 3, entry.description)
            ws.cell(row, 4, format_intervals(entry.time_intervals) or "manual")
            ws.cell(row, 5, round(entry_exact_minutes(entry) / 60, 2))
            ws.cell(row, 6, "Yes" if entry.billable else "No")

        for col in range(1, len(headers) + 1):
            ws.column_dimensions[get_column_letter(col)].width = 18

    def _create_summary_sheet(
        self,
        wb: Any,
        totals: RoundedTotals,
        project_map: dict[str, Project],
        include_charts: bool,
        currency: str,
    ) -> None:
        """Create summary sheet with billed hours per project and day.

        Args:
            wb: Workbook object
            totals: Rounded totals of the exported entries
            project_map: Projects keyed by id
            include_charts: Whether to include charts
            currency: Currency label for amounts
        """
        from openpyxl.chart import PieChart, Reference
        from openpyxl.styles import Font

        ws = wb.create_sheet("Summary", 0)

        ws["A1"] = "Timesheet Summary"
        ws["A1"].font = Font(bold=True, size=14)

        ws["A3"] = "Billed Hours:"
        ws["B3"] = totals.total_hours
        ws["A4"] = f"Billable Amount ({currency}):"
        ws["B4"] = round(totals.total_billable, 2)
        ws["A5"] = "Days:"
        ws["B5"] = len(totals.hours_by_date)

        row = 7
        ws[f"A{row}"] = "Time by Project"
        ws[f"A{row}"].font = Font(bold=True, size=12)
        row += 1

        ws[f"A{row}"] = "Project"
        ws[f"B{row}"] = "Hours"
        ws[f"C{row}"] = "Amount"
        for col in "ABC":
            ws[f"{col}{row}"].font = Font(bold=True)
        row += 1

        project_start_row = row
        for project_id, hours in sorted(
            totals.hours_by_project.items(), key=lambda x: x[1], reverse=True
        ):
            ws[f"A{row}"] = project_label(project_id, project_map)
            ws[f"B{row}"] = hours
            ws[f"C{row}"] = round(totals.billable_by_project[project_id], 2)
            row += 1
        project_end_row = row - 1

        row += 1
        ws[f"A{row}"] = "Time by Day"
        ws[f"A{row}"].font = Font(bold=True, size=12)
        row += 1
        ws[f"A{row}"] = "Date"
        ws[f"B{row}"] = "Hours"
        ws[f"A{row}"].font = Font(bold=True)
        ws[f"B{row}"].font = Font(bold=True)
        row += 1

        for day in sorted(totals.hours_by_date):
            ws[f"A{row}"] = day.isoformat()
            ws[f"B{row}"] = totals.hours_by_date[day]
            row += 1

        if include_charts and totals.hours_by_project:
            chart = PieChart()
            chart.title = "Time by Project"
            data = Reference(
                ws, min_col=2, min_row=project_start_row - 1, max_row=project_end_row
            )
            labels = Reference(ws, min_col=1, min_row=project_start_row, max_row=project_end_row)
            chart.add_data(data, titles_from_data=True)
            chart.set_categories(labels)
            chart.height = 10
            chart.width = 15
            ws.add_chart(chart, "E3")

        ws.column_dimensions["A"].width = 25
        ws.column_dimensions["B"].width = 15
        ws.column_dimensions["C"].width = 15
