"""Markdown report and invoice export."""

from collections import defaultdict
from datetime import date, datetime
from typing import Any, Optional

from time_ledger.analysis.invoice import Invoice, build_invoice
from time_ledger.core.intervals import format_intervals
from time_ledger.core.models import Project, TimeEntry
from time_ledger.core.rounding import (
    RoundedTotals,
    calculate_rounded_totals,
    entry_exact_minutes,
    format_minutes,
    project_label,
)
from time_ledger.export_import.base import Exporter


def _date_range_line(start_date: Optional[date], end_date: Optional[date]) -> str:
    start = start_date.isoformat() if start_date else "Beginning"
    end = end_date.isoformat() if end_date else "Present"
    return f"**Period:** {start} to {end}\n"


class MarkdownExporter(Exporter):
    """Export time tracking data to a Markdown report."""

    def get_file_extension(self) -> str:
        """Get Markdown file extension.

        Returns:
            '.md'
        """
        return ".md"

    def export_entries(
        self,
        entries: list[TimeEntry],
        projects: list[Project],
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        **kwargs: Any,
    ) -> None:
        """Export entries to Markdown file.

        Args:
            entries: List of entries to export
            projects: Known projects
            start_date: Optional first day to include
            end_date: Optional last day to include
            **kwargs: Additional options
                - title (str): Document title (default: "Timesheet")
                - group_by (str): 'day' or 'project' (default: 'day')
                - currency (str): Currency label (default: 'SEK')
        """
        self.ensure_output_path()

        filtered_entries = self.filter_entries(entries, start_date, end_date)
        project_map = {p.id: p for p in projects}
        totals = calculate_rounded_totals(filtered_entries, project_map)

        lines = [f"# {kwargs.get('title', 'Timesheet')}\n"]
        lines.append(f"**Generated:** {datetime.now().strftime('%Y-%m-%d %H:%M')}\n")
        lines.append(_date_range_line(start_date, end_date))
        lines.append(f"**Total Entries:** {len(filtered_entries)}\n")

        lines.append("---\n")
        lines.extend(self._summary(totals, project_map, kwargs.get("currency", "SEK")))
        lines.append("---\n")

        lines.append("## Entries\n")
        if kwargs.get("group_by", "day") == "project":
            lines.extend(self._group_by_project(filtered_entries, totals, project_map))
        else:
            lines.extend(self._group_by_day(filtered_entries, totals, project_map))

        with open(self.output_path, "w", encoding="utf-8") as f:
            f.write("\n".join(lines))

    def _summary(
        self, totals: RoundedTotals, project_map: dict[str, Project], currency: str
    ) -> list[str]:
        lines = ["## Summary\n"]
        lines.append(f"**Billed Time:** {totals.total_hours:.2f} hours")
        lines.append(f"**Billable Amount:** {totals.total_billable:.2f} {currency}\n")

        if totals.hours_by_project:
            lines.append("### Time by Project\n")
            for project_id, hours in sorted(
                totals.hours_by_project.items(), key=lambda x: x[1], reverse=True
            ):
                lines.append(f"- **{project_label(project_id, project_map)}:** {hours:.2f} hours")
            lines.append("")

        return lines

    def _group_by_day(
        self,
        entries: list[TimeEntry],
        totals: RoundedTotals,
        project_map: dict[str, Project],
    ) -> list[str]:
        lines = []

        by_day: dict[date, list[TimeEntry]] = defaultdict(list)
        for entry in entries:
            by_day[entry.date].append(entry)

        for day in sorted(by_day, reverse=True):
            lines.append(f"### {day.strftime('%A, %B %d, %Y')}\n")
            lines.append(f"**Total:** {totals.hours_by_date[day]:.2f} hours\n")
            lines.extend(self._list_entries(by_day[day], project_map))
            lines.append("")

        return lines

    def _group_by_project(
        self,
        entries: list[TimeEntry],
        totals: RoundedTotals,
        project_map: dict[str, Project],
    ) -> list[str]:
        lines = []

        by_project: dict[str, list[TimeEntry]] = defaultdict(list)
        for entry in entries:
            by_project[entry.project_id].append(entry)

        for project_id in sorted(
            by_project, key=lambda p: totals.hours_by_project[p], reverse=True
        ):
            project_entries = by_project[project_id]
            lines.append(f"### {project_label(project_id, project_map)}\n")
            lines.append(f"**Total:** {totals.hours_by_project[project_id]:.2f} hours")
            lines.append(f"**Entries:** {len(project_entries)}\n")
            lines.extend(self._list_entries(project_entries, project_map))
            lines.append("")

        return lines

    def _list_entries(self, entries: list[TimeEntry], project_map: dict[str, Project]) -> list[str]:
        lines = [
            "| Date | Project | Time | Logged | Description |",
            "|------|---------|------|--------|-------------|",
        ]

        for entry in sorted(entries, key=lambda e: (e.date, e.first_start_time or "99:99")):
            time_range = format_intervals(entry.time_intervals) or "manual"
            description = entry.description.replace("|", "\\|")
            lines.append(
                f"| {entry.date.isoformat()} | {project_label(entry.project_id, project_map)} "
                f"| {time_range} | {format_minutes(entry_exact_minutes(entry))} | {description} |"
            )

        return lines


class InvoiceExporter(Exporter):
    """Export an invoice with one line per project as a Markdown document."""

    def get_file_extension(self) -> str:
        """Get Markdown file extension.

        Returns:
            '.md'
        """
        return ".md"

    def export_entries(
        self,
        entries: list[TimeEntry],
        projects: list[Project],
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        **kwargs: Any,
    ) -> None:
        """Export an invoice for the entries of a period.

        Args:
            entries: List of entries to bill
            projects: Known projects
            start_date: Optional first day to include
            end_date: Optional last day to include
            **kwargs: Additional options
                - title (str): Invoice title (default: "Invoice")
                - currency (str): Currency label (default: 'SEK')
                - sender (str): Issuer printed in the header
        """
        self.ensure_output_path()

        invoice = build_invoice(
            self.filter_entries(entries, start_date, end_date),
            projects,
            start_date=start_date,
            end_date=end_date,
            title=kwargs.get("title", "Invoice"),
            currency=kwargs.get("currency", "SEK"),
            sender=kwargs.get("sender"),
        )

        with open(self.output_path, "w", encoding="utf-8") as f:
            f.write(render_invoice(invoice))


def render_invoice(invoice: Invoice) -> str:
    """Render an invoice as Markdown."""
    lines = [f"# {invoice.title}\n"]
    if invoice.sender:
        lines.append(f"**From:** {invoice.sender}\n")
    if invoice.clients:
        lines.append(f"**To:** {', '.join(invoice.clients)}\n")
    lines.append(_date_range_line(invoice.start_date, invoice.end_date))
    lines.append(f"**Date:** {invoice.generated_at.strftime('%Y-%m-%d')}\n")

    lines.append("| Project | Client | Hours | Rate | Amount |")
    lines.append("|---------|--------|------:|-----:|-------:|")
    for line in invoice.lines:
        lines.append(
            f"| {line.project_name} | {line.client or '-'} | {line.hours:.2f} "
            f"| {line.rate:.2f} | {line.amount:.2f} {invoice.currency} |"
        )
    lines.append(
        f"| **Total** | | **{invoice.total_hours:.2f}** | "
        f"| **{invoice.total_amount:.2f} {invoice.currency}** |"
    )
    lines.append("")
    lines.append("Hours are rounded up to the nearest quarter hour per project and day.")
    lines.append("")

    return "\n".join(lines)
