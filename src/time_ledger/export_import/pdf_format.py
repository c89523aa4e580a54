"""PDF export of timesheets and invoices."""

from collections import defaultdict
from datetime import date, datetime
from typing import Any, Optional
from xml.sax.saxutils import escape

from time_ledger.analysis.invoice import Invoice, build_invoice
from time_ledger.core.models import Project, TimeEntry
from time_ledger.core.rounding import (
    RoundedTotals,
    calculate_rounded_totals,
    format_minutes,
    project_label,
    project_rate,
)
from time_ledger.export_import.base import Exporter

REPORT_HEADERS = ["Date", "Project", "Description", "Hours", "Amount"]
INVOICE_HEADERS = ["Project", "Client", "Hours", "Rate", "Amount"]

# Longer descriptions are cut so a row stays on one line
MAX_DESCRIPTION = 40


def _period(start_date: Optional[date], end_date: Optional[date]) -> str:
    start = start_date.isoformat() if start_date else "Beginning"
    end = end_date.isoformat() if end_date else "Present"
    return f"{start} to {end}"


def report_rows(
    entries: list[TimeEntry],
    totals: RoundedTotals,
    project_map: dict[str, Project],
    currency: str = "SEK",
) -> list[list[str]]:
    """Table rows for a timesheet: one per project and day, then a total.

    Args:
        entries: Entries behind the totals, used for descriptions
        totals: Rounded totals of those entries
        project_map: Known projects by id
        currency: Currency label for amounts

    Returns:
        Header row, bucket rows sorted by day and project, and a total row
    """
    descriptions: dict[tuple[str, date], list[str]] = defaultdict(list)
    for entry in sorted(entries, key=lambda e: e.created_at):
        if entry.description:
            descriptions[(entry.project_id, entry.date)].append(entry.description)

    rows = [list(REPORT_HEADERS)]
    buckets = sorted(
        totals.buckets,
        key=lambda b: (b[1], project_label(b[0], project_map).lower()),
    )
    for bucket in buckets:
        project_id, day = bucket
        hours = totals.buckets[bucket]
        description = "; ".join(descriptions.get(bucket, []))
        if len(description) > MAX_DESCRIPTION:
            description = description[: MAX_DESCRIPTION - 3] + "..."
        rows.append(
            [
                day.isoformat(),
                project_label(project_id, project_map),
                description,
                f"{hours:.2f}",
                f"{hours * project_rate(project_id, project_map):.2f} {currency}",
            ]
        )

    rows.append(
        [
            "Total",
            "",
            "",
            f"{totals.total_hours:.2f}",
            f"{totals.total_billable:.2f} {currency}",
        ]
    )
    return rows


def invoice_rows(invoice: Invoice) -> list[list[str]]:
    """Table rows for an invoice: one per project, then a total."""
    rows = [list(INVOICE_HEADERS)]
    for line in invoice.lines:
        rows.append(
            [
                line.project_name,
                line.client or "-",
                f"{line.hours:.2f}",
                f"{line.rate:.2f}",
                f"{line.amount:.2f} {invoice.currency}",
            ]
        )
    rows.append(
        [
            "Total",
            "",
            f"{invoice.total_hours:.2f}",
            "",
            f"{invoice.total_amount:.2f} {invoice.currency}",
        ]
    )
    return rows


class PDFExporter(Exporter):
    """Export a timesheet or an invoice as a PDF document."""

    def get_file_extension(self) -> str:
        """Get PDF file extension.

        Returns:
            '.pdf'
        """
        return ".pdf"

    def export_entries(
        self,
        entries: list[TimeEntry],
        projects: list[Project],
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        **kwargs: Any,
    ) -> None:
        """Export entries to a PDF file.

        Args:
            entries: List of entries to export
            projects: Known projects
            start_date: Optional first day to include
            end_date: Optional last day to include
            **kwargs: Additional options
                - document (str): 'report' or 'invoice' (default: 'report')
                - title (str): Document title
                - currency (str): Currency label (default: 'SEK')
                - sender (str): Issuer printed on an invoice
        """
        self.ensure_output_path()

        try:
            from reportlab.lib import colors  # type: ignore[import-untyped]
            from reportlab.lib.pagesizes import A4  # type: ignore[import-untyped]
            from reportlab.lib.styles import getSampleStyleSheet  # type: ignore[import-untyped]
            from reportlab.platypus import (  # type: ignore[import-untyped]
                Paragraph,
                SimpleDocTemplate,
                Spacer,
                Table,
                TableStyle,
            )
        except ImportError:
            raise ImportError(
                "reportlab is required for PDF export. Install with: pip install reportlab"
            )

        document = kwargs.get("document", "report")
        if document not in ("report", "invoice"):
            raise ValueError(f"Unknown PDF document: {document}")

        currency = kwargs.get("currency", "SEK")
        filtered_entries = self.filter_entries(entries, start_date, end_date)
        project_map = {p.id: p for p in projects}
        styles = getSampleStyleSheet()

        story: list[Any] = []
        if document == "invoice":
            invoice = build_invoice(
                filtered_entries,
                projects,
                start_date=start_date,
                end_date=end_date,
                title=kwargs.get("title", "Invoice"),
                currency=currency,
                sender=kwargs.get("sender"),
            )
            story.append(Paragraph(escape(invoice.title), styles["Title"]))
            if invoice.sender:
                story.append(Paragraph(f"From: {escape(invoice.sender)}", styles["Normal"]))
            if invoice.clients:
                clients = escape(", ".join(invoice.clients))
                story.append(Paragraph(f"To: {clients}", styles["Normal"]))
            story.append(Paragraph(f"Period: {_period(start_date, end_date)}", styles["Normal"]))
            rows = invoice_rows(invoice)
        else:
            totals = calculate_rounded_totals(filtered_entries, project_map)
            logged_minutes = sum(totals.bucket_minutes.values())
            story.append(Paragraph(escape(kwargs.get("title", "Timesheet")), styles["Title"]))
            story.append(Paragraph(f"Period: {_period(start_date, end_date)}", styles["Normal"]))
            story.append(
                Paragraph(f"Billed time: {totals.total_hours:.2f} hours", styles["Normal"])
            )
            story.append(
                Paragraph(f"Logged time: {format_minutes(logged_minutes)}", styles["Normal"])
            )
            story.append(
                Paragraph(
                    f"Billable amount: {totals.total_billable:.2f} {currency}", styles["Normal"]
                )
            )
            rows = report_rows(filtered_entries, totals, project_map, currency)

        table = Table(rows, repeatRows=1)
        table.setStyle(
            TableStyle(
                [
                    ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
                    ("FONTNAME", (0, -1), (-1, -1), "Helvetica-Bold"),
                    ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#366092")),
                    ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
                    ("LINEABOVE", (0, -1), (-1, -1), 1, colors.black),
                    ("ALIGN", (-2, 0), (-1, -1), "RIGHT"),
                    ("FONTSIZE", (0, 0), (-1, -1), 9),
                ]
            )
        )
        story.append(Spacer(1, 12))
        story.append(table)
        story.append(Spacer(1, 12))
        story.append(
            Paragraph(
                "Hours are rounded up to the nearest quarter hour per project and day.",
                styles["Italic"],
            )
        )
        story.append(
            Paragraph(f"Generated: {datetime.now().strftime('%Y-%m-%d %H:%M')}", styles["Normal"])
        )

        doc = SimpleDocTemplate(str(self.output_path), pagesize=A4, title=kwargs.get("title", ""))
        doc.build(story)
