"""Invoice line items derived from rounded totals."""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Iterable, Optional

from time_ledger.core.models import Project, TimeEntry
from time_ledger.core.rounding import (
    RoundedTotals,
    calculate_rounded_totals,
    project_label,
    project_rate,
)


@dataclass
class InvoiceLine:
    """One billed project."""

    project_id: str
    project_name: str
    client: Optional[str]
    hours: float
    rate: float
    amount: float


@dataclass
class Invoice:
    """Invoice for a period, with one line per project."""

    start_date: Optional[date]
    end_date: Optional[date]
    lines: list[InvoiceLine]
    totals: RoundedTotals
    title: str = "Invoice"
    currency: str = "SEK"
    sender: Optional[str] = None
    generated_at: datetime = field(default_factory=datetime.now)

    @property
    def total_hours(self) -> float:
        return self.totals.total_hours

    @property
    def total_amount(self) -> float:
        return self.totals.total_billable

    @property
    def clients(self) -> list[str]:
        """Distinct clients on the invoice, in line order."""
        seen: list[str] = []
        for line in self.lines:
            if line.client and line.client not in seen:
                seen.append(line.client)
        return seen


def build_invoice(
    entries: Iterable[TimeEntry],
    projects: Iterable[Project],
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    title: str = "Invoice",
    currency: str = "SEK",
    sender: Optional[str] = None,
) -> Invoice:
    """Build an invoice from an already date-filtered set of entries.

    Line hours and amounts are taken from the same bucket pass as the
    on-screen summary, so the invoice always matches it.

    Args:
        entries: Entries to bill
        projects: Known projects, used for names, clients and rates
        start_date: First day of the billed period
        end_date: Last day of the billed period
        title: Document title
        currency: Currency label for amounts
        sender: Name printed as the invoice issuer

    Returns:
        Invoice with lines sorted by project name
    """
    project_map = {p.id: p for p in projects}
    totals = calculate_rounded_totals(entries, project_map)

    lines = []
    for project_id, hours in totals.hours_by_project.items():
        project = project_map.get(project_id)
        lines.append(
            InvoiceLine(
                project_id=project_id,
                project_name=project_label(project_id, project_map),
                client=project.client if project else None,
                hours=hours,
                rate=project_rate(project_id, project_map),
                amount=totals.billable_by_project[project_id],
            )
        )
    lines.sort(key=lambda line: line.project_name.lower())

    return Invoice(
        start_date=start_date,
        end_date=end_date,
        lines=lines,
        totals=totals,
        title=title,
        currency=currency,
        sender=sender,
    )
