"""Report generation for time tracking data."""

from datetime import date
from typing import Iterable, Optional

from rich.console import Console  # type: ignore[import-not-found]
from rich.table import Table  # type: ignore[import-not-found]
from rich.text import Text  # type: ignore[import-not-found]

from time_ledger.core.intervals import format_intervals
from time_ledger.core.models import Project, TimeEntry
from time_ledger.core.rounding import (
    calculate_rounded_totals,
    entry_exact_minutes,
    format_hours,
    format_minutes,
    project_label,
)


class ReportGenerator:
    """Generate various reports from time tracking data."""

    def __init__(
        self,
        console: Optional[Console] = None,
        precision: int = 2,
        currency: str = "SEK",
        date_format: str = "%Y-%m-%d",
    ):
        """Initialize report generator.

        Args:
            console: Rich console for output. Creates default if None.
            precision: Decimal places for hour figures
            currency: Currency label for billable amounts
            date_format: strftime format for dates
        """
        self.console = console or Console()
        self.precision = precision
        self.currency = currency
        self.date_format = date_format

    def _hours(self, hours: float) -> str:
        return format_hours(hours, self.precision)

    def _amount(self, amount: float) -> str:
        return f"{amount:,.2f} {self.currency}"

    def summary_report(
        self,
        entries: list[TimeEntry],
        projects: Iterable[Project],
        period_label: str = "Summary",
    ) -> None:
        """Generate and display summary report.

        Args:
            entries: Entries of the period
            projects: Known projects
            period_label: Label for the report period
        """
        if not entries:
            self.console.print("[yellow]No entries found for this period[/yellow]")
            return

        project_map = {p.id: p for p in projects}
        totals = calculate_rounded_totals(entries, project_map)
        exact_minutes = sum(entry_exact_minutes(e) for e in entries)

        self.console.print(f"\n[bold cyan]Time Ledger - {period_label}[/bold cyan]\n")

        overview_table = Table(show_header=False, box=None, padding=(0, 2))
        overview_table.add_column(style="dim")
        overview_table.add_column(style="bold")

        overview_table.add_row("Billed Time:", self._hours(totals.total_hours))
        overview_table.add_row("Logged Time:", format_minutes(exact_minutes))
        overview_table.add_row("Billable Amount:", self._amount(totals.total_billable))
        overview_table.add_row("Entries:", str(len(entries)))
        overview_table.add_row("Days:", str(len(totals.hours_by_date)))

        self.console.print(overview_table)
        self.console.print()

        project_table = Table(title="Time by Project")
        project_table.add_column("Project", style="cyan")
        project_table.add_column("Client", style="dim")
        project_table.add_column("Hours", style="magenta", justify="right")
        project_table.add_column("Amount", style="green", justify="right")
        project_table.add_column("% Total", justify="right")
        project_table.add_column("Bar", style="blue")

        sorted_projects = sorted(
            totals.hours_by_project.items(), key=lambda x: x[1], reverse=True
        )
        for project_id, hours in sorted_projects:
            project = project_map.get(project_id)
            pct = (hours / totals.total_hours) * 100 if totals.total_hours > 0 else 0
            project_table.add_row(
                project_label(project_id, project_map),
                (project.client if project else None) or "-",
                self._hours(hours),
                self._amount(totals.billable_by_project[project_id]),
                f"{pct:.1f}%",
                self._create_bar(pct),
            )

        self.console.print(project_table)
        self.console.print()

        day_table = Table(title="Time by Day")
        day_table.add_column("Date", style="cyan")
        day_table.add_column("Day", style="dim")
        day_table.add_column("Hours", style="magenta", justify="right")

        for day in sorted(totals.hours_by_date):
            day_table.add_row(
                day.strftime(self.date_format),
                day.strftime("%a"),
                self._hours(totals.hours_by_date[day]),
            )

        self.console.print(day_table)

    def day_report(
        self,
        entries: list[TimeEntry],
        projects: Iterable[Project],
        day: date,
    ) -> None:
        """Display the entries of one day with the day's billed total.

        Args:
            entries: Entries of the day, already ordered for display
            projects: Known projects
            day: The day shown
        """
        if not entries:
            self.console.print(
                f"[yellow]No entries found for {day.strftime(self.date_format)}[/yellow]"
            )
            return

        project_map = {p.id: p for p in projects}
        totals = calculate_rounded_totals(entries, project_map)

        table = Table(title=f"Entries for {day.strftime(self.date_format)}")
        table.add_column("Time", style="cyan")
        table.add_column("Project", style="blue")
        table.add_column("Description")
        table.add_column("Logged", style="magenta", justify="right")
        table.add_column("ID", style="dim")

        for entry in entries:
            project = project_map.get(entry.project_id)
            marker = Text("● ", style=project.color if project else "grey50")
            marker.append(project_label(entry.project_id, project_map))

            table.add_row(
                format_intervals(entry.time_intervals) if entry.time_intervals else "manual",
                marker,
                entry.description or "-",
                format_minutes(entry_exact_minutes(entry)),
                entry.id[:8],
            )

        self.console.print(table)

        summary_table = Table(show_header=False, box=None, padding=(0, 2))
        summary_table.add_column(style="dim")
        summary_table.add_column(style="bold")

        for project_id, hours in sorted(totals.hours_by_project.items()):
            summary_table.add_row(
                f"{project_label(project_id, project_map)}:", self._hours(hours)
            )
        summary_table.add_row("Total:", self._hours(totals.total_hours))

        self.console.print()
        self.console.print(summary_table)

    def _create_bar(self, percentage: float, width: int = 25) -> Text:
        """Create a visual bar for percentage display.

        Args:
            percentage: Percentage value (0-100)
            width: Width of the bar in characters

        Returns:
            Rich Text object with colored bar
        """
        filled = int((percentage / 100) * width)
        empty = width - filled

        bar = Text()
        bar.append("█" * filled, style="blue")
        bar.append("░" * empty, style="dim")

        return bar
