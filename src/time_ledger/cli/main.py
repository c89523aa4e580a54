"""Main CLI application."""

import sys
from datetime import date, datetime
from pathlib import Path
from typing import Optional

import click
from rich.panel import Panel
from rich.table import Table

from time_ledger import __version__
from time_ledger.analysis.invoice import build_invoice
from time_ledger.analysis.reports import ReportGenerator
from time_ledger.cli.config_commands import config
from time_ledger.cli.context import (
    DAY,
    PERIODS,
    console,
    error_console,
    get_config,
    get_tracker,
    resolve_range,
)
from time_ledger.cli.export_import_commands import data
from time_ledger.cli.project_commands import project
from time_ledger.core.intervals import (
    calculate_interval_minutes,
    format_intervals,
    format_time_interval,
    parse_interval_list,
)
from time_ledger.core.logging_setup import setup_logging
from time_ledger.core.models import TimeEntry
from time_ledger.core.rounding import (
    entry_exact_minutes,
    format_hours,
    format_minutes,
    project_label,
    round_up_to_15_minutes,
)
from time_ledger.export_import.base import Exporter, default_filename
from time_ledger.export_import.markdown_format import InvoiceExporter, render_invoice
from time_ledger.export_import.pdf_format import PDFExporter


def format_elapsed(seconds: int) -> str:
    """Format elapsed seconds as ``HH:MM:SS``."""
    hours, remainder = divmod(max(seconds, 0), 3600)
    minutes, secs = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


def _print_entry(entry: TimeEntry, project_name: str) -> None:
    time_range = format_intervals(entry.time_intervals) or "manual"
    console.print(f"  Project: {project_name}")
    console.print(f"  Date: {entry.date.isoformat()}")
    console.print(f"  Time: {time_range} ({format_minutes(entry_exact_minutes(entry))})")
    if entry.description:
        console.print(f"  Description: {entry.description}")
    console.print(f"  [dim]Entry ID: {entry.id}[/dim]")


def _resolve_entry_id(entries: list[TimeEntry], entry_id: str) -> str:
    """Expand an id prefix, as shown in listings, to a full entry id."""
    matches = [e.id for e in entries if e.id.startswith(entry_id)]
    if not matches:
        raise ValueError(f"Entry not found: {entry_id}")
    if len(matches) > 1 and entry_id not in matches:
        raise ValueError(f"Ambiguous entry id: {entry_id}")
    return entry_id if entry_id in matches else matches[0]


@click.group()
@click.version_option(version=__version__)
@click.option("--data-dir", help="Custom data directory", type=click.Path())
@click.option("--config", "config_path", help="Custom config file", type=click.Path())
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.option("--no-color", is_flag=True, help="Disable colored output")
@click.pass_context
def cli(
    ctx: click.Context,
    data_dir: Optional[str],
    config_path: Optional[str],
    verbose: bool,
    no_color: bool,
) -> None:
    """Time Ledger - Billable time tracking for consultants.

    Log work as clock intervals or run a timer, then report and invoice
    hours rounded up to the quarter hour per project and day.
    """
    ctx.ensure_object(dict)
    ctx.obj["data_dir"] = data_dir
    ctx.obj["config_path"] = config_path

    if no_color:
        console.no_color = True

    try:
        settings = get_config(ctx)
    except ValueError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)

    log_file = settings.get("advanced.log_file")
    setup_logging(
        "DEBUG" if verbose else settings.get("advanced.log_level", "WARNING"),
        Path(log_file).expanduser() if log_file else None,
    )


cli.add_command(config)
cli.add_command(data)
cli.add_command(project)


@cli.command()
@click.argument("project_id")
@click.option("-d", "--description", default="", help="What you are working on")
@click.pass_context
def start(ctx: click.Context, project_id: str, description: str) -> None:
    """Start a timer for a project.

    A running timer is stopped and saved first.

    Example:
        time-ledger start acme -d "API integration"
    """
    tracker = get_tracker(ctx)

    try:
        tracker.check_timer()
        stopped, timer = tracker.start_timer(project_id, description)
    except ValueError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)

    projects = tracker.project_map()
    if stopped:
        console.print(
            f"[yellow]✓[/yellow] Stopped previous timer: "
            f"{project_label(stopped.project_id, projects)} "
            f"({format_intervals(stopped.time_intervals)})"
        )

    console.print(f"[green]✓[/green] Started timer: {project_label(timer.project_id, projects)}")
    if description:
        console.print(f"  Description: {description}")
    console.print(f"  Started: {timer.start_time.strftime('%Y-%m-%d %H:%M')}")


@cli.command()
@click.pass_context
def stop(ctx: click.Context) -> None:
    """Stop the running timer and save it as an entry.

    Example:
        time-ledger stop
    """
    tracker = get_tracker(ctx)

    try:
        auto_stopped = tracker.check_timer()
        if auto_stopped:
            console.print("[yellow]Timer had already been stopped automatically[/yellow]")
            entry = auto_stopped
        else:
            entry = tracker.stop_timer()
    except ValueError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)

    projects = tracker.project_map()
    console.print(f"[green]✓[/green] Stopped timer: {project_label(entry.project_id, projects)}")
    _print_entry(entry, project_label(entry.project_id, projects))

    day_totals = tracker.totals(entry.date, entry.date, entry.project_id)
    console.print(f"  Billed for the day: {format_hours(day_totals.total_hours)}")


@cli.command()
@click.pass_context
def status(ctx: click.Context) -> None:
    """Show the running timer.

    Example:
        time-ledger status
    """
    tracker = get_tracker(ctx)

    auto_stopped = tracker.check_timer()
    if auto_stopped:
        console.print(
            f"[yellow]Timer was stopped automatically after "
            f"{tracker.auto_stop_hours:g} hours[/yellow]"
        )
        _print_entry(auto_stopped, project_label(auto_stopped.project_id, tracker.project_map()))
        return

    timer = tracker.timer_status()
    if not timer:
        console.print("[yellow]No timer running[/yellow]")
        return

    now = datetime.now()
    elapsed = timer.elapsed_seconds(now)

    content = f"[bold]{project_label(timer.project_id, tracker.project_map())}[/bold]\n\n"
    content += f"[dim]Elapsed:[/dim] {format_elapsed(elapsed)}\n"
    content += f"[dim]Started:[/dim] {timer.start_time.strftime('%Y-%m-%d %H:%M')}"
    if timer.description:
        content += f"\n[dim]Description:[/dim] {timer.description}"

    border = "green"
    if tracker.is_over_warning(timer, now):
        border = "yellow"
        content += (
            f"\n\n[yellow]Running for more than {tracker.warning_hours:g} hours. "
            f"It stops automatically after {tracker.auto_stop_hours:g} hours.[/yellow]"
        )

    console.print(Panel(content, title="Timer Running", border_style=border))


@cli.command()
@click.pass_context
def cancel(ctx: click.Context) -> None:
    """Discard the running timer without saving.

    Example:
        time-ledger cancel
    """
    tracker = get_tracker(ctx)

    if tracker.cancel_timer():
        console.print("[yellow]✓[/yellow] Timer cancelled")
    else:
        console.print("[yellow]No timer running[/yellow]")


@cli.command()
@click.argument("description")
@click.pass_context
def describe(ctx: click.Context, description: str) -> None:
    """Change the description of the running timer.

    Example:
        time-ledger describe "Code review"
    """
    tracker = get_tracker(ctx)

    try:
        tracker.update_timer_description(description)
    except ValueError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)

    console.print(f"[green]✓[/green] Description updated: {description}")


@cli.command()
@click.argument("project_id")
@click.option("--date", "entry_date", type=DAY, default="today", help="Day of the work (YYYY-MM-DD, 'today' or 'yesterday')")
@click.option("-i", "--intervals", help="Clock intervals, e.g. '08:00-10:30, 13:00-14:15'")
@click.option("-H", "--hours", type=float, help="Manual hours instead of intervals")
@click.option("-d", "--description", default="", help="What was worked on")
@click.option("--billable/--no-billable", default=None, help="Billable flag")
@click.option("--rate", type=float, help="Entry hourly rate")
@click.pass_context
def add(
    ctx: click.Context,
    project_id: str,
    entry_date: date,
    intervals: Optional[str],
    hours: Optional[float],
    description: str,
    billable: Optional[bool],
    rate: Optional[float],
) -> None:
    """Add an entry from clock intervals or manual hours.

    Example:
        time-ledger add acme -i "08:00-10:30, 13:00-14:15" -d "Workshop"
        time-ledger add acme --date yesterday -H 2.5
    """
    if intervals and hours is not None:
        error_console.print("[red]Error:[/red] Use either --intervals or --hours, not both")
        sys.exit(1)

    tracker = get_tracker(ctx)

    try:
        entry = tracker.add_entry(
            project_id,
            entry_date,
            description=description,
            hours=hours,
            intervals=intervals,
            billable=billable,
            hourly_rate=rate,
        )
    except ValueError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)

    console.print("[green]✓[/green] Added entry")
    _print_entry(entry, project_label(entry.project_id, tracker.project_map()))


@cli.command()
@click.argument("entry_id")
@click.option("-p", "--project", "project_id", help="New project")
@click.option("--date", "entry_date", type=DAY, help="New day")
@click.option("-i", "--intervals", help="Replace clock intervals")
@click.option("-H", "--hours", type=float, help="Replace with manual hours")
@click.option("-d", "--description", help="New description")
@click.option("--billable/--no-billable", default=None, help="Billable flag")
@click.option("--rate", type=float, help="Entry hourly rate")
@click.pass_context
def edit(
    ctx: click.Context,
    entry_id: str,
    project_id: Optional[str],
    entry_date: Optional[date],
    intervals: Optional[str],
    hours: Optional[float],
    description: Optional[str],
    billable: Optional[bool],
    rate: Optional[float],
) -> None:
    """Edit an existing entry.

    Example:
        time-ledger edit 3f2a1b4c -i "09:00-11:00"
    """
    tracker = get_tracker(ctx)

    try:
        entry = tracker.update_entry(
            _resolve_entry_id(tracker.storage.load_entries(), entry_id),
            project_id=project_id,
            entry_date=entry_date,
            description=description,
            hours=hours,
            intervals=intervals,
            billable=billable,
            hourly_rate=rate,
        )
    except ValueError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)

    console.print("[green]✓[/green] Updated entry")
    _print_entry(entry, project_label(entry.project_id, tracker.project_map()))


@cli.command()
@click.argument("entry_id")
@click.option("-y", "--yes", is_flag=True, help="Skip confirmation")
@click.pass_context
def delete(ctx: click.Context, entry_id: str, yes: bool) -> None:
    """Delete an entry.

    Example:
        time-ledger delete 3f2a1b4c
    """
    tracker = get_tracker(ctx)

    try:
        full_id = _resolve_entry_id(tracker.storage.load_entries(), entry_id)
    except ValueError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)

    if not yes and not click.confirm(f"Delete entry {full_id}?"):
        console.print("Cancelled")
        return

    tracker.delete_entry(full_id)
    console.print(f"[green]✓[/green] Deleted entry {full_id}")


@cli.command()
@click.option("-n", "--count", default=10, help="Number of entries to show")
@click.option("--date", "entry_date", type=DAY, help="Filter by date (YYYY-MM-DD or 'today', 'yesterday')")
@click.option("-p", "--project", "project_id", help="Filter by project")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def log(
    ctx: click.Context,
    count: int,
    entry_date: Optional[date],
    project_id: Optional[str],
    as_json: bool,
) -> None:
    """List recent entries.

    Example:
        time-ledger log
        time-ledger log -n 20 -p acme
    """
    tracker = get_tracker(ctx)

    entries = tracker.get_entries(
        start_date=entry_date,
        end_date=entry_date,
        project_id=project_id,
        limit=count,
    )

    if not entries:
        console.print("[yellow]No entries found[/yellow]")
        return

    if as_json:
        import json

        click.echo(json.dumps([entry.to_json_dict() for entry in entries], indent=2))
        return

    date_format = get_config(ctx).get("general.date_format", "%Y-%m-%d")
    projects = tracker.project_map()

    table = Table(title=f"Time Entries (showing {len(entries)})")
    table.add_column("Date", style="cyan")
    table.add_column("Time")
    table.add_column("Logged", style="magenta", justify="right")
    table.add_column("Project", style="blue")
    table.add_column("Description", style="bold")
    table.add_column("ID", style="dim")

    for entry in entries:
        table.add_row(
            entry.date.strftime(date_format),
            format_intervals(entry.time_intervals) or "manual",
            format_minutes(entry_exact_minutes(entry)),
            project_label(entry.project_id, projects),
            entry.description or "-",
            entry.id[:8],
        )

    console.print(table)


@cli.command()
@click.option("--date", "day", type=DAY, default="today", help="Day to show")
@click.pass_context
def today(ctx: click.Context, day: date) -> None:
    """Show the entries of a day with billed totals.

    Example:
        time-ledger today
        time-ledger today --date yesterday
    """
    tracker = get_tracker(ctx)
    settings = get_config(ctx)

    report_gen = ReportGenerator(
        console,
        precision=settings.get("display.hours_precision", 2),
        currency=settings.get("invoice.currency", "SEK"),
        date_format=settings.get("general.date_format", "%Y-%m-%d"),
    )
    report_gen.day_report(tracker.entries_for_day(day), tracker.get_projects(), day)


@cli.command()
@click.argument("intervals")
@click.pass_context
def preview(ctx: click.Context, intervals: str) -> None:
    """Show how interval text would be read, without saving.

    Example:
        time-ledger preview "12.51-13.12, 14:00-15:30"
    """
    tracker = get_tracker(ctx)

    parsed = parse_interval_list(intervals, strict=tracker.strict_intervals)
    if not parsed:
        error_console.print(f"[red]Error:[/red] No valid intervals in {intervals!r}")
        sys.exit(1)

    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column(style="cyan")
    table.add_column(justify="right")
    for interval in parsed:
        minutes = calculate_interval_minutes(interval.start_time, interval.end_time)
        table.add_row(format_time_interval(interval), format_minutes(minutes))

    total = sum(calculate_interval_minutes(i.start_time, i.end_time) for i in parsed)
    table.add_row("[bold]Total[/bold]", f"[bold]{format_minutes(total)}[/bold]")
    console.print(table)
    console.print(
        f"[dim]Billed on its own: {format_hours(round_up_to_15_minutes(total) / 60)}[/dim]"
    )


@cli.command()
@click.option("--period", type=click.Choice(PERIODS), default="week", help="Time period")
@click.option("--from", "from_date", type=DAY, help="Start date (YYYY-MM-DD)")
@click.option("--to", "to_date", type=DAY, help="End date (YYYY-MM-DD)")
@click.option("-p", "--project", "project_id", help="Filter by project")
@click.pass_context
def report(
    ctx: click.Context,
    period: str,
    from_date: Optional[date],
    to_date: Optional[date],
    project_id: Optional[str],
) -> None:
    """Summarize billed hours and amounts.

    Examples:
        time-ledger report --period month
        time-ledger report --from 2025-11-01 --to 2025-11-30 -p acme
    """
    tracker = get_tracker(ctx)
    settings = get_config(ctx)

    start_date, end_date, period_label = resolve_range(ctx, period, from_date, to_date)
    entries = tracker.get_entries(start_date, end_date, project_id)

    report_gen = ReportGenerator(
        console,
        precision=settings.get("display.hours_precision", 2),
        currency=settings.get("invoice.currency", "SEK"),
        date_format=settings.get("general.date_format", "%Y-%m-%d"),
    )
    report_gen.summary_report(entries, tracker.get_projects(), period_label)


@cli.command()
@click.argument("output", required=False, type=click.Path())
@click.option("--period", type=click.Choice(PERIODS), default="month", help="Time period")
@click.option("--from", "from_date", type=DAY, help="Start date (YYYY-MM-DD)")
@click.option("--to", "to_date", type=DAY, help="End date (YYYY-MM-DD)")
@click.option("-p", "--project", "project_id", help="Only bill this project")
@click.option("--print", "to_stdout", is_flag=True, help="Print instead of writing a file")
@click.pass_context
def invoice(
    ctx: click.Context,
    output: Optional[str],
    period: str,
    from_date: Optional[date],
    to_date: Optional[date],
    project_id: Optional[str],
    to_stdout: bool,
) -> None:
    """Create an invoice with one line per project.

    The invoice is written as Markdown, or as PDF when OUTPUT ends in .pdf.

    Examples:
        time-ledger invoice --period last-month
        time-ledger invoice invoice.md --from 2025-11-01 --to 2025-11-30
        time-ledger invoice november.pdf --period last-month
    """
    tracker = get_tracker(ctx)
    settings = get_config(ctx)

    start_date, end_date, _ = resolve_range(ctx, period, from_date, to_date)
    entries = tracker.get_entries(start_date, end_date, project_id)
    if not entries:
        console.print("[yellow]No entries to invoice for this period[/yellow]")
        return

    options = {
        "title": settings.get("invoice.title", "Invoice"),
        "currency": settings.get("invoice.currency", "SEK"),
        "sender": settings.get("invoice.sender"),
    }

    if to_stdout:
        click.echo(
            render_invoice(
                build_invoice(
                    entries,
                    tracker.get_projects(),
                    start_date=start_date,
                    end_date=end_date,
                    **options,
                )
            )
        )
        return

    output_path = Path(output) if output else Path(default_filename(start_date, end_date, ".md"))

    try:
        if output_path.suffix.lower() == ".pdf":
            exporter: Exporter = PDFExporter(output_path)
            options["document"] = "invoice"
        else:
            exporter = InvoiceExporter(output_path)
        exporter.export_entries(entries, tracker.get_projects(), start_date, end_date, **options)
    except (ImportError, OSError, ValueError) as e:
        error_console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)

    console.print(f"[green]✓[/green] Invoice written to {output_path}")


if __name__ == "__main__":
    cli(obj={})
