"""Export and import CLI commands."""

from datetime import date
from pathlib import Path
from typing import Optional

import click

from time_ledger.cli.context import (
    DAY,
    PERIODS,
    console,
    error_console,
    get_config,
    get_tracker,
    resolve_range,
)
from time_ledger.core.storage import StorageManager
from time_ledger.export_import import (
    CSVExporter,
    ExcelExporter,
    Exporter,
    JSONExporter,
    JSONImporter,
    MarkdownExporter,
    PDFExporter,
    default_filename,
)

EXPORTERS: dict[str, type[Exporter]] = {
    "csv": CSVExporter,
    "json": JSONExporter,
    "markdown": MarkdownExporter,
    "excel": ExcelExporter,
    "pdf": PDFExporter,
}

FORMAT_BY_EXTENSION = {
    ".csv": "csv",
    ".json": "json",
    ".md": "markdown",
    ".xlsx": "excel",
    ".pdf": "pdf",
}


@click.group()
def data() -> None:
    """Export and import time tracking data."""
    pass


@data.command(name="export")
@click.argument("output_file", required=False, type=click.Path())
@click.option(
    "--format",
    "-f",
    "fmt",
    type=click.Choice(list(EXPORTERS), case_sensitive=False),
    help="Export format (auto-detected from file extension if not specified)",
)
@click.option("--period", type=click.Choice(PERIODS), default="month", help="Time period")
@click.option("--from", "from_date", type=DAY, help="Start date (YYYY-MM-DD)")
@click.option("--to", "to_date", type=DAY, help="End date (YYYY-MM-DD)")
@click.option("--project", "-p", "project_id", help="Filter by project")
@click.option(
    "--include-charts/--no-charts",
    default=True,
    help="Include charts in Excel export (default: yes)",
)
@click.option(
    "--group-by",
    type=click.Choice(["day", "project"]),
    default="day",
    help="Group entries in Markdown export (default: day)",
)
@click.pass_context
def export_command(
    ctx: click.Context,
    output_file: Optional[str],
    fmt: Optional[str],
    period: str,
    from_date: Optional[date],
    to_date: Optional[date],
    project_id: Optional[str],
    include_charts: bool,
    group_by: str,
) -> None:
    """Export time tracking data to various formats.

    Supported formats:
    - CSV: Billed hours per project and day (default)
    - JSON: Full data with rounded totals
    - Markdown: Human-readable timesheet
    - Excel: Formatted spreadsheet with charts

    Without OUTPUT_FILE the file is named after the period, for example
    timesheet_2025-11-01_2025-11-30.csv.

    Examples:
      time-ledger data export
      time-ledger data export report.xlsx --period last-month
      time-ledger data export report.md --group-by project -p acme
    """
    settings = get_config(ctx)
    tracker = get_tracker(ctx)

    start_date, end_date, _ = resolve_range(ctx, period, from_date, to_date)

    if output_file:
        output_path = Path(output_file)
        if not fmt:
            ext = output_path.suffix.lower()
            fmt = FORMAT_BY_EXTENSION.get(ext)
            if not fmt:
                error_console.print(
                    f"[red]Error:[/red] Could not detect format from extension '{ext}'. "
                    "Please specify --format"
                )
                raise SystemExit(1)
    else:
        fmt = fmt or settings.get("export.default_format", "csv")

    fmt = fmt.lower()
    if not output_file:
        extension = next(ext for ext, name in FORMAT_BY_EXTENSION.items() if name == fmt)
        output_path = Path(default_filename(start_date, end_date, extension))
    exporter = EXPORTERS[fmt](output_path)

    entries = tracker.get_entries(start_date, end_date, project_id)
    if not entries:
        console.print("[yellow]Warning:[/yellow] No entries match the filters")

    try:
        exporter.export_entries(
            entries,
            tracker.get_projects(),
            start_date,
            end_date,
            delimiter=settings.get("export.csv_delimiter", ";"),
            include_charts=include_charts,
            group_by=group_by,
            currency=settings.get("invoice.currency", "SEK"),
        )
    except (ImportError, OSError, ValueError) as e:
        error_console.print(f"[red]Error:[/red] {e}")
        raise SystemExit(1)

    console.print(f"[green]✓[/green] Exported {len(entries)} entries to {output_path}")


@data.command(name="import")
@click.argument("input_file", type=click.Path(exists=True))
@click.option(
    "--merge/--replace",
    default=True,
    help="Merge with existing entries or replace all (default: merge)",
)
@click.option(
    "--dry-run",
    is_flag=True,
    help="Show what would be imported without actually importing",
)
@click.pass_context
def import_command(ctx: click.Context, input_file: str, merge: bool, dry_run: bool) -> None:
    """Import entries and projects from a JSON export.

    Entries with an existing id are overwritten. Projects are only added
    when no project with the same id exists.

    Examples:
      time-ledger data import backup.json
      time-ledger data import data.json --dry-run
    """
    tracker = get_tracker(ctx)
    importer = JSONImporter(Path(input_file))

    try:
        entries = importer.import_entries()
        projects = importer.import_projects()
    except (FileNotFoundError, ValueError) as e:
        error_console.print(f"[red]Error:[/red] {e}")
        raise SystemExit(1)

    if not entries:
        console.print("[yellow]Warning:[/yellow] No entries found in import file")
        return

    console.print(f"Found {len(entries)} entries to import")

    if dry_run:
        console.print("[yellow]Dry run - showing first 5 entries:[/yellow]")
        for i, entry in enumerate(entries[:5], 1):
            console.print(
                f"  {i}. {entry.date.isoformat()} - {entry.project_id} - "
                f"{entry.hours:.2f}h {entry.description}"
            )
        if len(entries) > 5:
            console.print(f"  ... and {len(entries) - 5} more")
        return

    storage = tracker.storage

    if not merge:
        if not click.confirm("This will DELETE all existing entries. Are you sure?", default=False):
            console.print("Import cancelled")
            return
        if isinstance(storage, StorageManager):
            console.print(f"Backed up current data to {storage.backup('pre-import')}")
        existing_entries = storage.load_entries()
        for entry in existing_entries:
            storage.delete_entry(entry.id)
        console.print(f"Cleared {len(existing_entries)} existing entries")

    known = {p.id for p in storage.load_projects()}
    added_projects = 0
    for imported_project in projects:
        if imported_project.id not in known:
            storage.save_project(imported_project)
            added_projects += 1

    for entry in entries:
        storage.save_entry(entry)

    action = "imported" if merge else "replaced with"
    console.print(f"[green]✓[/green] Successfully {action} {len(entries)} entries")
    if added_projects:
        console.print(f"  Added {added_projects} projects")
