"""CLI commands for project management."""

import sys
from typing import Optional

import click
from rich.table import Table
from rich.text import Text

from time_ledger.cli.context import console, error_console, get_tracker


@click.group()
def project() -> None:
    """Manage projects and their hourly rates."""
    pass


@project.command("add")
@click.argument("name")
@click.option("--id", "project_id", help="Project identifier (derived from the name if omitted)")
@click.option("-c", "--client", help="Client name")
@click.option("-r", "--rate", type=float, help="Default hourly rate")
@click.option("--color", help="Display color, e.g. '#3b82f6'")
@click.pass_context
def project_add(
    ctx: click.Context,
    name: str,
    project_id: Optional[str],
    client: Optional[str],
    rate: Optional[float],
    color: Optional[str],
) -> None:
    """Create a project.

    Example:
        time-ledger project add "Acme Corp" -c "Acme AB" -r 950
    """
    tracker = get_tracker(ctx)

    try:
        created = tracker.add_project(
            name, client=client, default_hourly_rate=rate, project_id=project_id, color=color
        )
    except ValueError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)

    console.print(f"[green]✓[/green] Added project: {created.name}")
    console.print(f"  ID: {created.id}")
    if created.client:
        console.print(f"  Client: {created.client}")
    if created.default_hourly_rate is not None:
        console.print(f"  Rate: {created.default_hourly_rate:.2f}")


@project.command("list")
@click.option("-a", "--all", "show_all", is_flag=True, help="Include archived projects")
@click.pass_context
def project_list(ctx: click.Context, show_all: bool) -> None:
    """List projects.

    Example:
        time-ledger project list --all
    """
    tracker = get_tracker(ctx)
    projects = tracker.get_projects(active_only=not show_all)

    if not projects:
        console.print("[yellow]No projects found[/yellow]")
        return

    table = Table(title="Projects")
    table.add_column("ID", style="cyan")
    table.add_column("Name", style="bold")
    table.add_column("Client")
    table.add_column("Rate", justify="right", style="magenta")
    if show_all:
        table.add_column("Active")

    for p in sorted(projects, key=lambda p: p.name.lower()):
        name = Text("● ", style=p.color)
        name.append(p.name)
        row = [
            p.id,
            name,
            p.client or "-",
            f"{p.default_hourly_rate:.2f}" if p.default_hourly_rate is not None else "-",
        ]
        if show_all:
            row.append("yes" if p.active else "no")
        table.add_row(*row)

    console.print(table)


@project.command("edit")
@click.argument("project_id")
@click.option("-n", "--name", help="New display name")
@click.option("-c", "--client", help="Client name")
@click.option("-r", "--rate", type=float, help="Default hourly rate")
@click.option("--color", help="Display color")
@click.pass_context
def project_edit(
    ctx: click.Context,
    project_id: str,
    name: Optional[str],
    client: Optional[str],
    rate: Optional[float],
    color: Optional[str],
) -> None:
    """Edit a project.

    Example:
        time-ledger project edit acme-corp -r 1050
    """
    tracker = get_tracker(ctx)

    try:
        updated = tracker.update_project(
            project_id, name=name, client=client, default_hourly_rate=rate, color=color
        )
    except ValueError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)

    console.print(f"[green]✓[/green] Updated project: {updated.name}")


@project.command("archive")
@click.argument("project_id")
@click.option("--restore", is_flag=True, help="Make an archived project active again")
@click.pass_context
def project_archive(ctx: click.Context, project_id: str, restore: bool) -> None:
    """Archive a project so it is hidden from listings.

    Entries of archived projects still appear in reports and invoices.

    Example:
        time-ledger project archive acme-corp
        time-ledger project archive acme-corp --restore
    """
    tracker = get_tracker(ctx)

    try:
        updated = tracker.update_project(project_id, active=restore)
    except ValueError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)

    state = "Restored" if restore else "Archived"
    console.print(f"[green]✓[/green] {state} project: {updated.name}")


@project.command("delete")
@click.argument("project_id")
@click.option("-y", "--yes", is_flag=True, help="Skip confirmation")
@click.pass_context
def project_delete(ctx: click.Context, project_id: str, yes: bool) -> None:
    """Delete a project.

    Its entries are kept and reported under "unknown" with no rate.

    Example:
        time-ledger project delete acme-corp --yes
    """
    tracker = get_tracker(ctx)

    entry_count = len(tracker.get_entries(project_id=project_id))
    if not yes:
        if entry_count:
            console.print(
                f"[yellow]Warning:[/yellow] {entry_count} entries reference this project"
            )
        if not click.confirm(f"Delete project {project_id}?"):
            console.print("Cancelled")
            return

    if not tracker.delete_project(project_id):
        error_console.print(f"[red]Error:[/red] Project not found: {project_id}")
        sys.exit(1)

    console.print(f"[green]✓[/green] Deleted project {project_id}")
