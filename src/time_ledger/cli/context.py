"""Shared helpers for CLI commands."""

import calendar
from datetime import date, datetime, timedelta
from pathlib import Path
from typing import Any, Optional

import click
from rich.console import Console

from time_ledger.core.config import ConfigManager
from time_ledger.core.storage import StorageManager
from time_ledger.core.tracker import TimeTracker

console = Console()
error_console = Console(stderr=True)

PERIODS = ["today", "yesterday", "week", "last-week", "month", "last-month", "all"]


def get_config(ctx: click.Context) -> ConfigManager:
    """Configuration for this invocation, loaded once per context."""
    obj = ctx.ensure_object(dict)
    if "config" not in obj:
        path = obj.get("config_path")
        obj["config"] = ConfigManager(Path(path) if path else None)
    return obj["config"]


def get_tracker(ctx: click.Context) -> TimeTracker:
    """TimeTracker wired to the configured data directory and timer limits."""
    obj = ctx.ensure_object(dict)
    config = get_config(ctx)
    data_dir = obj.get("data_dir")
    storage = StorageManager(Path(data_dir) if data_dir else config.data_dir)
    return TimeTracker(
        storage,
        warning_hours=config.get("timer.warning_hours", 8),
        auto_stop_hours=config.get("timer.auto_stop_hours", 12),
        strict_intervals=config.get("entries.strict_intervals", False),
        default_billable=config.get("entries.default_billable", True),
    )


class DayParamType(click.ParamType):
    """A calendar day given as YYYY-MM-DD, 'today' or 'yesterday'."""

    name = "date"

    def convert(self, value: Any, param: Optional[click.Parameter], ctx: Optional[click.Context]) -> date:
        if isinstance(value, date):
            return value
        text = str(value).strip().lower()
        if text == "today":
            return date.today()
        if text == "yesterday":
            return date.today() - timedelta(days=1)
        try:
            return datetime.strptime(text, "%Y-%m-%d").date()
        except ValueError:
            self.fail(f"Invalid date {value!r}. Use YYYY-MM-DD, 'today' or 'yesterday'", param, ctx)


DAY = DayParamType()


def period_range(
    period: str, today: Optional[date] = None, week_start: str = "monday"
) -> tuple[Optional[date], Optional[date], str]:
    """Resolve a named period to an inclusive date range.

    Args:
        period: One of PERIODS
        today: Reference day. Defaults to the current date.
        week_start: 'monday' or 'sunday'

    Returns:
        Tuple of (first day, last day, label); days are None for 'all'
    """
    today = today or date.today()

    if period == "today":
        return today, today, "Today"
    if period == "yesterday":
        day = today - timedelta(days=1)
        return day, day, "Yesterday"
    if period in ("week", "last-week"):
        offset = today.weekday() if week_start == "monday" else (today.weekday() + 1) % 7
        start = today - timedelta(days=offset)
        if period == "last-week":
            start -= timedelta(days=7)
            return start, start + timedelta(days=6), "Last Week"
        return start, start + timedelta(days=6), "This Week"
    if period in ("month", "last-month"):
        first = today.replace(day=1)
        label = "This Month"
        if period == "last-month":
            first = (first - timedelta(days=1)).replace(day=1)
            label = "Last Month"
        last = first.replace(day=calendar.monthrange(first.year, first.month)[1])
        return first, last, label
    if period == "all":
        return None, None, "All Time"
    raise ValueError(f"Unknown period: {period}")


def resolve_range(
    ctx: click.Context,
    period: str,
    from_date: Optional[date],
    to_date: Optional[date],
) -> tuple[Optional[date], Optional[date], str]:
    """Date range from explicit --from/--to, falling back to a named period."""
    if from_date or to_date:
        label = f"{from_date or 'Beginning'} to {to_date or 'Present'}"
        return from_date, to_date, label
    week_start = get_config(ctx).get("general.week_start", "monday")
    return period_range(period, week_start=week_start)
