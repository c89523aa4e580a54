"""Quarter-hour rounding and aggregation of time entries.

Every figure that is shown as billable time goes through
calculate_rounded_totals. Exact minutes are summed per (project, date)
bucket across all entries and intervals, and each bucket is rounded up to
the next quarter hour exactly once. Project, date and grand totals are then
sums of those rounded buckets, so all views agree with each other.
"""

import math
from collections import defaultdict
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import date
from typing import Optional, Union

from time_ledger.core.intervals import (
    calculate_total_minutes_from_intervals,
    parse_interval_list,
)
from time_ledger.core.models import Project, TimeEntry

ROUNDING_STEP_MINUTES = 15
UNKNOWN_PROJECT = "unknown"

Bucket = tuple[str, date]
ProjectLookup = Union[Mapping[str, Project], Iterable[Project]]


def round_up_to_15_minutes(minutes: float) -> int:
    """Round minutes up to the next quarter-hour boundary.

    Example:
        >>> round_up_to_15_minutes(0)
        0
        >>> round_up_to_15_minutes(1)
        15
        >>> round_up_to_15_minutes(16)
        30
    """
    return math.ceil(minutes / ROUNDING_STEP_MINUTES) * ROUNDING_STEP_MINUTES


def minutes_to_rounded_hours(minutes: float) -> float:
    """Convert minutes to hours, rounded up to a multiple of 0.25."""
    return round_up_to_15_minutes(minutes) / 60


def entry_exact_minutes(entry: TimeEntry) -> float:
    """Exact minutes logged by a single entry.

    Uses the entry's intervals when it has any, otherwise its manual hours.
    For list and detail display only; totals come from the bucket pass.
    """
    if entry.time_intervals:
        return calculate_total_minutes_from_intervals(entry.time_intervals)
    return entry.hours * 60


def preview_minutes(text: str, strict: bool = False) -> Optional[int]:
    """Exact minutes for interval text that is still being typed.

    Args:
        text: Comma-separated interval list
        strict: Reject the text if any segment is invalid

    Returns:
        Unrounded minutes, or None if no interval could be parsed
    """
    intervals = parse_interval_list(text, strict=strict)
    if not intervals:
        return None
    return calculate_total_minutes_from_intervals(intervals)


@dataclass(frozen=True)
class RoundedTotals:
    """Rounded hours and billable amounts derived from one bucket pass.

    Attributes:
        total_hours: Sum of all rounded buckets
        total_billable: Sum of rounded bucket hours times project rate
        hours_by_project: Rounded hours per project id
        hours_by_date: Rounded hours per day
        billable_by_project: Billable amount per project id
        buckets: Rounded hours per (project id, date)
        bucket_minutes: Exact minutes per (project id, date) before rounding
    """

    total_hours: float = 0.0
    total_billable: float = 0.0
    hours_by_project: dict[str, float] = field(default_factory=dict)
    hours_by_date: dict[date, float] = field(default_factory=dict)
    billable_by_project: dict[str, float] = field(default_factory=dict)
    buckets: dict[Bucket, float] = field(default_factory=dict)
    bucket_minutes: dict[Bucket, float] = field(default_factory=dict)


def _project_map(projects: Optional[ProjectLookup]) -> Mapping[str, Project]:
    if projects is None:
        return {}
    if isinstance(projects, Mapping):
        return projects
    return {p.id: p for p in projects}


def project_label(project_id: str, projects: Optional[ProjectLookup] = None) -> str:
    """Display name for a project id, "unknown" if it cannot be resolved."""
    project = _project_map(projects).get(project_id)
    return project.name if project else UNKNOWN_PROJECT


def project_rate(project_id: str, projects: Optional[ProjectLookup] = None) -> float:
    """Hourly rate used for billing a project; 0 when missing."""
    project = _project_map(projects).get(project_id)
    if project is None or project.default_hourly_rate is None:
        return 0.0
    return project.default_hourly_rate


def calculate_rounded_totals(
    entries: Iterable[TimeEntry],
    projects: Optional[ProjectLookup] = None,
) -> RoundedTotals:
    """Aggregate entries into rounded totals.

    Args:
        entries: Entries to aggregate, in any order. Not modified.
        projects: Mapping of project id to Project, or an iterable of
            projects, used to resolve hourly rates

    Returns:
        Totals, per-project and per-date hours, and billable amounts
    """
    project_map = _project_map(projects)

    bucket_minutes: dict[Bucket, float] = defaultdict(float)
    for entry in entries:
        bucket_minutes[(entry.project_id, entry.date)] += entry_exact_minutes(entry)

    buckets: dict[Bucket, float] = {}
    hours_by_project: dict[str, float] = defaultdict(float)
    hours_by_date: dict[date, float] = defaultdict(float)
    billable_by_project: dict[str, float] = defaultdict(float)

    for bucket, minutes in bucket_minutes.items():
        project_id, day = bucket
        rounded = minutes_to_rounded_hours(minutes)
        amount = rounded * project_rate(project_id, project_map)

        buckets[bucket] = rounded
        hours_by_project[project_id] += rounded
        hours_by_date[day] += rounded
        billable_by_project[project_id] += amount

    return RoundedTotals(
        total_hours=sum(buckets.values(), 0.0),
        total_billable=sum(billable_by_project.values(), 0.0),
        hours_by_project=dict(hours_by_project),
        hours_by_date=dict(hours_by_date),
        billable_by_project=dict(billable_by_project),
        buckets=buckets,
        bucket_minutes=dict(bucket_minutes),
    )


def format_hours(hours: float, precision: int = 2) -> str:
    """Format hours for display, e.g. ``"1.25 h"``."""
    return f"{hours:.{precision}f} h"


def format_minutes(minutes: float) -> str:
    """Format minutes as a compact duration, e.g. ``"1h 05m"`` or ``"14m"``."""
    whole = int(round(minutes))
    hours, mins = divmod(whole, 60)
    if hours > 0:
        return f"{hours}h {mins:02d}m"
    return f"{mins}m"
