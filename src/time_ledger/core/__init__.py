"""Core functionality for time tracking."""

from time_ledger.core.models import ActiveTimer, Project, TimeEntry, TimeInterval
from time_ledger.core.rounding import RoundedTotals, calculate_rounded_totals
from time_ledger.core.tracker import TimeTracker

__all__ = [
    "ActiveTimer",
    "Project",
    "TimeEntry",
    "TimeInterval",
    "RoundedTotals",
    "calculate_rounded_totals",
    "TimeTracker",
]
