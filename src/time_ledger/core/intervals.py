"""Parsing and arithmetic for free-text time intervals.

Intervals are written as ``HH:mm-HH:mm`` (``.`` is accepted in place of
``:``), several of them separated by commas. Parse failures are reported by
returning None; nothing in this module raises on bad user input.
"""

import logging
import re
from datetime import datetime
from typing import Iterable, Optional

from time_ledger.core.models import TimeInterval

logger = logging.getLogger(__name__)

MINUTES_PER_DAY = 24 * 60

_TIME_RE = re.compile(r"([0-9]{1,2}):([0-9]{2})")


def parse_time_string(text: str) -> Optional[str]:
    """Parse a clock time into zero-padded ``HH:mm``.

    Args:
        text: Time such as ``"9:05"``, ``"09:05"`` or ``"12.51"``

    Returns:
        Normalized ``HH:mm`` string, or None if the text is not a valid time

    Example:
        >>> parse_time_string("12.51")
        '12:51'
        >>> parse_time_string("24:00") is None
        True
        >>> parse_time_string("9:5") is None
        True
    """
    normalized = text.replace(".", ":", 1)
    match = _TIME_RE.fullmatch(normalized)
    if not match:
        return None

    hours = int(match.group(1))
    minutes = int(match.group(2))
    if hours > 23 or minutes > 59:
        return None

    return f"{hours:02d}:{minutes:02d}"


def parse_interval_string(text: str) -> Optional[TimeInterval]:
    """Parse a single ``start-end`` interval.

    Args:
        text: Interval such as ``"12:51-13:12"`` or ``"12.51 - 13.12"``

    Returns:
        Parsed interval, or None unless exactly two valid times are found
    """
    parts = [part.strip() for part in text.split("-")]
    if len(parts) != 2:
        return None

    start_time = parse_time_string(parts[0])
    end_time = parse_time_string(parts[1])
    if start_time is None or end_time is None:
        return None

    return TimeInterval(start_time=start_time, end_time=end_time)


def parse_interval_list(text: str, strict: bool = False) -> Optional[list[TimeInterval]]:
    """Parse a comma-separated list of intervals.

    Blank segments are ignored. In lenient mode a segment that fails to
    parse is dropped and the rest are kept; in strict mode any such segment
    rejects the whole input.

    Args:
        text: Interval list such as ``"08:00-10:30, 13.00-14.15"``
        strict: Reject the input if any segment is invalid

    Returns:
        Parsed intervals in input order (possibly empty), or None when
        strict parsing fails
    """
    intervals = []
    for segment in text.split(","):
        if not segment.strip():
            continue
        interval = parse_interval_string(segment)
        if interval is None:
            if strict:
                return None
            logger.warning(f"Dropping unparseable interval segment: {segment.strip()!r}")
            continue
        intervals.append(interval)
    return intervals


def time_to_minutes(value: str) -> int:
    """Convert ``HH:mm`` to minutes since midnight."""
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def calculate_interval_minutes(start_time: str, end_time: str) -> int:
    """Calculate exact minutes between two ``HH:mm`` times.

    An end time before the start time is read as crossing midnight.

    Args:
        start_time: Start as ``HH:mm``
        end_time: End as ``HH:mm``

    Returns:
        Elapsed minutes, never negative and never rounded

    Example:
        >>> calculate_interval_minutes("09:00", "17:00")
        480
        >>> calculate_interval_minutes("23:00", "01:00")
        120
    """
    start = time_to_minutes(start_time)
    end = time_to_minutes(end_time)
    if end >= start:
        return end - start
    return (MINUTES_PER_DAY - start) + end


def calculate_total_minutes_from_intervals(intervals: Iterable[TimeInterval]) -> int:
    """Sum exact minutes over intervals. Empty input gives 0."""
    return sum(calculate_interval_minutes(i.start_time, i.end_time) for i in intervals)


def hours_from_intervals(intervals: Iterable[TimeInterval]) -> float:
    """Exact (unrounded) hours covered by intervals."""
    return calculate_total_minutes_from_intervals(intervals) / 60


def format_time_interval(interval: TimeInterval) -> str:
    """Format an interval as ``HH:mm-HH:mm``."""
    return f"{interval.start_time}-{interval.end_time}"


def format_intervals(intervals: Iterable[TimeInterval]) -> str:
    """Format intervals for display, comma separated."""
    return ", ".join(format_time_interval(i) for i in intervals)


def time_of(moment: datetime) -> str:
    """Wall-clock ``HH:mm`` of a datetime, seconds truncated."""
    return f"{moment.hour:02d}:{moment.minute:02d}"


def current_time(now: Optional[datetime] = None) -> str:
    """Current wall-clock time as ``HH:mm``."""
    return time_of(now or datetime.now())
