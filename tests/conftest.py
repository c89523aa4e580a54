"""Pytest configuration and shared fixtures."""

import tempfile
from datetime import date
from pathlib import Path
from typing import Callable, Iterator, Sequence

import pytest  # type: ignore[import-not-found]

from time_ledger.core.intervals import hours_from_intervals
from time_ledger.core.models import Project, TimeEntry, TimeInterval
from time_ledger.core.storage import StorageManager
from time_ledger.core.tracker import TimeTracker


def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest."""
    config.addinivalue_line("markers", "integration: Integration tests")
    config.addinivalue_line("markers", "slow: Slow tests")


@pytest.fixture  # type: ignore[misc]
def temp_dir() -> Iterator[Path]:
    """Create temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture  # type: ignore[misc]
def storage(temp_dir: Path) -> StorageManager:
    """Create a storage manager inside the temporary directory."""
    return StorageManager(temp_dir / "data")


@pytest.fixture  # type: ignore[misc]
def tracker(storage: StorageManager) -> TimeTracker:
    """Create a time tracker with temporary storage."""
    return TimeTracker(storage)


@pytest.fixture  # type: ignore[misc]
def acme() -> Project:
    """A billable project with a rate of 100 per hour."""
    return Project(id="acme", name="Acme", client="Acme AB", default_hourly_rate=100.0)


def _make_entry(
    project_id: str,
    day: date,
    intervals: Sequence[tuple[str, str]] = (),
    hours: float = 0.0,
    description: str = "",
) -> TimeEntry:
    """Build an entry from (start, end) pairs, or manual hours if none."""
    time_intervals = [TimeInterval(start, end) for start, end in intervals]
    if time_intervals:
        hours = hours_from_intervals(time_intervals)
    return TimeEntry(
        date=day,
        project_id=project_id,
        hours=hours,
        description=description,
        time_intervals=time_intervals,
    )


@pytest.fixture  # type: ignore[misc]
def make_entry() -> Callable[..., TimeEntry]:
    """Factory for entries that are not persisted."""
    return _make_entry
