"""Core time tracking engine."""

import logging
import re
from datetime import date, datetime, timedelta
from typing import Optional

from time_ledger.core.intervals import hours_from_intervals, parse_interval_list, time_of
from time_ledger.core.models import ActiveTimer, Project, TimeEntry, TimeInterval
from time_ledger.core.rounding import RoundedTotals, calculate_rounded_totals
from time_ledger.core.storage import Store, StorageManager

logger = logging.getLogger(__name__)

PROJECT_COLORS = [
    "#ef4444",  # red
    "#f97316",  # orange
    "#eab308",  # yellow
    "#22c55e",  # green
    "#14b8a6",  # teal
    "#3b82f6",  # blue
    "#8b5cf6",  # violet
    "#ec4899",  # pink
]

MAX_MANUAL_HOURS = 24

# A timer entry is a single HH:mm interval, so it cannot span a full day
MAX_TIMER_SECONDS = 24 * 3600


def slugify(text: str) -> str:
    """Convert a project name to an identifier.

    Example:
        >>> slugify("Acme Website ")
        'acme-website'
    """
    slug = text.lower().strip()
    slug = re.sub(r"[^\w\s-]", "", slug)
    slug = re.sub(r"[\s_-]+", "-", slug)
    return re.sub(r"^-+|-+$", "", slug)


def auto_stop_note(hours: float) -> str:
    """Description marker for a timer that was stopped automatically."""
    return f"[Automatically stopped after {hours:g} hours]"


class TimeTracker:
    """Timer lifecycle, entry and project management on top of a store."""

    def __init__(
        self,
        storage: Optional[Store] = None,
        warning_hours: float = 8,
        auto_stop_hours: float = 12,
        strict_intervals: bool = False,
        default_billable: bool = True,
    ):
        """Initialize time tracker.

        Args:
            storage: Store instance. Creates default CSV storage if None.
            warning_hours: Running time after which a timer is flagged
            auto_stop_hours: Running time after which a timer is stopped
            strict_intervals: Reject interval text with any invalid segment
            default_billable: Billable flag for entries that don't set one
        """
        if not 0 < auto_stop_hours < 24:
            raise ValueError(
                f"auto_stop_hours must be more than 0 and less than 24, got {auto_stop_hours}"
            )

        self.storage = storage or StorageManager()
        self.warning_hours = warning_hours
        self.auto_stop_hours = auto_stop_hours
        self.strict_intervals = strict_intervals
        self.default_billable = default_billable

    # Timer lifecycle

    def start_timer(
        self,
        project_id: str,
        description: str = "",
        now: Optional[datetime] = None,
    ) -> tuple[Optional[TimeEntry], ActiveTimer]:
        """Start a timer, closing any running timer into an entry first.

        Args:
            project_id: Project to track
            description: What is being worked on
            now: Start moment. Defaults to the current time.

        Returns:
            Tuple of (entry created from the previous timer or None, new timer)

        Raises:
            ValueError: If the project does not exist
        """
        self._require_project(project_id)
        now = now or datetime.now()

        stopped = self.check_timer(now=now)
        if stopped is None and self.storage.get_active_timer() is not None:
            stopped = self.stop_timer(now=now)

        timer = ActiveTimer(project_id=project_id, start_time=now, description=description)
        self.storage.save_active_timer(timer)
        logger.info(f"Timer started for project {project_id}")
        return stopped, timer

    def stop_timer(self, now: Optional[datetime] = None, auto_stopped: bool = False) -> TimeEntry:
        """Stop the running timer and record it as an entry.

        Args:
            now: Stop moment. Defaults to the current time.
            auto_stopped: Mark the entry description as automatically stopped

        Returns:
            Created entry

        Raises:
            ValueError: If no timer is running or it has run for a day or more
        """
        timer = self.storage.get_active_timer()
        if timer is None:
            raise ValueError("No timer is currently running")

        now = now or datetime.now()
        if timer.elapsed_seconds(now) >= MAX_TIMER_SECONDS:
            raise ValueError(
                "Timer has been running for 24 hours or more. "
                "Cancel it and add the time as entries instead"
            )

        entry = self._entry_from_timer(timer, now, auto_stopped)
        self.storage.save_entry(entry)
        self.storage.clear_active_timer()
        logger.info(
            f"Timer stopped for project {entry.project_id}: "
            f"{entry.time_intervals[0].start_time}-{entry.time_intervals[0].end_time}"
        )
        return entry

    def _entry_from_timer(
        self, timer: ActiveTimer, now: datetime, auto_stopped: bool
    ) -> TimeEntry:
        interval = TimeInterval(start_time=time_of(timer.start_time), end_time=time_of(now))

        description = timer.description
        if auto_stopped:
            note = auto_stop_note(self.auto_stop_hours)
            description = f"{description} {note}" if description else note

        return TimeEntry(
            date=timer.start_time.date(),
            project_id=timer.project_id,
            description=description,
            hours=hours_from_intervals([interval]),
            billable=self.default_billable,
            time_intervals=[interval],
        )

    def cancel_timer(self) -> bool:
        """Discard the running timer without creating an entry.

        Returns:
            True if a timer was cancelled, False if none was running
        """
        if self.storage.get_active_timer() is None:
            return False
        self.storage.clear_active_timer()
        logger.info("Timer cancelled")
        return True

    def update_timer_description(self, description: str) -> ActiveTimer:
        """Change the description of the running timer.

        Raises:
            ValueError: If no timer is running
        """
        timer = self.storage.get_active_timer()
        if timer is None:
            raise ValueError("No timer is currently running")
        timer.description = description
        self.storage.save_active_timer(timer)
        return timer

    def timer_status(self) -> Optional[ActiveTimer]:
        """Get the running timer without applying long-running checks."""
        return self.storage.get_active_timer()

    def is_over_warning(self, timer: ActiveTimer, now: Optional[datetime] = None) -> bool:
        """Check if a timer has been running longer than the warning threshold."""
        return timer.elapsed_seconds(now) >= self.warning_hours * 3600

    def check_timer(self, now: Optional[datetime] = None) -> Optional[TimeEntry]:
        """Apply the long-running warning and automatic stop.

        A timer past the warning threshold is flagged once; a timer past the
        auto-stop threshold is stopped and recorded.

        Args:
            now: Moment to check at. Defaults to the current time.

        Returns:
            Entry created by an automatic stop, or None
        """
        timer = self.storage.get_active_timer()
        if timer is None:
            return None

        now = now or datetime.now()
        elapsed = timer.elapsed_seconds(now)

        if elapsed >= self.auto_stop_hours * 3600:
            # The entry closes at the threshold, not at the moment of the check
            stop_at = timer.start_time + timedelta(hours=self.auto_stop_hours)
            logger.warning(f"Timer exceeded {self.auto_stop_hours:g} hours, stopping it")
            return self.stop_timer(now=stop_at, auto_stopped=True)

        if elapsed >= self.warning_hours * 3600 and not timer.warning_shown:
            timer.warning_shown = True
            self.storage.save_active_timer(timer)
            logger.warning(f"Timer has been running for more than {self.warning_hours:g} hours")

        return None

    # Entries

    def _parse_intervals(self, text: str) -> list[TimeInterval]:
        intervals = parse_interval_list(text, strict=self.strict_intervals)
        if not intervals:
            raise ValueError(
                f"Invalid time intervals: {text!r}. Use HH:MM-HH:MM, separated by commas"
            )
        return intervals

    def add_entry(
        self,
        project_id: str,
        entry_date: date,
        description: str = "",
        hours: Optional[float] = None,
        intervals: Optional[str] = None,
        billable: Optional[bool] = None,
        hourly_rate: Optional[float] = None,
    ) -> TimeEntry:
        """Add an entry from interval text or manual hours.

        Args:
            project_id: Project to log against
            entry_date: Day of the work
            description: What was worked on
            hours: Manual hours, used when no intervals are given
            intervals: Comma-separated interval text
            billable: Billable flag. Defaults to the tracker's setting.
            hourly_rate: Entry-specific rate

        Returns:
            Created entry

        Raises:
            ValueError: If the project is unknown, interval text cannot be
                parsed, or manual hours are out of range
        """
        self._require_project(project_id)

        if intervals is not None:
            time_intervals = self._parse_intervals(intervals)
            entry_hours = hours_from_intervals(time_intervals)
        elif hours is not None:
            self._validate_hours(hours)
            time_intervals = []
            entry_hours = hours
        else:
            raise ValueError("Either hours or time intervals must be given")

        entry = TimeEntry(
            date=entry_date,
            project_id=project_id,
            description=description,
            hours=entry_hours,
            billable=self.default_billable if billable is None else billable,
            hourly_rate=hourly_rate,
            time_intervals=time_intervals,
        )
        self.storage.save_entry(entry)
        logger.info(f"Added entry {entry.id} for {project_id} on {entry_date}")
        return entry

    def _validate_hours(self, hours: float) -> None:
        if hours <= 0 or hours > MAX_MANUAL_HOURS:
            raise ValueError(f"Hours must be greater than 0 and at most {MAX_MANUAL_HOURS}")

    def update_entry(
        self,
        entry_id: str,
        project_id: Optional[str] = None,
        entry_date: Optional[date] = None,
        description: Optional[str] = None,
        hours: Optional[float] = None,
        intervals: Optional[str] = None,
        billable: Optional[bool] = None,
        hourly_rate: Optional[float] = None,
    ) -> TimeEntry:
        """Edit an existing entry.

        New interval text is re-parsed and replaces the entry's intervals and
        hours. Setting hours without intervals switches the entry to manual
        mode and drops its intervals.

        Returns:
            Updated entry

        Raises:
            ValueError: If the entry or project is not found, or the new
                intervals or hours are invalid
        """
        entry = self.get_entry(entry_id)

        if project_id is not None:
            self._require_project(project_id)
            entry.project_id = project_id
        if entry_date is not None:
            entry.date = entry_date
        if description is not None:
            entry.description = description
        if billable is not None:
            entry.billable = billable
        if hourly_rate is not None:
            entry.hourly_rate = hourly_rate

        if intervals is not None:
            entry.time_intervals = self._parse_intervals(intervals)
            entry.hours = hours_from_intervals(entry.time_intervals)
        elif hours is not None:
            self._validate_hours(hours)
            entry.time_intervals = []
            entry.hours = hours

        entry.updated_at = datetime.now()
        self.storage.save_entry(entry)
        logger.info(f"Updated entry {entry.id}")
        return entry

    def get_entry(self, entry_id: str) -> TimeEntry:
        """Get an entry by id.

        Raises:
            ValueError: If entry not found
        """
        entry = self.storage.get_entry(entry_id)
        if entry is None:
            raise ValueError(f"Entry not found: {entry_id}")
        return entry

    def delete_entry(self, entry_id: str) -> bool:
        """Delete an entry by ID.

        Returns:
            True if deleted, False if not found
        """
        deleted = self.storage.delete_entry(entry_id)
        if deleted:
            logger.info(f"Deleted entry {entry_id}")
        return deleted

    def get_entries(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        project_id: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> list[TimeEntry]:
        """Get filtered list of entries, most recent first.

        Args:
            start_date: First day to include
            end_date: Last day to include
            project_id: Only entries for this project
            limit: Maximum number of entries to return

        Returns:
            Filtered list of entries
        """
        filtered = []
        for entry in self.storage.load_entries():
            if project_id and entry.project_id != project_id:
                continue
            if start_date and entry.date < start_date:
                continue
            if end_date and entry.date > end_date:
                continue
            filtered.append(entry)

        if limit:
            filtered = filtered[:limit]
        return filtered

    def entries_for_day(self, day: date) -> list[TimeEntry]:
        """Entries of one day ordered by first interval start.

        Entries without intervals sort after timed ones, then by creation.
        """
        entries = self.get_entries(start_date=day, end_date=day)
        return sorted(entries, key=lambda e: (e.first_start_time or "99:99", e.created_at))

    def totals(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        project_id: Optional[str] = None,
    ) -> RoundedTotals:
        """Rounded totals for a date range, as shown in reports and invoices."""
        entries = self.get_entries(start_date, end_date, project_id)
        return calculate_rounded_totals(entries, self.project_map())

    # Projects

    def project_map(self) -> dict[str, Project]:
        """All projects keyed by id."""
        return {p.id: p for p in self.storage.load_projects()}

    def _require_project(self, project_id: str) -> Project:
        project = self.storage.get_project(project_id)
        if project is None:
            raise ValueError(f"Project not found: {project_id}")
        return project

    def add_project(
        self,
        name: str,
        client: Optional[str] = None,
        default_hourly_rate: Optional[float] = None,
        project_id: Optional[str] = None,
        color: Optional[str] = None,
    ) -> Project:
        """Create a project.

        Args:
            name: Display name
            client: Client name
            default_hourly_rate: Rate used for invoicing
            project_id: Identifier. Derived from the name if None.
            color: Display color. The first unused palette color if None.

        Returns:
            Created project

        Raises:
            ValueError: If the name is empty or the id is taken
        """
        if not name.strip():
            raise ValueError("Project name must not be empty")

        existing = self.storage.load_projects()
        taken = {p.id for p in existing}

        if project_id is None:
            base = slugify(name) or "project"
            project_id = base
            suffix = 2
            while project_id in taken:
                project_id = f"{base}-{suffix}"
                suffix += 1
        elif project_id in taken:
            raise ValueError(f"Project already exists: {project_id}")

        if color is None:
            used = {p.color for p in existing}
            color = next((c for c in PROJECT_COLORS if c not in used), PROJECT_COLORS[0])

        project = Project(
            id=project_id,
            name=name.strip(),
            color=color,
            client=client,
            default_hourly_rate=default_hourly_rate,
        )
        self.storage.save_project(project)
        logger.info(f"Added project {project.id}")
        return project

    def update_project(
        self,
        project_id: str,
        name: Optional[str] = None,
        client: Optional[str] = None,
        default_hourly_rate: Optional[float] = None,
        color: Optional[str] = None,
        active: Optional[bool] = None,
    ) -> Project:
        """Edit a project.

        Raises:
            ValueError: If project not found
        """
        project = self._require_project(project_id)

        if name is not None:
            project.name = name
        if client is not None:
            project.client = client
        if default_hourly_rate is not None:
            project.default_hourly_rate = default_hourly_rate
        if color is not None:
            project.color = color
        if active is not None:
            project.active = active

        self.storage.save_project(project)
        return project

    def delete_project(self, project_id: str) -> bool:
        """Delete a project. Its entries are kept and report as "unknown".

        Returns:
            True if deleted, False if not found
        """
        deleted = self.storage.delete_project(project_id)
        if deleted:
            logger.info(f"Deleted project {project_id}")
        return deleted

    def get_projects(self, active_only: bool = False) -> list[Project]:
        """List projects, optionally only active ones."""
        projects = self.storage.load_projects()
        if active_only:
            projects = [p for p in projects if p.active]
        return projects
