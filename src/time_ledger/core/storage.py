"""CSV storage manager with atomic operations and validation."""

import csv
import json
import logging
import os
import shutil
import sys
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

from time_ledger.core.models import ActiveTimer, Project, TimeEntry

logger = logging.getLogger(__name__)

ENTRY_FIELDS = [
    "id",
    "date",
    "project_id",
    "description",
    "hours",
    "billable",
    "hourly_rate",
    "time_intervals",
    "created_at",
    "updated_at",
]

PROJECT_FIELDS = [
    "id",
    "name",
    "color",
    "client",
    "default_hourly_rate",
    "active",
    "created_at",
]

DEFAULT_PROJECT_ID = "default"
DEFAULT_PROJECT_NAME = "General"
DEFAULT_PROJECT_COLOR = "#6b7280"


def _lock_file(file_obj: Any, exclusive: bool = True) -> None:
    """Lock a file in a cross-platform way.

    Args:
        file_obj: File object to lock
        exclusive: If True, acquire exclusive lock; if False, acquire shared lock
    """
    if sys.platform == "win32":
        import msvcrt  # type: ignore[import-not-found]

        mode = msvcrt.LK_NBLCK if exclusive else msvcrt.LK_NBRLCK
        msvcrt.locking(file_obj.fileno(), mode, 1)
    else:
        import fcntl  # type: ignore[import-not-found]

        mode = fcntl.LOCK_EX if exclusive else fcntl.LOCK_SH
        fcntl.flock(file_obj.fileno(), mode)


def _unlock_file(file_obj: Any) -> None:
    """Unlock a file in a cross-platform way."""
    if sys.platform == "win32":
        import msvcrt  # type: ignore[import-not-found]

        msvcrt.locking(file_obj.fileno(), msvcrt.LK_UNLCK, 1)
    else:
        import fcntl  # type: ignore[import-not-found]

        fcntl.flock(file_obj.fileno(), fcntl.LOCK_UN)


class Store(ABC):
    """Persistence boundary for entries, projects and the active timer.

    The rounding engine never talks to a store; the tracker loads a snapshot
    from it and passes plain records to the engine.
    """

    @abstractmethod
    def save_entry(self, entry: TimeEntry) -> None:
        """Insert or update an entry."""

    @abstractmethod
    def load_entries(self) -> list[TimeEntry]:
        """Load all entries."""

    @abstractmethod
    def get_entry(self, entry_id: str) -> Optional[TimeEntry]:
        """Get an entry by id."""

    @abstractmethod
    def delete_entry(self, entry_id: str) -> bool:
        """Delete an entry; False if it did not exist."""

    @abstractmethod
    def save_project(self, project: Project) -> None:
        """Insert or update a project."""

    @abstractmethod
    def load_projects(self) -> list[Project]:
        """Load all projects."""

    @abstractmethod
    def get_project(self, project_id: str) -> Optional[Project]:
        """Get a project by id."""

    @abstractmethod
    def delete_project(self, project_id: str) -> bool:
        """Delete a project; False if it did not exist."""

    @abstractmethod
    def get_active_timer(self) -> Optional[ActiveTimer]:
        """Get the running timer, if any."""

    @abstractmethod
    def save_active_timer(self, timer: ActiveTimer) -> None:
        """Store the running timer, replacing any previous one."""

    @abstractmethod
    def clear_active_timer(self) -> None:
        """Remove the running timer."""


class StorageManager(Store):
    """Manages CSV storage for time tracking data with atomic operations."""

    def __init__(self, data_dir: Optional[Path] = None):
        """Initialize storage manager.

        Args:
            data_dir: Custom data directory. Defaults to ~/.time-ledger/data
        """
        if data_dir is None:
            data_dir = Path.home() / ".time-ledger" / "data"

        self.data_dir = Path(data_dir)
        self.entries_file = self.data_dir / "entries.csv"
        self.projects_file = self.data_dir / "projects.csv"
        self.state_dir = self.data_dir.parent / "state"
        self.timer_file = self.state_dir / "active_timer.json"
        self.backup_dir = self.data_dir.parent / "backups"

        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.state_dir.mkdir(parents=True, exist_ok=True)
        self.backup_dir.mkdir(parents=True, exist_ok=True)

        self._initialize_files()

    def _initialize_files(self) -> None:
        """Create CSV files with headers if they don't exist."""
        if not self.entries_file.exists():
            self._write_csv_atomic(self.entries_file, ENTRY_FIELDS, [])

        if not self.projects_file.exists():
            default = Project(
                id=DEFAULT_PROJECT_ID,
                name=DEFAULT_PROJECT_NAME,
                color=DEFAULT_PROJECT_COLOR,
            )
            self._write_csv_atomic(self.projects_file, PROJECT_FIELDS, [default.to_dict()])
            logger.info(f"Created project store with default project '{DEFAULT_PROJECT_NAME}'")

    def _write_csv_atomic(
        self, file_path: Path, fieldnames: list[str], rows: list[dict[str, Any]]
    ) -> None:
        """Write CSV file atomically using temporary file and rename.

        Args:
            file_path: Target file path
            fieldnames: CSV field names
            rows: List of row dictionaries
        """
        temp_file = file_path.with_suffix(".tmp")

        try:
            with open(temp_file, "w", newline="", encoding="utf-8") as f:
                _lock_file(f, exclusive=True)

                writer = csv.DictWriter(f, fieldnames=fieldnames)
                writer.writeheader()
                writer.writerows(rows)

                f.flush()
                os.fsync(f.fileno())

                _unlock_file(f)

            temp_file.replace(file_path)

        except Exception:
            if temp_file.exists():
                temp_file.unlink()
            raise

    def _read_csv(self, file_path: Path) -> list[dict[str, Any]]:
        """Read CSV file with locking.

        Args:
            file_path: CSV file to read

        Returns:
            List of row dictionaries
        """
        if not file_path.exists():
            return []

        with open(file_path, encoding="utf-8", newline="") as f:
            _lock_file(f, exclusive=False)

            try:
                reader = csv.DictReader(f)
                rows = list(reader)
            finally:
                _unlock_file(f)

        return rows

    def backup(self, label: Optional[str] = None) -> Path:
        """Create backup of all data files.

        Args:
            label: Optional label for backup. Defaults to timestamp

        Returns:
            Path to backup directory
        """
        if label is None:
            label = datetime.now().strftime("%Y%m%d_%H%M%S")

        backup_path = self.backup_dir / label
        backup_path.mkdir(parents=True, exist_ok=True)

        for file in [self.entries_file, self.projects_file, self.timer_file]:
            if file.exists():
                shutil.copy2(file, backup_path / file.name)

        logger.info(f"Backed up data files to {backup_path}")
        return backup_path

    def _upsert(self, file_path: Path, fieldnames: list[str], record: dict[str, Any]) -> None:
        rows = self._read_csv(file_path)

        for i, row in enumerate(rows):
            if row["id"] == record["id"]:
                rows[i] = record
                break
        else:
            rows.append(record)

        self._write_csv_atomic(file_path, fieldnames, rows)

    def _delete(self, file_path: Path, fieldnames: list[str], record_id: str) -> bool:
        rows = self._read_csv(file_path)
        remaining = [r for r in rows if r["id"] != record_id]

        if len(remaining) == len(rows):
            return False

        self._write_csv_atomic(file_path, fieldnames, remaining)
        return True

    # Entry operations

    def save_entry(self, entry: TimeEntry) -> None:
        """Save or update an entry.

        Args:
            entry: Entry to save
        """
        self._upsert(self.entries_file, ENTRY_FIELDS, entry.to_dict())
        logger.debug(f"Saved entry {entry.id} ({entry.date}, {entry.project_id})")

    def load_entries(self) -> list[TimeEntry]:
        """Load all entries from CSV.

        Returns:
            Entries ordered by date, most recent first
        """
        rows = self._read_csv(self.entries_file)
        entries = [TimeEntry.from_dict(row) for row in rows]
        entries.sort(key=lambda e: (e.date, e.created_at), reverse=True)
        return entries

    def get_entry(self, entry_id: str) -> Optional[TimeEntry]:
        """Get entry by ID.

        Args:
            entry_id: Entry ID

        Returns:
            Entry or None if not found
        """
        for row in self._read_csv(self.entries_file):
            if row["id"] == entry_id:
                return TimeEntry.from_dict(row)
        return None

    def delete_entry(self, entry_id: str) -> bool:
        """Delete an entry by ID.

        Args:
            entry_id: ID of entry to delete

        Returns:
            True if entry was deleted, False if not found
        """
        deleted = self._delete(self.entries_file, ENTRY_FIELDS, entry_id)
        if deleted:
            logger.debug(f"Deleted entry {entry_id}")
        return deleted

    # Project operations

    def save_project(self, project: Project) -> None:
        """Save or update a project.

        Args:
            project: Project to save
        """
        self._upsert(self.projects_file, PROJECT_FIELDS, project.to_dict())
        logger.debug(f"Saved project {project.id} ({project.name})")

    def load_projects(self) -> list[Project]:
        """Load all projects from CSV.

        Returns:
            List of Project objects
        """
        rows = self._read_csv(self.projects_file)
        return [Project.from_dict(row) for row in rows]

    def get_project(self, project_id: str) -> Optional[Project]:
        """Get project by ID.

        Args:
            project_id: Project ID

        Returns:
            Project or None if not found
        """
        for project in self.load_projects():
            if project.id == project_id:
                return project
        return None

    def delete_project(self, project_id: str) -> bool:
        """Delete a project by ID.

        Entries that reference the project are left in place.

        Args:
            project_id: ID of project to delete

        Returns:
            True if project was deleted, False if not found
        """
        return self._delete(self.projects_file, PROJECT_FIELDS, project_id)

    # Active timer

    def get_active_timer(self) -> Optional[ActiveTimer]:
        """Get the running timer.

        Returns:
            Active timer or None if no timer is running
        """
        if not self.timer_file.exists():
            return None

        with open(self.timer_file, encoding="utf-8") as f:
            data = json.load(f)
        return ActiveTimer.from_dict(data)

    def save_active_timer(self, timer: ActiveTimer) -> None:
        """Persist the running timer atomically.

        Args:
            timer: Timer to store
        """
        temp_file = self.timer_file.with_suffix(".tmp")
        with open(temp_file, "w", encoding="utf-8") as f:
            json.dump(timer.to_dict(), f, indent=2)
        temp_file.replace(self.timer_file)

    def clear_active_timer(self) -> None:
        """Remove the running timer."""
        if self.timer_file.exists():
            self.timer_file.unlink()
