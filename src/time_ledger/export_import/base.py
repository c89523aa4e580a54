"""Base classes for export and import functionality."""

from abc import ABC, abstractmethod
from datetime import date
from pathlib import Path
from typing import Any, Optional

from time_ledger.core.models import Project, TimeEntry


def default_filename(
    start_date: Optional[date], end_date: Optional[date], extension: str
) -> str:
    """Default export filename for a period, e.g. ``timesheet_2024-01-01_2024-01-31.csv``."""
    start = start_date.isoformat() if start_date else "start"
    end = end_date.isoformat() if end_date else "end"
    return f"timesheet_{start}_{end}{extension}"


class Exporter(ABC):
    """Base class for all exporters.

    Exporters compute every hour and amount figure through
    calculate_rounded_totals, so exported numbers match the reports.
    """

    def __init__(self, output_path: Path):
        """Initialize exporter.

        Args:
            output_path: Path where exported data will be written
        """
        self.output_path = Path(output_path)

    @abstractmethod
    def export_entries(
        self,
        entries: list[TimeEntry],
        projects: list[Project],
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        **kwargs: Any,
    ) -> None:
        """Export entries to the output format.

        Args:
            entries: List of entries to export
            projects: Known projects, for names and rates
            start_date: Optional first day to include
            end_date: Optional last day to include
            **kwargs: Format-specific options
        """

    @abstractmethod
    def get_file_extension(self) -> str:
        """Get the file extension for this format (e.g., '.csv', '.xlsx').

        Returns:
            File extension including the dot
        """

    def ensure_output_path(self) -> None:
        """Ensure the output path's parent directory exists."""
        self.output_path.parent.mkdir(parents=True, exist_ok=True)

    def filter_entries(
        self,
        entries: list[TimeEntry],
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[TimeEntry]:
        """Filter entries by date range.

        Args:
            entries: List of entries to filter
            start_date: Start of date range (inclusive)
            end_date: End of date range (inclusive)

        Returns:
            Filtered list of entries
        """
        filtered = entries

        if start_date:
            filtered = [e for e in filtered if e.date >= start_date]

        if end_date:
            filtered = [e for e in filtered if e.date <= end_date]

        return filtered


class Importer(ABC):
    """Base class for all importers."""

    def __init__(self, input_path: Path):
        """Initialize importer.

        Args:
            input_path: Path to file to import
        """
        self.input_path = Path(input_path)

    @abstractmethod
    def import_entries(self, **kwargs: Any) -> list[TimeEntry]:
        """Import entries from the input file.

        Raises:
            FileNotFoundError: If input file doesn't exist
            ValueError: If input file is malformed
        """

    @abstractmethod
    def get_file_extension(self) -> str:
        """Get the expected file extension (e.g., '.json')."""

    def validate_input_path(self) -> None:
        """Validate that input file exists and has correct extension.

        Raises:
            FileNotFoundError: If file doesn't exist
            ValueError: If file has wrong extension
        """
        if not self.input_path.exists():
            raise FileNotFoundError(f"Input file not found: {self.input_path}")

        expected_ext = self.get_file_extension()
        if self.input_path.suffix.lower() != expected_ext.lower():
            raise ValueError(f"Expected {expected_ext} file, got {self.input_path.suffix}")
