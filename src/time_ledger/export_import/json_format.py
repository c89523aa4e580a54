"""JSON export and import functionality."""

import json
from datetime import date, datetime
from typing import Any, Optional

from time_ledger.core.models import Project, TimeEntry
from time_ledger.core.rounding import calculate_rounded_totals
from time_ledger.export_import.base import Exporter, Importer

FORMAT_VERSION = "1.0"


class JSONExporter(Exporter):
    """Export time tracking data to JSON format."""

    def get_file_extension(self) -> str:
        """Get JSON file extension.

        Returns:
            '.json'
        """
        return ".json"

    def export_entries(
        self,
        entries: list[TimeEntry],
        projects: list[Project],
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        **kwargs: Any,
    ) -> None:
        """Export entries, projects and rounded totals to a JSON file.

        Args:
            entries: List of entries to export
            projects: Known projects
            start_date: Optional first day to include
            end_date: Optional last day to include
            **kwargs: Additional options
                - indent (int): JSON indentation level (default: 2)
                - include_metadata (bool): Include export metadata (default: True)
        """
        self.ensure_output_path()

        filtered_entries = self.filter_entries(entries, start_date, end_date)
        totals = calculate_rounded_totals(filtered_entries, projects)

        export_data: dict[str, Any] = {
            "entries": [entry.to_json_dict() for entry in filtered_entries],
            "projects": [project.to_dict() for project in projects],
            "totals": {
                "total_hours": totals.total_hours,
                "total_billable": totals.total_billable,
                "hours_by_project": totals.hours_by_project,
                "hours_by_date": {
                    day.isoformat(): hours for day, hours in sorted(totals.hours_by_date.items())
                },
            },
        }

        if kwargs.get("include_metadata", True):
            export_data["metadata"] = {
                "export_date": datetime.now().isoformat(),
                "entry_count": len(filtered_entries),
                "date_range": {
                    "start": start_date.isoformat() if start_date else None,
                    "end": end_date.isoformat() if end_date else None,
                },
                "format_version": FORMAT_VERSION,
            }

        indent = kwargs.get("indent", 2)
        with open(self.output_path, "w", encoding="utf-8") as f:
            json.dump(export_data, f, indent=indent, ensure_ascii=False)


class JSONImporter(Importer):
    """Import time tracking data from JSON format."""

    def get_file_extension(self) -> str:
        """Get JSON file extension.

        Returns:
            '.json'
        """
        return ".json"

    def _load(self) -> Any:
        self.validate_input_path()
        try:
            with open(self.input_path, "r", encoding="utf-8") as f:
                return json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON file: {e}")

    def import_entries(self, **kwargs: Any) -> list[TimeEntry]:
        """Import entries from JSON file.

        Args:
            **kwargs: Additional options
                - validate (bool): Fail on invalid entries instead of
                  skipping them (default: True)

        Returns:
            List of imported entries

        Raises:
            FileNotFoundError: If input file doesn't exist
            ValueError: If JSON is malformed or invalid
        """
        data = self._load()

        if isinstance(data, dict) and "entries" in data:
            entries_data = data["entries"]
        elif isinstance(data, list):
            entries_data = data
        else:
            raise ValueError("JSON must contain 'entries' array or be an array itself")

        entries = []
        for entry_dict in entries_data:
            try:
                entries.append(TimeEntry.from_dict(entry_dict))
            except (KeyError, TypeError, ValueError) as e:
                if kwargs.get("validate", True):
                    raise ValueError(f"Invalid entry data: {e}")
                continue

        return entries

    def import_projects(self) -> list[Project]:
        """Import projects from a JSON export.

        Returns:
            List of projects, empty if the file has none

        Raises:
            ValueError: If a project record is invalid
        """
        data = self._load()
        if not isinstance(data, dict):
            return []

        projects = []
        for project_dict in data.get("projects", []):
            try:
                projects.append(Project.from_dict(project_dict))
            except (KeyError, TypeError, ValueError) as e:
                raise ValueError(f"Invalid project data: {e}")
        return projects
