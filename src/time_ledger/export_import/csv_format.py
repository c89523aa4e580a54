"""CSV timesheet export."""

import csv
from collections import defaultdict
from datetime import date
from typing import Any, Optional

from time_ledger.core.models import Project, TimeEntry
from time_ledger.core.rounding import calculate_rounded_totals, project_label, project_rate
from time_ledger.export_import.base import Exporter

CSV_HEADERS = [
    "Date",
    "Project",
    "Client",
    "Description",
    "Logged Hours",
    "Billed Hours",
    "Rate",
    "Amount",
]


class CSVExporter(Exporter):
    """Export one row per project and day, as billed."""

    def get_file_extension(self) -> str:
        """Get CSV file extension.

        Returns:
            '.csv'
        """
        return ".csv"

    def export_entries(
        self,
        entries: list[TimeEntry],
        projects: list[Project],
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        **kwargs: Any,
    ) -> None:
        """Export entries to a CSV file.

        Rows are (date, project) buckets with the logged and billed hours of
        each, followed by a totals row. The file is written as UTF-8 with a
        byte order mark so spreadsheet applications detect the encoding.

        Args:
            entries: List of entries to export
            projects: Known projects
            start_date: Optional first day to include
            end_date: Optional last day to include
            **kwargs: Additional options
                - delimiter (str): Field delimiter (default: ';')
        """
        self.ensure_output_path()

        filtered_entries = self.filter_entries(entries, start_date, end_date)
        project_map = {p.id: p for p in projects}
        totals = calculate_rounded_totals(filtered_entries, project_map)

        descriptions: dict[tuple[str, date], list[str]] = defaultdict(list)
        for entry in sorted(filtered_entries, key=lambda e: e.created_at):
            if entry.description:
                descriptions[(entry.project_id, entry.date)].append(entry.description)

        rows = []
        buckets = sorted(
            totals.buckets,
            key=lambda b: (b[1], project_label(b[0], project_map).lower()),
        )
        for bucket in buckets:
            project_id, day = bucket
            project = project_map.get(project_id)
            hours = totals.buckets[bucket]
            rate = project_rate(project_id, project_map)
            rows.append(
                [
                    day.isoformat(),
                    project_label(project_id, project_map),
                    (project.client if project else None) or "",
                    "; ".join(descriptions.get(bucket, [])),
                    f"{totals.bucket_minutes[bucket] / 60:.2f}",
                    f"{hours:.2f}",
                    f"{rate:.2f}",
                    f"{hours * rate:.2f}",
                ]
            )

        logged_hours = sum(totals.bucket_minutes.values()) / 60
        rows.append(
            [
                "Total",
                "",
                "",
                "",
                f"{logged_hours:.2f}",
                f"{totals.total_hours:.2f}",
                "",
                f"{totals.total_billable:.2f}",
            ]
        )

        delimiter = kwargs.get("delimiter", ";")
        with open(self.output_path, "w", newline="", encoding="utf-8-sig") as f:
            writer = csv.writer(f, delimiter=delimiter)
            writer.writerow(CSV_HEADERS)
            writer.writerows(rows)
