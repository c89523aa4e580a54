"""Tests for CLI commands."""

import json
from pathlib import Path

import pytest  # type: ignore[import-not-found]
from click.testing import CliRunner, Result  # type: ignore[import-not-found]

from time_ledger import __version__
from time_ledger.cli.main import cli
from time_ledger.core.storage import StorageManager


@pytest.fixture  # type: ignore[misc]
def runner() -> CliRunner:
    """Create CLI test runner."""
    return CliRunner()


def invoke(runner: CliRunner, temp_dir: Path, *args: str, **kwargs: str) -> Result:
    """Run the CLI against data and config inside the temporary directory."""
    return runner.invoke(
        cli,
        [
            "--data-dir",
            str(temp_dir / "data"),
            "--config",
            str(temp_dir / "config.yml"),
            *args,
        ],
        **kwargs,
    )


class TestCLICommands:
    """Test top-level commands."""

    def test_version(self, runner: CliRunner) -> None:
        """Test --version flag."""
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_help(self, runner: CliRunner) -> None:
        """Test --help flag."""
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "Time Ledger" in result.output

    def test_timer_start_status_stop(self, runner: CliRunner, temp_dir: Path) -> None:
        """Test a full timer cycle."""
        result = invoke(runner, temp_dir, "start", "default", "-d", "Planning")
        assert result.exit_code == 0
        assert "Started timer: General" in result.output

        result = invoke(runner, temp_dir, "status")
        assert result.exit_code == 0
        assert "Timer Running" in result.output
        assert "Planning" in result.output

        result = invoke(runner, temp_dir, "stop")
        assert result.exit_code == 0
        assert "Stopped timer: General" in result.output

        entries = StorageManager(temp_dir / "data").load_entries()
        assert len(entries) == 1
        assert entries[0].description == "Planning"
        assert len(entries[0].time_intervals) == 1

    def test_start_unknown_project(self, runner: CliRunner, temp_dir: Path) -> None:
        """Test that starting on a missing project fails."""
        result = invoke(runner, temp_dir, "start", "nope")

        assert result.exit_code == 1
        assert "Project not found" in result.output

    def test_start_switches_timer(self, runner: CliRunner, temp_dir: Path) -> None:
        """Test that starting again saves the running timer."""
        invoke(runner, temp_dir, "project", "add", "Acme")
        invoke(runner, temp_dir, "start", "default")

        result = invoke(runner, temp_dir, "start", "acme")

        assert result.exit_code == 0
        assert "Stopped previous timer" in result.output
        assert len(StorageManager(temp_dir / "data").load_entries()) == 1

    def test_stop_without_timer(self, runner: CliRunner, temp_dir: Path) -> None:
        """Test that stopping with nothing running fails."""
        result = invoke(runner, temp_dir, "stop")

        assert result.exit_code == 1
        assert "No timer is currently running" in result.output

    def test_status_without_timer(self, runner: CliRunner, temp_dir: Path) -> None:
        """Test status with nothing running."""
        result = invoke(runner, temp_dir, "status")

        assert result.exit_code == 0
        assert "No timer running" in result.output

    def test_cancel(self, runner: CliRunner, temp_dir: Path) -> None:
        """Test cancelling a timer."""
        invoke(runner, temp_dir, "start", "default")

        result = invoke(runner, temp_dir, "cancel")

        assert result.exit_code == 0
        assert "Timer cancelled" in result.output
        assert StorageManager(temp_dir / "data").load_entries() == []

    def test_describe(self, runner: CliRunner, temp_dir: Path) -> None:
        """Test changing the running timer's description."""
        invoke(runner, temp_dir, "start", "default")

        result = invoke(runner, temp_dir, "describe", "Code review")

        assert result.exit_code == 0
        assert StorageManager(temp_dir / "data").get_active_timer().description == "Code review"

    def test_add_with_intervals(self, runner: CliRunner, temp_dir: Path) -> None:
        """Test adding an entry from interval text."""
        result = invoke(
            runner,
            temp_dir,
            "add",
            "default",
            "--date",
            "2024-03-04",
            "-i",
            "08:00-10:30, 13.00-14.15",
            "-d",
            "Workshop",
        )

        assert result.exit_code == 0
        assert "Added entry" in result.output
        entry = StorageManager(temp_dir / "data").load_entries()[0]
        assert entry.hours == pytest.approx(3.75)
        assert entry.description == "Workshop"

    def test_add_manual_hours(self, runner: CliRunner, temp_dir: Path) -> None:
        """Test adding manual hours."""
        result = invoke(runner, temp_dir, "add", "default", "-H", "2.5", "--no-billable")

        assert result.exit_code == 0
        entry = StorageManager(temp_dir / "data").load_entries()[0]
        assert entry.hours == 2.5
        assert entry.billable is False

    def test_add_invalid_intervals(self, runner: CliRunner, temp_dir: Path) -> None:
        """Test that unparseable intervals fail."""
        result = invoke(runner, temp_dir, "add", "default", "-i", "lunch")

        assert result.exit_code == 1
        assert "Invalid time intervals" in result.output

    def test_add_hours_and_intervals(self, runner: CliRunner, temp_dir: Path) -> None:
        """Test that intervals and hours are mutually exclusive."""
        result = invoke(runner, temp_dir, "add", "default", "-i", "08:00-09:00", "-H", "1")

        assert result.exit_code == 1

    def test_add_invalid_date(self, runner: CliRunner, temp_dir: Path) -> None:
        """Test that a malformed date is a usage error."""
        result = invoke(runner, temp_dir, "add", "default", "--date", "04/03/2024", "-H", "1")

        assert result.exit_code == 2
        assert "Invalid date" in result.output

    def test_edit_by_id_prefix(self, runner: CliRunner, temp_dir: Path) -> None:
        """Test editing an entry by the short id shown in listings."""
        invoke(runner, temp_dir, "add", "default", "-i", "08:00-09:00")
        entry = StorageManager(temp_dir / "data").load_entries()[0]

        result = invoke(runner, temp_dir, "edit", entry.id[:8], "-i", "09:00-09:45")

        assert result.exit_code == 0
        assert StorageManager(temp_dir / "data").get_entry(entry.id).hours == pytest.approx(0.75)

    def test_edit_unknown_entry(self, runner: CliRunner, temp_dir: Path) -> None:
        """Test that editing a missing entry fails."""
        result = invoke(runner, temp_dir, "edit", "missing", "-d", "x")

        assert result.exit_code == 1
        assert "Entry not found" in result.output

    def test_delete(self, runner: CliRunner, temp_dir: Path) -> None:
        """Test deleting an entry."""
        invoke(runner, temp_dir, "add", "default", "-H", "1")
        entry = StorageManager(temp_dir / "data").load_entries()[0]

        result = invoke(runner, temp_dir, "delete", entry.id, "--yes")

        assert result.exit_code == 0
        assert StorageManager(temp_dir / "data").load_entries() == []

    def test_log(self, runner: CliRunner, temp_dir: Path) -> None:
        """Test listing entries."""
        invoke(runner, temp_dir, "add", "default", "-i", "08:00-09:00", "-d", "Setup")

        result = invoke(runner, temp_dir, "log")

        assert result.exit_code == 0
        assert "Setup" in result.output
        assert "08:00-09:00" in result.output

    def test_log_json(self, runner: CliRunner, temp_dir: Path) -> None:
        """Test listing entries as JSON."""
        invoke(runner, temp_dir, "add", "default", "--date", "2024-03-04", "-H", "1")

        result = invoke(runner, temp_dir, "log", "--json")

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data[0]["date"] == "2024-03-04"
        assert data[0]["hours"] == 1.0

    def test_log_empty(self, runner: CliRunner, temp_dir: Path) -> None:
        """Test listing with no entries."""
        result = invoke(runner, temp_dir, "log")

        assert result.exit_code == 0
        assert "No entries found" in result.output

    def test_today(self, runner: CliRunner, temp_dir: Path) -> None:
        """Test the day view."""
        invoke(runner, temp_dir, "add", "default", "--date", "2024-03-04", "-i", "09:00-09:07")
        invoke(runner, temp_dir, "add", "default", "--date", "2024-03-04", "-i", "10:00-10:07")

        result = invoke(runner, temp_dir, "today", "--date", "2024-03-04")

        assert result.exit_code == 0
        assert "Entries for 2024-03-04" in result.output
        assert "0.25 h" in result.output

    def test_preview(self, runner: CliRunner, temp_dir: Path) -> None:
        """Test the interval preview."""
        result = invoke(runner, temp_dir, "preview", "12.51-13.12, 13:30-14:00")

        assert result.exit_code == 0
        assert "12:51-13:12" in result.output
        assert "21m" in result.output
        assert "51m" in result.output
        assert "1.00 h" in result.output

    def test_preview_invalid(self, runner: CliRunner, temp_dir: Path) -> None:
        """Test a preview with nothing parseable."""
        result = invoke(runner, temp_dir, "preview", "12:51-")

        assert result.exit_code == 1
        assert "No valid intervals" in result.output

    def test_report(self, runner: CliRunner, temp_dir: Path) -> None:
        """Test the summary report for a date range."""
        invoke(runner, temp_dir, "add", "default", "--date", "2024-03-04", "-i", "09:00-09:07")

        result = invoke(runner, temp_dir, "report", "--from", "2024-03-04", "--to", "2024-03-04")

        assert result.exit_code == 0
        assert "Billed Time" in result.output
        assert "0.25 h" in result.output

    def test_report_empty_period(self, runner: CliRunner, temp_dir: Path) -> None:
        """Test a report with nothing logged."""
        result = invoke(runner, temp_dir, "report", "--period", "today")

        assert result.exit_code == 0
        assert "No entries found for this period" in result.output


class TestInvoiceCommand:
    """Test invoice generation."""

    def _setup(self, runner: CliRunner, temp_dir: Path) -> None:
        invoke(runner, temp_dir, "project", "add", "Acme", "-c", "Acme AB", "-r", "100")
        invoke(runner, temp_dir, "add", "acme", "--date", "2024-03-04", "-i", "09:00-09:07")
        invoke(runner, temp_dir, "add", "acme", "--date", "2024-03-04", "-i", "10:00-10:07")

    def test_invoice_print(self, runner: CliRunner, temp_dir: Path) -> None:
        """Test printing an invoice."""
        self._setup(runner, temp_dir)

        result = invoke(
            runner, temp_dir, "invoice", "--from", "2024-03-01", "--to", "2024-03-31", "--print"
        )

        assert result.exit_code == 0
        assert "| Acme | Acme AB | 0.25 | 100.00 | 25.00 SEK |" in result.output

    def test_invoice_file(self, runner: CliRunner, temp_dir: Path) -> None:
        """Test writing an invoice file."""
        self._setup(runner, temp_dir)
        output = temp_dir / "invoice.md"

        result = invoke(
            runner,
            temp_dir,
            "invoice",
            str(output),
            "--from",
            "2024-03-01",
            "--to",
            "2024-03-31",
        )

        assert result.exit_code == 0
        assert "**Period:** 2024-03-01 to 2024-03-31" in output.read_text(encoding="utf-8")

    def test_invoice_pdf(self, runner: CliRunner, temp_dir: Path) -> None:
        """Test that a .pdf output writes a PDF invoice."""
        pytest.importorskip("reportlab")
        self._setup(runner, temp_dir)
        output = temp_dir / "invoice.pdf"

        result = invoke(
            runner, temp_dir, "invoice", str(output), "--from", "2024-03-01", "--to", "2024-03-31"
        )

        assert result.exit_code == 0
        assert output.read_bytes().startswith(b"%PDF-")

    def test_invoice_uses_configured_currency(self, runner: CliRunner, temp_dir: Path) -> None:
        """Test that invoice settings come from the config file."""
        self._setup(runner, temp_dir)
        invoke(runner, temp_dir, "config", "set", "invoice.currency", "EUR")

        result = invoke(
            runner, temp_dir, "invoice", "--from", "2024-03-01", "--to", "2024-03-31", "--print"
        )

        assert "25.00 EUR" in result.output

    def test_invoice_nothing_to_bill(self, runner: CliRunner, temp_dir: Path) -> None:
        """Test an invoice for an empty period."""
        result = invoke(runner, temp_dir, "invoice", "--period", "month", "--print")

        assert result.exit_code == 0
        assert "No entries to invoice" in result.output


class TestProjectCommands:
    """Test project management commands."""

    def test_add_and_list(self, runner: CliRunner, temp_dir: Path) -> None:
        """Test creating and listing projects."""
        result = invoke(runner, temp_dir, "project", "add", "Acme Corp", "-r", "950")
        assert result.exit_code == 0
        assert "ID: acme-corp" in result.output

        result = invoke(runner, temp_dir, "project", "list")
        assert result.exit_code == 0
        assert "acme-corp" in result.output
        assert "950.00" in result.output

    def test_edit(self, runner: CliRunner, temp_dir: Path) -> None:
        """Test editing a project's rate."""
        invoke(runner, temp_dir, "project", "add", "Acme")

        result = invoke(runner, temp_dir, "project", "edit", "acme", "-r", "500")

        assert result.exit_code == 0
        assert StorageManager(temp_dir / "data").get_project("acme").default_hourly_rate == 500

    def test_archive_and_restore(self, runner: CliRunner, temp_dir: Path) -> None:
        """Test hiding and restoring a project."""
        invoke(runner, temp_dir, "project", "add", "Acme")

        result = invoke(runner, temp_dir, "project", "archive", "acme")
        assert result.exit_code == 0
        assert "acme" not in invoke(runner, temp_dir, "project", "list").output
        assert "acme" in invoke(runner, temp_dir, "project", "list", "--all").output

        invoke(runner, temp_dir, "project", "archive", "acme", "--restore")
        assert StorageManager(temp_dir / "data").get_project("acme").active is True

    def test_delete(self, runner: CliRunner, temp_dir: Path) -> None:
        """Test deleting a project."""
        invoke(runner, temp_dir, "project", "add", "Acme")

        result = invoke(runner, temp_dir, "project", "delete", "acme", "--yes")

        assert result.exit_code == 0
        assert StorageManager(temp_dir / "data").get_project("acme") is None

    def test_delete_missing(self, runner: CliRunner, temp_dir: Path) -> None:
        """Test deleting an unknown project."""
        result = invoke(runner, temp_dir, "project", "delete", "nope", "--yes")

        assert result.exit_code == 1


class TestDataCommands:
    """Test export and import commands."""

    def _setup(self, runner: CliRunner, temp_dir: Path) -> None:
        invoke(runner, temp_dir, "add", "default", "--date", "2024-03-04", "-i", "09:00-09:07")

    def test_export_csv(self, runner: CliRunner, temp_dir: Path) -> None:
        """Test exporting a CSV timesheet."""
        self._setup(runner, temp_dir)
        output = temp_dir / "out.csv"

        result = invoke(
            runner,
            temp_dir,
            "data",
            "export",
            str(output),
            "--from",
            "2024-03-01",
            "--to",
            "2024-03-31",
        )

        assert result.exit_code == 0
        assert "Exported 1 entries" in result.output
        content = output.read_text(encoding="utf-8-sig")
        assert "2024-03-04;General" in content

    def test_export_default_filename(self, runner: CliRunner, temp_dir: Path) -> None:
        """Test that the output file is named after the period."""
        self._setup(runner, temp_dir)

        with runner.isolated_filesystem(temp_dir=temp_dir):
            result = invoke(
                runner,
                temp_dir,
                "data",
                "export",
                "--from",
                "2024-03-01",
                "--to",
                "2024-03-31",
                "-f",
                "markdown",
            )

            assert result.exit_code == 0
            assert Path("timesheet_2024-03-01_2024-03-31.md").exists()

    def test_export_unknown_extension(self, runner: CliRunner, temp_dir: Path) -> None:
        """Test that an unknown extension needs an explicit format."""
        result = invoke(runner, temp_dir, "data", "export", str(temp_dir / "out.txt"))

        assert result.exit_code == 1
        assert "Could not detect format" in result.output

    def test_export_and_import_json(self, runner: CliRunner, temp_dir: Path) -> None:
        """Test moving data between stores through JSON."""
        invoke(runner, temp_dir, "project", "add", "Acme", "-r", "100")
        invoke(runner, temp_dir, "add", "acme", "--date", "2024-03-04", "-H", "1")
        output = temp_dir / "backup.json"
        invoke(runner, temp_dir, "data", "export", str(output), "--period", "all")

        other = temp_dir / "other"
        other.mkdir()
        result = invoke(runner, other, "data", "import", str(output))

        assert result.exit_code == 0
        assert "Successfully imported 1 entries" in result.output
        store = StorageManager(other / "data")
        assert store.load_entries()[0].project_id == "acme"
        assert store.get_project("acme").default_hourly_rate == 100.0

    def test_import_dry_run(self, runner: CliRunner, temp_dir: Path) -> None:
        """Test that a dry run changes nothing."""
        self._setup(runner, temp_dir)
        output = temp_dir / "backup.json"
        invoke(runner, temp_dir, "data", "export", str(output), "--period", "all")

        other = temp_dir / "other"
        other.mkdir()
        result = invoke(runner, other, "data", "import", str(output), "--dry-run")

        assert result.exit_code == 0
        assert "Dry run" in result.output
        assert StorageManager(other / "data").load_entries() == []


class TestConfigCommands:
    """Test configuration commands."""

    def test_set_and_get(self, runner: CliRunner, temp_dir: Path) -> None:
        """Test setting and reading a value."""
        result = invoke(runner, temp_dir, "config", "set", "timer.warning_hours", "6")
        assert result.exit_code == 0

        result = invoke(runner, temp_dir, "config", "get", "timer.warning_hours")
        assert result.output.strip() == "6"

    def test_set_invalid(self, runner: CliRunner, temp_dir: Path) -> None:
        """Test that an invalid value is rejected."""
        result = invoke(runner, temp_dir, "config", "set", "general.week_start", "friday")

        assert result.exit_code == 1
        assert "Invalid configuration" in result.output

    def test_get_null_value(self, runner: CliRunner, temp_dir: Path) -> None:
        """Test reading a key whose value is null."""
        result = invoke(runner, temp_dir, "config", "get", "invoice.sender")

        assert result.exit_code == 0
        assert result.output.strip() == "None"

    def test_get_missing(self, runner: CliRunner, temp_dir: Path) -> None:
        """Test reading an unknown key."""
        result = invoke(runner, temp_dir, "config", "get", "nope.nothing")

        assert result.exit_code == 1
        assert "not found" in result.output

    def test_strict_intervals_setting(self, runner: CliRunner, temp_dir: Path) -> None:
        """Test that the strict setting reaches the tracker."""
        invoke(runner, temp_dir, "config", "set", "entries.strict_intervals", "true")

        result = invoke(runner, temp_dir, "add", "default", "-i", "08:00-09:00, lunch")

        assert result.exit_code == 1
        assert "Invalid time intervals" in result.output

    def test_path(self, runner: CliRunner, temp_dir: Path) -> None:
        """Test showing the config file path."""
        result = invoke(runner, temp_dir, "config", "path")

        assert result.output.strip() == str(temp_dir / "config.yml")

    def test_validate(self, runner: CliRunner, temp_dir: Path) -> None:
        """Test validating the config file."""
        result = invoke(runner, temp_dir, "config", "validate")

        assert result.exit_code == 0
        assert "Configuration is valid" in result.output
