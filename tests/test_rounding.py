"""Tests for quarter-hour rounding and aggregation."""

from dataclasses import FrozenInstanceError
from datetime import date
from typing import Callable

import pytest  # type: ignore[import-not-found]

from time_ledger.core.models import Project, TimeEntry
from time_ledger.core.rounding import (
    UNKNOWN_PROJECT,
    calculate_rounded_totals,
    format_hours,
    format_minutes,
    minutes_to_rounded_hours,
    preview_minutes,
    project_label,
    project_rate,
    round_up_to_15_minutes,
)

MakeEntry = Callable[..., TimeEntry]

DAY = date(2024, 3, 4)
NEXT_DAY = date(2024, 3, 5)


class TestRoundUp:
    """Test rounding of minutes."""

    @pytest.mark.parametrize(  # type: ignore[misc]
        "minutes,expected",
        [(0, 0), (1, 15), (14, 15), (15, 15), (16, 30), (51, 60), (60, 60), (61, 75)],
    )
    def test_round_up(self, minutes: int, expected: int) -> None:
        """Test that minutes round up to the next quarter hour."""
        assert round_up_to_15_minutes(minutes) == expected

    def test_fractional_minutes(self) -> None:
        """Test manual hours that produce fractional minutes."""
        assert round_up_to_15_minutes(0.5) == 15

    def test_idempotent(self) -> None:
        """Test that rounding a rounded value changes nothing."""
        for minutes in range(0, 200):
            once = round_up_to_15_minutes(minutes)
            assert round_up_to_15_minutes(once) == once

    def test_rounded_hours(self) -> None:
        """Test conversion to hours in quarter steps."""
        assert minutes_to_rounded_hours(51) == 1.0
        assert minutes_to_rounded_hours(7) == 0.25


class TestCalculateRoundedTotals:
    """Test bucket aggregation."""

    def test_empty(self) -> None:
        """Test that no entries give zero totals."""
        totals = calculate_rounded_totals([])

        assert totals.total_hours == 0
        assert totals.total_billable == 0
        assert totals.hours_by_project == {}
        assert totals.hours_by_date == {}

    def test_same_bucket_summed_before_rounding(
        self, make_entry: MakeEntry, acme: Project
    ) -> None:
        """Test that two short entries on one day are rounded together."""
        entries = [
            make_entry("acme", DAY, [("09:00", "09:07")]),
            make_entry("acme", DAY, [("10:00", "10:07")]),
        ]

        totals = calculate_rounded_totals(entries, [acme])

        assert totals.total_hours == 0.25
        assert totals.total_billable == pytest.approx(25.0)
        assert totals.bucket_minutes[("acme", DAY)] == 14

    def test_intervals_within_entry_summed(self, make_entry: MakeEntry) -> None:
        """Test that intervals of one entry are not rounded one by one."""
        entry = make_entry("acme", DAY, [("12:51", "13:12"), ("13:30", "14:00")])

        totals = calculate_rounded_totals([entry])

        assert totals.total_hours == 1.0

    def test_separate_days_round_separately(self, make_entry: MakeEntry) -> None:
        """Test that the same project on two days gives two buckets."""
        entries = [
            make_entry("acme", DAY, [("09:00", "09:07")]),
            make_entry("acme", NEXT_DAY, [("09:00", "09:07")]),
        ]

        totals = calculate_rounded_totals(entries)

        assert totals.total_hours == 0.5
        assert totals.hours_by_date == {DAY: 0.25, NEXT_DAY: 0.25}

    def test_separate_projects_round_separately(self, make_entry: MakeEntry) -> None:
        """Test that two projects on one day give two buckets."""
        entries = [
            make_entry("acme", DAY, [("09:00", "09:07")]),
            make_entry("globex", DAY, [("09:10", "09:17")]),
        ]

        totals = calculate_rounded_totals(entries)

        assert totals.hours_by_project == {"acme": 0.25, "globex": 0.25}
        assert totals.hours_by_date == {DAY: 0.5}

    def test_manual_hours(self, make_entry: MakeEntry, acme: Project) -> None:
        """Test that manual hours join the bucket as minutes."""
        entries = [
            make_entry("acme", DAY, hours=1.5),
            make_entry("acme", DAY, [("16:00", "16:10")]),
        ]

        totals = calculate_rounded_totals(entries, {"acme": acme})

        assert totals.total_hours == 1.75
        assert totals.total_billable == pytest.approx(175.0)

    def test_missing_project(self, make_entry: MakeEntry) -> None:
        """Test that an unknown project bills at zero."""
        entry = make_entry("gone", DAY, [("09:00", "10:00")])

        totals = calculate_rounded_totals([entry], [])

        assert totals.total_hours == 1.0
        assert totals.total_billable == 0
        assert project_label("gone", []) == UNKNOWN_PROJECT

    def test_project_without_rate(self, make_entry: MakeEntry) -> None:
        """Test that a project with no rate bills at zero."""
        project = Project(id="internal", name="Internal")
        entry = make_entry("internal", DAY, [("09:00", "10:00")])

        totals = calculate_rounded_totals([entry], [project])

        assert totals.total_billable == 0
        assert project_rate("internal", [project]) == 0.0

    def test_totals_are_frozen(self, make_entry: MakeEntry) -> None:
        """Test that a computed result cannot be changed afterwards."""
        totals = calculate_rounded_totals([make_entry("p", DAY, hours=1.0)], [])

        with pytest.raises(FrozenInstanceError):
            totals.total_hours = 2.0

    def test_zero_minute_bucket_kept(self, make_entry: MakeEntry) -> None:
        """Test that an empty bucket rounds to zero and still appears in the mappings."""
        entry = make_entry("p", DAY, [("09:00", "09:00")])

        totals = calculate_rounded_totals([entry], [])

        assert totals.hours_by_project == {"p": 0.0}
        assert totals.hours_by_date == {DAY: 0.0}
        assert totals.total_hours == 0
        assert totals.total_billable == 0

    def test_views_agree(self, make_entry: MakeEntry, acme: Project) -> None:
        """Test that project, date and grand totals are sums of the buckets."""
        entries = [
            make_entry("acme", DAY, [("09:00", "09:50")]),
            make_entry("acme", NEXT_DAY, [("13:02", "13:09")]),
            make_entry("globex", DAY, [("10:00", "11:01")]),
            make_entry("globex", DAY, hours=0.3),
        ]

        totals = calculate_rounded_totals(entries, [acme])

        bucket_sum = sum(totals.buckets.values())
        assert sum(totals.hours_by_project.values()) == pytest.approx(bucket_sum)
        assert sum(totals.hours_by_date.values()) == pytest.approx(bucket_sum)
        assert totals.total_hours == pytest.approx(bucket_sum)
        assert totals.total_billable == pytest.approx(
            sum(totals.billable_by_project.values())
        )
        for hours in totals.buckets.values():
            assert (hours * 4) == int(hours * 4)

    def test_order_independent(self, make_entry: MakeEntry) -> None:
        """Test that input order does not change totals."""
        entries = [
            make_entry("acme", DAY, [("09:00", "09:20")]),
            make_entry("globex", NEXT_DAY, [("09:00", "09:31")]),
            make_entry("acme", DAY, [("11:00", "11:02")]),
        ]

        forward = calculate_rounded_totals(entries)
        backward = calculate_rounded_totals(list(reversed(entries)))

        assert forward.buckets == backward.buckets

    def test_entries_not_modified(self, make_entry: MakeEntry) -> None:
        """Test that aggregation leaves entries untouched."""
        entry = make_entry("acme", DAY, [("09:00", "09:07")])

        calculate_rounded_totals([entry])

        assert entry.hours == pytest.approx(7 / 60)


class TestPreview:
    """Test the live minute preview."""

    def test_preview_is_exact(self) -> None:
        """Test that preview shows unrounded minutes."""
        assert preview_minutes("12:51-13:12") == 21

    def test_preview_of_invalid_text(self) -> None:
        """Test that nothing parseable gives None."""
        assert preview_minutes("12:51-") is None
        assert preview_minutes("") is None

    def test_preview_strict(self) -> None:
        """Test that strict preview rejects partially valid text."""
        assert preview_minutes("12:51-13:12, 14:", strict=True) is None
        assert preview_minutes("12:51-13:12, 14:") == 21


class TestFormatting:
    """Test duration formatting."""

    def test_format_hours(self) -> None:
        """Test hour display with precision."""
        assert format_hours(1.25) == "1.25 h"
        assert format_hours(1.25, precision=1) == "1.2 h"

    def test_format_minutes(self) -> None:
        """Test compact minute display."""
        assert format_minutes(14) == "14m"
        assert format_minutes(65) == "1h 05m"
        assert format_minutes(0) == "0m"
