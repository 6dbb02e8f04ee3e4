"""Tests for the aggregation engine."""

from decimal import Decimal
from datetime import date

from timesheet_tool.engine.aggregator import aggregate
from timesheet_tool.models import EntryStatus, TimeEntry, Worker
from timesheet_tool.periods import days_between, month_days


def _make_worker(worker_id: int, last: str = "Dupont") -> Worker:
    return Worker(id=worker_id, first_name="Jean", last_name=last)


def _make_entry(worker_id, day, hours, status=EntryStatus.WORKED, project_id=1) -> TimeEntry:
    return TimeEntry(
        project_id=project_id,
        worker_id=worker_id,
        date=day,
        hours=Decimal(str(hours)),
        status=status,
    )


class TestAggregate:
    def test_worker_and_day_totals(self):
        workers = [_make_worker(1), _make_worker(2, "Martin")]
        entries = [
            _make_entry(1, date(2026, 3, 2), "8"),
            _make_entry(1, date(2026, 3, 3), "7.5"),
            _make_entry(2, date(2026, 3, 2), "6"),
        ]
        agg = aggregate(entries, workers, month_days("2026-03"))
        assert agg.worker_hour_total(1) == Decimal("15.5")
        assert agg.worker_hour_total(2) == Decimal("6")
        assert agg.day_total("2026-03-02") == Decimal("14")
        assert agg.day_total("2026-03-03") == Decimal("7.5")
        assert agg.period_total_hours == Decimal("21.5")

    def test_absent_entries_excluded_from_totals(self):
        entries = [
            _make_entry(1, date(2026, 3, 2), "8"),
            _make_entry(1, date(2026, 3, 3), "0", EntryStatus.ABSENT),
        ]
        agg = aggregate(entries, [_make_worker(1)], month_days("2026-03"))
        assert agg.worker_hour_total(1) == Decimal("8")
        assert agg.worker_worked_day_count(1) == 1
        assert agg.entry_for(1, "2026-03-03").status == EntryStatus.ABSENT

    def test_worked_entry_with_zero_hours_not_counted(self):
        entries = [_make_entry(1, date(2026, 3, 2), "0")]
        agg = aggregate(entries, [_make_worker(1)], month_days("2026-03"))
        assert agg.worker_worked_day_count(1) == 0
        assert agg.day_total("2026-03-02") == Decimal("0")

    def test_every_worker_and_day_initialised(self):
        agg = aggregate([], [_make_worker(1)], month_days("2026-02"))
        assert agg.worker_hour_total(1) == Decimal("0")
        assert len(agg.day_totals) == 28
        assert all(v == Decimal("0") for v in agg.day_totals.values())
        assert agg.average_hours_per_worker == Decimal("0")

    def test_entries_outside_roster_ignored(self):
        entries = [_make_entry(99, date(2026, 3, 2), "8")]
        agg = aggregate(entries, [_make_worker(1)], month_days("2026-03"))
        assert agg.period_total_hours == Decimal("0")
        assert agg.day_total("2026-03-02") == Decimal("0")

    def test_entries_outside_days_ignored(self):
        entries = [_make_entry(1, date(2026, 4, 1), "8")]
        agg = aggregate(entries, [_make_worker(1)], month_days("2026-03"))
        assert agg.period_total_hours == Decimal("0")

    def test_worked_days_bounded_by_period(self):
        days = days_between(date(2026, 3, 2), date(2026, 3, 4))
        entries = [
            _make_entry(1, date(2026, 3, 2), "4", project_id=1),
            _make_entry(1, date(2026, 3, 3), "4", project_id=1),
            _make_entry(1, date(2026, 3, 4), "4", project_id=1),
            _make_entry(1, date(2026, 3, 5), "4", project_id=1),
        ]
        agg = aggregate(entries, [_make_worker(1)], days)
        assert agg.worker_worked_day_count(1) == 3
        assert agg.worker_worked_day_count(1) <= len(days)
        assert agg.total_worked_days == 3

    def test_no_workers(self):
        agg = aggregate([], [], month_days("2026-03"))
        assert agg.average_hours_per_worker is None
        assert agg.period_total_hours == Decimal("0")

    def test_average_hours_per_worker(self):
        workers = [_make_worker(1), _make_worker(2)]
        entries = [_make_entry(1, date(2026, 3, 2), "9")]
        agg = aggregate(entries, workers, month_days("2026-03"))
        assert agg.average_hours_per_worker == Decimal("4.5")
