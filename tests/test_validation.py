"""Tests for strict validation engine."""

import pytest
from decimal import Decimal
from datetime import date

from timesheet_tool.engine.validator import validate_dataset, validate_entries
from timesheet_tool.models import (
    DatasetValidationError,
    EntryStatus,
    Project,
    TimeEntry,
    Worker,
)
from timesheet_tool.periods import parse_month
from timesheet_tool.store import TimesheetStore

PERIOD = parse_month("2026-03")


def _make_store() -> TimesheetStore:
    store = TimesheetStore()
    store.add_project(Project(id=1, name="Gare"))
    store.add_project(Project(id=2, name="Atelier"))
    store.add_worker(Worker(id=10, first_name="Jean", last_name="Dupont"))
    return store


def _make_entry(**kwargs) -> TimeEntry:
    defaults = dict(
        project_id=1,
        worker_id=10,
        date=date(2026, 3, 2),
        hours=Decimal("8"),
        status=EntryStatus.WORKED,
    )
    defaults.update(kwargs)
    return TimeEntry(**defaults)


class TestValidator:
    def test_valid_entries_pass(self):
        entries = [_make_entry(), _make_entry(date=date(2026, 3, 3), hours=Decimal("7.25"))]
        assert validate_entries(entries, _make_store(), PERIOD) == entries

    def test_empty_entries_pass(self):
        assert validate_entries([], _make_store(), PERIOD) == []

    def test_unknown_project_fail(self):
        with pytest.raises(DatasetValidationError, match="unknown project"):
            validate_entries([_make_entry(project_id=9)], _make_store(), PERIOD)

    def test_unknown_worker_fail(self):
        with pytest.raises(DatasetValidationError, match="unknown worker"):
            validate_entries([_make_entry(worker_id=9)], _make_store(), PERIOD)

    def test_outside_period_fail(self):
        with pytest.raises(DatasetValidationError, match="outside period 2026-03"):
            validate_entries([_make_entry(date=date(2026, 4, 1))], _make_store(), PERIOD)

    def test_negative_hours_fail(self):
        with pytest.raises(DatasetValidationError, match="negative"):
            validate_entries([_make_entry(hours=Decimal("-1"))], _make_store(), PERIOD)

    def test_more_than_24_hours_fail(self):
        with pytest.raises(DatasetValidationError, match="> 24"):
            validate_entries([_make_entry(hours=Decimal("25"))], _make_store(), PERIOD)

    def test_off_grid_hours_fail(self):
        with pytest.raises(DatasetValidationError, match="quarter-hour"):
            validate_entries([_make_entry(hours=Decimal("7.1"))], _make_store(), PERIOD)

    def test_non_finite_hours_fail(self):
        with pytest.raises(DatasetValidationError, match="not finite"):
            validate_entries([_make_entry(hours=Decimal("NaN"))], _make_store(), PERIOD)

    def test_absent_with_hours_fail(self):
        entry = _make_entry(status=EntryStatus.ABSENT, hours=Decimal("4"))
        with pytest.raises(DatasetValidationError, match="ABSENT entry carries hours"):
            validate_entries([entry], _make_store(), PERIOD)

    def test_duplicate_key_fail(self):
        with pytest.raises(DatasetValidationError, match="Duplicate entry"):
            validate_entries([_make_entry(), _make_entry(hours=Decimal("4"))], _make_store(), PERIOD)

    def test_daily_total_across_projects_fail(self):
        entries = [
            _make_entry(project_id=1, hours=Decimal("14")),
            _make_entry(project_id=2, hours=Decimal("12")),
        ]
        with pytest.raises(DatasetValidationError, match="across all projects"):
            validate_entries(entries, _make_store(), PERIOD)

    def test_all_errors_collected(self):
        entries = [_make_entry(worker_id=9), _make_entry(hours=Decimal("-2"))]
        with pytest.raises(DatasetValidationError) as exc_info:
            validate_entries(entries, _make_store(), PERIOD)
        assert len(exc_info.value.errors) == 2


class TestValidateDataset:
    def _row(self, day="2026-03-02", **kwargs):
        row = {"project_id": 1, "worker_id": 10, "date": day, "hours": 8}
        row.update(kwargs)
        return row

    def test_clean_dataset_passes(self):
        data = {"entries": [self._row(), self._row("2026-03-03", hours="7.25")]}
        assert len(validate_dataset(data, _make_store(), PERIOD)) == 2

    def test_values_checked_before_normalisation(self):
        data = {"entries": [
            self._row(hours=7.1),
            self._row("2026-03-03"),
            self._row("2026-03-03", hours=4),
            self._row("2026-03-04", hours=-3),
            self._row("2026-03-05", status="ABSENT", hours=6),
        ]}
        with pytest.raises(DatasetValidationError) as exc_info:
            validate_dataset(data, _make_store(), PERIOD)
        errors = exc_info.value.errors
        assert len(errors) == 4
        assert any("hours=7.1 not on a quarter-hour boundary" in e for e in errors)
        assert any("negative hours=-3" in e for e in errors)
        assert any("ABSENT entry carries hours=6" in e for e in errors)
        assert any(e.startswith("Duplicate entry for worker 10 on 2026-03-03") for e in errors)

    def test_only_period_entries_checked(self):
        data = {"entries": [self._row(), self._row("2026-04-01", hours=7.1)]}
        assert len(validate_dataset(data, _make_store(), PERIOD)) == 1

    def test_without_period_checks_everything(self):
        data = {"entries": [self._row(), self._row("2026-04-01", hours=7.1)]}
        with pytest.raises(DatasetValidationError, match="quarter-hour"):
            validate_dataset(data, _make_store())
