"""Tests for data models."""

import pytest
from decimal import Decimal
from datetime import date

from timesheet_tool.models import (
    AdditionalCost,
    CostUnit,
    DatasetValidationError,
    EntryStatus,
    NotFoundError,
    Project,
    TimeEntry,
    Worker,
)


class TestAdditionalCost:
    def test_positive_amount(self):
        cost = AdditionalCost(label="Panier", unit=CostUnit.DAY, amount=Decimal("12.50"))
        assert cost.amount == Decimal("12.50")

    def test_zero_amount_rejected(self):
        with pytest.raises(ValueError, match="must be positive"):
            AdditionalCost(label="Panier", unit=CostUnit.DAY, amount=Decimal("0"))

    def test_negative_amount_rejected(self):
        with pytest.raises(ValueError, match="must be positive"):
            AdditionalCost(label="Mobilité", unit=CostUnit.HOUR, amount=Decimal("-2"))


class TestWorker:
    def test_export_name(self):
        w = Worker(id=1, first_name="Jean", last_name="Dupont")
        assert w.export_name == "DUPONT Jean"

    def test_display_name(self):
        w = Worker(id=1, first_name="Jean", last_name="Dupont")
        assert w.display_name == "Jean Dupont"

    def test_sort_key_is_case_insensitive(self):
        a = Worker(id=1, first_name="anne", last_name="martin")
        b = Worker(id=2, first_name="Bruno", last_name="Martin")
        c = Worker(id=3, first_name="Zoé", last_name="Adam")
        ordered = sorted([b, a, c], key=lambda w: w.sort_key)
        assert [w.id for w in ordered] == [3, 1, 2]

    def test_has_pay_rate(self):
        assert Worker(id=1, first_name="A", last_name="B", pay_rate=Decimal("18")).has_pay_rate
        assert not Worker(id=1, first_name="A", last_name="B", pay_rate=Decimal("0")).has_pay_rate
        assert not Worker(id=1, first_name="A", last_name="B").has_pay_rate


class TestProject:
    def test_client_label(self):
        assert Project(id=1, name="Gare", client_name="SNCB").client_label == "SNCB"

    def test_client_label_fallback(self):
        assert Project(id=1, name="Gare").client_label == "Client indéfini"
        assert Project(id=1, name="Gare", client_name="   ").client_label == "Client indéfini"


class TestTimeEntry:
    def test_key(self):
        e = TimeEntry(project_id=3, worker_id=7, date=date(2026, 3, 2),
                      hours=Decimal("8"), status=EntryStatus.WORKED)
        assert e.key == (3, 7, date(2026, 3, 2))

    def test_is_worked(self):
        worked = TimeEntry(project_id=1, worker_id=1, date=date(2026, 3, 2),
                           hours=Decimal("8"), status=EntryStatus.WORKED)
        absent = TimeEntry(project_id=1, worker_id=1, date=date(2026, 3, 2),
                           hours=Decimal("0"), status=EntryStatus.ABSENT)
        empty = TimeEntry(project_id=1, worker_id=1, date=date(2026, 3, 2),
                          hours=Decimal("0"), status=EntryStatus.WORKED)
        assert worked.is_worked
        assert not absent.is_worked
        assert not empty.is_worked


class TestErrors:
    def test_not_found_message(self):
        err = NotFoundError("Project", 42)
        assert err.kind == "Project"
        assert err.identifier == 42
        assert "Project 42 not found" in str(err)

    def test_dataset_validation_error_lists_errors(self):
        err = DatasetValidationError(["first", "second"])
        assert err.errors == ["first", "second"]
        assert "2 error(s)" in str(err)
        assert "  - second" in str(err)
