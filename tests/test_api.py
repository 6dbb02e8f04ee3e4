"""Tests for the HTTP API."""

import pytest
from decimal import Decimal
from datetime import date
from io import BytesIO

import openpyxl
from fastapi.testclient import TestClient

from api.main import app
from api.routes import get_store
from timesheet_tool.entries import EntryUpdate
from timesheet_tool.models import CompanySettings, EntryStatus, Project, Worker
from timesheet_tool.store import TimesheetStore


def _make_store() -> TimesheetStore:
    store = TimesheetStore(company_settings=CompanySettings(verified=True, valid_until=date(2030, 1, 1)))
    store.add_project(Project(id=1, name="Gare", client_name="SNCB",
                              billing_rate=Decimal("48"), default_hours=Decimal("8")))
    store.add_project(Project(id=2, name="Atelier"))
    store.add_worker(Worker(id=10, first_name="Jean", last_name="Dupont",
                            pay_rate=Decimal("40"), charges_pct=Decimal("12.5")))
    store.add_worker(Worker(id=11, first_name="Ali", last_name="Benali"))
    store.assign_worker(1, 10)
    store.assign_worker(2, 10)
    store.set_time_entry(EntryUpdate(
        project_id=1, worker_id=10, date=date(2026, 3, 2),
        status=EntryStatus.WORKED, hours=Decimal("10"),
    ))
    return store


@pytest.fixture
def store():
    return _make_store()


@pytest.fixture
def client(store):
    app.dependency_overrides[get_store] = lambda: store
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestHealth:
    def test_health(self, client):
        assert client.get("/api/v1/health").json() == {"status": "ok"}


class TestTimesheet:
    def test_get_timesheet(self, client):
        resp = client.get("/api/v1/timesheets", params={"project_id": 1, "month": "2026-03"})
        assert resp.status_code == 200
        body = resp.json()
        assert body["label"] == "mars 2026"
        assert len(body["days"]) == 31
        assert [r["worker_id"] for r in body["roster"]] == [11, 10]
        assert [r["assigned"] for r in body["roster"]] == [False, True]
        dupont = body["roster"][1]
        assert dupont["total_hours"] == 10
        assert dupont["base_cost"] == 450
        summary = body["summary"]
        assert summary["total_hours_label"] == "10:00"
        assert summary["invoice_estimate"] == 480
        assert summary["payroll_estimate"] == 450
        assert summary["margin_estimate"] == 30
        assert summary["assigned_count"] == 1

    def test_unknown_project(self, client):
        resp = client.get("/api/v1/timesheets", params={"project_id": 99, "month": "2026-03"})
        assert resp.status_code == 404

    def test_invalid_month(self, client):
        resp = client.get("/api/v1/timesheets", params={"project_id": 1, "month": "2026-13"})
        assert resp.status_code == 400

    def test_set_entry(self, client, store):
        resp = client.post("/api/v1/timesheets", json={
            "project_id": 1, "worker_id": 10, "date": "2026-03-03",
            "status": "WORKED", "hours": 7.6,
        })
        assert resp.status_code == 200
        entry = resp.json()["entry"]
        assert entry["hours"] == 7.5
        assert entry["hours_label"] == "07:30"
        assert store.get_entry(1, 10, date(2026, 3, 3)).hours == Decimal("7.5")

    def test_set_entry_zero_hours_is_absent(self, client):
        resp = client.post("/api/v1/timesheets", json={
            "project_id": 1, "worker_id": 10, "date": "2026-03-03",
            "status": "WORKED", "hours": 0,
        })
        assert resp.json()["entry"]["status"] == "ABSENT"

    def test_set_entry_unknown_worker(self, client):
        resp = client.post("/api/v1/timesheets", json={
            "project_id": 1, "worker_id": 99, "date": "2026-03-03", "status": "WORKED", "hours": 8,
        })
        assert resp.status_code == 404

    def test_set_entry_rejects_bad_status(self, client):
        resp = client.post("/api/v1/timesheets", json={
            "project_id": 1, "worker_id": 10, "date": "2026-03-03", "status": "SICK",
        })
        assert resp.status_code == 422

    def test_toggle(self, client):
        payload = {"project_id": 1, "worker_id": 10, "date": "2026-03-02"}
        first = client.post("/api/v1/timesheets/toggle", json=payload).json()["entry"]
        assert first["status"] == "ABSENT"
        second = client.post("/api/v1/timesheets/toggle", json=payload).json()["entry"]
        assert second["status"] == "WORKED"
        assert second["hours"] == 8

    def test_toggle_keeps_note_and_times(self, client, store):
        store.set_time_entry(EntryUpdate(
            project_id=1, worker_id=10, date=date(2026, 3, 4), status=EntryStatus.ABSENT,
            note="malade", start_time="07:00",
        ))
        resp = client.post("/api/v1/timesheets/toggle",
                           json={"project_id": 1, "worker_id": 10, "date": "2026-03-04"})
        entry = resp.json()["entry"]
        assert entry["status"] == "WORKED"
        assert entry["note"] == "malade"
        assert entry["start_time"] == "07:00"


class TestAssignments:
    def test_assign(self, client, store):
        resp = client.post("/api/v1/assignments", json={"project_id": 1, "worker_id": 11})
        assert resp.status_code == 201
        assert store.is_assigned(1, 11)

    def test_assign_unknown_worker(self, client):
        resp = client.post("/api/v1/assignments", json={"project_id": 1, "worker_id": 99})
        assert resp.status_code == 404

    def test_unassign_cascades(self, client, store):
        store.set_time_entry(EntryUpdate(
            project_id=2, worker_id=10, date=date(2026, 3, 2),
            status=EntryStatus.WORKED, hours=Decimal("4"),
        ))
        resp = client.request("DELETE", "/api/v1/assignments", json={"project_id": 1, "worker_id": 10})
        assert resp.status_code == 200
        assert resp.json() == {"ok": True, "removed_entries": 1}
        assert store.get_entry(2, 10, date(2026, 3, 2)) is not None


class TestExport:
    def test_payroll_download(self, client):
        resp = client.get("/api/v1/timesheets/export",
                          params={"project_id": 1, "month": "2026-03", "kind": "payroll"})
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith(
            "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
        )
        assert 'filename="timesheet-1-2026-03-payroll.xlsx"' in resp.headers["content-disposition"]
        wb = openpyxl.load_workbook(BytesIO(resp.content))
        ws = wb["Paie"]
        assert ws["A2"].value == "DUPONT Jean"
        assert ws["E3"].value == 450
        wb.close()

    def test_unknown_kind(self, client):
        resp = client.get("/api/v1/timesheets/export",
                          params={"project_id": 1, "month": "2026-03", "kind": "pdf"})
        assert resp.status_code == 422

    def test_strict_export_reports_validation_errors(self, client, store):
        for project_id, hours in ((1, "14"), (2, "12")):
            store.set_time_entry(EntryUpdate(
                project_id=project_id, worker_id=10, date=date(2026, 3, 3),
                status=EntryStatus.WORKED, hours=Decimal(hours),
            ))
        resp = client.get("/api/v1/timesheets/export",
                          params={"project_id": 1, "month": "2026-03", "strict": True})
        assert resp.status_code == 422
        body = resp.json()
        assert body["error_type"] == "validation_error"
        assert "across all projects" in body["errors"][0]


class TestDashboard:
    def test_month(self, client):
        resp = client.get("/api/v1/dashboard", params={"mode": "month", "value": "2026-03"})
        assert resp.status_code == 200
        body = resp.json()
        assert body["value"] == "2026-03"
        assert body["totals"]["amount_to_invoice"] == 480
        assert body["totals"]["amount_to_pay"] == 450
        assert body["top_clients"][0]["label"] == "SNCB"

    def test_invalid_period_falls_back(self, client):
        resp = client.get("/api/v1/dashboard", params={"mode": "quarter", "value": "nope"})
        assert resp.status_code == 200
        assert resp.json()["mode"] == "month"
