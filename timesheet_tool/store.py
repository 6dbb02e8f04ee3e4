"""In-memory repository for projects, workers, assignments and time entries.

Entries are keyed on the natural key (project, worker, date); concurrent
writes to the same key resolve as last-write-wins.
"""

from __future__ import annotations

import json
import logging
import threading
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Any, Callable, Optional

from timesheet_tool.compliance import compute_worker_compliance
from timesheet_tool.entries import EntryUpdate, build_entry
from timesheet_tool.models import (
    AdditionalCost,
    CompanySettings,
    CostUnit,
    DatasetValidationError,
    Day,
    Document,
    DocumentKind,
    EntryStatus,
    NotFoundError,
    Project,
    RosterSlot,
    TimeEntry,
    Worker,
    WorkerStatus,
)
from timesheet_tool.periods import Period, parse_month

logger = logging.getLogger(__name__)


@dataclass
class TimesheetData:
    """Everything needed to render one project's timesheet for one period."""
    project: Project
    period: Period
    days: list[Day]
    roster: list[RosterSlot]
    entries: list[TimeEntry]

    @property
    def assigned_roster(self) -> list[RosterSlot]:
        return [slot for slot in self.roster if slot.assigned]

    @property
    def assigned_workers(self) -> list[Worker]:
        return [slot.worker for slot in self.assigned_roster]

    @property
    def non_compliant_count(self) -> int:
        return sum(1 for slot in self.assigned_roster if not slot.compliance.is_compliant)


class TimesheetStore:
    """Persistence operations used by the timesheet, export and dashboard layers."""

    def __init__(self, company_settings: Optional[CompanySettings] = None) -> None:
        self.company_settings = company_settings
        self._projects: dict[int, Project] = {}
        self._workers: dict[int, Worker] = {}
        self._assignments: set[tuple[int, int]] = set()
        self._entries: dict[tuple[int, int, date], TimeEntry] = {}
        self._lock = threading.Lock()

    # ---------- Projects and workers ----------
    def add_project(self, project: Project) -> Project:
        self._projects[project.id] = project
        return project

    def add_worker(self, worker: Worker) -> Worker:
        self._workers[worker.id] = worker
        return worker

    def get_project(self, project_id: int) -> Optional[Project]:
        return self._projects.get(project_id)

    def get_worker(self, worker_id: int) -> Optional[Worker]:
        return self._workers.get(worker_id)

    def require_project(self, project_id: int) -> Project:
        project = self.get_project(project_id)
        if project is None:
            raise NotFoundError("Project", project_id)
        return project

    def require_worker(self, worker_id: int) -> Worker:
        worker = self.get_worker(worker_id)
        if worker is None:
            raise NotFoundError("Worker", worker_id)
        return worker

    def list_projects(self) -> list[Project]:
        return sorted(self._projects.values(), key=lambda p: p.name.casefold())

    def list_workers(self) -> list[Worker]:
        return sorted(self._workers.values(), key=lambda w: w.sort_key)

    # ---------- Assignments ----------
    def assign_worker(self, project_id: int, worker_id: int) -> None:
        self.require_project(project_id)
        self.require_worker(worker_id)
        with self._lock:
            self._assignments.add((project_id, worker_id))

    def unassign_worker(self, project_id: int, worker_id: int) -> int:
        """Remove an assignment and that worker's entries on this project.

        Returns the number of deleted entries.
        """
        self.require_project(project_id)
        with self._lock:
            self._assignments.discard((project_id, worker_id))
            doomed = [
                key for key in self._entries
                if key[0] == project_id and key[1] == worker_id
            ]
            for key in doomed:
                del self._entries[key]
        logger.info(
            "Unassigned worker %s from project %s, removed %d entries",
            worker_id, project_id, len(doomed),
        )
        return len(doomed)

    def is_assigned(self, project_id: int, worker_id: int) -> bool:
        return (project_id, worker_id) in self._assignments

    def assigned_workers(self, project_id: int) -> list[Worker]:
        workers = [
            self._workers[worker_id]
            for (pid, worker_id) in self._assignments
            if pid == project_id and worker_id in self._workers
        ]
        return sorted(workers, key=lambda w: w.sort_key)

    def projects_with_assignments(self) -> set[int]:
        return {project_id for (project_id, _) in self._assignments}

    # ---------- Entries ----------
    def set_time_entry(self, update: EntryUpdate) -> TimeEntry:
        """Upsert one cell. Non-positive hours or ABSENT store an explicit ABSENT row."""
        self.require_project(update.project_id)
        self.require_worker(update.worker_id)
        entry = build_entry(update)
        with self._lock:
            self._entries[entry.key] = entry
        logger.debug(
            "Saved entry project=%s worker=%s date=%s status=%s hours=%s",
            entry.project_id, entry.worker_id, entry.date, entry.status.value, entry.hours,
        )
        return entry

    def get_entry(self, project_id: int, worker_id: int, day: date) -> Optional[TimeEntry]:
        return self._entries.get((project_id, worker_id, day))

    def entries_for_project(self, project_id: int, start: date, end: date) -> list[TimeEntry]:
        with self._lock:
            snapshot = list(self._entries.values())
        return sorted(
            (e for e in snapshot if e.project_id == project_id and start <= e.date <= end),
            key=lambda e: (e.date, e.worker_id),
        )

    def entries_between(self, start: date, end: date) -> list[TimeEntry]:
        with self._lock:
            snapshot = list(self._entries.values())
        return sorted(
            (e for e in snapshot if start <= e.date <= end),
            key=lambda e: (e.date, e.project_id, e.worker_id),
        )

    # ---------- Roster resolution ----------
    def roster(self, project_id: int, today: Optional[date] = None) -> list[RosterSlot]:
        """All workers, ordered by name, flagged with assignment and compliance."""
        return [
            RosterSlot(
                worker=worker,
                project_id=project_id,
                assigned=self.is_assigned(project_id, worker.id),
                compliance=compute_worker_compliance(worker, self.company_settings, today),
            )
            for worker in self.list_workers()
        ]

    def load_timesheet(self, project_id: int, month: str, today: Optional[date] = None) -> TimesheetData:
        project = self.require_project(project_id)
        period = parse_month(month)
        return TimesheetData(
            project=project,
            period=period,
            days=period.days(),
            roster=self.roster(project_id, today),
            entries=self.entries_for_project(project_id, period.start, period.end),
        )

    # ---------- Dataset loading ----------
    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TimesheetStore":
        """Build a store from a decoded dataset, normalising entries on the way in.

        Malformed items are collected and raised together as a
        ``DatasetValidationError``.
        """
        errors: list[str] = []
        settings_data = data.get("company_settings")
        try:
            store = cls(company_settings=_company_settings(settings_data) if settings_data else None)
        except _MALFORMED as e:
            raise DatasetValidationError([f"company_settings: {_reason(e)}"]) from e

        _load_section(errors, data, "projects", lambda item: store.add_project(_project(item)))
        _load_section(errors, data, "workers", lambda item: store.add_worker(_worker(item)))
        _load_section(
            errors, data, "assignments",
            lambda item: store.assign_worker(int(item["project_id"]), int(item["worker_id"])),
        )
        _load_section(errors, data, "entries", lambda item: store.set_time_entry(_entry_update(item)))

        if errors:
            raise DatasetValidationError(errors)
        return store

    def raw_entries(self) -> list[TimeEntry]:
        with self._lock:
            return list(self._entries.values())


def read_dataset(path: str | Path) -> dict[str, Any]:
    """Read and decode a JSON dataset file."""
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise DatasetValidationError([f"{path}: invalid JSON ({e})"]) from e
    if not isinstance(data, dict):
        raise DatasetValidationError([f"{path}: expected a JSON object at the top level"])
    return data


def load_store(path: str | Path) -> TimesheetStore:
    """Load a JSON dataset file into a new store."""
    store = TimesheetStore.from_dict(read_dataset(path))
    logger.info(
        "Loaded dataset %s: %d projects, %d workers, %d entries",
        path, len(store.list_projects()), len(store.list_workers()), len(store.raw_entries()),
    )
    return store


def parse_entries(items: Any) -> list[TimeEntry]:
    """Decode dataset entries exactly as written: no snapping, no de-duplication."""
    errors: list[str] = []
    entries: list[TimeEntry] = []
    _load_section(errors, {"entries": items}, "entries", lambda item: entries.append(_raw_entry(item)))
    if errors:
        raise DatasetValidationError(errors)
    return entries


# Decoding failures of a single dataset item.
_MALFORMED = (KeyError, TypeError, ValueError, ArithmeticError, AttributeError)


def _reason(error: Exception) -> str:
    if isinstance(error, KeyError):
        return f"missing field {error}"
    return str(error)


def _load_section(
    errors: list[str],
    data: dict[str, Any],
    section: str,
    load: Callable[[dict[str, Any]], Any],
) -> None:
    items = data.get(section) or []
    if not isinstance(items, list):
        errors.append(f"{section}: expected a list")
        return
    for index, item in enumerate(items):
        try:
            load(item)
        except (NotFoundError, *_MALFORMED) as e:
            errors.append(f"{section}[{index}]: {_reason(e)}")


def _decimal(value: Any) -> Optional[Decimal]:
    if value is None or value == "":
        return None
    return Decimal(str(value))


def _date(value: Any) -> Optional[date]:
    if not value:
        return None
    return date.fromisoformat(value)


def _entry_update(item: dict[str, Any]) -> EntryUpdate:
    hours = _decimal(item.get("hours"))
    if hours is not None and not hours.is_finite():
        raise ValueError(f"hours is not finite: {item['hours']}")
    return EntryUpdate(
        project_id=int(item["project_id"]),
        worker_id=int(item["worker_id"]),
        date=date.fromisoformat(item["date"]),
        status=EntryStatus(item.get("status", EntryStatus.WORKED.value)),
        hours=hours if hours is not None else Decimal("0"),
        note=item.get("note"),
        start_time=item.get("start_time"),
        end_time=item.get("end_time"),
    )


def _raw_entry(item: dict[str, Any]) -> TimeEntry:
    update = _entry_update(item)
    return TimeEntry(
        project_id=update.project_id,
        worker_id=update.worker_id,
        date=update.date,
        hours=update.hours,
        status=update.status,
        start_time=update.start_time,
        end_time=update.end_time,
        note=update.note,
    )


def _company_settings(item: dict[str, Any]) -> CompanySettings:
    return CompanySettings(
        verified=bool(item.get("verified", False)),
        valid_until=_date(item.get("valid_until")),
    )


def _project(item: dict[str, Any]) -> Project:
    return Project(
        id=int(item["id"]),
        name=item["name"],
        client_name=item.get("client_name"),
        billing_rate=_decimal(item.get("billing_rate")),
        default_hours=_decimal(item.get("default_hours")),
        archived=bool(item.get("archived", False)),
    )


def _worker(item: dict[str, Any]) -> Worker:
    return Worker(
        id=int(item["id"]),
        first_name=item["first_name"],
        last_name=item["last_name"],
        status=WorkerStatus(item.get("status", WorkerStatus.SALARIE.value)),
        pay_rate=_decimal(item.get("pay_rate")),
        charges_pct=_decimal(item.get("charges_pct")) or Decimal("0"),
        include_in_export=bool(item.get("include_in_export", True)),
        email=item.get("email"),
        national_id=item.get("national_id"),
        vat_number=item.get("vat_number"),
        additional_costs=[
            AdditionalCost(
                label=cost.get("label", ""),
                unit=CostUnit(cost["unit"]),
                amount=Decimal(str(cost["amount"])),
            )
            for cost in item.get("additional_costs", [])
        ],
        documents=[
            Document(kind=DocumentKind(doc["kind"]), valid_until=_date(doc.get("valid_until")))
            for doc in item.get("documents", [])
        ],
    )
