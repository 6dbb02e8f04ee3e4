"""Account-wide dashboard snapshot over a month or a quarter.

Every worked entry is valued with the same rules as the per-project
timesheet (``valuation.worker_payroll_cost``); a single entry is one worked
day, so DAY-unit costs count once per entry. A missing billing rate counts as
zero revenue here.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Optional

from timesheet_tool.compliance import company_settings_valid, has_expired_documents
from timesheet_tool.engine.aggregator import ZERO
from timesheet_tool.engine.valuation import invoice_amount, worker_payroll_cost
from timesheet_tool.models import EntryStatus
from timesheet_tool.periods import (
    QUARTER,
    Period,
    trend_label,
    week_label,
    week_start,
)
from timesheet_tool.store import TimesheetStore

TOP_N = 5
ALERT_PREVIEW = 3
OTHERS_LABEL = "Autres"


@dataclass
class ClientRollup:
    label: str
    amount: Decimal = ZERO
    hours: Decimal = ZERO


@dataclass
class ProjectRollup:
    id: int
    label: str
    client: Optional[str]
    amount: Decimal = ZERO
    hours: Decimal = ZERO
    payroll: Decimal = ZERO

    @property
    def margin(self) -> Decimal:
        return self.amount - self.payroll


@dataclass
class WorkerRollup:
    id: int
    label: str
    status: str
    amount: Decimal = ZERO
    hours: Decimal = ZERO


@dataclass
class TrendPoint:
    label: str
    order: date
    invoice: Decimal = ZERO
    payroll: Decimal = ZERO


@dataclass
class HoursPoint:
    label: str
    hours: Decimal = ZERO


@dataclass(frozen=True)
class Alert:
    type: str
    title: str
    description: str
    href: Optional[str] = None


@dataclass
class DashboardSnapshot:
    period: Period
    amount_to_invoice: Decimal = ZERO
    amount_to_pay: Decimal = ZERO
    billable_hours: Decimal = ZERO
    active_projects: int = 0
    active_workers: int = 0
    top_clients: list[ClientRollup] = field(default_factory=list)
    top_projects: list[ProjectRollup] = field(default_factory=list)
    top_workers: list[WorkerRollup] = field(default_factory=list)
    trend: list[TrendPoint] = field(default_factory=list)
    weekly_hours: list[HoursPoint] = field(default_factory=list)
    project_distribution: list[HoursPoint] = field(default_factory=list)
    worker_activity: list[WorkerRollup] = field(default_factory=list)
    alerts: list[Alert] = field(default_factory=list)

    @property
    def estimated_margin(self) -> Decimal:
        return self.amount_to_invoice - self.amount_to_pay


def build_dashboard_snapshot(
    store: TimesheetStore,
    period: Period,
    today: Optional[date] = None,
) -> DashboardSnapshot:
    today = today or date.today()
    snapshot = DashboardSnapshot(period=period)

    clients: dict[str, ClientRollup] = {}
    projects: dict[int, ProjectRollup] = {}
    workers: dict[int, WorkerRollup] = {}
    trend: dict[date, TrendPoint] = {}
    weekly: dict[date, HoursPoint] = {}

    for entry in store.entries_between(period.start, period.end):
        if entry.status == EntryStatus.ABSENT or entry.hours <= 0:
            continue
        project = store.get_project(entry.project_id)
        worker = store.get_worker(entry.worker_id)
        if project is None or worker is None:
            continue

        hours = entry.hours
        invoice = invoice_amount(hours, project.billing_rate) or ZERO
        payroll = worker_payroll_cost(worker, hours, 1).total_cost

        snapshot.amount_to_invoice += invoice
        snapshot.amount_to_pay += payroll
        snapshot.billable_hours += hours

        client = clients.setdefault(project.client_label, ClientRollup(label=project.client_label))
        client.amount += invoice
        client.hours += hours

        project_bucket = projects.setdefault(
            project.id,
            ProjectRollup(id=project.id, label=project.name, client=project.client_name),
        )
        project_bucket.amount += invoice
        project_bucket.hours += hours
        project_bucket.payroll += payroll

        worker_bucket = workers.setdefault(
            worker.id,
            WorkerRollup(id=worker.id, label=worker.display_name, status=worker.status.value),
        )
        worker_bucket.amount += payroll
        worker_bucket.hours += hours

        bucket_date = entry.date.replace(day=1) if period.mode == QUARTER else entry.date
        point = trend.setdefault(
            bucket_date,
            TrendPoint(label=trend_label(bucket_date, period.mode), order=bucket_date),
        )
        point.invoice += invoice
        point.payroll += payroll

        monday = week_start(entry.date)
        week = weekly.setdefault(monday, HoursPoint(label=week_label(monday)))
        week.hours += hours

    snapshot.active_projects = len(projects)
    snapshot.active_workers = len(workers)
    snapshot.top_clients = sorted(clients.values(), key=lambda c: c.amount, reverse=True)[:TOP_N]
    snapshot.top_projects = sorted(projects.values(), key=lambda p: p.amount, reverse=True)[:TOP_N]
    snapshot.top_workers = sorted(workers.values(), key=lambda w: w.hours, reverse=True)[:TOP_N]
    snapshot.worker_activity = snapshot.top_workers[:]
    snapshot.trend = [trend[key] for key in sorted(trend)]
    snapshot.weekly_hours = [weekly[key] for key in sorted(weekly)]
    snapshot.project_distribution = _project_distribution(list(projects.values()))
    snapshot.alerts = _alerts(store, projects, today)
    return snapshot


def _project_distribution(projects: list[ProjectRollup]) -> list[HoursPoint]:
    ranked = sorted(projects, key=lambda p: p.hours, reverse=True)
    points = [HoursPoint(label=p.label, hours=p.hours) for p in ranked[:TOP_N]]
    rest = sum((p.hours for p in ranked[TOP_N:]), ZERO)
    if rest > 0:
        points.append(HoursPoint(label=OTHERS_LABEL, hours=rest))
    return points


def _alerts(
    store: TimesheetStore,
    projects: dict[int, ProjectRollup],
    today: date,
) -> list[Alert]:
    alerts: list[Alert] = []

    assigned = store.projects_with_assignments()
    orphans = [p.label for pid, p in projects.items() if pid not in assigned]
    if orphans:
        preview = ", ".join(orphans[:ALERT_PREVIEW])
        if len(orphans) > ALERT_PREVIEW:
            description = (
                f"{preview} et {len(orphans) - ALERT_PREVIEW} autre(s) "
                "n’ont aucun ouvrier affecté."
            )
        else:
            description = f"{preview} n’ont aucun ouvrier affecté."
        alerts.append(Alert(
            type="project",
            title="Chantiers sans ouvriers",
            description=description,
            href="/timesheets",
        ))

    expired = [w.display_name for w in store.list_workers() if has_expired_documents(w, today)]
    if expired:
        preview = ", ".join(expired[:ALERT_PREVIEW])
        if len(expired) >= ALERT_PREVIEW:
            description = f"{preview} ont des documents à renouveler."
        else:
            description = f"{preview} doit renouveler ses documents."
        alerts.append(Alert(
            type="worker",
            title="Documents expirés",
            description=description,
            href="/workers",
        ))

    settings = store.company_settings
    if settings is None or not settings.verified:
        alerts.append(Alert(
            type="compliance",
            title="BCE non vérifiée",
            description="Complétez ou mettez à jour votre dossier BCE avant l’export paie.",
            href="/settings",
        ))
    elif not company_settings_valid(settings, today):
        alerts.append(Alert(
            type="compliance",
            title="BCE expirée",
            description="Le dossier BCE a expiré, renouvelez-le avant l’export paie.",
            href="/settings",
        ))

    return alerts
