"""API routes for the timesheet tool."""

from __future__ import annotations

import logging
from decimal import Decimal
from functools import lru_cache
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import JSONResponse, Response

from timesheet_tool.config import get_settings
from timesheet_tool.engine import build_dashboard_snapshot, calculate_timesheet, validate_entries
from timesheet_tool.engine.valuation import Valuation
from timesheet_tool.entries import EntryUpdate, toggle_update
from timesheet_tool.excel import (
    XLSX_MEDIA_TYPE,
    ExportKind,
    build_export_dataset,
    export_filename,
    workbook_bytes,
)
from timesheet_tool.formatting import format_duration, hours_to_hhmm
from timesheet_tool.models import (
    DatasetValidationError,
    EntryStatus,
    InvalidPeriodError,
    NotFoundError,
    Project,
    TimeEntry,
)
from timesheet_tool.periods import sanitize_period
from timesheet_tool.store import TimesheetData, TimesheetStore, load_store

from api.schemas import (
    AlertSchema,
    AssignmentPayload,
    CellPayload,
    ComplianceSchema,
    DashboardResponse,
    DashboardTotals,
    DaySchema,
    EntryPayload,
    EntryResponse,
    EntrySchema,
    HoursPointSchema,
    ProjectRollupSchema,
    ProjectSchema,
    RollupSchema,
    RosterSlotSchema,
    TimesheetResponse,
    TrendPointSchema,
    ValuationSummary,
    WorkerRollupSchema,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@lru_cache
def get_store() -> TimesheetStore:
    """Process-wide store, seeded from ``TIMESHEET_DATASET_PATH`` when set."""
    settings = get_settings()
    if settings.dataset_path:
        return load_store(settings.dataset_path)
    return TimesheetStore()


def _not_found(error: NotFoundError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(error))


def _opt(value: Optional[Decimal]) -> Optional[float]:
    return float(value) if value is not None else None


def _entry_schema(entry: TimeEntry) -> EntrySchema:
    return EntrySchema(
        project_id=entry.project_id,
        worker_id=entry.worker_id,
        date=entry.date,
        hours=float(entry.hours),
        hours_label=hours_to_hhmm(entry.hours),
        status=entry.status.value,
        note=entry.note,
        start_time=entry.start_time,
        end_time=entry.end_time,
    )


def _project_schema(project: Project) -> ProjectSchema:
    return ProjectSchema(
        id=project.id,
        name=project.name,
        client_name=project.client_name,
        billing_rate=_opt(project.billing_rate),
        default_hours=_opt(project.default_hours),
        archived=project.archived,
    )


def _summary(data: TimesheetData, valuation: Valuation) -> ValuationSummary:
    aggregation = valuation.aggregation
    return ValuationSummary(
        total_hours=float(valuation.total_hours),
        total_hours_label=format_duration(valuation.total_hours),
        assigned_count=len(aggregation.workers),
        non_compliant_count=data.non_compliant_count,
        average_hours_per_worker=_opt(aggregation.average_hours_per_worker),
        invoice_estimate=_opt(valuation.invoice_estimate),
        payroll_estimate=_opt(valuation.payroll_estimate),
        margin_estimate=_opt(valuation.margin_estimate),
        payroll_coverage=_opt(valuation.payroll_coverage),
        average_revenue_per_hour=_opt(valuation.average_revenue_per_hour),
        average_cost_per_hour=_opt(valuation.average_cost_per_hour),
        margin_per_hour=_opt(valuation.margin_per_hour),
        workers_with_pay_rate=valuation.workers_with_pay_rate,
        workers_missing_pay_rate=valuation.workers_missing_pay_rate,
    )


@router.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "ok"}


@router.get("/timesheets", response_model=TimesheetResponse)
def get_timesheet(
    project_id: int = Query(...),
    month: str = Query(..., description="YYYY-MM"),
    store: TimesheetStore = Depends(get_store),
):
    """Roster, entries and computed totals for one project and month."""
    try:
        data = store.load_timesheet(project_id, month)
    except NotFoundError as e:
        raise _not_found(e)
    except InvalidPeriodError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    valuation = calculate_timesheet(data)
    aggregation = valuation.aggregation

    roster = []
    for slot in data.roster:
        worker = slot.worker
        cost = valuation.cost_for(worker.id)
        roster.append(RosterSlotSchema(
            worker_id=worker.id,
            name=worker.display_name,
            status=worker.status.value,
            assigned=slot.assigned,
            compliance=ComplianceSchema(
                is_compliant=slot.compliance.is_compliant,
                missing=list(slot.compliance.missing),
            ),
            total_hours=float(aggregation.worker_hour_total(worker.id)),
            worked_days=aggregation.worker_worked_day_count(worker.id),
            pay_rate=_opt(worker.pay_rate),
            charges_pct=float(worker.charges_pct or 0),
            base_cost=float(cost.base_cost) if cost else 0.0,
            extra_cost=float(cost.extra_cost) if cost else 0.0,
            total_cost=float(cost.total_cost) if cost else 0.0,
        ))

    return TimesheetResponse(
        project=_project_schema(data.project),
        month=data.period.value,
        label=data.period.label,
        days=[
            DaySchema(
                key=day.key,
                label=day.label,
                is_weekend=day.is_weekend,
                total_hours=float(aggregation.day_total(day.key)),
            )
            for day in data.days
        ],
        roster=roster,
        entries=[_entry_schema(e) for e in data.entries],
        summary=_summary(data, valuation),
    )


@router.post("/timesheets", response_model=EntryResponse)
def set_entry(payload: EntryPayload, store: TimesheetStore = Depends(get_store)):
    """Upsert one timesheet cell (last write wins)."""
    logger.info(
        "POST /timesheets project=%s worker=%s date=%s status=%s hours=%s",
        payload.project_id, payload.worker_id, payload.date, payload.status, payload.hours,
    )
    update = EntryUpdate(
        project_id=payload.project_id,
        worker_id=payload.worker_id,
        date=payload.date,
        status=EntryStatus(payload.status),
        hours=Decimal(str(payload.hours)) if payload.hours is not None else Decimal("0"),
        note=payload.note,
        start_time=payload.start_time,
        end_time=payload.end_time,
    )
    try:
        entry = store.set_time_entry(update)
    except NotFoundError as e:
        raise _not_found(e)
    return EntryResponse(entry=_entry_schema(entry))


@router.post("/timesheets/toggle", response_model=EntryResponse)
def toggle_entry(payload: CellPayload, store: TimesheetStore = Depends(get_store)):
    """Flip a cell between absent and worked with the project's default hours."""
    try:
        project = store.require_project(payload.project_id)
        store.require_worker(payload.worker_id)
    except NotFoundError as e:
        raise _not_found(e)
    current = store.get_entry(payload.project_id, payload.worker_id, payload.date)
    update = toggle_update(
        current, project, payload.worker_id, payload.date,
        fallback=get_settings().default_day_hours,
    )
    entry = store.set_time_entry(update)
    return EntryResponse(entry=_entry_schema(entry))


@router.post("/assignments", status_code=status.HTTP_201_CREATED)
def assign(payload: AssignmentPayload, store: TimesheetStore = Depends(get_store)):
    try:
        store.assign_worker(payload.project_id, payload.worker_id)
    except NotFoundError as e:
        raise _not_found(e)
    return {"assignment": {"project_id": payload.project_id, "worker_id": payload.worker_id}}


@router.delete("/assignments")
def unassign(payload: AssignmentPayload, store: TimesheetStore = Depends(get_store)):
    try:
        removed = store.unassign_worker(payload.project_id, payload.worker_id)
    except NotFoundError as e:
        raise _not_found(e)
    return {"ok": True, "removed_entries": removed}


@router.get("/timesheets/export")
def export_timesheet(
    project_id: int = Query(...),
    month: str = Query(..., description="YYYY-MM"),
    kind: ExportKind = Query(ExportKind.PAYROLL),
    strict: bool = Query(False, description="Check stored entries, including daily totals across projects"),
    store: TimesheetStore = Depends(get_store),
):
    """Download the payroll, detail or global workbook."""
    try:
        data = store.load_timesheet(project_id, month)
        if strict:
            validate_entries(store.entries_between(data.period.start, data.period.end), store, data.period)
        content = workbook_bytes(build_export_dataset(data), kind)
    except NotFoundError as e:
        raise _not_found(e)
    except InvalidPeriodError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except DatasetValidationError as e:
        logger.warning("Export of project %s (%s) failed validation: %d error(s)", project_id, month, len(e.errors))
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={"success": False, "error_type": "validation_error", "errors": e.errors},
        )

    filename = export_filename(project_id, data.period.value, kind)
    return Response(
        content=content,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/dashboard", response_model=DashboardResponse)
def dashboard(
    mode: Optional[str] = Query(None, description="month or quarter"),
    value: Optional[str] = Query(None, description="YYYY-MM or YYYY-Qn"),
    store: TimesheetStore = Depends(get_store),
):
    """Account-wide invoice, payroll and activity snapshot."""
    period = sanitize_period(mode, value)
    snapshot = build_dashboard_snapshot(store, period)

    def worker_rollup(w) -> WorkerRollupSchema:
        return WorkerRollupSchema(
            id=w.id, label=w.label, amount=float(w.amount), hours=float(w.hours), status=w.status,
        )

    return DashboardResponse(
        mode=period.mode,
        value=period.value,
        label=period.label,
        start=period.start,
        end=period.end,
        totals=DashboardTotals(
            amount_to_invoice=float(snapshot.amount_to_invoice),
            amount_to_pay=float(snapshot.amount_to_pay),
            billable_hours=float(snapshot.billable_hours),
            estimated_margin=float(snapshot.estimated_margin),
        ),
        active_projects=snapshot.active_projects,
        active_workers=snapshot.active_workers,
        top_clients=[
            RollupSchema(label=c.label, amount=float(c.amount), hours=float(c.hours))
            for c in snapshot.top_clients
        ],
        top_projects=[
            ProjectRollupSchema(
                id=p.id,
                label=p.label,
                client=p.client,
                amount=float(p.amount),
                hours=float(p.hours),
                payroll=float(p.payroll),
                margin=float(p.margin),
            )
            for p in snapshot.top_projects
        ],
        top_workers=[worker_rollup(w) for w in snapshot.top_workers],
        trend=[
            TrendPointSchema(label=t.label, invoice=float(t.invoice), payroll=float(t.payroll))
            for t in snapshot.trend
        ],
        weekly_hours=[HoursPointSchema(label=h.label, hours=float(h.hours)) for h in snapshot.weekly_hours],
        project_distribution=[
            HoursPointSchema(label=h.label, hours=float(h.hours)) for h in snapshot.project_distribution
        ],
        worker_activity=[worker_rollup(w) for w in snapshot.worker_activity],
        alerts=[
            AlertSchema(type=a.type, title=a.title, description=a.description, href=a.href)
            for a in snapshot.alerts
        ],
    )
