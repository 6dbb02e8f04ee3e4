"""Pydantic request/response models for the Timesheet API."""

from __future__ import annotations

import datetime
from typing import Literal

from pydantic import BaseModel, Field


class EntryPayload(BaseModel):
    project_id: int
    worker_id: int
    date: datetime.date
    status: Literal["WORKED", "ABSENT"]
    hours: float | None = Field(default=None, ge=0)
    note: str | None = None
    start_time: str | None = None
    end_time: str | None = None


class CellPayload(BaseModel):
    project_id: int
    worker_id: int
    date: datetime.date


class AssignmentPayload(BaseModel):
    project_id: int
    worker_id: int


class EntrySchema(BaseModel):
    project_id: int
    worker_id: int
    date: datetime.date
    hours: float
    hours_label: str
    status: str
    note: str | None = None
    start_time: str | None = None
    end_time: str | None = None


class EntryResponse(BaseModel):
    entry: EntrySchema


class DaySchema(BaseModel):
    key: str
    label: str
    is_weekend: bool
    total_hours: float


class ComplianceSchema(BaseModel):
    is_compliant: bool
    missing: list[str]


class RosterSlotSchema(BaseModel):
    worker_id: int
    name: str
    status: str
    assigned: bool
    compliance: ComplianceSchema
    total_hours: float
    worked_days: int
    pay_rate: float | None = None
    charges_pct: float
    base_cost: float
    extra_cost: float
    total_cost: float


class ValuationSummary(BaseModel):
    total_hours: float
    total_hours_label: str
    assigned_count: int
    non_compliant_count: int
    average_hours_per_worker: float | None = None
    invoice_estimate: float | None = None
    payroll_estimate: float | None = None
    margin_estimate: float | None = None
    payroll_coverage: float | None = None
    average_revenue_per_hour: float | None = None
    average_cost_per_hour: float | None = None
    margin_per_hour: float | None = None
    workers_with_pay_rate: int
    workers_missing_pay_rate: int


class ProjectSchema(BaseModel):
    id: int
    name: str
    client_name: str | None = None
    billing_rate: float | None = None
    default_hours: float | None = None
    archived: bool


class TimesheetResponse(BaseModel):
    project: ProjectSchema
    month: str
    label: str
    days: list[DaySchema]
    roster: list[RosterSlotSchema]
    entries: list[EntrySchema]
    summary: ValuationSummary


class RollupSchema(BaseModel):
    label: str
    amount: float
    hours: float


class ProjectRollupSchema(RollupSchema):
    id: int
    client: str | None = None
    payroll: float
    margin: float


class WorkerRollupSchema(RollupSchema):
    id: int
    status: str


class TrendPointSchema(BaseModel):
    label: str
    invoice: float
    payroll: float


class HoursPointSchema(BaseModel):
    label: str
    hours: float


class AlertSchema(BaseModel):
    type: str
    title: str
    description: str
    href: str | None = None


class DashboardTotals(BaseModel):
    amount_to_invoice: float
    amount_to_pay: float
    billable_hours: float
    estimated_margin: float


class DashboardResponse(BaseModel):
    mode: str
    value: str
    label: str
    start: datetime.date
    end: datetime.date
    totals: DashboardTotals
    active_projects: int
    active_workers: int
    top_clients: list[RollupSchema]
    top_projects: list[ProjectRollupSchema]
    top_workers: list[WorkerRollupSchema]
    trend: list[TrendPointSchema]
    weekly_hours: list[HoursPointSchema]
    project_distribution: list[HoursPointSchema]
    worker_activity: list[WorkerRollupSchema]
    alerts: list[AlertSchema]
