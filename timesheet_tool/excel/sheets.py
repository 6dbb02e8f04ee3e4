"""Layer 4 — Export rows.

Builds the payroll, detail and global sheets as plain rows of cells
(str | float | int). Rows follow roster order (last name, then first name).
Styling and file output live in ``generator.py``.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Union

from timesheet_tool.engine.aggregator import Aggregation
from timesheet_tool.engine.valuation import Valuation, calculate_timesheet
from timesheet_tool.formatting import (
    ABSENT_MARKER,
    EM_DASH,
    format_duration,
    hours_to_hhmm,
    money,
    sum_hhmm,
)
from timesheet_tool.models import EntryStatus, Project, Worker
from timesheet_tool.periods import Period
from timesheet_tool.store import TimesheetData

Cell = Union[str, float, int, None]
Row = list[Cell]

TOTAL_LABEL = "TOTAL"


class ExportKind(Enum):
    PAYROLL = "payroll"
    DETAIL = "detail"
    GLOBAL = "global"


@dataclass
class SheetData:
    name: str
    rows: list[Row]


@dataclass
class ExportDataset:
    """Aggregated and valued timesheet of one project for one month."""
    project: Project
    period: Period
    valuation: Valuation

    @property
    def aggregation(self) -> Aggregation:
        return self.valuation.aggregation

    @property
    def workers(self) -> list[Worker]:
        return self.aggregation.workers


def build_export_dataset(data: TimesheetData) -> ExportDataset:
    return ExportDataset(
        project=data.project,
        period=data.period,
        valuation=calculate_timesheet(data),
    )


def export_filename(project_id: int, month: str, kind: ExportKind) -> str:
    return f"timesheet-{project_id}-{month}-{kind.value}.xlsx"


def build_payroll_sheet(dataset: ExportDataset) -> SheetData:
    rows: list[Row] = [["Ouvrier", "Heures", "Taux €/h", "Charges %", "Coût total €"]]
    hour_totals: list[str] = []
    cost_total = Decimal("0")

    for cost in dataset.valuation.worker_costs:
        worker = cost.worker
        hours_label = format_duration(cost.hours)
        charges = worker.charges_pct or Decimal("0")
        rounded_cost = money(cost.total_cost)
        rows.append([
            worker.export_name,
            hours_label,
            float(money(worker.pay_rate)) if worker.has_pay_rate else EM_DASH,
            f"{money(charges)}%",
            float(rounded_cost),
        ])
        hour_totals.append(hours_label)
        cost_total += rounded_cost

    rows.append([TOTAL_LABEL, sum_hhmm(hour_totals), EM_DASH, "", float(cost_total)])
    return SheetData(name="Paie", rows=rows)


def build_detail_sheet(dataset: ExportDataset) -> SheetData:
    aggregation = dataset.aggregation
    days = aggregation.days
    headers: Row = ["Ouvrier", *(day.label for day in days), "Total"]
    rows: list[Row] = [headers]

    for worker in dataset.workers:
        row: Row = [worker.export_name]
        daily_values: list[str] = []
        for day in days:
            entry = aggregation.entry_for(worker.id, day.key)
            if entry is None:
                row.append("")
            elif entry.status == EntryStatus.ABSENT:
                row.append(ABSENT_MARKER)
            else:
                label = hours_to_hhmm(entry.hours)
                row.append(label)
                if label:
                    daily_values.append(label)
        row.append(sum_hhmm(daily_values))
        rows.append(row)

    body = rows[1:]
    total_row: Row = [TOTAL_LABEL]
    for index in range(1, len(headers)):
        total_row.append(sum_hhmm(str(r[index]) for r in body))
    rows.append(total_row)

    return SheetData(name="Détail", rows=rows)


def build_global_sheet(dataset: ExportDataset) -> SheetData:
    aggregation = dataset.aggregation
    rows: list[Row] = [["Ouvrier", "Total heures", "Jours prestés"]]
    hour_totals: list[str] = []
    day_total = 0

    for worker in dataset.workers:
        hours_label = format_duration(aggregation.worker_hour_total(worker.id))
        days_worked = aggregation.worker_worked_day_count(worker.id)
        rows.append([worker.export_name, hours_label, days_worked])
        hour_totals.append(hours_label)
        day_total += days_worked

    rows.append([TOTAL_LABEL, sum_hhmm(hour_totals), day_total])
    return SheetData(name="Global", rows=rows)


SHEET_BUILDERS = {
    ExportKind.PAYROLL: build_payroll_sheet,
    ExportKind.DETAIL: build_detail_sheet,
    ExportKind.GLOBAL: build_global_sheet,
}


def build_sheet(dataset: ExportDataset, kind: ExportKind) -> SheetData:
    return SHEET_BUILDERS[kind](dataset)
