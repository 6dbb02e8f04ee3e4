"""Layer 6 — Audit output.

Generates a JSON trace of every computed figure of a timesheet export.
Figures stay Decimal in the audit dict; they become JSON numbers on write.
"""

from __future__ import annotations

import json
from decimal import Decimal
from pathlib import Path
from typing import Optional

from timesheet_tool.excel.sheets import ExportDataset
from timesheet_tool.formatting import money


class DecimalEncoder(json.JSONEncoder):
    """JSON encoder that handles Decimal values."""
    def default(self, obj):
        if isinstance(obj, Decimal):
            return float(obj)
        return super().default(obj)


def _money(value: Optional[Decimal]) -> Optional[Decimal]:
    return money(value) if value is not None else None


def generate_audit_dict(dataset: ExportDataset) -> dict:
    """Build audit dictionary from a valued timesheet (no file I/O)."""
    valuation = dataset.valuation
    aggregation = dataset.aggregation

    workers = []
    for cost in valuation.worker_costs:
        worker = cost.worker
        entries = []
        for day in aggregation.days:
            entry = aggregation.entry_for(worker.id, day.key)
            if entry is None:
                continue
            entries.append({
                "date": day.key,
                "status": entry.status.value,
                "hours": entry.hours,
                "note": entry.note,
            })
        workers.append({
            "id": worker.id,
            "name": worker.export_name,
            "status": worker.status.value,
            "pay_rate": worker.pay_rate,
            "charges_pct": worker.charges_pct or Decimal("0"),
            "additional_costs": [
                {"label": c.label, "unit": c.unit.value, "amount": c.amount}
                for c in worker.additional_costs
            ],
            "hours": cost.hours,
            "worked_days": cost.worked_days,
            "costs": {
                "base": money(cost.base_cost),
                "hourly_extras": money(cost.hourly_extras),
                "daily_extras": money(cost.daily_extras),
                "total": money(cost.total_cost),
            },
            "entries": entries,
        })

    return {
        "project": {
            "id": dataset.project.id,
            "name": dataset.project.name,
            "client": dataset.project.client_name,
            "billing_rate": dataset.project.billing_rate,
        },
        "period": {
            "mode": dataset.period.mode,
            "value": dataset.period.value,
            "start": dataset.period.start.isoformat(),
            "end": dataset.period.end.isoformat(),
        },
        "workers": workers,
        "day_totals": dict(aggregation.day_totals),
        "summary": {
            "total_workers": len(aggregation.workers),
            "total_hours": valuation.total_hours,
            "total_worked_days": aggregation.total_worked_days,
            "invoice_estimate": _money(valuation.invoice_estimate),
            "payroll_estimate": _money(valuation.payroll_estimate),
            "margin_estimate": _money(valuation.margin_estimate),
            "payroll_coverage": valuation.payroll_coverage,
            "workers_with_pay_rate": valuation.workers_with_pay_rate,
        },
    }


def generate_audit(dataset: ExportDataset, output_path: str | Path) -> Path:
    """Generate audit JSON file from a valued timesheet."""
    output_path = Path(output_path)
    audit = generate_audit_dict(dataset)
    output_path.write_text(json.dumps(audit, indent=2, cls=DecimalEncoder, ensure_ascii=False), encoding='utf-8')
    return output_path
