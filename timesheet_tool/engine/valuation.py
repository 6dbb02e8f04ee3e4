"""Layer 3 — Valuation Engine.

Applies billing and payroll rules to aggregated hours. All monetary
calculations are done with Decimal precision; rounding happens only when a
figure is displayed or written to a workbook.

Payroll rules per worker:
- base cost = hours x pay rate x (1 + charges% / 100), only when pay rate > 0
- HOUR additional costs = amount x hours
- DAY additional costs = amount x worked days (days with WORKED and hours > 0)
- additional costs apply whether or not the worker has a pay rate
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from timesheet_tool.engine.aggregator import ZERO, Aggregation, aggregate
from timesheet_tool.models import CostUnit, Worker
from timesheet_tool.store import TimesheetData

HUNDRED = Decimal("100")


def safe_div(numerator: Optional[Decimal], denominator: Optional[Decimal]) -> Optional[Decimal]:
    """Divide, or return None when either side is missing or the denominator is not positive."""
    if numerator is None or denominator is None or denominator <= 0:
        return None
    return numerator / denominator


@dataclass
class WorkerCost:
    """Payroll cost breakdown for one worker over one scope."""
    worker: Worker
    hours: Decimal
    worked_days: int
    base_cost: Decimal
    hourly_extras: Decimal
    daily_extras: Decimal

    @property
    def extra_cost(self) -> Decimal:
        return self.hourly_extras + self.daily_extras

    @property
    def total_cost(self) -> Decimal:
        return self.base_cost + self.extra_cost

    @property
    def has_pay_rate(self) -> bool:
        return self.worker.has_pay_rate


def base_cost(worker: Worker, hours: Decimal) -> Decimal:
    if not worker.has_pay_rate:
        return ZERO
    charges = worker.charges_pct or ZERO
    return hours * worker.pay_rate * (1 + charges / HUNDRED)


def worker_payroll_cost(worker: Worker, hours: Decimal, worked_days: int) -> WorkerCost:
    hourly = sum(
        (c.amount * hours for c in worker.additional_costs if c.unit == CostUnit.HOUR),
        ZERO,
    )
    daily = sum(
        (c.amount * worked_days for c in worker.additional_costs if c.unit == CostUnit.DAY),
        ZERO,
    )
    return WorkerCost(
        worker=worker,
        hours=hours,
        worked_days=worked_days,
        base_cost=base_cost(worker, hours),
        hourly_extras=hourly,
        daily_extras=daily,
    )


def invoice_amount(hours: Decimal, billing_rate: Optional[Decimal]) -> Optional[Decimal]:
    if billing_rate is None:
        return None
    return hours * billing_rate


@dataclass
class Valuation:
    """Invoice, payroll and margin figures for one aggregated scope."""
    aggregation: Aggregation
    billing_rate: Optional[Decimal]
    worker_costs: list[WorkerCost]

    @property
    def total_hours(self) -> Decimal:
        return self.aggregation.period_total_hours

    @property
    def invoice_estimate(self) -> Optional[Decimal]:
        return invoice_amount(self.total_hours, self.billing_rate)

    @property
    def payroll_total(self) -> Decimal:
        return sum((c.total_cost for c in self.worker_costs), ZERO)

    @property
    def payroll_estimate(self) -> Optional[Decimal]:
        total = self.payroll_total
        return total if total > 0 else None

    @property
    def margin_estimate(self) -> Optional[Decimal]:
        invoice, payroll = self.invoice_estimate, self.payroll_estimate
        if invoice is None or payroll is None:
            return None
        return invoice - payroll

    @property
    def payroll_coverage(self) -> Optional[Decimal]:
        return safe_div(self.invoice_estimate, self.payroll_estimate)

    @property
    def average_revenue_per_hour(self) -> Optional[Decimal]:
        return safe_div(self.invoice_estimate, self.total_hours)

    @property
    def average_cost_per_hour(self) -> Optional[Decimal]:
        return safe_div(self.payroll_estimate, self.total_hours)

    @property
    def margin_per_hour(self) -> Optional[Decimal]:
        revenue, cost = self.average_revenue_per_hour, self.average_cost_per_hour
        if revenue is None or cost is None:
            return None
        return revenue - cost

    @property
    def workers_with_pay_rate(self) -> int:
        return sum(1 for c in self.worker_costs if c.has_pay_rate)

    @property
    def workers_missing_pay_rate(self) -> int:
        return max(len(self.worker_costs) - self.workers_with_pay_rate, 0)

    def cost_for(self, worker_id: int) -> Optional[WorkerCost]:
        return next((c for c in self.worker_costs if c.worker.id == worker_id), None)


def value_aggregation(aggregation: Aggregation, billing_rate: Optional[Decimal]) -> Valuation:
    costs = [
        worker_payroll_cost(
            worker,
            aggregation.worker_hour_total(worker.id),
            aggregation.worker_worked_day_count(worker.id),
        )
        for worker in aggregation.workers
    ]
    return Valuation(aggregation=aggregation, billing_rate=billing_rate, worker_costs=costs)


def calculate_timesheet(data: TimesheetData) -> Valuation:
    """Aggregate and value one project's timesheet over its assigned roster."""
    aggregation = aggregate(data.entries, data.assigned_workers, data.days)
    return value_aggregation(aggregation, data.project.billing_rate)
