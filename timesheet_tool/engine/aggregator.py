"""Layer 2 — Aggregation Engine.

Folds raw time entries into per-worker, per-day and period totals. All hour
arithmetic is done with Decimal; nothing is rounded here.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable, Optional

from timesheet_tool.models import (
    Day,
    EntryStatus,
    TimeEntry,
    Worker,
)

ZERO = Decimal("0")


@dataclass
class Aggregation:
    """Totals for a fixed roster over a fixed list of days."""
    workers: list[Worker]
    days: list[Day]
    worker_hours: dict[int, Decimal] = field(default_factory=dict)
    worker_days: dict[int, int] = field(default_factory=dict)
    day_totals: dict[str, Decimal] = field(default_factory=dict)
    entry_map: dict[tuple[int, str], TimeEntry] = field(default_factory=dict)

    def worker_hour_total(self, worker_id: int) -> Decimal:
        return self.worker_hours.get(worker_id, ZERO)

    def worker_worked_day_count(self, worker_id: int) -> int:
        return self.worker_days.get(worker_id, 0)

    def day_total(self, day_key: str) -> Decimal:
        return self.day_totals.get(day_key, ZERO)

    def entry_for(self, worker_id: int, day_key: str) -> Optional[TimeEntry]:
        return self.entry_map.get((worker_id, day_key))

    @property
    def period_total_hours(self) -> Decimal:
        return sum((self.worker_hour_total(w.id) for w in self.workers), ZERO)

    @property
    def total_worked_days(self) -> int:
        return sum(self.worker_worked_day_count(w.id) for w in self.workers)

    @property
    def average_hours_per_worker(self) -> Optional[Decimal]:
        if not self.workers:
            return None
        return self.period_total_hours / len(self.workers)


def aggregate(
    entries: Iterable[TimeEntry],
    workers: list[Worker],
    days: list[Day],
) -> Aggregation:
    """Aggregate entries for the given roster and day list.

    Entries of workers outside the roster, or dated outside the day list, are
    ignored. Every roster worker and every day start at zero.
    """
    worker_ids = {w.id for w in workers}
    day_keys = {d.key for d in days}

    worker_hours: dict[int, Decimal] = {w.id: ZERO for w in workers}
    day_totals: dict[str, Decimal] = {d.key: ZERO for d in days}
    worked_days: dict[int, set[str]] = defaultdict(set)
    entry_map: dict[tuple[int, str], TimeEntry] = {}

    for entry in entries:
        if entry.worker_id not in worker_ids:
            continue
        day_key = entry.date.isoformat()
        if day_key not in day_keys:
            continue

        entry_map[(entry.worker_id, day_key)] = entry

        if entry.status != EntryStatus.WORKED or entry.hours <= 0:
            continue
        day_totals[day_key] += entry.hours
        worker_hours[entry.worker_id] += entry.hours
        worked_days[entry.worker_id].add(day_key)

    return Aggregation(
        workers=workers,
        days=days,
        worker_hours=worker_hours,
        worker_days={w.id: len(worked_days[w.id]) for w in workers},
        day_totals=day_totals,
        entry_map=entry_map,
    )
