"""Strict validation of an imported dataset.

Validates entries as written in the dataset, before they are normalised and
aggregated. Any failure stops processing with a ``DatasetValidationError``
listing every problem found.
"""

from __future__ import annotations

from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Any, Optional

from timesheet_tool.models import (
    DatasetValidationError,
    EntryStatus,
    TimeEntry,
)
from timesheet_tool.periods import Period
from timesheet_tool.store import TimesheetStore, parse_entries

MAX_DAILY_HOURS = Decimal("24")


def validate_dataset(
    data: dict[str, Any],
    store: TimesheetStore,
    period: Optional[Period] = None,
) -> list[TimeEntry]:
    """Validate the raw ``entries`` of a decoded dataset.

    With a period, only entries dated inside it are checked.
    """
    entries = parse_entries(data.get("entries"))
    if period is not None:
        entries = [e for e in entries if period.contains(e.date)]
    return validate_entries(entries, store, period)


def validate_entries(
    entries: list[TimeEntry],
    store: TimesheetStore,
    period: Optional[Period] = None,
) -> list[TimeEntry]:
    """Validate entries against the store's projects/workers and the period.

    Returns the entries unchanged if all checks pass.
    """
    errors: list[str] = []

    # --- Per-entry validation ---
    for entry in entries:
        where = f"worker {entry.worker_id} on {entry.date} (project {entry.project_id})"
        if store.get_project(entry.project_id) is None:
            errors.append(f"{where}: unknown project")
        if store.get_worker(entry.worker_id) is None:
            errors.append(f"{where}: unknown worker")
        if period is not None and not period.contains(entry.date):
            errors.append(f"{where}: outside period {period.value}")
        if not entry.hours.is_finite():
            errors.append(f"{where}: hours is not finite")
            continue
        if entry.hours < 0:
            errors.append(f"{where}: negative hours={entry.hours}")
        if entry.hours > MAX_DAILY_HOURS:
            errors.append(f"{where}: hours={entry.hours} > 24")
        if entry.hours % Decimal("0.25") != 0:
            errors.append(f"{where}: hours={entry.hours} not on a quarter-hour boundary")
        if entry.status == EntryStatus.ABSENT and entry.hours != 0:
            errors.append(f"{where}: ABSENT entry carries hours={entry.hours}")

    # --- Natural key uniqueness ---
    seen: set[tuple[int, int, date]] = set()
    for entry in entries:
        if entry.key in seen:
            errors.append(
                f"Duplicate entry for worker {entry.worker_id} on {entry.date} (project {entry.project_id})"
            )
        seen.add(entry.key)

    # --- Per-worker-per-date aggregation across projects ---
    daily_totals: dict[tuple[int, date], Decimal] = defaultdict(Decimal)
    for entry in entries:
        if entry.status == EntryStatus.WORKED and entry.hours.is_finite():
            daily_totals[(entry.worker_id, entry.date)] += entry.hours

    for (worker_id, day), total in sorted(daily_totals.items()):
        if total > MAX_DAILY_HOURS:
            errors.append(
                f"Worker {worker_id} on {day}: aggregated daily total={total} > 24 across all projects"
            )

    if errors:
        raise DatasetValidationError(errors)

    return entries
