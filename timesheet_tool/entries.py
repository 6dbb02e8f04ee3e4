"""Time entry normalisation and cell state transitions.

Business rules:
- A status of ABSENT, or hours <= 0, is stored as ABSENT with hours = 0.
- Explicit ABSENT rows are always kept (never deleted) so notes and start/end
  times survive.
- Worked hours are snapped to the quarter-hour grid on every write.
- Editing a cell's time moves it to WORKED when the parsed value is > 0,
  otherwise to ABSENT.
- The worked/absent toggle flips between ABSENT (0h) and WORKED with the
  project's default hours, or the configured fallback (7.5h).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional

from timesheet_tool.formatting import quantize_hours, require_hhmm
from timesheet_tool.models import EntryStatus, Project, TimeEntry

FALLBACK_DAY_HOURS = Decimal("7.5")


@dataclass(frozen=True)
class EntryUpdate:
    """A pending write for one (project, worker, date) cell."""
    project_id: int
    worker_id: int
    date: date
    status: EntryStatus
    hours: Decimal = Decimal("0")
    note: Optional[str] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None


def normalize(status: EntryStatus, hours: Optional[Decimal]) -> tuple[EntryStatus, Decimal]:
    """Return the (status, hours) pair that is actually stored."""
    value = quantize_hours(hours) if hours is not None else Decimal("0")
    if status == EntryStatus.ABSENT or value <= 0:
        return EntryStatus.ABSENT, Decimal("0")
    return EntryStatus.WORKED, value


def build_entry(update: EntryUpdate) -> TimeEntry:
    status, hours = normalize(update.status, update.hours)
    return TimeEntry(
        project_id=update.project_id,
        worker_id=update.worker_id,
        date=update.date,
        hours=hours,
        status=status,
        start_time=update.start_time,
        end_time=update.end_time,
        note=update.note,
    )


def _carried(current: Optional[TimeEntry]) -> dict[str, Optional[str]]:
    """Note and start/end times of the stored cell, kept across edits."""
    if current is None:
        return {}
    return {"note": current.note, "start_time": current.start_time, "end_time": current.end_time}


def update_from_input(
    project_id: int,
    worker_id: int,
    day: date,
    text: Optional[str],
    current: Optional[TimeEntry] = None,
) -> EntryUpdate:
    """Turn raw cell text into an update; raises ``InvalidTimeInput`` before any write.

    ``current`` is the stored cell, if any; its note and times are carried over.
    """
    hours = require_hhmm(text)
    status = EntryStatus.WORKED if hours > 0 else EntryStatus.ABSENT
    return EntryUpdate(
        project_id=project_id,
        worker_id=worker_id,
        date=day,
        status=status,
        hours=hours if status == EntryStatus.WORKED else Decimal("0"),
        **_carried(current),
    )


def effective_default_hours(project: Optional[Project], fallback: Decimal = FALLBACK_DAY_HOURS) -> Decimal:
    if project is not None and project.default_hours is not None and project.default_hours > 0:
        return project.default_hours
    return fallback


def toggle_update(
    current: Optional[TimeEntry],
    project: Project,
    worker_id: int,
    day: date,
    fallback: Decimal = FALLBACK_DAY_HOURS,
) -> EntryUpdate:
    """Flip a cell between ABSENT and WORKED with default hours.

    A missing record is treated as ABSENT. Note and times are kept.
    """
    if current is not None and current.is_worked:
        return EntryUpdate(
            project_id=project.id,
            worker_id=worker_id,
            date=day,
            status=EntryStatus.ABSENT,
            **_carried(current),
        )
    return EntryUpdate(
        project_id=project.id,
        worker_id=worker_id,
        date=day,
        status=EntryStatus.WORKED,
        hours=quantize_hours(effective_default_hours(project, fallback)),
        **_carried(current),
    )
