"""Pending-edit saver for timesheet cells.

Edits are saved immediately. When a save fails the edit stays pending, the
error is recorded, and one retry is scheduled after
``save_retry_delay_seconds``. If that retry fails too the edit is still kept
so a later ``flush()`` (page hide / unload) can make a last attempt.
"""

from __future__ import annotations

import logging
import threading
from datetime import date
from typing import Callable, Optional

from timesheet_tool.config import get_settings
from timesheet_tool.entries import EntryUpdate, update_from_input
from timesheet_tool.models import TimeEntry

logger = logging.getLogger(__name__)

CellKey = tuple[int, int, date]
SaveFn = Callable[[EntryUpdate], TimeEntry]


class EntrySaver:
    """Saves cell updates through ``save`` with a single delayed retry."""

    def __init__(
        self,
        save: SaveFn,
        retry_delay: Optional[float] = None,
        timer_factory: Callable[..., threading.Timer] = threading.Timer,
    ) -> None:
        self._save = save
        self._retry_delay = (
            retry_delay if retry_delay is not None else get_settings().save_retry_delay_seconds
        )
        self._timer_factory = timer_factory
        self._timer: Optional[threading.Timer] = None
        self._pending: dict[CellKey, EntryUpdate] = {}
        self._lock = threading.RLock()
        self.errors: dict[CellKey, str] = {}

    @property
    def pending(self) -> dict[CellKey, EntryUpdate]:
        with self._lock:
            return dict(self._pending)

    @property
    def retry_scheduled(self) -> bool:
        return self._timer is not None

    def edit(
        self,
        project_id: int,
        worker_id: int,
        day: date,
        text: Optional[str],
        current: Optional[TimeEntry] = None,
    ) -> Optional[TimeEntry]:
        """Parse cell text and save it. Invalid input raises before anything is queued."""
        update = update_from_input(project_id, worker_id, day, text, current)
        return self.submit(update)

    def submit(self, update: EntryUpdate) -> Optional[TimeEntry]:
        key = (update.project_id, update.worker_id, update.date)
        with self._lock:
            self._pending[key] = update
        return self._attempt(key, schedule_retry=True)

    def flush(self) -> None:
        """Cancel the scheduled retry and try every pending edit now."""
        self._cancel_timer()
        for key in list(self.pending):
            self._attempt(key, schedule_retry=False)

    def _attempt(self, key: CellKey, schedule_retry: bool) -> Optional[TimeEntry]:
        with self._lock:
            update = self._pending.get(key)
        if update is None:
            return None
        try:
            entry = self._save(update)
        except Exception as exc:
            logger.warning("Saving entry %s failed: %s", key, exc)
            with self._lock:
                self.errors[key] = str(exc) or exc.__class__.__name__
            if schedule_retry:
                self._schedule_retry()
            return None

        with self._lock:
            # a newer edit for the same cell may have arrived meanwhile
            if self._pending.get(key) is update:
                del self._pending[key]
            self.errors.pop(key, None)
        return entry

    def _schedule_retry(self) -> None:
        with self._lock:
            if self._timer is not None:
                return
            self._timer = self._timer_factory(self._retry_delay, self._retry)
            self._timer.daemon = True
            self._timer.start()
        logger.info("Scheduled entry save retry in %ss", self._retry_delay)

    def _retry(self) -> None:
        with self._lock:
            self._timer = None
        for key in list(self.pending):
            self._attempt(key, schedule_retry=False)

    def _cancel_timer(self) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
