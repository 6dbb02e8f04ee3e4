"""Calendar periods: months (``YYYY-MM``) and quarters (``YYYY-Qn``)."""

from __future__ import annotations

import calendar
import re
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Optional

from timesheet_tool.models import Day, InvalidPeriodError

MONTH = "month"
QUARTER = "quarter"

FRENCH_MONTHS = (
    "janvier", "février", "mars", "avril", "mai", "juin",
    "juillet", "août", "septembre", "octobre", "novembre", "décembre",
)
FRENCH_MONTHS_SHORT = (
    "janv.", "févr.", "mars", "avr.", "mai", "juin",
    "juil.", "août", "sept.", "oct.", "nov.", "déc.",
)

_MONTH_RE = re.compile(r"^(\d{4})-(\d{1,2})$")
_QUARTER_RE = re.compile(r"^(\d{4})-Q([1-4])$", re.IGNORECASE)


@dataclass(frozen=True)
class Period:
    """A bounded time window: one calendar month or one quarter."""
    mode: str
    value: str
    start: date
    end: date

    @property
    def label(self) -> str:
        if self.mode == QUARTER:
            return f"T{quarter_of(self.start)} {self.start.year}"
        return f"{FRENCH_MONTHS[self.start.month - 1]} {self.start.year}"

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end

    def days(self) -> list[Day]:
        return days_between(self.start, self.end)


def quarter_of(day: date) -> int:
    return (day.month - 1) // 3 + 1


def month_key(day: date) -> str:
    return f"{day.year:04d}-{day.month:02d}"


def quarter_key(day: date) -> str:
    return f"{day.year:04d}-Q{quarter_of(day)}"


def parse_month(value: str) -> Period:
    match = _MONTH_RE.match(value.strip())
    if not match:
        raise InvalidPeriodError(f"Invalid month '{value}', expected YYYY-MM")
    year, month = int(match.group(1)), int(match.group(2))
    if not 1 <= month <= 12:
        raise InvalidPeriodError(f"Invalid month '{value}', month out of range")
    last = calendar.monthrange(year, month)[1]
    start = date(year, month, 1)
    return Period(mode=MONTH, value=month_key(start), start=start, end=date(year, month, last))


def parse_quarter(value: str) -> Period:
    match = _QUARTER_RE.match(value.strip())
    if not match:
        raise InvalidPeriodError(f"Invalid quarter '{value}', expected YYYY-Qn")
    year, quarter = int(match.group(1)), int(match.group(2))
    first_month = (quarter - 1) * 3 + 1
    last_month = first_month + 2
    start = date(year, first_month, 1)
    end = date(year, last_month, calendar.monthrange(year, last_month)[1])
    return Period(mode=QUARTER, value=quarter_key(start), start=start, end=end)


def parse_period(mode: str, value: str) -> Period:
    if mode == QUARTER:
        return parse_quarter(value)
    if mode == MONTH:
        return parse_month(value)
    raise InvalidPeriodError(f"Unknown period mode '{mode}'")


def sanitize_period(mode: Optional[str], value: Optional[str], today: Optional[date] = None) -> Period:
    """Normalise a user-supplied period, falling back to the current month."""
    if mode in (MONTH, QUARTER) and value:
        try:
            return parse_period(mode, value)
        except InvalidPeriodError:
            pass
    today = today or date.today()
    return parse_month(month_key(today))


def days_between(start: date, end: date) -> list[Day]:
    days = []
    current = start
    while current <= end:
        days.append(Day(
            date=current,
            key=current.isoformat(),
            label=f"{current.day:02d}",
            is_weekend=current.weekday() >= 5,
        ))
        current += timedelta(days=1)
    return days


def month_days(month: str) -> list[Day]:
    return parse_month(month).days()


def week_start(day: date) -> date:
    """Monday of the week containing ``day``."""
    return day - timedelta(days=day.weekday())


def week_label(day: date) -> str:
    return f"Sem {week_start(day).isocalendar()[1]}"


def trend_label(day: date, mode: str) -> str:
    short = FRENCH_MONTHS_SHORT[day.month - 1]
    if mode == QUARTER:
        return short
    return f"{day.day:02d} {short}"
