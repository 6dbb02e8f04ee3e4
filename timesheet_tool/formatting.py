"""HH:MM duration handling and display formatting.

Hours are stored as Decimal multiples of 0.25. Every user-entered value goes
through ``parse_hhmm`` which snaps to the nearest 15 minutes; display goes
through ``hours_to_hhmm`` which rounds to the nearest minute.
"""

from __future__ import annotations

import re
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional, Union

from timesheet_tool.models import InvalidTimeInput

ABSENT_MARKER = "ABS"
EM_DASH = "—"
QUARTER_HOUR = Decimal("0.25")
CENT = Decimal("0.01")
THOUSANDS_SEP = "\u202f"  # narrow no-break space, as in fr-FR amounts

_HHMM_RE = re.compile(r"^\s*(\d+)\s*:\s*(\d{1,2})\s*$")

Number = Union[Decimal, int, float]


def _to_decimal(value: Number) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def _split_hhmm(value: str) -> Optional[int]:
    """Return total minutes of an ``H:MM`` string, or None if malformed."""
    match = _HHMM_RE.match(value)
    if not match:
        return None
    hours, minutes = int(match.group(1)), int(match.group(2))
    if minutes >= 60:
        return None
    return hours * 60 + minutes


def parse_hhmm(value: Optional[str]) -> Optional[Decimal]:
    """Parse ``HH:MM`` into decimal hours snapped to the nearest quarter hour.

    Returns None for empty or unparsable input.
    """
    if value is None or not value.strip():
        return None
    total_minutes = _split_hhmm(value)
    if total_minutes is None:
        return None
    quarters = (Decimal(total_minutes) / 15).quantize(Decimal("1"), ROUND_HALF_UP)
    return (quarters * 15) / 60


def require_hhmm(value: Optional[str]) -> Decimal:
    """Like ``parse_hhmm`` but raises ``InvalidTimeInput``; blank means zero."""
    if value is None or not value.strip():
        return Decimal("0")
    parsed = parse_hhmm(value)
    if parsed is None:
        raise InvalidTimeInput(f"Format HH:MM requis, got {value!r}")
    return parsed


def quantize_hours(hours: Number) -> Decimal:
    """Snap a decimal hour value to the 0.25 grid."""
    quarters = (_to_decimal(hours) / QUARTER_HOUR).quantize(Decimal("1"), ROUND_HALF_UP)
    return quarters * QUARTER_HOUR


def format_minutes(total_minutes: int) -> str:
    hh, mm = divmod(total_minutes, 60)
    return f"{hh:02d}:{mm:02d}"


def hours_to_hhmm(hours: Optional[Number]) -> str:
    """Format decimal hours as ``HH:MM``; empty string when there is nothing to show."""
    if hours is None:
        return ""
    value = _to_decimal(hours)
    if value <= 0:
        return ""
    total_minutes = int((value * 60).quantize(Decimal("1"), ROUND_HALF_UP))
    return format_minutes(total_minutes)


def format_duration(hours: Number) -> str:
    """Like ``hours_to_hhmm`` but always renders a value (``00:00`` for zero)."""
    return hours_to_hhmm(hours) or "00:00"


def sum_hhmm(values: Iterable[Optional[str]]) -> str:
    """Sum ``HH:MM`` strings; blanks, None and ``ABS`` contribute zero."""
    total = 0
    for value in values:
        if value is None:
            continue
        text = str(value).strip()
        if not text or text.upper() == ABSENT_MARKER:
            continue
        minutes = _split_hhmm(text)
        if minutes is None:
            continue
        total += minutes
    return format_minutes(total)


def money(value: Number) -> Decimal:
    """Round a monetary amount to cents."""
    return _to_decimal(value).quantize(CENT, ROUND_HALF_UP)


def format_currency(value: Optional[Number]) -> str:
    """Render euros with two decimals, or an em-dash when there is no value."""
    if value is None:
        return EM_DASH
    amount = money(value)
    sign = "-" if amount < 0 else ""
    whole, cents = f"{abs(amount):.2f}".split(".")
    grouped = f"{int(whole):,}".replace(",", THOUSANDS_SEP)
    return f"{sign}{grouped},{cents} €"


def format_coverage(ratio: Optional[Number]) -> str:
    """Render a coverage ratio as a whole percentage capped at 999 %."""
    if ratio is None:
        return EM_DASH
    pct = min(_to_decimal(ratio) * 100, Decimal("999"))
    return f"{int(pct.quantize(Decimal('1'), ROUND_HALF_UP))}%"
