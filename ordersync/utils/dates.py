"""
Date helpers.

Order dates travel as ISO ``YYYY-MM-DD`` inside the engine and as
``DD/MM/YYYY`` on the reconciliation wire.
"""

import calendar
import re
from datetime import date, datetime
from typing import Optional, Tuple, Union

DateInput = Union[str, date, datetime, None]

_ISO_RE = re.compile(r"^(\d{4})[-/.](\d{2})[-/.](\d{2})")
_BR_RE = re.compile(r"^(\d{2})[-/.](\d{2})[-/.](\d{4})$")


def parse_date(value: DateInput) -> Optional[date]:
    """
    Parse a date given as ISO or DD/MM/YYYY.

    Timestamps are truncated to their date part. Empty input yields None.

    Raises:
        ValueError: if the value is not a recognizable date
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    text = str(value).strip()
    if not text:
        return None

    match = _ISO_RE.match(text)
    if match:
        year, month, day = match.groups()
        return date(int(year), int(month), int(day))

    match = _BR_RE.match(text)
    if match:
        day, month, year = match.groups()
        return date(int(year), int(month), int(day))

    raise ValueError(f"Unrecognized date: {value!r}")


def to_iso_date(value: DateInput) -> Optional[str]:
    """Normalize a date to ``YYYY-MM-DD``."""
    parsed = parse_date(value)
    return parsed.isoformat() if parsed else None


def to_backend_date(value: DateInput) -> str:
    """Format a date as ``DD/MM/YYYY`` for the reconciliation procedure."""
    parsed = parse_date(value)
    if parsed is None:
        return ""
    return parsed.strftime("%d/%m/%Y")


def current_month_range(today: Optional[date] = None) -> Tuple[str, str]:
    """First and last day of the calendar month containing ``today``."""
    today = today or date.today()
    last_day = calendar.monthrange(today.year, today.month)[1]
    first = today.replace(day=1)
    last = today.replace(day=last_day)
    return first.isoformat(), last.isoformat()
