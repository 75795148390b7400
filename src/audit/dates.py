"""Calendar-date helpers for date-partitioned audit logs."""

import re
from datetime import date, datetime, timedelta, timezone
from typing import Iterator, Optional

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


class InvalidDate(ValueError):
    """Raised when a date string is not a valid ``YYYY-MM-DD`` calendar date."""


def today() -> date:
    """Current UTC calendar date; log files are partitioned by UTC date."""
    return datetime.now(timezone.utc).date()


def parse_date(value: Optional[str]) -> date:
    """Parse ``YYYY-MM-DD``; ``None`` or an empty string means today."""
    if value is None or value == "":
        return today()
    if isinstance(value, date):
        return value

    trimmed = str(value).strip()
    if not _DATE_RE.match(trimmed):
        raise InvalidDate(f"Invalid date format: {value!r} (expected YYYY-MM-DD)")
    try:
        return datetime.strptime(trimmed, "%Y-%m-%d").date()
    except ValueError as exc:
        raise InvalidDate(f"Invalid calendar date: {value!r}") from exc


def date_range(start: date, end: date) -> Iterator[date]:
    """Yield each date from ``start`` to ``end`` inclusive; nothing if end < start."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


__all__ = ["InvalidDate", "today", "parse_date", "date_range"]
