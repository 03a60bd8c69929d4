from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from typing import Optional


def utcnow() -> datetime:
    """Server-side 'now' in UTC (naive, canonical)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_calendar_date(value: Optional[str]) -> date:
    """Strict YYYY-MM-DD parser. Raises ValueError on anything else."""
    if value is None:
        raise ValueError("date is required")
    return datetime.strptime(value.strip(), "%Y-%m-%d").date()


def day_bounds(start: date, end: date) -> tuple[datetime, Optional[datetime]]:
    """
    Half-open datetime window covering whole calendar days.

    Returns (start 00:00, day after end 00:00) so the end day is inclusive.
    The upper bound is None when end is the last representable date.
    """
    lower = datetime.combine(start, datetime.min.time())
    if end == date.max:
        return lower, None
    upper = datetime.combine(end, datetime.min.time()) + timedelta(days=1)
    return lower, upper


def to_utc_z(dt: Optional[datetime]) -> Optional[str]:
    """
    Serializes datetime to ISO-8601 with trailing 'Z'.
    If dt is naive, it is treated as UTC.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt_utc = dt.astimezone(timezone.utc).replace(microsecond=0)
    return dt_utc.isoformat().replace("+00:00", "Z")
