from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from typing import Optional


DEFAULT_REPORT_WINDOW_DAYS = 30


def utcnow() -> datetime:
    """Server-side 'now' in UTC (naive, canonical)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_day(value: Optional[str]) -> Optional[date]:
    """Parse a 'YYYY-MM-DD' query value; None / "" -> None. Raises ValueError on bad input."""
    if value is None:
        return None
    s = value.strip()
    if not s:
        return None
    return datetime.strptime(s, "%Y-%m-%d").date()


def day_range(
    start: Optional[str],
    end: Optional[str],
    *,
    default_days: int = DEFAULT_REPORT_WINDOW_DAYS,
) -> tuple[datetime, datetime]:
    """
    Resolve an inclusive [start, end] reporting window from day strings.

    Missing start defaults to `default_days` before now; missing end defaults
    to now. An explicit end day covers that whole day (23:59:59.999999).
    """
    now = utcnow()
    start_day = parse_day(start)
    end_day = parse_day(end)

    start_dt = datetime.combine(start_day, time.min) if start_day else now - timedelta(days=default_days)
    end_dt = datetime.combine(end_day, time.max) if end_day else now
    return start_dt, end_dt


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
