from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from typing import Optional


def utcnow() -> datetime:
    """Server-side 'now' in UTC, stored naive."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_iso_date(value: Optional[str]) -> Optional[date]:
    """
    Parse a "YYYY-MM-DD" string (or the date part of an ISO datetime).

    - None / "" -> None
    - raises ValueError on anything else that does not parse
    """
    if value is None:
        return None
    s = value.strip()
    if not s:
        return None
    return date.fromisoformat(s[:10])


def start_of_day(day: date) -> datetime:
    return datetime.combine(day, time.min)


def start_of_week(moment: datetime) -> datetime:
    """Monday 00:00 of the week containing `moment`."""
    monday = moment.date() - timedelta(days=moment.weekday())
    return start_of_day(monday)


def start_of_month(moment: datetime) -> datetime:
    return start_of_day(moment.date().replace(day=1))


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
