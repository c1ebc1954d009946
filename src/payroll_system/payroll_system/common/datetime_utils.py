from __future__ import annotations

import calendar
from datetime import date, datetime, time, timedelta
from typing import Optional
from zoneinfo import ZoneInfo


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def parse_clock_time(value: str) -> time:
    """Parse HH:MM:SS (or HH:MM) string into a wall-clock time."""
    v = value.strip()
    fmt = "%H:%M:%S" if v.count(":") == 2 else "%H:%M"
    return datetime.strptime(v, fmt).time()


def format_clock_time(value: Optional[time]) -> Optional[str]:
    return value.strftime("%H:%M:%S") if value is not None else None


def now_local(tz_name: Optional[str] = None) -> datetime:
    """Current naive wall-clock time in the business timezone.

    Note: Wrapped so tests can patch/mocked easier.
    """
    if tz_name:
        return datetime.now(ZoneInfo(tz_name)).replace(tzinfo=None)
    return datetime.now()


def minutes_between(start: time, end: time) -> float:
    """Signed minutes from start to end on the same day."""
    anchor = date(1970, 1, 1)
    return (datetime.combine(anchor, end) - datetime.combine(anchor, start)).total_seconds() / 60


def days_in_month(value: date) -> int:
    return calendar.monthrange(value.year, value.month)[1]


def is_weekend(value: date) -> bool:
    return value.weekday() >= 5


def count_weekdays(start: date, end: date) -> int:
    """Number of Monday..Friday dates in [start, end]."""
    count = 0
    d = start
    while d <= end:
        if not is_weekend(d):
            count += 1
        d += timedelta(days=1)
    return count
