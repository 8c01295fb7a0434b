from __future__ import annotations

from datetime import date, datetime, time
from typing import Optional
from zoneinfo import ZoneInfo

from ..core.exceptions import ValidationError


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid date (YYYY-MM-DD): {value!r}")


def parse_hhmm(value: str) -> time:
    """Parse an HH:MM string into a time."""
    try:
        return datetime.strptime((value or "").strip(), "%H:%M").time()
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid time (HH:MM): {value!r}")


def format_hhmm(value: time | datetime) -> str:
    return value.strftime("%H:%M")


def parse_iso_datetime(value: str, tz_name: Optional[str] = None) -> datetime:
    """Parse an ISO 8601 timestamp into naive tenant-local time.

    A value carrying a UTC offset is converted to ``tz_name`` (server local
    time when unset) before the offset is dropped.
    """
    try:
        parsed = datetime.fromisoformat(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid timestamp (ISO 8601): {value!r}")
    return to_local_naive(parsed, tz_name)


def to_local_naive(value: datetime, tz_name: Optional[str] = None) -> datetime:
    if value.tzinfo is None:
        return value
    local = value.astimezone(ZoneInfo(tz_name)) if tz_name else value.astimezone()
    return local.replace(tzinfo=None)


def at_time_of_day(day: date, hhmm: str) -> datetime:
    """Combine a calendar date with an HH:MM wall-clock time."""
    return datetime.combine(day, parse_hhmm(hhmm))


def month_bounds(day: date) -> tuple[date, date]:
    """First and last calendar day of the month containing ``day``."""
    start = day.replace(day=1)
    if start.month == 12:
        next_month = start.replace(year=start.year + 1, month=1)
    else:
        next_month = start.replace(month=start.month + 1)
    return start, date.fromordinal(next_month.toordinal() - 1)


def now_local(tz_name: Optional[str] = None) -> datetime:
    """Current wall-clock time in the tenant's timezone (naive).

    Note: Wrapped so tests can patch/mocked easier.
    """
    if not tz_name:
        return datetime.now()
    return to_local_naive(datetime.now(ZoneInfo(tz_name)), tz_name)
