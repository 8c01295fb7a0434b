"""Time-window arithmetic for attendance records.

Scheduled boundaries are wall-clock HH:MM values; they are anchored on the
calendar date of the actual clock event before any subtraction.
"""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional, Union

from ..common.datetime_utils import at_time_of_day
from ..core.constants import WEEKDAY_NAMES
from ..schedules.model import ScheduleWindow, WorkSchedulePolicy
from .model import BreakSummary, EarlyLeaveResult, LatenessResult


def _floor_minutes(delta_seconds: float) -> int:
    return int(delta_seconds // 60)


def resolve_scheduled_window(
    snapshot: Optional[WorkSchedulePolicy],
    weekday: Union[int, str],
    default_window: ScheduleWindow,
) -> ScheduleWindow:
    """Window for ``weekday`` (0=Monday or a weekday name), else the default."""
    name = WEEKDAY_NAMES[weekday] if isinstance(weekday, int) else weekday.strip().lower()
    if snapshot is None:
        return default_window
    window = snapshot.day_windows.get(name)
    if window is None or not window.start or not window.end:
        return default_window
    return window


def compute_lateness(clock_in_time: datetime, scheduled_start: str) -> LatenessResult:
    reference = at_time_of_day(clock_in_time.date(), scheduled_start)
    minutes = _floor_minutes((clock_in_time - reference).total_seconds())
    minutes_late = max(0, minutes)
    return LatenessResult(is_late=minutes_late > 0, minutes_late=minutes_late)


def compute_early_leave(clock_out_time: datetime, scheduled_end: str) -> EarlyLeaveResult:
    reference = at_time_of_day(clock_out_time.date(), scheduled_end)
    minutes = _floor_minutes((reference - clock_out_time).total_seconds())
    minutes_early = max(0, minutes)
    return EarlyLeaveResult(is_early_leave=minutes_early > 0, minutes_early=minutes_early)


def break_duration_minutes(start: datetime, end: datetime) -> int:
    return max(0, _floor_minutes((end - start).total_seconds()))


def aggregate_breaks(breaks: Iterable) -> BreakSummary:
    """Sum closed breaks; open ones are reported instead of counted."""
    total = 0
    unpaid = 0
    open_ids: list[str] = []

    for b in breaks:
        if b.end_time is None or b.duration_minutes is None:
            open_ids.append(b.break_id)
            continue
        total += b.duration_minutes
        if not b.is_paid:
            unpaid += b.duration_minutes

    return BreakSummary(total_minutes=total, unpaid_minutes=unpaid, open_break_ids=tuple(open_ids))


def compute_duration_hours(clock_in: datetime, clock_out: datetime, unpaid_break_minutes: int = 0) -> float:
    gross_minutes = (clock_out - clock_in).total_seconds() / 60
    hours = (gross_minutes - unpaid_break_minutes) / 60
    return max(0.0, round(hours, 2))


def gross_hours(clock_in: datetime, clock_out: datetime) -> float:
    return (clock_out - clock_in).total_seconds() / 3600
