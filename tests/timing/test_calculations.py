from __future__ import annotations

from datetime import datetime

import pytest

from src.attendance_engine.attendance_engine.attendance.model import BreakRecord
from src.attendance_engine.attendance_engine.common.datetime_utils import month_bounds, parse_hhmm
from src.attendance_engine.attendance_engine.core.enums import BreakType
from src.attendance_engine.attendance_engine.core.exceptions import ValidationError
from src.attendance_engine.attendance_engine.schedules.model import ScheduleWindow, WorkSchedulePolicy
from src.attendance_engine.attendance_engine.timing.calculations import (
    aggregate_breaks,
    break_duration_minutes,
    compute_duration_hours,
    compute_early_leave,
    compute_lateness,
    resolve_scheduled_window,
)

DEFAULT = ScheduleWindow("09:00", "18:00")


def test_clock_in_before_start_is_not_late():
    result = compute_lateness(datetime(2024, 1, 15, 8, 55), "09:00")

    assert result.is_late is False
    assert result.minutes_late == 0


def test_lateness_is_floored_to_whole_minutes():
    result = compute_lateness(datetime(2024, 1, 15, 9, 20, 59), "09:00")

    assert result.is_late is True
    assert result.minutes_late == 20


def test_less_than_a_minute_late_is_on_time():
    result = compute_lateness(datetime(2024, 1, 15, 9, 0, 30), "09:00")

    assert result.minutes_late == 0
    assert result.is_late is False


@pytest.mark.parametrize(
    "clock_out, minutes",
    [
        (datetime(2024, 1, 15, 17, 30), 30),
        (datetime(2024, 1, 15, 18, 0), 0),
        (datetime(2024, 1, 15, 19, 15), 0),
    ],
)
def test_early_leave_minutes(clock_out, minutes):
    result = compute_early_leave(clock_out, "18:00")

    assert result.minutes_early == minutes
    assert result.is_early_leave == (minutes > 0)


def test_window_falls_back_to_default_for_unscheduled_day():
    schedule = WorkSchedulePolicy("p1", "Weekdays", {"monday": ScheduleWindow("08:00", "17:00")})

    assert resolve_scheduled_window(schedule, 0, DEFAULT) == ScheduleWindow("08:00", "17:00")
    assert resolve_scheduled_window(schedule, "Saturday", DEFAULT) == DEFAULT
    assert resolve_scheduled_window(None, 2, DEFAULT) == DEFAULT


def test_duration_subtracts_unpaid_breaks_and_rounds():
    hours = compute_duration_hours(datetime(2024, 1, 15, 9, 0), datetime(2024, 1, 15, 18, 5), 60)

    assert hours == pytest.approx(8.08)


def test_duration_is_never_negative():
    assert compute_duration_hours(datetime(2024, 1, 15, 9, 0), datetime(2024, 1, 15, 9, 30), 60) == 0.0


def test_aggregate_breaks_reports_open_breaks_without_counting_them():
    breaks = [
        BreakRecord("b1", BreakType.LUNCH, datetime(2024, 1, 15, 12), datetime(2024, 1, 15, 13), 60),
        BreakRecord("b2", BreakType.REST, datetime(2024, 1, 15, 15), datetime(2024, 1, 15, 15, 15), 15, is_paid=True),
        BreakRecord("b3", BreakType.REST, datetime(2024, 1, 15, 16)),
    ]

    summary = aggregate_breaks(breaks)

    assert summary.total_minutes == 75
    assert summary.unpaid_minutes == 60
    assert summary.open_break_ids == ("b3",)
    assert summary.has_open_breaks


def test_break_duration_is_floored():
    assert break_duration_minutes(datetime(2024, 1, 15, 12, 0), datetime(2024, 1, 15, 12, 29, 59)) == 29


def test_parse_hhmm_rejects_garbage():
    with pytest.raises(ValidationError):
        parse_hhmm("9am")


def test_month_bounds_handles_december():
    first, last = month_bounds(datetime(2024, 12, 9).date())

    assert (first.day, last.day, last.month) == (1, 31, 12)
