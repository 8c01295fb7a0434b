from __future__ import annotations

from datetime import datetime

from src.attendance_engine.attendance_engine.core.enums import BreakType
from src.attendance_engine.attendance_engine.core.exceptions import ErrorKind
from tests.fakes import build_engine


def at(hour: int, minute: int = 0) -> datetime:
    return datetime(2024, 1, 15, hour, minute)


def _clocked_in_engine():
    engine = build_engine()
    engine.service.clock_in("emp-001", now=at(9, 0))
    return engine


def test_break_needs_active_clock_in():
    engine = build_engine()

    assert engine.breaks.start_break("emp-001", now=at(12)).error.kind == ErrorKind.NO_ACTIVE_CLOCK_IN
    assert engine.breaks.end_break("emp-001", now=at(12)).error.kind == ErrorKind.NO_ACTIVE_CLOCK_IN


def test_only_one_break_open_at_a_time():
    engine = _clocked_in_engine()
    engine.breaks.start_break("emp-001", now=at(10, 0))

    outcome = engine.breaks.start_break("emp-001", now=at(10, 5))

    assert outcome.error.kind == ErrorKind.BREAK_ALREADY_OPEN


def test_end_break_records_duration_and_totals():
    engine = _clocked_in_engine()
    engine.breaks.start_break("emp-001", break_type=BreakType.REST, is_paid=True, now=at(10, 0))
    engine.breaks.end_break("emp-001", now=at(10, 15))
    engine.breaks.start_break("emp-001", break_type=BreakType.LUNCH, now=at(12, 0))

    record = engine.breaks.end_break("emp-001", now=at(12, 45)).record

    assert [b.duration_minutes for b in record.breaks] == [15, 45]
    assert record.total_break_minutes == 60
    assert record.unpaid_break_minutes == 45
    assert record.open_break is None


def test_closed_break_cannot_be_ended_again():
    engine = _clocked_in_engine()
    started = engine.breaks.start_break("emp-001", now=at(10, 0)).record
    break_id = started.breaks[0].break_id
    engine.breaks.end_break("emp-001", break_id, now=at(10, 10))

    assert engine.breaks.end_break("emp-001", break_id, now=at(10, 20)).error.kind == ErrorKind.BREAK_ALREADY_CLOSED
    assert engine.breaks.end_break("emp-001", now=at(10, 20)).error.kind == ErrorKind.NO_OPEN_BREAK


def test_break_windows_must_be_ordered():
    engine = _clocked_in_engine()
    engine.breaks.start_break("emp-001", now=at(10, 0))

    assert engine.breaks.end_break("emp-001", now=at(10, 0)).error.kind == ErrorKind.INVALID_BREAK_WINDOW

    engine.breaks.end_break("emp-001", now=at(10, 30))
    assert engine.breaks.start_break("emp-001", now=at(10, 20)).error.kind == ErrorKind.INVALID_BREAK_WINDOW


def test_break_before_clock_in_is_rejected():
    engine = _clocked_in_engine()

    assert engine.breaks.start_break("emp-001", now=at(8, 30)).error.kind == ErrorKind.INVALID_BREAK_WINDOW
