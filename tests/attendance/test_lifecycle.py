from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime, timedelta, timezone

import pytest

from src.attendance_engine.attendance_engine.attendance.events import APPROVAL_REQUIRED, RECORD_FINALIZED
from src.attendance_engine.attendance_engine.core.enums import (
    ApprovalStatus,
    AttendanceStatus,
    BreakType,
    CalculationType,
    ClockMethod,
    PenaltyType,
)
from src.attendance_engine.attendance_engine.core.exceptions import ConcurrentModificationError, ErrorKind
from src.attendance_engine.attendance_engine.core.settings import EngineSettings
from src.attendance_engine.attendance_engine.geo.model import GeoPoint
from src.attendance_engine.attendance_engine.penalties.model import PenaltyPolicy
from tests.fakes import HEAD_OFFICE, OFFICE, build_engine, late_fixed_policy

FAR_AWAY = GeoPoint(13.8913, 100.5018)

EARLY_LEAVE = PenaltyPolicy(
    policy_id="penalty-early-fixed",
    name="Early leave",
    penalty_type=PenaltyType.EARLY_LEAVE,
    calculation_type=CalculationType.FIXED,
    amount=80,
)
MISSED_CLOCK_OUT = PenaltyPolicy(
    policy_id="penalty-missed",
    name="Missed clock-out",
    penalty_type=PenaltyType.NO_CLOCK_OUT,
    calculation_type=CalculationType.FIXED,
    amount=200,
)


def at(hour: int, minute: int = 0, day: int = 15) -> datetime:
    return datetime(2024, 1, day, hour, minute)


def test_on_time_clock_in_inside_office(fixed_now):
    engine = build_engine(penalty_policies=[late_fixed_policy()])

    outcome = engine.service.clock_in("emp-001", location=OFFICE, now=fixed_now)

    assert outcome.ok
    record = outcome.record
    assert record.status == AttendanceStatus.CLOCKED_IN
    assert record.work_date == date(2024, 1, 15)
    assert record.is_late is False
    assert record.penalties == ()
    assert record.requires_approval is False
    assert record.approval_status is None
    assert record.clock_in_location.is_within_geofence is True
    assert record.employee_name == "Somchai Jaidee"
    assert record.scheduled_start_time == "09:00"
    assert engine.events.names == []


def test_late_clock_in_charges_penalty_and_waits_for_approval():
    engine = build_engine(penalty_policies=[late_fixed_policy()])

    outcome = engine.service.clock_in("emp-001", location=OFFICE, late_reason="Traffic", now=at(9, 20))

    record = outcome.record
    assert record.minutes_late == 20
    assert record.late_reason == "Traffic"
    assert [p.amount for p in record.penalties] == [100]
    assert record.requires_approval is True
    assert record.approval_status == ApprovalStatus.PENDING
    assert engine.events.names == [APPROVAL_REQUIRED]
    assert engine.events.events[0].payload["reason"] == "penalty-applied"


def test_clock_in_outside_geofence_needs_approval():
    engine = build_engine()

    record = engine.service.clock_in("emp-001", location=FAR_AWAY, now=at(8, 50)).record

    assert record.clock_in_location.is_within_geofence is False
    assert record.clock_in_location.distance_from_office_meters > 10_000
    assert record.approval_status == ApprovalStatus.PENDING


def test_remote_work_outside_geofence_is_only_a_warning():
    engine = build_engine()

    outcome = engine.service.clock_in("emp-001", location=FAR_AWAY, is_remote_work=True, now=at(8, 50))

    assert outcome.record.requires_approval is False
    assert len(outcome.warnings) == 1


def test_without_geofence_location_is_recorded_unchecked():
    engine = build_engine(geofence=None)

    record = engine.service.clock_in("emp-001", location=FAR_AWAY, now=at(8, 50)).record

    assert record.clock_in_location.is_within_geofence is None
    assert record.requires_approval is False


def test_second_clock_in_same_day_is_rejected_without_writing(fixed_now):
    engine = build_engine()
    engine.service.clock_in("emp-001", now=fixed_now)

    outcome = engine.service.clock_in("emp-001", now=at(10, 0))

    assert outcome.error.kind == ErrorKind.DUPLICATE_CLOCK_IN
    assert engine.attendance.writes == 1


def test_policy_lookup_failure_writes_nothing(fixed_now):
    engine = build_engine()
    engine.schedules.fail = True

    outcome = engine.service.clock_in("emp-001", now=fixed_now)

    assert outcome.error.kind == ErrorKind.POLICY_LOOKUP_FAILURE
    assert engine.attendance.records == {}


def test_unknown_employee_or_missing_schedule_fails_closed(fixed_now):
    engine = build_engine()
    engine.schedules.by_employee.clear()

    assert engine.service.clock_in("emp-001", now=fixed_now).error.kind == ErrorKind.POLICY_LOOKUP_FAILURE
    assert engine.service.clock_in("emp-404", now=fixed_now).error.kind == ErrorKind.POLICY_LOOKUP_FAILURE


def test_full_day_with_lunch_break():
    engine = build_engine()
    engine.service.clock_in("emp-001", location=OFFICE, now=at(9, 0))
    engine.breaks.start_break("emp-001", break_type=BreakType.LUNCH, scheduled_duration_minutes=60, now=at(12, 0))
    engine.breaks.end_break("emp-001", now=at(13, 0))

    outcome = engine.service.clock_out("emp-001", location=OFFICE, now=at(18, 5))

    record = outcome.record
    assert record.status == AttendanceStatus.CLOCKED_OUT
    assert record.total_break_minutes == 60
    assert record.unpaid_break_minutes == 60
    assert record.duration_hours == pytest.approx(8.08)
    assert record.is_early_leave is False
    assert record.clock_out_location.is_within_geofence is None
    assert record.version == 4
    assert engine.events.names == [RECORD_FINALIZED]


def test_clock_out_location_checked_when_fence_enforces_it():
    engine = build_engine(geofence=replace(HEAD_OFFICE, enforce_for_clock_out=True))
    engine.service.clock_in("emp-001", location=OFFICE, now=at(9, 0))

    record = engine.service.clock_out("emp-001", location=FAR_AWAY, now=at(18, 0)).record

    assert record.clock_out_location.is_within_geofence is False
    assert record.approval_status is None


def test_early_leave_appends_penalty():
    engine = build_engine(penalty_policies=[EARLY_LEAVE])
    engine.service.clock_in("emp-001", now=at(9, 0))

    record = engine.service.clock_out("emp-001", early_leave_reason="Doctor", now=at(17, 30)).record

    assert record.minutes_early == 30
    assert record.early_leave_reason == "Doctor"
    assert [(p.penalty_type, p.amount) for p in record.penalties] == [(PenaltyType.EARLY_LEAVE, 80)]


def test_clock_out_leaves_open_break_open_and_flags_it():
    engine = build_engine()
    engine.service.clock_in("emp-001", now=at(9, 0))
    break_id = engine.breaks.start_break("emp-001", now=at(12, 0)).record.breaks[0].break_id

    outcome = engine.service.clock_out("emp-001", now=at(18, 0))

    record = outcome.record
    assert record.breaks[0].is_open
    assert record.data_quality_flags == (f"open-break:{break_id}",)
    assert record.unpaid_break_minutes == 0
    assert record.duration_hours == 9.0
    assert outcome.warnings


def test_overlong_day_is_flagged_as_missed_clock_out():
    engine = build_engine(penalty_policies=[MISSED_CLOCK_OUT])
    engine.service.clock_in("emp-001", now=at(8, 55))

    outcome = engine.service.clock_out("emp-001", now=at(21, 30))

    assert outcome.record.is_missed_clock_out is True
    assert [p.penalty_type for p in outcome.record.penalties] == [PenaltyType.NO_CLOCK_OUT]


def test_clock_out_without_clock_in_or_twice():
    engine = build_engine()
    assert engine.service.clock_out("emp-001", now=at(18, 0)).error.kind == ErrorKind.NO_ACTIVE_CLOCK_IN

    engine.service.clock_in("emp-001", now=at(9, 0))
    engine.service.clock_out("emp-001", now=at(18, 0))

    assert engine.service.clock_out("emp-001", now=at(18, 30)).error.kind == ErrorKind.NO_ACTIVE_CLOCK_IN


def test_stale_write_propagates(fixed_now):
    engine = build_engine()
    engine.service.clock_in("emp-001", now=fixed_now)

    def lost_race(record, *, expected_version):
        raise ConcurrentModificationError("stale")

    engine.attendance.update = lost_race

    with pytest.raises(ConcurrentModificationError):
        engine.service.clock_out("emp-001", now=at(18, 0))


def test_manual_entry_by_hr_is_pre_approved():
    engine = build_engine(penalty_policies=[late_fixed_policy()])

    outcome = engine.service.create_manual_entry(
        actor_user_id="user-hr",
        employee_id="emp-001",
        work_date=date(2024, 1, 12),
        clock_in="09:30",
        reason="Forgot phone",
        now=at(10, 0),
    )

    record = outcome.record
    assert record.status == AttendanceStatus.CLOCKED_IN
    assert record.is_manual_entry is True
    assert record.clock_in_method == ClockMethod.MANUAL
    assert record.is_excused_late is True
    assert record.penalties == ()
    assert record.requires_approval is False
    assert record.approval_status == ApprovalStatus.APPROVED
    assert record.approved_by == "user-hr"


def test_manual_entry_charges_penalties_when_not_excused():
    engine = build_engine(
        penalty_policies=[late_fixed_policy()],
        settings=EngineSettings(tenant_timezone=None, excuse_manual_entries=False),
    )

    record = engine.service.create_manual_entry(
        actor_user_id="user-hr",
        employee_id="emp-001",
        work_date=date(2024, 1, 12),
        clock_in="09:30",
        clock_out="18:00",
        reason="Badge reader down",
        now=at(10, 0),
    ).record

    assert record.minutes_late == 30
    assert record.duration_hours == 8.5
    assert record.approval_status == ApprovalStatus.PENDING


def test_manual_entry_guards():
    engine = build_engine()
    entry = dict(employee_id="emp-001", work_date=date(2024, 1, 12), reason="x", now=at(10, 0))

    assert (
        engine.service.create_manual_entry(actor_user_id="user-manager", clock_in="09:00", **entry).error.kind
        == ErrorKind.UNAUTHORIZED_ACTION
    )
    assert (
        engine.service.create_manual_entry(actor_user_id="user-hr", clock_in="9am", **entry).error.kind
        == ErrorKind.INVALID_INPUT
    )
    assert (
        engine.service.create_manual_entry(
            actor_user_id="user-hr", clock_in="18:00", clock_out="09:00", **entry
        ).error.kind
        == ErrorKind.INVALID_TIME_WINDOW
    )
    assert engine.service.create_manual_entry(actor_user_id="user-hr", clock_in="09:00", **entry).ok
    assert (
        engine.service.create_manual_entry(actor_user_id="user-hr", clock_in="09:00", **entry).error.kind
        == ErrorKind.DUPLICATE_CLOCK_IN
    )


def test_correction_recomputes_penalties_and_approval():
    engine = build_engine(penalty_policies=[late_fixed_policy()])
    late = engine.service.clock_in("emp-001", location=OFFICE, now=at(9, 20)).record

    outcome = engine.service.correct_record(
        late.record_id,
        actor_user_id="user-hr",
        clock_in=at(8, 58),
        reason="Badge reader lag",
        now=at(11, 0),
    )

    record = outcome.record
    assert record.minutes_late == 0
    assert record.penalties == ()
    assert record.requires_approval is False
    assert record.approval_status is None
    assert record.is_corrected is True
    assert record.status == AttendanceStatus.CLOCKED_IN
    assert record.version == late.version + 1


def test_correction_guards(fixed_now):
    engine = build_engine()
    record = engine.service.clock_in("emp-001", now=fixed_now).record

    assert (
        engine.service.correct_record(record.record_id, actor_user_id="user-emp-001", clock_in=at(9), reason="x").error.kind
        == ErrorKind.UNAUTHORIZED_ACTION
    )
    assert (
        engine.service.correct_record("missing", actor_user_id="user-hr", clock_in=at(9), reason="x").error.kind
        == ErrorKind.RECORD_NOT_FOUND
    )
    assert (
        engine.service.correct_record(
            record.record_id, actor_user_id="user-hr", clock_in=at(9, day=16), reason="x"
        ).error.kind
        == ErrorKind.INVALID_TIME_WINDOW
    )


def test_correction_rejects_times_with_an_offset(fixed_now):
    engine = build_engine()
    record = engine.service.clock_in("emp-001", now=fixed_now).record

    outcome = engine.service.correct_record(
        record.record_id,
        actor_user_id="user-hr",
        clock_in=datetime(2024, 1, 15, 9, 0, tzinfo=timezone(timedelta(hours=7))),
        reason="x",
    )

    assert outcome.error.kind == ErrorKind.INVALID_INPUT
    assert engine.attendance.get_by_id(record.record_id).version == record.version


def test_correction_closing_the_day_flags_open_break():
    engine = build_engine()
    record = engine.service.clock_in("emp-001", now=at(9, 0)).record
    break_id = engine.breaks.start_break("emp-001", now=at(12, 0)).record.breaks[0].break_id

    outcome = engine.service.correct_record(
        record.record_id,
        actor_user_id="user-hr",
        clock_in=at(9, 0),
        clock_out=at(18, 0),
        reason="Forgot to clock out",
        now=at(9, 0, day=16),
    )

    corrected = outcome.record
    assert corrected.status == AttendanceStatus.CLOCKED_OUT
    assert corrected.breaks[0].is_open
    assert corrected.data_quality_flags == (f"open-break:{break_id}",)
    assert corrected.unpaid_break_minutes == 0
    assert corrected.duration_hours == 9.0
    assert outcome.warnings == (f"Break {break_id} was never ended",)


def test_mark_missed_clock_out_next_day():
    engine = build_engine(penalty_policies=[MISSED_CLOCK_OUT])
    engine.service.clock_in("emp-001", now=at(9, 0))

    outcome = engine.service.mark_missed_clock_out("emp-001", date(2024, 1, 15), now=at(8, 0, day=16))

    assert outcome.record.is_missed_clock_out is True
    assert outcome.record.total_penalty_amount == 200

    again = engine.service.mark_missed_clock_out("emp-001", date(2024, 1, 15), now=at(9, 0, day=16))
    assert again.ok
    assert again.record.version == outcome.record.version


def test_mark_missed_clock_out_guards():
    engine = build_engine()
    assert (
        engine.service.mark_missed_clock_out("emp-001", date(2024, 1, 15), now=at(20)).error.kind
        == ErrorKind.RECORD_NOT_FOUND
    )

    engine.service.clock_in("emp-001", now=at(9, 0))
    assert (
        engine.service.mark_missed_clock_out("emp-001", date(2024, 1, 15), now=at(12)).error.kind
        == ErrorKind.INVALID_TIME_WINDOW
    )

    engine.service.clock_out("emp-001", now=at(18))
    assert (
        engine.service.mark_missed_clock_out("emp-001", date(2024, 1, 15), now=at(8, day=16)).error.kind
        == ErrorKind.ALREADY_CLOCKED_OUT
    )


def test_today_record_and_history():
    engine = build_engine()
    engine.service.clock_in("emp-001", now=at(9, 0, day=15))
    engine.service.clock_in("emp-001", now=at(9, 0, day=16))

    assert engine.service.get_today_record("emp-001", now=at(12, day=16)).work_date == date(2024, 1, 16)
    assert engine.service.get_today_record("emp-001", now=at(12, day=17)) is None
    assert [r.work_date.day for r in engine.service.get_history("emp-001", limit=5)] == [16, 15]


def test_daily_sweep_flags_every_open_record():
    engine = build_engine(penalty_policies=[MISSED_CLOCK_OUT])
    engine.employees.profiles["emp-002"] = replace(engine.employees.profiles["emp-001"], employee_id="emp-002")
    engine.schedules.by_employee["emp-002"] = engine.schedules.by_employee["emp-001"]
    engine.service.clock_in("emp-001", now=at(9, 0))
    engine.service.clock_in("emp-002", now=at(9, 0))
    engine.service.clock_out("emp-002", now=at(18, 0))

    outcomes = engine.service.flag_missed_clock_outs(date(2024, 1, 15), now=at(1, 0, day=16))

    assert list(outcomes) == ["emp-001"]
    assert outcomes["emp-001"].record.is_missed_clock_out is True
    assert engine.service.flag_missed_clock_outs(date(2024, 1, 15), now=at(2, 0, day=16)) == {}
