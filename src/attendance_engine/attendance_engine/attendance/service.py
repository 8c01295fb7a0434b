from __future__ import annotations

import logging
import uuid
from dataclasses import replace
from datetime import date, datetime
from typing import Callable, Optional, Sequence

from ..approvals.decision import decide_approval
from ..common.datetime_utils import at_time_of_day, now_local
from ..core.constants import DEFAULT_HISTORY_LIMIT
from ..core.enums import ApprovalStatus, AttendanceStatus, ClockMethod
from ..core.exceptions import DuplicateRecordError, ErrorKind, PolicyLookupError, ValidationError
from ..core.settings import EngineSettings
from ..employees.model import EmployeeProfile
from ..employees.repository import AccessPolicy, EmployeeDirectory
from ..geo.distance import evaluate_location
from ..geo.model import GeoPoint
from ..penalties.evaluator import PenaltyEvaluator
from ..penalties.model import PenaltyFacts
from ..policies.store import PolicyStore
from ..timing.calculations import (
    aggregate_breaks,
    compute_duration_hours,
    compute_early_leave,
    compute_lateness,
    gross_hours,
    resolve_scheduled_window,
)
from ..timing.model import EarlyLeaveResult, LatenessResult
from .events import APPROVAL_REQUIRED, RECORD_FINALIZED, AttendanceEvent, EventPublisher, LoggingEventPublisher
from .model import AttendanceRecord
from .outcome import AttendanceOutcome
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


def _new_record_id() -> str:
    return str(uuid.uuid4())


def _flag_open_breaks(flags: tuple[str, ...], open_break_ids) -> tuple[str, ...]:
    return flags + tuple(
        f"open-break:{break_id}" for break_id in open_break_ids if f"open-break:{break_id}" not in flags
    )


class AttendanceService:
    """Attendance record lifecycle: clock-in, clock-out, manual entry and corrections.

    Each call is self-contained: read what is needed, run the pure
    evaluation (time, geo, penalties, approval), write the record once.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        employees: EmployeeDirectory,
        policies: PolicyStore,
        access: AccessPolicy,
        *,
        evaluator: PenaltyEvaluator | None = None,
        events: EventPublisher | None = None,
        settings: EngineSettings | None = None,
        id_factory: Callable[[], str] | None = None,
    ):
        self._attendance = attendance
        self._employees = employees
        self._policies = policies
        self._access = access
        self._evaluator = evaluator or PenaltyEvaluator(attendance)
        self._events = events or LoggingEventPublisher()
        self._settings = settings or EngineSettings()
        self._new_id = id_factory or _new_record_id

    def _now(self, now: datetime | None) -> datetime:
        return now or now_local(self._settings.tenant_timezone)

    def _profile(self, employee_id: str) -> EmployeeProfile:
        profile = self._employees.get_employee_profile(employee_id)
        if profile is None:
            raise PolicyLookupError(f"Employee {employee_id} not found")
        return profile

    @staticmethod
    def _policy_failure(employee_id: str, exc: PolicyLookupError) -> AttendanceOutcome:
        logger.warning("policy lookup failed for employee %s: %s", employee_id, exc)
        return AttendanceOutcome.failure(ErrorKind.POLICY_LOOKUP_FAILURE, str(exc))

    def _publish_for(self, record: AttendanceRecord, **payload) -> None:
        if record.is_pending_approval:
            self._events.publish(AttendanceEvent.for_record(APPROVAL_REQUIRED, record, **payload))
        if record.status == AttendanceStatus.CLOCKED_OUT:
            self._events.publish(
                AttendanceEvent.for_record(RECORD_FINALIZED, record, duration_hours=record.duration_hours)
            )

    def clock_in(
        self,
        employee_id: str,
        *,
        location: Optional[GeoPoint] = None,
        is_remote_work: bool = False,
        method: ClockMethod = ClockMethod.WEB,
        ip_address: Optional[str] = None,
        device_id: Optional[str] = None,
        notes: Optional[str] = None,
        late_reason: Optional[str] = None,
        actor_user_id: Optional[str] = None,
        now: datetime | None = None,
    ) -> AttendanceOutcome:
        now = self._now(now)
        today = now.date()

        if self._attendance.get_for_employee_and_date(employee_id, today) is not None:
            logger.info("duplicate clock-in for employee %s on %s", employee_id, today)
            return AttendanceOutcome.failure(ErrorKind.DUPLICATE_CLOCK_IN, "Already clocked in today")

        try:
            profile = self._profile(employee_id)
            resolved = self._policies.resolve(profile, near=location)
        except PolicyLookupError as e:
            return self._policy_failure(employee_id, e)

        window = resolve_scheduled_window(resolved.schedule, today.weekday(), self._settings.default_window)
        lateness = compute_lateness(now, window.start)
        snapshot = evaluate_location(location, resolved.geofence) if location is not None else None

        facts = PenaltyFacts(employee_id=employee_id, work_date=today, minutes_late=lateness.minutes_late)
        penalties = self._evaluator.evaluate(facts, resolved.penalty_policies, profile)
        decision = decide_approval(
            geofence=resolved.geofence,
            location=snapshot,
            is_remote_work=is_remote_work,
            penalties=penalties,
            minutes_late=lateness.minutes_late,
            auto_approve_threshold_minutes=self._settings.auto_approve_threshold_minutes,
        )

        record = AttendanceRecord(
            record_id=self._new_id(),
            tenant_id=profile.tenant_id,
            employee_id=employee_id,
            work_date=today,
            clock_in_time=now,
            status=AttendanceStatus.CLOCKED_IN,
            scheduled_start_time=window.start,
            scheduled_end_time=window.end,
            employee_name=profile.full_name,
            department_name=profile.department_name,
            user_id=profile.user_id,
            work_schedule_policy_id=resolved.schedule.policy_id,
            is_late=lateness.is_late,
            minutes_late=lateness.minutes_late,
            late_reason=late_reason if lateness.is_late else None,
            clock_in_location=snapshot,
            clock_in_method=method,
            ip_address=ip_address,
            device_id=device_id,
            penalties=tuple(penalties),
            requires_approval=decision.requires_approval,
            approval_status=decision.approval_status,
            is_remote_work=is_remote_work,
            notes=notes,
            created_by=actor_user_id or profile.user_id,
            updated_by=actor_user_id or profile.user_id,
            created_at=now,
            updated_at=now,
        )

        try:
            self._attendance.insert(record)
        except DuplicateRecordError:
            logger.info("concurrent clock-in lost the race for employee %s on %s", employee_id, today)
            return AttendanceOutcome.failure(ErrorKind.DUPLICATE_CLOCK_IN, "Already clocked in today")

        logger.info(
            "clock-in recorded",
            extra={
                "employee_id": employee_id,
                "record_id": record.record_id,
                "minutes_late": record.minutes_late,
                "requires_approval": record.requires_approval,
            },
        )
        self._publish_for(record, reason=decision.reason.value)

        warnings: tuple[str, ...] = ()
        if snapshot is not None and snapshot.is_within_geofence is False and is_remote_work:
            warnings = ("Clock-in location is outside the office geofence (remote work)",)
        return AttendanceOutcome.success(record, warnings)

    def clock_out(
        self,
        employee_id: str,
        *,
        location: Optional[GeoPoint] = None,
        method: ClockMethod = ClockMethod.WEB,
        early_leave_reason: Optional[str] = None,
        notes: Optional[str] = None,
        actor_user_id: Optional[str] = None,
        now: datetime | None = None,
    ) -> AttendanceOutcome:
        now = self._now(now)

        record = self._attendance.get_for_employee_and_date(employee_id, now.date())
        if record is None or not record.is_clocked_in:
            return AttendanceOutcome.failure(ErrorKind.NO_ACTIVE_CLOCK_IN, "No active clock-in for today")
        if now <= record.clock_in_time:
            return AttendanceOutcome.failure(ErrorKind.INVALID_TIME_WINDOW, "Clock-out must be after clock-in")

        try:
            profile = self._profile(employee_id)
            geofence = self._policies.geofence_for(profile, near=location)
            policies = self._policies.penalty_policies_for(profile)
        except PolicyLookupError as e:
            return self._policy_failure(employee_id, e)

        early = compute_early_leave(now, record.scheduled_end_time)
        summary = aggregate_breaks(record.breaks)
        flags = _flag_open_breaks(record.data_quality_flags, summary.open_break_ids)
        duration = compute_duration_hours(record.clock_in_time, now, summary.unpaid_minutes)
        overdue = gross_hours(record.clock_in_time, now) > self._settings.missed_clock_out_hours

        facts = PenaltyFacts(
            employee_id=employee_id,
            work_date=record.work_date,
            minutes_early=early.minutes_early,
            is_missed_clock_out=overdue and not record.is_missed_clock_out,
            is_approved_early_leave=record.is_approved_early_leave,
        )
        penalties = self._evaluator.evaluate(facts, policies, profile)

        snapshot = None
        if location is not None:
            fence = geofence if geofence is not None and geofence.enforce_for_clock_out else None
            snapshot = evaluate_location(location, fence)

        updated = replace(
            record,
            clock_out_time=now,
            status=AttendanceStatus.CLOCKED_OUT,
            is_early_leave=early.is_early_leave,
            minutes_early=early.minutes_early,
            early_leave_reason=early_leave_reason if early.is_early_leave else None,
            total_break_minutes=summary.total_minutes,
            unpaid_break_minutes=summary.unpaid_minutes,
            clock_out_location=snapshot,
            clock_out_method=method,
            penalties=record.penalties + tuple(penalties),
            is_missed_clock_out=record.is_missed_clock_out or overdue,
            duration_hours=duration,
            data_quality_flags=flags,
            notes=notes or record.notes,
            updated_by=actor_user_id or record.user_id,
            updated_at=now,
            version=record.version + 1,
        )
        self._attendance.update(updated, expected_version=record.version)

        logger.info(
            "clock-out recorded",
            extra={
                "employee_id": employee_id,
                "record_id": updated.record_id,
                "duration_hours": duration,
                "minutes_early": updated.minutes_early,
            },
        )
        self._publish_for(updated)

        warnings = tuple(f"Break {break_id} was never ended" for break_id in summary.open_break_ids)
        if overdue:
            warnings += (f"Worked more than {self._settings.missed_clock_out_hours:g} hours; flagged as missed clock-out",)
        return AttendanceOutcome.success(updated, warnings)

    def create_manual_entry(
        self,
        *,
        actor_user_id: str,
        employee_id: str,
        work_date: date,
        clock_in: str,
        clock_out: Optional[str] = None,
        reason: str,
        is_remote_work: bool = False,
        notes: Optional[str] = None,
        now: datetime | None = None,
    ) -> AttendanceOutcome:
        """HR backfills a day the employee could not clock themselves."""
        now = self._now(now)

        if not self._access.can_create_manual_entry(actor_user_id):
            logger.warning("user %s may not create manual entries", actor_user_id)
            return AttendanceOutcome.failure(ErrorKind.UNAUTHORIZED_ACTION, "Only HR can create manual entries")

        try:
            clock_in_time = at_time_of_day(work_date, clock_in)
            clock_out_time = at_time_of_day(work_date, clock_out) if clock_out else None
        except ValidationError as e:
            return AttendanceOutcome.failure(ErrorKind.INVALID_INPUT, str(e))
        if clock_out_time is not None and clock_out_time <= clock_in_time:
            return AttendanceOutcome.failure(ErrorKind.INVALID_TIME_WINDOW, "Clock-out must be after clock-in")

        if self._attendance.get_for_employee_and_date(employee_id, work_date) is not None:
            return AttendanceOutcome.failure(
                ErrorKind.DUPLICATE_CLOCK_IN, f"Attendance record already exists for {work_date.isoformat()}"
            )

        try:
            profile = self._profile(employee_id)
            resolved = self._policies.resolve(profile)
        except PolicyLookupError as e:
            return self._policy_failure(employee_id, e)

        window = resolve_scheduled_window(resolved.schedule, work_date.weekday(), self._settings.default_window)
        excused = self._settings.excuse_manual_entries
        if excused:
            lateness = LatenessResult(is_late=False, minutes_late=0)
            early = EarlyLeaveResult(is_early_leave=False, minutes_early=0)
            penalties = []
        else:
            lateness = compute_lateness(clock_in_time, window.start)
            early = (
                compute_early_leave(clock_out_time, window.end)
                if clock_out_time is not None
                else EarlyLeaveResult(is_early_leave=False, minutes_early=0)
            )
            facts = PenaltyFacts(
                employee_id=employee_id,
                work_date=work_date,
                minutes_late=lateness.minutes_late,
                minutes_early=early.minutes_early,
            )
            penalties = self._evaluator.evaluate(facts, resolved.penalty_policies, profile)

        decision = decide_approval(
            geofence=resolved.geofence,
            location=None,
            is_remote_work=is_remote_work,
            penalties=penalties,
            minutes_late=lateness.minutes_late,
            minutes_early=early.minutes_early,
            is_manual_entry=True,
            created_by=actor_user_id,
            auto_approve_threshold_minutes=self._settings.auto_approve_threshold_minutes,
        )

        record = AttendanceRecord(
            record_id=self._new_id(),
            tenant_id=profile.tenant_id,
            employee_id=employee_id,
            work_date=work_date,
            clock_in_time=clock_in_time,
            clock_out_time=clock_out_time,
            status=AttendanceStatus.CLOCKED_OUT if clock_out_time is not None else AttendanceStatus.CLOCKED_IN,
            scheduled_start_time=window.start,
            scheduled_end_time=window.end,
            employee_name=profile.full_name,
            department_name=profile.department_name,
            user_id=profile.user_id,
            work_schedule_policy_id=resolved.schedule.policy_id,
            is_late=lateness.is_late,
            minutes_late=lateness.minutes_late,
            late_reason=reason,
            is_excused_late=excused,
            is_early_leave=early.is_early_leave,
            minutes_early=early.minutes_early,
            clock_in_method=ClockMethod.MANUAL,
            clock_out_method=ClockMethod.MANUAL if clock_out_time is not None else None,
            penalties=tuple(penalties),
            requires_approval=decision.requires_approval,
            approval_status=decision.approval_status,
            approved_by=decision.approved_by,
            approval_date=now if decision.approval_status == ApprovalStatus.APPROVED else None,
            is_remote_work=is_remote_work,
            is_manual_entry=True,
            duration_hours=(
                compute_duration_hours(clock_in_time, clock_out_time) if clock_out_time is not None else None
            ),
            notes=notes,
            created_by=actor_user_id,
            updated_by=actor_user_id,
            created_at=now,
            updated_at=now,
        )

        try:
            self._attendance.insert(record)
        except DuplicateRecordError:
            return AttendanceOutcome.failure(
                ErrorKind.DUPLICATE_CLOCK_IN, f"Attendance record already exists for {work_date.isoformat()}"
            )

        logger.info(
            "manual entry created",
            extra={"employee_id": employee_id, "record_id": record.record_id, "actor_user_id": actor_user_id},
        )
        self._publish_for(record, reason=decision.reason.value)
        return AttendanceOutcome.success(record)

    def correct_record(
        self,
        record_id: str,
        *,
        actor_user_id: str,
        clock_in: datetime,
        clock_out: Optional[datetime] = None,
        reason: str,
        now: datetime | None = None,
    ) -> AttendanceOutcome:
        """Reissue a record with corrected times.

        Penalties and the approval decision are recomputed from scratch;
        ``clock_out=None`` keeps the stored clock-out time.
        """
        now = self._now(now)

        if not self._access.can_create_manual_entry(actor_user_id):
            return AttendanceOutcome.failure(ErrorKind.UNAUTHORIZED_ACTION, "Only HR can correct attendance records")

        record = self._attendance.get_by_id(record_id)
        if record is None:
            return AttendanceOutcome.failure(ErrorKind.RECORD_NOT_FOUND, "Attendance record not found")

        if clock_in.tzinfo is not None or (clock_out is not None and clock_out.tzinfo is not None):
            return AttendanceOutcome.failure(
                ErrorKind.INVALID_INPUT, "Corrected times must be tenant-local wall-clock times without an offset"
            )
        clock_out = clock_out or record.clock_out_time
        if clock_in.date() != record.work_date:
            return AttendanceOutcome.failure(
                ErrorKind.INVALID_TIME_WINDOW, "Corrected clock-in must be on the record's work date"
            )
        if clock_out is not None and clock_out <= clock_in:
            return AttendanceOutcome.failure(ErrorKind.INVALID_TIME_WINDOW, "Clock-out must be after clock-in")
        for b in record.breaks:
            if b.start_time < clock_in or (clock_out is not None and b.end_time is not None and b.end_time > clock_out):
                return AttendanceOutcome.failure(
                    ErrorKind.INVALID_TIME_WINDOW, f"Break {b.break_id} falls outside the corrected times"
                )

        try:
            profile = self._profile(record.employee_id)
            resolved = self._policies.resolve(profile)
        except PolicyLookupError as e:
            return self._policy_failure(record.employee_id, e)

        excused = record.is_manual_entry and self._settings.excuse_manual_entries
        lateness = LatenessResult(False, 0) if excused else compute_lateness(clock_in, record.scheduled_start_time)
        early = (
            compute_early_leave(clock_out, record.scheduled_end_time)
            if clock_out is not None and not excused
            else EarlyLeaveResult(False, 0)
        )
        summary = aggregate_breaks(record.breaks)
        # Breaks left open on a closed day are reported, never silently dropped.
        open_breaks = summary.open_break_ids if clock_out is not None else ()

        penalties = []
        if not excused:
            facts = PenaltyFacts(
                employee_id=record.employee_id,
                work_date=record.work_date,
                minutes_late=lateness.minutes_late,
                minutes_early=early.minutes_early,
                is_missed_clock_out=record.is_missed_clock_out,
                is_excused_late=record.is_excused_late,
                is_approved_early_leave=record.is_approved_early_leave,
            )
            penalties = self._evaluator.evaluate(facts, resolved.penalty_policies, profile)

        decision = decide_approval(
            geofence=resolved.geofence,
            location=record.clock_in_location,
            is_remote_work=record.is_remote_work,
            penalties=penalties,
            minutes_late=lateness.minutes_late,
            minutes_early=early.minutes_early,
            is_manual_entry=record.is_manual_entry,
            created_by=actor_user_id,
            auto_approve_threshold_minutes=self._settings.auto_approve_threshold_minutes,
        )

        updated = replace(
            record,
            clock_in_time=clock_in,
            clock_out_time=clock_out,
            status=AttendanceStatus.CLOCKED_OUT if clock_out is not None else record.status,
            is_late=lateness.is_late,
            minutes_late=lateness.minutes_late,
            is_early_leave=early.is_early_leave,
            minutes_early=early.minutes_early,
            total_break_minutes=summary.total_minutes,
            unpaid_break_minutes=summary.unpaid_minutes,
            penalties=tuple(penalties),
            data_quality_flags=_flag_open_breaks(record.data_quality_flags, open_breaks),
            requires_approval=decision.requires_approval,
            approval_status=decision.approval_status,
            approved_by=decision.approved_by,
            approval_date=now if decision.approval_status == ApprovalStatus.APPROVED else None,
            approval_notes=None,
            duration_hours=(
                compute_duration_hours(clock_in, clock_out, summary.unpaid_minutes) if clock_out is not None else None
            ),
            is_corrected=True,
            notes=reason,
            updated_by=actor_user_id,
            updated_at=now,
            version=record.version + 1,
        )
        self._attendance.update(updated, expected_version=record.version)

        logger.info(
            "attendance record corrected",
            extra={"record_id": record_id, "actor_user_id": actor_user_id, "penalties": len(penalties)},
        )
        self._publish_for(updated, reason=decision.reason.value)
        return AttendanceOutcome.success(updated, tuple(f"Break {break_id} was never ended" for break_id in open_breaks))

    def mark_missed_clock_out(
        self,
        employee_id: str,
        work_date: date,
        *,
        now: datetime | None = None,
    ) -> AttendanceOutcome:
        """Flag a record left clocked-in after its day and charge the missed clock-out."""
        now = self._now(now)

        record = self._attendance.get_for_employee_and_date(employee_id, work_date)
        if record is None:
            return AttendanceOutcome.failure(ErrorKind.RECORD_NOT_FOUND, "Attendance record not found")
        if not record.is_clocked_in:
            return AttendanceOutcome.failure(ErrorKind.ALREADY_CLOCKED_OUT, "Employee already clocked out")
        if record.is_missed_clock_out:
            return AttendanceOutcome.success(record)

        day_over = now.date() > work_date
        overdue = gross_hours(record.clock_in_time, now) > self._settings.missed_clock_out_hours
        if not (day_over or overdue):
            return AttendanceOutcome.failure(ErrorKind.INVALID_TIME_WINDOW, "Working day is not over yet")

        try:
            profile = self._profile(employee_id)
            policies = self._policies.penalty_policies_for(profile)
        except PolicyLookupError as e:
            return self._policy_failure(employee_id, e)

        facts = PenaltyFacts(employee_id=employee_id, work_date=work_date, is_missed_clock_out=True)
        penalties = self._evaluator.evaluate(facts, policies, profile)

        updated = replace(
            record,
            is_missed_clock_out=True,
            penalties=record.penalties + tuple(penalties),
            updated_at=now,
            version=record.version + 1,
        )
        self._attendance.update(updated, expected_version=record.version)
        logger.info("missed clock-out flagged", extra={"employee_id": employee_id, "record_id": record.record_id})
        return AttendanceOutcome.success(updated)

    def flag_missed_clock_outs(self, work_date: date, *, now: datetime | None = None) -> dict[str, AttendanceOutcome]:
        """Daily sweep: run ``mark_missed_clock_out`` for every open record of ``work_date``."""
        now = self._now(now)
        outcomes: dict[str, AttendanceOutcome] = {}
        for record in self._attendance.list_open_records(self._settings.tenant_id, work_date):
            outcome = self.mark_missed_clock_out(record.employee_id, work_date, now=now)
            if not outcome.ok:
                logger.warning("could not flag %s: %s", record.employee_id, outcome.error.message)
            outcomes[record.employee_id] = outcome
        return outcomes

    def get_today_record(self, employee_id: str, *, now: datetime | None = None) -> Optional[AttendanceRecord]:
        return self._attendance.get_for_employee_and_date(employee_id, self._now(now).date())

    def get_history(self, employee_id: str, *, limit: int = DEFAULT_HISTORY_LIMIT) -> Sequence[AttendanceRecord]:
        return self._attendance.get_recent_for_employee(employee_id, int(limit))
