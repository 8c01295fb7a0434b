from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import ApprovalStatus, AttendanceStatus, BreakType, ClockMethod
from ..geo.model import LocationSnapshot
from ..penalties.model import Penalty


@dataclass(frozen=True)
class BreakRecord:
    """A break inside a working day.

    ``end_time`` and ``duration_minutes`` stay None while the break is open.
    A break still open at clock-out is left open and reported through the
    record's data quality flags.
    """

    break_id: str
    break_type: BreakType
    start_time: datetime
    end_time: Optional[datetime] = None
    duration_minutes: Optional[int] = None
    scheduled_duration_minutes: int = 0
    is_paid: bool = False

    @property
    def is_open(self) -> bool:
        return self.end_time is None


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one employee's attendance for one calendar day.

    Note: Instances are immutable; the lifecycle issues updated copies with
    ``dataclasses.replace`` and bumps ``version`` on every write.
    """

    record_id: str
    employee_id: str
    work_date: date
    clock_in_time: datetime
    status: AttendanceStatus
    scheduled_start_time: str
    scheduled_end_time: str
    tenant_id: str = "default"
    clock_out_time: Optional[datetime] = None

    # Denormalized snapshot, immutable at write time.
    employee_name: str = ""
    department_name: Optional[str] = None
    user_id: Optional[str] = None
    work_schedule_policy_id: Optional[str] = None

    is_late: bool = False
    minutes_late: int = 0
    late_reason: Optional[str] = None
    is_excused_late: bool = False
    late_approved_by: Optional[str] = None

    is_early_leave: bool = False
    minutes_early: int = 0
    early_leave_reason: Optional[str] = None
    is_approved_early_leave: bool = False
    early_leave_approved_by: Optional[str] = None

    breaks: tuple[BreakRecord, ...] = ()
    total_break_minutes: int = 0
    unpaid_break_minutes: int = 0

    clock_in_location: Optional[LocationSnapshot] = None
    clock_out_location: Optional[LocationSnapshot] = None
    clock_in_method: ClockMethod = ClockMethod.WEB
    clock_out_method: Optional[ClockMethod] = None
    ip_address: Optional[str] = None
    device_id: Optional[str] = None

    penalties: tuple[Penalty, ...] = ()

    requires_approval: bool = False
    approval_status: Optional[ApprovalStatus] = None
    approved_by: Optional[str] = None
    approval_date: Optional[datetime] = None
    approval_notes: Optional[str] = None

    is_remote_work: bool = False
    is_manual_entry: bool = False
    is_missed_clock_out: bool = False
    is_corrected: bool = False

    duration_hours: Optional[float] = None
    notes: Optional[str] = None
    data_quality_flags: tuple[str, ...] = ()

    created_by: Optional[str] = None
    updated_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    version: int = 1

    @property
    def is_clocked_in(self) -> bool:
        return self.status == AttendanceStatus.CLOCKED_IN

    @property
    def open_break(self) -> Optional[BreakRecord]:
        return next((b for b in self.breaks if b.is_open), None)

    @property
    def is_pending_approval(self) -> bool:
        return self.approval_status == ApprovalStatus.PENDING

    @property
    def total_penalty_amount(self) -> float:
        return round(sum(p.amount for p in self.penalties), 2)
