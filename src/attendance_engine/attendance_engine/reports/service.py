from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date

from ..attendance.repository import AttendanceRepository
from ..core.constants import DEFAULT_STANDARD_HOURS_PER_DAY
from ..core.exceptions import ValidationError


@dataclass(frozen=True)
class AttendanceSummary:
    employee_id: str
    start: date
    end: date
    present_days: int = 0
    late_days: int = 0
    early_leave_days: int = 0
    missed_clock_outs: int = 0
    pending_approvals: int = 0
    total_late_minutes: int = 0
    total_hours: float = 0.0
    average_hours: float = 0.0
    overtime_hours: float = 0.0
    penalty_totals: dict[str, float] = field(default_factory=dict)
    total_penalty_amount: float = 0.0


@dataclass(frozen=True)
class SummaryReport:
    rows: list[dict]
    summary: AttendanceSummary


class AttendanceSummaryService:
    """Per-employee period statistics consumed by payroll aggregation and exports."""

    def __init__(self, attendance: AttendanceRepository, *, standard_hours_per_day: float = DEFAULT_STANDARD_HOURS_PER_DAY):
        self._attendance = attendance
        self._standard_hours = float(standard_hours_per_day)

    def summarize(self, employee_id: str, *, start: date, end: date) -> SummaryReport:
        if end < start:
            raise ValidationError("End date must not be before start date")

        records = self._attendance.list_range(employee_id, start=start, end=end)

        rows: list[dict] = []
        penalty_totals: dict[str, float] = {}
        total_hours = 0.0
        overtime = 0.0
        finished = 0

        for r in records:
            hours = r.duration_hours or 0.0
            if r.duration_hours is not None:
                finished += 1
                total_hours += hours
                overtime += max(0.0, hours - self._standard_hours)

            for p in r.penalties:
                key = p.penalty_type.value
                penalty_totals[key] = round(penalty_totals.get(key, 0.0) + p.amount, 2)

            rows.append(
                {
                    "work_date": r.work_date.strftime("%Y-%m-%d"),
                    "clock_in": r.clock_in_time.strftime("%H:%M"),
                    "clock_out": r.clock_out_time.strftime("%H:%M") if r.clock_out_time else "-",
                    "scheduled": f"{r.scheduled_start_time}-{r.scheduled_end_time}",
                    "minutes_late": r.minutes_late,
                    "minutes_early": r.minutes_early,
                    "break_minutes": r.total_break_minutes,
                    "duration_hours": r.duration_hours,
                    "status": r.status.value,
                    "approval_status": r.approval_status.value if r.approval_status else "-",
                    "penalty_amount": r.total_penalty_amount,
                }
            )

        summary = AttendanceSummary(
            employee_id=employee_id,
            start=start,
            end=end,
            present_days=len(records),
            late_days=sum(1 for r in records if r.is_late),
            early_leave_days=sum(1 for r in records if r.is_early_leave),
            missed_clock_outs=sum(1 for r in records if r.is_missed_clock_out),
            pending_approvals=sum(1 for r in records if r.is_pending_approval),
            total_late_minutes=sum(r.minutes_late for r in records),
            total_hours=round(total_hours, 2),
            average_hours=round(total_hours / finished, 2) if finished else 0.0,
            overtime_hours=round(overtime, 2),
            penalty_totals=penalty_totals,
            total_penalty_amount=round(sum(penalty_totals.values()), 2),
        )
        return SummaryReport(rows=rows, summary=summary)
