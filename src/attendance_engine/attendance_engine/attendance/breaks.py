from __future__ import annotations

import logging
import uuid
from dataclasses import replace
from datetime import datetime
from typing import Callable, Optional

from ..common.datetime_utils import now_local
from ..core.enums import BreakType
from ..core.exceptions import ErrorKind
from ..timing.calculations import aggregate_breaks, break_duration_minutes
from .model import BreakRecord
from .outcome import AttendanceOutcome
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


class BreakService:
    """Start and end breaks on today's open record.

    One break may be open at a time; breaks never overlap and a closed
    break keeps its end time.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        *,
        tenant_timezone: Optional[str] = None,
        id_factory: Callable[[], str] | None = None,
    ):
        self._attendance = attendance
        self._tz = tenant_timezone
        self._new_id = id_factory or (lambda: uuid.uuid4().hex)

    def start_break(
        self,
        employee_id: str,
        *,
        break_type: BreakType = BreakType.REST,
        scheduled_duration_minutes: int = 0,
        is_paid: bool = False,
        now: datetime | None = None,
    ) -> AttendanceOutcome:
        now = now or now_local(self._tz)

        record = self._attendance.get_for_employee_and_date(employee_id, now.date())
        if record is None or not record.is_clocked_in:
            return AttendanceOutcome.failure(ErrorKind.NO_ACTIVE_CLOCK_IN, "No active clock-in for today")
        if record.open_break is not None:
            return AttendanceOutcome.failure(ErrorKind.BREAK_ALREADY_OPEN, "End the current break first")
        if now < record.clock_in_time:
            return AttendanceOutcome.failure(ErrorKind.INVALID_BREAK_WINDOW, "Break cannot start before clock-in")
        last_end = max((b.end_time for b in record.breaks if b.end_time is not None), default=None)
        if last_end is not None and now < last_end:
            return AttendanceOutcome.failure(
                ErrorKind.INVALID_BREAK_WINDOW, "Break cannot start before the previous break ended"
            )

        new_break = BreakRecord(
            break_id=self._new_id(),
            break_type=break_type,
            start_time=now,
            scheduled_duration_minutes=int(scheduled_duration_minutes),
            is_paid=is_paid,
        )
        updated = replace(
            record,
            breaks=record.breaks + (new_break,),
            updated_at=now,
            version=record.version + 1,
        )
        self._attendance.update(updated, expected_version=record.version)
        logger.info("break started", extra={"employee_id": employee_id, "break_id": new_break.break_id})
        return AttendanceOutcome.success(updated)

    def end_break(
        self,
        employee_id: str,
        break_id: Optional[str] = None,
        *,
        now: datetime | None = None,
    ) -> AttendanceOutcome:
        """End ``break_id``, or the currently open break when no id is given."""
        now = now or now_local(self._tz)

        record = self._attendance.get_for_employee_and_date(employee_id, now.date())
        if record is None or not record.is_clocked_in:
            return AttendanceOutcome.failure(ErrorKind.NO_ACTIVE_CLOCK_IN, "No active clock-in for today")

        if break_id is None:
            target = record.open_break
        else:
            target = next((b for b in record.breaks if b.break_id == break_id), None)
        if target is None:
            return AttendanceOutcome.failure(ErrorKind.NO_OPEN_BREAK, "No open break to end")
        if not target.is_open:
            return AttendanceOutcome.failure(ErrorKind.BREAK_ALREADY_CLOSED, "Break has already ended")
        if now <= target.start_time:
            return AttendanceOutcome.failure(ErrorKind.INVALID_BREAK_WINDOW, "Break end must be after its start")

        closed = replace(target, end_time=now, duration_minutes=break_duration_minutes(target.start_time, now))
        breaks = tuple(closed if b.break_id == target.break_id else b for b in record.breaks)
        summary = aggregate_breaks(breaks)

        updated = replace(
            record,
            breaks=breaks,
            total_break_minutes=summary.total_minutes,
            unpaid_break_minutes=summary.unpaid_minutes,
            updated_at=now,
            version=record.version + 1,
        )
        self._attendance.update(updated, expected_version=record.version)
        logger.info(
            "break ended",
            extra={"employee_id": employee_id, "break_id": closed.break_id, "duration_minutes": closed.duration_minutes},
        )
        return AttendanceOutcome.success(updated)
