from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime
from typing import Optional, Sequence

from ..attendance.model import AttendanceRecord
from ..attendance.outcome import AttendanceOutcome
from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import now_local
from ..core.constants import DEFAULT_TENANT_ID
from ..core.enums import ApprovalStatus
from ..core.exceptions import ErrorKind
from ..employees.repository import AccessPolicy

logger = logging.getLogger(__name__)


class ApprovalService:
    """Decide pending attendance records.

    A record leaves ``pending`` exactly once; deciding it again is an error
    and leaves the record untouched.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        access: AccessPolicy,
        *,
        tenant_id: str = DEFAULT_TENANT_ID,
        tenant_timezone: Optional[str] = None,
    ):
        self._attendance = attendance
        self._access = access
        self._tenant_id = tenant_id
        self._tz = tenant_timezone

    def approve(
        self,
        record_id: str,
        *,
        actor_user_id: str,
        notes: Optional[str] = None,
        now: datetime | None = None,
    ) -> AttendanceOutcome:
        return self._decide(record_id, ApprovalStatus.APPROVED, actor_user_id=actor_user_id, notes=notes, now=now)

    def reject(
        self,
        record_id: str,
        *,
        actor_user_id: str,
        notes: Optional[str] = None,
        now: datetime | None = None,
    ) -> AttendanceOutcome:
        return self._decide(record_id, ApprovalStatus.REJECTED, actor_user_id=actor_user_id, notes=notes, now=now)

    def list_pending(self, *, limit: int = 50) -> Sequence[AttendanceRecord]:
        return self._attendance.list_pending_approvals(self._tenant_id, limit=int(limit))

    def _decide(
        self,
        record_id: str,
        decision: ApprovalStatus,
        *,
        actor_user_id: str,
        notes: Optional[str],
        now: datetime | None,
    ) -> AttendanceOutcome:
        now = now or now_local(self._tz)

        record = self._attendance.get_by_id(record_id)
        if record is None:
            return AttendanceOutcome.failure(ErrorKind.RECORD_NOT_FOUND, "Attendance record not found")
        if record.approval_status == ApprovalStatus.APPROVED:
            return AttendanceOutcome.failure(ErrorKind.ALREADY_APPROVED, "Attendance record is already approved")
        if record.approval_status == ApprovalStatus.REJECTED:
            return AttendanceOutcome.failure(ErrorKind.ALREADY_REJECTED, "Attendance record is already rejected")
        if record.approval_status != ApprovalStatus.PENDING:
            return AttendanceOutcome.failure(
                ErrorKind.APPROVAL_NOT_REQUIRED, "Attendance record does not require approval"
            )

        if not self._access.is_authorized_approver(actor_user_id, record):
            logger.warning("user %s is not allowed to decide record %s", actor_user_id, record_id)
            return AttendanceOutcome.failure(
                ErrorKind.UNAUTHORIZED_APPROVAL, "You do not have permission to approve this record"
            )

        updated = replace(
            record,
            approval_status=decision,
            requires_approval=decision != ApprovalStatus.APPROVED,
            approved_by=actor_user_id,
            approval_date=now,
            approval_notes=notes,
            updated_by=actor_user_id,
            updated_at=now,
            version=record.version + 1,
        )
        self._attendance.update(updated, expected_version=record.version)

        logger.info(
            "attendance record %s",
            decision.value,
            extra={"record_id": record_id, "actor_user_id": actor_user_id},
        )
        return AttendanceOutcome.success(updated)
