from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from ..core.enums import PenaltyType
from .model import AttendanceRecord


class AttendanceRepository(Protocol):
    def get_by_id(self, record_id: str) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def get_for_employee_and_date(self, employee_id: str, work_date: date) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def insert(self, record: AttendanceRecord) -> None:
        """Write a new record.

        Raises DuplicateRecordError when (employee_id, work_date) already exists.
        """

        raise NotImplementedError

    def update(self, record: AttendanceRecord, *, expected_version: int) -> None:
        """Replace a stored record.

        Raises ConcurrentModificationError when the stored version is not ``expected_version``.
        """

        raise NotImplementedError

    def get_recent_for_employee(self, employee_id: str, limit: int) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def list_range(self, employee_id: str, *, start: date, end: date) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def list_pending_approvals(self, tenant_id: str, *, limit: int) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def list_open_records(self, tenant_id: str, work_date: date) -> Sequence[AttendanceRecord]:
        """Records of ``work_date`` still clocked-in and not yet flagged as missed clock-out."""

        raise NotImplementedError

    def count_prior_occurrences(
        self,
        employee_id: str,
        penalty_type: PenaltyType,
        period_start: date,
        period_end: date,
    ) -> int:
        raise NotImplementedError

    def sum_prior_penalties(
        self,
        employee_id: str,
        policy_id: str,
        period_start: date,
        period_end: date,
    ) -> float:
        raise NotImplementedError
