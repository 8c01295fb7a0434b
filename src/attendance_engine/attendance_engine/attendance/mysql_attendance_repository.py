from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

import mysql.connector

from ..core.enums import ApprovalStatus, AttendanceStatus, PenaltyType
from ..core.exceptions import ConcurrentModificationError, DuplicateRecordError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, dump_json, fetchall, fetchone, is_duplicate_key, load_json
from .model import AttendanceRecord
from .repository import AttendanceRepository
from .serialization import record_from_document, record_to_document

# Violations tracked as indexed columns on attendance_records.
_FACT_COLUMNS = {
    PenaltyType.LATE: "minutes_late > 0",
    PenaltyType.EARLY_LEAVE: "minutes_early > 0",
    PenaltyType.NO_CLOCK_OUT: "is_missed_clock_out = 1",
}


class MySQLAttendanceRepository(AttendanceRepository):
    """Attendance records stored as JSON documents with indexed identity columns.

    Note: UNIQUE(employee_id, work_date) turns the duplicate clock-in race into
    a failed insert; updates are guarded by the ``version`` column.
    """

    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    @staticmethod
    def _row_to_record(row: dict) -> AttendanceRecord:
        return record_from_document(load_json(row["document"], {}))

    def get_by_id(self, record_id: str) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT document FROM attendance_records WHERE record_id=%s", (record_id,))
            row = fetchone(cur)
            return self._row_to_record(row) if row else None

    def get_for_employee_and_date(self, employee_id: str, work_date: date) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT document FROM attendance_records WHERE employee_id=%s AND work_date=%s",
                (employee_id, work_date),
            )
            row = fetchone(cur)
            return self._row_to_record(row) if row else None

    def insert(self, record: AttendanceRecord) -> None:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO attendance_records(
                        record_id, tenant_id, employee_id, work_date, status, approval_status,
                        minutes_late, minutes_early, is_missed_clock_out, document, version
                    )
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                    """,
                    self._columns(record) + (record.version,),
                )
                self._write_penalties(cur, record)
        except mysql.connector.IntegrityError as e:
            if is_duplicate_key(e):
                raise DuplicateRecordError(
                    f"Attendance record already exists for {record.employee_id} on {record.work_date}"
                ) from e
            raise

    def update(self, record: AttendanceRecord, *, expected_version: int) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            record_id, tenant_id, employee_id, work_date, status, approval_status, late, early, missed, doc = (
                self._columns(record)
            )
            cur.execute(
                """
                UPDATE attendance_records
                SET status=%s, approval_status=%s, minutes_late=%s, minutes_early=%s,
                    is_missed_clock_out=%s, document=%s, version=%s
                WHERE record_id=%s AND version=%s
                """,
                (status, approval_status, late, early, missed, doc, record.version, record_id, int(expected_version)),
            )
            if cur.rowcount == 0:
                raise ConcurrentModificationError(
                    f"Attendance record {record_id} changed since version {expected_version}"
                )
            cur.execute("DELETE FROM attendance_penalties WHERE record_id=%s", (record_id,))
            self._write_penalties(cur, record)

    @staticmethod
    def _columns(record: AttendanceRecord) -> tuple:
        return (
            record.record_id,
            record.tenant_id,
            record.employee_id,
            record.work_date,
            record.status.value,
            record.approval_status.value if record.approval_status else None,
            int(record.minutes_late),
            int(record.minutes_early),
            1 if record.is_missed_clock_out else 0,
            dump_json(record_to_document(record)),
        )

    @staticmethod
    def _write_penalties(cur, record: AttendanceRecord) -> None:
        for p in record.penalties:
            cur.execute(
                """
                INSERT INTO attendance_penalties(record_id, employee_id, work_date, penalty_type, policy_id, amount)
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                (record.record_id, record.employee_id, record.work_date, p.penalty_type.value, p.policy_id, p.amount),
            )

    def get_recent_for_employee(self, employee_id: str, limit: int) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT document
                FROM attendance_records
                WHERE employee_id=%s
                ORDER BY work_date DESC
                LIMIT %s
                """,
                (employee_id, int(limit)),
            )
            return [self._row_to_record(r) for r in fetchall(cur)]

    def list_range(self, employee_id: str, *, start: date, end: date) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT document
                FROM attendance_records
                WHERE employee_id=%s AND work_date BETWEEN %s AND %s
                ORDER BY work_date ASC
                """,
                (employee_id, start, end),
            )
            return [self._row_to_record(r) for r in fetchall(cur)]

    def list_pending_approvals(self, tenant_id: str, *, limit: int) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT document
                FROM attendance_records
                WHERE tenant_id=%s AND approval_status=%s
                ORDER BY work_date DESC
                LIMIT %s
                """,
                (tenant_id, ApprovalStatus.PENDING.value, int(limit)),
            )
            return [self._row_to_record(r) for r in fetchall(cur)]

    def list_open_records(self, tenant_id: str, work_date: date) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT document
                FROM attendance_records
                WHERE tenant_id=%s AND work_date=%s AND status=%s AND is_missed_clock_out=0
                ORDER BY employee_id
                """,
                (tenant_id, work_date, AttendanceStatus.CLOCKED_IN.value),
            )
            return [self._row_to_record(r) for r in fetchall(cur)]

    def count_prior_occurrences(
        self,
        employee_id: str,
        penalty_type: PenaltyType,
        period_start: date,
        period_end: date,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            condition = _FACT_COLUMNS.get(penalty_type)
            if condition is not None:
                cur.execute(
                    f"""
                    SELECT COUNT(*) AS n
                    FROM attendance_records
                    WHERE employee_id=%s AND work_date BETWEEN %s AND %s AND {condition}
                    """,
                    (employee_id, period_start, period_end),
                )
            else:
                cur.execute(
                    """
                    SELECT COUNT(DISTINCT work_date) AS n
                    FROM attendance_penalties
                    WHERE employee_id=%s AND penalty_type=%s AND work_date BETWEEN %s AND %s
                    """,
                    (employee_id, penalty_type.value, period_start, period_end),
                )
            row = fetchone(cur)
            return int(row["n"]) if row else 0

    def sum_prior_penalties(
        self,
        employee_id: str,
        policy_id: str,
        period_start: date,
        period_end: date,
    ) -> float:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT COALESCE(SUM(amount), 0) AS total
                FROM attendance_penalties
                WHERE employee_id=%s AND policy_id=%s AND work_date BETWEEN %s AND %s
                """,
                (employee_id, policy_id, period_start, period_end),
            )
            row = fetchone(cur)
            return float(row["total"]) if row else 0.0
