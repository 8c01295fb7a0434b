from __future__ import annotations

from typing import Optional

from ..attendance.model import AttendanceRecord
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import EmployeeProfile
from .repository import AccessPolicy, EmployeeDirectory

APPROVER_ROLES = frozenset({"manager", "hr", "admin"})
MANUAL_ENTRY_ROLES = frozenset({"hr", "admin"})


def _opt_float(value) -> Optional[float]:
    return float(value) if value is not None else None


class MySQLEmployeeDirectory(EmployeeDirectory):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_employee_profile(self, employee_id: str) -> Optional[EmployeeProfile]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT e.employee_id, e.user_id, e.tenant_id, e.first_name, e.last_name,
                       e.department_id, d.name AS department_name, e.position_id,
                       e.employment_type, e.manager_id, e.base_salary, e.hourly_rate, e.daily_rate
                FROM employees e
                LEFT JOIN departments d ON d.department_id = e.department_id
                WHERE e.employee_id=%s AND e.is_active=1
                """,
                (employee_id,),
            )
            r = fetchone(cur)
            if not r:
                return None
            return EmployeeProfile(
                employee_id=str(r["employee_id"]),
                user_id=r.get("user_id"),
                tenant_id=r.get("tenant_id") or "default",
                first_name=r["first_name"],
                last_name=r["last_name"],
                department_id=r.get("department_id"),
                department_name=r.get("department_name"),
                position_id=r.get("position_id"),
                employment_type=r.get("employment_type"),
                manager_id=r.get("manager_id"),
                base_salary=_opt_float(r.get("base_salary")),
                hourly_rate=_opt_float(r.get("hourly_rate")),
                daily_rate=_opt_float(r.get("daily_rate")),
            )


class MySQLAccessPolicy(AccessPolicy):
    """Role lookups backed by the user_roles table."""

    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _roles(self, user_id: str) -> set[str]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT role FROM user_roles WHERE user_id=%s", (user_id,))
            return {str(r["role"]).lower() for r in fetchall(cur)}

    def _is_manager_of(self, user_id: str, employee_id: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT 1 AS ok
                FROM employees e
                JOIN employees m ON m.employee_id = e.manager_id
                WHERE e.employee_id=%s AND m.user_id=%s
                """,
                (employee_id, user_id),
            )
            return fetchone(cur) is not None

    def is_authorized_approver(self, actor_user_id: str, record: AttendanceRecord) -> bool:
        if self._roles(actor_user_id) & APPROVER_ROLES:
            return True
        return self._is_manager_of(actor_user_id, record.employee_id)

    def can_create_manual_entry(self, actor_user_id: str) -> bool:
        return bool(self._roles(actor_user_id) & MANUAL_ENTRY_ROLES)
