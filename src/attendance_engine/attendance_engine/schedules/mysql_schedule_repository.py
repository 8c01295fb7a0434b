from __future__ import annotations

from typing import Optional

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone, load_json
from .model import ScheduleWindow, WorkSchedulePolicy
from .repository import ScheduleRepository


class MySQLScheduleRepository(ScheduleRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_employee_schedule_snapshot(self, employee_id: str) -> Optional[WorkSchedulePolicy]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT p.policy_id, p.tenant_id, p.name, p.description, p.day_windows, p.hours_per_day
                FROM employees e
                JOIN work_schedule_policies p ON p.policy_id = e.work_schedule_policy_id
                WHERE e.employee_id=%s AND p.is_active=1
                """,
                (employee_id,),
            )
            r = fetchone(cur)
            if not r:
                return None

            # day_windows: {"monday": {"start": "08:00", "end": "17:00"}, ...}
            windows = {
                str(day).lower(): ScheduleWindow(start=str(w.get("start") or ""), end=str(w.get("end") or ""))
                for day, w in (load_json(r.get("day_windows"), {}) or {}).items()
                if w
            }
            return WorkSchedulePolicy(
                policy_id=str(r["policy_id"]),
                name=r["name"],
                day_windows=windows,
                hours_per_day=float(r.get("hours_per_day") or 8),
                tenant_id=r.get("tenant_id") or "default",
                description=r.get("description"),
            )
