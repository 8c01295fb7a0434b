from __future__ import annotations

from dataclasses import dataclass

from .approvals.service import ApprovalService
from .attendance.breaks import BreakService
from .attendance.events import EventPublisher, LoggingEventPublisher
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.service import AttendanceService
from .core.settings import EngineSettings
from .database.connection import DBConfig, DatabaseConnection
from .employees.mysql_employee_repository import MySQLAccessPolicy, MySQLEmployeeDirectory
from .penalties.evaluator import PenaltyEvaluator
from .policies.mysql_policy_repository import MySQLGeofenceRepository, MySQLPenaltyPolicyRepository
from .policies.store import PolicyStore
from .reports.service import AttendanceSummaryService
from .schedules.mysql_schedule_repository import MySQLScheduleRepository


@dataclass(frozen=True)
class Container:
    conn: DatabaseConnection
    settings: EngineSettings

    attendance_repo: MySQLAttendanceRepository
    employees_repo: MySQLEmployeeDirectory
    access_policy: MySQLAccessPolicy
    policy_store: PolicyStore

    attendance_service: AttendanceService
    break_service: BreakService
    approval_service: ApprovalService
    summary_service: AttendanceSummaryService


def build_container(
    *,
    db_config: dict,
    settings: EngineSettings | None = None,
    events: EventPublisher | None = None,
) -> Container:
    settings = settings or EngineSettings()
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))

    attendance_repo = MySQLAttendanceRepository(conn)
    employees_repo = MySQLEmployeeDirectory(conn)
    access_policy = MySQLAccessPolicy(conn)
    policy_store = PolicyStore(
        MySQLScheduleRepository(conn),
        MySQLGeofenceRepository(conn),
        MySQLPenaltyPolicyRepository(conn),
    )

    attendance_service = AttendanceService(
        attendance_repo,
        employees_repo,
        policy_store,
        access_policy,
        evaluator=PenaltyEvaluator(attendance_repo),
        events=events or LoggingEventPublisher(),
        settings=settings,
    )
    break_service = BreakService(attendance_repo, tenant_timezone=settings.tenant_timezone)
    approval_service = ApprovalService(
        attendance_repo,
        access_policy,
        tenant_id=settings.tenant_id,
        tenant_timezone=settings.tenant_timezone,
    )
    summary_service = AttendanceSummaryService(attendance_repo)

    return Container(
        conn=conn,
        settings=settings,
        attendance_repo=attendance_repo,
        employees_repo=employees_repo,
        access_policy=access_policy,
        policy_store=policy_store,
        attendance_service=attendance_service,
        break_service=break_service,
        approval_service=approval_service,
        summary_service=summary_service,
    )
