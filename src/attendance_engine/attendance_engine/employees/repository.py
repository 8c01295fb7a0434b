from __future__ import annotations

from typing import TYPE_CHECKING, Optional, Protocol

from .model import EmployeeProfile

if TYPE_CHECKING:
    from ..attendance.model import AttendanceRecord


class EmployeeDirectory(Protocol):
    """Repository interface for employee profiles.

    Note (DIP): services depend on this interface, not on a concrete database.
    """

    def get_employee_profile(self, employee_id: str) -> Optional[EmployeeProfile]:
        raise NotImplementedError


class AccessPolicy(Protocol):
    """Role checks the engine delegates instead of implementing RBAC itself."""

    def is_authorized_approver(self, actor_user_id: str, record: "AttendanceRecord") -> bool:
        raise NotImplementedError

    def can_create_manual_entry(self, actor_user_id: str) -> bool:
        raise NotImplementedError
