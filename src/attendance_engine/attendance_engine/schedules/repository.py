from __future__ import annotations

from typing import Optional, Protocol

from .model import WorkSchedulePolicy


class ScheduleRepository(Protocol):
    def get_employee_schedule_snapshot(self, employee_id: str) -> Optional[WorkSchedulePolicy]:
        """Work schedule policy currently assigned to the employee.

        None means the employee has no schedule; callers fail closed.
        """

        raise NotImplementedError
