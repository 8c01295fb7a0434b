from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class EmployeeProfile:
    """Employee data the engine needs: snapshot fields, penalty scope and salary inputs.

    Note: Copied onto attendance records at write time; later renames are not propagated.
    """

    employee_id: str
    first_name: str
    last_name: str
    user_id: Optional[str] = None
    department_id: Optional[str] = None
    department_name: Optional[str] = None
    position_id: Optional[str] = None
    employment_type: Optional[str] = None
    manager_id: Optional[str] = None
    base_salary: Optional[float] = None
    hourly_rate: Optional[float] = None
    daily_rate: Optional[float] = None
    tenant_id: str = "default"

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()
