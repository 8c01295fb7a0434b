from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional

from ..core.enums import CalculationType, PenaltyType


@dataclass(frozen=True)
class ProgressiveRule:
    """Band of a progressive policy: occurrences ``from_occurrence``..``to_occurrence``."""

    from_occurrence: int
    to_occurrence: Optional[int] = None
    amount: Optional[float] = None
    percentage: Optional[float] = None
    description: Optional[str] = None

    def covers(self, occurrence: int) -> bool:
        if occurrence < self.from_occurrence:
            return False
        return self.to_occurrence is None or occurrence <= self.to_occurrence


@dataclass(frozen=True)
class PenaltyPolicy:
    """Tenant-configured rule mapping a violation type to a monetary charge.

    Empty ``applicable_*`` tuples mean the policy applies to everyone.
    Lower ``priority`` wins when several policies match the same violation.
    """

    policy_id: str
    name: str
    penalty_type: PenaltyType
    calculation_type: CalculationType
    code: str = ""
    amount: Optional[float] = None
    percentage: Optional[float] = None
    hourly_rate_multiplier: Optional[float] = None
    daily_rate_multiplier: Optional[float] = None
    threshold_minutes: Optional[int] = None
    grace_period_minutes: Optional[int] = None
    grace_occurrences: Optional[int] = None
    is_progressive: bool = False
    progressive_rules: tuple[ProgressiveRule, ...] = ()
    applicable_departments: tuple[str, ...] = ()
    applicable_positions: tuple[str, ...] = ()
    applicable_employment_types: tuple[str, ...] = ()
    auto_apply: bool = True
    requires_approval: bool = False
    max_penalty_per_month: Optional[float] = None
    effective_date: Optional[date] = None
    expiry_date: Optional[date] = None
    is_active: bool = True
    priority: int = 100
    tenant_id: str = "default"

    @property
    def uses_progressive_rules(self) -> bool:
        return self.is_progressive or self.calculation_type == CalculationType.PROGRESSIVE


@dataclass(frozen=True)
class Penalty:
    """A charge appended to an attendance record."""

    policy_id: str
    penalty_type: PenaltyType
    amount: float
    description: str


@dataclass(frozen=True)
class PenaltyFacts:
    """Violation facts for one employee-day, as seen by the evaluator."""

    employee_id: str
    work_date: date
    minutes_late: int = 0
    minutes_early: int = 0
    is_absent: bool = False
    is_missed_clock_out: bool = False
    is_excused_late: bool = False
    is_approved_early_leave: bool = False


@dataclass(frozen=True)
class CalculationContext:
    """Inputs a calculation strategy may need beyond the policy itself."""

    minutes: int = 0
    occurrence: int = 1
    base_salary: Optional[float] = None
    hourly_rate: Optional[float] = None
    daily_rate: Optional[float] = None
