from __future__ import annotations

from ..model import CalculationContext, PenaltyPolicy
from .base import PenaltyCalculation


class FixedAmountCalculation(PenaltyCalculation):
    """Same amount for every occurrence."""

    def amount(self, policy: PenaltyPolicy, context: CalculationContext) -> float:
        return float(policy.amount or 0)


class PercentageCalculation(PenaltyCalculation):
    """Percentage of the employee's base salary."""

    def amount(self, policy: PenaltyPolicy, context: CalculationContext) -> float:
        if not policy.percentage or not context.base_salary:
            return 0.0
        return context.base_salary * policy.percentage / 100
