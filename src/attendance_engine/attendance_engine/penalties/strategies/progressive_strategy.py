from __future__ import annotations

from ..model import CalculationContext, PenaltyPolicy
from .base import PenaltyCalculation


class ProgressiveCalculation(PenaltyCalculation):
    """Rate depends on which occurrence of the period this is.

    The first band covering ``context.occurrence`` decides; a band carries
    either a flat amount or a percentage of base salary.
    """

    def amount(self, policy: PenaltyPolicy, context: CalculationContext) -> float:
        rule = next((r for r in policy.progressive_rules if r.covers(context.occurrence)), None)
        if rule is None:
            return 0.0
        if rule.amount:
            return float(rule.amount)
        if rule.percentage and context.base_salary:
            return context.base_salary * rule.percentage / 100
        return 0.0
