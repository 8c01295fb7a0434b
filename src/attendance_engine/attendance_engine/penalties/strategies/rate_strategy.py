from __future__ import annotations

from ..model import CalculationContext, PenaltyPolicy
from .base import PenaltyCalculation


class HourlyRateCalculation(PenaltyCalculation):
    """Minutes of violation charged at a multiple of the hourly rate."""

    def amount(self, policy: PenaltyPolicy, context: CalculationContext) -> float:
        if not policy.hourly_rate_multiplier or not context.hourly_rate or not context.minutes:
            return 0.0
        return context.minutes / 60 * context.hourly_rate * policy.hourly_rate_multiplier


class DailyRateCalculation(PenaltyCalculation):
    """A multiple of the daily rate, e.g. one day's pay for an absence."""

    def amount(self, policy: PenaltyPolicy, context: CalculationContext) -> float:
        if not policy.daily_rate_multiplier or not context.daily_rate:
            return 0.0
        return context.daily_rate * policy.daily_rate_multiplier
