from __future__ import annotations

from dataclasses import dataclass, field

from ..core.enums import CalculationType
from .model import PenaltyPolicy
from .strategies.base import PenaltyCalculation
from .strategies.fixed_strategy import FixedAmountCalculation, PercentageCalculation
from .strategies.progressive_strategy import ProgressiveCalculation
from .strategies.rate_strategy import DailyRateCalculation, HourlyRateCalculation


@dataclass
class PenaltyCalculationFactory:
    """Factory Pattern: choose the calculation strategy for a policy."""

    strategies: dict[CalculationType, PenaltyCalculation] = field(
        default_factory=lambda: {
            CalculationType.FIXED: FixedAmountCalculation(),
            CalculationType.PERCENTAGE: PercentageCalculation(),
            CalculationType.HOURLY_RATE: HourlyRateCalculation(),
            CalculationType.DAILY_RATE: DailyRateCalculation(),
            CalculationType.PROGRESSIVE: ProgressiveCalculation(),
        }
    )

    def for_policy(self, policy: PenaltyPolicy) -> PenaltyCalculation:
        if policy.uses_progressive_rules and policy.progressive_rules:
            return self.strategies[CalculationType.PROGRESSIVE]
        return self.strategies[policy.calculation_type]
