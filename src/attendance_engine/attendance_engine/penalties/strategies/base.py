from __future__ import annotations

from abc import ABC, abstractmethod

from ..model import CalculationContext, PenaltyPolicy


class PenaltyCalculation(ABC):
    """Strategy Pattern: encapsulate how a policy turns a violation into an amount."""

    @abstractmethod
    def amount(self, policy: PenaltyPolicy, context: CalculationContext) -> float:
        raise NotImplementedError
