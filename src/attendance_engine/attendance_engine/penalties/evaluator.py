from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Iterable, Optional, Sequence

from ..common.datetime_utils import month_bounds
from ..core.enums import PenaltyType
from ..employees.model import EmployeeProfile
from ..policies.repository import OccurrenceCounter
from ..policies.selection import select_penalty_policy
from .factory import PenaltyCalculationFactory
from .model import CalculationContext, Penalty, PenaltyFacts, PenaltyPolicy

logger = logging.getLogger(__name__)

# Violations measured in minutes; grace period and threshold only apply to these.
_MINUTE_BASED = (PenaltyType.LATE, PenaltyType.EARLY_LEAVE)


class PenaltyEvaluator:
    """Turns a day's violation facts into an ordered list of penalties.

    Note: Prior occurrences are read through the injected counter; the
    evaluator itself never touches storage.
    """

    def __init__(
        self,
        occurrences: OccurrenceCounter,
        *,
        factory: Optional[PenaltyCalculationFactory] = None,
    ):
        self._occurrences = occurrences
        self._factory = factory or PenaltyCalculationFactory()

    def evaluate(
        self,
        facts: PenaltyFacts,
        policies: Sequence[PenaltyPolicy],
        profile: EmployeeProfile,
    ) -> list[Penalty]:
        penalties: list[Penalty] = []
        for penalty_type, minutes in self._violations(facts):
            penalty = self._evaluate_one(penalty_type, minutes, facts, policies, profile)
            if penalty is not None:
                penalties.append(penalty)
        return penalties

    @staticmethod
    def _violations(facts: PenaltyFacts) -> Iterable[tuple[PenaltyType, int]]:
        if facts.minutes_late > 0 and not facts.is_excused_late:
            yield PenaltyType.LATE, facts.minutes_late
        if facts.minutes_early > 0 and not facts.is_approved_early_leave:
            yield PenaltyType.EARLY_LEAVE, facts.minutes_early
        if facts.is_absent:
            yield PenaltyType.ABSENCE, 0
        if facts.is_missed_clock_out:
            yield PenaltyType.NO_CLOCK_OUT, 0

    def _evaluate_one(
        self,
        penalty_type: PenaltyType,
        minutes: int,
        facts: PenaltyFacts,
        policies: Sequence[PenaltyPolicy],
        profile: EmployeeProfile,
    ) -> Optional[Penalty]:
        policy = select_penalty_policy(policies, penalty_type, profile, as_of=facts.work_date)
        if policy is None:
            logger.debug("no %s policy applies to employee %s", penalty_type.value, facts.employee_id)
            return None

        if penalty_type in _MINUTE_BASED:
            if policy.grace_period_minutes and minutes <= policy.grace_period_minutes:
                return None
            if policy.threshold_minutes and minutes < policy.threshold_minutes:
                return None

        occurrence = 1
        if policy.uses_progressive_rules or policy.grace_occurrences:
            occurrence = self._occurrence_number(facts, penalty_type)
            if policy.grace_occurrences and occurrence <= policy.grace_occurrences:
                return None

        context = CalculationContext(
            minutes=minutes,
            occurrence=occurrence,
            base_salary=profile.base_salary,
            hourly_rate=profile.hourly_rate,
            daily_rate=profile.daily_rate,
        )
        amount = self._factory.for_policy(policy).amount(policy, context)
        if policy.max_penalty_per_month is not None:
            remaining = policy.max_penalty_per_month - self._charged_this_month(facts, policy)
            if remaining <= 0:
                logger.debug("monthly cap of %s reached for employee %s", policy.policy_id, facts.employee_id)
                return None
            amount = min(amount, remaining)
        amount = round(amount, 2)
        if amount <= 0:
            return None

        return Penalty(
            policy_id=policy.policy_id,
            penalty_type=penalty_type,
            amount=amount,
            description=_describe(policy, minutes),
        )

    def _occurrence_number(self, facts: PenaltyFacts, penalty_type: PenaltyType) -> int:
        period = _prior_period(facts.work_date)
        if period is None:
            return 1
        prior = self._occurrences.count_prior_occurrences(facts.employee_id, penalty_type, *period)
        return int(prior) + 1

    def _charged_this_month(self, facts: PenaltyFacts, policy: PenaltyPolicy) -> float:
        period = _prior_period(facts.work_date)
        if period is None:
            return 0.0
        return float(self._occurrences.sum_prior_penalties(facts.employee_id, policy.policy_id, *period))


def _prior_period(work_date: date) -> Optional[tuple[date, date]]:
    # Calendar month of the event, up to the day before it.
    period_start, _ = month_bounds(work_date)
    period_end = work_date - timedelta(days=1)
    if period_end < period_start:
        return None
    return period_start, period_end


def _describe(policy: PenaltyPolicy, minutes: int) -> str:
    if minutes:
        return f"{policy.name} ({minutes} min)"
    return policy.name
