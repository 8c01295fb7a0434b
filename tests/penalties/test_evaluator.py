from __future__ import annotations

from datetime import date

import pytest

from src.attendance_engine.attendance_engine.core.enums import CalculationType, PenaltyType
from src.attendance_engine.attendance_engine.penalties.evaluator import PenaltyEvaluator
from src.attendance_engine.attendance_engine.penalties.factory import PenaltyCalculationFactory
from src.attendance_engine.attendance_engine.penalties.model import PenaltyFacts, PenaltyPolicy, ProgressiveRule
from src.attendance_engine.attendance_engine.penalties.strategies.progressive_strategy import ProgressiveCalculation
from tests.fakes import FixedCounter, employee, late_fixed_policy

WORK_DATE = date(2024, 1, 20)


def _facts(**kwargs) -> PenaltyFacts:
    return PenaltyFacts(employee_id="emp-001", work_date=kwargs.pop("work_date", WORK_DATE), **kwargs)


def _evaluate(policies, facts, *, prior: int = 0, profile=None):
    counter = FixedCounter(prior=prior)
    penalties = PenaltyEvaluator(counter).evaluate(facts, policies, profile or employee())
    return penalties, counter


def test_late_fixed_policy_charges_flat_amount():
    penalties, _ = _evaluate([late_fixed_policy()], _facts(minutes_late=20))

    assert len(penalties) == 1
    assert penalties[0].penalty_type == PenaltyType.LATE
    assert penalties[0].amount == 100
    assert penalties[0].policy_id == "penalty-late-fixed"


def test_no_matching_policy_emits_nothing():
    penalties, _ = _evaluate([], _facts(minutes_late=20))

    assert penalties == []


def test_excused_lateness_is_not_charged():
    penalties, _ = _evaluate([late_fixed_policy()], _facts(minutes_late=20, is_excused_late=True))

    assert penalties == []


def test_grace_period_and_threshold():
    graced = late_fixed_policy(grace_period_minutes=10)
    assert _evaluate([graced], _facts(minutes_late=10))[0] == []
    assert len(_evaluate([graced], _facts(minutes_late=11))[0]) == 1

    thresholded = late_fixed_policy(threshold_minutes=15)
    assert _evaluate([thresholded], _facts(minutes_late=14))[0] == []
    assert len(_evaluate([thresholded], _facts(minutes_late=15))[0]) == 1


def test_percentage_of_base_salary():
    policy = late_fixed_policy(calculation_type=CalculationType.PERCENTAGE, amount=None, percentage=1)

    penalties, _ = _evaluate([policy], _facts(minutes_late=5))

    assert penalties[0].amount == 300


def test_hourly_rate_scales_with_minutes():
    policy = PenaltyPolicy(
        policy_id="early-hourly",
        name="Early leave",
        penalty_type=PenaltyType.EARLY_LEAVE,
        calculation_type=CalculationType.HOURLY_RATE,
        hourly_rate_multiplier=1.5,
    )

    penalties, _ = _evaluate([policy], _facts(minutes_early=30))

    assert penalties[0].amount == pytest.approx(127.5)
    assert "30 min" in penalties[0].description


def test_daily_rate_for_absence():
    policy = PenaltyPolicy(
        policy_id="absence",
        name="Absence",
        penalty_type=PenaltyType.ABSENCE,
        calculation_type=CalculationType.DAILY_RATE,
        daily_rate_multiplier=1,
    )

    penalties, _ = _evaluate([policy], _facts(is_absent=True))

    assert penalties[0].amount == 1360
    assert penalties[0].description == "Absence"


def test_progressive_rate_uses_prior_occurrences_this_month():
    policy = late_fixed_policy(
        calculation_type=CalculationType.PROGRESSIVE,
        amount=None,
        is_progressive=True,
        progressive_rules=(
            ProgressiveRule(from_occurrence=1, to_occurrence=2, amount=50),
            ProgressiveRule(from_occurrence=3, amount=200),
        ),
    )

    penalties, counter = _evaluate([policy], _facts(minutes_late=5), prior=2)

    assert penalties[0].amount == 200
    assert counter.calls == [("emp-001", PenaltyType.LATE, date(2024, 1, 1), date(2024, 1, 19))]


def test_first_day_of_month_has_no_prior_period():
    policy = late_fixed_policy(
        calculation_type=CalculationType.PROGRESSIVE,
        progressive_rules=(ProgressiveRule(from_occurrence=1, to_occurrence=1, amount=25),),
    )

    penalties, counter = _evaluate([policy], _facts(minutes_late=5, work_date=date(2024, 2, 1)), prior=7)

    assert penalties[0].amount == 25
    assert counter.calls == []


def test_grace_occurrences_make_the_first_violations_free():
    policy = late_fixed_policy(grace_occurrences=2)

    assert _evaluate([policy], _facts(minutes_late=5), prior=1)[0] == []
    assert _evaluate([policy], _facts(minutes_late=5), prior=2)[0][0].amount == 100


class _MonthLedger:
    """Answers both counter queries from the penalties charged so far."""

    def __init__(self):
        self.charged: list[tuple[date, str, float]] = []

    def count_prior_occurrences(self, employee_id, penalty_type, period_start, period_end) -> int:
        return len({day for day, _, _ in self.charged if period_start <= day <= period_end})

    def sum_prior_penalties(self, employee_id, policy_id, period_start, period_end) -> float:
        return sum(
            amount for day, pid, amount in self.charged if pid == policy_id and period_start <= day <= period_end
        )


def test_monthly_cap_limits_the_total_over_several_days():
    policy = late_fixed_policy(max_penalty_per_month=250)
    ledger = _MonthLedger()
    evaluator = PenaltyEvaluator(ledger)

    amounts = []
    for day in range(2, 7):
        work_date = date(2024, 1, day)
        penalties = evaluator.evaluate(_facts(minutes_late=20, work_date=work_date), [policy], employee())
        for p in penalties:
            ledger.charged.append((work_date, p.policy_id, p.amount))
        amounts.append([p.amount for p in penalties])

    assert amounts == [[100], [100], [50], [], []]
    assert sum(amount for _, _, amount in ledger.charged) == 250


def test_single_amount_never_exceeds_the_monthly_cap():
    penalties, _ = _evaluate([late_fixed_policy(max_penalty_per_month=40)], _facts(minutes_late=5))

    assert penalties[0].amount == 40


def test_cap_counts_what_was_already_charged():
    counter = FixedCounter(prior_total=220)
    penalties = PenaltyEvaluator(counter).evaluate(
        _facts(minutes_late=20), [late_fixed_policy(max_penalty_per_month=250)], employee()
    )

    assert [p.amount for p in penalties] == [30]


def test_scope_and_priority_select_a_single_policy():
    other_dept = late_fixed_policy(policy_id="hr-only", applicable_departments=("dept-hr",), priority=1)
    general = late_fixed_policy(policy_id="general", amount=100, priority=20)
    preferred = late_fixed_policy(policy_id="preferred", amount=75, priority=5)
    expired = late_fixed_policy(policy_id="expired", priority=0, expiry_date=date(2023, 12, 31))

    penalties, _ = _evaluate([other_dept, general, preferred, expired], _facts(minutes_late=5))

    assert [p.policy_id for p in penalties] == ["preferred"]


def test_penalties_follow_fact_order():
    early = PenaltyPolicy(
        policy_id="early-fixed",
        name="Early leave",
        penalty_type=PenaltyType.EARLY_LEAVE,
        calculation_type=CalculationType.FIXED,
        amount=80,
    )
    missed = PenaltyPolicy(
        policy_id="missed",
        name="Missed clock-out",
        penalty_type=PenaltyType.NO_CLOCK_OUT,
        calculation_type=CalculationType.FIXED,
        amount=200,
    )

    penalties, _ = _evaluate(
        [missed, early, late_fixed_policy()],
        _facts(minutes_late=5, minutes_early=10, is_missed_clock_out=True),
    )

    assert [p.penalty_type for p in penalties] == [PenaltyType.LATE, PenaltyType.EARLY_LEAVE, PenaltyType.NO_CLOCK_OUT]


def test_factory_picks_progressive_strategy_for_flagged_policy():
    policy = late_fixed_policy(is_progressive=True, progressive_rules=(ProgressiveRule(1, amount=10),))

    assert isinstance(PenaltyCalculationFactory().for_policy(policy), ProgressiveCalculation)
