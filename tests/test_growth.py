from __future__ import annotations

from datetime import date

import math

import pytest

from sale_readiness.domain.models.financials import FinancialPeriod, IncomeStatement, PeriodRange
from sale_readiness.domain.models.policy import BusinessPattern, ValuationPolicy
from sale_readiness.domain.services.calculations import (
    BusinessPatternClassifier,
    PeriodWeightGenerator,
)


def _mk_period(y: int, revenue: float, ebit: float = 10.0) -> FinancialPeriod:
    return FinancialPeriod(
        period_range=PeriodRange(start_date=date(y, 1, 1), end_date=date(y, 12, 31)),
        income_statement=IncomeStatement(revenue=revenue, ebit=ebit),
    )


def test_revenue_growth_above_threshold_is_growth():
    # newest first: 100 -> 116 is 16% growth
    periods = [_mk_period(2023, 116.0), _mk_period(2022, 100.0)]
    assessment = BusinessPatternClassifier().classify(periods)

    assert assessment.pattern is BusinessPattern.GROWTH
    assert abs(assessment.growth_rate - 0.16) < 1e-9


def test_ebit_sign_changes_make_business_cyclical():
    periods = [
        _mk_period(2023, 100.0, ebit=10.0),
        _mk_period(2022, 100.0, ebit=-5.0),
        _mk_period(2021, 100.0, ebit=8.0),
    ]
    assessment = BusinessPatternClassifier().classify(periods)

    assert assessment.pattern is BusinessPattern.CYCLICAL
    assert assessment.sign_change
    assert assessment.volatility_score == 0.0


def test_flat_history_is_stable():
    periods = [_mk_period(2023, 100.0), _mk_period(2022, 102.0)]
    assessment = BusinessPatternClassifier().classify(periods)

    assert assessment.pattern is BusinessPattern.STABLE
    assert abs(assessment.volatility_score - 1.0 / 101.0) < 1e-9


def test_revenue_volatility_above_threshold_is_cyclical():
    periods = [_mk_period(2023, 100.0), _mk_period(2022, 200.0), _mk_period(2021, 100.0)]
    assessment = BusinessPatternClassifier().classify(periods)

    assert assessment.growth_rate == 0.0
    assert assessment.volatility_score > 0.25
    assert assessment.pattern is BusinessPattern.CYCLICAL


def test_single_period_defaults_to_stable():
    assessment = BusinessPatternClassifier().classify([_mk_period(2023, 5_000_000.0, ebit=-3.0)])

    assert assessment.pattern is BusinessPattern.STABLE
    assert assessment.volatility_score == 0.0
    assert assessment.growth_rate == 0.0


def test_growth_rate_uses_only_positive_revenues():
    # newest period has no revenue; CAGR runs over the filtered [150, 100] pair
    periods = [_mk_period(2023, 0.0), _mk_period(2022, 150.0), _mk_period(2021, 100.0)]
    assessment = BusinessPatternClassifier().classify(periods)

    assert abs(assessment.growth_rate - 0.5) < 1e-9
    assert assessment.pattern is BusinessPattern.GROWTH


def test_no_positive_revenue_gives_zero_metrics():
    periods = [_mk_period(2023, 0.0, ebit=5.0), _mk_period(2022, -10.0, ebit=5.0)]
    assessment = BusinessPatternClassifier().classify(periods)

    assert assessment.growth_rate == 0.0
    assert assessment.volatility_score == 0.0
    assert assessment.pattern is BusinessPattern.STABLE


@pytest.mark.parametrize("pattern", list(BusinessPattern))
@pytest.mark.parametrize("count", [1, 2, 3, 5, 8])
def test_weights_are_normalized_and_decay(pattern, count):
    weights = PeriodWeightGenerator().weights(pattern, count)

    assert len(weights) == count
    assert math.isclose(sum(weights), 1.0, rel_tol=1e-12)
    assert all(a >= b for a, b in zip(weights, weights[1:]))


def test_growth_weights_match_decay_formula():
    weights = PeriodWeightGenerator().weights(BusinessPattern.GROWTH, 3)
    total = 1.0 + 0.1 + 0.01

    assert abs(weights[0] - 1.0 / total) < 1e-9
    assert abs(weights[1] - 0.1 / total) < 1e-9
    assert abs(weights[2] - 0.01 / total) < 1e-9


def test_higher_alpha_concentrates_on_newest_period():
    gen = PeriodWeightGenerator()
    growth = gen.weights(BusinessPattern.GROWTH, 4)
    stable = gen.weights(BusinessPattern.STABLE, 4)
    cyclical = gen.weights(BusinessPattern.CYCLICAL, 4)

    assert growth[0] > stable[0] > cyclical[0]


def test_unknown_label_falls_back_to_stable_alpha():
    gen = PeriodWeightGenerator()
    assert gen.weights("seasonal", 3) == gen.weights(BusinessPattern.STABLE, 3)


def test_generated_weighting_carries_traceability_fields():
    periods = [_mk_period(2023, 116.0), _mk_period(2022, 100.0)]
    assessment = BusinessPatternClassifier().classify(periods)
    weighting = PeriodWeightGenerator().generate(assessment, len(periods))

    assert weighting.business_pattern is BusinessPattern.GROWTH
    assert weighting.alpha == 0.9
    assert weighting.method == "exponential"
    assert weighting.period_count == 2
    assert "Growth" in weighting.explanation
    assert abs(weighting.growth_rate - 0.16) < 1e-9


def test_policy_is_a_hashable_value():
    default = ValuationPolicy()
    same = ValuationPolicy()

    assert default == same
    assert hash(default) == hash(same)
    assert len({default, same, ValuationPolicy(range_factor=0.1)}) == 2
    assert default.decay_alpha(BusinessPattern.GROWTH) == 0.9
