from __future__ import annotations

from datetime import date

from sale_readiness.domain.models.financials import (
    BalanceSheet,
    Document,
    FinancialPeriod,
    IncomeStatement,
    PeriodRange,
    ValuationMultiples,
)
from sale_readiness.domain.models.valuation import MethodApplicability, ValuationMethod
from sale_readiness.domain.services.simulation import (
    FutureScenario,
    ValuationSimulator,
    reprice_metrics,
)
from sale_readiness.domain.services.valuation import ValuationEngine

SUPPLIED = ValuationMultiples.from_values(revenue=0.5, ebit=5.0, ebitda=4.0, pe=8.0)


def make_baseline():
    period = FinancialPeriod(
        period_range=PeriodRange(end_date=date(2023, 12, 31)),
        income_statement=IncomeStatement(
            revenue=1_000_000.0, ebit=100_000.0, depreciation=-20_000.0, net_income=80_000.0
        ),
        balance_sheet=BalanceSheet(equity=300_000.0),
        valuation_multiples=SUPPLIED,
    )
    return ValuationEngine().run([Document(name="fy2023", periods=(period,))]).headline


def test_baseline_uses_completed_ebitda():
    baseline = make_baseline()
    metrics = baseline.metrics

    assert baseline.weighted_financials.ebitda == 120_000.0
    assert metrics.method(ValuationMethod.EBITDA).equity_value == 480_000.0
    assert metrics.methods_included_count == 5
    assert abs(metrics.average_equity_valuation - 484_000.0) < 1e-6


def test_simulation_with_selected_methods():
    baseline = make_baseline()
    outcome = ValuationSimulator().simulate(
        baseline,
        multiples=ValuationMultiples.from_values(revenue=1.0, ebit=5.0, ebitda=4.0, pe=8.0),
        selected_methods=[ValuationMethod.REVENUE],
    )

    assert abs(outcome.metrics.average_equity_valuation - 650_000.0) < 1e-6
    assert outcome.metrics.method(ValuationMethod.EBIT).applicability is MethodApplicability.NOT_APPLICABLE
    assert outcome.metrics.included_sources == ("book_value", "revenue")
    assert abs(outcome.change.absolute - 166_000.0) < 1e-6
    assert abs(outcome.change.percentage - 166_000.0 / 484_000.0 * 100.0) < 1e-9


def test_growth_and_margin_scenario():
    baseline = make_baseline()
    outcome = ValuationSimulator().simulate(
        baseline, scenario=FutureScenario(revenue_growth=0.1, target_ebit_margin=0.2)
    )
    figures = outcome.adjusted_financials

    assert abs(figures.revenue - 1_100_000.0) < 1e-6
    assert abs(figures.ebit - 220_000.0) < 1e-6
    assert abs(figures.ebitda - 240_000.0) < 1e-6
    assert figures.net_income == 80_000.0
    assert abs(outcome.metrics.average_equity_valuation - 710_000.0) < 1e-6


def test_disabled_scenario_reproduces_baseline():
    baseline = make_baseline()
    outcome = ValuationSimulator().simulate(
        baseline,
        scenario=FutureScenario(revenue_growth=0.5, target_ebit_margin=0.5, enabled=False),
    )

    assert outcome.metrics == baseline.metrics
    assert outcome.change.absolute == 0.0
    assert outcome.change.percentage == 0.0


def test_change_against_zero_current_value():
    outcome = ValuationSimulator().simulate(make_baseline(), current_value=0)
    assert abs(outcome.change.absolute - 484_000.0) < 1e-6
    assert outcome.change.percentage == 0.0


def test_reprice_scales_business_methods_only():
    baseline = make_baseline()
    updated = ValuationMultiples.from_values(revenue=1.0, ebit=5.0, ebitda=4.0, pe=8.0)
    repriced = reprice_metrics(baseline.metrics, SUPPLIED, updated)

    assert repriced.book_value == baseline.metrics.book_value
    assert abs(repriced.method(ValuationMethod.REVENUE).equity_value - 1_000_000.0) < 1e-6
    assert repriced.method(ValuationMethod.REVENUE).multiple == 1.0
    assert abs(repriced.average_equity_valuation - 584_000.0) < 1e-6


def test_reprice_drops_method_without_original_multiple():
    baseline = make_baseline()
    original = ValuationMultiples.from_values(revenue=0.0, ebit=5.0, ebitda=4.0, pe=8.0)
    repriced = reprice_metrics(baseline.metrics, original, SUPPLIED)
    revenue = repriced.method(ValuationMethod.REVENUE)

    assert revenue.applicability is MethodApplicability.NOT_APPLICABLE
    assert repriced.methods_included_count == 4
