"""What-if tooling on top of a finished valuation.

- ``ValuationSimulator`` re-values the headline figures with other multiples,
  a subset of methods and an optional growth/margin scenario.
- ``reprice_metrics`` rescales an existing valuation to new multiples without
  touching the underlying figures.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Dict, Iterable, Optional

from sale_readiness.domain.models.financials import ValuationMultiples
from sale_readiness.domain.models.policy import DEFAULT_POLICY, ValuationPolicy
from sale_readiness.domain.models.valuation import (
    MethodApplicability,
    MethodValuation,
    ScopeValuation,
    ValuationMethod,
    ValuationMetrics,
    WeightedFinancials,
)
from sale_readiness.domain.services.calculations import EbitdaCompleter
from sale_readiness.domain.services.normalization import to_number
from sale_readiness.domain.services.valuation import EquityValuationCalculator, ValuationAverager

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FutureScenario:
    revenue_growth: float = 0.0
    target_ebit_margin: float = 0.0
    enabled: bool = True


@dataclass(frozen=True)
class ValueChange:
    absolute: float = 0.0
    percentage: float = 0.0


@dataclass(frozen=True)
class SimulationResult:
    adjusted_financials: WeightedFinancials
    metrics: ValuationMetrics
    change: ValueChange


class ValuationSimulator:
    """Re-run the equity methods on adjusted figures and multiples."""

    def __init__(self, policy: ValuationPolicy = DEFAULT_POLICY) -> None:
        self._completer = EbitdaCompleter(policy)
        self._calculator = EquityValuationCalculator()
        self._averager = ValuationAverager(policy)

    def adjust(self, figures: WeightedFinancials, depreciation: float, scenario: Optional[FutureScenario]) -> WeightedFinancials:
        if scenario is None or not scenario.enabled:
            return figures
        revenue = figures.revenue * (1.0 + to_number(scenario.revenue_growth))
        ebit = revenue * to_number(scenario.target_ebit_margin)
        ebitda = self._completer.estimate(ebit, to_number(depreciation))
        return replace(figures, revenue=revenue, ebit=ebit, ebitda=ebitda)

    def simulate(
        self,
        baseline: ScopeValuation,
        multiples: Optional[ValuationMultiples] = None,
        selected_methods: Optional[Iterable[ValuationMethod]] = None,
        scenario: Optional[FutureScenario] = None,
        current_value: Optional[float] = None,
    ) -> SimulationResult:
        latest = baseline.latest_period
        multiples = multiples or latest.valuation_multiples
        basis = self._calculator.balance_basis(latest)
        figures = self.adjust(baseline.weighted_financials, latest.income_statement.depreciation, scenario)

        methods = self._calculator.methods(figures, multiples, basis.net_debt)
        if selected_methods is not None:
            selected = set(selected_methods)
            methods = tuple(
                item if item.method in selected else _not_applicable(item)
                for item in methods
            )
        outcome = self._averager.average(basis.book_value, basis.asset_based_value, methods)
        metrics = ValuationMetrics(
            book_value=basis.book_value,
            net_debt=basis.net_debt,
            asset_based_value=basis.asset_based_value,
            methods=methods,
            average_equity_valuation=outcome.average,
            methods_included_count=outcome.count,
            equity_valuation_range=outcome.equity_range,
            included_sources=outcome.sources,
        )

        current = to_number(current_value) if current_value is not None else baseline.metrics.average_equity_valuation
        change = ValueChange(
            absolute=outcome.average - current,
            percentage=(outcome.average - current) / current * 100.0 if current > 0 else 0.0,
        )
        logger.debug("Simulated average %.2f vs current %.2f", outcome.average, current)
        return SimulationResult(adjusted_financials=figures, metrics=metrics, change=change)


def reprice_metrics(
    metrics: ValuationMetrics,
    original: ValuationMultiples,
    updated: ValuationMultiples,
    policy: ValuationPolicy = DEFAULT_POLICY,
) -> ValuationMetrics:
    """Scale each multiple-based equity value by ``updated / original`` multiple.

    Book and asset-based values do not depend on multiples and stay unchanged.
    A method whose original multiple is not positive cannot be scaled and drops out.
    """
    old = _multiple_values(original)
    new = _multiple_values(updated)
    repriced = []
    for item in metrics.methods:
        if item.applicability is MethodApplicability.NOT_APPLICABLE:
            repriced.append(item)
            continue
        before = old[item.method]
        if before <= 0:
            repriced.append(_not_applicable(item))
            continue
        factor = new[item.method] / before
        repriced.append(
            replace(
                item,
                multiple=new[item.method],
                enterprise_value=item.enterprise_value * factor,
                equity_value=item.equity_value * factor,
            )
        )

    outcome = ValuationAverager(policy).average(metrics.book_value, metrics.asset_based_value, repriced)
    return replace(
        metrics,
        methods=tuple(repriced),
        average_equity_valuation=outcome.average,
        methods_included_count=outcome.count,
        equity_valuation_range=outcome.equity_range,
        included_sources=outcome.sources,
    )


def _multiple_values(multiples: ValuationMultiples) -> Dict[ValuationMethod, float]:
    return {
        ValuationMethod.REVENUE: to_number(multiples.revenue_multiple.value),
        ValuationMethod.EBIT: to_number(multiples.ev_to_ebit.value),
        ValuationMethod.EBITDA: to_number(multiples.ev_to_ebitda.value),
        ValuationMethod.EARNINGS: to_number(multiples.price_to_earnings.value),
    }


def _not_applicable(item: MethodValuation) -> MethodValuation:
    return replace(
        item,
        applicability=MethodApplicability.NOT_APPLICABLE,
        enterprise_value=0.0,
        equity_value=0.0,
    )
