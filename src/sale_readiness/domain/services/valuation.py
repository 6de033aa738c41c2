"""Equity valuation of the newest period and the full multi-period pipeline."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple

from sale_readiness.domain.models.financials import Document, FinancialPeriod, ValuationMultiples
from sale_readiness.domain.models.policy import DEFAULT_POLICY, PoolingScope, ValuationPolicy
from sale_readiness.domain.models.valuation import (
    EquityRange,
    MethodApplicability,
    MethodValuation,
    PeriodWeighting,
    ScopeValuation,
    ValuationMethod,
    ValuationMetrics,
    ValuationResult,
    ValuationStatus,
    WeightedFinancials,
)
from sale_readiness.domain.services.calculations import (
    BusinessPatternClassifier,
    EbitdaCompleter,
    PeriodWeightGenerator,
    WeightedAggregator,
    pool_periods,
    sort_newest_first,
)
from sale_readiness.domain.services.multipliers import MultiplierSettings, resolve_multiples
from sale_readiness.domain.services.normalization import to_number

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BalanceBasis:
    """Balance-sheet derived values shared by all methods."""

    book_value: float
    net_debt: float
    asset_based_value: float


@dataclass(frozen=True)
class AverageOutcome:
    average: float
    count: int
    equity_range: EquityRange
    sources: Tuple[str, ...]


class EquityValuationCalculator:
    """Turn weighted figures, balance sheet data and multiples into per-method equity values."""

    def balance_basis(self, period: FinancialPeriod) -> BalanceBasis:
        bs = period.balance_sheet
        equity = to_number(bs.equity)
        book_value = equity if equity > 0 else to_number(bs.total_assets) - to_number(bs.total_liabilities)
        net_debt = to_number(period.cash_and_debt.interest_bearing_debt) - to_number(period.cash_and_debt.cash)
        return BalanceBasis(
            book_value=book_value,
            net_debt=net_debt,
            asset_based_value=max(0.0, -net_debt),
        )

    def enterprise_method(
        self, method: ValuationMethod, figure: float, multiple: float, net_debt: float
    ) -> MethodValuation:
        figure = to_number(figure)
        multiple = to_number(multiple)
        enterprise_value = figure * multiple if (figure > 0 and multiple > 0) else 0.0
        if enterprise_value > 0:
            return MethodValuation(
                method=method,
                applicability=MethodApplicability.BUSINESS_BASED,
                figure=figure,
                multiple=multiple,
                enterprise_value=enterprise_value,
                equity_value=max(0.0, enterprise_value - net_debt),
            )
        # No business-value signal; a net-cash surplus is already in asset_based_value.
        return MethodValuation(
            method=method,
            applicability=MethodApplicability.NOT_APPLICABLE,
            figure=figure,
            multiple=multiple,
        )

    def earnings_method(self, net_income: float, pe_multiple: float) -> MethodValuation:
        net_income = to_number(net_income)
        pe_multiple = to_number(pe_multiple)
        if net_income > 0 and pe_multiple > 0:
            return MethodValuation(
                method=ValuationMethod.EARNINGS,
                applicability=MethodApplicability.BUSINESS_BASED,
                figure=net_income,
                multiple=pe_multiple,
                equity_value=net_income * pe_multiple,
            )
        return MethodValuation(
            method=ValuationMethod.EARNINGS,
            applicability=MethodApplicability.NOT_APPLICABLE,
            figure=net_income,
            multiple=pe_multiple,
        )

    def methods(
        self, figures: WeightedFinancials, multiples: ValuationMultiples, net_debt: float
    ) -> Tuple[MethodValuation, ...]:
        return (
            self.enterprise_method(ValuationMethod.REVENUE, figures.revenue, multiples.revenue_multiple.value, net_debt),
            self.enterprise_method(ValuationMethod.EBIT, figures.ebit, multiples.ev_to_ebit.value, net_debt),
            self.enterprise_method(ValuationMethod.EBITDA, figures.ebitda, multiples.ev_to_ebitda.value, net_debt),
            self.earnings_method(figures.net_income, multiples.price_to_earnings.value),
        )


class ValuationAverager:
    """Average the valid method values and build the confidence range."""

    def __init__(self, policy: ValuationPolicy = DEFAULT_POLICY) -> None:
        self._range_factor = policy.range_factor

    def average(
        self, book_value: float, asset_based_value: float, methods: Iterable[MethodValuation]
    ) -> AverageOutcome:
        values: List[float] = []
        sources: List[str] = []
        if book_value > 0:
            values.append(book_value)
            sources.append("book_value")
        if asset_based_value > 0:
            values.append(asset_based_value)
            sources.append("asset_based_value")
        for item in methods:
            if item.applicability is MethodApplicability.NOT_APPLICABLE:
                continue
            if item.equity_value > 0:
                values.append(item.equity_value)
                sources.append(item.method.value)

        if not values:
            if book_value > 0:
                values, sources = [book_value], ["book_value"]
            elif asset_based_value > 0:
                values, sources = [asset_based_value], ["asset_based_value"]

        average = sum(values) / len(values) if values else 0.0
        return AverageOutcome(
            average=average,
            count=len(values),
            equity_range=self.equity_range(average),
            sources=tuple(sources),
        )

    def equity_range(self, average: float) -> EquityRange:
        low = average * (1.0 - self._range_factor)
        high = average * (1.0 + self._range_factor)
        return EquityRange(low=low if average < 0 else max(0.0, low), high=high)


class ValuationEngine:
    """Aggregate the whole multi-period weighted valuation pipeline.

    ``run`` is a pure function of its inputs: every call builds fresh output
    records and nothing is cached between calls.
    """

    def __init__(self, policy: ValuationPolicy = DEFAULT_POLICY) -> None:
        self.policy = policy
        self.classifier = BusinessPatternClassifier(policy)
        self.weight_generator = PeriodWeightGenerator(policy)
        self.ebitda_completer = EbitdaCompleter(policy)
        self.aggregator = WeightedAggregator()
        self.calculator = EquityValuationCalculator()
        self.averager = ValuationAverager(policy)

    # Individual stages, used by the workflow nodes as well as run().

    def scopes(self, documents: Sequence[Document]) -> List[Tuple[Tuple[str, ...], List[FinancialPeriod]]]:
        """Group periods into valuation pools according to the pooling scope."""
        non_empty = [doc for doc in documents if not doc.is_empty()]
        if not non_empty:
            return []
        if self.policy.pooling_scope is PoolingScope.DOCUMENT:
            pools = [((doc.name,), sort_newest_first(doc.periods)) for doc in non_empty]
            # headline first: the pool holding the newest period
            heads = sort_newest_first(pool[1][0] for pool in pools)
            rank = {id(p): i for i, p in enumerate(heads)}
            pools.sort(key=lambda pool: rank[id(pool[1][0])])
            return pools
        return [(tuple(doc.name for doc in non_empty), pool_periods(non_empty))]

    def weigh(self, periods: Sequence[FinancialPeriod]) -> PeriodWeighting:
        assessment = self.classifier.classify(periods)
        return self.weight_generator.generate(assessment, len(periods))

    def aggregate(
        self, periods: Sequence[FinancialPeriod], weighting: PeriodWeighting
    ) -> Tuple[Tuple[FinancialPeriod, ...], WeightedFinancials]:
        completed = self.ebitda_completer.complete_all(periods)
        return completed, self.aggregator.aggregate(completed, weighting.weights)

    def appraise(
        self,
        latest: FinancialPeriod,
        figures: WeightedFinancials,
        multiplier_settings: Optional[MultiplierSettings] = None,
    ) -> ValuationMetrics:
        basis = self.calculator.balance_basis(latest)
        multiples = resolve_multiples(latest.valuation_multiples, multiplier_settings)
        methods = self.calculator.methods(figures, multiples, basis.net_debt)
        outcome = self.averager.average(basis.book_value, basis.asset_based_value, methods)
        for item in methods:
            logger.debug(
                "Method %s -> %s (EV=%.2f, equity=%.2f)",
                item.method.value,
                item.applicability.value,
                item.enterprise_value,
                item.equity_value,
            )
        return ValuationMetrics(
            book_value=basis.book_value,
            net_debt=basis.net_debt,
            asset_based_value=basis.asset_based_value,
            methods=methods,
            average_equity_valuation=outcome.average,
            methods_included_count=outcome.count,
            equity_valuation_range=outcome.equity_range,
            included_sources=outcome.sources,
        )

    def value_scope(
        self,
        names: Tuple[str, ...],
        periods: Sequence[FinancialPeriod],
        multiplier_settings: Optional[MultiplierSettings] = None,
    ) -> ScopeValuation:
        weighting = self.weigh(periods)
        completed, figures = self.aggregate(periods, weighting)
        metrics = self.appraise(completed[0], figures, multiplier_settings)
        return ScopeValuation(
            documents=names,
            periods=completed,
            weighting=weighting,
            weighted_financials=figures,
            metrics=metrics,
        )

    def run(
        self,
        documents: Sequence[Document],
        multiplier_settings: Optional[MultiplierSettings] = None,
    ) -> ValuationResult:
        pools = self.scopes(documents)
        if not pools:
            return ValuationResult(
                status=ValuationStatus.NO_DATA,
                warnings=["No financial periods available; nothing to value."],
            )

        scopes = tuple(self.value_scope(names, periods, multiplier_settings) for names, periods in pools)
        return ValuationResult(
            status=assess_status(scopes[0]),
            scopes=scopes,
            warnings=collect_warnings(scopes[0]),
        )


def assess_status(scope: ScopeValuation) -> ValuationStatus:
    if scope.metrics.methods_included_count == 0:
        return ValuationStatus.NOT_MEANINGFUL
    return ValuationStatus.OK


def collect_warnings(scope: ScopeValuation) -> List[str]:
    warnings: List[str] = []
    if not any(p.has_positive_figures() for p in scope.periods):
        warnings.append("No period has positive revenue, EBIT, EBITDA or net income; only balance-sheet bases apply.")
    if scope.metrics.methods_included_count == 0:
        warnings.append("No valuation method produced a positive value; the valuation is not meaningful.")
    if len(scope.periods) == 1:
        warnings.append("Only one financial period available; pattern defaults to stable.")
    return warnings
