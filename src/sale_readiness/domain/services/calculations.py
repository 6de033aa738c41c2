"""Domain services turning a multi-period history into weighted representative figures.

This module implements:
- Business pattern classification (growth / cyclical / stable) from revenue and EBIT
- Exponential period weights derived from the pattern
- EBITDA completion from EBIT and depreciation
- Weighted aggregation of revenue, EBIT, EBITDA and net income using pandas

All services are pure: they read immutable period records and return fresh
objects. Missing or non-numeric figures count as zero, nothing here raises on data.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import date
from typing import Dict, Iterable, List, Sequence, Tuple

import numpy as np
import pandas as pd

from sale_readiness.domain.models.financials import Document, FinancialPeriod
from sale_readiness.domain.models.policy import (
    DEFAULT_POLICY,
    WEIGHTING_EXPLANATIONS,
    BusinessPattern,
    DepreciationConvention,
    ValuationPolicy,
)
from sale_readiness.domain.models.valuation import PeriodWeighting, WeightedFinancials
from sale_readiness.domain.services.normalization import to_number

logger = logging.getLogger(__name__)

AGGREGATED_FIGURES = ("revenue", "ebit", "ebitda", "net_income")


@dataclass(frozen=True)
class PatternAssessment:
    """Classifier output kept separate from the weights it drives."""

    pattern: BusinessPattern
    volatility_score: float
    growth_rate: float
    sign_change: bool = False


class BusinessPatternClassifier:
    """Label a newest-first revenue/EBIT history as growth, cyclical or stable."""

    def __init__(self, policy: ValuationPolicy = DEFAULT_POLICY) -> None:
        self._policy = policy

    def classify(self, periods: Sequence[FinancialPeriod]) -> PatternAssessment:
        if len(periods) < 2:
            return PatternAssessment(BusinessPattern.STABLE, 0.0, 0.0)

        revenues = [r for r in (to_number(p.income_statement.revenue) for p in periods) if r > 0]
        ebits = [to_number(p.income_statement.ebit) for p in periods]

        volatility = _coefficient_of_variation(revenues)
        growth = _cagr_newest_first(revenues)
        sign_change = _has_sign_change(ebits)

        if growth > self._policy.growth_rate_threshold:
            pattern = BusinessPattern.GROWTH
        elif sign_change or volatility > self._policy.volatility_threshold:
            pattern = BusinessPattern.CYCLICAL
        else:
            pattern = BusinessPattern.STABLE

        logger.debug(
            "Classified %d periods as %s (growth=%.4f, volatility=%.4f, ebit sign change=%s)",
            len(periods),
            pattern.value,
            growth,
            volatility,
            sign_change,
        )
        return PatternAssessment(pattern, volatility, growth, sign_change)


class PeriodWeightGenerator:
    """Produce normalized exponential-decay weights, newest period first."""

    def __init__(self, policy: ValuationPolicy = DEFAULT_POLICY) -> None:
        self._policy = policy

    def weights(self, pattern: object, period_count: int) -> Tuple[float, ...]:
        if period_count <= 0:
            return ()
        alpha = self._policy.decay_alpha(pattern)
        raw = np.power(1.0 - alpha, np.arange(period_count, dtype=float))
        normalized = raw / raw.sum()
        return tuple(float(w) for w in normalized)

    def generate(self, assessment: PatternAssessment, period_count: int) -> PeriodWeighting:
        pattern = assessment.pattern
        return PeriodWeighting(
            business_pattern=pattern,
            alpha=self._policy.decay_alpha(pattern),
            volatility_score=assessment.volatility_score,
            growth_rate=assessment.growth_rate,
            weights=self.weights(pattern, period_count),
            explanation=WEIGHTING_EXPLANATIONS.get(pattern, WEIGHTING_EXPLANATIONS[BusinessPattern.STABLE]),
        )


class EbitdaCompleter:
    """Estimate EBITDA from EBIT and depreciation where the source omitted it."""

    def __init__(self, policy: ValuationPolicy = DEFAULT_POLICY) -> None:
        self._convention = policy.depreciation_convention

    def estimate(self, ebit: float, depreciation: float) -> float:
        if self._convention is DepreciationConvention.POSITIVE_MAGNITUDE:
            return ebit + abs(depreciation)
        return ebit - depreciation

    def complete(self, period: FinancialPeriod) -> FinancialPeriod:
        inc = period.income_statement
        if inc.has_reported_ebitda:
            return period
        ebit = to_number(inc.ebit)
        depreciation = to_number(inc.depreciation)
        if ebit == 0.0 or depreciation == 0.0:
            return period
        estimated = self.estimate(ebit, depreciation)
        return replace(period, income_statement=replace(inc, ebitda_estimated=estimated))

    def complete_all(self, periods: Iterable[FinancialPeriod]) -> Tuple[FinancialPeriod, ...]:
        return tuple(self.complete(p) for p in periods)


class WeightedAggregator:
    """Combine figures across periods into one representative set."""

    def aggregate(self, periods: Sequence[FinancialPeriod], weights: Sequence[float]) -> WeightedFinancials:
        if not periods:
            return WeightedFinancials()
        if len(weights) != len(periods):
            raise ValueError("Weight count must match period count.")

        df = _frame_from_periods(periods)
        weighted = df[list(AGGREGATED_FIGURES)].mul(pd.Series(weights, dtype=float), axis=0).sum()
        latest = df.iloc[0]

        values: Dict[str, float] = {}
        for key in AGGREGATED_FIGURES:
            value = float(weighted[key])
            # exact zero falls back to the newest period's raw figure
            values[key] = value if value != 0.0 else float(latest[key])
        return WeightedFinancials(**values)


def sort_newest_first(periods: Iterable[FinancialPeriod]) -> List[FinancialPeriod]:
    """Order periods by end date, newest first; undated periods keep input order at the end."""
    indexed = list(enumerate(periods))

    def key(item):
        end = item[1].end_date
        dated = isinstance(end, date)
        return (not dated, -end.toordinal() if dated else 0, item[0])

    indexed.sort(key=key)
    return [p for _, p in indexed]


def pool_periods(documents: Iterable[Document]) -> List[FinancialPeriod]:
    """Union of all document periods, newest first."""
    pooled: List[FinancialPeriod] = []
    for doc in documents:
        pooled.extend(doc.periods)
    return sort_newest_first(pooled)


# ----------------------------
# Internal helpers
# ----------------------------

def _frame_from_periods(periods: Sequence[FinancialPeriod]) -> pd.DataFrame:
    rows = []
    for p in periods:
        inc = p.income_statement
        rows.append(
            {
                "revenue": to_number(inc.revenue),
                "ebit": to_number(inc.ebit),
                "ebitda": to_number(inc.effective_ebitda),
                "net_income": to_number(inc.net_income),
            }
        )
    return pd.DataFrame(rows, columns=list(AGGREGATED_FIGURES)).reset_index(drop=True)


def _coefficient_of_variation(values: Sequence[float]) -> float:
    if len(values) < 2:
        return 0.0
    arr = np.asarray(values, dtype=float)
    mean = arr.mean()
    if mean == 0:
        return 0.0
    return float(arr.std() / mean)


def _cagr_newest_first(values: Sequence[float]) -> float:
    if not values:
        return 0.0
    years = len(values) - 1
    newest, oldest = values[0], values[-1]
    if oldest <= 0 or years <= 0:
        return 0.0
    return float((newest / oldest) ** (1.0 / years) - 1.0)


def _has_sign_change(values: Sequence[float]) -> bool:
    for current, nxt in zip(values, values[1:]):
        if (current > 0 and nxt < 0) or (current < 0 and nxt > 0):
            return True
    return False
