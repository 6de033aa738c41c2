"""Derived records produced by the valuation engine."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

from sale_readiness.domain.models.financials import FinancialPeriod
from sale_readiness.domain.models.policy import BusinessPattern


@dataclass(frozen=True)
class PeriodWeighting:
    """Pattern label, decay parameter and normalized weight per period (newest first)."""

    business_pattern: BusinessPattern
    alpha: float
    volatility_score: float
    growth_rate: float
    weights: Tuple[float, ...]
    explanation: str
    method: str = "exponential"

    @property
    def period_count(self) -> int:
        return len(self.weights)


@dataclass(frozen=True)
class WeightedFinancials:
    """Representative income statement figures combined across periods."""

    revenue: float = 0.0
    ebit: float = 0.0
    ebitda: float = 0.0
    net_income: float = 0.0


class ValuationMethod(str, Enum):
    REVENUE = "revenue"
    EBIT = "ebit"
    EBITDA = "ebitda"
    EARNINGS = "pe"


class MethodApplicability(str, Enum):
    """Whether a multiple-based method carries a business-value signal."""

    BUSINESS_BASED = "businessBased"
    NOT_APPLICABLE = "notApplicable"


@dataclass(frozen=True)
class MethodValuation:
    """Outcome of one multiple-based method."""

    method: ValuationMethod
    applicability: MethodApplicability
    figure: float = 0.0
    multiple: float = 0.0
    enterprise_value: float = 0.0
    equity_value: float = 0.0

    @property
    def counts_toward_average(self) -> bool:
        return self.applicability is MethodApplicability.BUSINESS_BASED and self.equity_value > 0


@dataclass(frozen=True)
class EquityRange:
    low: float = 0.0
    high: float = 0.0


@dataclass(frozen=True)
class ValuationMetrics:
    """Equity value estimate for the most recent period."""

    book_value: float
    net_debt: float
    asset_based_value: float
    methods: Tuple[MethodValuation, ...]
    average_equity_valuation: float
    methods_included_count: int
    equity_valuation_range: EquityRange
    included_sources: Tuple[str, ...] = ()

    def method(self, method: ValuationMethod) -> Optional[MethodValuation]:
        for item in self.methods:
            if item.method is method:
                return item
        return None


class ValuationStatus(str, Enum):
    OK = "ok"
    NO_DATA = "no_data"
    NOT_MEANINGFUL = "not_meaningful"


@dataclass(frozen=True)
class ScopeValuation:
    """Weighting and valuation of one pool of periods (a company or a single document)."""

    documents: Tuple[str, ...]
    periods: Tuple[FinancialPeriod, ...]
    weighting: PeriodWeighting
    weighted_financials: WeightedFinancials
    metrics: ValuationMetrics

    @property
    def latest_period(self) -> FinancialPeriod:
        return self.periods[0]


@dataclass(frozen=True)
class ValuationResult:
    """Fresh output record of one valuation request."""

    status: ValuationStatus
    scopes: Tuple[ScopeValuation, ...] = ()
    warnings: List[str] = field(default_factory=list, compare=False, hash=False)

    @property
    def headline(self) -> Optional[ScopeValuation]:
        return self.scopes[0] if self.scopes else None

    @property
    def metrics(self) -> Optional[ValuationMetrics]:
        return self.headline.metrics if self.headline else None

    @property
    def weighting(self) -> Optional[PeriodWeighting]:
        return self.headline.weighting if self.headline else None

    @property
    def is_meaningful(self) -> bool:
        return self.status is ValuationStatus.OK
