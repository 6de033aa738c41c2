"""Domain models describing the normalized financial records handed to the engine."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Iterator, Optional, Tuple

from sale_readiness.utils.numbers import to_number


@dataclass(frozen=True)
class PeriodRange:
    """Fiscal period boundaries with date-only precision."""

    start_date: Optional[date] = None
    end_date: Optional[date] = None

    def label(self) -> str:
        if self.start_date is None and self.end_date is None:
            return "undated"
        start = self.start_date.isoformat() if self.start_date else "?"
        end = self.end_date.isoformat() if self.end_date else "?"
        return f"{start}..{end}"


@dataclass(frozen=True)
class IncomeStatement:
    """Income statement figures for one period; absent figures are stored as 0.0."""

    revenue: float = 0.0
    other_income: float = 0.0
    materials_and_services: float = 0.0
    personnel_expenses: float = 0.0
    other_expenses: float = 0.0
    depreciation: float = 0.0
    ebit: float = 0.0
    ebitda: Optional[float] = None  # None when the source did not report it
    financial_income_expenses: float = 0.0
    taxes: float = 0.0
    net_income: float = 0.0
    ebitda_estimated: Optional[float] = None  # filled by the EBITDA completion step

    @property
    def has_reported_ebitda(self) -> bool:
        return to_number(self.ebitda) != 0.0

    @property
    def effective_ebitda(self) -> float:
        """Reported EBITDA, else the estimate, else 0."""
        if self.has_reported_ebitda:
            return to_number(self.ebitda)
        return to_number(self.ebitda_estimated)


@dataclass(frozen=True)
class BalanceSheet:
    """Balance sheet totals used by the engine plus untouched sub-items."""

    total_assets: float = 0.0
    total_liabilities: float = 0.0
    equity: float = 0.0
    items: Dict[str, float] = field(default_factory=dict, compare=False, hash=False)


@dataclass(frozen=True)
class CashAndDebt:
    cash: float = 0.0
    interest_bearing_debt: float = 0.0


@dataclass(frozen=True)
class Multiple:
    """Externally determined valuation multiple with its justification."""

    value: float = 0.0
    justification: Optional[str] = None


@dataclass(frozen=True)
class ValuationMultiples:
    """Multiples supplied per period; never computed by the engine."""

    revenue_multiple: Multiple = field(default_factory=Multiple)
    ev_to_ebit: Multiple = field(default_factory=Multiple)
    ev_to_ebitda: Multiple = field(default_factory=Multiple)
    price_to_earnings: Multiple = field(default_factory=Multiple)

    @classmethod
    def from_values(
        cls,
        revenue: float = 0.0,
        ebit: float = 0.0,
        ebitda: float = 0.0,
        pe: float = 0.0,
        justification: Optional[str] = None,
    ) -> "ValuationMultiples":
        return cls(
            revenue_multiple=Multiple(revenue, justification),
            ev_to_ebit=Multiple(ebit, justification),
            ev_to_ebitda=Multiple(ebitda, justification),
            price_to_earnings=Multiple(pe, justification),
        )


@dataclass(frozen=True)
class FinancialPeriod:
    """One fiscal year/period of one source document."""

    period_range: PeriodRange = field(default_factory=PeriodRange)
    income_statement: IncomeStatement = field(default_factory=IncomeStatement)
    balance_sheet: BalanceSheet = field(default_factory=BalanceSheet)
    cash_and_debt: CashAndDebt = field(default_factory=CashAndDebt)
    valuation_multiples: ValuationMultiples = field(default_factory=ValuationMultiples)
    document: Optional[str] = None

    @property
    def end_date(self) -> Optional[date]:
        return self.period_range.end_date

    def has_positive_figures(self) -> bool:
        """True when any income statement figure the valuation methods use is positive."""
        inc = self.income_statement
        return any(to_number(v) > 0 for v in (inc.revenue, inc.ebit, inc.effective_ebitda, inc.net_income))


@dataclass(frozen=True)
class Document:
    """Ordered financial periods extracted from one source file."""

    name: str
    periods: Tuple[FinancialPeriod, ...] = ()

    def __iter__(self) -> Iterator[FinancialPeriod]:
        return iter(self.periods)

    def is_empty(self) -> bool:
        return len(self.periods) == 0
