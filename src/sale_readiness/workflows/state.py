"""Workflow state definitions shared by LangGraph nodes."""
from __future__ import annotations

from typing import Any, List, Optional, Tuple, TypedDict

from sale_readiness.domain.models.financials import Document, FinancialPeriod
from sale_readiness.domain.models.valuation import (
    PeriodWeighting,
    ValuationResult,
    WeightedFinancials,
)
from sale_readiness.domain.services.multipliers import MultiplierSettings


class ValuationState(TypedDict, total=False):
    company_name: Optional[str]
    valuation_date: str
    payload: Any
    multiplier_settings: Optional[MultiplierSettings]

    documents: List[Document]
    pools: List[Tuple[Tuple[str, ...], List[FinancialPeriod]]]
    weightings: List[PeriodWeighting]
    completed_periods: List[Tuple[FinancialPeriod, ...]]
    weighted_financials: List[WeightedFinancials]
    result: Optional[ValuationResult]

    markdown_report: Optional[str]
    stage_order: List[str]

    logs: List[str]
    errors: List[str]
