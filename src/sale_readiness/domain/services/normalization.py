"""Build immutable financial records from upstream JSON-like payloads.

Upstream collaborators hand over already normalized figures; this module only
coerces them into numbers. Anything missing, ``None``, non-numeric, NaN or
infinite becomes ``0.0`` so the engine never has to raise on data.
"""
from __future__ import annotations

from datetime import date, datetime
from typing import Any, Iterable, List, Mapping, Optional

import pandas as pd

from sale_readiness.domain.models.financials import (
    BalanceSheet,
    CashAndDebt,
    Document,
    FinancialPeriod,
    IncomeStatement,
    Multiple,
    PeriodRange,
    ValuationMultiples,
)
from sale_readiness.utils.numbers import to_number

_INCOME_FIELDS = {
    "revenue": ("revenue", "net_sales", "liikevaihto"),
    "other_income": ("other_income", "other_operating_income"),
    "materials_and_services": ("materials_and_services", "materials_services"),
    "personnel_expenses": ("personnel_expenses", "personnel_costs"),
    "other_expenses": ("other_expenses", "other_operating_expenses"),
    "depreciation": ("depreciation", "depreciation_amortization"),
    "ebit": ("ebit", "operating_profit"),
    "financial_income_expenses": ("financial_income_expenses", "financial_items"),
    "taxes": ("taxes", "income_taxes"),
    "net_income": ("net_income", "net_profit"),
}

_BALANCE_TOTALS = {
    "total_assets": ("total_assets", "assets_total"),
    "total_liabilities": ("total_liabilities", "liabilities_total"),
    "equity": ("equity", "total_equity"),
}

_MULTIPLE_FIELDS = {
    "revenue_multiple": ("revenue_multiple", "ev_revenue", "revenue"),
    "ev_to_ebit": ("ev_to_ebit", "ev_ebit", "ebit"),
    "ev_to_ebitda": ("ev_to_ebitda", "ev_ebitda", "ebitda"),
    "price_to_earnings": ("price_to_earnings", "p_e", "pe"),
}


def to_optional_number(value: Any) -> Optional[float]:
    """Like :func:`to_number` but keeps ``None`` for an absent figure."""
    if value is None:
        return None
    return to_number(value)


def to_date(value: Any) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    parsed = pd.to_datetime(str(value), errors="coerce")
    if pd.isna(parsed):
        return None
    return parsed.date()


def _pick(raw: Mapping[str, Any], aliases: Iterable[str]) -> Any:
    for key in aliases:
        if key in raw and raw[key] is not None:
            return raw[key]
    return None


def _mapping(value: Any) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}


def income_statement_from_dict(raw: Any) -> IncomeStatement:
    raw = _mapping(raw)
    values = {name: to_number(_pick(raw, aliases)) for name, aliases in _INCOME_FIELDS.items()}
    ebitda = to_optional_number(raw.get("ebitda"))
    return IncomeStatement(ebitda=ebitda, **values)


def balance_sheet_from_dict(raw: Any) -> BalanceSheet:
    raw = _mapping(raw)
    totals = {name: to_number(_pick(raw, aliases)) for name, aliases in _BALANCE_TOTALS.items()}
    consumed = {alias for aliases in _BALANCE_TOTALS.values() for alias in aliases}
    items = {key: to_number(value) for key, value in raw.items() if key not in consumed}
    return BalanceSheet(items=items, **totals)


def cash_and_debt_from_dict(raw: Any) -> CashAndDebt:
    raw = _mapping(raw)
    return CashAndDebt(
        cash=to_number(raw.get("cash")),
        interest_bearing_debt=to_number(_pick(raw, ("interest_bearing_debt", "debt"))),
    )


def multiple_from_raw(raw: Any) -> Multiple:
    """Accept ``{"multiple": x, "justification": s}``, ``{"value": x}`` or a bare number."""
    if isinstance(raw, Mapping):
        value = _pick(raw, ("multiple", "value"))
        justification = raw.get("justification")
        return Multiple(value=to_number(value), justification=str(justification) if justification else None)
    return Multiple(value=to_number(raw))


def valuation_multiples_from_dict(raw: Any) -> ValuationMultiples:
    raw = _mapping(raw)
    return ValuationMultiples(
        **{name: multiple_from_raw(_pick(raw, aliases)) for name, aliases in _MULTIPLE_FIELDS.items()}
    )


def period_from_dict(raw: Any, document: Optional[str] = None) -> FinancialPeriod:
    raw = _mapping(raw)
    period = _mapping(raw.get("period"))
    period_range = PeriodRange(
        start_date=to_date(period.get("start_date") or raw.get("start_date")),
        end_date=to_date(period.get("end_date") or raw.get("end_date")),
    )
    return FinancialPeriod(
        period_range=period_range,
        income_statement=income_statement_from_dict(raw.get("income_statement")),
        balance_sheet=balance_sheet_from_dict(raw.get("balance_sheet")),
        cash_and_debt=cash_and_debt_from_dict(_pick(raw, ("cash_and_debt", "dcf_items"))),
        valuation_multiples=valuation_multiples_from_dict(raw.get("valuation_multiples")),
        document=document,
    )


def document_from_dict(raw: Any, index: int = 0) -> Document:
    if not isinstance(raw, Mapping):
        raise ValueError(f"Document #{index} is not an object.")
    periods_raw = _pick(raw, ("financial_periods", "periods"))
    if periods_raw is None:
        periods_raw = []
    if not isinstance(periods_raw, list):
        raise ValueError(f"Document #{index} has no list of financial periods.")
    name = str(raw.get("name") or raw.get("document_name") or f"document-{index + 1}")
    return Document(name=name, periods=tuple(period_from_dict(p, document=name) for p in periods_raw))


def documents_from_payload(payload: Any) -> List[Document]:
    """Parse a whole analysis payload (``{"documents": [...]}`` or a bare list)."""
    if isinstance(payload, Mapping):
        raw_documents = payload.get("documents")
        if raw_documents is None and ("financial_periods" in payload or "periods" in payload):
            raw_documents = [payload]
    elif isinstance(payload, list):
        raw_documents = payload
    else:
        raise ValueError("Financial payload must be an object or a list of documents.")
    if raw_documents is None:
        return []
    if not isinstance(raw_documents, list):
        raise ValueError("'documents' must be a list.")
    return [document_from_dict(doc, idx) for idx, doc in enumerate(raw_documents)]


def company_name_from_payload(payload: Any) -> Optional[str]:
    if isinstance(payload, Mapping):
        company = payload.get("company")
        if isinstance(company, Mapping):
            company = company.get("name")
        return str(company) if company else None
    return None
