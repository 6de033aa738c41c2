"""Unit tests for payload -> immutable financial record mapping."""
from __future__ import annotations

from datetime import date

import pytest

from sale_readiness.domain.services.normalization import (
    company_name_from_payload,
    document_from_dict,
    documents_from_payload,
    multiple_from_raw,
    period_from_dict,
    to_date,
    to_number,
)


@pytest.mark.parametrize(
    "raw, expected",
    [
        (None, 0.0),
        (True, 0.0),
        ("", 0.0),
        ("n/a", 0.0),
        (float("nan"), 0.0),
        (float("inf"), 0.0),
        ("1 234,5", 1234.5),
        ("2 000", 2000.0),
        ("1,000", 1000.0),
        ("1,000,000", 1000000.0),
        ("-12,345", -12345.0),
        ("1,000.5", 1000.5),
        ("1.234,5", 1234.5),
        ("4,5", 4.5),
        ("0,25", 0.25),
        ("-12.5", -12.5),
        (7, 7.0),
    ],
)
def test_to_number_coerces_without_raising(raw, expected):
    assert to_number(raw) == expected


def test_to_date_accepts_iso_strings_and_rejects_garbage():
    assert to_date("2023-12-31") == date(2023, 12, 31)
    assert to_date(date(2022, 6, 30)) == date(2022, 6, 30)
    assert to_date("sometime") is None
    assert to_date(None) is None


def test_period_mapping_with_aliases():
    raw = {
        "period": {"start_date": "2023-01-01", "end_date": "2023-12-31"},
        "income_statement": {
            "net_sales": "1000",
            "operating_profit": 120,
            "depreciation": -30,
            "net_profit": 90,
        },
        "balance_sheet": {
            "assets_total": 2000,
            "liabilities_total": 1200,
            "equity": 800,
            "inventory": "150",
        },
        "dcf_items": {"cash": 300, "debt": 700},
        "valuation_multiples": {
            "revenue_multiple": {"multiple": 0.9, "justification": "peer median"},
            "ev_ebit": 7,
            "ev_ebitda": {"value": 5.5},
            "p_e": None,
        },
    }
    period = period_from_dict(raw, document="fy2023.pdf")

    assert period.end_date == date(2023, 12, 31)
    assert period.document == "fy2023.pdf"
    inc = period.income_statement
    assert inc.revenue == 1000.0
    assert inc.ebit == 120.0
    assert inc.depreciation == -30.0
    assert inc.net_income == 90.0
    assert inc.ebitda is None
    bs = period.balance_sheet
    assert (bs.total_assets, bs.total_liabilities, bs.equity) == (2000.0, 1200.0, 800.0)
    assert bs.items == {"inventory": 150.0}
    assert period.cash_and_debt.cash == 300.0
    assert period.cash_and_debt.interest_bearing_debt == 700.0
    vm = period.valuation_multiples
    assert vm.revenue_multiple.value == 0.9
    assert vm.revenue_multiple.justification == "peer median"
    assert vm.ev_to_ebit.value == 7.0
    assert vm.ev_to_ebitda.value == 5.5
    assert vm.price_to_earnings.value == 0.0


def test_reported_ebitda_is_kept_as_given():
    period = period_from_dict({"income_statement": {"ebitda": "150"}})
    assert period.income_statement.ebitda == 150.0
    assert period.period_range.label() == "undated"


def test_multiple_from_bare_number():
    multiple = multiple_from_raw("4,5")
    assert multiple.value == 4.5
    assert multiple.justification is None


def test_document_name_defaults_to_position():
    doc = document_from_dict({"financial_periods": [{}, {}]}, index=2)
    assert doc.name == "document-3"
    assert len(doc.periods) == 2
    assert all(p.document == "document-3" for p in doc)


def test_payload_shapes():
    single = {"name": "a", "periods": [{}]}

    assert [d.name for d in documents_from_payload({"documents": [single]})] == ["a"]
    assert [d.name for d in documents_from_payload(single)] == ["a"]
    assert [d.name for d in documents_from_payload([single, {"name": "b"}])] == ["a", "b"]
    assert documents_from_payload({"company": "Oy Ab"}) == []


@pytest.mark.parametrize(
    "payload",
    ["not json", 42, {"documents": "oops"}, {"documents": ["x"]}, {"documents": [{"periods": {}}]}],
)
def test_malformed_payload_is_rejected(payload):
    with pytest.raises(ValueError):
        documents_from_payload(payload)


def test_company_name_from_payload():
    assert company_name_from_payload({"company": {"name": "Sauna Works Oy"}}) == "Sauna Works Oy"
    assert company_name_from_payload({"company": "Acme"}) == "Acme"
    assert company_name_from_payload([]) is None
