from __future__ import annotations

import pytest

from sale_readiness.domain.models.financials import ValuationMultiples
from sale_readiness.domain.services.multipliers import (
    MANUAL_JUSTIFICATION,
    CustomMultipliers,
    MultiplierSettings,
    manual_settings,
    resolve_multiples,
    should_use_manual_multipliers,
    validate_custom_multipliers,
)


def test_valid_manual_multipliers():
    result = validate_custom_multipliers(CustomMultipliers(1.2, 8.0, 6.0, p_e=12.0))
    assert result.is_valid
    assert result.error is None


@pytest.mark.parametrize(
    "values, field",
    [
        ({"revenue_multiple": 0, "ev_ebit": 8, "ev_ebitda": 6}, "revenue_multiple"),
        ({"revenue_multiple": 1, "ev_ebit": 101, "ev_ebitda": 6}, "ev_ebit"),
        ({"revenue_multiple": 1, "ev_ebit": 8, "ev_ebitda": "6"}, "ev_ebitda"),
        ({"revenue_multiple": 1, "ev_ebit": 8, "ev_ebitda": True}, "ev_ebitda"),
        ({"revenue_multiple": 1, "ev_ebit": 8, "ev_ebitda": 6, "p_e": float("nan")}, "p_e"),
        ({"revenue_multiple": 1, "ev_ebit": 8}, "ev_ebitda"),
    ],
)
def test_invalid_manual_multipliers(values, field):
    result = validate_custom_multipliers(values)
    assert not result.is_valid
    assert result.field == field
    assert result.error


def test_malformed_multipliers():
    assert not validate_custom_multipliers(None).is_valid


def test_ai_settings_keep_supplied_multiples():
    supplied = ValuationMultiples.from_values(0.5, 5.0, 4.0, 8.0, justification="industry data")

    assert resolve_multiples(supplied, None) is supplied
    assert resolve_multiples(supplied, MultiplierSettings()) is supplied
    invalid = MultiplierSettings(method="manual", custom_multipliers=CustomMultipliers(0.0, 5.0, 4.0))
    assert not should_use_manual_multipliers(invalid)
    assert resolve_multiples(supplied, invalid) is supplied


def test_manual_settings_override_and_keep_supplied_pe():
    supplied = ValuationMultiples.from_values(0.5, 5.0, 4.0, 8.0, justification="industry data")
    resolved = resolve_multiples(supplied, manual_settings(1.0, 7.0, 6.0))

    assert resolved.revenue_multiple.value == 1.0
    assert resolved.ev_to_ebit.value == 7.0
    assert resolved.ev_to_ebitda.value == 6.0
    assert resolved.revenue_multiple.justification == MANUAL_JUSTIFICATION
    assert resolved.price_to_earnings.value == 8.0
    assert resolved.price_to_earnings.justification == "industry data"

    with_pe = resolve_multiples(supplied, manual_settings(1.0, 7.0, 6.0, 11.0))
    assert with_pe.price_to_earnings.value == 11.0


def test_manual_settings_absent_when_nothing_given():
    assert manual_settings(None, None, None) is None
    settings = manual_settings(1.0, None, None)
    assert settings.method == "manual"
    assert not validate_custom_multipliers(settings.custom_multipliers).is_valid
