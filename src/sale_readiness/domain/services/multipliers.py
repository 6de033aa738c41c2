"""Multiplier settings: externally supplied multiples or a validated manual override."""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from sale_readiness.domain.models.financials import Multiple, ValuationMultiples

MANUAL_JUSTIFICATION = "Manual multiplier set by the user."
MAX_MULTIPLE = 100.0

_REQUIRED_FIELDS = ("revenue_multiple", "ev_ebit", "ev_ebitda")


@dataclass(frozen=True)
class CustomMultipliers:
    revenue_multiple: float
    ev_ebit: float
    ev_ebitda: float
    p_e: Optional[float] = None

    def as_mapping(self) -> Mapping[str, Any]:
        values = {
            "revenue_multiple": self.revenue_multiple,
            "ev_ebit": self.ev_ebit,
            "ev_ebitda": self.ev_ebitda,
        }
        if self.p_e is not None:
            values["p_e"] = self.p_e
        return values


@dataclass(frozen=True)
class MultiplierSettings:
    """``ai`` keeps the per-period multiples, ``manual`` replaces them when valid."""

    method: str = "ai"
    custom_multipliers: Optional[CustomMultipliers] = None


@dataclass(frozen=True)
class MultiplierValidationResult:
    is_valid: bool
    error: Optional[str] = None
    field: Optional[str] = None


def _valid_multiple(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    if math.isnan(value):
        return False
    return 0 < value <= MAX_MULTIPLE


def validate_custom_multipliers(multipliers: Any) -> MultiplierValidationResult:
    """Check that every required multiple is a number in (0, 100]; P/E is optional."""
    if isinstance(multipliers, CustomMultipliers):
        multipliers = multipliers.as_mapping()
    if not isinstance(multipliers, Mapping):
        return MultiplierValidationResult(False, "Multipliers are missing or malformed.")

    for name in _REQUIRED_FIELDS:
        if not _valid_multiple(multipliers.get(name)):
            return MultiplierValidationResult(
                False, f"{name} must be a number between 0.1 and {MAX_MULTIPLE:g}.", name
            )

    pe = multipliers.get("p_e")
    if pe is not None and not _valid_multiple(pe):
        return MultiplierValidationResult(False, f"p_e must be a number between 0.1 and {MAX_MULTIPLE:g}.", "p_e")

    return MultiplierValidationResult(True)


def should_use_manual_multipliers(settings: Optional[MultiplierSettings]) -> bool:
    if settings is None or settings.method != "manual" or settings.custom_multipliers is None:
        return False
    return validate_custom_multipliers(settings.custom_multipliers).is_valid


def resolve_multiples(
    supplied: ValuationMultiples, settings: Optional[MultiplierSettings] = None
) -> ValuationMultiples:
    """Return the multiples the calculator should use for a period."""
    if settings is None or settings.custom_multipliers is None or not should_use_manual_multipliers(settings):
        return supplied
    custom = settings.custom_multipliers
    pe = supplied.price_to_earnings
    if custom.p_e is not None:
        pe = Multiple(custom.p_e, MANUAL_JUSTIFICATION)
    return ValuationMultiples(
        revenue_multiple=Multiple(custom.revenue_multiple, MANUAL_JUSTIFICATION),
        ev_to_ebit=Multiple(custom.ev_ebit, MANUAL_JUSTIFICATION),
        ev_to_ebitda=Multiple(custom.ev_ebitda, MANUAL_JUSTIFICATION),
        price_to_earnings=pe,
    )


def manual_settings(
    revenue_multiple: Optional[float],
    ev_ebit: Optional[float],
    ev_ebitda: Optional[float],
    p_e: Optional[float] = None,
) -> Optional[MultiplierSettings]:
    """Build manual settings from optional CLI values; ``None`` when none was given."""
    if revenue_multiple is None and ev_ebit is None and ev_ebitda is None and p_e is None:
        return None
    return MultiplierSettings(
        method="manual",
        custom_multipliers=CustomMultipliers(
            revenue_multiple=revenue_multiple,  # type: ignore[arg-type]
            ev_ebit=ev_ebit,  # type: ignore[arg-type]
            ev_ebitda=ev_ebitda,  # type: ignore[arg-type]
            p_e=p_e,
        ),
    )
