"""Named constants and the policy object steering the valuation engine."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict


class BusinessPattern(str, Enum):
    """Historical trajectory of a company used to pick the period decay."""

    GROWTH = "growth"
    CYCLICAL = "cyclical"
    STABLE = "stable"


class DepreciationConvention(str, Enum):
    """How stored depreciation figures are signed.

    ``NEGATIVE_EXPENSE`` keeps the stored sign and estimates EBITDA as
    ``ebit - depreciation``; a depreciation stored as a negative expense therefore
    adds back. ``POSITIVE_MAGNITUDE`` treats the figure as a magnitude and adds it.
    """

    NEGATIVE_EXPENSE = "negative_expense"
    POSITIVE_MAGNITUDE = "positive_magnitude"


class PoolingScope(str, Enum):
    """Whether periods of all documents are weighted together or per document."""

    COMPANY = "company"
    DOCUMENT = "document"


DECAY_ALPHAS: Dict[BusinessPattern, float] = {
    BusinessPattern.GROWTH: 0.9,
    BusinessPattern.CYCLICAL: 0.5,
    BusinessPattern.STABLE: 0.7,
}
DEFAULT_DECAY_ALPHA = 0.7

GROWTH_RATE_THRESHOLD = 0.15
VOLATILITY_THRESHOLD = 0.25

RANGE_FACTOR = 0.20

WEIGHTING_EXPLANATIONS: Dict[BusinessPattern, str] = {
    BusinessPattern.GROWTH: (
        "Growth company: the most recent period dominates the weighting because "
        "older periods understate the current scale of the business."
    ),
    BusinessPattern.CYCLICAL: (
        "Cyclical business: weights are spread over several periods to smooth "
        "out the swings of the cycle."
    ),
    BusinessPattern.STABLE: (
        "Stable business: recent periods are emphasised while older periods "
        "still contribute to the representative figures."
    ),
}


@dataclass(frozen=True)
class ValuationPolicy:
    """Tunable parameters of the engine; defaults are the module constants above."""

    decay_alphas: Dict[BusinessPattern, float] = field(default_factory=lambda: dict(DECAY_ALPHAS), hash=False)
    default_decay_alpha: float = DEFAULT_DECAY_ALPHA
    growth_rate_threshold: float = GROWTH_RATE_THRESHOLD
    volatility_threshold: float = VOLATILITY_THRESHOLD
    range_factor: float = RANGE_FACTOR
    depreciation_convention: DepreciationConvention = DepreciationConvention.NEGATIVE_EXPENSE
    pooling_scope: PoolingScope = PoolingScope.COMPANY

    def decay_alpha(self, pattern: object) -> float:
        """Return α for a pattern; unrecognized labels get the default."""
        try:
            key = BusinessPattern(pattern)
        except ValueError:
            return self.default_decay_alpha
        return self.decay_alphas.get(key, self.default_decay_alpha)


DEFAULT_POLICY = ValuationPolicy()
