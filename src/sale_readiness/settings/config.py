"""Application-wide configuration defaults and helpers."""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from sale_readiness.domain.models.policy import (
    RANGE_FACTOR,
    DepreciationConvention,
    PoolingScope,
    ValuationPolicy,
)

# Base directory for resolving relative paths.
BASE_DIR = Path.cwd()


def _to_bool(value: Optional[str], default: bool = False) -> bool:
    """Parse truthy environment values like '1' or 'true'."""
    if value is None:
        return default
    if not isinstance(value, str):
        value = str(value)
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _to_float(value: Optional[str], default: float) -> float:
    """Safely parse a float env var, returning the default on failure."""
    if value is None:
        return default
    try:
        return float(str(value).strip())
    except (TypeError, ValueError):
        return default


def _to_enum(enum_cls, value: Optional[str], default):
    if value is None:
        return default
    try:
        return enum_cls(value.strip().lower())
    except ValueError:
        return default


@dataclass
class Config:
    """Runtime configuration loaded from environment variables."""

    debug: bool = False
    output_dir: Path = field(default_factory=lambda: BASE_DIR / "reports")
    pooling_scope: PoolingScope = PoolingScope.COMPANY
    range_factor: float = RANGE_FACTOR
    depreciation_convention: DepreciationConvention = DepreciationConvention.NEGATIVE_EXPENSE

    @classmethod
    def from_env(cls) -> "Config":
        """Build a configuration instance using environment overrides."""
        return cls(
            debug=_to_bool(os.getenv("SALE_VALUATION_DEBUG")),
            output_dir=Path(os.getenv("SALE_VALUATION_OUTPUT_DIR", BASE_DIR / "reports")),
            pooling_scope=_to_enum(PoolingScope, os.getenv("SALE_VALUATION_POOLING"), PoolingScope.COMPANY),
            range_factor=_to_float(os.getenv("SALE_VALUATION_RANGE_FACTOR"), RANGE_FACTOR),
            depreciation_convention=_to_enum(
                DepreciationConvention,
                os.getenv("SALE_VALUATION_DEPRECIATION_SIGN"),
                DepreciationConvention.NEGATIVE_EXPENSE,
            ),
        )

    def policy(self) -> ValuationPolicy:
        """Engine policy derived from this configuration."""
        return ValuationPolicy(
            range_factor=self.range_factor,
            depreciation_convention=self.depreciation_convention,
            pooling_scope=self.pooling_scope,
        )

    def ensure_directories(self) -> None:
        """Create directories needed for runtime artifacts."""
        self.output_dir.mkdir(parents=True, exist_ok=True)
