"""Convenience re-exports for workflow nodes."""
from __future__ import annotations

from . import (
    aggregation,
    data_load,
    valuation,
    weighting,
    writing,
)

__all__ = [
    "aggregation",
    "data_load",
    "valuation",
    "weighting",
    "writing",
]
