"""Workflow dependency container."""
from __future__ import annotations

from dataclasses import dataclass

from sale_readiness.domain.services.valuation import ValuationEngine
from sale_readiness.reports.renderer import ReportRenderer
from sale_readiness.settings.config import Config


@dataclass
class WorkflowContext:
    """Holds the engine and renderer shared by LangGraph nodes."""

    config: Config
    engine: ValuationEngine
    renderer: ReportRenderer
