"""Workflow blueprint describing valuation stages and their handlers."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, List, TYPE_CHECKING

from sale_readiness.workflows.nodes import (
    aggregation,
    data_load,
    valuation,
    weighting,
    writing,
)

if TYPE_CHECKING:
    from sale_readiness.workflows.context import WorkflowContext
    from sale_readiness.workflows.state import ValuationState


@dataclass
class StageSpec:
    """Single LangGraph stage definition."""

    key: str
    description: str
    handler: Callable[["ValuationState", "WorkflowContext"], "ValuationState"]
    depends_on: List[str] = field(default_factory=list)


def build_default_stages(include_writing: bool = True) -> List[StageSpec]:
    """Return the ordered stages for the valuation workflow."""
    stages = [
        StageSpec(
            key="ingest_documents",
            description="Coerce the upstream payload into immutable documents and periods.",
            handler=data_load.run,
        ),
        StageSpec(
            key="period_weighting",
            description="Pool periods, classify the business pattern and derive decay weights.",
            handler=weighting.run,
            depends_on=["ingest_documents"],
        ),
        StageSpec(
            key="weighted_financials",
            description="Complete missing EBITDA and aggregate revenue/EBIT/EBITDA/net income.",
            handler=aggregation.run,
            depends_on=["period_weighting"],
        ),
        StageSpec(
            key="equity_valuation",
            description="Value the newest period with each method, then average and build the range.",
            handler=valuation.run,
            depends_on=["weighted_financials"],
        ),
    ]
    if include_writing:
        stages.append(
            StageSpec(
                key="writing",
                description="Render the Markdown valuation summary.",
                handler=writing.run,
                depends_on=["equity_valuation"],
            )
        )
    return stages
