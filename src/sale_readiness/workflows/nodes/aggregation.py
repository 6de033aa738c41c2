"""LangGraph node completing EBITDA and aggregating weighted figures."""
from __future__ import annotations

from sale_readiness.workflows.context import WorkflowContext
from sale_readiness.workflows.state import ValuationState


def run(state: ValuationState, context: WorkflowContext) -> ValuationState:
    logs = state.setdefault("logs", [])
    errors = state.setdefault("errors", [])
    pools = state.get("pools") or []
    weightings = state.get("weightings") or []

    if not pools or len(weightings) != len(pools):
        logs.append("Aggregation skipped because weighting is unavailable.")
        state["completed_periods"] = []
        state["weighted_financials"] = []
        return state

    logs.append("Aggregation -> complete EBITDA and combine weighted figures")
    completed_all = []
    figures_all = []
    try:
        for (_, periods), weighting in zip(pools, weightings):
            completed, figures = context.engine.aggregate(periods, weighting)
            completed_all.append(completed)
            figures_all.append(figures)
    except Exception as exc:  # pylint: disable=broad-except
        errors.append(f"Weighted aggregation failed: {exc}")
        completed_all, figures_all = [], []

    state["completed_periods"] = completed_all
    state["weighted_financials"] = figures_all
    return state
