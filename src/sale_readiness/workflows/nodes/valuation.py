"""LangGraph node computing per-method equity values and the averaged estimate."""
from __future__ import annotations

from sale_readiness.domain.models.valuation import ScopeValuation, ValuationResult, ValuationStatus
from sale_readiness.domain.services.valuation import assess_status, collect_warnings
from sale_readiness.workflows.context import WorkflowContext
from sale_readiness.workflows.state import ValuationState


def run(state: ValuationState, context: WorkflowContext) -> ValuationState:
    logs = state.setdefault("logs", [])
    errors = state.setdefault("errors", [])
    pools = state.get("pools") or []
    weightings = state.get("weightings") or []
    completed = state.get("completed_periods") or []
    figures = state.get("weighted_financials") or []

    if not pools:
        state["result"] = ValuationResult(
            status=ValuationStatus.NO_DATA,
            warnings=["No financial periods available; nothing to value."],
        )
        logs.append("Valuation skipped: nothing to value.")
        return state
    if not (len(pools) == len(weightings) == len(completed) == len(figures)):
        errors.append("Valuation skipped because prerequisites are missing.")
        return state

    logs.append("Valuation -> equity methods, average and range")
    try:
        scopes = tuple(
            ScopeValuation(
                documents=names,
                periods=periods,
                weighting=weighting,
                weighted_financials=figs,
                metrics=context.engine.appraise(periods[0], figs, state.get("multiplier_settings")),
            )
            for (names, _), weighting, periods, figs in zip(pools, weightings, completed, figures)
        )
        state["result"] = ValuationResult(
            status=assess_status(scopes[0]),
            scopes=scopes,
            warnings=collect_warnings(scopes[0]),
        )
    except Exception as exc:  # pylint: disable=broad-except
        errors.append(f"Valuation engine failed: {exc}")
    return state
