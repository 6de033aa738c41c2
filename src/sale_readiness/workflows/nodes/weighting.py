"""LangGraph node classifying the business pattern and deriving period weights."""
from __future__ import annotations

from sale_readiness.workflows.context import WorkflowContext
from sale_readiness.workflows.state import ValuationState


def run(state: ValuationState, context: WorkflowContext) -> ValuationState:
    logs = state.setdefault("logs", [])
    errors = state.setdefault("errors", [])
    documents = state.get("documents") or []

    pools = context.engine.scopes(documents)
    state["pools"] = pools
    if not pools:
        logs.append("Weighting skipped: no financial periods to classify.")
        state["weightings"] = []
        return state

    logs.append(f"Weighting -> classify {len(pools)} pool(s) ({context.engine.policy.pooling_scope.value} scope)")
    try:
        state["weightings"] = [context.engine.weigh(periods) for _, periods in pools]
    except Exception as exc:  # pylint: disable=broad-except
        errors.append(f"Period weighting failed: {exc}")
        state["weightings"] = []
    for (names, _), weighting in zip(pools, state["weightings"]):
        logs.append(
            f"{', '.join(names)}: {weighting.business_pattern.value} "
            f"(alpha={weighting.alpha:.1f}, {weighting.period_count} period(s))"
        )
    return state
