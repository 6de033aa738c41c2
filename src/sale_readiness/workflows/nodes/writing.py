"""LangGraph node responsible for the Markdown valuation summary."""
from __future__ import annotations

from datetime import date

from sale_readiness.workflows.context import WorkflowContext
from sale_readiness.workflows.state import ValuationState


def run(state: ValuationState, context: WorkflowContext) -> ValuationState:
    logs = state.setdefault("logs", [])
    errors = state.setdefault("errors", [])
    result = state.get("result")

    if result is None:
        errors.append("Writing skipped because no valuation result is available.")
        return state

    logs.append("Writing -> render Markdown summary")
    headline = result.headline
    render_context = {
        "company_name": state.get("company_name") or "Unnamed company",
        "valuation_date": state.get("valuation_date") or date.today().isoformat(),
        "result": result,
        "headline": headline,
        "errors": list(errors),
    }
    try:
        state["markdown_report"] = context.renderer.render(render_context)
    except Exception as exc:  # pylint: disable=broad-except
        errors.append(f"Markdown rendering failed: {exc}")
    return state
