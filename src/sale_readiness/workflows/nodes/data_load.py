"""LangGraph node turning the upstream payload into immutable documents."""
from __future__ import annotations

from sale_readiness.domain.models.financials import Document
from sale_readiness.domain.services.normalization import (
    company_name_from_payload,
    documents_from_payload,
)
from sale_readiness.workflows.context import WorkflowContext
from sale_readiness.workflows.state import ValuationState


def run(state: ValuationState, context: WorkflowContext) -> ValuationState:
    """Populate ``documents`` from the raw payload unless they were passed in already."""
    logs = state.setdefault("logs", [])
    errors = state.setdefault("errors", [])

    documents = state.get("documents")
    if documents and all(isinstance(doc, Document) for doc in documents):
        logs.append(f"DataLoad -> {len(documents)} document(s) supplied directly")
        return state

    payload = state.get("payload")
    if payload is None:
        errors.append("DataLoad skipped because no financial payload was supplied.")
        state["documents"] = []
        return state

    logs.append("DataLoad -> normalize financial periods")
    try:
        documents = documents_from_payload(payload)
    except ValueError as exc:
        errors.append(f"Financial payload rejected: {exc}")
        documents = []

    if not state.get("company_name"):
        state["company_name"] = company_name_from_payload(payload)

    period_count = sum(len(doc.periods) for doc in documents)
    logs.append(f"Loaded {len(documents)} document(s) with {period_count} period(s).")
    state["documents"] = documents
    return state
