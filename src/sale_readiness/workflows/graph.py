"""LangGraph workflow assembly for the valuation pipeline."""
from __future__ import annotations

import json
from dataclasses import asdict, is_dataclass
from datetime import date
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence

from langgraph.graph import END, StateGraph

from sale_readiness.domain.models.financials import Document
from sale_readiness.domain.services.multipliers import MultiplierSettings
from sale_readiness.domain.services.valuation import ValuationEngine
from sale_readiness.reports.renderer import TEMPLATE_DIR, ReportRenderer
from sale_readiness.settings.config import Config
from sale_readiness.workflows import context as context_module
from sale_readiness.workflows.blueprint import StageSpec, build_default_stages
from sale_readiness.workflows.state import ValuationState


class ValuationWorkflow:
    """Compose LangGraph nodes into a runnable valuation workflow."""

    def __init__(self, config: Config, *, include_writing: bool = True) -> None:
        self._config = config
        self._context = self._build_context()
        self._stages: List[StageSpec] = build_default_stages(include_writing=include_writing)
        self._graph = self._build_graph()

    @property
    def engine(self) -> ValuationEngine:
        return self._context.engine

    def _build_context(self) -> context_module.WorkflowContext:
        return context_module.WorkflowContext(
            config=self._config,
            engine=ValuationEngine(self._config.policy()),
            renderer=ReportRenderer(template_dir=TEMPLATE_DIR),
        )

    def _build_graph(self):
        builder = StateGraph(dict)

        if not self._stages:
            raise RuntimeError("Workflow blueprint is empty; cannot build LangGraph.")

        for stage in self._stages:
            builder.add_node(stage.key, self._wrap(stage.handler))

        # Stages run strictly in declared order; each one reads its predecessor's output.
        builder.set_entry_point(self._stages[0].key)
        for current, nxt in zip(self._stages, self._stages[1:]):
            builder.add_edge(current.key, nxt.key)
        builder.add_edge(self._stages[-1].key, END)

        return builder.compile(checkpointer=None)

    def _wrap(self, func: Callable[[ValuationState, context_module.WorkflowContext], ValuationState]):
        def wrapper(state: Dict[str, Any]) -> Dict[str, Any]:
            return func(state, self._context)

        return wrapper

    def run(
        self,
        payload: Any = None,
        company_name: Optional[str] = None,
        *,
        documents: Optional[Sequence[Document]] = None,
        multiplier_settings: Optional[MultiplierSettings] = None,
    ) -> ValuationState:
        """Execute the workflow for one company's payload or pre-built documents."""
        initial_state: ValuationState = {
            "company_name": company_name,
            "valuation_date": date.today().isoformat(),
            "payload": payload,
            "multiplier_settings": multiplier_settings,
            "logs": [],
            "errors": [],
            "stage_order": [stage.key for stage in self._stages],
        }
        if documents is not None:
            initial_state["documents"] = list(documents)
        result: ValuationState = self._graph.invoke(initial_state)
        return result  # type: ignore[return-value]

    def persist_state(self, state: ValuationState, path: Path) -> None:
        """Serialize the valuation outcome to disk for the downstream consumer."""
        path.parent.mkdir(parents=True, exist_ok=True)
        export = {
            "company_name": state.get("company_name"),
            "valuation_date": state.get("valuation_date"),
            "result": state.get("result"),
            "logs": state.get("logs", []),
            "errors": state.get("errors", []),
        }
        payload = json.dumps(export, default=_json_serializer, indent=2, ensure_ascii=False)
        path.write_text(payload, encoding="utf-8")

    def persist_markdown(self, markdown: str, path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(markdown, encoding="utf-8")

    def describe_stages(self) -> List[str]:
        """Return human-readable workflow stage descriptions."""
        return [f"{stage.key}: {stage.description}" for stage in self._stages]


def _json_serializer(value: Any) -> Any:
    if is_dataclass(value):
        return asdict(value)
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, date):
        return value.isoformat()
    if hasattr(value, "tolist"):
        return value.tolist()
    return str(value)
