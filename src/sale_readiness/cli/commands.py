"""CLI command definitions for the sale-readiness valuation engine."""
from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, List, Optional

import typer
from rich.console import Console
from rich.table import Table

from sale_readiness.domain.models.financials import ValuationMultiples
from sale_readiness.domain.models.policy import PoolingScope
from sale_readiness.domain.models.valuation import ValuationMethod, ValuationMetrics
from sale_readiness.domain.services.multipliers import (
    MultiplierSettings,
    manual_settings,
    validate_custom_multipliers,
)
from sale_readiness.domain.services.simulation import FutureScenario, ValuationSimulator
from sale_readiness.settings.config import Config
from sale_readiness.settings.loader import load_settings
from sale_readiness.utils.logging import configure_logging
from sale_readiness.workflows.graph import ValuationWorkflow
from sale_readiness.workflows.state import ValuationState

console = Console()
app = typer.Typer(help="Value a company from multi-period financial statements.")


@dataclass
class AppContext:
    """Holds reusable process-wide objects for CLI commands."""

    config: Config
    workflow: ValuationWorkflow


def _init_context(
    debug_override: Optional[bool] = None,
    pooling_override: Optional[PoolingScope] = None,
) -> AppContext:
    """Create a context with configuration, logging, and workflow wiring."""
    config = load_settings(debug_override=debug_override, pooling_override=pooling_override)
    configure_logging(debug=config.debug)
    workflow = ValuationWorkflow(config=config)
    return AppContext(config=config, workflow=workflow)


@app.callback()
def main_callback(
    ctx: typer.Context,
    debug: Optional[bool] = typer.Option(
        None,
        "--debug/--no-debug",
        help="Temporarily toggle verbose logging without touching environment variables.",
    ),
    pooling: Optional[PoolingScope] = typer.Option(
        None,
        "--pooling",
        case_sensitive=False,
        help="Weight periods per company (all documents pooled) or per document.",
    ),
) -> None:
    """Attach the lazily constructed application context to Typer."""
    ctx.obj = _init_context(debug_override=debug, pooling_override=pooling)


def _load_payload(path: Path) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise typer.BadParameter(f"Cannot read financial payload {path}: {exc}") from exc


def _multiplier_settings(
    revenue_multiple: Optional[float],
    ev_ebit: Optional[float],
    ev_ebitda: Optional[float],
    pe: Optional[float],
) -> Optional[MultiplierSettings]:
    settings = manual_settings(revenue_multiple, ev_ebit, ev_ebitda, pe)
    if settings is None:
        return None
    validation = validate_custom_multipliers(settings.custom_multipliers)
    if not validation.is_valid:
        raise typer.BadParameter(validation.error or "Invalid multipliers.", param_hint=validation.field)
    return settings


@app.command()
def value(
    ctx: typer.Context,
    input_path: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSON file with documents and periods."),
    name: Optional[str] = typer.Option(None, "--name", help="Optional company display name."),
    emit_json: bool = typer.Option(False, "--json", help="Persist the valuation result to JSON."),
    markdown_path: Optional[Path] = typer.Option(
        None,
        "--markdown",
        help="Optional custom path for the rendered Markdown summary.",
    ),
    revenue_multiple: Optional[float] = typer.Option(None, "--revenue-multiple", help="Manual EV/revenue multiple."),
    ev_ebit: Optional[float] = typer.Option(None, "--ev-ebit", help="Manual EV/EBIT multiple."),
    ev_ebitda: Optional[float] = typer.Option(None, "--ev-ebitda", help="Manual EV/EBITDA multiple."),
    pe: Optional[float] = typer.Option(None, "--pe", help="Manual P/E multiple (optional)."),
) -> None:
    """Run the valuation workflow for one payload and present the outcome."""
    if ctx.obj is None:
        raise typer.Exit(code=1)

    context: AppContext = ctx.obj
    payload = _load_payload(input_path)
    settings = _multiplier_settings(revenue_multiple, ev_ebit, ev_ebitda, pe)
    console.rule(f"Valuing {name or input_path.stem}")

    with console.status("[bold cyan]Running workflow..."):
        state: ValuationState = context.workflow.run(payload, company_name=name, multiplier_settings=settings)

    if state.get("errors"):
        console.print("[bold red]Workflow completed with errors:[/bold red]")
        for issue in state["errors"]:
            console.print(f"- {issue}")

    _print_run_summary(state)

    stem = input_path.stem
    if emit_json:
        target = context.config.output_dir / f"{stem}_valuation.json"
        context.workflow.persist_state(state, target)
        console.print(f"Valuation saved to {target}")

    if state.get("markdown_report"):
        output_md = markdown_path or context.config.output_dir / f"{stem}_valuation.md"
        context.workflow.persist_markdown(state["markdown_report"], output_md)
        console.print(f"Markdown summary available at {output_md}")


@app.command()
def simulate(
    ctx: typer.Context,
    input_path: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSON file with documents and periods."),
    revenue_multiple: Optional[float] = typer.Option(None, "--revenue-multiple", help="EV/revenue multiple to test."),
    ev_ebit: Optional[float] = typer.Option(None, "--ev-ebit", help="EV/EBIT multiple to test."),
    ev_ebitda: Optional[float] = typer.Option(None, "--ev-ebitda", help="EV/EBITDA multiple to test."),
    pe: Optional[float] = typer.Option(None, "--pe", help="P/E multiple to test."),
    methods: Optional[List[ValuationMethod]] = typer.Option(
        None, "--method", case_sensitive=False, help="Limit the simulation to these methods (repeatable)."
    ),
    revenue_growth: Optional[float] = typer.Option(None, "--revenue-growth", help="Scenario revenue growth, e.g. 0.1."),
    ebit_margin: Optional[float] = typer.Option(None, "--ebit-margin", help="Scenario target EBIT margin, e.g. 0.12."),
    current_value: Optional[float] = typer.Option(
        None, "--current-value", help="Value to compare against; defaults to the baseline average."
    ),
) -> None:
    """Re-value the latest figures with other multiples or a growth/margin scenario."""
    if ctx.obj is None:
        raise typer.Exit(code=1)

    context: AppContext = ctx.obj
    payload = _load_payload(input_path)
    state = context.workflow.run(payload)
    result = state.get("result")
    if result is None or result.headline is None:
        console.print("[bold red]Nothing to simulate: no financial periods found.[/bold red]")
        raise typer.Exit(code=2)

    baseline = result.headline
    supplied = baseline.latest_period.valuation_multiples
    multiples = ValuationMultiples.from_values(
        revenue=revenue_multiple if revenue_multiple is not None else supplied.revenue_multiple.value,
        ebit=ev_ebit if ev_ebit is not None else supplied.ev_to_ebit.value,
        ebitda=ev_ebitda if ev_ebitda is not None else supplied.ev_to_ebitda.value,
        pe=pe if pe is not None else supplied.price_to_earnings.value,
    )
    scenario = None
    if revenue_growth is not None or ebit_margin is not None:
        if ebit_margin is None:
            raise typer.BadParameter("--ebit-margin is required with a scenario.", param_hint="--ebit-margin")
        scenario = FutureScenario(revenue_growth=revenue_growth or 0.0, target_ebit_margin=ebit_margin)

    simulator = ValuationSimulator(context.config.policy())
    outcome = simulator.simulate(
        baseline,
        multiples=multiples,
        selected_methods=methods or None,
        scenario=scenario,
        current_value=current_value,
    )

    console.rule("Baseline")
    _print_metrics(baseline.metrics)
    console.rule("Simulation")
    _print_metrics(outcome.metrics)
    console.print(
        f"Change: {outcome.change.absolute:,.0f} ({outcome.change.percentage:+.1f}%)"
    )


@app.command()
def plan(ctx: typer.Context) -> None:
    """Display the workflow stages for quick operator reference."""
    if ctx.obj is None:
        raise typer.Exit(code=1)

    context: AppContext = ctx.obj
    table = Table(title="Workflow Stages")
    table.add_column("Step", style="cyan")
    table.add_column("Description")

    for idx, step in enumerate(context.workflow.describe_stages(), start=1):
        table.add_row(str(idx), step)

    console.print(table)


def _print_metrics(metrics: ValuationMetrics) -> None:
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Method")
    table.add_column("Applicability")
    table.add_column("Equity value", justify="right")

    table.add_row("book_value", "-", f"{metrics.book_value:,.0f}")
    table.add_row("asset_based_value", "-", f"{metrics.asset_based_value:,.0f}")
    for item in metrics.methods:
        table.add_row(item.method.value, item.applicability.value, f"{item.equity_value:,.0f}")
    table.add_row(
        "[bold]average[/bold]",
        f"{metrics.methods_included_count} method(s)",
        f"{metrics.average_equity_valuation:,.0f}",
    )
    table.add_row(
        "range",
        "",
        f"{metrics.equity_valuation_range.low:,.0f} - {metrics.equity_valuation_range.high:,.0f}",
    )
    console.print(table)


def _print_run_summary(state: ValuationState) -> None:
    """Pretty-print a short run summary for operators."""
    result = state.get("result")
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Key")
    table.add_column("Value")

    table.add_row("Company", state.get("company_name") or "N/A")
    table.add_row("Documents", str(len(state.get("documents") or [])))
    table.add_row("Status", result.status.value if result else "failed")
    if result is not None and result.headline is not None:
        headline = result.headline
        table.add_row("Pattern", headline.weighting.business_pattern.value)
        table.add_row("Periods", str(headline.weighting.period_count))
        table.add_row("Average", f"{headline.metrics.average_equity_valuation:,.0f}")
        table.add_row(
            "Range",
            f"{headline.metrics.equity_valuation_range.low:,.0f} - {headline.metrics.equity_valuation_range.high:,.0f}",
        )
        table.add_row("Methods", str(headline.metrics.methods_included_count))
    table.add_row("Errors", str(len(state.get("errors", []))))

    console.print(table)
    if result is not None:
        for warning in result.warnings:
            console.print(f"[yellow]{warning}[/yellow]")
