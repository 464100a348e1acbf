"""CLI commands for staged, rollback-capable change plans."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .config_manager import load_scan_config
from .errors import SafeChangeError
from .models import CHANGE_STEPS, CHANGE_TYPES, ChangePlan
from .orchestrator import DependencyAnalyzer
from .planner import ChangePlanner
from .storage import JsonPlanStore

console = Console()

plan_app = typer.Typer(help="📋 Safe change plans: create, execute, roll back.")

STATUS_STYLES = {
    "pending": "white",
    "in_progress": "cyan",
    "completed": "green",
    "failed": "red",
    "rolled_back": "yellow",
}


def _get_planner(root: Optional[Path] = None) -> ChangePlanner:
    """Planner wired to the on-disk plan store."""
    return ChangePlanner(
        analyzer=DependencyAnalyzer(load_scan_config()),
        store=JsonPlanStore(),
        root=root,
    )


def _print_plan(plan: ChangePlan) -> None:
    status_style = STATUS_STYLES[plan.status]
    risk = plan.analysis.risk_level if plan.analysis else "unknown"
    console.print(Panel(
        f"[bold]{plan.change_type}[/bold] {plan.file_path}\n"
        f"{plan.description}\n\n"
        f"Status: [{status_style}]{plan.status}[/{status_style}]  |  "
        f"Step: {plan.current_step} ({CHANGE_STEPS.index(plan.current_step) + 1}/{len(CHANGE_STEPS)})  |  "
        f"Risk: {risk}",
        title=f"📋 {plan.id}",
        border_style=status_style,
    ))
    if plan.last_error:
        console.print(f"[red]Last error: {plan.last_error}[/red]")

    sections = [
        ("Risks", plan.risks, "red"),
        ("Affected files", plan.affected_files, "cyan"),
        ("Procedure", plan.procedure, "white"),
        ("Rollback plan", plan.rollback_plan, "yellow"),
        ("Validation checks", plan.validation_checks, "green"),
        ("Recommendations", plan.recommendations, "dim"),
    ]
    for title, items, style in sections:
        if not items:
            continue
        console.print(f"\n[bold]{title}[/bold]")
        for item in items:
            console.print(f"  [{style}]{item}[/{style}]")


@plan_app.command("create")
def create_plan(
    path: str = typer.Argument(..., help="File to change."),
    change_type: str = typer.Argument(..., help=f"One of: {', '.join(CHANGE_TYPES)}."),
    description: str = typer.Argument(..., help="What the change is for."),
    root: Optional[Path] = typer.Option(None, "--root", help="Source root (defaults to configured root)."),
    as_json: bool = typer.Option(False, "--json", help="Print the plan as JSON."),
):
    """📝 Analyze the project and create a change plan for PATH.

    Example:
      sc plan create src/lib/utils/format.ts modify "Add currency option"
    """
    if change_type not in CHANGE_TYPES:
        raise typer.BadParameter(f"Change type must be one of: {', '.join(CHANGE_TYPES)}")

    planner = _get_planner(root)
    try:
        plan = planner.create_change_plan(Path(path).as_posix(), change_type, description)
    except SafeChangeError as e:
        console.print(f"[red]❌ Error: {e}[/red]")
        raise typer.Exit(1)

    if as_json:
        typer.echo(json.dumps(plan.to_dict(), indent=2, ensure_ascii=False))
        return

    _print_plan(plan)
    if planner.requires_confirmation(plan):
        console.print("\n[bold red]⚠ Review the risks above before executing this plan.[/bold red]")
    console.print(f"\nExecute with: sc plan execute {plan.id}")


@plan_app.command("show")
def show_plan(
    plan_id: str = typer.Argument(..., help="Plan id."),
    as_json: bool = typer.Option(False, "--json", help="Print the plan as JSON."),
):
    """🔍 Show one change plan."""
    plan = _get_planner().get_change_plan(plan_id)
    if plan is None:
        console.print(f"[red]❌ Change plan not found: {plan_id}[/red]")
        raise typer.Exit(1)
    if as_json:
        typer.echo(json.dumps(plan.to_dict(), indent=2, ensure_ascii=False))
        return
    _print_plan(plan)


@plan_app.command("list")
def list_plans(
    as_json: bool = typer.Option(False, "--json", help="Print plans and summary as JSON."),
):
    """📚 List all change plans."""
    planner = _get_planner()
    plans = planner.list_change_plans()
    summary = planner.summarize()

    if as_json:
        typer.echo(json.dumps({
            "summary": summary,
            "plans": [plan.to_dict() for plan in plans],
        }, indent=2, ensure_ascii=False))
        return

    if not plans:
        console.print("No change plans yet.")
        raise typer.Exit(code=0)

    table = Table(title="Change Plans")
    table.add_column("ID", style="cyan")
    table.add_column("Type")
    table.add_column("File")
    table.add_column("Status")
    table.add_column("Step")
    table.add_column("Updated")
    for plan in plans:
        style = STATUS_STYLES[plan.status]
        table.add_row(
            plan.id,
            plan.change_type,
            plan.file_path,
            f"[{style}]{plan.status}[/{style}]",
            plan.current_step,
            plan.updated_at[:19],
        )
    console.print(table)
    console.print(
        " | ".join(f"{key}: {value}" for key, value in summary.items())
    )


@plan_app.command("execute")
def execute_plan(
    plan_id: str = typer.Argument(..., help="Plan id."),
    run_all: bool = typer.Option(False, "--all", "-a", help="Run every remaining step."),
    auto_yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation for risky plans."),
):
    """🚀 Execute the next step (or all remaining steps) of a plan."""
    planner = _get_planner()
    plan = planner.get_change_plan(plan_id)
    if plan is None:
        console.print(f"[red]❌ Change plan not found: {plan_id}[/red]")
        raise typer.Exit(1)

    if planner.requires_confirmation(plan) and not plan.is_terminal and not auto_yes:
        for risk in plan.risks:
            console.print(f"[red]⚠ {risk}[/red]")
        console.print(f"[yellow]{len(plan.affected_files)} file(s) affected.[/yellow]")
        if not typer.confirm("❓ Proceed with this plan?", default=False):
            console.print("❌ Execution cancelled")
            raise typer.Exit(0)

    try:
        results = planner.execute_all(plan_id) if run_all else [planner.execute_change_plan(plan_id)]
    except SafeChangeError as e:
        console.print(f"[red]❌ Error: {e}[/red]")
        raise typer.Exit(1)

    for result in results:
        style = "green" if result.success else "red"
        console.print(f"[{style}]{result}[/{style}]")

    plan = planner.get_change_plan(plan_id)
    if plan is not None:
        console.print(f"Status: {plan.status} | Step: {plan.current_step}")
        if plan.status == "failed":
            console.print(f"   Roll back with: sc plan rollback {plan_id}")
    if not results[-1].success:
        raise typer.Exit(1)


@plan_app.command("delete")
def delete_plan(
    plan_id: str = typer.Argument(..., help="Plan id."),
):
    """🗑️  Delete a stored change plan."""
    try:
        _get_planner().delete_change_plan(plan_id)
    except SafeChangeError as e:
        console.print(f"[red]❌ Error: {e}[/red]")
        raise typer.Exit(1)
    typer.echo(f"Deleted change plan '{plan_id}'.")


@plan_app.command("rollback")
def rollback_plan(
    plan_id: str = typer.Argument(..., help="Plan id."),
):
    """⏪ Roll back a plan that is pending, in progress or failed."""
    planner = _get_planner()
    try:
        result = planner.rollback_change_plan(plan_id)
    except SafeChangeError as e:
        console.print(f"[red]❌ Error: {e}[/red]")
        raise typer.Exit(1)

    style = "green" if result.success else "red"
    console.print(f"[{style}]{result}[/{style}]")
    if not result.success:
        raise typer.Exit(1)
