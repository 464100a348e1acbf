"""Typer-based CLI for SafeChange dependency analysis and change planning."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Dict, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from . import __version__
from .cli_config import config_app
from .cli_plan import plan_app
from .config_manager import load_scan_config
from .graph_export import export_dot, export_html, export_json
from .models import CHANGE_TYPES, RISK_LEVELS, AnalysisRecord, dedupe_affected_files
from .orchestrator import DependencyAnalyzer, summarize
from .risk import risk_ordinal, risk_score
from .validation_engine import ValidationEngine

console = Console()

RISK_STYLES = {"low": "green", "medium": "yellow", "high": "red", "critical": "bold red"}

app = typer.Typer(
    help="🛡️  SafeChange CLI: dependency impact analysis & safe change planning.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

app.add_typer(plan_app, name="plan")
app.add_typer(config_app, name="config")


def version_callback(value: bool):
    """Print version and exit."""
    if value:
        typer.echo(f"SafeChange CLI v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show progress logs."),
):
    """SafeChange CLI: know what breaks before you change it."""
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def risk_label(level: str) -> str:
    style = RISK_STYLES[level]
    return f"[{style}]{level}[/{style}]"


def _analyzer() -> DependencyAnalyzer:
    return DependencyAnalyzer(load_scan_config())


def _analyze(root: Optional[Path]) -> Dict[str, AnalysisRecord]:
    if root is not None and not root.is_dir():
        raise typer.BadParameter(f"'{root}' is not a directory.")
    return _analyzer().analyze_project(root)


def normalize_path(path: str) -> str:
    return Path(path).as_posix()


@app.command("analyze")
def analyze(
    root: Optional[Path] = typer.Argument(None, help="Source root (defaults to configured root)."),
    as_json: bool = typer.Option(False, "--json", help="Print the full analysis as JSON."),
    min_risk: Optional[str] = typer.Option(None, "--risk", "-r", help="Only list files at or above this risk level."),
):
    """📊 Scan a source tree and score every file's risk."""
    if min_risk is not None and min_risk not in RISK_LEVELS:
        raise typer.BadParameter(f"Risk must be one of: {', '.join(RISK_LEVELS)}")

    records = _analyze(root)
    summary = summarize(records)

    if as_json:
        typer.echo(json.dumps({
            "summary": summary,
            "analysis": {path: record.to_dict() for path, record in records.items()},
        }, indent=2, ensure_ascii=False))
        return

    if not records:
        console.print("[yellow]No source files found.[/yellow]")
        raise typer.Exit(code=0)

    threshold = risk_ordinal(min_risk) if min_risk else 0
    table = Table(title="Dependency Analysis", show_lines=False)
    table.add_column("File", style="cyan")
    table.add_column("Fan-in", justify="right")
    table.add_column("Fan-out", justify="right")
    table.add_column("Exports", justify="right")
    table.add_column("Score", justify="right")
    table.add_column("Risk")

    ordered = sorted(records.values(), key=lambda r: (-risk_score(r), r.path))
    for record in ordered:
        if risk_ordinal(record.risk_level) < threshold:
            continue
        table.add_row(
            record.path,
            str(record.fan_in),
            str(record.fan_out),
            str(len(record.exports)),
            str(risk_score(record)),
            risk_label(record.risk_level),
        )
    console.print(table)
    console.print(Panel(
        f"Files: {summary['total_files']}  |  Edges: {summary['edges']}  |  "
        f"High risk: {summary['high_risk_files']}  |  Critical: {summary['critical_files']}",
        title="Summary",
        border_style="blue",
    ))


@app.command("file")
def file_analysis(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="File to inspect."),
    as_json: bool = typer.Option(False, "--json", help="Print the record as JSON."),
):
    """🔎 Show the imports and exports found in one file."""
    record = _analyzer().analyze_file(path)
    if record is None:
        console.print(f"[red]❌ Could not read {path}[/red]")
        raise typer.Exit(code=1)

    if as_json:
        typer.echo(json.dumps(record.to_dict(), indent=2, ensure_ascii=False))
        return

    console.print(f"[bold]{record.path}[/bold]")
    imports = Table(title="Imports")
    imports.add_column("Line", justify="right")
    imports.add_column("Specifier", style="cyan")
    imports.add_column("Kind")
    imports.add_column("Symbols")
    for edge in record.imports:
        imports.add_row(str(edge.line_number), edge.raw_specifier, edge.kind, ", ".join(edge.imported_symbols))
    console.print(imports)

    exports = Table(title="Exports")
    exports.add_column("Line", justify="right")
    exports.add_column("Name", style="cyan")
    exports.add_column("Kind")
    exports.add_column("Default")
    for symbol in record.exports:
        exports.add_row(str(symbol.line_number), symbol.name, symbol.kind, "yes" if symbol.is_default else "")
    console.print(exports)


@app.command("impact")
def impact(
    path: str = typer.Argument(..., help="File whose change you want to assess."),
    change_type: str = typer.Option("modify", "--change-type", "-t", help="modify, delete or rename."),
    root: Optional[Path] = typer.Option(None, "--root", help="Source root (defaults to configured root)."),
    as_json: bool = typer.Option(False, "--json", help="Print impact records as JSON."),
):
    """💥 Predict which files a change to PATH would affect."""
    if change_type not in ("modify", "delete", "rename"):
        raise typer.BadParameter("Change type must be one of: modify, delete, rename")

    target = normalize_path(path)
    records = _analyze(root)
    record = records.get(target)
    if record is None:
        console.print(f"[red]❌ '{target}' is not part of the analyzed source tree.[/red]")
        raise typer.Exit(code=1)

    impacts = DependencyAnalyzer.predict_impact(records, target, change_type)

    if as_json:
        typer.echo(json.dumps({
            "file": target,
            "risk_level": record.risk_level,
            "impacts": [vars(i) for i in impacts],
            "affected_files": dedupe_affected_files(impacts),
        }, indent=2, ensure_ascii=False))
        return

    console.print(Panel(
        f"Risk: {risk_label(record.risk_level)}  (score {risk_score(record)})\n"
        f"Dependents: {record.fan_in}  |  Dependencies: {record.fan_out}",
        title=target,
        border_style=RISK_STYLES[record.risk_level].split()[-1],
    ))

    if not impacts:
        console.print("[green]No dependent files found.[/green]")
        return

    table = Table(title=f"Impact of {change_type}")
    table.add_column("Affected file", style="cyan")
    table.add_column("Type")
    table.add_column("Severity")
    table.add_column("Description")
    for item in impacts:
        table.add_row(item.affected_file, item.impact_type, risk_label(item.severity), item.description)
    console.print(table)
    console.print(f"{len(dedupe_affected_files(impacts))} unique file(s) affected.")


@app.command("validate")
def validate(
    path: str = typer.Argument(..., help="Path of the file being changed."),
    change_type: str = typer.Option("modify", "--change-type", "-t", help=f"One of: {', '.join(CHANGE_TYPES)}."),
    content_file: Optional[Path] = typer.Option(
        None, "--content-file", "-c", exists=True, dir_okay=False,
        help="File holding the proposed content (defaults to PATH itself).",
    ),
    as_json: bool = typer.Option(False, "--json", help="Print the result as JSON."),
):
    """✅ Check proposed content against path-specific change rules."""
    if change_type not in CHANGE_TYPES:
        raise typer.BadParameter(f"Change type must be one of: {', '.join(CHANGE_TYPES)}")

    source = content_file or Path(path)
    content = ""
    if source.is_file():
        content = source.read_text(encoding="utf-8", errors="ignore")

    result = ValidationEngine().validate_change(normalize_path(path), change_type, content)

    if as_json:
        typer.echo(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
    else:
        for error in result.errors:
            console.print(f"[red]✗ {error}[/red]")
        for warning in result.warnings:
            console.print(f"[yellow]⚠ {warning}[/yellow]")
        for recommendation in result.recommendations:
            console.print(f"[dim]• {recommendation}[/dim]")
        rules = ValidationEngine.rules_for(normalize_path(path))
        if rules:
            console.print("\n[bold]Checklist[/bold]")
            for rule in rules:
                console.print(f"  [ ] {rule}", markup=False)
        console.print(str(result))

    if not result.is_valid:
        raise typer.Exit(code=1)


@app.command("export-graph")
def export_graph(
    root: Optional[Path] = typer.Argument(None, help="Source root (defaults to configured root)."),
    fmt: str = typer.Option("html", "--format", "-f", help="Export format: html, dot or json."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Output file path."),
    focus: str = typer.Option("", "--focus", help="Only export files whose path contains this text, plus neighbours."),
):
    """🗺️  Export the dependency graph to HTML, Graphviz DOT or JSON."""
    fmt = fmt.lower()
    if fmt not in {"html", "dot", "json"}:
        raise typer.BadParameter("Format must be one of: html, dot, json")

    records = _analyze(root)
    if output is None:
        output = Path.cwd() / f"dependency_graph.{fmt}"

    if fmt == "html":
        export_html(records, output, focus=focus)
    elif fmt == "dot":
        export_dot(records, output, focus=focus)
    else:
        export_json(records, output)

    typer.echo(f"Exported graph to {output}")


if __name__ == "__main__":
    app()
