"""CLI commands for scan configuration."""

from __future__ import annotations

import typer
from rich.console import Console
from rich.table import Table

from . import config
from .config_manager import SCAN_KEYS, load_scan_config, reset_scan_config, set_scan_value

console = Console()

config_app = typer.Typer(help="⚙️  Scan configuration: root, extensions, ignore patterns.")


@config_app.command("show")
def show_config():
    """Show the effective scan configuration."""
    scan = load_scan_config()
    table = Table(title="Scan configuration")
    table.add_column("Key", style="cyan")
    table.add_column("Value")
    for key, value in scan.to_dict().items():
        if isinstance(value, list):
            value = ", ".join(value)
        table.add_row(key, str(value))
    console.print(table)
    console.print(f"[dim]User config: {config.CONFIG_FILE}[/dim]")


@config_app.command("set")
def set_config(
    key: str = typer.Argument(..., help=f"One of: {', '.join(SCAN_KEYS)}."),
    value: str = typer.Argument(..., help="New value; lists are comma-separated."),
):
    """Set a scan option in the user config file.

    Example:
      sc config set extensions ".ts,.tsx,.svelte"
      sc config set root app/src
    """
    try:
        saved = set_scan_value(key, value)
    except KeyError:
        raise typer.BadParameter(f"Unknown key '{key}'. Use one of: {', '.join(SCAN_KEYS)}")
    except ValueError as e:
        raise typer.BadParameter(str(e))

    if not saved:
        console.print(f"[red]❌ Could not write {config.CONFIG_FILE}[/red]")
        raise typer.Exit(1)
    console.print(f"[green]✅ scan.{key} updated[/green]")


@config_app.command("reset")
def reset_config():
    """Restore default scan settings."""
    if not reset_scan_config():
        console.print(f"[red]❌ Could not write {config.CONFIG_FILE}[/red]")
        raise typer.Exit(1)
    console.print("[green]✅ Scan configuration reset to defaults[/green]")
