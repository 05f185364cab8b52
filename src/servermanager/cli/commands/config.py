"""Configuration management commands."""

import json
from pathlib import Path
from typing import Any

import typer
from rich.console import Console
from rich.syntax import Syntax
from rich.table import Table

from servermanager.core.errors import InvalidConfigurationError, ServerManagerError
from servermanager.core.manager import ServerManager

console = Console()

LEXERS = {"dns": "text", "dhcp": "text", "http": "apacheconf"}


def get_manager(options) -> ServerManager:
    """Build a manager from the global options."""
    return ServerManager.from_settings(options.settings())


def load_json(file: Path) -> Any:
    """Read a JSON configuration file, exiting on unreadable input."""
    try:
        return json.loads(file.read_text())
    except FileNotFoundError:
        console.print(f"[red]File not found: {file}[/]")
        raise typer.Exit(1)
    except json.JSONDecodeError as e:
        console.print(f"[red]Invalid JSON in {file}: {e}[/]")
        raise typer.Exit(1)


def report_error(error: ServerManagerError) -> None:
    """Print a classified error; field errors go in a table."""
    stage = f" during {error.stage.value}" if error.stage else ""
    console.print(f"[red]✗ {error.message}{stage}[/] [dim]({error.kind.value})[/]")

    if isinstance(error, InvalidConfigurationError):
        table = Table(show_header=True)
        table.add_column("Field", style="cyan")
        table.add_column("Error", style="red")
        for field_error in error.errors:
            table.add_row(field_error.path, field_error.message)
        console.print(table)
    elif error.details:
        console.print(f"[dim]{error.details}[/]")


def print_warnings(warnings: list[str]) -> None:
    if warnings:
        console.print("\n[yellow]Warnings:[/]")
        for warning in warnings:
            console.print(f"  [yellow]{warning}[/]")


async def validate(domain: str, file: Path, options):
    """Validate configuration."""
    raw = load_json(file)
    manager = get_manager(options)
    applier = manager.applier(domain)

    try:
        applier.validate(raw)
    except ServerManagerError as e:
        report_error(e)
        raise typer.Exit(1)

    console.print(f"[green]✓ {applier.label} is valid[/]")


async def render(domain: str, file: Path, options):
    """Render configuration to the console."""
    raw = load_json(file)
    manager = get_manager(options)

    try:
        artifacts = manager.applier(domain).preview(raw)
    except ServerManagerError as e:
        report_error(e)
        raise typer.Exit(1)

    for artifact in artifacts:
        console.print(f"\n[bold]{artifact.path}[/]")
        console.print(Syntax(artifact.content, LEXERS[domain], theme="monokai", line_numbers=True))

    print_warnings([w for a in artifacts for w in a.warnings])


async def apply(domain: str, file: Path, options):
    """Apply configuration."""
    raw = load_json(file)
    manager = get_manager(options)

    try:
        result = await manager.applier(domain).apply(raw)
    except ServerManagerError as e:
        report_error(e)
        raise typer.Exit(1)

    console.print(f"[green]✓ {result.message}[/]")
    for path in result.artifacts:
        console.print(f"  [dim]wrote[/] {path}")
    if result.service_result is not None:
        console.print(f"  [dim]service:[/] {result.service_result.message}")
    print_warnings(result.warnings)


async def show(domain: str, options):
    """Show current configuration."""
    manager = get_manager(options)

    try:
        data = await manager.applier(domain).current_configuration()
    except ServerManagerError as e:
        report_error(e)
        raise typer.Exit(1)

    console.print_json(data=data)
