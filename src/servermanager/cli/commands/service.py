"""Service control commands."""

from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from servermanager.cli.commands.config import get_manager, report_error
from servermanager.core.errors import ServerManagerError
from servermanager.core.models import ServiceState

console = Console()

STATE_STYLES = {
    ServiceState.RUNNING: "green",
    ServiceState.STOPPED: "yellow",
    ServiceState.FAILED: "red",
    ServiceState.UNKNOWN: "dim",
}


async def status(service: Optional[str], options):
    """Show service status."""
    manager = get_manager(options)

    try:
        if service:
            statuses = [await manager.services.get_status(service)]
        else:
            statuses = await manager.services.get_all_statuses()
    except ServerManagerError as e:
        report_error(e)
        raise typer.Exit(1)

    table = Table(title="Service Status", show_header=True)
    table.add_column("Service", style="cyan")
    table.add_column("State")
    table.add_column("systemd")

    for s in statuses:
        style = STATE_STYLES[s.state]
        table.add_row(s.service.value, f"[{style}]{s.state.value}[/]", s.raw_state or "-")

    console.print(table)


async def control(service: str, action: str, options):
    """Start, stop, restart or reload a service."""
    manager = get_manager(options)

    try:
        result = await manager.services.control(service, action)
    except ServerManagerError as e:
        report_error(e)
        raise typer.Exit(1)

    if result.success:
        console.print(f"[green]✓ {result.message}[/]")
    else:
        console.print(f"[red]✗ {result.message}[/]")
        raise typer.Exit(1)

    console.print(f"  State: {result.previous_state.value} → {result.current_state.value}")
