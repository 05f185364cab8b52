"""Main CLI entry point for servermanager."""

import asyncio
import os
from enum import Enum
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from servermanager.logging_config import setup_logging
from servermanager.settings import ConsoleSettings, Environment

# Create the main app
app = typer.Typer(
    name="servermanager",
    help="Server Manager - configuration and service control for BIND, ISC DHCP and Apache",
    no_args_is_help=True,
)

console = Console()


class Domain(str, Enum):
    """Configuration domain."""

    DNS = "dns"
    DHCP = "dhcp"
    HTTP = "http"


# Global options stored in context
class GlobalOptions:
    def __init__(self):
        self.environment: Optional[Environment] = None
        self.root: Optional[Path] = None
        self.verbose: bool = False

    def settings(self) -> ConsoleSettings:
        """Settings from the environment, with command-line overrides applied."""
        environ = dict(os.environ)
        if self.environment is not None:
            environ["SERVERMANAGER_ENV"] = self.environment.value
        if self.root is not None:
            environ["SERVERMANAGER_ROOT"] = str(self.root)
        return ConsoleSettings.from_env(environ)


# ============================================================================
# Config Commands
# ============================================================================

config_app = typer.Typer(help="Configuration management")
app.add_typer(config_app, name="config")


@config_app.command("validate")
def config_validate(
    ctx: typer.Context,
    domain: Domain = typer.Argument(..., help="Configuration domain"),
    file: Path = typer.Argument(..., help="JSON configuration file"),
):
    """Validate a configuration without rendering it."""
    from servermanager.cli.commands.config import validate

    asyncio.run(validate(domain.value, file, ctx.obj))


@config_app.command("render")
def config_render(
    ctx: typer.Context,
    domain: Domain = typer.Argument(..., help="Configuration domain"),
    file: Path = typer.Argument(..., help="JSON configuration file"),
):
    """Show the files a configuration would produce."""
    from servermanager.cli.commands.config import render

    asyncio.run(render(domain.value, file, ctx.obj))


@config_app.command("apply")
def config_apply(
    ctx: typer.Context,
    domain: Domain = typer.Argument(..., help="Configuration domain"),
    file: Path = typer.Argument(..., help="JSON configuration file"),
):
    """Validate, write, check and reload."""
    from servermanager.cli.commands.config import apply

    asyncio.run(apply(domain.value, file, ctx.obj))


@config_app.command("show")
def config_show(
    ctx: typer.Context,
    domain: Domain = typer.Argument(..., help="Configuration domain"),
):
    """Show current configuration."""
    from servermanager.cli.commands.config import show

    asyncio.run(show(domain.value, ctx.obj))


# ============================================================================
# Service Commands
# ============================================================================

service_app = typer.Typer(help="Service control commands")
app.add_typer(service_app, name="service")


@service_app.command("status")
def service_status(
    ctx: typer.Context,
    service: Optional[str] = typer.Argument(None, help="named, dhcpd or httpd (all if omitted)"),
):
    """Get service status."""
    from servermanager.cli.commands.service import status

    asyncio.run(status(service, ctx.obj))


@service_app.command("start")
def service_start(
    ctx: typer.Context,
    service: str = typer.Argument(..., help="named, dhcpd or httpd"),
):
    """Start a service."""
    from servermanager.cli.commands.service import control

    asyncio.run(control(service, "start", ctx.obj))


@service_app.command("stop")
def service_stop(
    ctx: typer.Context,
    service: str = typer.Argument(..., help="named, dhcpd or httpd"),
):
    """Stop a service."""
    from servermanager.cli.commands.service import control

    asyncio.run(control(service, "stop", ctx.obj))


@service_app.command("restart")
def service_restart(
    ctx: typer.Context,
    service: str = typer.Argument(..., help="named, dhcpd or httpd"),
):
    """Restart a service."""
    from servermanager.cli.commands.service import control

    asyncio.run(control(service, "restart", ctx.obj))


@service_app.command("reload")
def service_reload(
    ctx: typer.Context,
    service: str = typer.Argument(..., help="named, dhcpd or httpd"),
):
    """Reload configuration without restart."""
    from servermanager.cli.commands.service import control

    asyncio.run(control(service, "reload", ctx.obj))


# ============================================================================
# Version Command
# ============================================================================


@app.command("version")
def version():
    """Show version information."""
    from servermanager import __version__

    console.print(f"servermanager version {__version__}")
    console.print("Server Manager")


# ============================================================================
# Main Callback (Global Options)
# ============================================================================


@app.callback()
def main(
    ctx: typer.Context,
    env: Optional[Environment] = typer.Option(
        None, "--env", "-e", help="production or development (default from SERVERMANAGER_ENV)"
    ),
    root: Optional[Path] = typer.Option(
        None, "--root", help="Base directory for development paths"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Server Manager - configuration and service control."""
    ctx.ensure_object(GlobalOptions)
    ctx.obj.environment = env
    ctx.obj.root = root
    ctx.obj.verbose = verbose
    setup_logging("DEBUG" if verbose else None, rich_output=True)


if __name__ == "__main__":
    app()
