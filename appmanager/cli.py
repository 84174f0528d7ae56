#!/usr/bin/env python3
"""app-manager CLI - Kubernetes app scaffolding for the tunnel cluster."""
from typing import Optional

import typer
from rich.console import Console

from appmanager.cli_deploy_commands import register_deploy_commands
from appmanager.cli_ingress_commands import register_ingress_commands
from appmanager.cli_scaffold_commands import register_scaffold_commands
from appmanager.cli_setup_commands import register_setup_commands
from appmanager.cli_support import handle_cli_error, set_verbose
from appmanager.core.config import ConfigError, load_config, set_config
from appmanager.core.logger import get_logger, set_console_level, setup_file_logging

app = typer.Typer(
    name="app-manager",
    help="""app-manager - Kubernetes app configuration for the tunnel cluster

Manifests, ingress routes and source repos in one place.

Quick start:
  app-manager setup my-api                      # Configure an app interactively
  app-manager ingress add my-api api.winit.dev  # Route a domain to it
  app-manager deploy my-api                     # Release a new version
""",
    add_completion=False,
)

console = Console()
logger = get_logger(__name__)


@app.callback()
def main(
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Config file (default: ./app-manager.yml)"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging and tracebacks"),
    log_file: Optional[str] = typer.Option(None, "--log-file", help="Also write logs to this file"),
):
    """Load configuration and logging before any command runs."""
    set_verbose(verbose)
    set_console_level(verbose)
    if log_file:
        setup_file_logging(log_file=log_file, verbose=verbose)

    try:
        set_config(load_config(config))
    except ConfigError as exc:
        handle_cli_error(exc, console, verbose, exit_code=2)


# Attach modular subcommands
register_setup_commands(app, console)
register_ingress_commands(app, console)
register_deploy_commands(app, console)
register_scaffold_commands(app, console)

if __name__ == "__main__":
    app()
