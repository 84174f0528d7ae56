"""Scaffolding commands for app source repositories."""
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from appmanager.cli_support import handle_cli_error, is_verbose, print_success
from appmanager.core.config import get_config
from appmanager.models.app import validate_app_name
from appmanager.scaffold.deploy import DeploymentScriptGenerator
from appmanager.scaffold.templates import TemplateRenderError

ScaffoldTyper = typer.Typer(help="Generate helper files for app source repositories")


def register_scaffold_commands(root: typer.Typer, console: Console) -> None:
    """Attach scaffold subcommands to the main CLI."""

    @ScaffoldTyper.command("deploy-script")
    def deploy_script_command(
        app_name: str = typer.Argument(..., help="App the script deploys."),
        output: Path = typer.Option(Path("."), "--output", "-o", help="Directory to write into."),
        source_repo: Optional[str] = typer.Option(
            None, "--source-repo", help="Source repository (default: {org}/{app}-main)."
        ),
    ) -> None:
        """Write an executable {app}-deploy.sh."""
        error = validate_app_name(app_name)
        if error:
            raise typer.BadParameter(error, param_hint="APP_NAME")

        repo = source_repo or get_config().source_repo(app_name)
        try:
            path = DeploymentScriptGenerator().write_deploy_script(app_name, output, repo)
        except (TemplateRenderError, OSError) as exc:
            handle_cli_error(exc, console, is_verbose())
        print_success(console, f"Created {path}")

    root.add_typer(ScaffoldTyper, name="scaffold")
