"""Release an app: version, deploy workflow, k8s tag and run watch."""
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from appmanager.cli_support import (
    ask,
    confirm_action,
    handle_cli_error,
    is_verbose,
    print_banner,
    print_error,
    print_hints,
    print_info,
    print_success,
    print_warning,
)
from appmanager.core.config import AppManagerConfig, get_config
from appmanager.core.logger import get_logger
from appmanager.deploy.runner import DeployError, DeployRunner, extract_run_id
from appmanager.deploy.versioning import (
    VersionError,
    increment_patch,
    k8s_tag,
    normalize_version,
    workflow_tag,
)
from appmanager.models.app import Environment, validate_app_name
from appmanager.services.git_manager import GitError, GitManager
from appmanager.services.github_cli import GitHubCLI

logger = get_logger(__name__)

# Module-level console instance (will be set by register function)
console: Console = Console()

DEFAULT_COMMIT_MESSAGE = "WIP: prepare for deployment"


def commit_pending_changes(git: GitManager, yes: bool = False) -> None:
    """Offer to commit and push local changes before releasing."""
    if not git.is_repository():
        return
    changes = git.status_porcelain()
    if not changes:
        return

    print_warning(console, "You have uncommitted changes:")
    for line in changes:
        console.print(f"  {line}", highlight=False)
    console.print()

    if not confirm_action("Commit and push them before deploying?", yes):
        print_info(console, "Continuing without committing")
        return

    message = DEFAULT_COMMIT_MESSAGE if yes else (
        ask(f"Commit message [default: {DEFAULT_COMMIT_MESSAGE}]:") or DEFAULT_COMMIT_MESSAGE
    )
    git.add_all()
    if git.commit(message):
        git.push_current()
        print_success(console, "Changes committed and pushed")
    else:
        print_info(console, "Nothing to commit")


def prompt_environment(env: Optional[str], yes: bool = False) -> Environment:
    """Resolve ``--env`` or ask until a valid environment is entered.

    An empty answer, or ``--yes`` without ``--env``, means production.
    """
    if env is not None:
        environment = Environment.from_input(env)
        if environment is None:
            raise typer.BadParameter("Use production or staging", param_hint="--env")
        return environment
    if yes:
        return Environment.PRODUCTION

    while True:
        answer = ask("Environment (production/staging) [default: production]:")
        environment = Environment.from_input(answer or Environment.PRODUCTION.value)
        if environment is not None:
            return environment
        print_error(console, "Invalid environment. Please enter 'production' or 'staging'")


def prompt_version(suggested: str, version: Optional[str], yes: bool) -> str:
    if version is None:
        version = suggested if yes else (
            ask(f"Version to deploy [default: {suggested}]:") or suggested
        )
    return normalize_version(version)


def print_summary(
    config: AppManagerConfig,
    app_name: str,
    environment: Environment,
    version: str,
    tag: str,
    source_repo: str,
) -> None:
    console.print()
    console.print("Deployment summary:")
    console.print(f"  App:          {app_name}", highlight=False)
    console.print(f"  Environment:  {environment.value}", highlight=False)
    console.print(f"  Version:      {version}", highlight=False)
    console.print(f"  Workflow tag: {tag}", highlight=False)
    console.print(f"  K8s repo:     {config.k8s_repo_for(environment.value)}", highlight=False)
    if source_repo:
        console.print(f"  Source repo:  {source_repo}", highlight=False)
    console.print()


def deploy(
    app_name: str = typer.Argument(..., help="App to deploy"),
    env: Optional[str] = typer.Option(None, "--env", "-e", help="production or staging (prompted when omitted)"),
    version: Optional[str] = typer.Option(None, "--version", help="Version X.Y.Z (default: latest patch + 1)"),
    source_repo: Optional[str] = typer.Option(None, "--source-repo", help="Source repository passed to the deploy script"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Accept defaults without prompting"),
):
    """Deploy a new version of an app.

    Examples:
        app-manager deploy my-api
        app-manager deploy my-api --env staging --version 1.2.0
    """
    error = validate_app_name(app_name)
    if error:
        raise typer.BadParameter(error, param_hint="APP_NAME")

    config = get_config()
    runner = DeployRunner(config, GitHubCLI())
    source_repo = source_repo or config.source_repo(app_name)

    print_banner(console, f"🚀 Deploy {app_name}")
    console.print()

    try:
        commit_pending_changes(GitManager(Path.cwd()), yes)
    except GitError as exc:
        handle_cli_error(exc, console, is_verbose())

    environment = prompt_environment(env, yes)

    print_info(console, "Looking up the latest deployed version...")
    latest = runner.latest_version(app_name, environment)
    suggested = increment_patch(latest)
    console.print(f"  Latest version: {latest}", highlight=False)

    try:
        release = prompt_version(suggested, version, yes)
    except VersionError as exc:
        handle_cli_error(exc, console, is_verbose())

    suffix = environment.tag_suffix
    tag = workflow_tag(release, suffix)
    release_tag = k8s_tag(release, app_name, suffix)
    print_summary(config, app_name, environment, release, tag, source_repo)

    script = runner.find_deploy_script()
    if script is None:
        print_error(console, f"Deploy script {config.deploy_script} not found")
        print_hints(console, [
            f"Clone {config.github_org}/{config.deploy_repo_name} next to this repository, or run manually:",
            f"  cd ../{config.deploy_repo_name}",
            f"  ./{config.deploy_script} {app_name} {tag} {source_repo}",
        ])
        raise typer.Exit(1)

    print_info(console, f"Running {script}...")
    try:
        code, output = runner.run_deploy_script(script, app_name, tag, source_repo)
    except DeployError as exc:
        handle_cli_error(exc, console, is_verbose())

    if code != 0:
        console.print(output, highlight=False, markup=False, soft_wrap=True)
        print_error(console, f"Deploy script failed (exit code {code})")
        raise typer.Exit(code)
    if output:
        console.print(output, highlight=False, markup=False, soft_wrap=True)

    run_id = extract_run_id(output)
    logger.debug(f"Workflow run id: {run_id}")

    print_info(console, f"Tagging {release_tag}...")
    outcome = runner.tag_release(environment, release_tag)
    if outcome is None:
        print_warning(console, f"Could not create or update tag {release_tag}")
    else:
        print_success(console, f"Tag {release_tag} {outcome}")

    if run_id is None:
        print_warning(console, "Could not determine the workflow run id")
        print_hints(console, [
            "Check the run with:",
            f"  gh run list --repo {config.k8s_repo_for(environment.value)} --workflow={config.deploy_workflow}",
        ])
        return

    print_info(console, f"Watching workflow run: {runner.run_url(environment, run_id)}")
    exit_code = runner.watch(environment, run_id)
    if exit_code != 0:
        print_error(console, f"Deployment of {app_name} {release} failed")
        raise typer.Exit(exit_code)

    console.print()
    print_success(console, f"Deployed {app_name} {release} to {environment.value}")


def register_deploy_commands(app: typer.Typer, shared_console: Console) -> None:
    """Register the deploy command with the main Typer app."""
    global console
    console = shared_console

    app.command("deploy")(deploy)
