"""Scripted ingress route management on the local manifest checkout."""
from typing import Optional

import typer
from rich.console import Console

from appmanager.cli_support import handle_cli_error, is_verbose, print_info, print_success, print_warning
from appmanager.core.config import get_config
from appmanager.core.lock import RepoLockError, check_lock_status, checkout_lock
from appmanager.core.session import SetupSession
from appmanager.manifests.ingress import IngressError, IngressFile
from appmanager.manifests.reader import ManifestError
from appmanager.models.app import Environment, validate_app_name
from appmanager.services.git_manager import GitError
from appmanager.services.k8s_repo import CommitOutcome, K8sRepository

IngressTyper = typer.Typer(help="List, add and remove tunnel ingress routes")


def _open_session(app_name: str) -> SetupSession:
    error = validate_app_name(app_name)
    if error:
        raise typer.BadParameter(error, param_hint="APP_NAME")
    repo = K8sRepository(get_config())
    if not repo.checkout.is_dir():
        raise IngressError(
            f"No local checkout at {repo.checkout}. Run 'app-manager setup' first."
        )
    return SetupSession.open(repo, app_name)


def _finish(console: Console, session: SetupSession, push: bool) -> None:
    """Refresh the README of a configured app and optionally push."""
    if session.exists:
        session.save_readme()
    if not push:
        print_info(console, "Changes are local; run with --push or 'app-manager setup' to publish")
        return
    outcome = session.commit()
    if outcome is CommitOutcome.PUSH_FAILED:
        raise GitError("Failed to push changes")
    if outcome is CommitOutcome.COMMITTED:
        print_success(console, "Changes pushed to GitHub")
    else:
        print_info(console, "No changes to commit")


def register_ingress_commands(root: typer.Typer, console: Console) -> None:
    """Attach ingress subcommands to the main CLI."""

    @IngressTyper.command("list")
    def list_command(
        app_name: Optional[str] = typer.Argument(None, help="Only routes for this app."),
    ) -> None:
        """Show ingress routes, optionally for one app."""
        repo = K8sRepository(get_config())
        try:
            routes = IngressFile.load(repo.ingress_path).list_routes(app_name)
        except IngressError as exc:
            handle_cli_error(exc, console, is_verbose())

        holder = check_lock_status(repo.checkout)
        if holder is not None:
            print_warning(console, f"A setup session (PID {holder.pid}) is editing this checkout")

        if not routes:
            console.print("No ingress routes configured.")
            return
        for route in routes:
            console.print(f"  {route}", highlight=False)

    @IngressTyper.command("add")
    def add_command(
        app_name: str = typer.Argument(..., help="App (service) receiving the traffic."),
        domain: str = typer.Argument(..., help="Domain to route, e.g. api.winit.dev."),
        port: Optional[int] = typer.Option(
            None, "--port", "-p", min=1, max=65535, help="Service port (default: container port)."
        ),
        env: Optional[str] = typer.Option(None, "--env", "-e", help="production or staging (default: app's environment)."),
        push: bool = typer.Option(False, "--push", help="Commit and push the change."),
    ) -> None:
        """Route a domain to an app."""
        environment = None
        if env is not None:
            environment = Environment.from_input(env)
            if environment is None:
                raise typer.BadParameter("Use production or staging", param_hint="--env")

        try:
            session = _open_session(app_name)
            with checkout_lock(session.repo.checkout):
                route = session.add_route(
                    domain, session.app.container_port if port is None else port, environment
                )
                print_success(console, f"Added ingress route: {route}")
                _finish(console, session, push)
        except (IngressError, ManifestError, RepoLockError, GitError) as exc:
            handle_cli_error(exc, console, is_verbose())

    @IngressTyper.command("remove")
    def remove_command(
        app_name: str = typer.Argument(..., help="App the route belongs to."),
        domain: str = typer.Argument(..., help="Domain to stop routing."),
        push: bool = typer.Option(False, "--push", help="Commit and push the change."),
    ) -> None:
        """Remove one of an app's routes."""
        try:
            session = _open_session(app_name)
            with checkout_lock(session.repo.checkout):
                session.remove_route(domain)
                print_success(console, f"Removed ingress route for: {domain}")
                if not session.routes():
                    print_warning(console, f"{app_name} has no ingress routes left")
                _finish(console, session, push)
        except (IngressError, ManifestError, RepoLockError, GitError) as exc:
            handle_cli_error(exc, console, is_verbose())

    root.add_typer(IngressTyper, name="ingress")
