"""Interactive app setup: manifests, ingress routes, commit and source repo."""
import re
from typing import Optional

import typer
from rich.console import Console

from appmanager.cli_support import (
    ask,
    handle_cli_error,
    is_verbose,
    print_banner,
    print_error,
    print_hints,
    print_info,
    print_menu,
    print_success,
    print_warning,
)
from appmanager.core.config import get_config
from appmanager.core.lock import RepoLockError, checkout_lock
from appmanager.core.session import SetupSession
from appmanager.manifests.ingress import IngressError
from appmanager.manifests.reader import ManifestError
from appmanager.models.app import (
    Environment,
    ResourceSpec,
    parse_environment,
    parse_port,
    parse_replicas,
    validate_app_name,
)
from appmanager.services.git_manager import GitError
from appmanager.services.github_cli import GitHubCLI, GitHubCLIError, GitHubCLINotReady
from appmanager.services.k8s_repo import CommitOutcome, K8sRepoError, K8sRepository
from appmanager.services.source_repo import SourceRepoCreator

# Module-level console instance (will be set by register function)
console: Console = Console()


class SessionExit(Exception):
    """Raised to leave the main menu with an exit code."""

    def __init__(self, code: int = 0):
        super().__init__(code)
        self.code = code


def _current_or_default(session: SetupSession, label: str, current, default) -> str:
    if session.exists and current not in (None, ""):
        return f"{label} [current: {current}] (press Enter to keep):"
    return f"Enter {label.lower()} [default: {default}]:"


def prompt_app_name(initial: Optional[str] = None) -> str:
    """Ask until the app name is valid; ``initial`` is tried first."""
    candidate = initial
    while True:
        if candidate is None:
            candidate = ask("Enter app name:")
        error = validate_app_name(candidate)
        if error is None:
            return candidate
        print_error(console, error)
        candidate = None


def describe_app(session: SetupSession) -> None:
    app = session.app
    if not session.exists:
        print_info(console, f"App '{app.name}' not found (new app)")
        return
    print_success(console, f"App '{app.name}' found (existing app)")
    console.print()
    console.print("Current configuration:")
    console.print(f"  Environment: {app.environment.value} (namespace: {app.namespace})")
    console.print(f"  Replicas: {app.replicas}")
    console.print(f"  Container Port: {app.container_port}")
    console.print(f"  Resources: {app.resources.summary()}")
    console.print()


def prompt_environment(session: SetupSession) -> Environment:
    app = session.app
    if session.exists:
        answer = ask(
            f"Environment [current: {app.environment.value}] (press Enter to keep, or enter new):"
        )
        current = app.environment
    else:
        answer = ask("Configure for which environment? (production/staging) [default: production]:")
        current = None
    env, warning = parse_environment(answer, current)
    if warning:
        print_error(console, warning)
    return env


def prompt_replicas(session: SetupSession) -> int:
    current = session.app.replicas if session.exists else None
    if session.exists:
        answer = ask(f"Number of replicas [current: {current}] (press Enter to keep):")
    else:
        answer = ask("Enter number of replicas [default: 1]:")
    replicas, warning = parse_replicas(answer, current)
    if warning:
        print_warning(console, warning)
    return replicas


def prompt_resources(session: SetupSession) -> ResourceSpec:
    current = session.app.resources if session.exists else ResourceSpec()
    labels = [
        ("memory_request", "Memory request"),
        ("memory_limit", "Memory limit"),
        ("cpu_request", "CPU request"),
        ("cpu_limit", "CPU limit"),
    ]
    values = {}
    for field_name, label in labels:
        value = getattr(current, field_name)
        values[field_name] = ask(_current_or_default(session, label, value, value)) or value
    return ResourceSpec(**values)


def prompt_container_port(session: SetupSession) -> int:
    current = session.app.container_port if session.exists else None
    if session.exists:
        answer = ask(f"Container port [current: {current}] (press Enter to keep):")
    else:
        answer = ask("Enter container port [default: 3000]:")
    port, warning = parse_port(answer, current)
    if warning:
        print_warning(console, warning)
    return port


def configure_app_settings(session: SetupSession) -> None:
    """Menu option 1: prompt for every setting, then rewrite manifest and README."""
    environment = prompt_environment(session)
    replicas = prompt_replicas(session)
    resources = prompt_resources(session)
    port = prompt_container_port(session)
    session.update(
        environment=environment,
        replicas=replicas,
        resources=resources,
        container_port=port,
    )

    print_info(console, "Creating/updating Kubernetes manifest...")
    session.save_manifest()
    print_success(console, f"Created/updated {session.repo.manifest_path(session.name)}")
    session.save_readme()
    print_success(console, "Created/updated README")


def show_routes(session: SetupSession) -> int:
    routes = session.routes()
    if not routes:
        console.print("No ingress routes configured.")
        return 0
    console.print()
    console.print("Current ingress routes:")
    for idx, route in enumerate(routes, start=1):
        console.print(f"  {idx}. {route.host} -> {session.name}:{route.port}", highlight=False)
    return len(routes)


def add_ingress_route(session: SetupSession) -> None:
    domain = ask(f"Enter domain name (e.g., {session.name}.winit.dev):")
    if not domain:
        print_error(console, "Domain cannot be empty")
        return

    if session.has_host(domain):
        print_warning(console, f"Ingress route for {domain} already exists")
        return

    container_port = session.app.container_port
    answer = ask(f"Enter local port for {domain} [default: {container_port}]:")
    port, warning = parse_port(answer, container_port, default=container_port)
    if warning:
        print_warning(console, f"Invalid port, using container port: {container_port}")

    route = session.add_route(domain, port)
    print_success(console, f"Added ingress route: {route}")


def remove_ingress_route(session: SetupSession) -> None:
    if not session.routes():
        print_warning(console, "No ingress routes to remove")
        return

    console.print()
    domain = ask("Enter domain name to remove:")
    if not domain:
        return

    session.remove_route(domain)
    print_success(console, f"Removed ingress route for: {domain}")


def manage_ingress_menu(session: SetupSession) -> None:
    """Menu option 2: add/remove routes until the user is done."""
    while True:
        console.print()
        print_banner(console, f"Ingress Routes Management for {session.name}")
        try:
            show_routes(session)
        except IngressError as exc:
            print_error(console, str(exc))

        console.print()
        print_menu(console, "1. Add ingress route")
        print_menu(console, "2. Remove ingress route")
        print_menu(console, "3. Done with ingress configuration")
        console.print()
        choice = ask("Choose an option:")

        try:
            if choice == "1":
                add_ingress_route(session)
            elif choice == "2":
                remove_ingress_route(session)
            elif choice == "3":
                break
            else:
                print_error(console, "Invalid choice")
        except IngressError as exc:
            print_error(console, str(exc))


def ensure_source_repo(session: SetupSession, gh: GitHubCLI) -> bool:
    """Offer to create the app's source repository if it is missing."""
    creator = SourceRepoCreator(session.repo.config, gh)
    repo = creator.repo_name(session.name)

    print_info(console, f"Checking for app source repository: {repo}")
    if creator.exists(session.name):
        print_success(console, f"Repository already exists: {repo}")
        return True

    answer = ask(f"Create new GitHub repository '{repo}' for app source code? (Y/n):")
    if re.fullmatch(r"[Nn]", answer):
        print_info(console, "Skipping repository creation")
        return True

    print_info(console, f"Creating repository: {repo}")
    try:
        creator.create(session.name)
    except GitHubCLIError as exc:
        print_error(console, f"Failed to create repository: {exc}")
        print_info(console, "You can create it manually:")
        console.print(f"  gh repo create {repo} --private", highlight=False)
        return False
    print_success(console, f"Created repository: {repo}")

    print_info(console, "Initializing repository with basic structure...")
    try:
        url = creator.initialize(session.name)
    except GitError as exc:
        print_error(console, f"Failed to initialize repository: {exc}")
        return False

    print_success(console, "Repository initialized and pushed to GitHub")
    print_info(console, f"Repository URL: {url}")
    return True


def commit_and_push(session: SetupSession, gh: GitHubCLI) -> None:
    """Menu option 3.

    Raises:
        SessionExit: With code 1 when the push fails
    """
    if not session.changes_made:
        print_info(console, "No changes to commit")
        if not session.exists:
            ensure_source_repo(session, gh)
        return

    print_info(console, "Committing changes...")
    outcome = session.commit()

    if outcome is CommitOutcome.NO_CHANGES:
        print_info(console, "No changes detected")
    elif outcome is CommitOutcome.NOTHING_TO_COMMIT:
        print_warning(console, "Nothing to commit (no changes detected)")
    elif outcome is CommitOutcome.PUSH_FAILED:
        print_error(console, "Failed to push changes")
        print_info(console, "You can push manually:")
        print_hints(console, [
            f"  cd {session.repo.checkout}",
            "  git push origin main",
        ])
        raise SessionExit(1)
    else:
        print_success(console, "Changes pushed to GitHub")

    if not session.exists:
        ensure_source_repo(session, gh)


def main_menu(session: SetupSession, gh: GitHubCLI) -> None:
    while True:
        console.print()
        title = f"Edit App: {session.name}" if session.exists else f"Configure New App: {session.name}"
        print_banner(console, title)
        console.print()
        print_menu(console, "1. Configure app settings (replicas, resources, port)")
        print_menu(console, "2. Manage ingress routes")
        print_menu(console, "3. Save and push changes to GitHub")
        print_menu(console, "4. Exit without saving")
        console.print()
        choice = ask("Choose an option:")

        if choice == "1":
            configure_app_settings(session)
        elif choice == "2":
            manage_ingress_menu(session)
            session.save_readme()
        elif choice == "3":
            commit_and_push(session, gh)
            console.print()
            print_success(console, "Configuration complete!")
            return
        elif choice == "4":
            print_info(console, "Exiting without saving changes")
            raise SessionExit(0)
        else:
            print_error(console, "Invalid choice")


def setup(
    app_name: Optional[str] = typer.Argument(None, help="App to configure (prompted when omitted)"),
):
    """Configure a new app or edit an existing one.

    Creates/updates the app's Kubernetes manifest and ingress routes, then
    commits and pushes them to the manifest repository.
    """
    config = get_config()

    print_banner(console, "🚀 App Configuration Script")
    console.print()

    gh = GitHubCLI()
    try:
        gh.ensure_ready()
    except GitHubCLINotReady as exc:
        print_error(console, str(exc))
        print_hints(console, exc.hints)
        raise typer.Exit(1)

    repo = K8sRepository(config, gh)
    if repo.checkout.is_dir():
        print_info(console, f"{config.k8s_repo_name} directory exists locally")
        print_info(console, "Updating from remote...")
    else:
        print_info(console, f"{config.k8s_repo_name} not found locally. Cloning...")

    try:
        if repo.ensure_checkout() == "cloned":
            print_success(console, f"Cloned {config.k8s_repo_name} repository")
    except K8sRepoError as exc:
        handle_cli_error(exc, console, is_verbose())

    try:
        with checkout_lock(repo.checkout):
            name = prompt_app_name(app_name)
            session = SetupSession.open(repo, name)
            describe_app(session)
            main_menu(session, gh)
    except SessionExit as exc:
        raise typer.Exit(exc.code)
    except (RepoLockError, ManifestError, IngressError, GitError) as exc:
        handle_cli_error(exc, console, is_verbose())


def register_setup_commands(app: typer.Typer, shared_console: Console) -> None:
    """Register the interactive setup command with the main Typer app."""
    global console
    console = shared_console

    app.command("setup")(setup)
