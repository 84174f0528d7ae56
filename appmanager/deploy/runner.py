"""Runs the shared deploy script and tracks the workflow it starts."""
import re
import subprocess
from pathlib import Path
from typing import List, Optional, Tuple

from appmanager.core.config import AppManagerConfig, get_config
from appmanager.core.logger import get_logger
from appmanager.deploy.versioning import DEFAULT_VERSION, latest_version
from appmanager.models.app import Environment
from appmanager.services.github_cli import GitHubCLI, GitHubCLIError

logger = get_logger(__name__)

RUN_URL = re.compile(r'actions/runs/(\d+)')
RUN_FALLBACK = re.compile(r'runs/(\d+)')


class DeployError(Exception):
    """Raised when the deploy script cannot be found or started."""


def extract_run_id(output: str) -> Optional[str]:
    """Workflow run id printed by the deploy script, if any."""
    match = RUN_URL.search(output) or RUN_FALLBACK.search(output)
    return match.group(1) if match else None


class DeployRunner:
    """Version lookup, deploy script execution, tagging and run watching."""

    def __init__(
        self,
        config: Optional[AppManagerConfig] = None,
        gh: Optional[GitHubCLI] = None,
    ):
        self.config = config or get_config()
        self.gh = gh or GitHubCLI()

    def k8s_repo(self, environment: Environment) -> str:
        return self.config.k8s_repo_for(environment.value)

    def run_url(self, environment: Environment, run_id: str) -> str:
        return f"https://github.com/{self.k8s_repo(environment)}/actions/runs/{run_id}"

    def latest_version(self, app_name: str, environment: Environment) -> str:
        """Latest released version, ``1.0.0`` when none or when GitHub is unreachable."""
        repo = self.k8s_repo(environment)
        try:
            refs = self.gh.list_tag_refs(repo)
        except GitHubCLIError as exc:
            logger.warning(f"Could not list tags on {repo}: {exc}")
            return DEFAULT_VERSION
        return latest_version(refs, app_name, environment.tag_suffix) or DEFAULT_VERSION

    def candidate_dirs(self, start: Optional[Path] = None) -> List[Path]:
        start = (start or Path.cwd()).resolve()
        name = self.config.deploy_repo_name
        return [
            start.parent / name,
            start.parent.parent / name,
            Path.home() / name,
            Path("."),
        ]

    def find_deploy_script(self, start: Optional[Path] = None) -> Optional[Path]:
        for directory in self.candidate_dirs(start):
            script = directory / self.config.deploy_script
            if script.is_file():
                return script
        return None

    def run_deploy_script(
        self,
        script: Path,
        app_name: str,
        tag: str,
        source_repo: str = "",
    ) -> Tuple[int, str]:
        """Run the deploy script, answering its confirmation with ``y``.

        Returns:
            Tuple of (exit code, combined output)
        """
        cmd = ["bash", str(script), app_name, tag, source_repo]
        logger.info(f"Running {' '.join(cmd)}")
        try:
            result = subprocess.run(
                cmd,
                input="y\n",
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                check=False,
            )
        except FileNotFoundError as exc:
            raise DeployError(f"Cannot run {script}: {exc}") from exc
        return result.returncode, result.stdout or ""

    def tag_release(self, environment: Environment, tag: str) -> Optional[str]:
        """Point ``tag`` at the k8s repository's main branch.

        Returns:
            "created", "updated", or None when both attempts failed
        """
        repo = self.k8s_repo(environment)
        try:
            sha = self.gh.branch_sha(repo, "main")
        except GitHubCLIError as exc:
            logger.warning(f"Could not resolve main on {repo}: {exc}")
            return None

        try:
            self.gh.create_tag(repo, tag, sha)
            return "created"
        except GitHubCLIError as exc:
            logger.debug(f"Creating {tag} failed, trying update: {exc}")

        try:
            self.gh.update_tag(repo, tag, sha)
            return "updated"
        except GitHubCLIError as exc:
            logger.warning(f"Could not update {tag} on {repo}: {exc}")
            return None

    def watch(self, environment: Environment, run_id: str) -> int:
        return self.gh.watch_run(self.k8s_repo(environment), run_id)
