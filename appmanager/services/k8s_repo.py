"""Local checkout of the Kubernetes manifest repository."""
from enum import Enum
from pathlib import Path
from typing import List, Optional

from appmanager.core.config import AppManagerConfig, get_config
from appmanager.core.logger import get_logger
from appmanager.services.git_manager import GitManager
from appmanager.services.github_cli import GitHubCLI, GitHubCLIError

logger = get_logger(__name__)


class K8sRepoError(Exception):
    """Raised when the manifest repository cannot be prepared."""

    def __init__(self, message: str, hints: Optional[List[str]] = None):
        super().__init__(message)
        self.hints = hints or []


class CommitOutcome(str, Enum):
    """Result of committing an app's changes."""

    COMMITTED = "committed"
    NO_CHANGES = "no_changes"
    NOTHING_TO_COMMIT = "nothing_to_commit"
    PUSH_FAILED = "push_failed"


class K8sRepository:
    """Paths and git operations for the manifest repository checkout."""

    def __init__(
        self,
        config: Optional[AppManagerConfig] = None,
        gh: Optional[GitHubCLI] = None,
    ):
        self.config = config or get_config()
        self.gh = gh or GitHubCLI()
        self.git = GitManager(self.checkout)

    @property
    def checkout(self) -> Path:
        return self.config.k8s_checkout

    @property
    def ingress_path(self) -> Path:
        return self.checkout / self.config.ingress_file

    def app_dir(self, app_name: str) -> Path:
        return self.checkout / self.config.apps_dir / app_name

    def manifest_path(self, app_name: str) -> Path:
        return self.app_dir(app_name) / f"{app_name}.yaml"

    def readme_path(self, app_name: str) -> Path:
        return self.app_dir(app_name) / "README.md"

    def app_exists(self, app_name: str) -> bool:
        return self.manifest_path(app_name).is_file()

    def ensure_checkout(self) -> str:
        """Update the local checkout, cloning it first if needed.

        Returns:
            "updated" or "cloned"

        Raises:
            K8sRepoError: If the repository is unreachable or the clone fails
        """
        repo = self.config.k8s_repo

        if self.checkout.is_dir():
            logger.info(f"Updating {self.checkout} from remote")
            self.git.fetch()
            if self.git.pull() is None:
                logger.warning(f"Could not pull {repo}; continuing with local copy")
            return "updated"

        if not self.gh.repo_exists(repo):
            raise K8sRepoError(f"Repository {repo} not found or not accessible")

        try:
            self.gh.clone_repo(repo, str(self.checkout))
        except GitHubCLIError as exc:
            raise K8sRepoError(
                f"Failed to clone {self.config.k8s_repo_name} repository: {exc}",
                hints=["You can clone it manually:", f"  gh repo clone {repo}"],
            ) from exc
        return "cloned"

    def _relative(self, path: Path) -> str:
        return str(path.relative_to(self.checkout))

    def commit_app_changes(self, app_name: str, existed: bool) -> CommitOutcome:
        """Stage the app directory and ingress file, commit and push."""
        if not self.git.has_changes():
            return CommitOutcome.NO_CHANGES

        self.git.add(
            self._relative(self.app_dir(app_name)),
            self._relative(self.ingress_path),
        )

        message = (
            f"Update {app_name} app configuration" if existed
            else f"Configure {app_name} app"
        )
        if not self.git.commit(message):
            return CommitOutcome.NOTHING_TO_COMMIT

        if self.git.push() is None:
            return CommitOutcome.PUSH_FAILED
        return CommitOutcome.COMMITTED
