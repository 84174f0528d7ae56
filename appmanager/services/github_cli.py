"""GitHub CLI (gh) wrapper for repository and Actions operations."""
import shutil
import subprocess
from typing import List, Optional

from appmanager.core.logger import get_logger
from appmanager.core.retry import retry

logger = get_logger(__name__)

INSTALL_HINTS = [
    "Install it:",
    "  macOS:   brew install gh",
    "  Linux:   apt install gh",
    "  Windows: winget install GitHub.cli",
    "",
    "Then authenticate:",
    "  gh auth login",
]

AUTH_HINTS = [
    "Authenticate:",
    "  gh auth login",
]


class GitHubCLIError(Exception):
    """Raised when a gh command fails."""

    def __init__(self, message: str, returncode: Optional[int] = None, stderr: str = ""):
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr


class GitHubCLINotReady(GitHubCLIError):
    """Raised when gh is missing or not authenticated."""

    def __init__(self, message: str, hints: List[str]):
        super().__init__(message)
        self.hints = hints


def _is_client_error(exc: Exception) -> bool:
    """4xx answers from the API will not change on retry."""
    return "(HTTP 4" in getattr(exc, "stderr", "")


class GitHubCLI:
    """Runs gh commands and turns failures into GitHubCLIError."""

    def __init__(self, executable: str = "gh"):
        self.executable = executable

    def _run(
        self,
        args: List[str],
        check: bool = True,
        cwd: Optional[str] = None,
    ) -> subprocess.CompletedProcess:
        cmd = [self.executable] + args
        logger.debug(f"Running: {' '.join(cmd)}")
        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                check=False,
                cwd=cwd,
            )
        except FileNotFoundError as exc:
            raise GitHubCLIError("GitHub CLI (gh) is not installed") from exc

        if check and result.returncode != 0:
            stderr = (result.stderr or "").strip()
            raise GitHubCLIError(
                f"gh {' '.join(args[:2])} failed: {stderr or 'exit code ' + str(result.returncode)}",
                returncode=result.returncode,
                stderr=stderr,
            )
        return result

    def is_installed(self) -> bool:
        return shutil.which(self.executable) is not None

    def is_authenticated(self) -> bool:
        try:
            return self._run(["auth", "status"], check=False).returncode == 0
        except GitHubCLIError:
            return False

    def ensure_ready(self) -> None:
        """Verify gh is installed and logged in.

        Raises:
            GitHubCLINotReady: With the hints to show the user
        """
        if not self.is_installed():
            raise GitHubCLINotReady("GitHub CLI (gh) is not installed", INSTALL_HINTS)
        if not self.is_authenticated():
            raise GitHubCLINotReady("Not authenticated with GitHub CLI", AUTH_HINTS)

    def repo_exists(self, repo: str) -> bool:
        """Check whether ``owner/name`` is reachable with the current login."""
        return self._run(["repo", "view", repo], check=False).returncode == 0

    def clone_repo(self, repo: str, directory: Optional[str] = None, cwd: Optional[str] = None) -> None:
        args = ["repo", "clone", repo]
        if directory:
            args.append(directory)
        logger.info(f"Cloning {repo}")
        self._run(args, cwd=cwd)

    def create_repo(self, repo: str, private: bool = True, description: str = "") -> None:
        args = ["repo", "create", repo, "--private" if private else "--public"]
        if description:
            args += ["--description", description]
        logger.info(f"Creating repository {repo}")
        self._run(args)

    @retry(max_attempts=3, delay=1.0, exceptions=(GitHubCLIError,), give_up=_is_client_error)
    def list_tag_refs(self, repo: str) -> List[str]:
        """Return every ``refs/tags/...`` ref of a repository."""
        result = self._run(
            ["api", f"repos/{repo}/git/refs/tags", "--jq", ".[].ref"], check=False
        )
        if result.returncode != 0:
            stderr = (result.stderr or "").strip()
            if "404" in stderr:
                # Repositories without tags answer 404
                return []
            raise GitHubCLIError(
                f"Failed to list tags of {repo}: {stderr}",
                returncode=result.returncode,
                stderr=stderr,
            )
        return [line.strip() for line in result.stdout.splitlines() if line.strip()]

    @retry(max_attempts=3, delay=1.0, exceptions=(GitHubCLIError,), give_up=_is_client_error)
    def branch_sha(self, repo: str, branch: str = "main") -> str:
        result = self._run(
            ["api", f"repos/{repo}/git/ref/heads/{branch}", "--jq", ".object.sha"]
        )
        sha = result.stdout.strip()
        if not sha:
            raise GitHubCLIError(f"Could not resolve {branch} on {repo}")
        return sha

    def create_tag(self, repo: str, tag: str, sha: str) -> None:
        self._run([
            "api", f"repos/{repo}/git/refs", "-X", "POST",
            "-f", f"ref=refs/tags/{tag}", "-f", f"sha={sha}",
        ])

    def update_tag(self, repo: str, tag: str, sha: str) -> None:
        self._run([
            "api", f"repos/{repo}/git/refs/tags/{tag}", "-X", "PATCH",
            "-f", f"sha={sha}", "-F", "force=true",
        ])

    def watch_run(self, repo: str, run_id: str) -> int:
        """Stream a workflow run until it finishes; return gh's exit code."""
        cmd = [self.executable, "run", "watch", str(run_id), "--repo", repo, "--exit-status"]
        logger.debug(f"Running: {' '.join(cmd)}")
        try:
            # Output goes straight to the terminal so the user sees progress
            return subprocess.run(cmd, check=False).returncode
        except FileNotFoundError as exc:
            raise GitHubCLIError("GitHub CLI (gh) is not installed") from exc
