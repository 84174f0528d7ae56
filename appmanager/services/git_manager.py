"""Local git operations for manifest and source repositories."""
import subprocess
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

from appmanager.core.logger import get_logger

logger = get_logger(__name__)

DEFAULT_BRANCHES = ("main", "master")
DEFAULT_USER_NAME = "GitHub Actions"
DEFAULT_USER_EMAIL = "actions@github.com"

# git commit wording when nothing from the index would be committed
NOTHING_TO_COMMIT = ("nothing to commit", "nothing added to commit", "no changes added")


class GitError(Exception):
    """Raised when a required git command fails."""


def run_git(args: List[str], cwd: Optional[Path] = None) -> Tuple[bool, str, str]:
    """Run a git command and return success, stdout, stderr."""
    try:
        result = subprocess.run(
            ['git'] + args,
            cwd=str(cwd) if cwd else None,
            capture_output=True,
            text=True,
            check=True
        )
        return True, (result.stdout or "").strip(), (result.stderr or "").strip()
    except subprocess.CalledProcessError as e:
        stdout = (e.stdout or "").strip()
        return False, stdout, (e.stderr or "").strip() or stdout or str(e)
    except FileNotFoundError:
        return False, "", "Git not found. Please install git first."


class GitManager:
    """Git operations against one working directory."""

    def __init__(self, repo_dir: Path):
        self.repo_dir = Path(repo_dir)

    def _git(self, *args: str) -> Tuple[bool, str, str]:
        logger.debug(f"git {' '.join(args)} (in {self.repo_dir})")
        return run_git(list(args), cwd=self.repo_dir)

    def _require(self, *args: str) -> str:
        ok, stdout, stderr = self._git(*args)
        if not ok:
            raise GitError(f"git {args[0]} failed: {stderr}")
        return stdout

    def is_repository(self) -> bool:
        ok, _, _ = self._git('rev-parse', '--git-dir')
        return ok

    def fetch(self, remote: str = "origin") -> bool:
        ok, _, stderr = self._git('fetch', remote)
        if not ok:
            logger.warning(f"git fetch failed: {stderr}")
        return ok

    def _first_success(self, verb: str, remote: str, branches: Iterable[str]) -> Optional[str]:
        for branch in branches:
            ok, _, stderr = self._git(verb, remote, branch)
            if ok:
                return branch
            logger.debug(f"git {verb} {remote} {branch} failed: {stderr}")
        return None

    def pull(self, remote: str = "origin", branches: Iterable[str] = DEFAULT_BRANCHES) -> Optional[str]:
        """Pull the first branch that works; returns its name or None."""
        return self._first_success('pull', remote, branches)

    def push(self, remote: str = "origin", branches: Iterable[str] = DEFAULT_BRANCHES) -> Optional[str]:
        """Push the first branch that works; returns its name or None."""
        return self._first_success('push', remote, branches)

    def push_upstream(self, remote: str = "origin", branch: str = "main") -> None:
        self._require('push', '-u', remote, branch)

    def push_current(self) -> None:
        self._require('push')

    def status_porcelain(self) -> List[str]:
        ok, stdout, _ = self._git('status', '--porcelain')
        if not ok:
            return []
        return [line for line in stdout.splitlines() if line.strip()]

    def has_changes(self) -> bool:
        """True for unstaged, staged or untracked changes."""
        unstaged, _, _ = self._git('diff', '--quiet')
        staged, _, _ = self._git('diff', '--cached', '--quiet')
        ok, untracked, _ = self._git('ls-files', '--others', '--exclude-standard')
        return not unstaged or not staged or bool(ok and untracked)

    def add(self, *paths: str) -> bool:
        """Stage paths; missing paths are skipped with a debug message."""
        added = False
        for path in paths:
            ok, _, stderr = self._git('add', path)
            if ok:
                added = True
            else:
                logger.debug(f"git add {path} skipped: {stderr}")
        return added

    def add_all(self) -> None:
        self._require('add', '-A')

    def commit(self, message: str) -> bool:
        """Commit staged changes.

        Returns:
            False when there was nothing to commit

        Raises:
            GitError: On any other failure
        """
        ok, stdout, stderr = self._git('commit', '-m', message)
        if ok:
            logger.info(f"Committed: {message}")
            return True
        output = f"{stdout}\n{stderr}"
        if any(marker in output for marker in NOTHING_TO_COMMIT):
            return False
        raise GitError(f"git commit failed: {stderr or stdout}")

    def init(self, branch: str = "main") -> None:
        self.repo_dir.mkdir(parents=True, exist_ok=True)
        self._require('init', '-b', branch)

    def ensure_identity(self) -> None:
        """Set a committer identity when none is configured."""
        ok, _, _ = self._git('config', 'user.name')
        if not ok:
            self._require('config', 'user.name', DEFAULT_USER_NAME)
        ok, _, _ = self._git('config', 'user.email')
        if not ok:
            self._require('config', 'user.email', DEFAULT_USER_EMAIL)

    def add_remote(self, url: str, name: str = "origin") -> None:
        self._require('remote', 'add', name, url)
