"""Exclusive access to a local manifest checkout.

Two setup sessions editing the same checkout would interleave writes to the
shared ingress file, so every editing command holds an flock on a file kept
beside the checkout (outside the git working tree).
"""
import fcntl
import os
import time
from contextlib import contextmanager
from pathlib import Path
from typing import IO, NamedTuple, Optional

from appmanager.core.logger import get_logger

logger = get_logger(__name__)

LOCK_SUFFIX = ".app-manager.lock"
POLL_INTERVAL = 0.5


class RepoLockError(Exception):
    """Raised when another session holds the checkout lock."""


class LockHolder(NamedTuple):
    pid: str
    since: str


def _parse_holder(text: str) -> LockHolder:
    lines = [line.strip() for line in text.splitlines()]
    if len(lines) >= 2:
        return LockHolder(pid=lines[0], since=lines[1])
    return LockHolder(pid="unknown", since="unknown")


def lock_path(checkout: Path) -> Path:
    """``k8s-production`` is guarded by ``k8s-production.app-manager.lock``."""
    checkout = Path(checkout)
    return checkout.parent / f"{checkout.name}{LOCK_SUFFIX}"


def _try_flock(handle: IO) -> bool:
    try:
        fcntl.flock(handle.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
        return True
    except OSError:
        return False


class RepoLock:
    """flock-based lock for one manifest checkout."""

    def __init__(self, checkout: Path, timeout: float = 0):
        """Initialize lock.

        Args:
            checkout: Checkout directory to guard
            timeout: Seconds to keep retrying (0 = fail immediately)
        """
        self.lock_file = lock_path(checkout)
        self.timeout = timeout
        self._handle: Optional[IO] = None

    @property
    def held(self) -> bool:
        return self._handle is not None

    def acquire(self) -> bool:
        """Take the lock and record this process as its holder.

        Raises:
            RepoLockError: If the lock is still taken after ``timeout``
        """
        self.lock_file.parent.mkdir(parents=True, exist_ok=True)
        # a+ leaves the current holder's details intact while we wait
        handle = open(self.lock_file, "a+")
        deadline = time.monotonic() + self.timeout

        while not _try_flock(handle):
            if time.monotonic() >= deadline:
                handle.seek(0)
                holder = _parse_holder(handle.read())
                handle.close()
                raise RepoLockError(
                    "Another app-manager session is editing this checkout.\n"
                    f"Lock held by PID {holder.pid} since {holder.since}\n"
                    f"Wait for it to finish, or remove {self.lock_file} if stale."
                )
            time.sleep(POLL_INTERVAL)

        handle.seek(0)
        handle.truncate()
        handle.write(f"{os.getpid()}\n{time.strftime('%Y-%m-%d %H:%M:%S')}\n")
        handle.flush()
        self._handle = handle
        logger.debug(f"Locked {self.lock_file}")
        return True

    def release(self) -> None:
        """Drop the lock and delete the lock file; no-op when not held."""
        if self._handle is None:
            return

        handle, self._handle = self._handle, None
        try:
            self.lock_file.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"Could not remove lock file {self.lock_file}: {e}")
        try:
            fcntl.flock(handle.fileno(), fcntl.LOCK_UN)
        finally:
            handle.close()
        logger.debug(f"Unlocked {self.lock_file}")

    def __enter__(self):
        self.acquire()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.release()
        return False


@contextmanager
def checkout_lock(checkout: Path, timeout: float = 0):
    """Hold the checkout lock for the duration of the block.

    Raises:
        RepoLockError: If another session holds it
    """
    lock = RepoLock(checkout, timeout=timeout)
    lock.acquire()
    try:
        yield lock
    finally:
        lock.release()


def check_lock_status(checkout: Path) -> Optional[LockHolder]:
    """Current holder of the checkout lock, None when free or stale."""
    path = lock_path(checkout)
    if not path.exists():
        return None

    with open(path) as handle:
        if _try_flock(handle):
            fcntl.flock(handle.fileno(), fcntl.LOCK_UN)
            return None
        return _parse_holder(handle.read())
