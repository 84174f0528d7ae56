"""Backoff for flaky GitHub API calls."""
import functools
import time
from typing import Callable, Optional, Tuple, Type

from appmanager.core.logger import get_logger

logger = get_logger(__name__)


def retry(
    max_attempts: int = 3,
    delay: float = 2.0,
    backoff: float = 2.0,
    exceptions: Tuple[Type[Exception], ...] = (Exception,),
    give_up: Optional[Callable[[Exception], bool]] = None,
):
    """Re-run a call that raised one of ``exceptions``.

    The wait starts at ``delay`` seconds and is multiplied by ``backoff``
    after every failure. ``give_up`` can mark an error as permanent, in
    which case it is raised straight away.

    Example:
        @retry(max_attempts=3, delay=1.0, exceptions=(GitHubCLIError,))
        def list_tag_refs(self, repo):
            ...
    """

    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            wait = delay
            attempt = 1
            while True:
                try:
                    return func(*args, **kwargs)
                except exceptions as exc:
                    if attempt >= max_attempts or (give_up and give_up(exc)):
                        logger.error(f"{func.__name__} gave up after {attempt} attempt(s): {exc}")
                        raise
                    logger.warning(
                        f"{func.__name__} failed ({attempt}/{max_attempts}), "
                        f"retrying in {wait:.1f}s: {exc}"
                    )
                time.sleep(wait)
                wait *= backoff
                attempt += 1

        return wrapper

    return decorator
