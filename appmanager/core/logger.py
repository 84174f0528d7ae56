"""Rich console logging for app-manager, with an optional log file."""
import logging
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

# Logs share stderr so they never mix with command output
console = Console(stderr=True)

PACKAGE_LOGGER = "appmanager"
LOG_FILE = Path.home() / ".app-manager" / "app-manager.log"
FALLBACK_LOG_FILE = Path("/tmp/app-manager.log")
FILE_FORMAT = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"

_log_file: Optional[Path] = None


def _writable_log_path(requested: Optional[str]) -> Path:
    path = Path(requested) if requested else LOG_FILE
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        return path
    except OSError:
        return FALLBACK_LOG_FILE


def setup_file_logging(log_file: Optional[str] = None, verbose: bool = False) -> Path:
    """Copy every app-manager log record to a file.

    Args:
        log_file: Target file (defaults to ~/.app-manager/app-manager.log,
            or /tmp/app-manager.log when the home directory is read-only)
        verbose: Record DEBUG messages too

    Returns:
        Path of the active log file; repeated calls keep the first one
    """
    global _log_file

    if _log_file is not None:
        return _log_file

    path = _writable_log_path(log_file)
    level = logging.DEBUG if verbose else logging.INFO

    handler = logging.FileHandler(path)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))

    package_logger = logging.getLogger(PACKAGE_LOGGER)
    package_logger.addHandler(handler)
    package_logger.setLevel(level)

    _log_file = path
    package_logger.info(f"app-manager logging to {path}")
    return path


def set_console_level(verbose: bool) -> None:
    """Show DEBUG output on the console when verbose, warnings only otherwise."""
    handler_level = logging.DEBUG if verbose else logging.WARNING
    logger_level = logging.DEBUG if verbose else logging.INFO
    for name in list(logging.root.manager.loggerDict):
        if name != PACKAGE_LOGGER and not name.startswith(f"{PACKAGE_LOGGER}."):
            continue
        logger = logging.getLogger(name)
        for handler in logger.handlers:
            if isinstance(handler, RichHandler):
                handler.setLevel(handler_level)
        logger.setLevel(logger_level)


def get_logger(name: str) -> logging.Logger:
    """Module logger that prints warnings and errors through Rich.

    INFO records still reach the log file once setup_file_logging() ran.
    """
    logger = logging.getLogger(name)
    if any(isinstance(h, RichHandler) for h in logger.handlers):
        return logger

    handler = RichHandler(console=console, show_path=False, show_time=False)
    handler.setFormatter(logging.Formatter("%(message)s"))
    handler.setLevel(logging.WARNING)
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)
    return logger
