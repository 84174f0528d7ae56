"""Prompting and status output shared by the app-manager commands."""
from __future__ import annotations

from typing import Iterable

import typer
from rich.console import Console
from rich.markup import escape

RULE = "=" * 76

_verbose = False


def set_verbose(value: bool) -> None:
    global _verbose
    _verbose = value


def is_verbose() -> bool:
    """True when the root --verbose flag was given."""
    return _verbose


def ask(message: str, default: str = "") -> str:
    """Prompt for one line of input; an empty answer returns ``default``."""
    value = typer.prompt(f"? {message}", default=default, show_default=False, prompt_suffix=" ")
    return str(value).strip()


def confirm_action(message: str, yes_flag: bool = False) -> bool:
    """Ask a Y/n question; only an explicit n/N declines.

    Args:
        message: Question to display
        yes_flag: Answer yes without prompting (from --yes)

    Returns:
        True if confirmed, False otherwise
    """
    if yes_flag:
        return True
    return ask(f"{message} (Y/n):") not in ("n", "N")


def handle_cli_error(
    e: Exception,
    console: Console,
    verbose: bool = False,
    exit_code: int = 1
) -> None:
    """Report an error, with its follow-up hints, and leave the command.

    Args:
        e: Exception to report; a ``hints`` attribute is printed below it
        console: Rich console for output
        verbose: Also print the traceback
        exit_code: Exit code to use

    Raises:
        typer.Exit: Always
    """
    console.print(f"[red]Error:[/red] {escape(str(e))}", highlight=False)
    hints = getattr(e, "hints", None)
    if hints:
        print_hints(console, hints)
    if verbose:
        console.print_exception()
    raise typer.Exit(exit_code)


def print_banner(console: Console, title: str) -> None:
    console.print(RULE)
    console.print(title)
    console.print(RULE)


def print_hints(console: Console, lines: Iterable[str]) -> None:
    """Print manual follow-up steps (install commands, git commands)."""
    console.print()
    for line in lines:
        console.print(line, highlight=False, markup=False)


def _status(console: Console, style: str, prefix: str, message: str) -> None:
    console.print(f"[{style}]{prefix}[/{style}] {escape(message)}", highlight=False)


def print_success(console: Console, message: str, prefix: str = "✓") -> None:
    _status(console, "green", prefix, message)


def print_error(console: Console, message: str, prefix: str = "✗") -> None:
    _status(console, "red", prefix, message)


def print_warning(console: Console, message: str, prefix: str = "⚠") -> None:
    _status(console, "yellow", prefix, message)


def print_info(console: Console, message: str, prefix: str = "ℹ") -> None:
    _status(console, "cyan", prefix, message)


def print_menu(console: Console, message: str, prefix: str = "→") -> None:
    _status(console, "magenta", prefix, message)
