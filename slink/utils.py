"""Console singletons, message helpers, and logging setup."""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

# ---------------------------------------------------------------------------
# Console singletons
# ---------------------------------------------------------------------------

console = Console()
err_console = Console(stderr=True)

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------


def setup_logging(verbose: bool = False) -> None:
    """Route ``logging`` through rich on stderr; DEBUG when *verbose*."""
    level = logging.DEBUG if verbose else logging.WARNING

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    handler = RichHandler(
        console=err_console,
        show_time=False,
        show_path=verbose,
        rich_tracebacks=True,
        markup=False,
    )
    handler.setLevel(level)
    root_logger.addHandler(handler)


# ---------------------------------------------------------------------------
# Display helpers
# ---------------------------------------------------------------------------


def print_command_preview(cmd: list[str]) -> None:
    """Show the command that is about to be executed in dim style.

    Goes to stderr so the output of ``slink run`` can be piped.
    """
    cmd_str = escape(" ".join(cmd))
    err_console.print(f"[dim]$ {cmd_str}[/dim]")


def print_error(msg: str) -> None:
    """Print an error message to stderr."""
    err_console.print(f"[bold red]Error:[/bold red] {escape(msg)}")


def print_success(msg: str) -> None:
    console.print(f"[bold green]✓[/bold green] {escape(msg)}")


def print_info(msg: str) -> None:
    console.print(f"[bold blue]ℹ[/bold blue] {escape(msg)}")
