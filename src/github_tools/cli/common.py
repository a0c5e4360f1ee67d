"""Common CLI helpers.

Provides:
- `run_async_command`: Unified async execution with error handling for CLI commands
- Repository argument type alias and parsing
"""

from __future__ import annotations

import asyncio
from collections.abc import Coroutine
from typing import Annotated, TypeVar

import typer
from rich.console import Console

# Shared console instance for CLI output (stderr keeps stdout free for MCP)
console = Console(stderr=True)

T = TypeVar("T")


def run_async_command(
    coro: Coroutine[object, object, T],
    *,
    error_prefix: str = "Error",
) -> T:
    """Execute async code from synchronous CLI command with unified error handling.

    Catches exceptions, prints user-friendly error messages, and exits with
    code 1. Ctrl-C exits quietly with code 130.

    Args:
        coro: Async coroutine to execute
        error_prefix: Prefix for error messages (default: "Error")

    Returns:
        Result from the coroutine
    """
    try:
        return asyncio.run(coro)
    except typer.Exit:
        raise
    except KeyboardInterrupt:
        console.print("[yellow]Interrupted[/yellow]")
        raise typer.Exit(130) from None
    except Exception as e:
        console.print(f"[red]{error_prefix}:[/red] {e}")
        raise typer.Exit(1) from None


# -----------------------------------------------------------------------------
# Repository Arguments
# -----------------------------------------------------------------------------

RepoArgument = Annotated[
    str,
    typer.Argument(
        help="Repository in owner/name format (e.g., octocat/hello-world)",
    ),
]
"""Required positional repository argument.

Usage:
    def check(repo: RepoArgument) -> None:
"""


def parse_repo(repo: str) -> tuple[str, str]:
    """Split an owner/name string.

    Raises:
        typer.Exit(1): If the format is invalid
    """
    owner, sep, name = repo.strip().partition("/")
    if not sep or not owner or not name or "/" in name:
        console.print("[red]Error:[/red] Repository must be in owner/name format")
        raise typer.Exit(1)
    return owner, name
