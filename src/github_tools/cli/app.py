"""Main CLI application for the GitHub tools server."""

from typing import Annotated

import typer

from github_tools import __version__
from github_tools.cli import github as github_cmd
from github_tools.cli.common import console, run_async_command
from github_tools.config import get_settings
from github_tools.github.client import require_github_token
from github_tools.github.exceptions import GitHubAuthenticationError
from github_tools.logging import setup_logging

app = typer.Typer(
    name="github-tools",
    help="MCP server exposing GitHub repository, issue and pull request tools.",
    add_completion=False,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"github-tools version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Enable debug logging.",
        ),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option(
            "--quiet",
            "-q",
            help="Suppress non-error output (WARNING level).",
        ),
    ] = False,
) -> None:
    """GitHub tools - GitHub operations for LLM agents over MCP."""
    settings = get_settings()
    setup_logging(settings.log_level, verbose=verbose, quiet=quiet, config=settings.logging)


@app.command()
def serve() -> None:
    """Run the MCP server over stdio.

    Examples:
        GITHUB_TOKEN=ghp_... github-tools serve
    """
    from github_tools.server import run_server

    settings = get_settings()
    try:
        require_github_token(settings)
    except GitHubAuthenticationError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from None

    run_async_command(run_server(settings), error_prefix="Server failed")


# Register subcommands
app.add_typer(github_cmd.app, name="github")


if __name__ == "__main__":
    app()
