"""GitHub API verification commands."""

import typer
from rich.table import Table

from github_tools.cli.common import RepoArgument, console, parse_repo, run_async_command
from github_tools.config import get_settings
from github_tools.github.client import GitHubService
from github_tools.github.rate_limit.schemas import RateLimitState
from github_tools.schemas.requests import GetRepositoryRequest

app = typer.Typer(help="GitHub API commands")


def _format_time_remaining(seconds: int) -> str:
    """Format seconds as human-readable time."""
    if seconds <= 0:
        return "Now"
    if seconds < 60:
        return f"{seconds}s"
    if seconds < 3600:
        return f"{seconds // 60}m {seconds % 60}s"
    hours = seconds // 3600
    minutes = (seconds % 3600) // 60
    return f"{hours}h {minutes}m"


def _remaining_style(state: RateLimitState, min_remaining: int) -> str:
    pct = state.remaining_percent
    text = f"{pct:.1f}%"
    if state.remaining <= min_remaining:
        return f"[red]{text}[/red]"
    if pct < 20:
        return f"[yellow]{text}[/yellow]"
    return f"[green]{text}[/green]"


def _require_token() -> None:
    if not get_settings().github_token:
        console.print("[red]Error:[/red] GITHUB_TOKEN not set in environment")
        raise typer.Exit(1)


@app.command("rate-limit")
def show_rate_limit() -> None:
    """Show current GitHub API rate limit status.

    Examples:
        github-tools github rate-limit
    """
    _require_token()

    async def _check() -> None:
        settings = get_settings()
        async with GitHubService(settings=settings) as service:
            result = await service.get_rate_limit()
            if not result.successful:
                console.print(f"[red]Error:[/red] {result.error.message}")
                raise typer.Exit(1)

            state = result.data
            table = Table(title="GitHub API Rate Limit")
            table.add_column("Remaining", justify="right")
            table.add_column("Limit", justify="right")
            table.add_column("Remaining %", justify="right")
            table.add_column("Resets In", justify="right")
            table.add_row(
                str(state.remaining),
                str(state.limit),
                _remaining_style(state, settings.rate_limiting.min_remaining),
                _format_time_remaining(state.seconds_until_reset),
            )
            console.print(table)

            if state.remaining <= settings.rate_limiting.min_remaining:
                console.print(
                    "\n[yellow]Recommendation:[/yellow] Quota is below the throttle "
                    f"threshold ({settings.rate_limiting.min_remaining}); tool calls "
                    "will wait for the reset."
                )

    run_async_command(_check(), error_prefix="Rate limit check failed")


@app.command("test")
def test_connection(repo: RepoArgument) -> None:
    """Test GitHub API connectivity and token validity against a repository.

    Examples:
        github-tools github test octocat/hello-world
    """
    owner, name = parse_repo(repo)
    _require_token()

    async def _test() -> None:
        async with GitHubService() as service:
            result = await service.get_repository(GetRepositoryRequest(owner=owner, repo=name))
            if not result.successful:
                console.print(
                    f"[red]Error ({result.error.category.value}):[/red] {result.error.message}"
                )
                raise typer.Exit(1)

            entity = result.data
            visibility = "private" if entity.private else "public"
            console.print(f"[green]✓[/green] {entity.full_name} ({visibility})")
            console.print(f"  {entity.html_url}")
            state = service.rate_limiter.state
            console.print(f"  Rate limit: {state.remaining}/{state.limit} remaining")

    run_async_command(_test(), error_prefix="Connection test failed")
