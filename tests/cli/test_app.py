"""Tests for the CLI commands."""

from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from typer.testing import CliRunner

from github_tools import __version__
from github_tools.cli.app import app
from github_tools.errors import create_authentication_error
from github_tools.github.rate_limit.schemas import RateLimitState
from github_tools.logging import reset_logging
from github_tools.schemas.entities import RepositoryEntity
from github_tools.schemas.results import failure, success
from tests.conftest import TEST_TOKEN

runner = CliRunner()


@pytest.fixture(autouse=True)
def _reset_logging():
    """Drop the sinks the CLI callback attaches to the runner's streams."""
    yield
    reset_logging()


@pytest.fixture
def with_token(monkeypatch):
    monkeypatch.setenv("GITHUB_TOKEN", TEST_TOKEN)


@pytest.fixture
def without_token(monkeypatch):
    monkeypatch.setenv("GITHUB_TOKEN", "")


@pytest.fixture
def mock_service():
    """Patch GitHubService in the github command module."""
    with patch("github_tools.cli.github.GitHubService") as mock_class:
        service = MagicMock()
        mock_class.return_value.__aenter__.return_value = service
        yield service


def make_state(remaining: int, limit: int = 5000) -> RateLimitState:
    return RateLimitState(
        remaining=remaining,
        reset_at=datetime.now(UTC) + timedelta(minutes=30),
        limit=limit,
    )


class TestMain:
    def test_version(self):
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert __version__ in result.output


class TestServe:
    def test_requires_token(self, without_token):
        result = runner.invoke(app, ["serve"])

        assert result.exit_code == 1
        assert "GITHUB_TOKEN" in result.output

    def test_runs_server(self, with_token):
        with patch("github_tools.server.run_server", new_callable=AsyncMock) as run_server:
            result = runner.invoke(app, ["serve"])

        assert result.exit_code == 0
        run_server.assert_awaited_once()
        assert run_server.await_args.args[0].github_token == TEST_TOKEN

    def test_server_crash_exits_1(self, with_token):
        with patch(
            "github_tools.server.run_server",
            new_callable=AsyncMock,
            side_effect=RuntimeError("stdio closed"),
        ):
            result = runner.invoke(app, ["serve"])

        assert result.exit_code == 1
        assert "stdio closed" in result.output


class TestRateLimitCommand:
    def test_requires_token(self, without_token):
        result = runner.invoke(app, ["github", "rate-limit"])

        assert result.exit_code == 1

    def test_shows_quota(self, with_token, mock_service):
        mock_service.get_rate_limit = AsyncMock(return_value=success(make_state(4500)))

        result = runner.invoke(app, ["github", "rate-limit"])

        assert result.exit_code == 0
        assert "4500" in result.output
        assert "Recommendation" not in result.output

    def test_low_quota_recommendation(self, with_token, mock_service):
        mock_service.get_rate_limit = AsyncMock(return_value=success(make_state(10)))

        result = runner.invoke(app, ["github", "rate-limit"])

        assert result.exit_code == 0
        assert "Recommendation" in result.output

    def test_failure_exits_1(self, with_token, mock_service):
        mock_service.get_rate_limit = AsyncMock(
            return_value=failure(create_authentication_error("Bad credentials"))
        )

        result = runner.invoke(app, ["github", "rate-limit"])

        assert result.exit_code == 1
        assert "Bad credentials" in result.output


class TestConnectionCommand:
    def test_invalid_repo_format(self, with_token):
        result = runner.invoke(app, ["github", "test", "not-a-repo"])

        assert result.exit_code == 1
        assert "owner/name" in result.output

    def test_reports_repository(self, with_token, mock_service):
        repo = RepositoryEntity(
            id=1,
            name="hello-world",
            full_name="octocat/hello-world",
            html_url="https://github.com/octocat/hello-world",
        )
        mock_service.get_repository = AsyncMock(return_value=success(repo))
        mock_service.rate_limiter.state = make_state(4999)

        result = runner.invoke(app, ["github", "test", "octocat/hello-world"])

        assert result.exit_code == 0
        assert "octocat/hello-world (public)" in result.output
        assert "4999/5000" in result.output
        request = mock_service.get_repository.await_args.args[0]
        assert (request.owner, request.repo) == ("octocat", "hello-world")
