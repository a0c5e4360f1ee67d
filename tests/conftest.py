"""Pytest configuration and shared fixtures.

Usage Guide:
- For GitHub API responses: use make_response / make_request_failed
- For rate limit headers: import from tests.fixtures.rate_limit_responses
- Settings variables from the shell environment are removed, and the
  process-wide settings/limiter/executor caches are cleared, around
  every test
"""

import json
import os
from typing import Any
from unittest.mock import MagicMock

import pytest
from githubkit.exception import RequestFailed

from github_tools.config import RateLimitConfig, RetryConfig, Settings, get_settings
from github_tools.github.pacing.retry import get_retry_executor
from github_tools.github.rate_limit.limiter import get_rate_limiter

TEST_TOKEN = "ghp_" + "a" * 36


# -----------------------------------------------------------------------------
# Environment Isolation
# -----------------------------------------------------------------------------
_SETTINGS_ENV_VARS = (
    "GITHUB_TOKEN",
    "API_TIMEOUT_MS",
    "SERVER_NAME",
    "SERVER_VERSION",
    "LOG_LEVEL",
    "RATE_LIMITING",
    "RETRY",
    "LOGGING",
)


@pytest.fixture(autouse=True)
def _isolate_settings_env(monkeypatch):
    """Remove settings variables inherited from the developer's shell."""
    for name in list(os.environ):
        upper = name.upper()
        if any(upper == var or upper.startswith(f"{var}__") for var in _SETTINGS_ENV_VARS):
            monkeypatch.delenv(name, raising=False)


# -----------------------------------------------------------------------------
# Cache Isolation
# -----------------------------------------------------------------------------
@pytest.fixture(autouse=True)
def _clear_cached_singletons():
    """Clear lru_cached settings, limiter and executor between tests."""
    get_settings.cache_clear()
    get_rate_limiter.cache_clear()
    get_retry_executor.cache_clear()
    yield
    get_settings.cache_clear()
    get_rate_limiter.cache_clear()
    get_retry_executor.cache_clear()


# -----------------------------------------------------------------------------
# Settings Fixtures
# -----------------------------------------------------------------------------
@pytest.fixture
def settings() -> Settings:
    """Settings with a valid-looking token and no .env file."""
    return Settings(_env_file=None, github_token=TEST_TOKEN)


@pytest.fixture
def rate_limit_config() -> RateLimitConfig:
    return RateLimitConfig()


@pytest.fixture
def retry_config() -> RetryConfig:
    return RetryConfig(max_retries=3, base_delay_ms=1000)


# -----------------------------------------------------------------------------
# GitHub Response Helpers
# -----------------------------------------------------------------------------
def make_response(
    payload: Any = None,
    *,
    status_code: int = 200,
    headers: dict[str, str] | None = None,
) -> MagicMock:
    """Create a MagicMock that behaves like a githubkit Response."""
    response = MagicMock()
    response.status_code = status_code
    response.headers = headers or {}
    response.json.return_value = payload
    response.text = json.dumps(payload) if payload is not None else ""
    return response


def make_request_failed(
    status_code: int,
    message: str = "",
    *,
    headers: dict[str, str] | None = None,
) -> RequestFailed:
    """Create a githubkit RequestFailed with a GitHub-style JSON error body."""
    response = MagicMock()
    response.status_code = status_code
    response.headers = headers or {}
    response.text = json.dumps({"message": message}) if message else ""
    return RequestFailed(response)
