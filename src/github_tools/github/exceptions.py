"""GitHub client exceptions and failure inspection."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from github_tools.errors import extract_error_message, extract_status_code

RATE_LIMIT_MESSAGE = "api rate limit exceeded"


class GitHubClientError(Exception):
    """Base exception for GitHub client setup errors."""

    pass


class GitHubAuthenticationError(GitHubClientError):
    """Raised when no usable GitHub token is configured."""

    pass


def normalize_headers(headers: Any) -> dict[str, str]:
    """Convert a header mapping (dict, httpx.Headers, ...) to a lowercase dict."""
    if headers is None:
        return {}
    items = headers.items() if hasattr(headers, "items") else headers
    return {str(key).lower(): str(value) for key, value in items}


@dataclass(frozen=True)
class FailureInfo:
    """What the retry policy needs to know about a failed GitHub call."""

    status_code: int | None
    """HTTP status, or None for failures without a response (network, bugs)."""

    message: str
    """GitHub's error message, or the exception text."""

    headers: Mapping[str, str] = field(default_factory=dict)
    """Response headers with lowercase names."""

    @property
    def is_rate_limited(self) -> bool:
        """A 403 caused by an exhausted quota rather than missing permissions."""
        if self.status_code != 403:
            return False
        if RATE_LIMIT_MESSAGE in self.message.lower():
            return True
        return self.headers.get("x-ratelimit-remaining") == "0"

    @property
    def is_transient(self) -> bool:
        """Server errors, 429 and quota-exceeded 403s are worth retrying."""
        if self.status_code is None:
            return False
        return self.status_code >= 500 or self.status_code == 429 or self.is_rate_limited

    @property
    def retry_after(self) -> str | None:
        return self.headers.get("retry-after")


def inspect_failure(exc: BaseException) -> FailureInfo:
    """Extract status, message and headers from any exception.

    Works with githubkit's ``RequestFailed`` (``response.status_code`` and
    ``response.headers``) as well as exceptions that only carry a
    ``status``/``status_code`` attribute.
    """
    response = getattr(exc, "response", None)
    headers = getattr(response, "headers", None)
    if headers is None:
        headers = getattr(exc, "headers", None)
    return FailureInfo(
        status_code=extract_status_code(exc),
        message=extract_error_message(exc),
        headers=normalize_headers(headers),
    )
