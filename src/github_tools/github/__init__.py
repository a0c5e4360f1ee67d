"""GitHub API access.

This module provides:
- GitHubService: facade running every GitHub operation through the
  rate limiter and retry executor, returning OperationResults
- Rate limiting: GitHubRateLimiter, RateLimitState
- Retries and waits: RetryExecutor, SafeTimeout
"""

from .client import GitHubService, require_github_token
from .exceptions import (
    FailureInfo,
    GitHubAuthenticationError,
    GitHubClientError,
    inspect_failure,
)
from .pacing import (
    RetryExecutor,
    SafeTimeout,
    create_safe_timeout,
    get_retry_executor,
    sleep_safely,
)
from .rate_limit import GitHubRateLimiter, RateLimitState, get_rate_limiter

__all__ = [
    # Service
    "GitHubService",
    "require_github_token",
    # Exceptions
    "FailureInfo",
    "GitHubAuthenticationError",
    "GitHubClientError",
    "inspect_failure",
    # Retries and waits
    "RetryExecutor",
    "SafeTimeout",
    "create_safe_timeout",
    "get_retry_executor",
    "sleep_safely",
    # Rate limiting
    "GitHubRateLimiter",
    "RateLimitState",
    "get_rate_limiter",
]
