"""Retry executor for GitHub API calls.

Runs a call through the rate limiter, retrying transient failures
(5xx, 429 and quota-exceeded 403s) with exponential backoff. Terminal
failures and exhausted retries surface as an ``OperationError`` with a
GITHUB_API error.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from functools import lru_cache
from typing import Any, TypeVar

from github_tools.config import RetryConfig, get_settings
from github_tools.errors import OperationError, create_github_api_error
from github_tools.github.exceptions import inspect_failure
from github_tools.github.rate_limit.limiter import GitHubRateLimiter, get_rate_limiter
from github_tools.logging import bind_operation

from .timeout import sleep_safely

T = TypeVar("T")


def backoff_delay_ms(base_delay_ms: int, attempt: int) -> int:
    """Delay before retry number ``attempt + 1``: base, 2x base, 4x base, ..."""
    return base_delay_ms * 2**attempt


class RetryExecutor:
    """Executes GitHub calls with rate limiting and retries.

    Usage:
        executor = RetryExecutor(limiter)
        response = await executor.execute_with_retry_policy(
            "getRepository",
            lambda: github.rest.repos.async_get(owner="octo", repo="hello"),
        )

    With ``max_retries=3`` a persistently failing call is attempted four
    times, waiting ``base``, ``2*base`` and ``4*base`` between attempts.
    """

    def __init__(
        self,
        rate_limiter: GitHubRateLimiter | None = None,
        config: RetryConfig | None = None,
    ) -> None:
        """Initialize the executor.

        Args:
            rate_limiter: Limiter consulted before every attempt
                (process-wide limiter if not provided)
            config: Retry configuration (uses settings if not provided)
        """
        self._rate_limiter = rate_limiter or get_rate_limiter()
        self._config = config or get_settings().retry

    @property
    def rate_limiter(self) -> GitHubRateLimiter:
        return self._rate_limiter

    async def execute_with_retry_policy(
        self,
        operation_name: str,
        call: Callable[[], Awaitable[T]],
        *,
        max_retries: int | None = None,
        base_delay_ms: int | None = None,
    ) -> T:
        """Run ``call`` until it succeeds, fails terminally, or retries run out.

        Each attempt first passes the rate limiter. A successful response's
        ``headers`` refresh the limiter's quota snapshot.

        Args:
            operation_name: Name used in logs and error context
            call: Zero-argument coroutine factory performing one attempt
            max_retries: Override for the configured retry count
            base_delay_ms: Override for the configured backoff base

        Returns:
            Whatever ``call`` returned.

        Raises:
            OperationError: GITHUB_API error for terminal failures, for
                exhausted retries, and when the limiter refuses to wait.
        """
        retries = self._config.max_retries if max_retries is None else max_retries
        base_delay = self._config.base_delay_ms if base_delay_ms is None else base_delay_ms
        log = bind_operation(operation_name)
        attempt = 0

        while True:
            await self._rate_limiter.check_rate_limit()
            try:
                response = await call()
            except OperationError:
                raise
            except Exception as e:
                failure = inspect_failure(e)

                if failure.is_transient and attempt < retries:
                    delay = backoff_delay_ms(base_delay, attempt)
                    attempt += 1
                    log.warning(
                        "{} failed with status {} (retry {}/{}): {}",
                        operation_name,
                        failure.status_code,
                        attempt,
                        retries,
                        failure.message,
                    )
                    if failure.is_rate_limited:
                        await self._rate_limiter.handle_rate_limit_exceeded(failure.retry_after)
                    else:
                        await sleep_safely(delay, f"{operation_name} retry {attempt}")
                    continue

                raise OperationError(
                    create_github_api_error(
                        f"GitHub API error in {operation_name}: {failure.message}",
                        {
                            "operation": operation_name,
                            "status_code": failure.status_code,
                            "attempts": attempt + 1,
                            "original_error": str(e),
                            "error_type": type(e).__name__,
                        },
                    )
                ) from e

            await self._rate_limiter.update_rate_limit_from_headers(_response_headers(response))
            if attempt:
                log.info("{} succeeded after {} retries", operation_name, attempt)
            return response


def _response_headers(response: Any) -> Any:
    """Headers of a githubkit Response, or None for other return values."""
    headers = getattr(response, "headers", None)
    if headers is None or not hasattr(headers, "items"):
        return None
    return dict(headers.items())


@lru_cache
def get_retry_executor() -> RetryExecutor:
    """Get the process-wide retry executor (sharing the process-wide limiter)."""
    return RetryExecutor(get_rate_limiter())
