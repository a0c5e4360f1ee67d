"""Adaptive rate limiter for the GitHub API.

The limiter keeps one ``RateLimitState`` snapshot, refreshed from the
headers of every successful response. Before each call it checks the
snapshot and, when the quota is nearly exhausted, waits for the window
to reset, or fails fast if that wait would be too long. After a
quota-exceeded rejection it waits out the window before the retry.

All reads and writes of the snapshot happen under one ``asyncio.Lock``;
waits are performed while holding it, so concurrent callers queue up
behind a throttled one instead of all hitting an exhausted quota.
"""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from datetime import UTC, datetime
from functools import lru_cache
from typing import Any

from github_tools.config import RateLimitConfig, get_settings
from github_tools.errors import OperationError, create_github_api_error
from github_tools.github.pacing.timeout import sleep_safely
from github_tools.logging import get_logger

from .schemas import RateLimitState

logger = get_logger(__name__)


def _parse_retry_after(retry_after: str | int | float | None) -> float | None:
    """Seconds from a retry-after value, or None if absent or unusable."""
    if retry_after is None or isinstance(retry_after, bool):
        return None
    try:
        seconds = float(retry_after)
    except (TypeError, ValueError):
        logger.debug("Ignoring unparseable retry-after value {!r}", retry_after)
        return None
    if seconds < 0 or seconds != seconds:
        return None
    return seconds


class GitHubRateLimiter:
    """Throttles GitHub calls against the tracked quota window.

    Usage:
        limiter = GitHubRateLimiter()

        await limiter.check_rate_limit()           # before each call
        response = await github.rest.repos.async_get(...)
        await limiter.update_rate_limit_from_headers(response.headers)

        # after a 403 "API rate limit exceeded"
        await limiter.handle_rate_limit_exceeded(retry_after="5")
    """

    def __init__(
        self,
        config: RateLimitConfig | None = None,
        state: RateLimitState | None = None,
    ) -> None:
        """Initialize the rate limiter.

        Args:
            config: Rate limit configuration (uses settings if not provided)
            state: Initial quota snapshot (optimistic default if not provided)
        """
        self._config = config or get_settings().rate_limiting
        self._state = state or RateLimitState.default()
        self._lock = asyncio.Lock()

    @property
    def config(self) -> RateLimitConfig:
        return self._config

    @property
    def state(self) -> RateLimitState:
        """Current quota snapshot."""
        return self._state

    # -------------------------------------------------------------------------
    # Predictive Throttling
    # -------------------------------------------------------------------------
    async def check_rate_limit(self) -> None:
        """Wait for the quota window to reset if too few requests remain.

        Returns immediately when limiting is disabled, when more than
        ``min_remaining`` requests are left, or when the tracked reset time
        has already passed. Otherwise blocks until the reset plus the
        configured buffer. The snapshot is not reset after the wait; the
        next response's headers replace it.

        Raises:
            OperationError: GITHUB_API error if the wait would exceed
                ``max_throttle_wait_ms``.
        """
        if not self._config.enabled:
            return

        async with self._lock:
            state = self._state
            if state.remaining > self._config.min_remaining:
                return

            wait_ms = state.milliseconds_until_reset() + self._config.reset_buffer_ms
            if wait_ms <= 0:
                return

            context: dict[str, Any] = {
                "remaining": state.remaining,
                "reset_at": state.reset_at.isoformat(),
                "wait_ms": round(wait_ms),
            }
            logger.warning(
                "Rate limit nearly exhausted ({} remaining), waiting {}ms for reset",
                state.remaining,
                round(wait_ms),
            )

            if wait_ms > self._config.max_throttle_wait_ms:
                raise OperationError(
                    create_github_api_error(
                        "GitHub API rate limit exceeded, cannot proceed with request",
                        context,
                    )
                )

            await sleep_safely(wait_ms, "rate limit reset")
            logger.info("Waited for rate limit reset ({}ms)", round(wait_ms))

    # -------------------------------------------------------------------------
    # Header Tracking
    # -------------------------------------------------------------------------
    async def update_rate_limit_from_headers(self, headers: Mapping[str, Any] | None) -> bool:
        """Replace the snapshot from x-ratelimit-* response headers.

        The snapshot is replaced wholesale only if remaining, reset and
        limit are all present and valid; anything less is ignored.

        Returns:
            True if the snapshot was replaced.
        """
        if not headers:
            return False
        state = RateLimitState.from_response_headers(headers)
        if state is None:
            return False

        async with self._lock:
            self._state = state

        logger.debug(
            "Rate limit updated: {}/{} remaining, resets at {}",
            state.remaining,
            state.limit,
            state.reset_at.isoformat(),
        )
        return True

    # -------------------------------------------------------------------------
    # Reactive Handling
    # -------------------------------------------------------------------------
    async def handle_rate_limit_exceeded(
        self, retry_after: str | int | float | None = None
    ) -> None:
        """Wait out a quota-exceeded rejection before the caller retries.

        The wait is ``retry_after`` seconds when GitHub sent one, else the
        time until the tracked reset plus the buffer, else just the buffer.

        Raises:
            OperationError: GITHUB_API error if the wait would exceed
                ``max_exceeded_wait_ms``.
        """
        async with self._lock:
            seconds = _parse_retry_after(retry_after)
            until_reset = self._state.milliseconds_until_reset()
            if seconds is not None:
                wait_ms = seconds * 1000
            elif until_reset > 0:
                wait_ms = until_reset + self._config.reset_buffer_ms
            else:
                wait_ms = float(self._config.reset_buffer_ms)

            if wait_ms > self._config.max_exceeded_wait_ms:
                raise OperationError(
                    create_github_api_error(
                        "GitHub API rate limit exceeded, retry not possible",
                        {
                            "retry_after": retry_after,
                            "reset_at": self._state.reset_at.isoformat(),
                            "wait_ms": round(wait_ms),
                        },
                    )
                )

            logger.warning("Rate limit exceeded, waiting {}ms before retrying", round(wait_ms))
            await sleep_safely(wait_ms, "rate limit exceeded")

    def to_dict(self) -> dict[str, Any]:
        """Export current state as a dictionary (for CLI output)."""
        state = self._state
        return {
            "enabled": self._config.enabled,
            "remaining": state.remaining,
            "limit": state.limit,
            "reset_at": state.reset_at.isoformat(),
            "seconds_until_reset": state.seconds_until_reset,
            "remaining_percent": round(state.remaining_percent, 1),
            "checked_at": datetime.now(UTC).isoformat(),
        }


@lru_cache
def get_rate_limiter() -> GitHubRateLimiter:
    """Get the process-wide rate limiter."""
    return GitHubRateLimiter()
