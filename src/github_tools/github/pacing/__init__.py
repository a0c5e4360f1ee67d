"""Retry and wait primitives for GitHub API calls.

Components:
- SafeTimeout: cancellable one-shot timer used for every wait
- RetryExecutor: rate-limited execution with exponential backoff
"""

from .retry import RetryExecutor, backoff_delay_ms, get_retry_executor
from .timeout import SafeTimeout, create_safe_timeout, sleep_safely

__all__ = [
    # Timeouts
    "SafeTimeout",
    "create_safe_timeout",
    "sleep_safely",
    # Retries
    "RetryExecutor",
    "backoff_delay_ms",
    "get_retry_executor",
]
