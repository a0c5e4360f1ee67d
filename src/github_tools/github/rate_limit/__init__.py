"""Rate limiting for the GitHub API.

The limiter tracks the quota from response headers and throttles
requests before the quota runs out.
"""

from .limiter import GitHubRateLimiter, get_rate_limiter
from .schemas import RateLimitState

__all__ = [
    "GitHubRateLimiter",
    "RateLimitState",
    "get_rate_limiter",
]
