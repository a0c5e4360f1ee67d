"""Pydantic schemas for GitHub API rate limit state.

The state is read from the x-ratelimit-* headers GitHub sends on every
response, or from the GET /rate_limit endpoint.
See: https://docs.github.com/en/rest/rate-limit/rate-limit
"""

from collections.abc import Mapping
from datetime import UTC, datetime, timedelta
from typing import Any, Self

from pydantic import BaseModel, ConfigDict, Field, computed_field

DEFAULT_LIMIT = 5000

REMAINING_HEADER = "x-ratelimit-remaining"
RESET_HEADER = "x-ratelimit-reset"
LIMIT_HEADER = "x-ratelimit-limit"


def _parse_int(value: Any) -> int | None:
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return None


class RateLimitState(BaseModel):
    """Snapshot of the primary (core) quota window.

    Immutable: the limiter replaces the whole snapshot on every update so
    the three fields always come from the same response.
    """

    model_config = ConfigDict(frozen=True)

    remaining: int = Field(ge=0, description="Requests remaining in current window")
    reset_at: datetime = Field(description="UTC datetime when the window resets")
    limit: int = Field(gt=0, description="Maximum requests allowed per window")

    @classmethod
    def default(cls) -> Self:
        """Optimistic state used before any response has been seen."""
        return cls(
            remaining=DEFAULT_LIMIT,
            reset_at=datetime.now(UTC) + timedelta(hours=1),
            limit=DEFAULT_LIMIT,
        )

    @classmethod
    def from_response_headers(cls, headers: Mapping[str, Any]) -> Self | None:
        """Parse the x-ratelimit-* headers.

        Header names are matched case-insensitively. All of remaining,
        reset (epoch seconds) and limit must be present and valid;
        otherwise None is returned and no partial state is built.
        """
        lowered = {str(key).lower(): value for key, value in headers.items()}
        remaining = _parse_int(lowered.get(REMAINING_HEADER))
        reset = _parse_int(lowered.get(RESET_HEADER))
        limit = _parse_int(lowered.get(LIMIT_HEADER))
        if remaining is None or reset is None or limit is None:
            return None
        if remaining < 0 or reset < 0 or limit <= 0:
            return None
        try:
            reset_at = datetime.fromtimestamp(reset, tz=UTC)
        except (ValueError, OverflowError, OSError):
            return None
        return cls(remaining=remaining, reset_at=reset_at, limit=limit)

    def milliseconds_until_reset(self, now: datetime | None = None) -> float:
        """Milliseconds until the window resets (negative once it has passed)."""
        now = now or datetime.now(UTC)
        return (self.reset_at - now).total_seconds() * 1000

    @property
    def seconds_until_reset(self) -> int:
        """Seconds until rate limit resets (0 if already past)."""
        return max(0, int(self.milliseconds_until_reset() / 1000))

    @computed_field  # type: ignore[prop-decorator]
    @property
    def remaining_percent(self) -> float:
        """Percentage of the quota remaining (0.0 to 100.0)."""
        return min(100.0, (self.remaining / self.limit) * 100)
