"""Configuration settings for the GitHub tools server."""

import re
from functools import lru_cache
from typing import Literal

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Fine-grained and OAuth/app tokens share a prefix + base62 body
_PREFIXED_TOKEN = re.compile(r"^(ghp_|gho_|ghs_|ghu_|github_pat_)[A-Za-z0-9_]+$")
_CLASSIC_TOKEN = re.compile(r"^[a-fA-F0-9]{40}$")


class RateLimitConfig(BaseModel):
    """Configuration for the adaptive rate limiter.

    Controls when requests are throttled against the GitHub quota
    window and how long the limiter is willing to block.
    """

    enabled: bool = Field(
        default=True,
        description="Throttle requests against the tracked quota",
    )
    min_remaining: int = Field(
        default=50,
        ge=0,
        description="Remaining requests at or below which calls wait for the reset",
    )
    reset_buffer_ms: int = Field(
        default=5000,
        ge=0,
        description="Extra milliseconds added on top of the reported reset time",
    )

    # Ceilings
    max_throttle_wait_ms: int = Field(
        default=60000,
        ge=0,
        description="Longest predictive wait before failing fast (60 seconds)",
    )
    max_exceeded_wait_ms: int = Field(
        default=120000,
        ge=0,
        description="Longest wait after a quota-exceeded rejection (2 minutes)",
    )


class RetryConfig(BaseModel):
    """Configuration for retrying transient GitHub failures."""

    max_retries: int = Field(
        default=3,
        ge=0,
        le=10,
        description="Retries after the first attempt (total calls = max_retries + 1)",
    )
    base_delay_ms: int = Field(
        default=1000,
        ge=0,
        description="Backoff delay before the first retry, doubled on each retry",
    )


class LoggingConfig(BaseModel):
    """Configuration for logging behavior.

    Controls file logging, rotation, and output format.
    """

    log_file: str | None = Field(
        default=None,
        description="Optional path for file logging (enables rotation)",
    )
    rotation: str = Field(
        default="10 MB",
        description="When to rotate log file (e.g., '10 MB', '1 day')",
    )
    retention: str = Field(
        default="7 days",
        description="How long to keep rotated logs",
    )
    serialize: bool = Field(
        default=False,
        description="If True, output JSON format to file",
    )


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Nested sections use a double underscore, e.g.
    ``RATE_LIMITING__MIN_REMAINING=100`` or ``RETRY__BASE_DELAY_MS=500``.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    # --------------------------------------------------------------------------
    # GitHub API
    # --------------------------------------------------------------------------
    github_token: str = Field(
        default="",
        description="GitHub personal access token",
    )
    api_timeout_ms: int = Field(
        default=10000,
        ge=100,
        description="Per-request timeout for GitHub API calls",
    )

    # --------------------------------------------------------------------------
    # Server
    # --------------------------------------------------------------------------
    server_name: str = Field(
        default="github-mcp-server",
        description="Name advertised to MCP clients",
    )
    server_version: str = Field(
        default="1.0.2",
        description="Version advertised to MCP clients",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )

    # --------------------------------------------------------------------------
    # Rate Limiting & Retries
    # --------------------------------------------------------------------------
    rate_limiting: RateLimitConfig = Field(
        default_factory=RateLimitConfig,
        description="Rate limiter configuration",
    )
    retry: RetryConfig = Field(
        default_factory=RetryConfig,
        description="Retry and backoff configuration",
    )

    # --------------------------------------------------------------------------
    # Logging Configuration
    # --------------------------------------------------------------------------
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig,
        description="Logging configuration (file output, rotation)",
    )


def validate_github_token(token: str) -> bool:
    """Check whether a token looks like a GitHub access token.

    Accepts prefixed tokens (``ghp_``, ``gho_``, ``ghs_``, ``ghu_``,
    ``github_pat_``) of at least 36 characters, and 40-character hex
    classic tokens.
    """
    if not token:
        return False
    if _PREFIXED_TOKEN.match(token) and len(token) >= 36:
        return True
    return bool(_CLASSIC_TOKEN.match(token))


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
