"""Standardized error record shared by every operation."""

from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ErrorCategory(str, Enum):
    """Broad classification of where a failure originated."""

    VALIDATION = "VALIDATION"
    AUTHENTICATION = "AUTHENTICATION"
    GITHUB_API = "GITHUB_API"
    SYSTEM = "SYSTEM"
    UNKNOWN = "UNKNOWN"


class ErrorSeverity(str, Enum):
    """How serious a failure is. Also selects the log level it is written at."""

    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"
    FATAL = "FATAL"


class ErrorCode(str, Enum):
    """Machine-readable error codes."""

    GITHUB_API_ERROR = "GITHUB_API_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    AUTHENTICATION_ERROR = "AUTHENTICATION_ERROR"
    SYSTEM_ERROR = "SYSTEM_ERROR"
    NETWORK_ERROR = "NETWORK_ERROR"
    UNEXPECTED_ERROR = "UNEXPECTED_ERROR"


class StandardizedError(BaseModel):
    """Uniform error record returned to callers instead of raw exceptions.

    Instances are immutable. ``context`` is open-ended and holds
    operation-specific details (operation name, status code, attempts, ...).
    """

    model_config = ConfigDict(frozen=True)

    message: str = Field(description="Human-readable description")
    code: str = Field(description="Machine-readable error code")
    category: ErrorCategory
    severity: ErrorSeverity
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    context: dict[str, Any] = Field(default_factory=dict)
    stack: str | None = Field(default=None, description="Formatted traceback, if captured")
