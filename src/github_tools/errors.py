"""Error construction and classification.

Internally the core raises ``OperationError``, which carries a fully
classified ``StandardizedError``. At the service boundary any exception
is turned into a ``StandardizedError`` by ``classify_exception`` and
returned inside an ``OperationFailure``.

Every factory logs the error it creates at the level matching its
severity.
"""

from __future__ import annotations

import json
import traceback
from typing import Any

from githubkit.exception import RequestError

from github_tools.logging import get_logger
from github_tools.schemas.errors import (
    ErrorCategory,
    ErrorCode,
    ErrorSeverity,
    StandardizedError,
)

logger = get_logger(__name__)

_LOG_LEVELS = {
    ErrorSeverity.INFO: "INFO",
    ErrorSeverity.WARN: "WARNING",
    ErrorSeverity.ERROR: "ERROR",
    ErrorSeverity.FATAL: "CRITICAL",
}

_NETWORK_MARKERS = (
    "network",
    "econnrefused",
    "connection refused",
    "connection reset",
    "timeout",
    "timed out",
)
_AUTH_MARKERS = ("authentication", "authorization", "bad credentials", "unauthorized")
_VALIDATION_MARKERS = ("validation", "invalid", "required")
_GITHUB_MARKERS = ("github", "api")


class OperationError(Exception):
    """Exception carrying a classified ``StandardizedError``."""

    def __init__(self, error: StandardizedError) -> None:
        super().__init__(error.message)
        self.error = error

    @property
    def category(self) -> ErrorCategory:
        return self.error.category


# -----------------------------------------------------------------------------
# Factories
# -----------------------------------------------------------------------------
def create_standardized_error(
    message: str,
    code: str,
    category: ErrorCategory,
    severity: ErrorSeverity = ErrorSeverity.ERROR,
    context: dict[str, Any] | None = None,
    stack: str | None = None,
) -> StandardizedError:
    """Build a StandardizedError and log it at its severity's level."""
    error = StandardizedError(
        message=message,
        code=code,
        category=category,
        severity=severity,
        context=context or {},
        stack=stack,
    )
    logger.bind(code=error.code, category=category.value).log(
        _LOG_LEVELS[severity], "{} error: {}", category.value, message
    )
    return error


def create_github_api_error(
    message: str, context: dict[str, Any] | None = None
) -> StandardizedError:
    return create_standardized_error(
        message,
        ErrorCode.GITHUB_API_ERROR,
        ErrorCategory.GITHUB_API,
        ErrorSeverity.ERROR,
        context,
    )


def create_validation_error(
    message: str, context: dict[str, Any] | None = None
) -> StandardizedError:
    return create_standardized_error(
        message,
        ErrorCode.VALIDATION_ERROR,
        ErrorCategory.VALIDATION,
        ErrorSeverity.WARN,
        context,
    )


def create_authentication_error(
    message: str, context: dict[str, Any] | None = None
) -> StandardizedError:
    return create_standardized_error(
        message,
        ErrorCode.AUTHENTICATION_ERROR,
        ErrorCategory.AUTHENTICATION,
        ErrorSeverity.ERROR,
        context,
    )


def create_system_error(
    message: str,
    context: dict[str, Any] | None = None,
    code: str = ErrorCode.SYSTEM_ERROR,
) -> StandardizedError:
    return create_standardized_error(
        message, code, ErrorCategory.SYSTEM, ErrorSeverity.ERROR, context
    )


def wrap_exception(
    exc: BaseException,
    message: str | None = None,
    context: dict[str, Any] | None = None,
) -> StandardizedError:
    """Wrap an unexpected exception as an UNKNOWN error, keeping its traceback."""
    return create_standardized_error(
        message or str(exc) or type(exc).__name__,
        ErrorCode.UNEXPECTED_ERROR,
        ErrorCategory.UNKNOWN,
        ErrorSeverity.ERROR,
        {**(context or {}), **describe_exception(exc)},
        stack="".join(traceback.format_exception(exc)),
    )


# -----------------------------------------------------------------------------
# Exception Inspection
# -----------------------------------------------------------------------------
def extract_status_code(exc: BaseException) -> int | None:
    """Find an HTTP status code on an exception, if it carries one.

    Checks ``status_code`` and ``status`` attributes, then
    ``response.status_code`` (githubkit's ``RequestFailed``).
    """
    for candidate in (
        getattr(exc, "status_code", None),
        getattr(exc, "status", None),
        getattr(getattr(exc, "response", None), "status_code", None),
    ):
        if isinstance(candidate, int) and not isinstance(candidate, bool):
            return candidate
    return None


def extract_error_message(exc: BaseException) -> str:
    """Get the most useful message for an exception.

    GitHub error bodies are JSON objects with a ``message`` key; prefer
    that over the exception's string form.
    """
    response = getattr(exc, "response", None)
    text = getattr(response, "text", None)
    if isinstance(text, str) and text:
        try:
            body = json.loads(text)
        except ValueError:
            body = None
        if isinstance(body, dict) and isinstance(body.get("message"), str):
            return body["message"]
    return str(exc) or type(exc).__name__


def describe_exception(exc: BaseException) -> dict[str, Any]:
    """Context fields describing an exception (JSON-safe)."""
    return {"original_error": str(exc), "error_type": type(exc).__name__}


def _is_network_failure(exc: BaseException, lowered: str) -> bool:
    if isinstance(exc, RequestError | ConnectionError | TimeoutError):
        return True
    return any(marker in lowered for marker in _NETWORK_MARKERS)


def classify_exception(exc: BaseException, operation: str | None = None) -> StandardizedError:
    """Turn any exception into a StandardizedError.

    HTTP status codes win over message text: 401 is AUTHENTICATION and
    422 is VALIDATION. An ``OperationError`` raised over a network failure
    becomes a SYSTEM error with code ``NETWORK_ERROR``; otherwise it keeps
    the error it already carries. Remaining exceptions are classified by
    message: network problems become SYSTEM errors with code
    ``NETWORK_ERROR``, then authentication, validation and GitHub/API
    wording is matched, and anything else is a SYSTEM error.
    """
    cause = exc.__cause__ if isinstance(exc, OperationError) else None
    status = extract_status_code(exc)
    if status is None and cause is not None:
        status = extract_status_code(cause)

    if isinstance(exc, OperationError):
        message = exc.error.message
        context = dict(exc.error.context)
    else:
        message = extract_error_message(exc)
        context = describe_exception(exc)
        if status is not None:
            context["status_code"] = status
    if operation is not None:
        context.setdefault("operation", operation)

    if status == 401:
        return create_authentication_error(message, context)
    if status == 422:
        return create_validation_error(message, context)
    if isinstance(exc, OperationError):
        if status is None and cause is not None:
            if _is_network_failure(cause, extract_error_message(cause).lower()):
                return create_system_error(message, context, code=ErrorCode.NETWORK_ERROR)
        return exc.error

    lowered = message.lower()
    if status is None and _is_network_failure(exc, lowered):
        return create_system_error(message, context, code=ErrorCode.NETWORK_ERROR)
    if any(marker in lowered for marker in _AUTH_MARKERS):
        return create_authentication_error(message, context)
    if any(marker in lowered for marker in _VALIDATION_MARKERS):
        return create_validation_error(message, context)
    if any(marker in lowered for marker in _GITHUB_MARKERS):
        return create_github_api_error(message, context)
    return create_system_error(message, context)
