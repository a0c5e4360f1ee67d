"""Result objects for GitHub operations.

Every service operation returns an ``OperationResult``: either an
``OperationSuccess`` carrying the data or an ``OperationFailure``
carrying a ``StandardizedError``. Callers branch on ``successful``.
"""

from dataclasses import dataclass
from typing import Generic, Literal, TypeVar

from .errors import StandardizedError

T = TypeVar("T")


@dataclass(frozen=True)
class OperationSuccess(Generic[T]):
    """Successful outcome of an operation."""

    data: T
    """Value produced by the operation."""

    successful: Literal[True] = True


@dataclass(frozen=True)
class OperationFailure:
    """Failed outcome of an operation."""

    error: StandardizedError
    """Classified error describing the failure."""

    successful: Literal[False] = False


OperationResult = OperationSuccess[T] | OperationFailure


def success(data: T) -> OperationSuccess[T]:
    """Wrap a value in a successful result."""
    return OperationSuccess(data=data)


def failure(error: StandardizedError) -> OperationFailure:
    """Wrap an error in a failed result."""
    return OperationFailure(error=error)
