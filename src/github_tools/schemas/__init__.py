"""Pydantic schemas and result types for GitHub tools.

Request models live in ``github_tools.schemas.requests`` and are imported
from there directly.
"""

from .entities import (
    BranchCommit,
    BranchDeletion,
    BranchEntity,
    FileUpdateResult,
    IssueEntity,
    MergeResult,
    PullRequestEntity,
    ReleaseEntity,
    RepositoryEntity,
)
from .errors import ErrorCategory, ErrorCode, ErrorSeverity, StandardizedError
from .results import OperationFailure, OperationResult, OperationSuccess, failure, success

__all__ = [
    # Errors
    "ErrorCategory",
    "ErrorCode",
    "ErrorSeverity",
    "StandardizedError",
    # Results
    "OperationFailure",
    "OperationResult",
    "OperationSuccess",
    "failure",
    "success",
    # Entities
    "BranchCommit",
    "BranchDeletion",
    "BranchEntity",
    "FileUpdateResult",
    "IssueEntity",
    "MergeResult",
    "PullRequestEntity",
    "ReleaseEntity",
    "RepositoryEntity",
]
