"""Domain entities returned by GitHub tools.

These are trimmed views of GitHub REST API objects: only the fields an
agent needs are kept. Each entity has a ``from_api`` factory that takes
the raw (dumped) API payload.
See: https://docs.github.com/en/rest
"""

from datetime import datetime
from typing import Any, Literal, Self

from pydantic import BaseModel, Field, field_validator

from github_tools.logging import get_logger

logger = get_logger(__name__)

EntityState = Literal["open", "closed"]


def _normalize_state(value: Any, entity: str) -> str:
    """Map an API state onto open/closed, treating anything else as closed."""
    if value in ("open", "closed"):
        return str(value)
    logger.warning("Unexpected {} state {!r}, treating as closed", entity, value)
    return "closed"


class RepositoryEntity(BaseModel):
    """A GitHub repository."""

    id: int = Field(description="Repository ID")
    name: str = Field(description="Repository name")
    full_name: str = Field(description="owner/name")
    html_url: str = Field(description="Browser URL")
    private: bool = Field(default=False)
    description: str | None = Field(default=None)
    created_at: datetime | None = Field(default=None)
    updated_at: datetime | None = Field(default=None)

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> Self:
        return cls(
            id=data["id"],
            name=data["name"],
            full_name=data["full_name"],
            html_url=data["html_url"],
            private=data.get("private", False),
            description=data.get("description"),
            created_at=data.get("created_at"),
            updated_at=data.get("updated_at"),
        )


class BranchCommit(BaseModel):
    """Commit a branch points at."""

    sha: str = Field(description="Commit SHA")
    url: str = Field(description="API URL of the commit")


class BranchEntity(BaseModel):
    """A branch of a repository."""

    name: str = Field(description="Branch name")
    commit: BranchCommit
    protected: bool = Field(default=False)

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> Self:
        commit = data["commit"]
        return cls(
            name=data["name"],
            commit=BranchCommit(sha=commit["sha"], url=commit["url"]),
            protected=data.get("protected", False),
        )


class BranchDeletion(BaseModel):
    """Acknowledgement that a branch was deleted."""

    owner: str
    repo: str
    branch: str
    deleted: bool = True


class IssueEntity(BaseModel):
    """A repository issue."""

    number: int = Field(description="Issue number")
    title: str
    body: str | None = Field(default=None)
    state: EntityState
    labels: list[str] = Field(default_factory=list, description="Label names")
    created_at: datetime | None = Field(default=None)
    updated_at: datetime | None = Field(default=None)

    @field_validator("state", mode="before")
    @classmethod
    def _coerce_state(cls, value: Any) -> str:
        return _normalize_state(value, "issue")

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> Self:
        # Labels come back either as plain names or as label objects
        labels = [
            label if isinstance(label, str) else label.get("name", "")
            for label in data.get("labels") or []
        ]
        return cls(
            number=data["number"],
            title=data["title"],
            body=data.get("body"),
            state=data.get("state"),
            labels=[name for name in labels if name],
            created_at=data.get("created_at"),
            updated_at=data.get("updated_at"),
        )


class PullRequestEntity(BaseModel):
    """A pull request."""

    number: int = Field(description="Pull request number")
    title: str
    body: str | None = Field(default=None)
    state: EntityState
    head: str = Field(description="Source branch")
    base: str = Field(description="Target branch")
    mergeable: bool = Field(default=False, description="False when GitHub has not computed it yet")
    created_at: datetime | None = Field(default=None)
    updated_at: datetime | None = Field(default=None)

    @field_validator("state", mode="before")
    @classmethod
    def _coerce_state(cls, value: Any) -> str:
        return _normalize_state(value, "pull request")

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> Self:
        mergeable = data.get("mergeable")
        return cls(
            number=data["number"],
            title=data["title"],
            body=data.get("body"),
            state=data.get("state"),
            head=data["head"]["ref"],
            base=data["base"]["ref"],
            mergeable=bool(mergeable) if mergeable is not None else False,
            created_at=data.get("created_at"),
            updated_at=data.get("updated_at"),
        )


class MergeResult(BaseModel):
    """Outcome of merging a pull request."""

    merged: bool
    message: str
    sha: str | None = Field(default=None, description="Merge commit SHA")

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> Self:
        return cls(merged=data["merged"], message=data["message"], sha=data.get("sha"))


class FileUpdateResult(BaseModel):
    """Outcome of creating or updating a file."""

    path: str
    commit_sha: str = Field(description="SHA of the commit that wrote the file")
    content_sha: str | None = Field(default=None, description="Blob SHA of the new content")

    @classmethod
    def from_api(cls, path: str, data: dict[str, Any]) -> Self:
        content = data.get("content") or {}
        return cls(
            path=path,
            commit_sha=data["commit"]["sha"],
            content_sha=content.get("sha"),
        )


class ReleaseEntity(BaseModel):
    """A published (or draft) release."""

    id: int = Field(description="Release ID")
    tag_name: str
    name: str | None = Field(default=None)
    body: str | None = Field(default=None)
    draft: bool = Field(default=False)
    prerelease: bool = Field(default=False)
    created_at: datetime | None = Field(default=None)
    published_at: datetime | None = Field(default=None)

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> Self:
        return cls(
            id=data["id"],
            tag_name=data["tag_name"],
            name=data.get("name"),
            body=data.get("body"),
            draft=data.get("draft", False),
            prerelease=data.get("prerelease", False),
            created_at=data.get("created_at"),
            published_at=data.get("published_at"),
        )
