"""Input models for GitHub tools.

Each tool validates its raw arguments against one of these models
before any GitHub call is made.
"""

from typing import Annotated, Any, Literal, TypeVar

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, ValidationError

from github_tools.errors import create_validation_error

from .results import OperationResult, failure, success

RequestT = TypeVar("RequestT", bound="ToolRequest")

# Names, refs and paths are trimmed; free text is passed through verbatim
Identifier = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]

OwnerName = Annotated[Identifier, Field(description="Repository owner (user or organization)")]
RepoName = Annotated[Identifier, Field(description="Repository name")]


class ToolRequest(BaseModel):
    """Base class for tool inputs."""

    model_config = ConfigDict(extra="ignore")


class RepositoryRef(ToolRequest):
    """Identifies a single repository."""

    owner: OwnerName
    repo: RepoName

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"


# -----------------------------------------------------------------------------
# Repositories
# -----------------------------------------------------------------------------
class GetRepositoryRequest(RepositoryRef):
    """Input for ``get_repository``."""


class CreateRepositoryRequest(ToolRequest):
    """Input for ``create_repository``."""

    name: Identifier = Field(description="Repository name")
    description: str | None = None
    private: bool | None = None


class ListRepositoriesRequest(ToolRequest):
    """Input for ``list_repositories``."""

    type: Literal["all", "owner", "public", "private", "member"] | None = None
    sort: Literal["created", "updated", "pushed", "full_name"] | None = None


# -----------------------------------------------------------------------------
# Branches
# -----------------------------------------------------------------------------
class CreateBranchRequest(RepositoryRef):
    """Input for ``create_branch``."""

    branch: Identifier = Field(description="Name of the new branch")
    sha: Identifier = Field(description="Commit SHA the branch starts from")


class DeleteBranchRequest(RepositoryRef):
    """Input for ``delete_branch``."""

    branch: Identifier = Field(description="Branch to delete")


class ListBranchesRequest(RepositoryRef):
    """Input for ``list_branches``."""

    protected: bool | None = None
    per_page: int | None = Field(default=None, ge=1, le=100)


# -----------------------------------------------------------------------------
# Issues
# -----------------------------------------------------------------------------
class CreateIssueRequest(RepositoryRef):
    """Input for ``create_issue``."""

    title: str = Field(min_length=1)
    body: str | None = None
    labels: list[str] | None = None


class ListIssuesRequest(RepositoryRef):
    """Input for ``list_issues``."""

    state: Literal["open", "closed", "all"] | None = None
    labels: list[str] | None = None


# -----------------------------------------------------------------------------
# Pull Requests
# -----------------------------------------------------------------------------
class CreatePullRequestRequest(RepositoryRef):
    """Input for ``create_pull_request``."""

    title: str = Field(min_length=1)
    head: Identifier = Field(description="Branch containing the changes")
    base: Identifier = Field(description="Branch to merge into")
    body: str | None = None


class MergePullRequestRequest(RepositoryRef):
    """Input for ``merge_pull_request``."""

    pull_number: int = Field(gt=0)
    commit_title: str | None = None
    commit_message: str | None = None
    merge_method: Literal["merge", "squash", "rebase"] | None = None


class UpdatePullRequestRequest(RepositoryRef):
    """Input for ``update_pull_request``."""

    pull_number: int = Field(gt=0)
    title: str | None = None
    body: str | None = None
    state: Literal["open", "closed"] | None = None
    base: str | None = None
    maintainer_can_modify: bool | None = None


class ListPullRequestsRequest(RepositoryRef):
    """Input for ``list_pull_requests``."""

    state: Literal["open", "closed", "all"] | None = None
    head: str | None = None
    base: str | None = None
    sort: Literal["created", "updated", "popularity", "long-running"] | None = None
    direction: Literal["asc", "desc"] | None = None


# -----------------------------------------------------------------------------
# Files & Releases
# -----------------------------------------------------------------------------
class UpdateFileRequest(RepositoryRef):
    """Input for ``update_file``.

    ``content`` is plain text; it is base64-encoded before upload.
    ``sha`` is required by GitHub when replacing an existing file.
    """

    path: Identifier
    message: str = Field(min_length=1, description="Commit message")
    content: str = Field(min_length=1)
    sha: str | None = None
    branch: str | None = None


class CreateReleaseRequest(RepositoryRef):
    """Input for ``create_release``."""

    tag_name: Identifier
    name: str | None = None
    body: str | None = None
    draft: bool | None = None
    prerelease: bool | None = None


def validate_request(
    model: type[RequestT], arguments: dict[str, Any] | None
) -> OperationResult[RequestT]:
    """Validate raw tool arguments.

    Returns:
        Success with the parsed model, or a VALIDATION failure whose context
        lists ``validation_errors`` as ``{"path": ..., "message": ...}`` entries.
    """
    try:
        return success(model.model_validate(arguments or {}))
    except ValidationError as e:
        errors = [
            {"path": ".".join(str(part) for part in err["loc"]), "message": err["msg"]}
            for err in e.errors()
        ]
        return failure(
            create_validation_error(
                "Input validation failed",
                {"validation_errors": errors, "request": model.__name__},
            )
        )
