"""GitHub service facade using githubkit.

Every GitHub operation goes through ``GitHubService.execute``, which runs
the call through the retry executor (and so the rate limiter) and turns
any failure into an ``OperationFailure``. Domain operations never raise.
"""

from __future__ import annotations

import base64
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from githubkit import GitHub

from github_tools.config import Settings, get_settings, validate_github_token
from github_tools.errors import classify_exception, create_system_error, describe_exception
from github_tools.logging import bind_operation, get_logger
from github_tools.schemas.entities import (
    BranchDeletion,
    BranchEntity,
    FileUpdateResult,
    IssueEntity,
    MergeResult,
    PullRequestEntity,
    ReleaseEntity,
    RepositoryEntity,
)
from github_tools.schemas.requests import (
    CreateBranchRequest,
    CreateIssueRequest,
    CreatePullRequestRequest,
    CreateReleaseRequest,
    CreateRepositoryRequest,
    DeleteBranchRequest,
    GetRepositoryRequest,
    ListBranchesRequest,
    ListIssuesRequest,
    ListPullRequestsRequest,
    ListRepositoriesRequest,
    MergePullRequestRequest,
    UpdateFileRequest,
    UpdatePullRequestRequest,
)
from github_tools.schemas.results import OperationResult, failure, success

from .exceptions import GitHubAuthenticationError
from .pacing.retry import RetryExecutor
from .rate_limit.limiter import GitHubRateLimiter, get_rate_limiter
from .rate_limit.schemas import RateLimitState

logger = get_logger(__name__)

T = TypeVar("T")
R = TypeVar("R")


def require_github_token(settings: Settings | None = None) -> str:
    """Return the configured token, refusing to start without one.

    Raises:
        GitHubAuthenticationError: If GITHUB_TOKEN is not set.
    """
    settings = settings or get_settings()
    token = settings.github_token
    if not token:
        raise GitHubAuthenticationError(
            "GitHub token required. Set GITHUB_TOKEN environment variable."
        )
    if not validate_github_token(token):
        logger.warning("GITHUB_TOKEN does not look like a GitHub token; continuing anyway")
    return token


def _compact(**kwargs: Any) -> dict[str, Any]:
    """Drop unset (None) arguments so GitHub applies its own defaults."""
    return {key: value for key, value in kwargs.items() if value is not None}


def _json_list(response: Any) -> list[dict[str, Any]]:
    data = response.json()
    if not isinstance(data, list):
        raise TypeError(f"Expected a JSON array, got {type(data).__name__}")
    return data


class GitHubService:
    """Rate-limited, retrying GitHub operations returning OperationResults.

    Usage:
        async with GitHubService() as service:
            result = await service.get_repository(
                GetRepositoryRequest(owner="octocat", repo="hello-world")
            )
            if result.successful:
                print(result.data.full_name)
            else:
                print(result.error.message)
    """

    def __init__(
        self,
        token: str | None = None,
        settings: Settings | None = None,
        rate_limiter: GitHubRateLimiter | None = None,
        executor: RetryExecutor | None = None,
    ) -> None:
        """Initialize the service.

        Args:
            token: GitHub PAT. If not provided, uses GITHUB_TOKEN from settings.
            settings: Settings instance (cached settings if not provided)
            rate_limiter: Limiter shared by all calls (process-wide if not provided)
            executor: Retry executor (built around ``rate_limiter`` if not provided)

        Raises:
            GitHubAuthenticationError: If no token is available.
        """
        self._settings = settings or get_settings()
        self._token = token or self._settings.github_token
        if not self._token:
            raise GitHubAuthenticationError(
                "GitHub token required. Set GITHUB_TOKEN environment variable."
            )
        if executor is not None:
            self._rate_limiter = rate_limiter or executor.rate_limiter
            self._executor = executor
        else:
            self._rate_limiter = rate_limiter or get_rate_limiter()
            self._executor = RetryExecutor(self._rate_limiter, self._settings.retry)
        self._client: GitHub[Any] | None = None

    @property
    def _github(self) -> GitHub[Any]:
        """Get or create the githubkit client instance."""
        if self._client is None:
            # Retries are owned by the executor, not githubkit
            self._client = GitHub(
                self._token,
                timeout=self._settings.api_timeout_ms / 1000,
                auto_retry=False,
            )
        return self._client

    @property
    def rate_limiter(self) -> GitHubRateLimiter:
        return self._rate_limiter

    async def close(self) -> None:
        """Drop the underlying HTTP client."""
        self._client = None

    async def __aenter__(self) -> GitHubService:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        await self.close()

    # -------------------------------------------------------------------------
    # Facade
    # -------------------------------------------------------------------------
    async def execute(
        self, operation_name: str, call: Callable[[], Awaitable[T]]
    ) -> OperationResult[T]:
        """Run one GitHub call with rate limiting and retries.

        Args:
            operation_name: Name used in logs and error context
            call: Zero-argument coroutine factory performing the request

        Returns:
            Success with the raw response, or a failure with the classified error.
        """
        log = bind_operation(operation_name)
        log.debug("Executing GitHub operation {}", operation_name)
        try:
            response = await self._executor.execute_with_retry_policy(operation_name, call)
        except Exception as e:
            error = classify_exception(e, operation_name)
            log.error("GitHub operation {} failed: {}", operation_name, error.message)
            return failure(error)
        return success(response)

    async def _run(
        self,
        operation_name: str,
        call: Callable[[], Awaitable[Any]],
        transform: Callable[[Any], R],
    ) -> OperationResult[R]:
        """Execute a call and map its response to a domain entity."""
        result = await self.execute(operation_name, call)
        if not result.successful:
            return result
        try:
            return success(transform(result.data))
        except Exception as e:
            return failure(
                create_system_error(
                    f"Unexpected response from GitHub in {operation_name}: {e}",
                    {"operation": operation_name, **describe_exception(e)},
                )
            )

    # -------------------------------------------------------------------------
    # Rate Limit Info
    # -------------------------------------------------------------------------
    async def get_rate_limit(self) -> OperationResult[RateLimitState]:
        """Fetch the core quota from GET /rate_limit (free of charge)."""

        def to_state(resp: Any) -> RateLimitState:
            core = resp.json()["resources"]["core"]
            state = RateLimitState.from_response_headers(
                {
                    "x-ratelimit-remaining": core["remaining"],
                    "x-ratelimit-reset": core["reset"],
                    "x-ratelimit-limit": core["limit"],
                }
            )
            if state is None:
                raise ValueError(f"Invalid rate limit payload: {core}")
            return state

        return await self._run(
            "get_rate_limit",
            lambda: self._github.rest.rate_limit.async_get(),
            to_state,
        )

    # -------------------------------------------------------------------------
    # Repositories
    # -------------------------------------------------------------------------
    async def create_repository(
        self, request: CreateRepositoryRequest
    ) -> OperationResult[RepositoryEntity]:
        """Create a repository for the authenticated user."""
        return await self._run(
            "create_repository",
            lambda: self._github.rest.repos.async_create_for_authenticated_user(
                **_compact(
                    name=request.name,
                    description=request.description,
                    private=request.private,
                )
            ),
            lambda resp: RepositoryEntity.from_api(resp.json()),
        )

    async def get_repository(
        self, request: GetRepositoryRequest
    ) -> OperationResult[RepositoryEntity]:
        return await self._run(
            "get_repository",
            lambda: self._github.rest.repos.async_get(owner=request.owner, repo=request.repo),
            lambda resp: RepositoryEntity.from_api(resp.json()),
        )

    async def list_repositories(
        self, request: ListRepositoriesRequest
    ) -> OperationResult[list[RepositoryEntity]]:
        """List repositories the authenticated user can access."""
        return await self._run(
            "list_repositories",
            lambda: self._github.rest.repos.async_list_for_authenticated_user(
                **_compact(type=request.type, sort=request.sort)
            ),
            lambda resp: [RepositoryEntity.from_api(item) for item in _json_list(resp)],
        )

    # -------------------------------------------------------------------------
    # Branches
    # -------------------------------------------------------------------------
    async def create_branch(self, request: CreateBranchRequest) -> OperationResult[BranchEntity]:
        """Create a branch at ``sha`` and return it as GitHub reports it.

        The ref creation and the branch lookup are separate calls so a
        transient failure of the lookup does not re-create the ref.
        """
        created = await self.execute(
            "create_branch",
            lambda: self._github.rest.git.async_create_ref(
                owner=request.owner,
                repo=request.repo,
                ref=f"refs/heads/{request.branch}",
                sha=request.sha,
            ),
        )
        if not created.successful:
            return created
        return await self._run(
            "get_branch",
            lambda: self._github.rest.repos.async_get_branch(
                owner=request.owner, repo=request.repo, branch=request.branch
            ),
            lambda resp: BranchEntity.from_api(resp.json()),
        )

    async def delete_branch(self, request: DeleteBranchRequest) -> OperationResult[BranchDeletion]:
        return await self._run(
            "delete_branch",
            lambda: self._github.rest.git.async_delete_ref(
                owner=request.owner, repo=request.repo, ref=f"heads/{request.branch}"
            ),
            lambda _resp: BranchDeletion(
                owner=request.owner, repo=request.repo, branch=request.branch
            ),
        )

    async def list_branches(
        self, request: ListBranchesRequest
    ) -> OperationResult[list[BranchEntity]]:
        return await self._run(
            "list_branches",
            lambda: self._github.rest.repos.async_list_branches(
                owner=request.owner,
                repo=request.repo,
                **_compact(protected=request.protected, per_page=request.per_page),
            ),
            lambda resp: [BranchEntity.from_api(item) for item in _json_list(resp)],
        )

    # -------------------------------------------------------------------------
    # Issues
    # -------------------------------------------------------------------------
    async def create_issue(self, request: CreateIssueRequest) -> OperationResult[IssueEntity]:
        return await self._run(
            "create_issue",
            lambda: self._github.rest.issues.async_create(
                owner=request.owner,
                repo=request.repo,
                **_compact(title=request.title, body=request.body, labels=request.labels),
            ),
            lambda resp: IssueEntity.from_api(resp.json()),
        )

    async def list_issues(self, request: ListIssuesRequest) -> OperationResult[list[IssueEntity]]:
        """List issues of a repository.

        GitHub's issue listing also returns pull requests; they are kept,
        matching what the endpoint reports.
        """
        labels = ",".join(request.labels) if request.labels else None
        return await self._run(
            "list_issues",
            lambda: self._github.rest.issues.async_list_for_repo(
                owner=request.owner,
                repo=request.repo,
                **_compact(state=request.state, labels=labels),
            ),
            lambda resp: [IssueEntity.from_api(item) for item in _json_list(resp)],
        )

    # -------------------------------------------------------------------------
    # Pull Requests
    # -------------------------------------------------------------------------
    async def create_pull_request(
        self, request: CreatePullRequestRequest
    ) -> OperationResult[PullRequestEntity]:
        return await self._run(
            "create_pull_request",
            lambda: self._github.rest.pulls.async_create(
                owner=request.owner,
                repo=request.repo,
                **_compact(
                    title=request.title,
                    head=request.head,
                    base=request.base,
                    body=request.body,
                ),
            ),
            lambda resp: PullRequestEntity.from_api(resp.json()),
        )

    async def merge_pull_request(
        self, request: MergePullRequestRequest
    ) -> OperationResult[MergeResult]:
        return await self._run(
            "merge_pull_request",
            lambda: self._github.rest.pulls.async_merge(
                owner=request.owner,
                repo=request.repo,
                pull_number=request.pull_number,
                **_compact(
                    commit_title=request.commit_title,
                    commit_message=request.commit_message,
                    merge_method=request.merge_method,
                ),
            ),
            lambda resp: MergeResult.from_api(resp.json()),
        )

    async def update_pull_request(
        self, request: UpdatePullRequestRequest
    ) -> OperationResult[PullRequestEntity]:
        return await self._run(
            "update_pull_request",
            lambda: self._github.rest.pulls.async_update(
                owner=request.owner,
                repo=request.repo,
                pull_number=request.pull_number,
                **_compact(
                    title=request.title,
                    body=request.body,
                    state=request.state,
                    base=request.base,
                    maintainer_can_modify=request.maintainer_can_modify,
                ),
            ),
            lambda resp: PullRequestEntity.from_api(resp.json()),
        )

    async def list_pull_requests(
        self, request: ListPullRequestsRequest
    ) -> OperationResult[list[PullRequestEntity]]:
        return await self._run(
            "list_pull_requests",
            lambda: self._github.rest.pulls.async_list(
                owner=request.owner,
                repo=request.repo,
                **_compact(
                    state=request.state,
                    head=request.head,
                    base=request.base,
                    sort=request.sort,
                    direction=request.direction,
                ),
            ),
            lambda resp: [PullRequestEntity.from_api(item) for item in _json_list(resp)],
        )

    # -------------------------------------------------------------------------
    # Files & Releases
    # -------------------------------------------------------------------------
    async def update_file(self, request: UpdateFileRequest) -> OperationResult[FileUpdateResult]:
        """Create or replace a file with a single commit."""
        encoded = base64.b64encode(request.content.encode("utf-8")).decode("ascii")
        return await self._run(
            "update_file",
            lambda: self._github.rest.repos.async_create_or_update_file_contents(
                owner=request.owner,
                repo=request.repo,
                path=request.path,
                **_compact(
                    message=request.message,
                    content=encoded,
                    sha=request.sha,
                    branch=request.branch,
                ),
            ),
            lambda resp: FileUpdateResult.from_api(request.path, resp.json()),
        )

    async def create_release(
        self, request: CreateReleaseRequest
    ) -> OperationResult[ReleaseEntity]:
        return await self._run(
            "create_release",
            lambda: self._github.rest.repos.async_create_release(
                owner=request.owner,
                repo=request.repo,
                **_compact(
                    tag_name=request.tag_name,
                    name=request.name,
                    body=request.body,
                    draft=request.draft,
                    prerelease=request.prerelease,
                ),
            ),
            lambda resp: ReleaseEntity.from_api(resp.json()),
        )
