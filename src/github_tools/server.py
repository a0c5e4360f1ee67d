"""FastMCP server exposing GitHub tools.

This server exposes MCP tools for:
- Repository management (get, list, create)
- Branch management (list, create, delete)
- Issue management (create, list)
- Pull request management (create, merge, update, list)
- File updates and releases

Every tool validates its arguments, runs the matching ``GitHubService``
operation and returns the result as pretty-printed JSON. Failures are
reported as the JSON of the ``StandardizedError`` with the MCP error flag
set, never as a raw traceback.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from mcp.server.fastmcp import FastMCP
from mcp.server.fastmcp.exceptions import ToolError
from pydantic import TypeAdapter

from github_tools.config import Settings, get_settings
from github_tools.errors import wrap_exception
from github_tools.github.client import GitHubService
from github_tools.logging import get_logger, tool_context
from github_tools.schemas.errors import StandardizedError
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
    ToolRequest,
    UpdateFileRequest,
    UpdatePullRequestRequest,
    validate_request,
)
from github_tools.schemas.results import OperationResult

logger = get_logger(__name__)

RequestT = TypeVar("RequestT", bound=ToolRequest)

_json = TypeAdapter(Any)


def to_json(data: Any) -> str:
    """Serialize entities (or lists of them) as indented JSON."""
    return _json.dump_json(data, indent=2).decode("utf-8")


def error_json(error: StandardizedError) -> str:
    return error.model_dump_json(indent=2)


async def invoke_tool(
    request_model: type[RequestT],
    operation: Callable[[RequestT], Awaitable[OperationResult[Any]]],
    arguments: dict[str, Any],
    tool: str | None = None,
) -> str:
    """Validate arguments, run the operation and render its result.

    Returns:
        JSON of the operation's data.

    Raises:
        ToolError: With the JSON of the StandardizedError, for invalid
            arguments or a failed operation. Any other exception is
            reported as an UNKNOWN error.
    """
    try:
        parsed = validate_request(request_model, arguments)
        if not parsed.successful:
            raise ToolError(error_json(parsed.error))

        result = await operation(parsed.data)
        if not result.successful:
            raise ToolError(error_json(result.error))
        return to_json(result.data)
    except ToolError:
        raise
    except Exception as e:
        name = tool or request_model.__name__
        error = wrap_exception(e, f"Tool {name} failed: {e}", {"tool": name})
        raise ToolError(error_json(error)) from e


def build_server(service: GitHubService, settings: Settings | None = None) -> FastMCP:
    """Create the FastMCP app with every GitHub tool registered."""
    settings = settings or get_settings()
    mcp = FastMCP(
        settings.server_name,
        instructions="Tools for managing GitHub repositories, branches, issues, "
        "pull requests, files and releases.",
    )

    async def run(
        tool: str,
        request_model: type[RequestT],
        operation: Callable[[RequestT], Awaitable[OperationResult[Any]]],
        arguments: dict[str, Any],
    ) -> str:
        with tool_context(tool):
            logger.debug("Tool call {}", tool)
            return await invoke_tool(request_model, operation, arguments, tool)

    # -------------------------------------------------------------------------
    # Repository Tools
    # -------------------------------------------------------------------------
    @mcp.tool(name="get_repository", description="Get information about a GitHub repository")
    async def get_repository(owner: str, repo: str) -> str:
        return await run(
            "get_repository",
            GetRepositoryRequest,
            service.get_repository,
            {"owner": owner, "repo": repo},
        )

    @mcp.tool(
        name="list_repositories",
        description="List repositories of the authenticated user",
    )
    async def list_repositories(type: str | None = None, sort: str | None = None) -> str:
        return await run(
            "list_repositories",
            ListRepositoriesRequest,
            service.list_repositories,
            {"type": type, "sort": sort},
        )

    @mcp.tool(name="create_repository", description="Create a new GitHub repository")
    async def create_repository(
        name: str, description: str | None = None, private: bool | None = None
    ) -> str:
        return await run(
            "create_repository",
            CreateRepositoryRequest,
            service.create_repository,
            {"name": name, "description": description, "private": private},
        )

    # -------------------------------------------------------------------------
    # Branch Tools
    # -------------------------------------------------------------------------
    @mcp.tool(name="list_branches", description="List branches in a GitHub repository")
    async def list_branches(
        owner: str, repo: str, protected: bool | None = None, per_page: int | None = None
    ) -> str:
        return await run(
            "list_branches",
            ListBranchesRequest,
            service.list_branches,
            {"owner": owner, "repo": repo, "protected": protected, "per_page": per_page},
        )

    @mcp.tool(
        name="create_branch",
        description="Create a new branch in a GitHub repository from a commit SHA",
    )
    async def create_branch(owner: str, repo: str, branch: str, sha: str) -> str:
        return await run(
            "create_branch",
            CreateBranchRequest,
            service.create_branch,
            {"owner": owner, "repo": repo, "branch": branch, "sha": sha},
        )

    @mcp.tool(name="delete_branch", description="Delete a branch from a GitHub repository")
    async def delete_branch(owner: str, repo: str, branch: str) -> str:
        return await run(
            "delete_branch",
            DeleteBranchRequest,
            service.delete_branch,
            {"owner": owner, "repo": repo, "branch": branch},
        )

    # -------------------------------------------------------------------------
    # Issue Tools
    # -------------------------------------------------------------------------
    @mcp.tool(name="create_issue", description="Create a new issue in a GitHub repository")
    async def create_issue(
        owner: str,
        repo: str,
        title: str,
        body: str | None = None,
        labels: list[str] | None = None,
    ) -> str:
        return await run(
            "create_issue",
            CreateIssueRequest,
            service.create_issue,
            {"owner": owner, "repo": repo, "title": title, "body": body, "labels": labels},
        )

    @mcp.tool(name="list_issues", description="List issues in a GitHub repository")
    async def list_issues(
        owner: str,
        repo: str,
        state: str | None = None,
        labels: list[str] | None = None,
    ) -> str:
        return await run(
            "list_issues",
            ListIssuesRequest,
            service.list_issues,
            {"owner": owner, "repo": repo, "state": state, "labels": labels},
        )

    # -------------------------------------------------------------------------
    # Pull Request Tools
    # -------------------------------------------------------------------------
    @mcp.tool(name="create_pull_request", description="Create a new pull request")
    async def create_pull_request(
        owner: str,
        repo: str,
        title: str,
        head: str,
        base: str,
        body: str | None = None,
    ) -> str:
        return await run(
            "create_pull_request",
            CreatePullRequestRequest,
            service.create_pull_request,
            {
                "owner": owner,
                "repo": repo,
                "title": title,
                "head": head,
                "base": base,
                "body": body,
            },
        )

    @mcp.tool(name="merge_pull_request", description="Merge a pull request")
    async def merge_pull_request(
        owner: str,
        repo: str,
        pull_number: int,
        commit_title: str | None = None,
        commit_message: str | None = None,
        merge_method: str | None = None,
    ) -> str:
        return await run(
            "merge_pull_request",
            MergePullRequestRequest,
            service.merge_pull_request,
            {
                "owner": owner,
                "repo": repo,
                "pull_number": pull_number,
                "commit_title": commit_title,
                "commit_message": commit_message,
                "merge_method": merge_method,
            },
        )

    @mcp.tool(
        name="update_pull_request",
        description="Update a pull request's title, body, state or base branch",
    )
    async def update_pull_request(
        owner: str,
        repo: str,
        pull_number: int,
        title: str | None = None,
        body: str | None = None,
        state: str | None = None,
        base: str | None = None,
        maintainer_can_modify: bool | None = None,
    ) -> str:
        return await run(
            "update_pull_request",
            UpdatePullRequestRequest,
            service.update_pull_request,
            {
                "owner": owner,
                "repo": repo,
                "pull_number": pull_number,
                "title": title,
                "body": body,
                "state": state,
                "base": base,
                "maintainer_can_modify": maintainer_can_modify,
            },
        )

    @mcp.tool(name="list_pull_requests", description="List pull requests in a GitHub repository")
    async def list_pull_requests(
        owner: str,
        repo: str,
        state: str | None = None,
        head: str | None = None,
        base: str | None = None,
        sort: str | None = None,
        direction: str | None = None,
    ) -> str:
        return await run(
            "list_pull_requests",
            ListPullRequestsRequest,
            service.list_pull_requests,
            {
                "owner": owner,
                "repo": repo,
                "state": state,
                "head": head,
                "base": base,
                "sort": sort,
                "direction": direction,
            },
        )

    # -------------------------------------------------------------------------
    # File & Release Tools
    # -------------------------------------------------------------------------
    @mcp.tool(
        name="update_file",
        description="Create or update a file in a GitHub repository with a single commit",
    )
    async def update_file(
        owner: str,
        repo: str,
        path: str,
        message: str,
        content: str,
        sha: str | None = None,
        branch: str | None = None,
    ) -> str:
        return await run(
            "update_file",
            UpdateFileRequest,
            service.update_file,
            {
                "owner": owner,
                "repo": repo,
                "path": path,
                "message": message,
                "content": content,
                "sha": sha,
                "branch": branch,
            },
        )

    @mcp.tool(name="create_release", description="Create a new release in a GitHub repository")
    async def create_release(
        owner: str,
        repo: str,
        tag_name: str,
        name: str | None = None,
        body: str | None = None,
        draft: bool | None = None,
        prerelease: bool | None = None,
    ) -> str:
        return await run(
            "create_release",
            CreateReleaseRequest,
            service.create_release,
            {
                "owner": owner,
                "repo": repo,
                "tag_name": tag_name,
                "name": name,
                "body": body,
                "draft": draft,
                "prerelease": prerelease,
            },
        )

    return mcp


async def run_server(settings: Settings | None = None) -> None:
    """Serve the GitHub tools over stdio until the client disconnects."""
    settings = settings or get_settings()
    async with GitHubService(settings=settings) as service:
        mcp = build_server(service, settings)
        logger.info(
            "Starting {} v{} on stdio", settings.server_name, settings.server_version
        )
        await mcp.run_stdio_async()
    logger.info("Server stopped")
