"""Tests for the MCP tool layer."""

import json
from unittest.mock import AsyncMock, MagicMock

import pytest
from mcp.server.fastmcp.exceptions import ToolError

from github_tools.errors import create_github_api_error
from github_tools.schemas.entities import BranchDeletion, RepositoryEntity
from github_tools.schemas.requests import DeleteBranchRequest, GetRepositoryRequest
from github_tools.schemas.results import failure, success
from github_tools.server import build_server, invoke_tool, to_json

TOOL_NAMES = {
    "get_repository",
    "list_repositories",
    "create_repository",
    "list_branches",
    "create_branch",
    "delete_branch",
    "create_issue",
    "list_issues",
    "create_pull_request",
    "merge_pull_request",
    "update_pull_request",
    "list_pull_requests",
    "update_file",
    "create_release",
}


def make_repo() -> RepositoryEntity:
    return RepositoryEntity(
        id=1,
        name="hello-world",
        full_name="octocat/hello-world",
        html_url="https://github.com/octocat/hello-world",
        created_at="2011-01-26T19:01:12Z",
    )


class TestToJson:
    def test_serializes_entities(self):
        data = json.loads(to_json(make_repo()))

        assert data["full_name"] == "octocat/hello-world"
        assert data["created_at"].startswith("2011-01-26T19:01:12")

    def test_serializes_lists(self):
        data = json.loads(to_json([make_repo(), make_repo()]))
        assert len(data) == 2

    def test_is_indented(self):
        assert "\n  " in to_json({"a": 1})


class TestInvokeTool:
    """Validation, dispatch and error rendering."""

    async def test_success_returns_json(self):
        operation = AsyncMock(return_value=success(make_repo()))

        text = await invoke_tool(
            GetRepositoryRequest, operation, {"owner": "octocat", "repo": "hello-world"}
        )

        request = operation.await_args.args[0]
        assert isinstance(request, GetRepositoryRequest)
        assert request.owner == "octocat"
        assert json.loads(text)["name"] == "hello-world"

    async def test_invalid_arguments_raise_tool_error(self):
        operation = AsyncMock()

        with pytest.raises(ToolError) as exc_info:
            await invoke_tool(GetRepositoryRequest, operation, {"owner": "", "repo": "x"})

        payload = json.loads(str(exc_info.value))
        assert payload["category"] == "VALIDATION"
        assert payload["context"]["validation_errors"][0]["path"] == "owner"
        operation.assert_not_awaited()

    async def test_failed_operation_raises_tool_error(self):
        error = create_github_api_error("GitHub API error in delete_branch: Not Found")
        operation = AsyncMock(return_value=failure(error))

        with pytest.raises(ToolError) as exc_info:
            await invoke_tool(
                DeleteBranchRequest,
                operation,
                {"owner": "octocat", "repo": "hello-world", "branch": "gone"},
            )

        payload = json.loads(str(exc_info.value))
        assert payload["category"] == "GITHUB_API"
        assert payload["message"] == "GitHub API error in delete_branch: Not Found"
        assert "timestamp" in payload

    async def test_acknowledgement_payload(self):
        deletion = BranchDeletion(owner="octocat", repo="hello-world", branch="old")
        operation = AsyncMock(return_value=success(deletion))

        text = await invoke_tool(
            DeleteBranchRequest,
            operation,
            {"owner": "octocat", "repo": "hello-world", "branch": "old"},
        )

        assert json.loads(text)["deleted"] is True

    async def test_unexpected_exception_is_unknown_error(self):
        operation = AsyncMock(side_effect=RuntimeError("boom"))

        with pytest.raises(ToolError) as exc_info:
            await invoke_tool(
                GetRepositoryRequest,
                operation,
                {"owner": "octocat", "repo": "hello-world"},
                "get_repository",
            )

        payload = json.loads(str(exc_info.value))
        assert payload["category"] == "UNKNOWN"
        assert payload["code"] == "UNEXPECTED_ERROR"
        assert payload["message"] == "Tool get_repository failed: boom"
        assert payload["context"]["tool"] == "get_repository"
        assert payload["context"]["error_type"] == "RuntimeError"
        assert "RuntimeError: boom" in payload["stack"]
        assert isinstance(exc_info.value.__cause__, RuntimeError)

    async def test_unserializable_result_is_unknown_error(self):
        operation = AsyncMock(return_value=success(object()))

        with pytest.raises(ToolError) as exc_info:
            await invoke_tool(
                GetRepositoryRequest, operation, {"owner": "octocat", "repo": "hello-world"}
            )

        payload = json.loads(str(exc_info.value))
        assert payload["category"] == "UNKNOWN"
        assert payload["context"]["tool"] == "GetRepositoryRequest"


class TestBuildServer:
    """Tool registration."""

    async def test_registers_every_tool(self, settings):
        mcp = build_server(MagicMock(), settings)

        tools = await mcp.list_tools()

        assert {tool.name for tool in tools} == TOOL_NAMES

    async def test_tool_schema_lists_required_arguments(self, settings):
        mcp = build_server(MagicMock(), settings)

        tools = {tool.name: tool for tool in await mcp.list_tools()}
        schema = tools["create_branch"].inputSchema

        assert set(schema["required"]) == {"owner", "repo", "branch", "sha"}

    def test_uses_configured_name(self, settings):
        assert build_server(MagicMock(), settings).name == settings.server_name
