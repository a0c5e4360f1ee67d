"""Tests for tool input validation."""

import pytest

from github_tools.schemas.errors import ErrorCategory
from github_tools.schemas.requests import (
    CreateIssueRequest,
    GetRepositoryRequest,
    ListPullRequestsRequest,
    ListRepositoriesRequest,
    MergePullRequestRequest,
    UpdateFileRequest,
    validate_request,
)


class TestValidateRequest:
    """Tests for validate_request."""

    def test_valid_arguments(self):
        result = validate_request(GetRepositoryRequest, {"owner": "octocat", "repo": "hello"})

        assert result.successful
        assert result.data.full_name == "octocat/hello"

    def test_missing_field_reports_path(self):
        result = validate_request(GetRepositoryRequest, {"owner": "octocat"})

        assert not result.successful
        assert result.error.category == ErrorCategory.VALIDATION
        assert result.error.message == "Input validation failed"
        paths = [e["path"] for e in result.error.context["validation_errors"]]
        assert paths == ["repo"]

    def test_empty_string_rejected(self):
        result = validate_request(GetRepositoryRequest, {"owner": "", "repo": "hello"})

        assert not result.successful
        assert result.error.context["validation_errors"][0]["path"] == "owner"

    def test_none_arguments(self):
        result = validate_request(ListRepositoriesRequest, None)
        assert result.successful

    def test_nested_path_is_dotted(self):
        result = validate_request(
            CreateIssueRequest,
            {"owner": "o", "repo": "r", "title": "t", "labels": ["ok", 3]},
        )

        assert not result.successful
        assert result.error.context["validation_errors"][0]["path"] == "labels.1"

    def test_error_context_is_serializable(self):
        result = validate_request(GetRepositoryRequest, {})

        assert not result.successful
        result.error.model_dump_json()


class TestRequestModels:
    """Tests for per-tool constraints."""

    @pytest.mark.parametrize("pull_number", [0, -3])
    def test_pull_number_must_be_positive(self, pull_number):
        result = validate_request(
            MergePullRequestRequest, {"owner": "o", "repo": "r", "pull_number": pull_number}
        )
        assert not result.successful

    def test_merge_method_enum(self):
        ok = validate_request(
            MergePullRequestRequest,
            {"owner": "o", "repo": "r", "pull_number": 1, "merge_method": "squash"},
        )
        bad = validate_request(
            MergePullRequestRequest,
            {"owner": "o", "repo": "r", "pull_number": 1, "merge_method": "octopus"},
        )

        assert ok.successful
        assert not bad.successful

    def test_list_pull_requests_sort(self):
        result = validate_request(
            ListPullRequestsRequest, {"owner": "o", "repo": "r", "sort": "long-running"}
        )
        assert result.successful
        assert result.data.sort == "long-running"

    def test_repository_type_enum(self):
        assert not validate_request(ListRepositoriesRequest, {"type": "everything"}).successful

    def test_update_file_requires_message_and_content(self):
        result = validate_request(UpdateFileRequest, {"owner": "o", "repo": "r", "path": "a.md"})

        paths = {e["path"] for e in result.error.context["validation_errors"]}
        assert paths == {"message", "content"}

    def test_whitespace_is_stripped(self):
        result = validate_request(GetRepositoryRequest, {"owner": " octocat ", "repo": "hello"})
        assert result.data.owner == "octocat"

    def test_blank_identifier_rejected(self):
        result = validate_request(GetRepositoryRequest, {"owner": "   ", "repo": "hello"})

        assert not result.successful
        assert result.error.context["validation_errors"][0]["path"] == "owner"

    def test_file_content_kept_verbatim(self):
        content = "    indented: true\nkey: value\n"
        result = validate_request(
            UpdateFileRequest,
            {
                "owner": "octocat",
                "repo": "hello",
                "path": " docs/config.yml ",
                "message": "Update config\n\nLonger description\n",
                "content": content,
            },
        )

        assert result.data.content == content
        assert result.data.message == "Update config\n\nLonger description\n"
        assert result.data.path == "docs/config.yml"

    def test_whitespace_only_content_accepted(self):
        result = validate_request(
            UpdateFileRequest,
            {"owner": "o", "repo": "r", "path": "a.txt", "message": "m", "content": "\n"},
        )

        assert result.successful
        assert result.data.content == "\n"

    def test_issue_body_kept_verbatim(self):
        body = "  - [ ] item\n"
        result = validate_request(
            CreateIssueRequest, {"owner": "o", "repo": "r", "title": "Bug", "body": body}
        )

        assert result.data.body == body
