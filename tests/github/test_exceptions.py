"""Tests for failure inspection used by the retry policy."""

import pytest

from github_tools.github.exceptions import FailureInfo, inspect_failure, normalize_headers
from tests.conftest import make_request_failed


class StatusError(Exception):
    def __init__(self, message: str, status: int) -> None:
        super().__init__(message)
        self.status = status


class TestNormalizeHeaders:
    def test_lowercases_names(self):
        assert normalize_headers({"Retry-After": "5", "X-RateLimit-Remaining": 0}) == {
            "retry-after": "5",
            "x-ratelimit-remaining": "0",
        }

    def test_none_is_empty(self):
        assert normalize_headers(None) == {}


class TestFailureInfo:
    """Transient/rate-limited classification."""

    @pytest.mark.parametrize("status", [500, 502, 503, 429])
    def test_server_errors_and_429_are_transient(self, status):
        assert FailureInfo(status, "boom").is_transient

    @pytest.mark.parametrize("status", [400, 401, 404, 409, 422])
    def test_client_errors_are_terminal(self, status):
        assert not FailureInfo(status, "nope").is_transient

    def test_missing_status_is_terminal(self):
        assert not FailureInfo(None, "connection reset").is_transient

    def test_quota_message_403_is_rate_limited(self):
        info = FailureInfo(403, "API rate limit exceeded for user ID 42.")
        assert info.is_rate_limited
        assert info.is_transient

    def test_exhausted_remaining_header_403_is_rate_limited(self):
        info = FailureInfo(403, "Forbidden", {"x-ratelimit-remaining": "0"})
        assert info.is_rate_limited

    def test_permission_403_is_not_rate_limited(self):
        info = FailureInfo(403, "Resource not accessible by integration")
        assert not info.is_rate_limited
        assert not info.is_transient

    def test_rate_limit_message_on_other_status_ignored(self):
        assert not FailureInfo(400, "API rate limit exceeded").is_rate_limited

    def test_retry_after(self):
        assert FailureInfo(403, "x", {"retry-after": "7"}).retry_after == "7"
        assert FailureInfo(403, "x").retry_after is None


class TestInspectFailure:
    def test_request_failed(self):
        exc = make_request_failed(
            403, "API rate limit exceeded", headers={"Retry-After": "30"}
        )

        info = inspect_failure(exc)

        assert info.status_code == 403
        assert info.message == "API rate limit exceeded"
        assert info.retry_after == "30"
        assert info.is_rate_limited

    def test_status_attribute(self):
        info = inspect_failure(StatusError("Server Error", 502))

        assert info.status_code == 502
        assert info.message == "Server Error"
        assert info.headers == {}

    def test_plain_exception(self):
        info = inspect_failure(ValueError("bad"))

        assert info.status_code is None
        assert info.message == "bad"
