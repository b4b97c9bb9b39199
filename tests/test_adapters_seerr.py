"""Unit tests for Seerr adapter (mocked API)."""

from unittest.mock import Mock, patch

import pytest
import requests

from seerrbridge.adapters.seerr import SeerrAdapter
from seerrbridge.errors import IssueTrackerError


@pytest.fixture
def adapter() -> SeerrAdapter:
    return SeerrAdapter(api_url="http://seerr.local:5055/", api_key="test-key", timeout=7)


def _ok() -> Mock:
    resp = Mock()
    resp.status_code = 200
    return resp


def test_api_key_header(adapter: SeerrAdapter) -> None:
    """Session sends the API key on every request."""
    assert adapter._session.headers["X-Api-Key"] == "test-key"


def test_post_comment(adapter: SeerrAdapter) -> None:
    """post_comment posts the text as message."""
    with patch.object(adapter._session, "request", return_value=_ok()) as req:
        adapter.post_comment(42, "Subtitles fixed")
    req.assert_called_once()
    args, kwargs = req.call_args
    assert args[0] == "POST"
    assert args[1] == "http://seerr.local:5055/api/v1/issue/42/comment"
    assert kwargs["json"] == {"message": "Subtitles fixed"}
    assert kwargs["timeout"] == 7


def test_mark_resolved(adapter: SeerrAdapter) -> None:
    """mark_resolved posts to the resolved endpoint without a body."""
    with patch.object(adapter._session, "request", return_value=_ok()) as req:
        adapter.mark_resolved(42)
    args, kwargs = req.call_args
    assert args[0] == "POST"
    assert args[1] == "http://seerr.local:5055/api/v1/issue/42/resolved"
    assert kwargs["json"] is None


def test_error_status_raises_with_message(adapter: SeerrAdapter) -> None:
    """HTTP error carries the status and Seerr's message."""
    resp = Mock()
    resp.status_code = 403
    resp.text = "Forbidden"
    resp.json.return_value = {"message": "You do not have permission"}
    with patch.object(adapter._session, "request", return_value=resp):
        with pytest.raises(IssueTrackerError) as exc_info:
            adapter.mark_resolved(1)
    assert "403" in str(exc_info.value)
    assert "permission" in str(exc_info.value)


def test_error_status_with_non_json_body(adapter: SeerrAdapter) -> None:
    """Non-JSON error body falls back to the response text."""
    resp = Mock()
    resp.status_code = 502
    resp.text = "Bad Gateway"
    resp.json.side_effect = ValueError("no json")
    with patch.object(adapter._session, "request", return_value=resp):
        with pytest.raises(IssueTrackerError, match="502: Bad Gateway"):
            adapter.post_comment(1, "x")


def test_timeout_raises_issue_tracker_error(adapter: SeerrAdapter) -> None:
    """Network errors become IssueTrackerError."""
    with patch.object(adapter._session, "request", side_effect=requests.Timeout("timed out")):
        with pytest.raises(IssueTrackerError, match="timed out"):
            adapter.mark_resolved(1)
