"""Shared fixtures: SQLite store in tmp_path and in-memory fakes for Matrix and Seerr."""

import itertools
from pathlib import Path

import pytest

from seerrbridge.adapters.base import ChatGateway, IssueTracker
from seerrbridge.errors import ChatGatewayError, IssueTrackerError
from seerrbridge.store import CorrelationStore

ROOM_ID = "!support:localhost"
BOT_ID = "@bot:localhost"
ADMIN_ID = "@issueadmin:localhost"


class FakeChat(ChatGateway):
    """Records every chat operation; event ids are $evt1, $evt2, ..."""

    def __init__(self) -> None:
        self._ids = itertools.count(1)
        self.calls: list[tuple] = []
        self.fail_on: set[str] = set()

    @property
    def user_id(self) -> str:
        return BOT_ID

    def _next(self, op: str) -> str:
        if op in self.fail_on:
            raise ChatGatewayError(f"{op} failed")
        return f"$evt{next(self._ids)}"

    def send_message(self, room_id: str, plain: str, html: str) -> str:
        event_id = self._next("send_message")
        self.calls.append(("send_message", room_id, plain, html, event_id))
        return event_id

    def send_thread_reply(self, room_id: str, root_message_id: str, plain: str, html: str) -> str:
        event_id = self._next("send_thread_reply")
        self.calls.append(("send_thread_reply", room_id, root_message_id, plain, html, event_id))
        return event_id

    def add_reaction(self, room_id: str, target_message_id: str, key: str) -> str:
        event_id = self._next("add_reaction")
        self.calls.append(("add_reaction", room_id, target_message_id, key, event_id))
        return event_id

    def remove_marker(self, room_id: str, marker_id: str, reason: str | None = None) -> None:
        if "remove_marker" in self.fail_on:
            raise ChatGatewayError("remove_marker failed")
        self.calls.append(("remove_marker", room_id, marker_id, reason))

    def of(self, op: str) -> list[tuple]:
        return [c for c in self.calls if c[0] == op]


class FakeIssues(IssueTracker):
    """Records Seerr calls in order; fail_on makes an operation raise."""

    def __init__(self) -> None:
        self.calls: list[tuple] = []
        self.fail_on: set[str] = set()

    def post_comment(self, issue_id: int, text: str) -> None:
        if "post_comment" in self.fail_on:
            raise IssueTrackerError("500: comment failed")
        self.calls.append(("post_comment", issue_id, text))

    def mark_resolved(self, issue_id: int) -> None:
        if "mark_resolved" in self.fail_on:
            raise IssueTrackerError("500: resolve failed")
        self.calls.append(("mark_resolved", issue_id))


@pytest.fixture
def store(tmp_path: Path) -> CorrelationStore:
    s = CorrelationStore(tmp_path / "bridge.db", timeout=5.0)
    s.init_db()
    return s


@pytest.fixture
def chat() -> FakeChat:
    return FakeChat()


@pytest.fixture
def issues() -> FakeIssues:
    return FakeIssues()
