"""Abstract bases for the chat gateway and the issue tracker."""

from abc import ABC, abstractmethod

from seerrbridge.errors import ChatGatewayError, IssueTrackerError

__all__ = ["ChatGateway", "ChatGatewayError", "IssueTracker", "IssueTrackerError"]


class ChatGateway(ABC):
    """Chat primitives the router and command interpreter rely on.

    Every method returns once the homeserver has accepted the event and
    raises ChatGatewayError otherwise.
    """

    @property
    @abstractmethod
    def user_id(self) -> str:
        """Our own user id (to ignore our own messages)."""
        ...

    @abstractmethod
    def send_message(self, room_id: str, plain: str, html: str) -> str:
        """Send a top-level message; return its event id."""
        ...

    @abstractmethod
    def send_thread_reply(self, room_id: str, root_message_id: str, plain: str, html: str) -> str:
        """Send a reply in the thread rooted at root_message_id; return its event id."""
        ...

    @abstractmethod
    def add_reaction(self, room_id: str, target_message_id: str, key: str) -> str:
        """Annotate target_message_id with key; return the reaction event id."""
        ...

    @abstractmethod
    def remove_marker(self, room_id: str, marker_id: str, reason: str | None = None) -> None:
        """Redact a reaction (or any event) previously sent by us."""
        ...


class IssueTracker(ABC):
    """Remote issue operations keyed by issue id."""

    @abstractmethod
    def post_comment(self, issue_id: int, text: str) -> None:
        """Add a comment to the issue."""
        ...

    @abstractmethod
    def mark_resolved(self, issue_id: int) -> None:
        """Set the issue status to resolved."""
        ...
