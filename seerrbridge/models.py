"""Data models for Seerr notifications, correlation records and chat messages."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class NotificationKind(str, Enum):
    """What a Seerr notification means for the bridge."""

    ISSUE_CREATED = "ISSUE_CREATED"
    ISSUE_COMMENT = "ISSUE_COMMENT"
    ISSUE_RESOLVED = "ISSUE_RESOLVED"
    ISSUE_REOPENED = "ISSUE_REOPENED"
    OTHER = "OTHER"

    @property
    def is_issue(self) -> bool:
        return self is not NotificationKind.OTHER


class Notification(BaseModel):
    """Parsed Seerr webhook delivery, ready for routing."""

    model_config = ConfigDict(frozen=True)

    kind: NotificationKind
    issue_id: int | None = Field(default=None, description="Seerr issue id; None for media and test events")
    subject: str = ""
    message: str | None = None
    reported_by: str | None = None
    comment: str | None = None
    commented_by: str | None = None
    image_url: str | None = None


class CorrelationRecord(BaseModel):
    """Link between a Seerr issue and the Matrix message announcing it."""

    model_config = ConfigDict(frozen=True)

    issue_id: int
    room_id: str
    root_message_id: str | None = Field(
        default=None,
        description="Event id of the root message; None while the announcement is in flight",
    )
    status_marker_id: str | None = Field(default=None, description="Event id of the open-marker reaction")


class RoomMessage(BaseModel):
    """Inbound m.room.message from the bridged room."""

    model_config = ConfigDict(frozen=True)

    room_id: str
    event_id: str
    sender: str
    body: str = ""
    thread_root_id: str | None = Field(default=None, description="Root event id when sent inside a thread")


class ResolveCommand(BaseModel):
    """`!issues resolve [comment]` issued from an issue thread."""

    model_config = ConfigDict(frozen=True)

    comment: str | None = None
