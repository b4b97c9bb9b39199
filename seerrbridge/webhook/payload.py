"""Seerr webhook payload schema and its mapping to Notification.

Seerr renders its JSON template with every placeholder as a string, so
issue_id usually arrives as "42" and unset fields as "". Unknown
notification types (media requests, test notifications, ...) become OTHER.
"""

import logging
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field

from seerrbridge.models import Notification, NotificationKind

LOG = logging.getLogger("seerrbridge.webhook.payload")

ISSUE_TYPES = {
    "ISSUE_CREATED": NotificationKind.ISSUE_CREATED,
    "ISSUE_COMMENT": NotificationKind.ISSUE_COMMENT,
    "ISSUE_RESOLVED": NotificationKind.ISSUE_RESOLVED,
    "ISSUE_REOPENED": NotificationKind.ISSUE_REOPENED,
}

# Largest id the correlation store can hold (SQLite INTEGER is 64-bit signed)
MAX_ISSUE_ID = 2**63 - 1


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


def _none_to_empty(value: Any) -> Any:
    return "" if value is None else value


def _coerce_issue_id(value: Any) -> int | None:
    """Accept int or numeric string in 1..MAX_ISSUE_ID; anything else means
    no issue id."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str) and value.strip().isdecimal():
        value = int(value.strip())
    if isinstance(value, int):
        if 1 <= value <= MAX_ISSUE_ID:
            return value
        LOG.debug("Ignoring out-of-range issue_id %s", value)
        return None
    if value != "":
        LOG.debug("Ignoring non-numeric issue_id %r", value)
    return None


OptionalText = Annotated[str | None, BeforeValidator(_blank_to_none)]
Text = Annotated[str, BeforeValidator(_none_to_empty)]


class SeerrWebhookPayload(BaseModel):
    """Body of a Seerr webhook delivery (the fields the bridge reads)."""

    model_config = ConfigDict(extra="ignore")

    notification_type: Text = Field(default="", description="e.g. ISSUE_CREATED, MEDIA_AVAILABLE")
    subject: Text = ""
    message: OptionalText = None
    image: OptionalText = Field(default=None, description="Poster URL")
    issue_id: Annotated[int | None, BeforeValidator(_coerce_issue_id)] = None
    reported_by: OptionalText = None
    comment: OptionalText = None
    commented_by: OptionalText = None

    def to_notification(self) -> Notification:
        """Map to a Notification; issue types without an issue id become OTHER."""
        kind = ISSUE_TYPES.get(self.notification_type.strip().upper(), NotificationKind.OTHER)
        if kind.is_issue and self.issue_id is None:
            LOG.warning("%s without issue_id, handling as plain notification", self.notification_type)
            kind = NotificationKind.OTHER
        return Notification(
            kind=kind,
            issue_id=self.issue_id if kind.is_issue else None,
            subject=self.subject or "",
            message=self.message,
            reported_by=self.reported_by,
            comment=self.comment,
            commented_by=self.commented_by,
            image_url=self.image,
        )


def parse_notification(payload: dict[str, Any]) -> Notification:
    """Validate a decoded webhook body and map it to a Notification."""
    return SeerrWebhookPayload.model_validate(payload).to_notification()
