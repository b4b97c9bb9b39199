"""Route Seerr notifications to Matrix messages, threads and reactions.

- ISSUE_CREATED: claim the issue in the store, announce it with a root
  message, then react with the open marker.
- ISSUE_COMMENT / ISSUE_RESOLVED / ISSUE_REOPENED: threaded reply under the
  root message; resolved removes the marker, reopened puts it back.
- OTHER: plain message in the room, no store access.

Issue notifications for an issue the store does not know are dropped with a
warning: a comment cannot be threaded without its root message.
"""

import logging

from seerrbridge.adapters.base import ChatGateway
from seerrbridge.errors import BridgeError
from seerrbridge.formatting import (
    format_announcement,
    format_broadcast,
    format_comment,
    format_reopened,
    format_resolved,
)
from seerrbridge.models import CorrelationRecord, Notification, NotificationKind
from seerrbridge.store import CorrelationStore

LOG = logging.getLogger("seerrbridge.router")

MARKER_REMOVED_REASON = "Issue resolved"
DUPLICATE_MARKER_REASON = "Duplicate open marker"


def remove_open_marker(
    store: CorrelationStore,
    chat: ChatGateway,
    record: CorrelationRecord,
    log: logging.Logger | None = None,
) -> bool:
    """Clear the recorded marker, then redact it. No-op when none is recorded.

    Returns True if a redaction was issued.
    """
    logger = log or LOG
    marker_id = record.status_marker_id
    if not marker_id:
        return False
    if not store.clear_status_marker(record.issue_id, marker_id):
        logger.debug("Issue %s: marker %s already removed", record.issue_id, marker_id)
        return False
    chat.remove_marker(record.room_id, marker_id, reason=MARKER_REMOVED_REASON)
    logger.info("Issue %s: removed open marker %s", record.issue_id, marker_id)
    return True


class NotificationRouter:
    """Turns one Notification into chat operations and store updates."""

    def __init__(
        self,
        store: CorrelationStore,
        chat: ChatGateway,
        room_id: str,
        open_marker: str = "🔴",
        mark_open: bool = True,
        log: logging.Logger | None = None,
    ) -> None:
        self._store = store
        self._chat = chat
        self._room_id = room_id
        self._open_marker = open_marker
        self._mark_open = mark_open
        self._log = log or LOG

    def route(self, notification: Notification) -> bool:
        """Handle one notification; failures are logged and end this call only.

        Returns False if a chat, Seerr or store call failed.
        """
        try:
            if notification.kind is NotificationKind.OTHER or notification.issue_id is None:
                self._broadcast(notification)
            elif notification.kind is NotificationKind.ISSUE_CREATED:
                self._on_created(notification)
            elif notification.kind is NotificationKind.ISSUE_COMMENT:
                self._on_comment(notification)
            elif notification.kind is NotificationKind.ISSUE_RESOLVED:
                self._on_resolved(notification)
            elif notification.kind is NotificationKind.ISSUE_REOPENED:
                self._on_reopened(notification)
        except BridgeError as e:
            self._log.error(
                "Failed to handle %s for issue %s: %s",
                notification.kind.value,
                notification.issue_id,
                e,
            )
            return False
        return True

    def _broadcast(self, notification: Notification) -> None:
        plain, rich = format_broadcast(notification)
        if not plain:
            self._log.debug("Empty %s notification, nothing to send", notification.kind.value)
            return
        self._chat.send_message(self._room_id, plain, rich)
        self._log.info("Posted notification: %s", notification.subject)

    def _on_created(self, notification: Notification) -> None:
        issue_id = notification.issue_id
        record = self._store.find_by_issue_id(issue_id)
        if record is not None:
            if record.root_message_id is None:
                self._log.error(
                    "Issue %s is claimed but has no root message; the announcement failed or is still in flight",
                    issue_id,
                )
                return
            self._log.info("Issue %s already announced, skipping root message", issue_id)
        elif self._store.create_record(issue_id, self._room_id):
            plain, rich = format_announcement(notification)
            root_id = self._chat.send_message(self._room_id, plain, rich)
            self._store.set_root_message(issue_id, root_id)
            self._log.info("Issue %s announced as %s", issue_id, root_id)
            record = CorrelationRecord(issue_id=issue_id, room_id=self._room_id, root_message_id=root_id)
        else:
            # Another delivery of the same issue claimed it between our read and insert
            self._log.info("Issue %s claimed by a concurrent delivery, skipping root message", issue_id)
            record = self._store.find_by_issue_id(issue_id)
        if record is not None:
            self._add_open_marker(record)

    def _add_open_marker(self, record: CorrelationRecord) -> None:
        if not self._mark_open or not record.root_message_id or record.status_marker_id:
            return
        marker_id = self._chat.add_reaction(record.room_id, record.root_message_id, self._open_marker)
        if not self._store.set_status_marker_if_absent(record.issue_id, marker_id):
            # A concurrent delivery recorded its marker first
            self._chat.remove_marker(record.room_id, marker_id, reason=DUPLICATE_MARKER_REASON)
            self._log.debug("Issue %s: withdrew duplicate marker %s", record.issue_id, marker_id)
            return
        self._log.debug("Issue %s: open marker %s", record.issue_id, marker_id)

    def _thread_record(self, notification: Notification) -> CorrelationRecord | None:
        record = self._store.find_by_issue_id(notification.issue_id)
        if record is None or not record.root_message_id:
            self._log.warning(
                "%s for unknown issue %s, dropping",
                notification.kind.value,
                notification.issue_id,
            )
            return None
        return record

    def _on_comment(self, notification: Notification) -> None:
        record = self._thread_record(notification)
        if record is None:
            return
        plain, rich = format_comment(notification)
        self._chat.send_thread_reply(record.room_id, record.root_message_id, plain, rich)
        self._log.info("Issue %s: comment from %s threaded", record.issue_id, notification.commented_by)

    def _on_resolved(self, notification: Notification) -> None:
        record = self._thread_record(notification)
        if record is None:
            return
        plain, rich = format_resolved(notification)
        self._chat.send_thread_reply(record.room_id, record.root_message_id, plain, rich)
        self._log.info("Issue %s resolved", record.issue_id)
        remove_open_marker(self._store, self._chat, record, log=self._log)

    def _on_reopened(self, notification: Notification) -> None:
        record = self._thread_record(notification)
        if record is None:
            return
        plain, rich = format_reopened(notification)
        self._chat.send_thread_reply(record.room_id, record.root_message_id, plain, rich)
        self._log.info("Issue %s reopened", record.issue_id)
        self._add_open_marker(record)
