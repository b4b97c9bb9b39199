"""`!issues` chat commands sent by admins inside an issue thread.

Grammar (keyword is case-sensitive, surrounding whitespace ignored):

    !issues resolve                 -> resolve, no comment
    !issues resolve <text>          -> resolve, comment = text (trimmed)
    !issues resolve "<text>"        -> resolve, comment = text; "" means no comment

The closing quote is optional: `!issues resolve "fixed` comments `fixed`.
`!issues` and the subcommand are whole words: `!issues resolved` and
`!issuesresolve` are not commands, nor is any other message or subcommand.
"""

import logging

from seerrbridge.adapters.base import ChatGateway, IssueTracker
from seerrbridge.errors import BridgeError
from seerrbridge.formatting import format_command_resolved
from seerrbridge.models import ResolveCommand, RoomMessage
from seerrbridge.router import remove_open_marker
from seerrbridge.store import CorrelationStore

LOG = logging.getLogger("seerrbridge.commands")

COMMAND_PREFIX = "!issues"
RESOLVE = "resolve"


def parse_command(body: str) -> ResolveCommand | None:
    """Parse a message body; None if it is not a recognized command."""
    text = body.strip()
    if not text.startswith(COMMAND_PREFIX):
        return None
    rest = text[len(COMMAND_PREFIX) :]
    if not rest[:1].isspace():
        return None
    parts = rest.split(maxsplit=1)
    if parts[0] != RESOLVE:
        return None
    rest = parts[1].strip() if len(parts) > 1 else ""
    if not rest:
        return ResolveCommand()
    if rest.startswith('"'):
        inner = rest[1:]
        if inner.endswith('"'):
            inner = inner[:-1]
        return ResolveCommand(comment=inner or None)
    return ResolveCommand(comment=rest)


class CommandInterpreter:
    """Executes `!issues resolve` for allow-listed Matrix users."""

    def __init__(
        self,
        store: CorrelationStore,
        chat: ChatGateway,
        issues: IssueTracker,
        admin_users: list[str] | set[str],
        log: logging.Logger | None = None,
    ) -> None:
        self._store = store
        self._chat = chat
        self._issues = issues
        self._admin_users = frozenset(admin_users)
        self._log = log or LOG

    def handle(self, message: RoomMessage) -> bool:
        """Handle one room message. Returns True if an issue was resolved.

        Non-admins get no reply, so the command is invisible to them.
        """
        if message.sender == self._chat.user_id:
            return False
        command = parse_command(message.body)
        if command is None:
            return False
        if message.sender not in self._admin_users:
            self._log.warning("Ignoring %s command from non-admin %s", COMMAND_PREFIX, message.sender)
            return False
        if not message.thread_root_id:
            self._log.warning("%s %s must be sent as a thread reply", COMMAND_PREFIX, RESOLVE)
            return False
        return self._resolve(command, message.thread_root_id)

    def _resolve(self, command: ResolveCommand, thread_root_id: str) -> bool:
        operation = "lookup"
        issue_id = None
        try:
            record = self._store.find_by_root_message_id(thread_root_id)
            if record is None:
                self._log.warning("No issue found for thread root %s", thread_root_id)
                return False
            issue_id = record.issue_id

            if command.comment is not None:
                operation = "comment"
                self._issues.post_comment(issue_id, command.comment)
                self._log.info("Added comment to issue %s: %s", issue_id, command.comment)

            operation = "resolve"
            self._issues.mark_resolved(issue_id)
            self._log.info("Resolved issue %s via command", issue_id)

            operation = "confirm"
            plain, rich = format_command_resolved(issue_id)
            self._chat.send_thread_reply(record.room_id, thread_root_id, plain, rich)

            operation = "unmark"
            remove_open_marker(self._store, self._chat, record, log=self._log)
        except BridgeError as e:
            self._log.error("Command %s failed at %s for issue %s: %s", RESOLVE, operation, issue_id, e)
            return False
        return True
