"""Plain-text and HTML bodies for the messages the bridge posts to Matrix.

Every message is sent with both bodies: clients without HTML support show
the plain one.
"""

import html

from seerrbridge.models import Notification


def _lines_to_html(lines: list[str]) -> str:
    return "<br>".join(lines)


def _image_html(url: str) -> str:
    safe = html.escape(url, quote=True)
    return f'<a href="{safe}">{safe}</a>'


def format_announcement(notification: Notification) -> tuple[str, str]:
    """Root message for a new issue: subject, description, reporter, image."""
    subject = notification.subject or f"Issue #{notification.issue_id}"
    plain = [f"New issue #{notification.issue_id}: {subject}"]
    rich = [f"<b>New issue #{notification.issue_id}: {html.escape(subject)}</b>"]
    if notification.message:
        plain.append(notification.message)
        rich.append(html.escape(notification.message))
    if notification.reported_by:
        plain.append(f"Reported by: {notification.reported_by}")
        rich.append(f"<i>Reported by: {html.escape(notification.reported_by)}</i>")
    if notification.image_url:
        plain.append(notification.image_url)
        rich.append(_image_html(notification.image_url))
    return "\n".join(plain), _lines_to_html(rich)


def format_comment(notification: Notification) -> tuple[str, str]:
    """Thread reply carrying a Seerr comment and its author."""
    text = notification.comment or notification.message or ""
    author = notification.commented_by or "Someone"
    plain = f"{author} commented:\n{text}"
    rich = f"<b>{html.escape(author)}</b> commented:<br>{html.escape(text)}"
    return plain, rich


def format_resolved(notification: Notification) -> tuple[str, str]:
    """Thread reply announcing that Seerr marked the issue resolved."""
    plain = [f"Issue {notification.issue_id} resolved"]
    rich = [f"<b>Issue {notification.issue_id} resolved</b>"]
    if notification.message:
        plain.append(notification.message)
        rich.append(html.escape(notification.message))
    return "\n".join(plain), _lines_to_html(rich)


def format_reopened(notification: Notification) -> tuple[str, str]:
    """Thread reply announcing that the issue was reopened."""
    plain = [f"Issue {notification.issue_id} reopened"]
    rich = [f"<b>Issue {notification.issue_id} reopened</b>"]
    if notification.message:
        plain.append(notification.message)
        rich.append(html.escape(notification.message))
    return "\n".join(plain), _lines_to_html(rich)


def format_broadcast(notification: Notification) -> tuple[str, str]:
    """Top-level message for notifications not tied to an issue."""
    plain = [notification.subject] if notification.subject else []
    rich = [f"<b>{html.escape(notification.subject)}</b>"] if notification.subject else []
    if notification.message:
        plain.append(notification.message)
        rich.append(html.escape(notification.message))
    if notification.image_url:
        plain.append(notification.image_url)
        rich.append(_image_html(notification.image_url))
    return "\n".join(plain), _lines_to_html(rich)


def format_command_resolved(issue_id: int) -> tuple[str, str]:
    """Confirmation for `!issues resolve`."""
    return f"Issue {issue_id} resolved", f"<b>Issue {issue_id} resolved</b>"
