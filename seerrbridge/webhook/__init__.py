"""Webhook server and payload parsing for Seerr notifications."""

from seerrbridge.webhook.payload import SeerrWebhookPayload, parse_notification
from seerrbridge.webhook.server import make_webhook_server, run_webhook_server

__all__ = ["SeerrWebhookPayload", "make_webhook_server", "parse_notification", "run_webhook_server"]
