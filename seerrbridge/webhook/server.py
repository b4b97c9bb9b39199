"""Webhook HTTP server for Seerr notifications.

GET /health for liveness, POST {webhook.path} for Seerr deliveries. Each
request is served on its own thread, so slow Matrix calls for one issue do
not hold up deliveries for another.
"""

import hmac
import json
import logging
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any

from pydantic import ValidationError

from seerrbridge.router import NotificationRouter
from seerrbridge.webhook.payload import parse_notification

LOG = logging.getLogger("seerrbridge.webhook")


class WebhookHandler(BaseHTTPRequestHandler):
    """Handle GET /health and POST /webhook/seerr."""

    router: NotificationRouter
    webhook_path: str = "/webhook/seerr"
    auth_header: str | None = None

    def _send_json(self, status: int, body: dict[str, Any]) -> None:
        data = json.dumps(body).encode()
        self.send_response(status)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(data)))
        self.end_headers()
        self.wfile.write(data)

    def do_GET(self) -> None:
        if self.path == "/health" or self.path == "/":
            self._send_json(200, {"status": "ok", "service": "seerrbridge"})
            return
        self._send_json(404, {"error": "not found"})

    def do_POST(self) -> None:
        if self.path.split("?", 1)[0] != self.webhook_path:
            self._send_json(404, {"error": "not found"})
            return
        if not self._authorized():
            LOG.warning("Rejected webhook with missing or wrong Authorization header")
            self._send_json(401, {"error": "unauthorized"})
            return
        self._handle_seerr_webhook()

    def _authorized(self) -> bool:
        if not self.auth_header:
            return True
        received = self.headers.get("Authorization", "")
        return hmac.compare_digest(received.encode(), self.auth_header.encode())

    def _handle_seerr_webhook(self) -> None:
        raw_length = self.headers.get("Content-Length")
        try:
            length = int(raw_length or 0)
            if length < 0:
                raise ValueError(raw_length)
        except ValueError:
            LOG.warning("Invalid Content-Length: %r", raw_length)
            self._send_json(400, {"error": "invalid Content-Length"})
            return
        body = self.rfile.read(length) if length else b""
        try:
            payload = json.loads(body.decode("utf-8")) if body else {}
        except (UnicodeDecodeError, json.JSONDecodeError):
            LOG.warning("Invalid webhook JSON: %s", body.decode("utf-8", errors="replace"))
            self._send_json(400, {"error": "invalid JSON"})
            return
        if not isinstance(payload, dict):
            LOG.warning("Webhook body is not a JSON object: %r", payload)
            self._send_json(400, {"error": "expected a JSON object"})
            return
        try:
            notification = parse_notification(payload)
        except ValidationError as e:
            LOG.warning("Invalid webhook payload: %s", e)
            self._send_json(400, {"error": "invalid payload"})
            return
        LOG.info(
            "Webhook %s (issue %s): %s",
            payload.get("notification_type"),
            notification.issue_id,
            notification.subject,
        )
        if not self.router.route(notification):
            self._send_json(502, {"received": True, "error": "delivery to Matrix or storage failed"})
            return
        self._send_json(200, {"received": True})

    def log_message(self, format: str, *args: Any) -> None:
        LOG.debug(format, *args)


def make_webhook_server(
    host: str,
    port: int,
    router: NotificationRouter,
    path: str = "/webhook/seerr",
    auth_header: str | None = None,
) -> ThreadingHTTPServer:
    """Bind the webhook server (port 0 picks a free port) without serving yet."""
    handler = type(
        "BoundWebhookHandler",
        (WebhookHandler,),
        {"router": router, "webhook_path": path, "auth_header": auth_header},
    )
    server = ThreadingHTTPServer((host, port), handler)
    server.daemon_threads = True
    return server


def run_webhook_server(
    host: str,
    port: int,
    router: NotificationRouter,
    path: str = "/webhook/seerr",
    auth_header: str | None = None,
) -> None:
    """Run HTTP server for webhooks and health check until interrupted."""
    server = make_webhook_server(host, port, router, path=path, auth_header=auth_header)
    LOG.info("Webhook server listening on %s:%s%s", host, port, path)
    try:
        server.serve_forever()
    finally:
        server.server_close()
