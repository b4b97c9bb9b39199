"""Matrix client-server API adapter (login, join, send, react, redact, sync)."""

import logging
import threading
import uuid
from typing import Any, Callable, Dict, List
from urllib.parse import quote

import requests

from seerrbridge.adapters.base import ChatGateway, ChatGatewayError
from seerrbridge.models import RoomMessage

LOG = logging.getLogger("seerrbridge.adapters.matrix")

CLIENT_API = "/_matrix/client/v3"

# Seconds to wait before retrying /sync after a failure
SYNC_RETRY_SECONDS = 5


def _message_content(plain: str, html: str) -> Dict[str, Any]:
    return {
        "msgtype": "m.text",
        "body": plain,
        "format": "org.matrix.custom.html",
        "formatted_body": html,
    }


def _room_message_from_event(room_id: str, event: Dict[str, Any]) -> RoomMessage | None:
    """Build RoomMessage from a timeline event; None for non-message events."""
    if event.get("type") != "m.room.message":
        return None
    event_id = event.get("event_id")
    sender = event.get("sender")
    if not event_id or not sender:
        return None
    content = event.get("content") or {}
    relates_to = content.get("m.relates_to") or {}
    thread_root = relates_to.get("event_id") if relates_to.get("rel_type") == "m.thread" else None
    body = content.get("body")
    return RoomMessage(
        room_id=room_id,
        event_id=event_id,
        sender=sender,
        body=body if isinstance(body, str) else "",
        thread_root_id=thread_root,
    )


class MatrixGateway(ChatGateway):
    """Matrix homeserver implementation of ChatGateway."""

    def __init__(
        self,
        homeserver_url: str,
        access_token: str | None = None,
        user_id: str = "",
        timeout: float = 30.0,
    ) -> None:
        self._api_url = homeserver_url.rstrip("/")
        self._timeout = timeout
        self._user_id = user_id
        self._session = requests.Session()
        self._session.headers["Accept"] = "application/json"
        if access_token:
            self._session.headers["Authorization"] = f"Bearer {access_token}"

    @property
    def user_id(self) -> str:
        return self._user_id

    def _request(
        self,
        method: str,
        path: str,
        params: Dict[str, Any] | None = None,
        json: Dict[str, Any] | None = None,
        timeout: float | None = None,
    ) -> Dict[str, Any]:
        url = f"{self._api_url}{CLIENT_API}{path}"
        try:
            resp = self._session.request(
                method,
                url,
                params=params,
                json=json,
                timeout=timeout if timeout is not None else self._timeout,
            )
        except requests.RequestException as e:
            raise ChatGatewayError(f"{method} {path}: {e}") from e
        if resp.status_code >= 400:
            msg = resp.text or resp.reason or str(resp.status_code)
            try:
                data = resp.json()
            except ValueError:
                data = None
            if isinstance(data, dict) and data.get("error"):
                msg = f"{data.get('errcode', 'M_UNKNOWN')} {data['error']}"
            raise ChatGatewayError(f"{resp.status_code}: {msg}")
        try:
            data = resp.json()
        except ValueError as e:
            raise ChatGatewayError(f"{method} {path}: invalid JSON response") from e
        return data if isinstance(data, dict) else {}

    def _send_event(self, room_id: str, event_type: str, content: Dict[str, Any]) -> str:
        txn_id = uuid.uuid4().hex
        path = f"/rooms/{quote(room_id, safe='')}/send/{event_type}/{txn_id}"
        data = self._request("PUT", path, json=content)
        event_id = data.get("event_id")
        if not event_id:
            raise ChatGatewayError(f"send {event_type} to {room_id}: no event_id in response")
        return event_id

    def login(self, user: str, password: str, device_name: str = "seerrbridge") -> str:
        """Log in with a password; store and return the access token."""
        data = self._request(
            "POST",
            "/login",
            json={
                "type": "m.login.password",
                "identifier": {"type": "m.id.user", "user": user},
                "password": password,
                "initial_device_display_name": device_name,
            },
        )
        token = data.get("access_token")
        if not token:
            raise ChatGatewayError("login: no access_token in response")
        self._session.headers["Authorization"] = f"Bearer {token}"
        self._user_id = data.get("user_id") or user
        LOG.info("Logged in to Matrix as %s", self._user_id)
        return token

    def join_room(self, room: str) -> str:
        """Join a room by alias or id; return the room id."""
        data = self._request("POST", f"/join/{quote(room, safe='')}", json={})
        room_id = data.get("room_id")
        if not room_id:
            raise ChatGatewayError(f"join {room}: no room_id in response")
        LOG.info("Joined room %s (%s)", room, room_id)
        return room_id

    def send_message(self, room_id: str, plain: str, html: str) -> str:
        return self._send_event(room_id, "m.room.message", _message_content(plain, html))

    def send_thread_reply(self, room_id: str, root_message_id: str, plain: str, html: str) -> str:
        content = _message_content(plain, html)
        content["m.relates_to"] = {
            "rel_type": "m.thread",
            "event_id": root_message_id,
            "is_falling_back": True,
            "m.in_reply_to": {"event_id": root_message_id},
        }
        return self._send_event(room_id, "m.room.message", content)

    def add_reaction(self, room_id: str, target_message_id: str, key: str) -> str:
        content = {
            "m.relates_to": {
                "rel_type": "m.annotation",
                "event_id": target_message_id,
                "key": key,
            }
        }
        return self._send_event(room_id, "m.reaction", content)

    def remove_marker(self, room_id: str, marker_id: str, reason: str | None = None) -> None:
        txn_id = uuid.uuid4().hex
        path = f"/rooms/{quote(room_id, safe='')}/redact/{quote(marker_id, safe='')}/{txn_id}"
        self._request("PUT", path, json={"reason": reason} if reason else {})

    def sync_once(
        self,
        room_id: str,
        since: str | None = None,
        timeout_ms: int = 0,
    ) -> tuple[str, List[RoomMessage]]:
        """One /sync call; return next_batch and new messages in room_id."""
        params: Dict[str, Any] = {"timeout": timeout_ms}
        if since:
            params["since"] = since
        data = self._request(
            "GET",
            "/sync",
            params=params,
            timeout=timeout_ms / 1000 + self._timeout,
        )
        next_batch = data.get("next_batch")
        if not next_batch:
            raise ChatGatewayError("sync: no next_batch in response")
        joined = ((data.get("rooms") or {}).get("join") or {}).get(room_id) or {}
        events = (joined.get("timeline") or {}).get("events") or []
        messages = []
        for event in events:
            msg = _room_message_from_event(room_id, event)
            if msg is not None:
                messages.append(msg)
        return next_batch, messages

    def sync_forever(
        self,
        room_id: str,
        on_message: Callable[[RoomMessage], None],
        timeout_ms: int = 30000,
        stop: threading.Event | None = None,
    ) -> None:
        """Long-poll /sync and hand each new message in room_id to on_message.

        The first sync only establishes the position, so history from before
        startup is never replayed as commands.
        """
        stop = stop or threading.Event()
        since: str | None = None
        while not stop.is_set():
            try:
                if since is None:
                    since, _ = self.sync_once(room_id, timeout_ms=0)
                    LOG.debug("Initial sync done, position %s", since)
                    continue
                since, messages = self.sync_once(room_id, since=since, timeout_ms=timeout_ms)
            except ChatGatewayError as e:
                LOG.error("Matrix sync failed: %s", e)
                stop.wait(SYNC_RETRY_SECONDS)
                continue
            for msg in messages:
                on_message(msg)
        LOG.info("Matrix sync stopped")
