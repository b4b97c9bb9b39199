"""
Bridge daemon: Seerr webhook server plus Matrix sync loop.

Logs in to Matrix and joins the bridged room, then serves Seerr webhooks on
the main thread while a daemon thread long-polls /sync. Each chat message is
handed to a small worker pool so commands for different issues run in
parallel.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor

from seerrbridge.adapters.matrix import MatrixGateway
from seerrbridge.adapters.seerr import SeerrAdapter
from seerrbridge.commands import CommandInterpreter
from seerrbridge.config import AppConfig
from seerrbridge.logging import BridgeLogging
from seerrbridge.models import RoomMessage
from seerrbridge.router import NotificationRouter
from seerrbridge.store import CorrelationStore
from seerrbridge.webhook.server import run_webhook_server

LOG = logging.getLogger("seerrbridge.daemon")


def missing_settings(config: AppConfig) -> list[str]:
    """Names of required settings that are not set."""
    missing = []
    if not config.matrix.user_id:
        missing.append("matrix.user_id (MATRIX_USER_ID)")
    if not config.matrix.room:
        missing.append("matrix.room (MATRIX_ROOM)")
    if not config.matrix_password_resolved:
        missing.append("matrix.password (MATRIX_PASSWORD or MATRIX_PASSWORD_FILE)")
    if not config.seerr_api_key_resolved:
        missing.append("seerr.api_key (SEERR_API_KEY or SEERR_API_KEY_FILE)")
    return missing


def _handle_message(interpreter: CommandInterpreter, message: RoomMessage) -> None:
    try:
        interpreter.handle(message)
    except Exception as e:
        LOG.exception("Unexpected error handling message %s: %s", message.event_id, e)


def start_sync_thread(
    chat: MatrixGateway,
    room_id: str,
    interpreter: CommandInterpreter,
    executor: ThreadPoolExecutor,
    timeout_ms: int,
    stop: threading.Event,
) -> threading.Thread:
    """Start the Matrix sync loop in a daemon thread."""
    thread = threading.Thread(
        target=chat.sync_forever,
        args=(room_id, lambda msg: executor.submit(_handle_message, interpreter, msg)),
        kwargs={"timeout_ms": timeout_ms, "stop": stop},
        name="matrix-sync",
        daemon=True,
    )
    thread.start()
    return thread


def run_daemon(config: AppConfig) -> None:
    """Connect to Matrix, Seerr and the database, then serve until interrupted."""
    BridgeLogging(config.logging).setup()

    missing = missing_settings(config)
    if missing:
        raise ValueError("Missing required settings: " + ", ".join(missing))

    timeout = config.bridge.request_timeout
    store = CorrelationStore(config.database.path, timeout=config.database.timeout)
    store.init_db()
    LOG.info("Database ready at %s", config.database.path)

    chat = MatrixGateway(config.matrix.homeserver_url, timeout=timeout)
    chat.login(config.matrix.user_id, config.matrix_password_resolved, config.matrix.device_name)
    room_id = chat.join_room(config.matrix.room)

    issues = SeerrAdapter(config.seerr.api_url, config.seerr_api_key_resolved, timeout=timeout)
    router = NotificationRouter(
        store,
        chat,
        room_id,
        open_marker=config.bridge.open_marker,
        mark_open=config.bridge.mark_open,
    )
    interpreter = CommandInterpreter(store, chat, issues, config.matrix.admin_users)
    if not config.matrix.admin_users:
        LOG.warning("No admin users configured; !issues commands are disabled")

    stop = threading.Event()
    executor = ThreadPoolExecutor(max_workers=config.bridge.command_workers, thread_name_prefix="command")
    start_sync_thread(chat, room_id, interpreter, executor, config.matrix.sync_timeout_ms, stop)
    LOG.info(
        "Bridge started | room=%s | admins=%d | webhook=%s:%s%s",
        room_id,
        len(config.matrix.admin_users),
        config.webhook.host,
        config.webhook.port,
        config.webhook.path,
    )
    try:
        run_webhook_server(
            config.webhook.host,
            config.webhook.port,
            router,
            path=config.webhook.path,
            auth_header=config.webhook_auth_header_resolved,
        )
    finally:
        stop.set()
        executor.shutdown(wait=False)
