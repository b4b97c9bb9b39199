"""Configuration loading from YAML and environment.

Secrets (Matrix password, Seerr API key, webhook auth header) are taken
from environment variables or from files (Docker secrets). Never put real
secrets in config files committed to the repo.
"""

from pathlib import Path
from typing import Annotated, Any

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


def _read_secret(env_key: str, file_env_key: str) -> str | None:
    """Read secret from env var or from file path in env (e.g. Docker
    secrets)."""
    value = _current_env.get(env_key)
    if value:
        return value.strip()
    file_path = _current_env.get(file_env_key)
    if file_path:
        return Path(file_path).read_text().strip()
    return None


def _is_placeholder(value: str | None) -> bool:
    return not value or value.startswith("${")


# Injected by load_config so secret resolution can read env/file
_current_env: dict[str, str] = {}


class MatrixConfig(BaseSettings):
    """Matrix account, bridged room and admin allow-list."""

    model_config = SettingsConfigDict(env_prefix="MATRIX_", extra="ignore")

    homeserver_url: str = Field(default="http://localhost:8008", description="Homeserver base URL")
    user_id: str = Field(default="", description="Bot user id or localpart used to log in")
    password: str | None = Field(default=None, description="Bot password; prefer env or secret file")
    room: str = Field(default="", description="Bridged room alias (#room:server) or id (!id:server)")
    device_name: str = Field(default="seerrbridge", description="Initial device display name")
    sync_timeout_ms: int = Field(default=30000, ge=0, description="Long-poll timeout for /sync")
    admin_users: Annotated[list[str], NoDecode] = Field(
        default_factory=list,
        description="Matrix user ids allowed to run !issues commands",
    )

    @field_validator("admin_users", mode="before")
    @classmethod
    def _split_admin_users(cls, value: Any) -> Any:
        """Accept a comma-separated string (MATRIX_ADMIN_USERS) as well as a
        list."""
        if value is None:
            return []
        if isinstance(value, str):
            return [u.strip() for u in value.split(",") if u.strip()]
        return [str(u).strip() for u in value if str(u).strip()]


class SeerrConfig(BaseSettings):
    """Seerr (Overseerr / Jellyseerr) API settings."""

    model_config = SettingsConfigDict(env_prefix="SEERR_", extra="ignore")

    api_url: str = Field(default="http://localhost:5055", description="Seerr base URL")
    api_key: str | None = Field(default=None, description="X-Api-Key; prefer env or secret file")


class DatabaseConfig(BaseSettings):
    """Correlation store settings."""

    model_config = SettingsConfigDict(env_prefix="DATABASE_", extra="ignore")

    path: str = Field(default="seerrbridge.db", description="SQLite database file")
    timeout: float = Field(default=10.0, gt=0, description="Seconds to wait on a locked database")


class WebhookConfig(BaseSettings):
    """Webhook server settings."""

    model_config = SettingsConfigDict(env_prefix="WEBHOOK_", extra="ignore")

    host: str = Field(default="0.0.0.0", description="Bind host")
    port: int = Field(default=8080, ge=1, le=65535, description="Bind port")
    path: str = Field(default="/webhook/seerr", description="Webhook URL path")
    auth_header: str | None = Field(
        default=None,
        description="Expected Authorization header value (Seerr webhook 'Authorization Header')",
    )


class BridgeConfig(BaseSettings):
    """Behaviour of the router and command interpreter."""

    model_config = SettingsConfigDict(env_prefix="BRIDGE_", extra="ignore")

    open_marker: str = Field(default="🔴", description="Reaction key marking an open issue")
    mark_open: bool = Field(default=True, description="React to root messages while the issue is open")
    request_timeout: float = Field(default=30.0, gt=0, description="Timeout in seconds for each remote call")
    command_workers: int = Field(default=4, ge=1, description="Threads handling inbound chat messages")


class LoggingConfig(BaseSettings):
    """Logging settings."""

    model_config = SettingsConfigDict(env_prefix="LOGGING_", extra="ignore")

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log format",
    )
    loggers: dict[str, str] = Field(
        default_factory=dict,
        description="Per-logger level overrides, e.g. {'seerrbridge.adapters.matrix': 'DEBUG'}",
    )


class AppConfig(BaseSettings):
    """Root application config from YAML + env."""

    model_config = SettingsConfigDict(extra="ignore")

    matrix: MatrixConfig = Field(default_factory=MatrixConfig)
    seerr: SeerrConfig = Field(default_factory=SeerrConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    webhook: WebhookConfig = Field(default_factory=WebhookConfig)
    bridge: BridgeConfig = Field(default_factory=BridgeConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @property
    def matrix_password_resolved(self) -> str | None:
        """Resolve Matrix password from config, env or Docker secret file."""
        p = self.matrix.password
        if not _is_placeholder(p):
            return p
        return _read_secret("MATRIX_PASSWORD", "MATRIX_PASSWORD_FILE")

    @property
    def seerr_api_key_resolved(self) -> str | None:
        """Resolve Seerr API key from config, env or Docker secret file."""
        k = self.seerr.api_key
        if not _is_placeholder(k):
            return k
        return _read_secret("SEERR_API_KEY", "SEERR_API_KEY_FILE")

    @property
    def webhook_auth_header_resolved(self) -> str | None:
        """Resolve webhook auth header; None disables the check."""
        h = self.webhook.auth_header
        if not _is_placeholder(h):
            return h
        return _read_secret("WEBHOOK_AUTH_HEADER", "WEBHOOK_AUTH_HEADER_FILE")


def _substitute_env(value: Any) -> Any:
    """Replace ${VAR} and $VAR in strings with os.environ."""
    if isinstance(value, str):
        if value.startswith("${") and value.endswith("}"):
            key = value[2:-1].strip()
            return _current_env.get(key, value)
        if value.startswith("$") and not value.startswith("${"):
            key = value[1:].strip()
            return _current_env.get(key, value)
        return value
    if isinstance(value, dict):
        return {k: _substitute_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_substitute_env(v) for v in value]
    return value


def load_config(config_path: Path | None = None) -> AppConfig:
    """Load config from YAML file and environment.

    Secrets: MATRIX_PASSWORD or MATRIX_PASSWORD_FILE, SEERR_API_KEY or
    SEERR_API_KEY_FILE, WEBHOOK_AUTH_HEADER or WEBHOOK_AUTH_HEADER_FILE.
    """
    global _current_env
    import os

    _current_env = dict(os.environ)

    path = config_path or Path("config.yaml")
    if not path.is_file():
        return AppConfig()

    raw = yaml.safe_load(path.read_text()) or {}
    raw = _substitute_env(raw)

    return AppConfig(
        matrix=MatrixConfig(**(raw.get("matrix") or {})),
        seerr=SeerrConfig(**(raw.get("seerr") or {})),
        database=DatabaseConfig(**(raw.get("database") or {})),
        webhook=WebhookConfig(**(raw.get("webhook") or {})),
        bridge=BridgeConfig(**(raw.get("bridge") or {})),
        logging=LoggingConfig(**(raw.get("logging") or {})),
    )
