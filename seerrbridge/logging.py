"""Logging from config and env.

The bridge logs under seerrbridge.<module>:

- ERROR: a Matrix, Seerr or database call failed; the event was not handled
- WARNING: an event was dropped (unknown issue, command outside a thread,
  command from a non-admin, bad webhook body)
- INFO: announcements, resolutions, startup
- DEBUG: store and marker bookkeeping, sync positions, HTTP access lines

logging.level sets the root level and logging.loggers raises or lowers
single loggers, e.g. {"seerrbridge.adapters.matrix": "DEBUG"} to trace
Matrix traffic only (env: LOGGING_LOGGERS as JSON).
"""

import logging

from seerrbridge.config import LoggingConfig

LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
}

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# HTTP client internals stay at WARNING unless the root runs at DEBUG
NOISY_LOGGERS = ("urllib3",)

LOG = logging.getLogger("seerrbridge.logging")


def _resolve_level(level: str | None) -> int | None:
    """Level constant for a name, None if the name is not supported."""
    if not level:
        return None
    return LEVELS.get(level.upper().strip())


class BridgeLogging:
    """Applies LoggingConfig to the root logger and per-logger overrides."""

    def __init__(self, config: LoggingConfig) -> None:
        self._config = config
        self._root_level = _resolve_level(config.level) or logging.INFO
        self._format = config.format or DEFAULT_FORMAT

    def setup(self) -> None:
        logging.basicConfig(level=self._root_level, format=self._format, force=True)
        if self._root_level > logging.DEBUG:
            for name in NOISY_LOGGERS:
                logging.getLogger(name).setLevel(logging.WARNING)
        if _resolve_level(self._config.level) is None:
            LOG.warning("Unknown log level %r, using INFO", self._config.level)
        for name, level_name in self._config.loggers.items():
            level = _resolve_level(level_name)
            if level is None:
                LOG.warning("Unknown log level %r for logger %s, ignored", level_name, name)
                continue
            logging.getLogger(name).setLevel(level)
            LOG.debug("Logger %s set to %s", name, level_name.upper().strip())
