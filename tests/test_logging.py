"""Tests for seerrbridge.logging (BridgeLogging, levels and overrides from config)."""

import logging

import pytest

from seerrbridge.config import LoggingConfig
from seerrbridge.logging import DEFAULT_FORMAT, LEVELS, NOISY_LOGGERS, BridgeLogging, _resolve_level

OVERRIDDEN = ("seerrbridge.adapters.matrix", "seerrbridge.router")


@pytest.fixture(autouse=True)
def _restore_loggers():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    saved = {name: logging.getLogger(name).level for name in NOISY_LOGGERS + OVERRIDDEN}
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    for name, lvl in saved.items():
        logging.getLogger(name).setLevel(lvl)


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("DEBUG", logging.DEBUG),
        ("warning", logging.WARNING),
        ("  error\t", logging.ERROR),
        ("TRACE", None),
        ("", None),
        (None, None),
    ],
)
def test_resolve_level(name, expected) -> None:
    """Names are case- and whitespace-insensitive; unsupported names give None."""
    assert _resolve_level(name) == expected


@pytest.mark.parametrize("level_name", sorted(LEVELS))
def test_setup_sets_root_level(level_name: str) -> None:
    BridgeLogging(LoggingConfig(level=level_name, format="%(message)s")).setup()
    assert logging.getLogger().level == LEVELS[level_name]


def test_unknown_root_level_falls_back_to_info() -> None:
    """An unsupported root level runs at INFO."""
    BridgeLogging(LoggingConfig(level="TRACE")).setup()
    assert logging.getLogger().level == logging.INFO


def test_setup_applies_format() -> None:
    custom = "[%(levelname)s] %(name)s: %(message)s"
    BridgeLogging(LoggingConfig(level="INFO", format=custom)).setup()
    assert logging.getLogger().handlers[0].formatter._fmt == custom


def test_empty_format_falls_back_to_default() -> None:
    BridgeLogging(LoggingConfig(level="INFO", format="")).setup()
    assert logging.getLogger().handlers[0].formatter._fmt == DEFAULT_FORMAT


def test_http_client_logs_quiet_unless_debug() -> None:
    """urllib3 is held at WARNING except when the root runs at DEBUG."""
    BridgeLogging(LoggingConfig(level="INFO")).setup()
    assert logging.getLogger("urllib3").level == logging.WARNING

    logging.getLogger("urllib3").setLevel(logging.NOTSET)
    BridgeLogging(LoggingConfig(level="DEBUG")).setup()
    assert logging.getLogger("urllib3").level == logging.NOTSET


def test_per_logger_overrides() -> None:
    """logging.loggers sets levels on single loggers below the root."""
    config = LoggingConfig(
        level="WARNING",
        loggers={"seerrbridge.adapters.matrix": "debug", "seerrbridge.router": "ERROR"},
    )
    BridgeLogging(config).setup()
    assert logging.getLogger().level == logging.WARNING
    assert logging.getLogger("seerrbridge.adapters.matrix").getEffectiveLevel() == logging.DEBUG
    assert logging.getLogger("seerrbridge.router").level == logging.ERROR


def test_unknown_override_level_is_skipped() -> None:
    """A bad level for one logger leaves that logger untouched."""
    logging.getLogger("seerrbridge.router").setLevel(logging.NOTSET)
    BridgeLogging(LoggingConfig(level="INFO", loggers={"seerrbridge.router": "LOUD"})).setup()
    assert logging.getLogger("seerrbridge.router").level == logging.NOTSET


def test_overrides_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """LOGGING_LOGGERS is read as a JSON object."""
    monkeypatch.setenv("LOGGING_LOGGERS", '{"seerrbridge.router": "DEBUG"}')
    assert LoggingConfig().loggers == {"seerrbridge.router": "DEBUG"}
