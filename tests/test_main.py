"""Tests for the CLI entry point and daemon helpers."""

from pathlib import Path
from unittest.mock import patch

import pytest

from seerrbridge.config import AppConfig, MatrixConfig, SeerrConfig
from seerrbridge.daemon import missing_settings
from seerrbridge.main import main, parse_args


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in ("MATRIX_PASSWORD", "MATRIX_PASSWORD_FILE", "SEERR_API_KEY", "SEERR_API_KEY_FILE"):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setattr("seerrbridge.config._current_env", {})


def test_parse_args_defaults() -> None:
    args = parse_args([])
    assert args.config == Path("config.yaml")
    assert args.check is False


def test_missing_settings_lists_everything_required() -> None:
    missing = missing_settings(AppConfig())
    assert any(m.startswith("matrix.user_id") for m in missing)
    assert any(m.startswith("matrix.room") for m in missing)
    assert any(m.startswith("matrix.password") for m in missing)
    assert any(m.startswith("seerr.api_key") for m in missing)


def test_missing_settings_complete_config() -> None:
    config = AppConfig(
        matrix=MatrixConfig(user_id="@bot:x", room="#support:x", password="pw"),
        seerr=SeerrConfig(api_key="key"),
    )
    assert missing_settings(config) == []


def test_check_incomplete_config(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    """--check lists missing settings and exits 1."""
    path = tmp_path / "config.yaml"
    path.write_text("matrix:\n  room: '#support:x'\n", encoding="utf-8")
    assert main(["--config", str(path), "--check"]) == 1
    assert "matrix.user_id" in capsys.readouterr().out


def test_check_complete_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys) -> None:
    """--check prints the room and Seerr URL for a complete config."""
    monkeypatch.setenv("MATRIX_PASSWORD", "pw")
    monkeypatch.setenv("SEERR_API_KEY", "key")
    path = tmp_path / "config.yaml"
    path.write_text(
        "matrix:\n  user_id: '@bot:x'\n  room: '#support:x'\n  password: ${MATRIX_PASSWORD}\n"
        "seerr:\n  api_url: http://seerr:5055\n  api_key: ${SEERR_API_KEY}\n",
        encoding="utf-8",
    )
    assert main(["-c", str(path), "--check"]) == 0
    assert "Config OK: #support:x http://seerr:5055" in capsys.readouterr().out


def test_fatal_error_returns_1(tmp_path: Path) -> None:
    with patch("seerrbridge.daemon.run_daemon", side_effect=ValueError("boom")):
        assert main(["-c", str(tmp_path / "none.yaml")]) == 1


def test_keyboard_interrupt_returns_0(tmp_path: Path) -> None:
    with patch("seerrbridge.daemon.run_daemon", side_effect=KeyboardInterrupt):
        assert main(["-c", str(tmp_path / "none.yaml")]) == 0
