from __future__ import annotations

import os
import stat
import sys
from pathlib import Path

import pytest
from pydantic import ValidationError

from retryloop.config import (
    ATTEMPTS_ENV,
    MAX_BACKOFF_ENV,
    TIMEOUT_ENV,
    RetryConfig,
    load_config,
    save_config,
)


def test_load_defaults_when_config_missing(tmp_path: Path) -> None:
    cfg = load_config(tmp_path / "config.toml")

    assert cfg.attempts == 3
    assert cfg.max_backoff == 5.0
    assert cfg.timeout is None
    assert cfg.log_level == "INFO"


def test_config_roundtrip(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "config.toml"
    original = RetryConfig(attempts=6, max_backoff=2.5, timeout=30.0, log_level="DEBUG")

    saved = save_config(original, path)
    loaded = load_config(path)

    assert saved == path
    assert loaded == original


def test_roundtrip_without_timeout_omits_key(tmp_path: Path) -> None:
    path = tmp_path / "config.toml"

    save_config(RetryConfig(attempts=0, max_backoff=0.0), path)

    assert "timeout" not in path.read_text(encoding="utf-8")
    assert load_config(path).timeout is None


@pytest.mark.skipif(sys.platform == "win32", reason="POSIX permissions only")
def test_saved_config_is_private(tmp_path: Path) -> None:
    path = save_config(RetryConfig(), tmp_path / "config.toml")

    assert stat.S_IMODE(os.stat(path).st_mode) == 0o600


def test_environment_overrides_file_values(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    path = tmp_path / "config.toml"
    save_config(RetryConfig(attempts=2, max_backoff=1.0), path)
    monkeypatch.setenv(ATTEMPTS_ENV, "9")
    monkeypatch.setenv(MAX_BACKOFF_ENV, "0.5")
    monkeypatch.setenv(TIMEOUT_ENV, "12")

    cfg = load_config(path)

    assert cfg.attempts == 9
    assert cfg.max_backoff == 0.5
    assert cfg.timeout == 12.0


def test_model_rejects_negative_values() -> None:
    with pytest.raises(ValidationError):
        RetryConfig(attempts=-1)
    with pytest.raises(ValidationError):
        RetryConfig(max_backoff=-0.1)
    with pytest.raises(ValidationError):
        RetryConfig(timeout=0)


def test_warning_log_level_is_normalized() -> None:
    assert RetryConfig(log_level="warning").log_level == "WARN"


def test_cancel_token_carries_configured_timeout() -> None:
    token = RetryConfig(timeout=60.0).cancel_token()

    assert token.remaining is not None
    assert 0 < token.remaining <= 60.0
    assert RetryConfig().cancel_token().remaining is None
