"""Config module edge case tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from retryloop.config import ATTEMPTS_ENV, MAX_BACKOFF_ENV, RetryConfig, load_config, save_config


def test_config_accepts_boundary_values(tmp_path: Path) -> None:
    path = tmp_path / "config.toml"
    save_config(RetryConfig(attempts=0, max_backoff=0.0), path)

    loaded = load_config(path)

    assert loaded.attempts == 0
    assert loaded.max_backoff == 0.0


def test_invalid_toml_returns_defaults(tmp_path: Path) -> None:
    path = tmp_path / "config.toml"
    path.write_text("attempts = [broken\n", encoding="utf-8")

    assert load_config(path) == RetryConfig()


def test_invalid_values_fall_back_to_defaults(tmp_path: Path) -> None:
    path = tmp_path / "config.toml"
    path.write_text(
        'attempts = -4\nmax_backoff = "fast"\ntimeout = -1\nlog_level = "LOUD"\n',
        encoding="utf-8",
    )

    assert load_config(path) == RetryConfig()


def test_boolean_values_are_not_numbers(tmp_path: Path) -> None:
    path = tmp_path / "config.toml"
    path.write_text("attempts = true\nmax_backoff = false\n", encoding="utf-8")

    loaded = load_config(path)

    assert loaded.attempts == 3
    assert loaded.max_backoff == 5.0


def test_integer_max_backoff_is_accepted(tmp_path: Path) -> None:
    path = tmp_path / "config.toml"
    path.write_text("max_backoff = 10\n", encoding="utf-8")

    assert load_config(path).max_backoff == 10.0


def test_valid_values_survive_alongside_invalid_ones(tmp_path: Path) -> None:
    path = tmp_path / "config.toml"
    path.write_text('attempts = 7\nmax_backoff = -3.0\nlog_level = "warning"\n', encoding="utf-8")

    loaded = load_config(path)

    assert loaded.attempts == 7
    assert loaded.max_backoff == 5.0
    assert loaded.log_level == "WARN"


def test_unparsable_environment_values_are_ignored(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv(ATTEMPTS_ENV, "many")
    monkeypatch.setenv(MAX_BACKOFF_ENV, "-2")

    cfg = load_config(tmp_path / "missing.toml")

    assert cfg.attempts == 3
    assert cfg.max_backoff == 5.0


def test_infinite_backoff_is_rejected(tmp_path: Path) -> None:
    path = tmp_path / "config.toml"
    path.write_text("max_backoff = inf\n", encoding="utf-8")

    assert load_config(path).max_backoff == 5.0
