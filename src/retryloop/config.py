"""XDG config loading/saving."""

from __future__ import annotations

import logging as py_logging
import math
import os
import tomllib
from contextlib import suppress
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .cancel import CancelToken
from .logging import normalize_level

logger = py_logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("~/.config/retryloop/config.toml").expanduser()
DEFAULT_ATTEMPTS = 3
DEFAULT_MAX_BACKOFF = 5.0
DEFAULT_LOG_LEVEL: Literal["DEBUG", "INFO", "WARN", "ERROR"] = "INFO"
ATTEMPTS_ENV = "RETRYLOOP_ATTEMPTS"
MAX_BACKOFF_ENV = "RETRYLOOP_MAX_BACKOFF"
TIMEOUT_ENV = "RETRYLOOP_TIMEOUT"

_VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARN", "ERROR"}


class RetryConfig(BaseModel):
    model_config = ConfigDict(validate_assignment=True)

    attempts: int = Field(default=DEFAULT_ATTEMPTS, ge=0)
    max_backoff: float = Field(default=DEFAULT_MAX_BACKOFF, ge=0)
    timeout: float | None = Field(default=None, gt=0)
    log_level: Literal["DEBUG", "INFO", "WARN", "ERROR"] = DEFAULT_LOG_LEVEL

    @field_validator("max_backoff", "timeout")
    @classmethod
    def _validate_finite(cls, value: float | None) -> float | None:
        if value is not None and not math.isfinite(value):
            raise ValueError(f"Expected a finite number of seconds: {value}")
        return value

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_log_level(cls, value: object) -> object:
        if isinstance(value, str):
            return normalize_level(value)
        return value

    def cancel_token(self) -> CancelToken:
        return CancelToken(timeout=self.timeout)


def get_config_path(path: str | Path | None = None) -> Path:
    if path is None:
        return DEFAULT_CONFIG_PATH
    return Path(path).expanduser()


def _toml_scalar(value: object) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return repr(value)
    if isinstance(value, str):
        escaped = value.replace("\\", "\\\\").replace('"', '\\"')
        return f'"{escaped}"'
    raise TypeError(f"Unsupported TOML scalar type: {type(value)!r}")


def _assign(cfg: RetryConfig, field: str, value: object) -> None:
    try:
        setattr(cfg, field, value)
    except ValidationError:
        logger.warning("Ignoring invalid config value %s=%r", field, value)


def _apply_env(cfg: RetryConfig) -> None:
    for env_name, field, parse in (
        (ATTEMPTS_ENV, "attempts", int),
        (MAX_BACKOFF_ENV, "max_backoff", float),
        (TIMEOUT_ENV, "timeout", float),
    ):
        raw = os.getenv(env_name, "").strip()
        if not raw:
            continue
        try:
            value = parse(raw)
        except ValueError:
            logger.warning("Ignoring unparsable %s=%r", env_name, raw)
            continue
        _assign(cfg, field, value)


def _sanitize(raw: dict[str, object]) -> RetryConfig:
    cfg = RetryConfig()

    attempts = raw.get("attempts")
    if isinstance(attempts, int) and not isinstance(attempts, bool):
        _assign(cfg, "attempts", attempts)

    max_backoff = raw.get("max_backoff")
    if isinstance(max_backoff, (int, float)) and not isinstance(max_backoff, bool):
        _assign(cfg, "max_backoff", float(max_backoff))

    timeout = raw.get("timeout")
    if isinstance(timeout, (int, float)) and not isinstance(timeout, bool):
        _assign(cfg, "timeout", float(timeout))

    log_level = raw.get("log_level")
    if isinstance(log_level, str) and normalize_level(log_level) in _VALID_LOG_LEVELS:
        _assign(cfg, "log_level", log_level)

    return cfg


def load_config(path: str | Path | None = None) -> RetryConfig:
    resolved = get_config_path(path)
    cfg = RetryConfig()
    if resolved.exists():
        try:
            with resolved.open("rb") as handle:
                raw = tomllib.load(handle)
        except (tomllib.TOMLDecodeError, OSError) as exc:
            logger.warning("Ignoring unreadable config %s: %s", resolved, exc)
        else:
            cfg = _sanitize(raw)
    _apply_env(cfg)
    return cfg


def save_config(config: RetryConfig, path: str | Path | None = None) -> Path:
    resolved = get_config_path(path)
    resolved.parent.mkdir(parents=True, exist_ok=True)

    lines = [
        f"attempts = {_toml_scalar(config.attempts)}",
        f"max_backoff = {_toml_scalar(float(config.max_backoff))}",
        f"log_level = {_toml_scalar(config.log_level)}",
    ]
    if config.timeout is not None:
        lines.append(f"timeout = {_toml_scalar(float(config.timeout))}")

    resolved.write_text("\n".join(lines) + "\n", encoding="utf-8")
    with suppress(OSError):
        resolved.chmod(0o600)
    return resolved
