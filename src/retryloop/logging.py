"""Logging for retry sequences.

Everything logs under the ``retryloop`` logger. Records emitted by the retry
loops carry an ``attempt`` field (``"2/5"``) that the formatter prints, so a
log file reads as a timeline of one sequence:

    ... DEBUG retryloop.retry [2/5] Attempt failed: connection refused
    ... WARNING retryloop.retry [5/5] Giving up: connection refused

The loop loggers can be given their own level, e.g. to silence per-attempt
DEBUG chatter while keeping the CLI at DEBUG.
"""

from __future__ import annotations

import logging as py_logging
import sys
from pathlib import Path
from typing import TextIO

LOG_LEVELS = {
    "DEBUG": py_logging.DEBUG,
    "INFO": py_logging.INFO,
    "WARN": py_logging.WARNING,
    "ERROR": py_logging.ERROR,
}
ROOT_LOGGER = "retryloop"
LOOP_LOGGERS = ("retryloop.retry", "retryloop.command")
DEFAULT_LOG_PATH = Path("~/.config/retryloop/logs/retryloop.log")
_FALLBACK_LOG_PATH = Path(".retryloop/logs/retryloop.log")
_FORMAT = "%(asctime)s %(levelname)s %(name)s [%(attempt)s] %(message)s"


class AttemptFilter(py_logging.Filter):
    """Give every record an ``attempt`` field; ``-`` outside a retry loop."""

    def filter(self, record: py_logging.LogRecord) -> bool:
        if not hasattr(record, "attempt"):
            record.attempt = "-"
        return True


def default_log_path() -> Path:
    try:
        return DEFAULT_LOG_PATH.expanduser().resolve()
    except RuntimeError:
        return (Path.cwd() / _FALLBACK_LOG_PATH).resolve()


def normalize_level(level: str) -> str:
    normalized = level.strip().upper()
    return "WARN" if normalized == "WARNING" else normalized


def resolve_level(level: str | None, default: int = py_logging.INFO) -> int:
    if level is None:
        return default
    return LOG_LEVELS.get(normalize_level(level), default)


def _handler(handler: py_logging.Handler, level: int) -> py_logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(py_logging.Formatter(_FORMAT))
    handler.addFilter(AttemptFilter())
    return handler


def configure_logging(
    level: str = "INFO",
    stream: TextIO | None = None,
    *,
    log_file: str | Path | None = None,
    loop_level: str | None = None,
) -> py_logging.Logger:
    """(Re)configure the ``retryloop`` logger tree and return its root.

    ``loop_level`` applies to the loop loggers only; when omitted they follow
    ``level``. The optional file handler always records DEBUG and above.
    """
    resolved = resolve_level(level)

    logger = py_logging.getLogger(ROOT_LOGGER)
    logger.setLevel(py_logging.DEBUG if log_file else resolved)
    for existing in list(logger.handlers):
        logger.removeHandler(existing)
        existing.close()
    logger.addHandler(_handler(py_logging.StreamHandler(stream or sys.stderr), resolved))

    for name in LOOP_LOGGERS:
        py_logging.getLogger(name).setLevel(resolve_level(loop_level, py_logging.NOTSET))

    if log_file:
        log_path = Path(log_file).expanduser().resolve()
        try:
            log_path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = py_logging.FileHandler(log_path, encoding="utf-8")
        except OSError:
            logger.setLevel(resolved)
        else:
            logger.addHandler(_handler(file_handler, py_logging.DEBUG))

    logger.propagate = False
    return logger
