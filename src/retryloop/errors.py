"""Deterministic error model and exit code contract."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum


class ExitCode(IntEnum):
    SUCCESS = 0
    INVALID_ARGS = 2
    CONFIG_ERROR = 3
    RUNTIME_ERROR = 4
    EXHAUSTED = 5
    CANCELLED = 6
    INTERRUPTED = 130


@dataclass
class RetryLoopError(Exception):
    message: str
    code: ExitCode = ExitCode.RUNTIME_ERROR
    hint: str = ""

    def __str__(self) -> str:
        if self.hint:
            return f"{self.message} Hint: {self.hint}"
        return self.message


@dataclass
class InvalidArgumentError(RetryLoopError, ValueError):
    code: ExitCode = ExitCode.INVALID_ARGS


@dataclass
class Cancelled(RetryLoopError):
    """Reason carried by a cancel token fired without an explicit reason."""

    message: str = "operation cancelled"
    code: ExitCode = ExitCode.CANCELLED


@dataclass
class DeadlineExceeded(Cancelled):
    """Reason carried by a cancel token whose timeout elapsed."""

    message: str = "deadline exceeded"


@dataclass
class CommandFailedError(RetryLoopError):
    returncode: int = 1
    code: ExitCode = ExitCode.EXHAUSTED


def user_facing_error(message: str, *, hint: str = "") -> str:
    if hint:
        return f"Error: {message}. Next step: {hint}"
    return f"Error: {message}."
