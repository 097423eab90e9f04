"""Retry an operation with exponential, jittered backoff and cooperative cancellation."""

from __future__ import annotations

from .backoff import backoff
from .cancel import CancelToken
from .config import RetryConfig, load_config, save_config
from .errors import (
    Cancelled,
    CommandFailedError,
    DeadlineExceeded,
    ExitCode,
    InvalidArgumentError,
    RetryLoopError,
)
from .retry import aretry_with_cancellation, retry, retry_with_cancellation

__version__ = "0.1.0"

__all__ = [
    "CancelToken",
    "Cancelled",
    "CommandFailedError",
    "DeadlineExceeded",
    "ExitCode",
    "InvalidArgumentError",
    "RetryConfig",
    "RetryLoopError",
    "aretry_with_cancellation",
    "backoff",
    "load_config",
    "retry",
    "retry_with_cancellation",
    "save_config",
]
