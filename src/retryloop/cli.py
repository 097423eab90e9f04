"""Public CLI contract and entrypoint."""

from __future__ import annotations

import argparse
import logging as py_logging
import math
import shutil
import sys
from collections.abc import Sequence
from pathlib import Path

from .command import CommandRunner, Runner
from .config import RetryConfig, load_config
from .errors import Cancelled, CommandFailedError, ExitCode, RetryLoopError, user_facing_error
from .logging import configure_logging, default_log_path, normalize_level
from .retry import retry_with_cancellation

_VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARN", "ERROR")


def _attempts_type(value: str) -> int:
    try:
        attempts = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError("--attempts must be an integer") from exc
    if attempts < 0:
        raise argparse.ArgumentTypeError("--attempts cannot be negative")
    return attempts


def _seconds_type(flag: str, *, allow_zero: bool):
    def parse(value: str) -> float:
        try:
            seconds = float(value)
        except ValueError as exc:
            raise argparse.ArgumentTypeError(f"{flag} must be a number of seconds") from exc
        if not math.isfinite(seconds) or seconds < 0 or (seconds == 0 and not allow_zero):
            qualifier = "non-negative" if allow_zero else "positive"
            raise argparse.ArgumentTypeError(f"{flag} must be a {qualifier} number of seconds")
        return seconds

    return parse


def _log_level_type(value: str) -> str:
    normalized = normalize_level(value)
    if normalized not in _VALID_LOG_LEVELS:
        accepted = ", ".join(_VALID_LOG_LEVELS)
        raise argparse.ArgumentTypeError(f"--log-level must be one of: {accepted}")
    return normalized


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="retryloop",
        description="Run a command until it succeeds, with exponential backoff between attempts.",
    )
    parser.add_argument("--attempts", type=_attempts_type, default=None, help="Retries after the first run")
    parser.add_argument(
        "--max-backoff",
        type=_seconds_type("--max-backoff", allow_zero=True),
        default=None,
        help="Longest delay between attempts, in seconds",
    )
    parser.add_argument(
        "--timeout",
        type=_seconds_type("--timeout", allow_zero=False),
        default=None,
        help="Give up once this many seconds have passed",
    )
    parser.add_argument("--config", type=Path, default=None)
    parser.add_argument("--log-level", type=_log_level_type, default=None)
    parser.add_argument(
        "--loop-log-level",
        type=_log_level_type,
        default=None,
        help="Level for per-attempt records; defaults to --log-level",
    )
    parser.add_argument("--log-file", type=Path, default=None)
    parser.add_argument("command", nargs=argparse.REMAINDER)
    return parser


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = build_parser()
    return parser.parse_args(argv)


def _command_argv(namespace: argparse.Namespace) -> list[str]:
    command = list(namespace.command)
    if command and command[0] == "--":
        command = command[1:]
    if not command:
        raise RetryLoopError(
            "No command given.",
            code=ExitCode.INVALID_ARGS,
            hint="Pass the command after '--', e.g. retryloop -- curl -f https://example.com",
        )
    if shutil.which(command[0]) is None:
        raise RetryLoopError(
            f"Command not found: {command[0]}",
            code=ExitCode.INVALID_ARGS,
            hint="Check the command name and PATH.",
        )
    return command


def _apply_overrides(namespace: argparse.Namespace, config: RetryConfig) -> RetryConfig:
    if namespace.attempts is not None:
        config.attempts = namespace.attempts
    if namespace.max_backoff is not None:
        config.max_backoff = namespace.max_backoff
    if namespace.timeout is not None:
        config.timeout = namespace.timeout
    if namespace.log_level is not None:
        config.log_level = namespace.log_level
    return config


def run_cli_flow(
    namespace: argparse.Namespace,
    config: RetryConfig,
    *,
    runner: Runner | None = None,
) -> int:
    command = _command_argv(namespace)
    operation = CommandRunner(command) if runner is None else CommandRunner(command, runner=runner)
    logger = py_logging.getLogger(__name__)
    logger.debug(
        "Retrying %s attempts=%s max_backoff=%s timeout=%s",
        operation.display,
        config.attempts,
        config.max_backoff,
        config.timeout,
    )

    try:
        retry_with_cancellation(config.cancel_token(), config.attempts, config.max_backoff, operation)
    except Cancelled as exc:
        raise RetryLoopError(
            f"Gave up on {operation.display}: {exc.message}",
            code=ExitCode.CANCELLED,
            hint="Increase --timeout or check why the command is slow.",
        ) from exc
    except CommandFailedError as exc:
        raise RetryLoopError(
            f"{exc.message} (after {len(operation.history)} attempts)",
            code=exc.code,
            hint=exc.hint or "Inspect the command output above.",
        ) from exc
    return int(ExitCode.SUCCESS)


def main(argv: Sequence[str] | None = None, *, runner: Runner | None = None) -> int:
    log_path = default_log_path()
    logger = configure_logging(log_file=log_path)
    parser = build_parser()
    try:
        namespace = parser.parse_args(argv)
    except SystemExit as exc:
        if exc.code not in (None, 0):
            logger.warning("Argument parsing failed with exit code %s", exc.code)
        return int(exc.code or 0)

    if namespace.log_file is not None:
        log_path = namespace.log_file.expanduser()
    config = _apply_overrides(namespace, load_config(namespace.config))
    logger = configure_logging(
        level=config.log_level,
        log_file=log_path,
        loop_level=namespace.loop_log_level,
    )

    try:
        logger.debug("Starting CLI flow")
        return run_cli_flow(namespace, config, runner=runner)
    except RetryLoopError as exc:
        logger.error(
            "Handled RetryLoopError (code=%s): %s",
            int(exc.code),
            exc.message,
            exc_info=logger.isEnabledFor(py_logging.DEBUG),
        )
        print(user_facing_error(exc.message, hint=exc.hint), file=sys.stderr)
        return int(exc.code)
    except KeyboardInterrupt:
        logger.warning("Interrupted by user")
        return int(ExitCode.INTERRUPTED)
    except Exception:
        logger.exception("Unhandled exception in CLI entrypoint")
        print(user_facing_error("Unexpected runtime failure", hint=f"Inspect logs: {log_path}"), file=sys.stderr)
        return int(ExitCode.RUNTIME_ERROR)


def run(argv: Sequence[str] | None = None) -> int:
    return main(argv)
