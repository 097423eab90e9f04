"""Run an external command as one retry attempt."""

from __future__ import annotations

import logging as py_logging
import shlex
import subprocess
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from .cancel import CancelToken
from .errors import CommandFailedError, ExitCode

logger = py_logging.getLogger(__name__)

Runner = Callable[..., subprocess.CompletedProcess]


@dataclass(frozen=True)
class CommandAttempt:
    argv: tuple[str, ...]
    returncode: int


class CommandRunner:
    """Callable operation for :func:`retryloop.retry.retry_with_cancellation`.

    Every call runs ``argv`` once, bounded by the token's remaining time, and
    raises :class:`CommandFailedError` unless the command exits with 0.
    """

    def __init__(self, argv: Sequence[str], *, runner: Runner = subprocess.run) -> None:
        self.argv = tuple(argv)
        self.runner = runner
        self.history: list[CommandAttempt] = []

    @property
    def display(self) -> str:
        return shlex.join(self.argv)

    def __call__(self, token: CancelToken) -> CommandAttempt:
        token.raise_if_cancelled()
        logger.debug("Running command: %s", self.display)
        try:
            completed = self.runner(
                list(self.argv),
                shell=False,
                timeout=token.remaining,
                check=False,
            )
        except subprocess.TimeoutExpired as exc:
            logger.error("Command timed out: %s", self.display)
            self.history.append(CommandAttempt(self.argv, 124))
            raise CommandFailedError(
                f"Command timed out: {self.display}",
                returncode=124,
                code=ExitCode.CANCELLED,
            ) from exc
        except FileNotFoundError as exc:
            self.history.append(CommandAttempt(self.argv, 127))
            raise CommandFailedError(
                f"Command not found: {self.argv[0]}",
                returncode=127,
                code=ExitCode.INVALID_ARGS,
                hint="Check the command name and PATH.",
            ) from exc
        except OSError as exc:
            self.history.append(CommandAttempt(self.argv, 126))
            raise CommandFailedError(
                f"Command could not start: {exc}",
                returncode=126,
            ) from exc

        attempt = CommandAttempt(self.argv, completed.returncode)
        self.history.append(attempt)
        if completed.returncode != 0:
            logger.warning("Command failed returncode=%s command=%s", completed.returncode, self.display)
            raise CommandFailedError(
                f"Command exited with status {completed.returncode}: {self.display}",
                returncode=completed.returncode,
            )
        return attempt
