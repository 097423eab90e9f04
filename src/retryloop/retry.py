"""Retry loops with exponential backoff between attempts.

Two flavors share the same timing:

* :func:`retry` is a plain blocking loop driven by a boolean: the operation
  returns ``True`` to ask for another attempt. It has no error channel, so
  the operation keeps its own outcome in a closure::

      error = None

      def attempt() -> bool:
          nonlocal error
          try:
              do_something()
          except OSError as exc:
              error = exc
              return True
          error = None
          return False

      retry(6, 5.0, attempt)

* :func:`retry_with_cancellation` (and the asyncio
  :func:`aretry_with_cancellation`) retries until the operation returns
  without raising, racing each backoff delay against a :class:`CancelToken`.
  If the operation ignores the token, the attempt already running is allowed
  to finish; no new attempt starts once the token has fired.
"""

from __future__ import annotations

import logging as py_logging
import time
from collections.abc import Awaitable, Callable
from typing import NoReturn, TypeVar

from .backoff import backoff
from .cancel import CancelToken
from .errors import InvalidArgumentError

T = TypeVar("T")

logger = py_logging.getLogger(__name__)


def _validate(attempts: int, max_backoff: float) -> None:
    if attempts < 0:
        raise InvalidArgumentError(
            f"attempts cannot be less than 0 (got {attempts!r})",
            hint="Use 0 for a single attempt without retries.",
        )
    if max_backoff < 0:
        raise InvalidArgumentError(
            f"max_backoff cannot be less than 0 (got {max_backoff!r})",
            hint="Pass a non-negative maximum backoff in seconds.",
        )


def _tag(attempt: int, attempts: int) -> dict[str, str]:
    return {"attempt": f"{attempt + 1}/{attempts + 1}"}


def retry(
    attempts: int,
    max_backoff: float,
    operation: Callable[[], bool],
    *,
    sleep: Callable[[float], None] = time.sleep,
) -> None:
    """Call ``operation`` up to ``attempts + 1`` times.

    Each call is preceded by ``sleep(backoff(i, max_backoff))``. The loop stops
    as soon as ``operation`` returns a falsy value. A negative ``attempts``
    makes no call and a negative ``max_backoff`` never sleeps; this loop
    reports nothing to its caller.
    """
    ceiling = max(max_backoff, 0.0)
    for attempt in range(attempts + 1):
        sleep(backoff(attempt, ceiling))
        if not operation():
            logger.debug("Stopped by operation", extra=_tag(attempt, attempts))
            return
        logger.debug("Operation asked to retry", extra=_tag(attempt, attempts))


def _cancelled(token: CancelToken, attempt: int, attempts: int) -> BaseException:
    reason = token.reason
    if reason is None:
        raise RuntimeError("Cancel token fired without a reason.")
    logger.info("Retry loop cancelled: %s", reason, extra=_tag(attempt, attempts))
    # Shared by every sequence that sees this token: never chain onto it.
    return reason.with_traceback(None)


def _give_up(attempts: int, last_error: Exception | None) -> NoReturn:
    if last_error is None:
        raise RuntimeError("Retry loop exhausted without executing operation.")
    logger.warning("Giving up: %s", last_error, extra=_tag(attempts, attempts))
    note = f"giving up after {attempts + 1} attempts"
    if note not in getattr(last_error, "__notes__", ()):
        last_error.add_note(note)
    raise last_error


def retry_with_cancellation(
    token: CancelToken,
    attempts: int,
    max_backoff: float,
    operation: Callable[[CancelToken], T],
) -> T:
    """Call ``operation(token)`` until it returns, up to ``attempts + 1`` times.

    Returns the value of the first call that does not raise. Raises
    :class:`InvalidArgumentError` for a negative ``attempts`` or
    ``max_backoff``, the token's reason once the token has fired, and the last
    exception raised by ``operation`` when every attempt failed.
    """
    _validate(attempts, max_backoff)

    last_error: Exception | None = None
    for attempt in range(attempts + 1):
        if token.wait(backoff(attempt, max_backoff)):
            raise _cancelled(token, attempt, attempts)
        try:
            return operation(token)
        except Exception as exc:
            logger.debug("Attempt failed: %s", exc, extra=_tag(attempt, attempts))
            last_error = exc
        if token.cancelled:
            raise _cancelled(token, attempt, attempts)
    _give_up(attempts, last_error)


async def aretry_with_cancellation(
    token: CancelToken,
    attempts: int,
    max_backoff: float,
    operation: Callable[[CancelToken], Awaitable[T]],
) -> T:
    """Asyncio flavor of :func:`retry_with_cancellation`.

    Backoff delays are awaited through :meth:`CancelToken.wait_async`.
    Cancelling the task running this coroutine propagates immediately.
    """
    _validate(attempts, max_backoff)

    last_error: Exception | None = None
    for attempt in range(attempts + 1):
        if await token.wait_async(backoff(attempt, max_backoff)):
            raise _cancelled(token, attempt, attempts)
        try:
            return await operation(token)
        except Exception as exc:
            logger.debug("Attempt failed: %s", exc, extra=_tag(attempt, attempts))
            last_error = exc
        if token.cancelled:
            raise _cancelled(token, attempt, attempts)
    _give_up(attempts, last_error)
