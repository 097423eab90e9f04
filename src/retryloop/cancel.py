"""Caller-owned, one-shot cancellation signal."""

from __future__ import annotations

import asyncio
import logging as py_logging
import threading
import time
from collections.abc import Callable

from .errors import Cancelled, DeadlineExceeded, InvalidArgumentError

logger = py_logging.getLogger(__name__)


class CancelToken:
    """A signal that fires at most once and remembers why.

    The owner calls :meth:`cancel`; everybody else observes it through
    :attr:`cancelled`, :meth:`wait` or :meth:`wait_async`. A token created with
    ``timeout`` fires by itself with :class:`DeadlineExceeded` once that many
    seconds have passed. The deadline is checked lazily whenever the token is
    observed, and every wait is clipped to it, so no background timer exists.
    """

    def __init__(self, *, timeout: float | None = None) -> None:
        if timeout is not None and timeout < 0:
            raise InvalidArgumentError(
                f"timeout cannot be less than 0 (got {timeout!r})",
                hint="Pass a positive timeout in seconds or None.",
            )
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._reason: BaseException | None = None
        self._callbacks: list[Callable[[], None]] = []
        self._deadline = time.monotonic() + timeout if timeout is not None else None

    def __repr__(self) -> str:
        state = "cancelled" if self._event.is_set() else "active"
        return f"CancelToken({state}, remaining={self.remaining!r})"

    def cancel(self, reason: BaseException | None = None) -> bool:
        with self._lock:
            if self._event.is_set():
                return False
            self._reason = reason if reason is not None else Cancelled()
            callbacks, self._callbacks = self._callbacks, []
            self._event.set()
        logger.debug("Cancel token fired: %s", self._reason)
        for callback in callbacks:
            callback()
        return True

    def _check_deadline(self) -> None:
        if self._deadline is not None and not self._event.is_set() and time.monotonic() >= self._deadline:
            self.cancel(DeadlineExceeded())

    @property
    def cancelled(self) -> bool:
        self._check_deadline()
        return self._event.is_set()

    @property
    def reason(self) -> BaseException | None:
        self._check_deadline()
        return self._reason

    @property
    def remaining(self) -> float | None:
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def _clip(self, timeout: float | None) -> float | None:
        remaining = self.remaining
        if remaining is None:
            return timeout
        if timeout is None:
            return remaining
        return min(timeout, remaining)

    def raise_if_cancelled(self) -> None:
        reason = self.reason
        if reason is not None:
            raise reason

    def add_callback(self, callback: Callable[[], None]) -> None:
        with self._lock:
            if not self._event.is_set():
                self._callbacks.append(callback)
                return
        callback()

    def remove_callback(self, callback: Callable[[], None]) -> None:
        with self._lock:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

    def wait(self, timeout: float | None = None) -> bool:
        """Block until the token fires or ``timeout`` seconds pass."""
        if self.cancelled:
            return True
        self._event.wait(self._clip(timeout))
        return self.cancelled

    async def wait_async(self, timeout: float | None = None) -> bool:
        """Suspend until the token fires or ``timeout`` seconds pass.

        ``cancel`` may be called from any thread; the waiter is woken through
        the running loop and unregistered on every exit path.
        """
        if self.cancelled:
            return True
        loop = asyncio.get_running_loop()
        waiter: asyncio.Future[None] = loop.create_future()

        def _resolve() -> None:
            if not waiter.done():
                waiter.set_result(None)

        def _wake() -> None:
            loop.call_soon_threadsafe(_resolve)

        self.add_callback(_wake)
        try:
            await asyncio.wait_for(waiter, self._clip(timeout))
        except TimeoutError:
            pass
        finally:
            self.remove_callback(_wake)
            waiter.cancel()
        return self.cancelled
