"""Exponential backoff with jitter.

The delay reaches ``max_backoff`` by the third retry. Before that, the base
delay is ``max_backoff / 8`` doubled once per attempt, plus a random jitter in
``[0, unit * attempt)`` so that many callers retrying in lockstep drift apart.

    attempt   base delay        jitter bound
    0         0                 -
    1         max / 4           max / 8
    2         max / 2           max / 4
    3+        max               -
"""

from __future__ import annotations

import random

from .errors import InvalidArgumentError

# 2 ** 3 == 8: the ceiling is reached on attempt 3.
CEILING_ATTEMPT = 3
_UNIT_DIVISOR = 2**CEILING_ATTEMPT


def backoff(attempt: int, max_backoff: float, *, rng: random.Random | None = None) -> float:
    """Return the delay in seconds to wait before ``attempt``.

    Attempt 0 fires immediately. The result is always within
    ``[0, max_backoff]`` for any integer ``attempt``.
    """
    if max_backoff < 0:
        raise InvalidArgumentError(
            f"max_backoff cannot be less than 0 (got {max_backoff!r})",
            hint="Pass a non-negative maximum backoff in seconds.",
        )
    if attempt < 1:
        return 0.0
    # From attempt 3 on the base delay alone is max_backoff, whatever the jitter.
    if attempt >= CEILING_ATTEMPT or max_backoff == 0:
        return float(max_backoff)

    unit = max_backoff / _UNIT_DIVISOR
    jitter_bound = unit * attempt
    draw = (rng or random).random()
    delay = unit * (1 << attempt) + draw * jitter_bound

    if delay < 0 or delay > max_backoff:
        return float(max_backoff)
    return delay
