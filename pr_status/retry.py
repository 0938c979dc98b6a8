"""Bounded polling for eventually consistent GitHub state."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Iterator
from dataclasses import dataclass, field
from typing import Generic, TypeVar

import trio

from .config import PULL_REQUEST_FETCH_DELAY, PULL_REQUEST_FETCH_MAX_ATTEMPTS

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class PollResult(Generic[T]):
    """Outcome of a poll: the last value fetched and whether it satisfied the predicate."""

    value: T
    attempts: int
    satisfied: bool


@dataclass
class RetryPolicy:
    """Re-run a fetch until a predicate holds or attempts run out.

    The delay before attempt ``n + 1`` is ``delay * backoff ** (n - 1)``; the
    default backoff of 1.0 gives a fixed delay. ``sleep`` is injectable so
    tests can run without waiting. Cancelling the enclosing trio scope stops
    the poll at the next sleep or fetch.
    """

    max_attempts: int = PULL_REQUEST_FETCH_MAX_ATTEMPTS
    delay: float = PULL_REQUEST_FETCH_DELAY
    backoff: float = 1.0
    sleep: Callable[[float], Awaitable[None]] = field(default=trio.sleep, repr=False)

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.delay < 0:
            raise ValueError("delay must not be negative")
        if self.backoff < 1.0:
            raise ValueError("backoff must be at least 1.0")

    def delays(self) -> Iterator[float]:
        """Delays between consecutive attempts (one fewer than max_attempts)."""
        current = self.delay
        for _ in range(self.max_attempts - 1):
            yield current
            current *= self.backoff

    async def poll(
        self,
        fetch: Callable[[], Awaitable[T]],
        until: Callable[[T], bool],
    ) -> PollResult[T]:
        """Fetch until ``until(value)`` is true, returning early on success."""
        delays = self.delays()
        attempt = 0
        while True:
            attempt += 1
            value = await fetch()
            if until(value):
                return PollResult(value=value, attempts=attempt, satisfied=True)

            wait = next(delays, None)
            if wait is None:
                return PollResult(value=value, attempts=attempt, satisfied=False)

            logger.debug(f"Attempt {attempt}/{self.max_attempts} not ready, retrying in {wait:.2f}s")
            await self.sleep(wait)
