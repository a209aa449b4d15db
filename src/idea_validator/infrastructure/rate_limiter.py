"""Slot-reserving rate limiter for a quota-limited external API.

One ``RateLimiter`` instance guards one external service and is shared by
every caller of that service, across concurrent tasks and across pipeline
runs.  It is constructed explicitly and injected into the client it guards.

Pacing works by reservation: ``acquire()`` reads and advances the next free
slot *before* suspending, so concurrent callers each receive a distinct,
strictly increasing slot instead of computing the same wait.
"""

from __future__ import annotations

import asyncio
import logging
import threading
import time
from collections.abc import Awaitable, Callable
from types import TracebackType

logger = logging.getLogger(__name__)

Clock = Callable[[], float]
Sleep = Callable[[float], Awaitable[None]]


class RateLimiter:
    """Allow at most one release per ``interval`` seconds.

    Parameters
    ----------
    interval:
        Minimum spacing, in seconds, between two consecutive releases.
    clock:
        Monotonic time source.  Defaults to :func:`time.monotonic`.
    sleep:
        Coroutine used to suspend the caller.  Defaults to
        :func:`asyncio.sleep`.
    name:
        Label used in log messages.

    Usage::

        limiter = RateLimiter(interval=5.6, name="twitter")
        await limiter.acquire()
        ...  # guarded call

        async with limiter:
            ...  # guarded call
    """

    def __init__(
        self,
        interval: float,
        clock: Clock = time.monotonic,
        sleep: Sleep = asyncio.sleep,
        name: str = "",
    ) -> None:
        if interval < 0:
            raise ValueError(f"interval must be >= 0, got {interval}")
        self._interval = interval
        self._clock = clock
        self._sleep = sleep
        self._name = name or "rate-limiter"
        self._lock = threading.Lock()
        self._next_allowed = float("-inf")

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def reserved_until(self) -> float:
        """Earliest instant the next caller may be released."""
        with self._lock:
            return self._next_allowed

    def reserve(self) -> float:
        """Atomically claim the next free slot and return its start time."""
        with self._lock:
            now = self._clock()
            slot = max(now, self._next_allowed)
            self._next_allowed = slot + self._interval
            return slot

    async def acquire(self) -> None:
        """Wait until it is safe to issue one guarded call."""
        slot = self.reserve()
        wait = slot - self._clock()
        if wait > 0:
            logger.debug("%s: waiting %.2fs for slot", self._name, wait)
            await self._sleep(wait)

    async def __aenter__(self) -> RateLimiter:
        await self.acquire()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        return None

    def __repr__(self) -> str:
        return f"RateLimiter(name={self._name!r}, interval={self._interval})"
