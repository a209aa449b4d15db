"""Latency hiding: start a slow, independent task early and join it later.

``Prefetcher.start()`` schedules a coroutine as a detached ``asyncio.Task``
and returns a :class:`PrefetchHandle`.  Joining the handle awaits the task
once and memoizes the outcome, so joining again (or after the task settled)
returns the very same result -- or re-raises the very same exception --
without running the work twice.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Coroutine
from typing import Any, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

_PENDING = object()


class PrefetchHandle(Generic[T]):
    """Handle on one background task started by :class:`Prefetcher`."""

    def __init__(self, task: asyncio.Task[T], name: str = "") -> None:
        self._task = task
        self._name = name or task.get_name()
        self._result: Any = _PENDING
        self._error: BaseException | None = None

    @property
    def name(self) -> str:
        return self._name

    @property
    def done(self) -> bool:
        return self._task.done()

    @property
    def joined(self) -> bool:
        return self._result is not _PENDING or self._error is not None

    async def join(self) -> T:
        """Wait for the task and return its result (memoized)."""
        if self._error is not None:
            raise self._error
        if self._result is not _PENDING:
            return self._result
        try:
            self._result = await self._task
        except Exception as exc:
            self._error = exc
            logger.debug("prefetch %s failed: %s", self._name, exc)
            raise
        return self._result

    def cancel(self) -> bool:
        """Cancel the task if it has not finished. Returns ``True`` if cancelled."""
        if self._task.done():
            return False
        logger.debug("cancelling prefetch %s", self._name)
        return self._task.cancel()

    def __repr__(self) -> str:
        state = "joined" if self.joined else ("done" if self.done else "running")
        return f"PrefetchHandle(name={self._name!r}, state={state})"


class Prefetcher:
    """Starts background tasks for one pipeline run and keeps their handles."""

    def __init__(self) -> None:
        self._handles: dict[str, PrefetchHandle[Any]] = {}

    def start(
        self,
        name: str,
        factory: Callable[[], Coroutine[Any, Any, T]],
    ) -> PrefetchHandle[T]:
        """Start ``factory()`` in the background under *name*.

        Starting a name that is already running returns the existing handle.
        """
        existing = self._handles.get(name)
        if existing is not None:
            return existing
        task = asyncio.get_running_loop().create_task(factory(), name=f"prefetch:{name}")
        # Marks a failure as retrieved; join() still re-raises it.
        task.add_done_callback(_consume_exception)
        handle: PrefetchHandle[T] = PrefetchHandle(task, name)
        self._handles[name] = handle
        logger.debug("started prefetch %s", name)
        return handle

    def get(self, name: str) -> PrefetchHandle[Any] | None:
        return self._handles.get(name)

    async def join(self, handle: PrefetchHandle[T]) -> T:
        return await handle.join()

    def cancel_pending(self) -> int:
        """Cancel every unfinished task. Returns how many were cancelled."""
        return sum(1 for handle in self._handles.values() if handle.cancel())


def _consume_exception(task: asyncio.Task[Any]) -> None:
    if not task.cancelled():
        task.exception()
