"""Concurrent fan-out with per-task timeouts, plus first-seen deduplication.

``gather_all`` launches every task at once, races each one against its own
timeout, and reports one :class:`Envelope` per task in input order.  A
failure or timeout in one task never cancels or delays its siblings, and
nothing raised by a task escapes the aggregator.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Hashable, Iterable, Sequence
from typing import TypeVar

from idea_validator.domain.exceptions import FanoutTimeout
from idea_validator.domain.values import Envelope

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def _settle(
    task: Awaitable[T],
    timeout: float | None,
    label: str,
) -> Envelope[T]:
    try:
        if timeout is None:
            value = await task
        else:
            value = await asyncio.wait_for(task, timeout=timeout)
    except asyncio.TimeoutError:
        logger.warning("fan-out task %s timed out after %.1fs", label, timeout)
        return Envelope.failed(FanoutTimeout(f"timeout after {timeout}s", timeout=timeout or 0.0))
    except Exception as exc:
        logger.warning("fan-out task %s failed: %s", label, exc)
        return Envelope.failed(exc)
    return Envelope.ok(value)


async def gather_all(
    tasks: Sequence[Awaitable[T]],
    per_task_timeout: float | None = None,
    labels: Sequence[str] | None = None,
) -> list[Envelope[T]]:
    """Run *tasks* concurrently and collect one envelope per task.

    Parameters
    ----------
    tasks:
        Awaitables (usually un-awaited coroutines) to run.
    per_task_timeout:
        Seconds each task may take; ``None`` disables the timeout.
    labels:
        Optional names used in log messages, aligned with *tasks*.

    Returns
    -------
    list[Envelope]
        Same length and order as *tasks*.
    """
    names = list(labels) if labels is not None else [f"#{i}" for i in range(len(tasks))]
    if len(names) != len(tasks):
        raise ValueError(f"got {len(names)} labels for {len(tasks)} tasks")
    return list(
        await asyncio.gather(
            *(_settle(task, per_task_timeout, name) for task, name in zip(tasks, names))
        )
    )


def dedupe_by_key(
    items: Iterable[T],
    key: Callable[[T], Hashable | None],
) -> list[T]:
    """Drop items whose key was already seen, keeping first-seen order.

    Items whose key is ``None`` or empty are dropped as well.
    """
    seen: set[Hashable] = set()
    unique: list[T] = []
    for item in items:
        k = key(item)
        if k is None or k == "" or k in seen:
            continue
        seen.add(k)
        unique.append(item)
    return unique


def successful_values(envelopes: Iterable[Envelope[list[T]]]) -> list[T]:
    """Concatenate the list values of the envelopes that succeeded."""
    merged: list[T] = []
    for envelope in envelopes:
        merged.extend(envelope.value_or([]))
    return merged
