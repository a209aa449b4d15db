"""Consume a research run as an asynchronous stream of progress events.

``stream_events()`` runs the pipeline in a background task that writes to a
bounded :class:`QueueSink` and yields events as they arrive, ending after the
single ``terminal_result`` or ``error`` event.  An optional heartbeat keeps
an idle transport busy during long stages.  Closing the iterator early sets
the run's abort event, so the pipeline stops before its next stage.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Mapping
from typing import Any

from idea_validator.domain.enums import EventKind
from idea_validator.domain.events import ProgressEvent
from idea_validator.domain.exceptions import IdeaValidatorError
from idea_validator.graph.engine import ResearchPipeline
from idea_validator.infrastructure.event_sink import QueueSink, heartbeat

logger = logging.getLogger(__name__)

_FINAL_KINDS = frozenset({EventKind.TERMINAL_RESULT, EventKind.ERROR})


async def stream_events(
    pipeline: ResearchPipeline,
    initial_input: Mapping[str, Any] | str,
    max_buffer: int = 1000,
    heartbeat_interval: float | None = None,
) -> AsyncIterator[ProgressEvent]:
    """Yield the events of one run in emission order.

    Parameters
    ----------
    pipeline:
        The pipeline to run.
    initial_input:
        ``{"idea": ..., "description": ...}`` or the idea text.
    max_buffer:
        Capacity of the outbound buffer; the oldest events are dropped when
        the consumer falls behind.
    heartbeat_interval:
        When set, a ``heartbeat`` event is queued every *heartbeat_interval*
        seconds while the run is in progress, so an idle transport can keep
        its connection alive.

    Yields
    ------
    ProgressEvent
        Every event of the run, the last one being ``terminal_result`` or
        ``error``.
    """
    sink = QueueSink(max_buffer)
    abort = asyncio.Event()
    task = asyncio.create_task(pipeline.run(initial_input, sink=sink, abort=abort))
    stop_beats = asyncio.Event()
    beats: asyncio.Task[int] | None = None
    if heartbeat_interval is not None:
        beats = asyncio.create_task(heartbeat(sink, heartbeat_interval, stop_beats))
    try:
        while True:
            getter = asyncio.ensure_future(sink.get())
            await asyncio.wait({getter, task}, return_when=asyncio.FIRST_COMPLETED)
            if not getter.done():
                # Run ended without a final event; flush what is left.
                getter.cancel()
                for event in sink.drain():
                    yield event
                break
            event = getter.result()
            yield event
            if event.kind in _FINAL_KINDS and event.stage == "":
                break
    finally:
        stop_beats.set()
        if not task.done():
            abort.set()
        try:
            await task
        except IdeaValidatorError as exc:
            logger.debug("streamed run ended with %s", type(exc).__name__)
        if beats is not None:
            sent = await beats
            logger.debug("sent %d heartbeat(s)", sent)
        if sink.dropped:
            logger.warning("dropped %d progress event(s) for a slow consumer", sink.dropped)


def format_event(event: ProgressEvent) -> dict[str, Any]:
    """Flatten an event into a transport-ready dict with a ``type`` key."""
    data = event.to_dict()
    data["type"] = data.pop("kind")
    return data


__all__ = ["format_event", "stream_events"]
