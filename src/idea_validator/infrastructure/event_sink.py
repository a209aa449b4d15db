"""Event sinks for pipeline progress events.

The engine and the stages write :class:`ProgressEvent` instances to an
``EventSink`` -- a single fire-and-forget ``emit`` method that must never
block the pipeline.  This module provides the sinks the package ships:

* ``EventBus`` -- pub-sub fan-out to handlers, isolating handler errors.
* ``EventStore`` -- in-memory append-only store for inspection and tests.
* ``CallbackSink`` -- adapts a plain callable.
* ``LoggingSink`` -- mirrors events into :mod:`logging`.
* ``QueueSink`` -- bounded queue for transports, drops the oldest event
  instead of blocking when full.

``heartbeat()`` is a helper coroutine transports can run alongside a
pipeline to keep idle connections alive.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from collections import defaultdict, deque
from collections.abc import Callable, Sequence
from typing import Protocol, runtime_checkable

from idea_validator.domain.enums import EventKind
from idea_validator.domain.events import ProgressEvent

logger = logging.getLogger(__name__)

Handler = Callable[[ProgressEvent], None]


@runtime_checkable
class EventSink(Protocol):
    """Anything that accepts progress events."""

    def emit(self, event: ProgressEvent) -> None: ...


# ===================================================================== #
#  Event Bus                                                             #
# ===================================================================== #

class EventBus:
    """Thread-safe synchronous pub-sub for progress events.

    Handlers are invoked **in registration order**.  A handler that raises
    is logged and skipped; subsequent handlers still execute, so a broken
    consumer never stalls the pipeline.

    Usage::

        bus = EventBus()
        bus.subscribe(EventKind.WARNING, my_handler)
        bus.subscribe_all(store.emit)
        bus.emit(ProgressEvent(kind=EventKind.INFO, message="hello"))
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._handlers: dict[EventKind, list[Handler]] = defaultdict(list)
        self._global_handlers: list[Handler] = []

    # -- subscription -------------------------------------------------------

    def subscribe(self, kind: EventKind, handler: Handler) -> None:
        """Register *handler* for a specific event *kind*."""
        with self._lock:
            self._handlers[kind].append(handler)

    def subscribe_all(self, handler: Handler) -> None:
        """Register *handler* to receive **every** emitted event."""
        with self._lock:
            self._global_handlers.append(handler)

    def unsubscribe(self, kind: EventKind, handler: Handler) -> bool:
        """Remove *handler* from *kind*. Returns ``True`` if found."""
        with self._lock:
            handlers = self._handlers.get(kind, [])
            try:
                handlers.remove(handler)
                return True
            except ValueError:
                return False

    def unsubscribe_all(self, handler: Handler) -> bool:
        """Remove a global handler. Returns ``True`` if found."""
        with self._lock:
            try:
                self._global_handlers.remove(handler)
                return True
            except ValueError:
                return False

    # -- publishing ---------------------------------------------------------

    def emit(self, event: ProgressEvent) -> None:
        """Deliver *event* to all matching handlers (global first, then typed)."""
        with self._lock:
            global_snapshot = list(self._global_handlers)
            typed_snapshot = list(self._handlers.get(event.kind, []))

        for handler in global_snapshot:
            try:
                handler(event)
            except Exception:
                logger.exception("Error in global event handler %r", handler)

        for handler in typed_snapshot:
            try:
                handler(event)
            except Exception:
                logger.exception(
                    "Error in handler %r for %s", handler, event.kind.value
                )

    def emit_many(self, events: Sequence[ProgressEvent]) -> None:
        """Emit a batch of events in order."""
        for event in events:
            self.emit(event)

    def handler_count(self, kind: EventKind | None = None) -> int:
        with self._lock:
            if kind is not None:
                return len(self._handlers.get(kind, []))
            total = sum(len(hs) for hs in self._handlers.values())
            return total + len(self._global_handlers)

    def clear(self) -> None:
        """Remove all registered handlers."""
        with self._lock:
            self._handlers.clear()
            self._global_handlers.clear()


# ===================================================================== #
#  Event Store                                                           #
# ===================================================================== #

class EventStore:
    """In-memory append-only event store.

    Can be used directly as a sink or wired to an ``EventBus`` via
    ``subscribe_all(store.emit)``.
    """

    def __init__(self, max_size: int = 0) -> None:
        """Create a store.

        Parameters
        ----------
        max_size:
            Maximum number of events to keep.  ``0`` means unlimited.
        """
        self._events: list[ProgressEvent] = []
        self._max_size = max_size
        self._lock = threading.Lock()

    def emit(self, event: ProgressEvent) -> None:
        """Append a single event, evicting the oldest past *max_size*."""
        with self._lock:
            self._events.append(event)
            if self._max_size > 0 and len(self._events) > self._max_size:
                self._events = self._events[-self._max_size:]

    def query(
        self,
        kind: EventKind | None = None,
        stage: str | None = None,
        limit: int = 0,
    ) -> list[ProgressEvent]:
        """Return events matching the optional filters, in emission order."""
        with self._lock:
            result = list(self._events)

        if kind is not None:
            result = [e for e in result if e.kind is kind]
        if stage is not None:
            result = [e for e in result if e.stage == stage]
        if limit > 0:
            result = result[-limit:]
        return result

    @property
    def events(self) -> list[ProgressEvent]:
        with self._lock:
            return list(self._events)

    @property
    def latest(self) -> ProgressEvent | None:
        with self._lock:
            return self._events[-1] if self._events else None

    def kinds(self) -> list[EventKind]:
        return [e.kind for e in self.events]

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)

    def __bool__(self) -> bool:
        return len(self) > 0

    def clear(self) -> None:
        with self._lock:
            self._events.clear()


# ===================================================================== #
#  Adapters                                                              #
# ===================================================================== #

class CallbackSink:
    """Adapt a plain ``callable(event)`` to the sink interface.

    Errors raised by the callback are logged and swallowed.
    """

    def __init__(self, callback: Handler) -> None:
        self._callback = callback

    def emit(self, event: ProgressEvent) -> None:
        try:
            self._callback(event)
        except Exception:
            logger.exception("Error in event callback %r", self._callback)


_LOG_LEVELS = {
    EventKind.WARNING: logging.WARNING,
    EventKind.ERROR: logging.ERROR,
    EventKind.HEARTBEAT: logging.DEBUG,
}


class LoggingSink:
    """Mirror progress events into a logger."""

    def __init__(self, logger_name: str = "idea_validator.events") -> None:
        self._logger = logging.getLogger(logger_name)

    def emit(self, event: ProgressEvent) -> None:
        level = _LOG_LEVELS.get(event.kind, logging.INFO)
        prefix = f"[{event.stage}] " if event.stage else ""
        self._logger.log(level, "%s%s: %s", prefix, event.kind.value, event.message)


class QueueSink:
    """Bounded outbound buffer for a transport.

    ``emit`` never blocks: when the buffer is full the oldest undelivered
    event is dropped and counted in :attr:`dropped`.  The transport drains
    the buffer with :meth:`get` / :meth:`drain`.
    """

    def __init__(self, max_size: int = 1000) -> None:
        if max_size < 1:
            raise ValueError(f"max_size must be >= 1, got {max_size}")
        self._buffer: deque[ProgressEvent] = deque(maxlen=max_size)
        self._lock = threading.Lock()
        self._ready = asyncio.Event()
        self.dropped = 0

    def emit(self, event: ProgressEvent) -> None:
        with self._lock:
            if len(self._buffer) == self._buffer.maxlen:
                self.dropped += 1
            self._buffer.append(event)
        self._ready.set()

    async def get(self) -> ProgressEvent:
        """Wait for and remove the oldest buffered event."""
        while True:
            with self._lock:
                if self._buffer:
                    event = self._buffer.popleft()
                    if not self._buffer:
                        self._ready.clear()
                    return event
                self._ready.clear()
            await self._ready.wait()

    def drain(self) -> list[ProgressEvent]:
        """Remove and return everything currently buffered."""
        with self._lock:
            events = list(self._buffer)
            self._buffer.clear()
            self._ready.clear()
        return events

    def __len__(self) -> int:
        with self._lock:
            return len(self._buffer)


async def heartbeat(
    sink: EventSink,
    interval: float,
    stop: asyncio.Event,
) -> int:
    """Emit ``heartbeat`` events every *interval* seconds until *stop* is set.

    Returns the number of heartbeats sent.
    """
    sent = 0
    while not stop.is_set():
        try:
            await asyncio.wait_for(stop.wait(), timeout=interval)
        except asyncio.TimeoutError:
            sink.emit(ProgressEvent(kind=EventKind.HEARTBEAT))
            sent += 1
    return sent
