"""Progress events for the idea-validation pipeline.

A ``ProgressEvent`` is a frozen dataclass written to an ``EventSink`` by the
engine and by the stages.  The stream is append-only: events are never
modified after emission and are delivered in emission order.
"""

from __future__ import annotations

import time
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .enums import EventKind
from .values import is_absent


@dataclass(frozen=True)
class ProgressEvent:
    """A single progress or telemetry record.

    Attributes
    ----------
    kind:
        One of the closed set of :class:`EventKind` values.
    message:
        Human-readable description.
    timestamp:
        Wall-clock time of emission (``time.time()``).
    stage:
        Name of the emitting stage, empty for engine-level events.
    payload:
        Optional structured data.  ``payload["channel"]`` tags info events
        as ``llm_call``, ``tool_call`` or ``tool_result`` for renderers.
    """

    kind: EventKind
    message: str = ""
    timestamp: float = field(default_factory=time.time)
    stage: str = ""
    payload: Mapping[str, Any] = field(default_factory=dict)

    @property
    def channel(self) -> str:
        return str(self.payload.get("channel", ""))

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-safe representation for transports."""
        data: dict[str, Any] = {
            "kind": self.kind.value,
            "timestamp": self.timestamp,
            "message": self.message,
        }
        if self.stage:
            data["stage"] = self.stage
        if self.payload:
            data["payload"] = to_jsonable(dict(self.payload))
        return data


def to_jsonable(value: Any) -> Any:
    """Recursively convert dataclasses, pydantic models and enums to plain data."""
    if is_absent(value):
        return None
    if hasattr(value, "model_dump"):
        return value.model_dump(mode="json")
    if hasattr(value, "__dataclass_fields__"):
        return {
            name: to_jsonable(getattr(value, name))
            for name in value.__dataclass_fields__
        }
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Mapping):
        return {str(k): to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_jsonable(v) for v in value]
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    return str(value)
