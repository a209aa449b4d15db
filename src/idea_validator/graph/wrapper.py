"""Fault isolation for research stages.

``wrap_stage`` turns a stage function ``(state, ctx) -> patch`` into a
LangGraph node ``(state) -> patch`` that never raises: any ``Exception``
becomes a warning event plus the stage's fallback patch.  Cancellation is
not caught, so an aborted run still unwinds.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Mapping
from typing import Any

from idea_validator.graph.context import RunContext

logger = logging.getLogger(__name__)

StageFn = Callable[[Mapping[str, Any], RunContext], Awaitable[dict[str, Any]]]
FallbackFn = Callable[[Mapping[str, Any]], dict[str, Any]]
NodeFn = Callable[[Mapping[str, Any]], Awaitable[dict[str, Any]]]


def failure_message(name: str, exc: BaseException, preview_chars: int = 80) -> str:
    text = str(exc) or type(exc).__name__
    return f"{name} failed: {text[:preview_chars]} - continuing with partial data"


def wrap_stage(
    name: str,
    stage_fn: StageFn,
    fallback_fn: FallbackFn,
    ctx: RunContext,
) -> NodeFn:
    """Bind *stage_fn* to *ctx* and guard it with *fallback_fn*."""
    emitter = ctx.emitter_for(name)
    preview = ctx.config.error_preview_chars

    async def node(state: Mapping[str, Any]) -> dict[str, Any]:
        try:
            return await stage_fn(state, ctx)
        except Exception as exc:
            logger.warning("stage %s failed: %s", name, exc, exc_info=True)
            emitter.warning(failure_message(name, exc, preview), error=type(exc).__name__)
            return fallback_fn(state)

    node.__name__ = f"{name}_node"
    return node
