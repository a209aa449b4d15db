"""Pipeline engine: validates input, drives the graph, guards the run state.

``ResearchPipeline.run()`` streams the compiled graph with
``stream_mode="updates"`` so it sees every stage patch as it lands.  For each
patch it checks field ownership and types before merging it by whole-field
replacement, and it stops between stages once the caller's abort event is
set.

The engine never raises for a stage failure (stages degrade through their
fallbacks).  It raises only for:

* invalid input -> :class:`InvalidInputError`
* a broken invariant -> :class:`InvariantViolation`
* an abort -> :class:`PipelineAborted`

A successful run ends with exactly one ``terminal_result`` event, a fatal
one with exactly one ``error`` event.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from contextlib import aclosing
from typing import Any

from langgraph.errors import InvalidUpdateError

from idea_validator.domain.enums import EventKind
from idea_validator.domain.exceptions import (
    IdeaValidatorError,
    InvalidInputError,
    InvariantViolation,
    PipelineAborted,
)
from idea_validator.domain.schemas import Verdict
from idea_validator.graph.context import PipelineServices, RunContext, StageEmitter
from idea_validator.graph.graph import STAGES, StageSpec, build_research_graph
from idea_validator.graph.state import FIELD_TYPES, ResearchState, initial_state, merge_patch
from idea_validator.infrastructure.config import PipelineConfig
from idea_validator.infrastructure.event_sink import EventSink, LoggingSink
from idea_validator.services.prefetch import Prefetcher

logger = logging.getLogger(__name__)


class ResearchPipeline:
    """Runs the fixed research chain for one idea at a time.

    Parameters
    ----------
    services:
        External collaborators shared across runs.
    config:
        Timeouts and constants; validated on construction.
    stages:
        Ordered stage table.  Defaults to :data:`STAGES`.
    """

    def __init__(
        self,
        services: PipelineServices,
        config: PipelineConfig | None = None,
        stages: tuple[StageSpec, ...] = STAGES,
    ) -> None:
        self._services = services
        self._config = config or PipelineConfig()
        self._config.validate()
        self._stages = stages
        self._owners = {spec.name: spec.writes for spec in stages}

    @property
    def config(self) -> PipelineConfig:
        return self._config

    @property
    def stage_names(self) -> tuple[str, ...]:
        return tuple(spec.name for spec in self._stages)

    # -- input -----------------------------------------------------------------

    def validate_input(self, initial_input: Mapping[str, Any] | str) -> tuple[str, str]:
        """Return ``(idea, description)`` or raise :class:`InvalidInputError`."""
        if isinstance(initial_input, str):
            idea: Any = initial_input
            description: Any = ""
        elif isinstance(initial_input, Mapping):
            idea = initial_input.get("idea")
            description = initial_input.get("description") or ""
        else:
            raise InvalidInputError(
                f"Expected a mapping or a string, got {type(initial_input).__name__}",
                field="idea",
            )
        if not isinstance(idea, str) or not idea.strip():
            raise InvalidInputError("Idea must be a non-empty string", field="idea")
        idea = idea.strip()
        minimum = self._config.min_idea_length
        if len("".join(idea.split())) < minimum:
            raise InvalidInputError(
                f"Idea must contain at least {minimum} non-blank characters",
                field="idea",
                details={"length": len(idea)},
            )
        if not isinstance(description, str):
            raise InvalidInputError("Description must be a string", field="description")
        return idea, description.strip()

    # -- run -------------------------------------------------------------------

    async def run(
        self,
        initial_input: Mapping[str, Any] | str,
        sink: EventSink | None = None,
        abort: asyncio.Event | None = None,
    ) -> ResearchState:
        """Run every stage in order and return the final run state.

        The returned state always holds a :class:`Verdict`.
        """
        emitter = StageEmitter(sink if sink is not None else LoggingSink())
        try:
            idea, description = self.validate_input(initial_input)
        except InvalidInputError as exc:
            emitter.error(str(exc), error=type(exc).__name__, field=exc.field)
            raise

        ctx = RunContext(
            services=self._services,
            emitter=emitter,
            config=self._config,
            prefetcher=Prefetcher(),
            abort=abort,
        )
        completed: list[str] = []
        app = build_research_graph(ctx, self._stages, completed)
        state: dict[str, Any] = dict(initial_state(idea, description))

        logger.info("research run started: %r", idea)
        emitter.info(f'Starting research on "{idea}"', idea=idea)
        try:
            if ctx.aborted:
                raise PipelineAborted("Run aborted before the first stage")
            async with aclosing(app.astream(state, stream_mode="updates")) as stream:
                async for chunk in stream:
                    for node_name, patch in chunk.items():
                        state = self._apply(state, node_name, patch)
                    if ctx.aborted and len(completed) < len(self._stages):
                        raise PipelineAborted(
                            f"Run aborted after {completed[-1] if completed else 'start'}",
                            completed_stages=tuple(completed),
                        )
            if not isinstance(state.get("verdict"), Verdict):
                raise InvariantViolation("Run finished without a verdict", stage="synthesis")
        except InvalidUpdateError as exc:
            violation = InvariantViolation(f"Invalid stage update: {exc}")
            self._fail(emitter, violation)
            raise violation from exc
        except IdeaValidatorError as exc:
            self._fail(emitter, exc)
            raise
        finally:
            cancelled = ctx.prefetcher.cancel_pending()
            if cancelled:
                logger.debug("cancelled %d pending prefetch task(s)", cancelled)

        verdict: Verdict = state["verdict"]
        logger.info(
            "research run finished: score=%d recommendation=%s source=%s",
            verdict.score,
            verdict.recommendation.value,
            verdict.source.value,
        )
        emitter.emit(
            EventKind.TERMINAL_RESULT,
            f"Research complete: {verdict.score}/100",
            state=state,
        )
        return state  # type: ignore[return-value]

    @staticmethod
    def _fail(emitter: StageEmitter, exc: IdeaValidatorError) -> None:
        logger.error("research run failed: %s", exc)
        emitter.error(str(exc), error=type(exc).__name__, details=exc.details)

    def _apply(
        self, state: dict[str, Any], node_name: str, patch: Mapping[str, Any] | None
    ) -> dict[str, Any]:
        """Check *patch* against the ownership table and merge it."""
        if not patch:
            return state
        owned = self._owners.get(node_name)
        if owned is None:
            raise InvariantViolation(f"Update from unknown stage {node_name!r}", stage=node_name)
        for key, value in patch.items():
            if key != owned:
                raise InvariantViolation(
                    f"Stage {node_name!r} wrote {key!r}, which it does not own",
                    stage=node_name,
                    details={"field": key, "owner_field": owned},
                )
            expected = FIELD_TYPES[key]
            if not isinstance(value, expected):
                raise InvariantViolation(
                    f"Stage {node_name!r} wrote {type(value).__name__} to {key!r}, "
                    f"expected {expected.__name__}",
                    stage=node_name,
                    details={"field": key},
                )
        return merge_patch(state, dict(patch))


__all__ = ["ResearchPipeline"]
