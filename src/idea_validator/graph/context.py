"""Per-run context threaded through the research stages.

``PipelineServices`` bundles the long-lived external collaborators (shared
across runs: the rate-limited Twitter client, the web-research client and
the two LLMs).  ``RunContext`` adds the per-run pieces -- the event sink and
the prefetcher -- and is created fresh by the engine for every run.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from idea_validator.domain.enums import EventKind
from idea_validator.domain.events import ProgressEvent
from idea_validator.domain.exceptions import ConfigurationError
from idea_validator.domain.values import Envelope
from idea_validator.infrastructure.config import ApiKeys, PipelineConfig
from idea_validator.infrastructure.event_sink import EventSink
from idea_validator.infrastructure.llm import ChatLLM, ChatModelFactory
from idea_validator.infrastructure.rate_limiter import RateLimiter
from idea_validator.infrastructure.twitter import TwitterClient
from idea_validator.infrastructure.web_research import WebResearchClient
from idea_validator.services.prefetch import Prefetcher

logger = logging.getLogger(__name__)


@dataclass
class PipelineServices:
    """External collaborators used by the stages.

    ``twitter`` and ``web`` only need the methods the stages call, so test
    doubles from :mod:`idea_validator.testing` can stand in for the real
    clients.
    """

    twitter: Any
    web: Any
    planner: ChatLLM
    synthesizer: ChatLLM

    @classmethod
    def from_keys(
        cls,
        keys: ApiKeys,
        config: PipelineConfig | None = None,
        limiter: RateLimiter | None = None,
        factory: ChatModelFactory | None = None,
    ) -> PipelineServices:
        """Build the production clients from API keys.

        Raises
        ------
        ConfigurationError
            If any of the four API keys is missing.
        """
        missing = keys.missing()
        if missing:
            raise ConfigurationError(
                f"Missing API keys: {', '.join(missing)}",
                setting=missing[0],
                details={"missing": missing},
            )
        cfg = config or PipelineConfig()
        factory = factory or ChatModelFactory()
        limiter = limiter or RateLimiter(cfg.rate_interval, name="twitter")
        return cls(
            twitter=TwitterClient(keys.twitter, limiter, timeout=cfg.http_timeout),
            web=WebResearchClient(keys.tavily, timeout=cfg.web_timeout + 5.0),
            planner=ChatLLM(factory.create("openai", api_key=keys.openai), label="GPT-4o-mini"),
            synthesizer=ChatLLM(
                factory.create("gemini", api_key=keys.gemini), label="Gemini 2.0 Flash"
            ),
        )

    async def aclose(self) -> None:
        for client in (self.twitter, self.web):
            close = getattr(client, "aclose", None)
            if close is not None:
                await close()


class StageEmitter:
    """Writes progress events for one stage to the run's sink."""

    def __init__(self, sink: EventSink, stage: str = "") -> None:
        self._sink = sink
        self.stage = stage

    def for_stage(self, stage: str) -> StageEmitter:
        return StageEmitter(self._sink, stage)

    def emit(self, kind: EventKind, message: str = "", **payload: Any) -> None:
        self._sink.emit(
            ProgressEvent(kind=kind, message=message, stage=self.stage, payload=payload)
        )

    def info(self, message: str, **payload: Any) -> None:
        self.emit(EventKind.INFO, message, **payload)

    def warning(self, message: str, **payload: Any) -> None:
        self.emit(EventKind.WARNING, message, **payload)

    def error(self, message: str, **payload: Any) -> None:
        self.emit(EventKind.ERROR, message, **payload)

    def llm_call(self, message: str) -> None:
        self.emit(EventKind.INFO, message, channel="llm_call")

    def tool_call(self, message: str) -> None:
        self.emit(EventKind.INFO, message, channel="tool_call")

    def tool_result(self, message: str) -> None:
        self.emit(EventKind.INFO, message, channel="tool_result")

    def started(self, message: str, **payload: Any) -> None:
        self.emit(EventKind.STAGE_STARTED, message, **payload)

    def completed(self, message: str, **payload: Any) -> None:
        self.emit(EventKind.STAGE_COMPLETED, message, **payload)

    def warn_failed(self, envelopes: Sequence[Envelope[Any]], labels: Sequence[str]) -> int:
        """Emit a warning for every fan-out call that did not succeed.

        Returns the number of failed calls.
        """
        failed = 0
        for envelope, label in zip(envelopes, labels):
            if envelope.succeeded:
                continue
            failed += 1
            self.warning(
                f"{label} unavailable: {envelope.error_message[:80]}",
                call=label,
                error=type(envelope.error).__name__,
            )
        return failed


@dataclass
class RunContext:
    """Everything a stage may touch during one run."""

    services: PipelineServices
    emitter: StageEmitter
    config: PipelineConfig = field(default_factory=PipelineConfig)
    prefetcher: Prefetcher = field(default_factory=Prefetcher)
    abort: asyncio.Event | None = None

    @property
    def aborted(self) -> bool:
        return self.abort is not None and self.abort.is_set()

    def emitter_for(self, stage: str) -> StageEmitter:
        return self.emitter.for_stage(stage)
