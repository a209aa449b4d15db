"""End-to-end tests for ResearchPipeline."""

from __future__ import annotations

import asyncio
import dataclasses

import pytest

from idea_validator.domain.enums import EventKind, Recommendation, VerdictSource
from idea_validator.domain.exceptions import (
    InvalidInputError,
    InvariantViolation,
    PipelineAborted,
)
from idea_validator.domain.schemas import Verdict
from idea_validator.domain.values import WebSearchResult
from idea_validator.graph import nodes
from idea_validator.graph.engine import ResearchPipeline
from idea_validator.graph.graph import STAGE_NAMES, STAGES
from idea_validator.graph.state import FIELD_TYPES
from idea_validator.infrastructure.config import PipelineConfig
from idea_validator.infrastructure.event_sink import EventStore
from idea_validator.services.fallbacks import fallback_query_plan
from idea_validator.testing import ScriptedChatModel, failing_services, scripted_services


def _with_stages(names, fn) -> tuple:
    return tuple(dataclasses.replace(s, fn=fn) if s.name in names else s for s in STAGES)


def _with_stage(name: str, fn) -> tuple:
    return _with_stages({name}, fn)


def _final_events(store: EventStore) -> list:
    return [
        e for e in store.events
        if e.kind in (EventKind.TERMINAL_RESULT, EventKind.ERROR) and e.stage == ""
    ]


class TestSuccessfulRun:
    @pytest.mark.asyncio
    async def test_full_run(self, pipeline, store: EventStore, idea: str) -> None:
        state = await pipeline.run({"idea": idea, "description": "Nurses and medics"}, sink=store)
        verdict = state["verdict"]
        assert verdict.source is VerdictSource.SYNTHESIS
        assert verdict.score == 78
        assert verdict.recommendation is Recommendation.BUILD
        for name, kind in FIELD_TYPES.items():
            assert isinstance(state[name], kind)
        assert state["description"] == "Nurses and medics"
        assert state["adopter_data"].count == 1
        assert state["funder_data"].count == 2
        assert state["community_data"].count == 1

        started = [e.stage for e in store.query(kind=EventKind.STAGE_STARTED)]
        assert tuple(started) == STAGE_NAMES
        (final,) = _final_events(store)
        assert final is store.latest
        assert final.kind is EventKind.TERMINAL_RESULT
        assert final.message == "Research complete: 78/100"
        assert final.payload["state"]["verdict"] is verdict

    @pytest.mark.asyncio
    async def test_idea_string_input(self, pipeline, store: EventStore) -> None:
        state = await pipeline.run("  budgeting app for teens  ", sink=store)
        assert state["idea"] == "budgeting app for teens"
        assert state["description"] == ""

    @pytest.mark.asyncio
    async def test_web_sources_are_union(self, pipeline, web, idea: str) -> None:
        state = await pipeline.run(idea, sink=EventStore())
        assert state["web_intel_data"].source_count == 10
        assert len(web.queries) == 4

    @pytest.mark.asyncio
    async def test_non_json_plan_uses_template(
        self, twitter, web, synthesizer_model, fast_config, idea: str
    ) -> None:
        services = scripted_services(
            twitter=twitter,
            web=web,
            planner=ScriptedChatModel(default="Here are some thoughts, no JSON."),
            synthesizer=synthesizer_model,
        )
        state = await ResearchPipeline(services, fast_config).run(idea, sink=EventStore())
        assert state["queries"] == fallback_query_plan(idea)
        assert isinstance(state["verdict"], Verdict)


class TestDegradedRuns:
    @pytest.mark.asyncio
    async def test_everything_fails(self, fast_config, store: EventStore, idea: str) -> None:
        state = await ResearchPipeline(failing_services(), fast_config).run(idea, sink=store)
        verdict = state["verdict"]
        assert verdict.source is VerdictSource.FALLBACK
        assert verdict.score == 0
        assert verdict.recommendation is Recommendation.EXPLORE
        assert state["queries"] == fallback_query_plan(idea)
        assert state["web_intel_data"].source_count == 0
        assert store.query(kind=EventKind.WARNING)
        (final,) = _final_events(store)
        assert final.kind is EventKind.TERMINAL_RESULT

    @pytest.mark.parametrize("stage_name", STAGE_NAMES)
    @pytest.mark.asyncio
    async def test_any_failing_stage_still_yields_verdict(
        self, services, fast_config, store: EventStore, idea: str, stage_name: str
    ) -> None:
        async def explode(state, ctx):
            raise RuntimeError(f"{stage_name} exploded")

        pipeline = ResearchPipeline(services, fast_config, stages=_with_stage(stage_name, explode))
        state = await pipeline.run(idea, sink=store)
        assert isinstance(state["verdict"], Verdict)
        warnings = store.query(kind=EventKind.WARNING, stage=stage_name)
        assert any(w.message.startswith(f"{stage_name} failed:") for w in warnings)
        assert len(_final_events(store)) == 1

    @pytest.mark.parametrize(
        "failing",
        [
            ("plan_queries", "web_research"),
            ("fetch_trends", "demand_check", "adopter_search"),
            ("funder_search", "community_research", "synthesis"),
            ("plan_queries", "demand_check", "web_research", "synthesis"),
        ],
    )
    @pytest.mark.asyncio
    async def test_several_failing_stages_still_yield_verdict(
        self, services, fast_config, store: EventStore, idea: str, failing: tuple
    ) -> None:
        async def explode(state, ctx):
            raise RuntimeError("exploded")

        pipeline = ResearchPipeline(services, fast_config, stages=_with_stages(failing, explode))
        state = await pipeline.run(idea, sink=store)
        assert isinstance(state["verdict"], Verdict)
        for name in failing:
            warnings = store.query(kind=EventKind.WARNING, stage=name)
            assert any(w.message.startswith(f"{name} failed:") for w in warnings)
        started = [e.stage for e in store.query(kind=EventKind.STAGE_STARTED)]
        assert set(started) == set(STAGE_NAMES) - set(failing)
        (final,) = _final_events(store)
        assert final.kind is EventKind.TERMINAL_RESULT
        if "synthesis" in failing:
            assert state["verdict"].source is VerdictSource.FALLBACK


class TestInvalidInput:
    @pytest.mark.parametrize("bad", ["", "   ", "a b", {"idea": None}, {"description": "x"}, 42])
    @pytest.mark.asyncio
    async def test_rejected_before_any_stage(
        self, pipeline, twitter, store: EventStore, bad
    ) -> None:
        with pytest.raises(InvalidInputError) as info:
            await pipeline.run(bad, sink=store)
        assert info.value.field == "idea"
        assert store.kinds() == [EventKind.ERROR]
        assert twitter.calls == []

    def test_description_must_be_text(self, pipeline) -> None:
        with pytest.raises(InvalidInputError) as info:
            pipeline.validate_input({"idea": "dog walking app", "description": ["x"]})
        assert info.value.field == "description"

    def test_invalid_config_rejected(self, services) -> None:
        with pytest.raises(ValueError):
            ResearchPipeline(services, PipelineConfig(rate_interval=-1.0))


class TestInvariants:
    @pytest.mark.asyncio
    async def test_writing_foreign_field(
        self, services, fast_config, store: EventStore, sample_verdict: Verdict, idea: str
    ) -> None:
        async def overreach(state, ctx):
            return {"verdict": sample_verdict}

        pipeline = ResearchPipeline(
            services, fast_config, stages=_with_stage("plan_queries", overreach)
        )
        with pytest.raises(InvariantViolation) as info:
            await pipeline.run(idea, sink=store)
        assert info.value.stage == "plan_queries"
        (final,) = _final_events(store)
        assert final.kind is EventKind.ERROR
        assert not store.query(kind=EventKind.TERMINAL_RESULT)

    @pytest.mark.asyncio
    async def test_writing_wrong_type(self, services, fast_config, idea: str) -> None:
        async def sloppy(state, ctx):
            return {"demand_data": {"demand_score": 90}}

        pipeline = ResearchPipeline(services, fast_config, stages=_with_stage("demand_check", sloppy))
        with pytest.raises(InvariantViolation, match="expected DemandData"):
            await pipeline.run(idea, sink=EventStore())


class TestAbort:
    @pytest.mark.asyncio
    async def test_preset_abort(self, pipeline, twitter, store: EventStore, idea: str) -> None:
        abort = asyncio.Event()
        abort.set()
        with pytest.raises(PipelineAborted) as info:
            await pipeline.run(idea, sink=store, abort=abort)
        assert info.value.completed_stages == ()
        assert twitter.calls == []
        assert store.latest.kind is EventKind.ERROR

    @pytest.mark.asyncio
    async def test_abort_between_stages(
        self, services, fast_config, synthesizer_model, store: EventStore, idea: str
    ) -> None:
        abort = asyncio.Event()

        async def demand_then_abort(state, ctx):
            patch = await nodes.demand_check(state, ctx)
            abort.set()
            return patch

        pipeline = ResearchPipeline(
            services, fast_config, stages=_with_stage("demand_check", demand_then_abort)
        )
        with pytest.raises(PipelineAborted) as info:
            await pipeline.run(idea, sink=store, abort=abort)
        completed = info.value.completed_stages
        assert completed[:3] == ("plan_queries", "fetch_trends", "demand_check")
        assert "synthesis" not in completed
        assert synthesizer_model.call_count == 0
        assert len(_final_events(store)) == 1

    @pytest.mark.asyncio
    async def test_abort_cancels_web_prefetch(
        self, twitter, fast_config, idea: str
    ) -> None:
        cancelled = asyncio.Event()

        class HangingWeb:
            async def search(self, query, **kwargs):
                try:
                    await asyncio.sleep(10)
                except asyncio.CancelledError:
                    cancelled.set()
                    raise
                return WebSearchResult(query=query)

        abort = asyncio.Event()

        async def plan_then_abort(state, ctx):
            patch = await nodes.plan_queries(state, ctx)
            abort.set()
            return patch

        services = scripted_services(twitter=twitter, web=HangingWeb())
        pipeline = ResearchPipeline(
            services, fast_config, stages=_with_stage("plan_queries", plan_then_abort)
        )
        with pytest.raises(PipelineAborted):
            await pipeline.run(idea, sink=EventStore(), abort=abort)
        await asyncio.wait_for(cancelled.wait(), timeout=1.0)
