"""Tests for the stage fault-isolation wrapper."""

from __future__ import annotations

import asyncio

import pytest

from idea_validator.domain.enums import EventKind
from idea_validator.graph.context import RunContext
from idea_validator.graph.wrapper import failure_message, wrap_stage
from idea_validator.infrastructure.event_sink import EventStore


def _fallback(state):
    return {"community_data": "fallback"}


class TestFailureMessage:
    def test_truncates_error_text(self) -> None:
        msg = failure_message("demand_check", RuntimeError("x" * 200))
        assert msg == f"demand_check failed: {'x' * 80} - continuing with partial data"

    def test_empty_error_uses_type_name(self) -> None:
        assert failure_message("web_research", TimeoutError()).startswith(
            "web_research failed: TimeoutError"
        )


class TestWrapStage:
    @pytest.mark.asyncio
    async def test_success_passes_patch_through(self, ctx: RunContext, store: EventStore) -> None:
        async def stage(state, run_ctx):
            assert run_ctx is ctx
            return {"community_data": state["idea"]}

        node = wrap_stage("community_research", stage, _fallback, ctx)
        assert await node({"idea": "x"}) == {"community_data": "x"}
        assert not store.query(kind=EventKind.WARNING)
        assert node.__name__ == "community_research_node"

    @pytest.mark.asyncio
    async def test_failure_returns_fallback_and_warns(
        self, ctx: RunContext, store: EventStore
    ) -> None:
        async def stage(state, run_ctx):
            raise ValueError("rate limited")

        node = wrap_stage("community_research", stage, _fallback, ctx)
        assert await node({}) == {"community_data": "fallback"}
        (warning,) = store.query(kind=EventKind.WARNING)
        assert warning.stage == "community_research"
        assert warning.message == (
            "community_research failed: rate limited - continuing with partial data"
        )
        assert warning.payload["error"] == "ValueError"

    @pytest.mark.asyncio
    async def test_cancellation_propagates(self, ctx: RunContext) -> None:
        async def stage(state, run_ctx):
            raise asyncio.CancelledError()

        node = wrap_stage("community_research", stage, _fallback, ctx)
        with pytest.raises(asyncio.CancelledError):
            await node({})
