"""Tests for the deterministic fallbacks."""

from __future__ import annotations

from idea_validator.domain.enums import QueryIntent, Recommendation, VerdictSource
from idea_validator.domain.values import ABSENT, DemandData, WebIntelData
from idea_validator.graph.state import initial_state
from idea_validator.services.fallbacks import (
    DEFAULT_FALLBACK_SCORE,
    complete_query_plan,
    fallback_query_plan,
    fallback_verdict,
    plan_fallback,
    query_for,
    synthesis_fallback,
)


class TestQueryPlan:
    def test_template_mentions_idea_for_every_intent(self, idea: str) -> None:
        plan = fallback_query_plan(idea)
        for intent in QueryIntent:
            assert idea in plan.get(intent)
        assert plan.community_query == idea

    def test_partial_plan_filled_from_template(self, idea: str) -> None:
        plan = complete_query_plan(
            idea,
            {"trend_scan": "  meal planning apps  ", "demand_top": "", "investor_search": 42},
        )
        template = fallback_query_plan(idea)
        assert plan.trend_scan == "meal planning apps"
        assert plan.demand_top == template.demand_top
        assert plan.investor_search == template.investor_search
        assert plan.community_query == template.community_query

    def test_plan_fallback_patch(self, idea: str) -> None:
        assert plan_fallback({"idea": idea}) == {"queries": fallback_query_plan(idea)}


class TestQueryFor:
    def test_default_while_plan_absent(self, idea: str) -> None:
        assert query_for(initial_state(idea), QueryIntent.DEMAND_TOP, "x") == "x"

    def test_planned_query(self, idea: str) -> None:
        state = {"queries": fallback_query_plan(idea)}
        assert query_for(state, QueryIntent.INVESTOR_SEARCH, "x") == f"{idea} investor"


class TestFallbackVerdict:
    def test_defaults_without_demand(self, idea: str) -> None:
        verdict = fallback_verdict(initial_state(idea))
        assert verdict.score == DEFAULT_FALLBACK_SCORE
        assert verdict.recommendation is Recommendation.EXPLORE
        assert verdict.source is VerdictSource.FALLBACK
        assert verdict.web_insights == "Web research unavailable"

    def test_uses_demand_score(self, idea: str, sample_demand: DemandData) -> None:
        state = {**initial_state(idea), "demand_data": sample_demand}
        assert fallback_verdict(state).score == 41

    def test_unavailable_demand_scores_zero(self, idea: str) -> None:
        state = {**initial_state(idea), "demand_data": DemandData.unavailable()}
        assert fallback_verdict(state).score == 0

    def test_mentions_web_sources(self, idea: str, sample_web: WebIntelData) -> None:
        state = {**initial_state(idea), "web_intel_data": sample_web}
        assert fallback_verdict(state).web_insights.startswith("2 web sources")

    def test_synthesis_fallback_patch(self) -> None:
        patch = synthesis_fallback({"idea": "x", "demand_data": ABSENT})
        assert patch["verdict"].source is VerdictSource.FALLBACK
