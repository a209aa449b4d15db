"""Deterministic fallbacks used when a stage or a synthesis tier fails.

Every function here is pure: it depends only on the run state it is given
and always returns a valid value, so a degraded run still produces a
well-formed final state.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from idea_validator.domain.enums import (
    CompetitionRisk,
    InvestorReadiness,
    QueryIntent,
    Recommendation,
    Timing,
    VerdictSource,
)
from idea_validator.domain.schemas import QueryPlan, Verdict
from idea_validator.domain.values import (
    AdopterData,
    CommunityData,
    DemandData,
    FunderData,
    TrendsData,
    WebIntelData,
    is_absent,
)

State = Mapping[str, Any]

DEFAULT_FALLBACK_SCORE = 50


def fallback_query_plan(idea: str) -> QueryPlan:
    """Template queries derived from the idea text alone."""
    return QueryPlan(
        trend_scan=f"{idea} -is:retweet lang:en",
        demand_recent=f"{idea} lang:en",
        demand_top=f"{idea} lang:en",
        adopter_pain=(
            f'{idea} (wish OR struggling OR frustrated OR "looking for" OR "need a") '
            "lang:en -is:retweet"
        ),
        investor_search=f"{idea} investor",
        competitor_search=f"{idea} alternative OR competitor lang:en",
        community_query=idea,
    )


def complete_query_plan(idea: str, raw: Mapping[str, Any]) -> QueryPlan:
    """Build a plan from parsed LLM output, filling gaps from the template."""
    template = fallback_query_plan(idea)
    values: dict[str, str] = {}
    for intent in QueryIntent:
        candidate = raw.get(intent.value)
        if isinstance(candidate, str) and candidate.strip():
            values[intent.value] = candidate.strip()
        else:
            values[intent.value] = template.get(intent)
    return QueryPlan(**values)


def demand_score_or_default(state: State) -> int:
    demand = state.get("demand_data")
    if isinstance(demand, DemandData):
        return demand.demand_score
    return DEFAULT_FALLBACK_SCORE


def fallback_verdict(state: State) -> Verdict:
    """Context-free verdict built only from what the run state holds."""
    web = state.get("web_intel_data")
    web_insights = (
        "Web research unavailable"
        if not isinstance(web, WebIntelData) or web.source_count == 0
        else f"{web.source_count} web sources collected; manual review recommended"
    )
    return Verdict(
        score=demand_score_or_default(state),
        headline="Research complete - manual review recommended",
        why_it_works="Twitter data shows market awareness.",
        why_it_fails="Insufficient data for full analysis.",
        strengths=["Market conversations exist"],
        weaknesses=["Limited data"],
        issues=["Need more data"],
        best_points=["Conversations happening"],
        idea_changes=["Gather more customer feedback"],
        new_additions=["Build MVP first"],
        target_customer="Early adopters",
        go_to_market="Direct outreach",
        competition_risk=CompetitionRisk.MEDIUM,
        timing=Timing.PERFECT,
        market_size="Unknown",
        key_insight="More research needed",
        red_flags=["Limited data"],
        recommendation=Recommendation.EXPLORE,
        investor_readiness=InvestorReadiness.NOT_READY,
        next_actions=["Gather more data", "Interview potential customers"],
        top_funders=[],
        web_insights=web_insights,
        source=VerdictSource.FALLBACK,
    )


# -- stage fallback patches ---------------------------------------------------


def plan_fallback(state: State) -> dict[str, Any]:
    return {"queries": fallback_query_plan(str(state.get("idea") or ""))}


def trends_fallback(state: State) -> dict[str, Any]:
    return {"trends_data": TrendsData.unavailable()}


def demand_fallback(state: State) -> dict[str, Any]:
    return {"demand_data": DemandData.unavailable()}


def adopters_fallback(state: State) -> dict[str, Any]:
    return {"adopter_data": AdopterData.unavailable()}


def funders_fallback(state: State) -> dict[str, Any]:
    return {"funder_data": FunderData.unavailable()}


def community_fallback(state: State) -> dict[str, Any]:
    return {"community_data": CommunityData.unavailable()}


def web_intel_fallback(state: State) -> dict[str, Any]:
    return {"web_intel_data": WebIntelData.unavailable()}


def synthesis_fallback(state: State) -> dict[str, Any]:
    return {"verdict": fallback_verdict(state)}


def query_for(state: State, intent: QueryIntent, default: str) -> str:
    """The planned query for *intent*, or *default* while no plan exists."""
    plan = state.get("queries")
    if plan is None or is_absent(plan):
        return default
    return plan.get(intent)
