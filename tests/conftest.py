"""Shared fixtures for the Idea Validator test suite."""

from __future__ import annotations

import pytest

from idea_validator.domain.enums import Recommendation
from idea_validator.domain.schemas import QueryPlan, Verdict
from idea_validator.domain.values import DemandData, SentimentBreakdown, WebIntelData, WebSource
from idea_validator.infrastructure.config import PipelineConfig
from idea_validator.infrastructure.event_sink import EventStore
from idea_validator.services.fallbacks import fallback_query_plan

# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


@pytest.fixture
def fast_config() -> PipelineConfig:
    """Production constants with timeouts short enough for tests."""
    return PipelineConfig(rate_interval=0.0, twitter_timeout=2.0, web_timeout=2.0)


@pytest.fixture
def store() -> EventStore:
    return EventStore()


# ---------------------------------------------------------------------------
# Domain fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def idea() -> str:
    return "AI meal planner for shift workers"


@pytest.fixture
def query_plan(idea: str) -> QueryPlan:
    return fallback_query_plan(idea)


@pytest.fixture
def sample_verdict() -> Verdict:
    return Verdict(
        score=72,
        recommendation=Recommendation.BUILD,
        headline="Strong pull from night-shift nurses",
        strengths=["Clear pain", "Reachable audience"],
        next_actions=["Interview 10 nurses"],
    )


@pytest.fixture
def sample_demand() -> DemandData:
    return DemandData(
        recent_count=12,
        month_count=40,
        sentiment=SentimentBreakdown(positive=40, negative=20, neutral=40),
        avg_likes=30.0,
        avg_retweets=5.0,
        demand_score=41,
        insights="Moderate demand.",
    )


@pytest.fixture
def sample_web() -> WebIntelData:
    sources = (
        WebSource(url="https://a.example", title="A"),
        WebSource(url="https://b.example", title="B"),
    )
    return WebIntelData(
        sources=sources,
        summary="**q**\nanswer",
        source_count=len(sources),
        answered_queries=1,
    )
