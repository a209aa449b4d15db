"""Shared fixtures for graph tests."""

from __future__ import annotations

import json

import pytest

from idea_validator.domain.enums import Recommendation
from idea_validator.domain.schemas import Verdict
from idea_validator.graph.context import PipelineServices, RunContext, StageEmitter
from idea_validator.graph.engine import ResearchPipeline
from idea_validator.graph.nodes import WEB_QUERY_TEMPLATES
from idea_validator.infrastructure.config import PipelineConfig
from idea_validator.infrastructure.event_sink import EventStore
from idea_validator.testing import (
    FakeTwitterClient,
    FakeWebResearchClient,
    ScriptedChatModel,
    make_tweet,
    scripted_services,
    web_result,
)

PLAN_JSON = json.dumps({
    "trend_scan": "meal planner shift work -is:retweet lang:en",
    "demand_recent": "meal planning night shift lang:en",
    "demand_top": "meal prep shift workers min_faves:10",
    "adopter_pain": "(wish OR struggling) meal prep night shift lang:en",
    "investor_search": "food tech investor",
    "competitor_search": "mealime OR eat this much lang:en",
    "community_query": "shift workers",
})

# Four web queries with overlapping sources: 10 unique URLs in total.
WEB_URLS = (
    [f"https://site{i}.example" for i in range(0, 5)],
    [f"https://site{i}.example" for i in range(3, 8)],
    [f"https://site{i}.example" for i in range(6, 10)],
    [],
)


@pytest.fixture
def tweets() -> list[dict]:
    return [
        make_tweet(
            "I love this idea, would pay for a meal planner",
            user="nurse_amy", likes=20, retweets=5, tweet_id="1",
        ),
        make_tweet(
            "Meal prep on night shifts is broken and I'm frustrated",
            user="medic_bo", likes=4, tweet_id="2",
        ),
        make_tweet(
            "Investing in meal tech this year",
            user="vc_cara", bio="Partner at FoodFund, seed investor", tweet_id="3",
        ),
    ]


@pytest.fixture
def twitter(tweets: list[dict]) -> FakeTwitterClient:
    return FakeTwitterClient(
        tweets=tweets,
        trends=[{"name": "#MealPrep"}, {"name": "Elections"}],
        users=[
            {"userName": "angel_dan", "name": "Dan", "description": "Angel investor in food tech",
             "followers": 12000},
            {"userName": "chef_eve", "name": "Eve", "description": "Cooking every day"},
        ],
        community=[make_tweet("Shift workers: share your meal ideas", user="group")],
    )


@pytest.fixture
def web(idea: str) -> FakeWebResearchClient:
    results = {}
    for i, (template, urls) in enumerate(zip(WEB_QUERY_TEMPLATES, WEB_URLS)):
        query = template.format(idea=idea)
        results[query] = web_result(query, urls, answer=f"answer {i}" if urls else None)
    return FakeWebResearchClient(results)


@pytest.fixture
def synthesizer_model() -> ScriptedChatModel:
    return ScriptedChatModel(
        default=Verdict(
            score=78,
            recommendation=Recommendation.BUILD,
            headline="Shift workers want this",
            strengths=["Vocal pain"],
        )
    )


@pytest.fixture
def planner_model() -> ScriptedChatModel:
    return ScriptedChatModel(
        by_prompt={
            "Generate queries": PLAN_JSON,
            "Return JSON with all fields": Verdict(
                score=55, recommendation=Recommendation.EXPLORE, headline="Simplified"
            ),
        },
        default="Insightful analysis.",
    )


@pytest.fixture
def services(
    twitter: FakeTwitterClient,
    web: FakeWebResearchClient,
    planner_model: ScriptedChatModel,
    synthesizer_model: ScriptedChatModel,
) -> PipelineServices:
    return scripted_services(
        twitter=twitter, web=web, planner=planner_model, synthesizer=synthesizer_model
    )


@pytest.fixture
def pipeline(services: PipelineServices, fast_config: PipelineConfig) -> ResearchPipeline:
    return ResearchPipeline(services, fast_config)


@pytest.fixture
def ctx(services: PipelineServices, fast_config: PipelineConfig, store: EventStore) -> RunContext:
    return RunContext(services=services, emitter=StageEmitter(store), config=fast_config)
