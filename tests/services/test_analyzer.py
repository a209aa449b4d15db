"""Tests for the keyword heuristics."""

from __future__ import annotations

import pytest

from idea_validator.domain.values import SentimentBreakdown, TagCount
from idea_validator.services.analyzer import (
    analyze_sentiment,
    average,
    extract_trending_topics,
    filter_adopters,
    filter_funders,
    investor_profiles,
    match_trends,
    round_half_up,
    tweet_summary,
)
from idea_validator.testing import make_tweet


class TestRoundHalfUp:
    @pytest.mark.parametrize(("value", "expected"), [(0.5, 1), (1.5, 2), (2.5, 3), (2.49, 2)])
    def test_rounds_half_up(self, value: float, expected: int) -> None:
        assert round_half_up(value) == expected


class TestSentiment:
    def test_mixed(self) -> None:
        tweets = [
            make_tweet("I love this, would pay for it"),
            make_tweet("This is broken and terrible"),
            make_tweet("Just a tweet about lunch"),
        ]
        assert analyze_sentiment(tweets) == SentimentBreakdown(33, 33, 33)

    def test_tie_is_neutral(self) -> None:
        assert analyze_sentiment([make_tweet("great but broken")]).neutral == 100

    def test_empty(self) -> None:
        assert analyze_sentiment([]) == SentimentBreakdown(0, 0, 0)


class TestTopics:
    def test_hashtags_and_keywords(self) -> None:
        tweets = [
            make_tweet("Planning meals takes forever", hashtags=["MealPrep", "AI"]),
            make_tweet("meals again, planning again", hashtags=["mealprep"]),
        ]
        hashtags, keywords = extract_trending_topics(tweets)
        assert hashtags[0] == TagCount("#mealprep", 2)
        assert TagCount("#ai", 1) in hashtags
        assert keywords[0] == TagCount("planning", 2)
        assert all(len(k.label) > 4 for k in keywords)

    def test_match_trends(self) -> None:
        trends = [
            {"name": "#MealPrep"},
            {"name": "Elections"},
            {"name": "Apps", "target": {"query": "planner apps"}},
        ]
        matched = match_trends("AI meal planner", trends)
        assert [t["name"] for t in matched] == ["#MealPrep", "Apps"]


class TestProfiles:
    def test_filter_adopters(self) -> None:
        tweets = [
            make_tweet("I wish there was a tool for meal prep", user="nurse", likes=4),
            make_tweet("Lunch was good", user="other"),
        ]
        adopters = filter_adopters(tweets)
        assert len(adopters) == 1
        assert adopters[0].username == "nurse"
        assert adopters[0].pain_signal == "i wish"
        assert adopters[0].likes == 4

    def test_filter_adopters_limit(self) -> None:
        tweets = [make_tweet(f"looking for an app {i}", user=f"u{i}") for i in range(15)]
        assert len(filter_adopters(tweets, limit=10)) == 10

    def test_filter_funders(self) -> None:
        tweets = [
            make_tweet("Excited about food tech", user="vc1", bio="Partner at Seed Fund"),
            make_tweet("Cooking tonight", user="chef", bio="Chef and dad"),
        ]
        funders = filter_funders(tweets)
        assert [f.username for f in funders] == ["vc1"]
        assert funders[0].bio == "Partner at Seed Fund"

    def test_investor_profiles_dedupe_by_handle(self) -> None:
        users = [
            {"userName": "angel", "description": "Angel investor", "followers": 5000},
            {"userName": "angel", "description": "Angel investor"},
            {"userName": "baker", "description": "I bake bread"},
        ]
        profiles = investor_profiles(users)
        assert [p.username for p in profiles] == ["angel"]
        assert profiles[0].followers == 5000


def test_average_and_summary() -> None:
    tweets = [make_tweet("a", user="x", likes=10), make_tweet("b", user="y", likes=20)]
    assert average(tweets, "likeCount") == 15.0
    assert average([], "likeCount") == 0.0
    summary = tweet_summary(tweets, limit=1)
    assert summary == "@x [likes 10 | RTs 0]: a"
