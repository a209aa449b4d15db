"""Public testing utilities for Idea Validator.

Provides a scripted chat model and fake external clients for writing
self-contained tests and offline runs without API keys.
"""

from idea_validator.testing.fakes import (
    ALL_TWITTER_METHODS,
    FakeTwitterClient,
    FakeWebResearchClient,
    failing_services,
    make_tweet,
    scripted_services,
    web_result,
)
from idea_validator.testing.mock_llm import ScriptedChatModel

__all__ = [
    "ALL_TWITTER_METHODS",
    "FakeTwitterClient",
    "FakeWebResearchClient",
    "ScriptedChatModel",
    "failing_services",
    "make_tweet",
    "scripted_services",
    "web_result",
]
