"""Infrastructure layer: configuration, event sinks, rate limiting, external clients."""

from idea_validator.infrastructure.config import ApiKeys, PipelineConfig
from idea_validator.infrastructure.event_sink import (
    CallbackSink,
    EventBus,
    EventSink,
    EventStore,
    LoggingSink,
    QueueSink,
    heartbeat,
)
from idea_validator.infrastructure.llm import ChatLLM, ChatModelFactory
from idea_validator.infrastructure.rate_limiter import RateLimiter
from idea_validator.infrastructure.twitter import TwitterClient, days_ago
from idea_validator.infrastructure.web_research import WebResearchClient

__all__ = [
    "ApiKeys",
    "CallbackSink",
    "ChatLLM",
    "ChatModelFactory",
    "EventBus",
    "EventSink",
    "EventStore",
    "LoggingSink",
    "PipelineConfig",
    "QueueSink",
    "RateLimiter",
    "TwitterClient",
    "WebResearchClient",
    "days_ago",
    "heartbeat",
]
