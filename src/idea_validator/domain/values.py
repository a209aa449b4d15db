"""Value objects for the idea-validation pipeline.

All types here are frozen dataclasses -- immutable, compared by value.  They
hold the per-stage results that accumulate in the run state, plus the
``Envelope`` produced by the fan-out aggregator and the ``ABSENT`` sentinel
that marks run-state fields no stage has written yet.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

T = TypeVar("T")

# Raw twitterapi.io objects are passed through untouched.
Tweet = Mapping[str, Any]
TwitterUser = Mapping[str, Any]
Trend = Mapping[str, Any]


# ---------------------------------------------------------------------------
# ABSENT sentinel
# ---------------------------------------------------------------------------

class _Absent:
    """Marker for a run-state field that has not been computed yet.

    Distinct from ``None`` and from an empty value so that stages can tell
    "not yet computed" apart from "computed but empty".
    """

    _instance: _Absent | None = None

    def __new__(cls) -> _Absent:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "ABSENT"

    def __reduce__(self) -> str:
        return "ABSENT"


ABSENT = _Absent()


def is_absent(value: Any) -> bool:
    return value is ABSENT


# ---------------------------------------------------------------------------
# Envelope
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Envelope(Generic[T]):
    """Outcome of one fan-out task: either a value or the error it raised."""

    succeeded: bool
    value: T | None = None
    error: BaseException | None = None

    @classmethod
    def ok(cls, value: T) -> Envelope[T]:
        return cls(succeeded=True, value=value)

    @classmethod
    def failed(cls, error: BaseException) -> Envelope[T]:
        return cls(succeeded=False, error=error)

    def value_or(self, default: T) -> T:
        """Return the value when the task succeeded, else *default*."""
        if self.succeeded and self.value is not None:
            return self.value
        return default

    @property
    def error_message(self) -> str:
        if self.error is None:
            return ""
        return str(self.error) or type(self.error).__name__


# ---------------------------------------------------------------------------
# Web research
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class WebSource:
    url: str
    title: str = ""
    content: str = ""


@dataclass(frozen=True)
class WebSearchResult:
    """Response of a single web-research query."""

    query: str = ""
    answer: str | None = None
    results: tuple[WebSource, ...] = ()


# ---------------------------------------------------------------------------
# Profiles extracted by the keyword heuristics
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class AdopterProfile:
    username: str
    name: str
    tweet: str
    url: str = ""
    avatar: str | None = None
    likes: int = 0
    retweets: int = 0
    created_at: str = ""
    pain_signal: str = ""


@dataclass(frozen=True)
class InvestorProfile:
    username: str
    name: str
    bio: str = ""
    followers: int = 0
    verified: bool = False
    avatar: str | None = None
    tweet: str = ""
    url: str = ""
    created_at: str = ""


@dataclass(frozen=True)
class SentimentBreakdown:
    """Percentages (rounded) of positive/negative/neutral tweets."""

    positive: int = 0
    negative: int = 0
    neutral: int = 100


@dataclass(frozen=True)
class TagCount:
    label: str
    count: int


# ---------------------------------------------------------------------------
# Stage results
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TrendsData:
    worldwide_count: int = 0
    usa_count: int = 0
    matched: tuple[Trend, ...] = ()
    all_trends: tuple[Trend, ...] = ()
    hashtags: tuple[TagCount, ...] = ()
    keywords: tuple[TagCount, ...] = ()
    context_tweets: tuple[Tweet, ...] = ()
    top_tweets: tuple[Tweet, ...] = ()
    insights: str = ""

    @classmethod
    def unavailable(cls) -> TrendsData:
        return cls(insights="Trend data unavailable due to API/runtime failure.")


@dataclass(frozen=True)
class DemandData:
    recent_count: int = 0
    month_count: int = 0
    top_tweets: tuple[Tweet, ...] = ()
    competitor_tweets: tuple[Tweet, ...] = ()
    sentiment: SentimentBreakdown = field(default_factory=SentimentBreakdown)
    avg_likes: float = 0.0
    avg_retweets: float = 0.0
    demand_score: int = 0
    insights: str = ""

    @classmethod
    def unavailable(cls) -> DemandData:
        return cls(insights="Demand data unavailable due to API/runtime failure.")


@dataclass(frozen=True)
class AdopterData:
    count: int = 0
    users: tuple[AdopterProfile, ...] = ()
    pain_tweet_count: int = 0
    insights: str = ""

    @classmethod
    def unavailable(cls) -> AdopterData:
        return cls(insights="Adopter data unavailable due to API/runtime failure.")


@dataclass(frozen=True)
class FunderData:
    count: int = 0
    profile_investors: tuple[InvestorProfile, ...] = ()
    tweet_investors: tuple[InvestorProfile, ...] = ()
    insights: str = ""

    @classmethod
    def unavailable(cls) -> FunderData:
        return cls(insights="Funder data unavailable due to API/runtime failure.")


@dataclass(frozen=True)
class CommunityData:
    count: int = 0
    tweets: tuple[Tweet, ...] = ()

    @classmethod
    def unavailable(cls) -> CommunityData:
        return cls()


@dataclass(frozen=True)
class WebIntelData:
    sources: tuple[WebSource, ...] = ()
    summary: str = ""
    source_count: int = 0
    answered_queries: int = 0

    @classmethod
    def unavailable(cls) -> WebIntelData:
        return cls()
