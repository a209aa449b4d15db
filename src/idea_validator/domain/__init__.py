"""Domain layer: enums, value objects, LLM output schemas, events, exceptions."""

from idea_validator.domain.enums import (
    CompetitionRisk,
    EventKind,
    InvestorReadiness,
    QueryIntent,
    Recommendation,
    Timing,
    VerdictSource,
)
from idea_validator.domain.events import ProgressEvent, to_jsonable
from idea_validator.domain.exceptions import (
    ConfigurationError,
    ExternalServiceError,
    FanoutTimeout,
    IdeaValidatorError,
    InvalidInputError,
    InvariantViolation,
    PipelineAborted,
)
from idea_validator.domain.schemas import FunderPick, QueryPlan, Verdict
from idea_validator.domain.values import (
    ABSENT,
    AdopterData,
    AdopterProfile,
    CommunityData,
    DemandData,
    Envelope,
    FunderData,
    InvestorProfile,
    SentimentBreakdown,
    TagCount,
    TrendsData,
    WebIntelData,
    WebSearchResult,
    WebSource,
    is_absent,
)

__all__ = [
    # enums
    "CompetitionRisk",
    "EventKind",
    "InvestorReadiness",
    "QueryIntent",
    "Recommendation",
    "Timing",
    "VerdictSource",
    # events
    "ProgressEvent",
    "to_jsonable",
    # exceptions
    "ConfigurationError",
    "ExternalServiceError",
    "FanoutTimeout",
    "IdeaValidatorError",
    "InvalidInputError",
    "InvariantViolation",
    "PipelineAborted",
    # schemas
    "FunderPick",
    "QueryPlan",
    "Verdict",
    # values
    "ABSENT",
    "AdopterData",
    "AdopterProfile",
    "CommunityData",
    "DemandData",
    "Envelope",
    "FunderData",
    "InvestorProfile",
    "SentimentBreakdown",
    "TagCount",
    "TrendsData",
    "WebIntelData",
    "WebSearchResult",
    "WebSource",
    "is_absent",
]
