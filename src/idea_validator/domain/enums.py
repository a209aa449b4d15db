"""Domain enumerations for the idea-validation pipeline.

These enums capture the closed vocabularies used across the package:
progress event kinds, query intents, and the categorical verdict fields.
"""

from enum import Enum


class EventKind(str, Enum):
    """Kind of a progress event written to the event sink."""

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    STAGE_STARTED = "stage_started"
    STAGE_COMPLETED = "stage_completed"
    PLAN = "plan"
    TERMINAL_RESULT = "terminal_result"
    HEARTBEAT = "heartbeat"


class QueryIntent(str, Enum):
    """Named search intents produced by the planning stage."""

    TREND_SCAN = "trend_scan"
    DEMAND_RECENT = "demand_recent"
    DEMAND_TOP = "demand_top"
    ADOPTER_PAIN = "adopter_pain"
    INVESTOR_SEARCH = "investor_search"
    COMPETITOR_SEARCH = "competitor_search"
    COMMUNITY_QUERY = "community_query"


class Recommendation(str, Enum):
    BUILD = "build"
    EXPLORE = "explore"
    PIVOT = "pivot"
    ABANDON = "abandon"


class CompetitionRisk(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Timing(str, Enum):
    TOO_EARLY = "too_early"
    PERFECT = "perfect"
    TOO_LATE = "too_late"


class InvestorReadiness(str, Enum):
    NOT_READY = "not_ready"
    EARLY_STAGE = "early_stage"
    READY = "ready"


class VerdictSource(str, Enum):
    """Which synthesis tier produced a verdict."""

    SYNTHESIS = "synthesis"  # primary synthesis model
    DEGRADED = "degraded"  # simplified prompt on the planning model
    FALLBACK = "fallback"  # built from run state alone
