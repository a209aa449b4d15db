"""Pydantic schemas for structured LLM output.

``QueryPlan`` is produced by the planning stage and ``Verdict`` by the
synthesis stage.  Both are validated from JSON extracted out of free-form
model text, so validators are lenient about case, whitespace and numeric
types while still rejecting values outside the closed enumerations.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .enums import (
    CompetitionRisk,
    InvestorReadiness,
    QueryIntent,
    Recommendation,
    Timing,
    VerdictSource,
)


class QueryPlan(BaseModel):
    """Search queries keyed by intent."""

    model_config = ConfigDict(frozen=True)

    trend_scan: str
    demand_recent: str
    demand_top: str
    adopter_pain: str
    investor_search: str
    competitor_search: str
    community_query: str

    def get(self, intent: QueryIntent) -> str:
        return getattr(self, intent.value)

    def items(self) -> list[tuple[str, str]]:
        return [(intent.value, self.get(intent)) for intent in QueryIntent]


class FunderPick(BaseModel):
    """A fund the synthesis model suggests pitching."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    name: str = ""
    twitter: str = ""
    focus: str = ""
    why: str = ""


def _normalise_choice(value: Any) -> Any:
    if isinstance(value, str):
        return value.strip().lower().replace(" ", "_").replace("-", "_")
    return value


class Verdict(BaseModel):
    """Terminal scorecard for a startup idea."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    score: int = Field(ge=0, le=100, description="Overall viability score")
    recommendation: Recommendation
    headline: str = ""
    why_it_works: str = ""
    why_it_fails: str = ""
    strengths: list[str] = Field(default_factory=list)
    weaknesses: list[str] = Field(default_factory=list)
    issues: list[str] = Field(default_factory=list)
    best_points: list[str] = Field(default_factory=list)
    idea_changes: list[str] = Field(default_factory=list)
    new_additions: list[str] = Field(default_factory=list)
    target_customer: str = ""
    go_to_market: str = ""
    competition_risk: CompetitionRisk = CompetitionRisk.MEDIUM
    timing: Timing = Timing.PERFECT
    market_size: str = ""
    key_insight: str = ""
    red_flags: list[str] = Field(default_factory=list)
    investor_readiness: InvestorReadiness = InvestorReadiness.NOT_READY
    next_actions: list[str] = Field(default_factory=list)
    top_funders: list[FunderPick] = Field(default_factory=list)
    web_insights: str = ""
    source: VerdictSource = VerdictSource.SYNTHESIS

    @field_validator("score", mode="before")
    @classmethod
    def _coerce_score(cls, value: Any) -> Any:
        if isinstance(value, bool):
            raise ValueError("score must be numeric")
        if isinstance(value, str):
            value = value.strip().split("/")[0]
        try:
            number = float(value)
        except (TypeError, ValueError) as exc:
            raise ValueError(f"score must be numeric, got {value!r}") from exc
        return max(0, min(100, int(round(number))))

    @field_validator(
        "recommendation",
        "competition_risk",
        "timing",
        "investor_readiness",
        mode="before",
    )
    @classmethod
    def _coerce_choice(cls, value: Any) -> Any:
        return _normalise_choice(value)

    @field_validator(
        "strengths",
        "weaknesses",
        "issues",
        "best_points",
        "idea_changes",
        "new_additions",
        "red_flags",
        "next_actions",
        mode="before",
    )
    @classmethod
    def _coerce_list(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, str):
            return [value] if value.strip() else []
        return [str(item) for item in value]
