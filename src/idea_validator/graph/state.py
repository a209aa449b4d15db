"""LangGraph state definition for the research pipeline.

Defines ``ResearchState``, the ``TypedDict`` that flows through the LangGraph
``StateGraph``.  Every channel keeps LangGraph's default last-value
semantics: a stage patch replaces the whole field, there is no partial merge
within a field.  Fields that no stage has written yet hold ``ABSENT``.

Note: We intentionally do NOT use ``from __future__ import annotations`` because
LangGraph needs to resolve type hints at runtime via ``get_type_hints()``.
"""

from typing import Any, TypedDict

from idea_validator.domain.schemas import QueryPlan, Verdict
from idea_validator.domain.values import (
    ABSENT,
    AdopterData,
    CommunityData,
    DemandData,
    FunderData,
    TrendsData,
    WebIntelData,
)


class ResearchState(TypedDict, total=False):
    """State flowing through the research graph.

    Fields are grouped into:

    * **Input** -- set once before the first stage.
    * **Stage outputs** -- one field per stage, written by that stage only.
    """

    # -- Input ---------------------------------------------------------------
    idea: str
    description: str

    # -- Stage outputs ---------------------------------------------------------
    queries: Any            # QueryPlan | ABSENT
    trends_data: Any        # TrendsData | ABSENT
    demand_data: Any        # DemandData | ABSENT
    adopter_data: Any       # AdopterData | ABSENT
    funder_data: Any        # FunderData | ABSENT
    community_data: Any     # CommunityData | ABSENT
    web_intel_data: Any     # WebIntelData | ABSENT
    verdict: Any            # Verdict | ABSENT


INPUT_FIELDS = ("idea", "description")
STAGE_FIELDS = (
    "queries",
    "trends_data",
    "demand_data",
    "adopter_data",
    "funder_data",
    "community_data",
    "web_intel_data",
    "verdict",
)
FIELD_TYPES: dict[str, type] = {
    "queries": QueryPlan,
    "trends_data": TrendsData,
    "demand_data": DemandData,
    "adopter_data": AdopterData,
    "funder_data": FunderData,
    "community_data": CommunityData,
    "web_intel_data": WebIntelData,
    "verdict": Verdict,
}


def initial_state(idea: str, description: str = "") -> ResearchState:
    """Seed a run: input fields set, every stage field ``ABSENT``."""
    state: ResearchState = {"idea": idea, "description": description}
    for name in STAGE_FIELDS:
        state[name] = ABSENT  # type: ignore[literal-required]
    return state


def merge_patch(state: dict[str, Any], patch: dict[str, Any]) -> dict[str, Any]:
    """Return a new state with *patch* applied by whole-field replacement."""
    merged = dict(state)
    merged.update(patch)
    return merged
