"""LangGraph-native research pipeline.

Public API
----------
ResearchPipeline
    Validates input, runs the eight stages in order, returns the final state.
build_research_graph
    Build and compile the linear research StateGraph for one run context.
ResearchState
    The TypedDict state flowing through the graph.
stream_events
    Run a pipeline and iterate over its progress events.

Stage functions (for advanced customisation):
    plan_queries, fetch_trends, demand_check, adopter_search, funder_search,
    community_research, web_research, synthesis
"""

from idea_validator.graph.context import PipelineServices, RunContext, StageEmitter
from idea_validator.graph.engine import ResearchPipeline
from idea_validator.graph.graph import (
    STAGE_NAMES,
    STAGE_OWNERS,
    STAGES,
    StageSpec,
    build_research_graph,
)
from idea_validator.graph.nodes import (
    adopter_search,
    community_research,
    demand_check,
    demand_score,
    fetch_trends,
    funder_search,
    plan_queries,
    run_web_intel,
    synthesis,
    web_research,
)
from idea_validator.graph.state import ResearchState, initial_state, merge_patch
from idea_validator.graph.streaming import format_event, stream_events
from idea_validator.graph.wrapper import wrap_stage

__all__ = [
    "PipelineServices",
    "ResearchPipeline",
    "ResearchState",
    "RunContext",
    "STAGES",
    "STAGE_NAMES",
    "STAGE_OWNERS",
    "StageEmitter",
    "StageSpec",
    "adopter_search",
    "build_research_graph",
    "community_research",
    "demand_check",
    "demand_score",
    "fetch_trends",
    "format_event",
    "funder_search",
    "initial_state",
    "merge_patch",
    "plan_queries",
    "run_web_intel",
    "stream_events",
    "synthesis",
    "web_research",
    "wrap_stage",
]
