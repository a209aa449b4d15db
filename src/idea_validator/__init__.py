"""Idea Validator.

LangGraph research pipeline that scores a startup idea from live Twitter/X
signal, web research and LLM synthesis, streaming progress as it goes.
"""

__version__ = "0.1.0"

from idea_validator.graph import (
    PipelineServices,
    ResearchPipeline,
    ResearchState,
    build_research_graph,
    stream_events,
)

__all__ = [
    "PipelineServices",
    "ResearchPipeline",
    "ResearchState",
    "build_research_graph",
    "stream_events",
]
