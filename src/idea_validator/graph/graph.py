"""Build the research StateGraph.

``build_research_graph()`` wires the eight stages into a strictly linear
LangGraph::

    START -> plan_queries -> fetch_trends -> demand_check -> adopter_search
          -> funder_search -> community_research -> web_research
          -> synthesis -> END

Every node is the stage function bound to the run context and guarded by
:func:`wrap_stage`, so the compiled graph only raises for an abort.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from langgraph.graph import END, START, StateGraph

from idea_validator.domain.exceptions import PipelineAborted
from idea_validator.graph import nodes
from idea_validator.graph.context import RunContext
from idea_validator.graph.state import ResearchState
from idea_validator.graph.wrapper import FallbackFn, NodeFn, StageFn, wrap_stage
from idea_validator.services import fallbacks


@dataclass(frozen=True)
class StageSpec:
    """One position in the chain: the stage, its fallback and the field it owns."""

    name: str
    fn: StageFn
    fallback: FallbackFn
    writes: str


STAGES: tuple[StageSpec, ...] = (
    StageSpec("plan_queries", nodes.plan_queries, fallbacks.plan_fallback, "queries"),
    StageSpec("fetch_trends", nodes.fetch_trends, fallbacks.trends_fallback, "trends_data"),
    StageSpec("demand_check", nodes.demand_check, fallbacks.demand_fallback, "demand_data"),
    StageSpec(
        "adopter_search", nodes.adopter_search, fallbacks.adopters_fallback, "adopter_data"
    ),
    StageSpec("funder_search", nodes.funder_search, fallbacks.funders_fallback, "funder_data"),
    StageSpec(
        "community_research",
        nodes.community_research,
        fallbacks.community_fallback,
        "community_data",
    ),
    StageSpec(
        "web_research", nodes.web_research, fallbacks.web_intel_fallback, "web_intel_data"
    ),
    StageSpec("synthesis", nodes.synthesis, fallbacks.synthesis_fallback, "verdict"),
)

STAGE_NAMES: tuple[str, ...] = tuple(spec.name for spec in STAGES)
STAGE_OWNERS: dict[str, str] = {spec.name: spec.writes for spec in STAGES}


def _abortable(name: str, node: NodeFn, ctx: RunContext, completed: list[str]) -> NodeFn:
    """Refuse to start *name* once the run's abort event is set."""

    async def guarded(state: Mapping[str, Any]) -> dict[str, Any]:
        if ctx.aborted:
            raise PipelineAborted(
                f"Run aborted before {name}", completed_stages=tuple(completed)
            )
        patch = await node(state)
        completed.append(name)
        return patch

    return guarded


def build_research_graph(
    ctx: RunContext,
    stages: tuple[StageSpec, ...] = STAGES,
    completed: list[str] | None = None,
) -> Any:
    """Build and compile the research StateGraph for one run.

    Parameters
    ----------
    ctx:
        Run context the stage functions are bound to.
    stages:
        Ordered stage table; tests substitute stage functions through it.
    completed:
        Optional list the nodes append their name to once they finish.

    Returns
    -------
    CompiledStateGraph
        A compiled graph ready for ``.ainvoke()`` or ``.astream()``.
    """
    done = completed if completed is not None else []
    graph = StateGraph(ResearchState)

    previous = START
    for spec in stages:
        node = wrap_stage(spec.name, spec.fn, spec.fallback, ctx)
        graph.add_node(spec.name, _abortable(spec.name, node, ctx, done))
        graph.add_edge(previous, spec.name)
        previous = spec.name
    graph.add_edge(previous, END)

    return graph.compile()


__all__ = [
    "STAGES",
    "STAGE_NAMES",
    "STAGE_OWNERS",
    "StageSpec",
    "build_research_graph",
]
