"""Rich-based console rendering of progress events and verdicts.

:class:`ConsoleRenderer` is an event sink: hand it to
``ResearchPipeline.run(sink=...)`` and it prints each event as it arrives,
coloured by kind, then :meth:`ConsoleRenderer.print_verdict` renders the
final scorecard as tables.
"""

from __future__ import annotations

import sys
from collections.abc import Mapping
from typing import Any

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from idea_validator.domain.enums import EventKind, Recommendation
from idea_validator.domain.events import ProgressEvent
from idea_validator.domain.schemas import Verdict
from idea_validator.domain.values import WebIntelData

# ---------------------------------------------------------------------------
# Styles
# ---------------------------------------------------------------------------

_KIND_STYLES: dict[EventKind, str] = {
    EventKind.INFO: "white",
    EventKind.WARNING: "yellow",
    EventKind.ERROR: "bold red",
    EventKind.STAGE_STARTED: "bold cyan",
    EventKind.STAGE_COMPLETED: "green",
    EventKind.PLAN: "magenta",
    EventKind.TERMINAL_RESULT: "bold green",
    EventKind.HEARTBEAT: "dim",
}

_CHANNEL_STYLES: dict[str, str] = {
    "llm_call": "blue",
    "tool_call": "dim cyan",
    "tool_result": "dim green",
}

_CHANNEL_PREFIX: dict[str, str] = {
    "llm_call": "llm",
    "tool_call": "call",
    "tool_result": "result",
}

_RECOMMENDATION_STYLES: dict[Recommendation, str] = {
    Recommendation.BUILD: "bold green",
    Recommendation.EXPLORE: "bold cyan",
    Recommendation.PIVOT: "bold yellow",
    Recommendation.ABANDON: "bold red",
}


def _score_style(score: int) -> str:
    if score >= 70:
        return "bold green"
    if score >= 40:
        return "bold yellow"
    return "bold red"


# ---------------------------------------------------------------------------
# ConsoleRenderer
# ---------------------------------------------------------------------------

class ConsoleRenderer:
    """Console presentation layer for a research run.

    Parameters
    ----------
    file:
        Output stream.  Defaults to ``sys.stdout``.
    verbose:
        When ``False``, ``tool_call`` / ``tool_result`` lines and heartbeats
        are hidden.
    color:
        Force colour on (``True``) or off (``False``).  ``None`` lets rich
        detect the terminal.
    """

    def __init__(
        self,
        file: Any = None,
        verbose: bool = True,
        color: bool | None = None,
    ) -> None:
        self._file = file or sys.stdout
        self._verbose = verbose
        self._console = Console(
            file=self._file,
            no_color=color is False,
            force_terminal=True if color else None,
            highlight=False,
            soft_wrap=True,
        )

    @property
    def console(self) -> Console:
        return self._console

    # -- event sink --------------------------------------------------------

    def emit(self, event: ProgressEvent) -> None:
        """Render one progress event."""
        if event.kind is EventKind.HEARTBEAT and not self._verbose:
            return
        if event.channel in ("tool_call", "tool_result") and not self._verbose:
            return
        if event.kind is EventKind.TERMINAL_RESULT:
            self._console.print(Text(f"✔ {event.message}", style=_KIND_STYLES[event.kind]))
            return
        if event.kind is EventKind.STAGE_STARTED:
            self._console.print()
            self._console.rule(Text(event.stage or event.message, style="bold cyan"))

        style = _CHANNEL_STYLES.get(event.channel, _KIND_STYLES.get(event.kind, "white"))
        label = _CHANNEL_PREFIX.get(event.channel, event.kind.value)
        line = Text()
        line.append(f"[{label}] ", style="dim")
        line.append(event.message, style=style)
        self._console.print(line)

    # -- verdict -----------------------------------------------------------

    def print_verdict(self, verdict: Verdict) -> None:
        """Render the verdict scorecard."""
        header = Text()
        header.append(f"{verdict.score}/100", style=_score_style(verdict.score))
        header.append("  ")
        header.append(
            verdict.recommendation.value.upper(),
            style=_RECOMMENDATION_STYLES[verdict.recommendation],
        )
        if verdict.headline:
            header.append(f"\n{verdict.headline}", style="italic")
        self._console.print()
        self._console.print(Panel(header, title="Verdict", subtitle=verdict.source.value))

        summary = Table(show_header=False, box=None, padding=(0, 2))
        summary.add_column("Field", style="bold")
        summary.add_column("Value")
        summary.add_row("Competition risk", verdict.competition_risk.value)
        summary.add_row("Timing", verdict.timing.value)
        summary.add_row("Investor readiness", verdict.investor_readiness.value)
        summary.add_row("Market size", verdict.market_size or "-")
        summary.add_row("Target customer", verdict.target_customer or "-")
        summary.add_row("Go to market", verdict.go_to_market or "-")
        summary.add_row("Key insight", verdict.key_insight or "-")
        self._console.print(summary)

        for title, items in (
            ("Strengths", verdict.strengths),
            ("Weaknesses", verdict.weaknesses),
            ("Red flags", verdict.red_flags),
            ("Next actions", verdict.next_actions),
        ):
            if items:
                self._print_list(title, items)

        if verdict.top_funders:
            table = Table(title="Top funders")
            table.add_column("Name", style="bold")
            table.add_column("Twitter")
            table.add_column("Focus")
            table.add_column("Why")
            for pick in verdict.top_funders:
                table.add_row(pick.name, pick.twitter, pick.focus, pick.why)
            self._console.print(table)

    def print_sources(self, web: WebIntelData, limit: int = 10) -> None:
        if not web.sources:
            return
        table = Table(title=f"Web sources ({web.source_count})")
        table.add_column("#", justify="right")
        table.add_column("Title")
        table.add_column("URL", style="dim")
        for i, source in enumerate(web.sources[:limit], start=1):
            table.add_row(str(i), source.title or "Untitled", source.url)
        self._console.print(table)

    def print_state(self, state: Mapping[str, Any]) -> None:
        """Render the parts of a final run state worth showing."""
        web = state.get("web_intel_data")
        if isinstance(web, WebIntelData):
            self.print_sources(web)
        verdict = state.get("verdict")
        if isinstance(verdict, Verdict):
            self.print_verdict(verdict)

    def _print_list(self, title: str, items: list[str]) -> None:
        self._console.print(Text(title, style="bold"))
        for item in items:
            self._console.print(f"  • {item}")


__all__ = ["ConsoleRenderer"]
