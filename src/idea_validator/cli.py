"""Command-line interface for Idea Validator.

Provides subcommands for researching an idea and for checking which
external services are configured.  API keys are read from the environment
after loading a ``.env`` file from the working directory, if present.

Entry point
-----------
The ``main()`` function is registered as a console script in
``pyproject.toml``::

    [project.scripts]
    idea-validator = "idea_validator.cli:main"

Usage examples::

    idea-validator research "AI meal planner for shift workers"
    idea-validator research "B2B invoice OCR" --description "for EU SMEs" --format jsonl
    idea-validator info
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import Any

from dotenv import load_dotenv

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    """Build the top-level argument parser with subcommands."""
    parser = argparse.ArgumentParser(
        prog="idea-validator",
        description=(
            "Idea Validator -- research a startup idea across Twitter/X, the "
            "web and LLM synthesis, and print a scored verdict."
        ),
    )
    parser.add_argument(
        "--version",
        action="store_true",
        default=False,
        help="Show version and exit.",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available subcommands")

    # -- research ------------------------------------------------------------
    research_parser = subparsers.add_parser(
        "research",
        help="Research a single idea.",
        description="Run the full research pipeline for one startup idea.",
    )
    research_parser.add_argument("idea", type=str, help="The startup idea, in a few words.")
    research_parser.add_argument(
        "--description",
        type=str,
        default="",
        help="Optional longer description of the idea.",
    )
    research_parser.add_argument(
        "--format",
        type=str,
        default="text",
        choices=["text", "json", "jsonl"],
        help=(
            "Output format.  'text' renders events live, 'jsonl' prints one "
            "event per line, 'json' prints the final state only. (default: text)"
        ),
    )
    research_parser.add_argument(
        "--quiet",
        action="store_true",
        default=False,
        help="Hide tool call/result lines in text output.",
    )
    research_parser.add_argument(
        "--log-level",
        type=str,
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level for diagnostics on stderr. (default: WARNING)",
    )

    # -- info ----------------------------------------------------------------
    subparsers.add_parser(
        "info",
        help="Show version and external service configuration.",
        description="Display version, configured API keys and pipeline defaults.",
    )

    return parser


# =========================================================================
# Subcommand handlers
# =========================================================================

async def _research(args: argparse.Namespace) -> int:
    from idea_validator.domain.enums import EventKind
    from idea_validator.domain.events import ProgressEvent, to_jsonable
    from idea_validator.domain.exceptions import IdeaValidatorError
    from idea_validator.graph import PipelineServices, ResearchPipeline
    from idea_validator.infrastructure.config import ApiKeys, PipelineConfig
    from idea_validator.infrastructure.event_sink import CallbackSink, EventBus, LoggingSink
    from idea_validator.presentation.console import ConsoleRenderer

    config = PipelineConfig()
    services = PipelineServices.from_keys(ApiKeys.from_env(), config)
    pipeline = ResearchPipeline(services, config)

    bus = EventBus()
    renderer: ConsoleRenderer | None = None
    if args.format == "text":
        renderer = ConsoleRenderer(verbose=not args.quiet)
        bus.subscribe_all(renderer.emit)
    else:
        if args.format == "jsonl":

            def _print_event(event: ProgressEvent) -> None:
                print(json.dumps(event.to_dict(), default=str), flush=True)

            bus.subscribe_all(CallbackSink(_print_event).emit)
        # Warnings and errors go to stderr diagnostics, stdout stays machine-readable.
        diagnostics = LoggingSink()
        bus.subscribe(EventKind.WARNING, diagnostics.emit)
        bus.subscribe(EventKind.ERROR, diagnostics.emit)

    try:
        state = await pipeline.run(
            {"idea": args.idea, "description": args.description}, sink=bus
        )
    except IdeaValidatorError as exc:
        if args.format == "json":
            print(json.dumps({"error": type(exc).__name__, "message": str(exc)}))
        elif args.format == "text":
            print(f"Error: {exc}", file=sys.stderr)
        return 1
    finally:
        await services.aclose()

    if renderer is not None:
        renderer.print_state(state)
    elif args.format == "json":
        print(json.dumps(to_jsonable(state), indent=2, default=str))
    return 0


def _cmd_research(args: argparse.Namespace) -> int:
    """Handle the ``research`` subcommand."""
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    return asyncio.run(_research(args))


def _cmd_info(args: argparse.Namespace) -> int:
    """Handle the ``info`` subcommand."""
    from idea_validator import __version__
    from idea_validator.infrastructure.config import ApiKeys, PipelineConfig
    from idea_validator.infrastructure.llm.factory import DEFAULT_MODELS

    print(f"Idea Validator v{__version__}")
    print()

    keys = ApiKeys.from_env()
    print("External services:")
    for service, status in keys.status().items():
        print(f"  [{status}] {service}")
    print()

    print("Models:")
    for provider, model in DEFAULT_MODELS.items():
        print(f"  {provider} -- {model}")
    print()

    print("Pipeline defaults:")
    for name, value in PipelineConfig().to_dict().items():
        print(f"  {name} = {value}")

    return 0


# =========================================================================
# Main entry point
# =========================================================================

def main(argv: list[str] | None = None) -> None:
    """CLI entry point.

    Parameters
    ----------
    argv:
        Command-line arguments.  Defaults to ``sys.argv[1:]``.
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.version:
        from idea_validator import __version__
        print(f"idea-validator {__version__}")
        sys.exit(0)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    load_dotenv()

    handlers: dict[str, Any] = {
        "research": _cmd_research,
        "info": _cmd_info,
    }

    handler = handlers.get(args.command)
    if handler is None:
        parser.print_help()
        sys.exit(1)

    try:
        exit_code = handler(args)
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        exit_code = 130
    except Exception as exc:
        logger.debug("command %s failed", args.command, exc_info=True)
        print(f"Error: {exc}", file=sys.stderr)
        exit_code = 1

    sys.exit(exit_code)
