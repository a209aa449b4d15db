"""Presentation layer: console rendering of progress events and verdicts."""

from idea_validator.presentation.console import ConsoleRenderer

__all__ = ["ConsoleRenderer"]
