"""Domain exceptions for the idea-validation pipeline.

All package exceptions inherit from ``IdeaValidatorError`` so callers can
catch the full family with a single ``except`` clause when needed.  Only
``InvalidInputError``, ``InvariantViolation`` and ``PipelineAborted`` ever
escape a pipeline run; everything else is absorbed by the fan-out aggregator
or the stage wrapper.
"""

from __future__ import annotations

from typing import Any


class IdeaValidatorError(Exception):
    """Base exception for all idea-validator errors."""

    def __init__(self, message: str = "", details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.details: dict[str, Any] = details or {}


class InvalidInputError(IdeaValidatorError):
    """Raised when the initial run input cannot seed a pipeline run."""

    def __init__(
        self,
        message: str = "Invalid pipeline input",
        field: str = "",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.field = field


class InvariantViolation(IdeaValidatorError):
    """Raised when the engine detects a broken internal invariant.

    Examples: a stage patch writing a field owned by another stage, or a
    run finishing without a verdict.
    """

    def __init__(
        self,
        message: str = "Pipeline invariant violated",
        stage: str = "",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.stage = stage


class PipelineAborted(IdeaValidatorError):
    """Raised when the consumer disconnects and the run stops between stages."""

    def __init__(
        self,
        message: str = "Pipeline aborted",
        completed_stages: tuple[str, ...] = (),
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.completed_stages = completed_stages


class ExternalServiceError(IdeaValidatorError):
    """Raised by an external client on transport failure, non-2xx status,
    or a malformed payload."""

    def __init__(
        self,
        message: str = "External service call failed",
        service: str = "",
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.service = service
        self.status_code = status_code


class FanoutTimeout(IdeaValidatorError):
    """Recorded in an envelope when a fan-out task exceeds its timeout."""

    def __init__(
        self,
        message: str = "timeout",
        timeout: float = 0.0,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.timeout = timeout


class ConfigurationError(IdeaValidatorError):
    """Raised when a required service is not configured."""

    def __init__(
        self,
        message: str = "Missing configuration",
        setting: str = "",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.setting = setting
