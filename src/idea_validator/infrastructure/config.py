"""Configuration dataclasses for the idea-validation pipeline.

Each config is a plain frozen ``dataclass`` with a ``validate()`` method that
raises ``ValueError`` on invalid values, plus ``to_dict()`` / ``from_dict()``
helpers.  The numeric constants below are carried over as-is from the tuned
production pipeline; there is no derivation behind their exact values.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import asdict, dataclass, fields
from typing import Any


# ===================================================================== #
#  Pipeline Configuration                                                #
# ===================================================================== #

@dataclass(frozen=True)
class PipelineConfig:
    """Timeouts, pacing and scoring constants for one pipeline.

    Attributes
    ----------
    rate_interval:
        Minimum seconds between two Twitter API calls (free tier pacing).
    twitter_timeout:
        Per-task timeout for a Twitter fan-out call, including time spent
        queued in the rate limiter.
    web_timeout:
        Per-task timeout for a web-research query.
    http_timeout:
        Transport-level timeout of the HTTP clients.
    min_idea_length:
        Minimum number of non-blank characters in the idea text.
    web_max_results:
        Results requested per web-research query.
    web_source_limit:
        Maximum deduplicated web sources kept for synthesis.
    worldwide_woeid / usa_woeid:
        Locations used for the trend scan.
    trend_count:
        Trends requested per location.
    demand_volume_weight, demand_sentiment_weight, demand_likes_divisor,
    demand_likes_cap, demand_retweet_divisor, demand_retweet_cap:
        Weights of the demand score formula.
    error_preview_chars:
        Truncation of error text in warning events.
    query_preview_chars:
        Truncation of queries echoed in plan events.
    """

    rate_interval: float = 5.6
    twitter_timeout: float = 60.0
    web_timeout: float = 25.0
    http_timeout: float = 20.0
    min_idea_length: int = 3
    web_max_results: int = 7
    web_source_limit: int = 15
    worldwide_woeid: int = 1
    usa_woeid: int = 23424977
    trend_count: int = 30
    demand_volume_weight: float = 30.0
    demand_sentiment_weight: float = 0.4
    demand_likes_divisor: float = 10.0
    demand_likes_cap: float = 20.0
    demand_retweet_divisor: float = 5.0
    demand_retweet_cap: float = 10.0
    error_preview_chars: int = 80
    query_preview_chars: int = 72

    def validate(self) -> None:
        """Raise ``ValueError`` if any field is out of valid range."""
        if self.rate_interval < 0:
            raise ValueError(f"rate_interval must be >= 0, got {self.rate_interval}")
        for name in ("twitter_timeout", "web_timeout", "http_timeout"):
            value = getattr(self, name)
            if value <= 0:
                raise ValueError(f"{name} must be > 0, got {value}")
        if self.min_idea_length < 1:
            raise ValueError(
                f"min_idea_length must be >= 1, got {self.min_idea_length}"
            )
        if self.web_max_results < 1:
            raise ValueError(
                f"web_max_results must be >= 1, got {self.web_max_results}"
            )
        if self.web_source_limit < 0:
            raise ValueError(
                f"web_source_limit must be >= 0, got {self.web_source_limit}"
            )
        if self.demand_likes_divisor <= 0 or self.demand_retweet_divisor <= 0:
            raise ValueError("demand score divisors must be > 0")

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> PipelineConfig:
        valid_keys = {f.name for f in fields(cls)}
        filtered = {k: v for k, v in data.items() if k in valid_keys}
        cfg = cls(**filtered)
        cfg.validate()
        return cfg


# ===================================================================== #
#  API credentials                                                       #
# ===================================================================== #

_ENV_NAMES = {
    "openai": "OPENAI_API_KEY",
    "gemini": "GEMINI_API_KEY",
    "twitter": "TWITTER_API_KEY",
    "tavily": "TAVILY_API_KEY",
}


@dataclass(frozen=True)
class ApiKeys:
    """Credentials of the external services, read from the environment."""

    openai: str = ""
    gemini: str = ""
    twitter: str = ""
    tavily: str = ""

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> ApiKeys:
        env = os.environ if environ is None else environ
        return cls(**{field: env.get(var, "") for field, var in _ENV_NAMES.items()})

    def status(self) -> dict[str, str]:
        """Return ``configured`` / ``missing`` per service."""
        return {
            name: "configured" if getattr(self, name) else "missing"
            for name in _ENV_NAMES
        }

    def missing(self) -> list[str]:
        return [_ENV_NAMES[name] for name, state in self.status().items() if state == "missing"]

    def __repr__(self) -> str:
        return f"ApiKeys({self.status()})"
