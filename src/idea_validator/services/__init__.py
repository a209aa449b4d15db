"""Service layer: fan-out, prefetch, extraction, heuristics and fallbacks."""

from idea_validator.services.extraction import (
    ExtractionResult,
    Parsed,
    Unparsed,
    extract_json_object,
    extract_model,
)
from idea_validator.services.fallbacks import (
    complete_query_plan,
    fallback_query_plan,
    fallback_verdict,
)
from idea_validator.services.fanout import dedupe_by_key, gather_all, successful_values
from idea_validator.services.prefetch import PrefetchHandle, Prefetcher

__all__ = [
    "ExtractionResult",
    "Parsed",
    "PrefetchHandle",
    "Prefetcher",
    "Unparsed",
    "complete_query_plan",
    "dedupe_by_key",
    "extract_json_object",
    "extract_model",
    "fallback_query_plan",
    "fallback_verdict",
    "gather_all",
    "successful_values",
]
