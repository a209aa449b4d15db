"""Best-effort structured extraction from free-form LLM text.

Models asked for JSON often wrap it in prose or Markdown fences.
:func:`extract_json_object` scans for the first *balanced* ``{...}`` object
(respecting string literals and escapes), parses it, and returns a tagged
result -- :class:`Parsed` or :class:`Unparsed` -- instead of raising.
"""

from __future__ import annotations

import json
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any, Union

from pydantic import BaseModel, ValidationError


@dataclass(frozen=True)
class Parsed:
    value: Any


@dataclass(frozen=True)
class Unparsed:
    raw_text: str
    reason: str = ""


ExtractionResult = Union[Parsed, Unparsed]


def _balanced_objects(text: str) -> list[str]:
    """Return every top-level balanced ``{...}`` substring, in order."""
    found: list[str] = []
    depth = 0
    start = -1
    in_string = False
    escaped = False
    for i, ch in enumerate(text):
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"' and depth > 0:
            in_string = True
        elif ch == "{":
            if depth == 0:
                start = i
            depth += 1
        elif ch == "}" and depth > 0:
            depth -= 1
            if depth == 0:
                found.append(text[start:i + 1])
    return found


def extract_json_object(text: str | None) -> ExtractionResult:
    """Extract the first balanced JSON object that parses from *text*.

    Never raises.  Returns ``Unparsed`` when no object parses.
    """
    if not text:
        return Unparsed(raw_text=text or "", reason="empty response")
    for candidate in _balanced_objects(text):
        try:
            value = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(value, dict):
            return Parsed(value)
    return Unparsed(raw_text=text, reason="no JSON object found")


def extract_model(
    text: str | None,
    schema: type[BaseModel],
    exclude: Iterable[str] = (),
) -> ExtractionResult:
    """Extract a JSON object and validate it against a pydantic *schema*.

    ``Parsed.value`` is the validated model instance; validation errors
    produce ``Unparsed`` with the error summary as the reason.  Keys named
    in *exclude* are dropped before validation, for fields the caller sets
    itself.
    """
    result = extract_json_object(text)
    if isinstance(result, Unparsed):
        return result
    skipped = set(exclude)
    data = {k: v for k, v in result.value.items() if k not in skipped}
    try:
        return Parsed(schema.model_validate(data))
    except ValidationError as exc:
        return Unparsed(
            raw_text=text or "",
            reason=f"{exc.error_count()} validation error(s) for {schema.__name__}",
        )
