"""Best-effort repair of JSON emitted by language models."""

from __future__ import annotations

import ast
import json
import re
from typing import Any


_FENCE_RE = re.compile(r"```(?:json)?\s*(.*?)```", re.DOTALL | re.IGNORECASE)
_TRAILING_COMMA_RE = re.compile(r",\s*([}\]])")
_SINGLE_QUOTED_RE = re.compile(r"(?<!\\)'([^'\\]*(?:\\.[^'\\]*)*)'")


class JsonRepairError(ValueError):
    """Raised when JSON repair fails."""


def _strip_fences(text: str) -> str:
    match = _FENCE_RE.search(text)
    if match:
        return match.group(1).strip()
    return text.strip()


def _outermost_object(text: str) -> str:
    """Slice the first balanced ``{...}`` or ``[...]`` block out of text."""
    start = next((idx for idx, char in enumerate(text) if char in "{["), None)
    if start is None:
        raise JsonRepairError("No JSON object or array found")
    depth = 0
    in_string = False
    escape = False
    for idx in range(start, len(text)):
        char = text[idx]
        if in_string:
            if escape:
                escape = False
            elif char == "\\":
                escape = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char in "{[":
            depth += 1
        elif char in "}]":
            depth -= 1
            if depth == 0:
                return text[start : idx + 1]
    raise JsonRepairError("Unbalanced JSON braces")


def _candidates(block: str) -> list[str]:
    without_commas = _TRAILING_COMMA_RE.sub(r"\1", block)
    double_quoted = _TRAILING_COMMA_RE.sub(r"\1", _SINGLE_QUOTED_RE.sub(r'"\1"', without_commas))
    return [without_commas, double_quoted]


def repair_json(text: str) -> Any:
    """Parse JSON with best-effort repairs.

    Handles markdown code fences, prose around the payload, trailing commas
    and Python-style single quoted literals.
    """
    block = _outermost_object(_strip_fences(text))
    last_error: Exception | None = None
    for candidate in _candidates(block):
        try:
            return json.loads(candidate)
        except (json.JSONDecodeError, RecursionError) as exc:
            last_error = exc
        try:
            return ast.literal_eval(candidate)
        except (ValueError, SyntaxError, TypeError, RecursionError, MemoryError) as exc:
            last_error = exc
    raise JsonRepairError(f"Failed to repair JSON: {last_error}")
