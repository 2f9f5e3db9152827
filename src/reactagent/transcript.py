"""Human-readable debug transcript for a single agent run."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

TRANSCRIPT_CHAR_BUDGET = 1200
TRUNCATION_MARKER = "...(truncated)"


def truncate_for_transcript(text: str, limit: int = TRANSCRIPT_CHAR_BUDGET) -> str:
    if len(text) <= limit:
        return text
    return f"{text[:limit]}{TRUNCATION_MARKER}"


def format_arguments(arguments: dict[str, Any]) -> str:
    try:
        return json.dumps(arguments, indent=2, ensure_ascii=False)
    except (TypeError, ValueError):
        return str(arguments)


@dataclass
class Transcript:
    """Flat, ordered list of transcript entries.

    Tool results are stored as the (truncated) tool text itself so the log
    reads like the conversation the model saw.
    """

    entries: list[str] = field(default_factory=list)

    def record_thought(self, step: int, text: str) -> None:
        if text.strip():
            self.entries.append(f"Step {step} thought:\n{text.strip()}")

    def record_tool_call(self, step: int, name: str, arguments: dict[str, Any]) -> None:
        self.entries.append(f"Step {step} action: {name}\nInput:\n{format_arguments(arguments)}")

    def record_tool_result(self, text: str) -> None:
        self.entries.append(truncate_for_transcript(text))

    def record_final_answer(self, answer: str) -> None:
        self.entries.append(f"Final answer:\n{answer}")

    def render(self) -> str:
        return "\n\n".join(self.entries)
