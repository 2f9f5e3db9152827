"""Console rendering of agent lifecycle events."""

from __future__ import annotations

import sys
from typing import TextIO

from reactagent.events import (
    AgentEvent,
    MessageChunk,
    MessageCompleted,
    RunCompleted,
    StepStarted,
    ToolCallStarted,
    ToolResultReceived,
)
from reactagent.transcript import format_arguments

PREVIEW_LIMIT = 600


def summarize_tool_preview(content: str, limit: int = PREVIEW_LIMIT) -> str:
    if len(content) <= limit:
        return content
    return f"{content[:limit]}\n... ({len(content) - limit} more characters)"


class ConsoleStreamObserver:
    """Writes streamed text and tool activity to a text stream as it happens."""

    def __init__(self, writer: TextIO | None = None) -> None:
        self.writer = writer or sys.stdout
        self.current_step: int | None = None

    def _write(self, text: str) -> None:
        self.writer.write(text)
        self.writer.flush()

    def __call__(self, event: AgentEvent) -> None:
        if isinstance(event, StepStarted):
            self.current_step = event.step
            self._write(f"\n=== Step {event.step} ===\n")
        elif isinstance(event, MessageChunk):
            self._write(event.chunk)
        elif isinstance(event, MessageCompleted):
            rendered = event.content if event.tool_calls else event.trimmed_content
            if not rendered.endswith("\n"):
                self._write("\n")
        elif isinstance(event, ToolCallStarted):
            step = f" (step {self.current_step})" if self.current_step is not None else ""
            self._write(f"\n→ Calling {event.call.name}{step} with:\n{format_arguments(event.call.arguments)}\n")
        elif isinstance(event, ToolResultReceived):
            heading = "⚠️ Tool error" if event.is_error else "← Tool result"
            self._write(f"\n{heading} ({event.call.name}):\n{summarize_tool_preview(event.result)}\n")
        elif isinstance(event, RunCompleted):
            self._write("\n\n✔️ Run complete.\n")
