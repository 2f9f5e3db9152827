"""Reduce chat-completion fragments into a single assistant turn."""

from __future__ import annotations

import inspect
import json
from dataclasses import dataclass, field
from typing import Any, AsyncIterable, Iterable, Union

from reactagent.models.base import AssistantTurn, ChunkCallback, ToolCall
from reactagent.util.json_repair import JsonRepairError, repair_json
from reactagent.util.logging import get_logger

logger = get_logger(__name__)

Fragment = dict[str, Any]


@dataclass
class _PendingToolCall:
    index: int
    id: str | None = None
    type: str | None = None
    name: str | None = None
    arguments: list[str] = field(default_factory=list)

    def merge(self, delta: dict[str, Any]) -> None:
        if delta.get("id") and not self.id:
            self.id = delta["id"]
        if delta.get("type") and not self.type:
            self.type = delta["type"]
        function = delta.get("function") or {}
        if function.get("name") and not self.name:
            self.name = function["name"]
        if function.get("arguments"):
            self.arguments.append(function["arguments"])

    def materialize(self) -> ToolCall:
        name = self.name or ""
        raw = "".join(self.arguments)
        arguments, error, repaired = _parse_arguments(name, raw)
        return ToolCall(
            id=self.id or f"call_{self.index}",
            name=name,
            arguments=arguments,
            raw_arguments=raw,
            arguments_error=error,
            arguments_repaired=repaired,
        )


def _parse_arguments(name: str, raw: Any) -> tuple[dict[str, Any], str | None, bool]:
    if isinstance(raw, dict):
        return raw, None, False
    if raw is None:
        return {}, None, False
    if not isinstance(raw, str):
        error = f"expected JSON text or object, got {type(raw).__name__}"
        logger.warning("Malformed arguments for tool %s: %s", name, error)
        return {}, error, False
    if not raw.strip():
        return {}, None, False
    repaired = False
    try:
        parsed = json.loads(raw)
    except (json.JSONDecodeError, RecursionError):
        try:
            parsed = repair_json(raw)
        except JsonRepairError as exc:
            logger.warning("Malformed arguments for tool %s: %s", name, exc)
            return {}, str(exc), False
        repaired = True
        logger.info("Repaired malformed arguments for tool %s.", name)
    if not isinstance(parsed, dict):
        return {}, f"expected a JSON object, got {type(parsed).__name__}", False
    return parsed, None, repaired


def parse_tool_arguments(name: str, raw: Any) -> tuple[dict[str, Any], str | None]:
    """Parse accumulated argument text into a mapping.

    Returns the arguments and an error message; on failure the arguments are
    empty and the error explains why.
    """
    arguments, error, _ = _parse_arguments(name, raw)
    return arguments, error


def content_text(content: Any) -> str:
    """Flatten message content that may be a string or a list of parts."""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts: list[str] = []
        for part in content:
            if isinstance(part, str):
                parts.append(part)
            elif isinstance(part, dict) and isinstance(part.get("text"), str):
                parts.append(part["text"])
        return "".join(parts)
    return ""


class StreamCollector:
    """Accumulates streamed deltas for one response.

    Tool-call deltas are keyed by their positional ``index``, which is only
    meaningful inside a single response stream.
    """

    def __init__(self, on_chunk: ChunkCallback | None = None) -> None:
        self.on_chunk = on_chunk
        self._text: list[str] = []
        self._pending: dict[int, _PendingToolCall] = {}
        self.fragments_seen = 0

    async def feed(self, fragment: Fragment) -> None:
        self.fragments_seen += 1
        choices = fragment.get("choices") or []
        if not choices:
            return
        delta = choices[0].get("delta") or {}
        text = content_text(delta.get("content"))
        if text:
            self._text.append(text)
            if self.on_chunk is not None:
                result = self.on_chunk(text)
                if inspect.isawaitable(result):
                    await result
        for tool_delta in delta.get("tool_calls") or []:
            index = tool_delta.get("index", 0)
            pending = self._pending.get(index)
            if pending is None:
                pending = self._pending[index] = _PendingToolCall(index=index)
            pending.merge(tool_delta)

    def finish(self) -> AssistantTurn:
        calls = [self._pending[index].materialize() for index in sorted(self._pending)]
        logger.debug(
            "Stream collected: fragments=%s text_chars=%s tool_calls=%s",
            self.fragments_seen,
            sum(len(piece) for piece in self._text),
            len(calls),
        )
        return AssistantTurn(text="".join(self._text), tool_calls=calls)


async def collect_stream(
    fragments: Union[AsyncIterable[Fragment], Iterable[Fragment]],
    on_chunk: ChunkCallback | None = None,
) -> AssistantTurn:
    """Consume a fragment sequence exactly once and return the assistant turn."""
    collector = StreamCollector(on_chunk)
    if hasattr(fragments, "__aiter__"):
        async for fragment in fragments:  # type: ignore[union-attr]
            await collector.feed(fragment)
    else:
        for fragment in fragments:  # type: ignore[union-attr]
            await collector.feed(fragment)
    return collector.finish()


def turn_from_message(message: dict[str, Any]) -> AssistantTurn:
    """Build an assistant turn from one complete, non-streamed message."""
    calls: list[ToolCall] = []
    for index, raw_call in enumerate(message.get("tool_calls") or []):
        function = raw_call.get("function") or {}
        name = function.get("name") or ""
        raw_arguments = function.get("arguments")
        arguments, error, repaired = _parse_arguments(name, raw_arguments)
        calls.append(
            ToolCall(
                id=raw_call.get("id") or f"call_{index}",
                name=name,
                arguments=arguments,
                raw_arguments=raw_arguments if isinstance(raw_arguments, str) else json.dumps(arguments),
                arguments_error=error,
                arguments_repaired=repaired,
            )
        )
    return AssistantTurn(text=content_text(message.get("content")), tool_calls=calls)
