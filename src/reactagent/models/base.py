"""Base model interfaces."""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Union

from pydantic import BaseModel, Field

ChunkCallback = Callable[[str], Union[Awaitable[None], None]]


class ToolCall(BaseModel):
    """A tool invocation requested by the model within one step."""

    id: str
    name: str
    arguments: dict[str, Any] = Field(default_factory=dict)
    raw_arguments: str = ""
    arguments_error: str | None = None
    arguments_repaired: bool = False

    def to_message(self) -> dict[str, Any]:
        """Render the call the way the transport expects it echoed back."""
        raw = self.raw_arguments
        if self.arguments_repaired or not raw:
            raw = json.dumps(self.arguments, ensure_ascii=False)
        return {
            "id": self.id,
            "type": "function",
            "function": {"name": self.name, "arguments": raw},
        }


class AssistantTurn(BaseModel):
    """One materialized assistant message."""

    text: str = ""
    tool_calls: list[ToolCall] = Field(default_factory=list)

    @property
    def is_final(self) -> bool:
        return not self.tool_calls

    def to_message(self) -> dict[str, Any]:
        message: dict[str, Any] = {"role": "assistant", "content": self.text or None}
        if self.tool_calls:
            message["tool_calls"] = [call.to_message() for call in self.tool_calls]
        return message


class CompletionRequest(BaseModel):
    """Parameters for one completion call."""

    messages: list[dict[str, Any]]
    tools: list[dict[str, Any]] = Field(default_factory=list)
    temperature: float | None = None
    max_tokens: int | None = None
    top_p: float | None = None
    top_k: int | None = None
    stream: bool = False
    model: str | None = None


class BaseChatModel(ABC):
    """Abstract chat model interface."""

    @abstractmethod
    async def complete(
        self, request: CompletionRequest, on_chunk: ChunkCallback | None = None
    ) -> AssistantTurn:
        """Send a completion request and return the materialized assistant turn.

        When ``request.stream`` is set, ``on_chunk`` receives each text slice
        as it arrives.
        """
        raise NotImplementedError

    async def aclose(self) -> None:
        """Release transport resources."""
        return None
