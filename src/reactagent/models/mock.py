"""Mock chat model for offline testing."""

from __future__ import annotations

import inspect
from typing import Union

from reactagent.models.base import AssistantTurn, BaseChatModel, ChunkCallback, CompletionRequest
from reactagent.models.stream import Fragment, collect_stream

ScriptedReply = Union[AssistantTurn, list[Fragment], Exception]


class ScriptedChatModel(BaseChatModel):
    """Deterministic model that replays scripted replies in order.

    A reply is either a complete ``AssistantTurn``, a list of stream fragments
    (collected the same way a live stream is) or an exception to raise. Once
    the script runs out the model answers with a final echo of the last
    message.
    """

    def __init__(self, scripted: list[ScriptedReply] | None = None) -> None:
        self._scripted = list(scripted or [])
        self.requests: list[CompletionRequest] = []

    async def complete(
        self, request: CompletionRequest, on_chunk: ChunkCallback | None = None
    ) -> AssistantTurn:
        self.requests.append(request.model_copy(deep=True))
        if not self._scripted:
            last = request.messages[-1].get("content") if request.messages else ""
            return await self._replay(AssistantTurn(text=f"Mock response to: {last}"), request, on_chunk)
        reply = self._scripted.pop(0)
        if isinstance(reply, Exception):
            raise reply
        if isinstance(reply, list):
            return await collect_stream(reply, on_chunk if request.stream else None)
        return await self._replay(reply, request, on_chunk)

    async def _replay(
        self, turn: AssistantTurn, request: CompletionRequest, on_chunk: ChunkCallback | None
    ) -> AssistantTurn:
        if request.stream and on_chunk is not None and turn.text:
            result = on_chunk(turn.text)
            if inspect.isawaitable(result):
                await result
        return turn
