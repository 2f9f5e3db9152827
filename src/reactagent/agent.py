"""Core agent loop."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from reactagent.config import AgentConfig
from reactagent.errors import MalformedToolArgumentsError, StepBudgetExceededError
from reactagent.events import (
    MessageChunk,
    MessageCompleted,
    RunCompleted,
    StepStarted,
    StreamObserver,
    ToolCallStarted,
    ToolResultReceived,
    notify,
)
from reactagent.models.base import AssistantTurn, BaseChatModel, ChunkCallback, CompletionRequest, ToolCall
from reactagent.prompts import BASE_SYSTEM_PROMPT, render_initial_user_prompt
from reactagent.tools.registry import ToolRegistry
from reactagent.transcript import Transcript
from reactagent.util.logging import get_logger, preview, redact

logger = get_logger(__name__)


@dataclass
class RunResult:
    answer: str
    transcript: list[str] | None = None
    steps: int = 0


class ReActAgent:
    """Alternates model turns and tool calls until the model answers.

    Each ``run`` owns its conversation. Tool calls within one step execute
    sequentially in the order the model listed them, and a failing tool is
    reported back to the model instead of aborting the run. Transport errors
    and step budget exhaustion propagate to the caller.
    """

    def __init__(self, model: BaseChatModel, registry: ToolRegistry, config: AgentConfig) -> None:
        self.model = model
        self.registry = registry
        self.config = config

    def _request(self, messages: list[dict[str, Any]]) -> CompletionRequest:
        return CompletionRequest(
            model=self.config.model,
            messages=messages,
            tools=self.registry.openai_schemas(),
            temperature=self.config.temperature,
            max_tokens=self.config.max_tokens,
            top_p=self.config.top_p,
            top_k=self.config.top_k,
            stream=self.config.stream,
        )

    async def run(
        self,
        query: str,
        *,
        debug: bool = False,
        stream_observer: StreamObserver | None = None,
    ) -> RunResult:
        logger.info("Agent run started (max_steps=%s, stream=%s).", self.config.max_steps, self.config.stream)
        logger.info("User query: %s", redact(preview(query)))
        messages: list[dict[str, Any]] = [
            {"role": "system", "content": BASE_SYSTEM_PROMPT},
            {"role": "user", "content": render_initial_user_prompt(query)},
        ]
        transcript = Transcript() if debug else None

        for step in range(1, self.config.max_steps + 1):
            logger.info("Step %s/%s.", step, self.config.max_steps)
            await notify(stream_observer, StepStarted(step=step))

            turn = await self.model.complete(
                self._request(messages), on_chunk=self._chunk_forwarder(stream_observer, step)
            )
            messages.append(turn.to_message())

            trimmed = turn.text.strip()
            if transcript is not None:
                transcript.record_thought(step, turn.text)
            await notify(
                stream_observer,
                MessageCompleted(
                    step=step,
                    content=turn.text,
                    trimmed_content=trimmed,
                    tool_calls=list(turn.tool_calls),
                    is_final=turn.is_final,
                ),
            )

            if turn.is_final:
                if transcript is not None:
                    transcript.record_final_answer(trimmed)
                logger.info("Final answer after %s step(s) (%s chars).", step, len(trimmed))
                await notify(stream_observer, RunCompleted(answer=trimmed, steps=step))
                return RunResult(
                    answer=trimmed,
                    transcript=transcript.entries if transcript is not None else None,
                    steps=step,
                )

            await self._run_tool_calls(step, turn, messages, transcript, stream_observer)

        logger.warning("Step budget of %s exhausted without a final answer.", self.config.max_steps)
        raise StepBudgetExceededError(self.config.max_steps)

    def _chunk_forwarder(self, observer: StreamObserver | None, step: int) -> ChunkCallback | None:
        if observer is None:
            return None

        async def forward(chunk: str) -> None:
            await notify(observer, MessageChunk(step=step, chunk=chunk))

        return forward

    async def _run_tool_calls(
        self,
        step: int,
        turn: AssistantTurn,
        messages: list[dict[str, Any]],
        transcript: Transcript | None,
        observer: StreamObserver | None,
    ) -> None:
        for call in turn.tool_calls:
            await notify(observer, ToolCallStarted(step=step, call=call))
            if transcript is not None:
                transcript.record_tool_call(step, call.name, call.arguments)
            output, is_error = await self._execute_tool(call)
            messages.append({"role": "tool", "tool_call_id": call.id, "content": output})
            if transcript is not None:
                transcript.record_tool_result(output)
            await notify(
                observer,
                ToolResultReceived(step=step, call=call, result=output, is_error=is_error),
            )

    async def _execute_tool(self, call: ToolCall) -> tuple[str, bool]:
        try:
            if call.arguments_error is not None:
                raise MalformedToolArgumentsError(call.name, call.arguments_error)
            output = await self.registry.execute(call.name, call.arguments)
            if not isinstance(output, str):
                raise TypeError(f"tool returned {type(output).__name__}, expected text")
            return output, False
        except Exception as exc:  # noqa: BLE001
            logger.warning("Tool %s failed: %s", call.name, redact(str(exc)))
            return self._tool_error_payload(call, exc), True

    def _tool_error_payload(self, call: ToolCall, exc: Exception) -> str:
        return json.dumps(
            {
                "ok": False,
                "tool": call.name,
                "error_type": exc.__class__.__name__,
                "error": f"{call.name} failed: {exc}",
            },
            ensure_ascii=False,
        )
