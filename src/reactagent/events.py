"""Lifecycle events emitted by the agent loop to an optional observer."""

from __future__ import annotations

import inspect
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Literal, Union

from reactagent.models.base import ToolCall


@dataclass(frozen=True)
class StepStarted:
    step: int
    type: Literal["step_started"] = "step_started"


@dataclass(frozen=True)
class MessageChunk:
    step: int
    chunk: str
    type: Literal["message_chunk"] = "message_chunk"


@dataclass(frozen=True)
class MessageCompleted:
    step: int
    content: str
    trimmed_content: str
    tool_calls: list[ToolCall] = field(default_factory=list)
    is_final: bool = False
    type: Literal["message_completed"] = "message_completed"


@dataclass(frozen=True)
class ToolCallStarted:
    step: int
    call: ToolCall
    type: Literal["tool_call"] = "tool_call"


@dataclass(frozen=True)
class ToolResultReceived:
    step: int
    call: ToolCall
    result: str
    is_error: bool
    type: Literal["tool_result"] = "tool_result"


@dataclass(frozen=True)
class RunCompleted:
    answer: str
    steps: int
    type: Literal["run_completed"] = "run_completed"


AgentEvent = Union[
    StepStarted,
    MessageChunk,
    MessageCompleted,
    ToolCallStarted,
    ToolResultReceived,
    RunCompleted,
]

StreamObserver = Callable[[AgentEvent], Union[Awaitable[None], None]]


async def notify(observer: StreamObserver | None, event: AgentEvent) -> None:
    """Deliver an event, waiting for the observer if it is asynchronous."""
    if observer is None:
        return
    result = observer(event)
    if inspect.isawaitable(result):
        await result
