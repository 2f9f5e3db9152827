from __future__ import annotations

import asyncio
import dataclasses
import json
from typing import Any

import pytest

from reactagent.agent import ReActAgent
from reactagent.config import AgentConfig
from reactagent.errors import StepBudgetExceededError
from reactagent.events import AgentEvent
from reactagent.models.base import AssistantTurn, ToolCall
from reactagent.models.mock import ScriptedChatModel
from reactagent.prompts import BASE_SYSTEM_PROMPT
from reactagent.tools.base import Tool
from reactagent.tools.registry import ToolRegistry

CONFIG = AgentConfig(
    api_key="test-key",
    model="gpt-test",
    base_url="https://example.com/v1",
    temperature=0.2,
    max_tokens=256,
    max_steps=5,
    top_p=0.95,
    stream=False,
)


class CalcTool(Tool):
    name = "calc"
    description = "Evaluates arithmetic"
    input_schema = {"type": "object", "properties": {"expression": {"type": "string"}}}

    def __init__(self, reply: str = "4") -> None:
        self.reply = reply
        self.calls: list[dict[str, Any]] = []

    async def call(self, arguments: dict[str, Any]) -> str:
        self.calls.append(arguments)
        return self.reply


class FailingTool(Tool):
    name = "flaky"
    description = "Always fails"
    input_schema = {"type": "object", "properties": {}}

    async def call(self, arguments: dict[str, Any]) -> str:
        raise RuntimeError("service unavailable")


def tool_turn(*calls: tuple[str, dict[str, Any]], text: str = "") -> AssistantTurn:
    return AssistantTurn(
        text=text,
        tool_calls=[
            ToolCall(id=f"call_{index}", name=name, arguments=arguments)
            for index, (name, arguments) in enumerate(calls)
        ],
    )


def make_agent(model: ScriptedChatModel, *tools: Tool, **config_changes: Any) -> ReActAgent:
    config = dataclasses.replace(CONFIG, **config_changes)
    return ReActAgent(model=model, registry=ToolRegistry(tools or [CalcTool()]), config=config)


@pytest.mark.asyncio
async def test_final_turn_on_first_step_returns_trimmed_text():
    calc = CalcTool()
    model = ScriptedChatModel([AssistantTurn(text="  Just an answer.\n")])
    result = await make_agent(model, calc).run("hello")
    assert result.answer == "Just an answer."
    assert result.transcript is None
    assert result.steps == 1
    assert calc.calls == []
    assert len(model.requests) == 1


@pytest.mark.asyncio
async def test_first_request_seeds_system_and_user_turns_and_advertises_tools():
    model = ScriptedChatModel([AssistantTurn(text="done")])
    await make_agent(model, top_k=40).run("what is new?")
    request = model.requests[0]
    assert [message["role"] for message in request.messages] == ["system", "user"]
    assert request.messages[0]["content"] == BASE_SYSTEM_PROMPT
    assert "Task: what is new?" in request.messages[1]["content"]
    assert request.tools[0]["function"]["name"] == "calc"
    assert request.model == "gpt-test"
    assert request.temperature == 0.2
    assert request.max_tokens == 256
    assert request.top_p == 0.95
    assert request.top_k == 40
    assert request.stream is False


@pytest.mark.asyncio
async def test_end_to_end_tool_call_then_answer_with_transcript():
    calc = CalcTool("4")
    model = ScriptedChatModel(
        [
            tool_turn(("calc", {})),
            AssistantTurn(text="The answer is 4."),
        ]
    )
    result = await make_agent(model, calc).run("what is 2+2", debug=True)

    assert result.answer == "The answer is 4."
    assert calc.calls == [{}]
    assert result.transcript is not None
    assert any(entry.startswith("Step 1 action: calc") for entry in result.transcript)
    assert "4" in result.transcript
    assert result.transcript[-1] == "Final answer:\nThe answer is 4."

    second = model.requests[1].messages
    assert [message["role"] for message in second] == ["system", "user", "assistant", "tool"]
    assert second[2]["tool_calls"][0]["id"] == "call_0"
    assert second[3] == {"role": "tool", "tool_call_id": "call_0", "content": "4"}


@pytest.mark.asyncio
async def test_tool_failure_is_fed_back_and_loop_continues():
    model = ScriptedChatModel(
        [
            tool_turn(("flaky", {})),
            AssistantTurn(text="Recovered."),
        ]
    )
    result = await make_agent(model, FailingTool()).run("try it")
    assert result.answer == "Recovered."
    assert len(model.requests) == 2
    tool_message = model.requests[1].messages[-1]
    assert tool_message["role"] == "tool"
    payload = json.loads(tool_message["content"])
    assert payload["ok"] is False
    assert payload["tool"] == "flaky"
    assert payload["error_type"] == "RuntimeError"
    assert "flaky failed: service unavailable" in payload["error"]


@pytest.mark.asyncio
async def test_unknown_tool_is_recoverable():
    model = ScriptedChatModel([tool_turn(("missing", {})), AssistantTurn(text="ok")])
    result = await make_agent(model).run("q")
    assert result.answer == "ok"
    payload = json.loads(model.requests[1].messages[-1]["content"])
    assert payload["error_type"] == "UnknownToolError"
    assert "missing" in payload["error"]


@pytest.mark.asyncio
async def test_malformed_arguments_are_recoverable_and_tool_is_not_called():
    calc = CalcTool()
    broken = AssistantTurn(
        tool_calls=[ToolCall(id="c1", name="calc", raw_arguments='{"x":', arguments_error="Unbalanced JSON braces")]
    )
    model = ScriptedChatModel([broken, AssistantTurn(text="fine")])
    result = await make_agent(model, calc).run("q")
    assert result.answer == "fine"
    assert calc.calls == []
    payload = json.loads(model.requests[1].messages[-1]["content"])
    assert payload["error_type"] == "MalformedToolArgumentsError"
    assert model.requests[1].messages[-2]["tool_calls"][0]["function"]["arguments"] == '{"x":'


@pytest.mark.asyncio
@pytest.mark.parametrize("raw", ["{[1]: 2}", '{"a":' + "[" * 5000 + "1"])
async def test_unparseable_streamed_arguments_do_not_abort_the_run(raw):
    calc = CalcTool()
    fragments = [{"choices": [{"delta": {"tool_calls": [{"index": 0, "function": {"name": "calc", "arguments": raw}}]}}]}]
    model = ScriptedChatModel([fragments, AssistantTurn(text="done")])
    result = await make_agent(model, calc).run("q")
    assert result.answer == "done"
    assert calc.calls == []
    payload = json.loads(model.requests[1].messages[-1]["content"])
    assert payload["ok"] is False
    assert payload["error_type"] == "MalformedToolArgumentsError"


@pytest.mark.asyncio
async def test_non_text_tool_output_is_reported_as_error():
    class NumberTool(CalcTool):
        async def call(self, arguments: dict[str, Any]) -> str:
            return 4  # type: ignore[return-value]

    model = ScriptedChatModel([tool_turn(("calc", {})), AssistantTurn(text="ok")])
    await make_agent(model, NumberTool()).run("q")
    payload = json.loads(model.requests[1].messages[-1]["content"])
    assert payload["error_type"] == "TypeError"


@pytest.mark.asyncio
async def test_step_budget_exhaustion_stops_after_max_steps():
    model = ScriptedChatModel([tool_turn(("calc", {})) for _ in range(5)])
    with pytest.raises(StepBudgetExceededError) as excinfo:
        await make_agent(model, max_steps=2).run("loop forever")
    assert excinfo.value.max_steps == 2
    assert "AGENT_MAX_STEPS" in str(excinfo.value)
    assert len(model.requests) == 2


@pytest.mark.asyncio
async def test_transport_failure_propagates():
    model = ScriptedChatModel([ConnectionError("network down")])
    with pytest.raises(ConnectionError):
        await make_agent(model).run("q")


@pytest.mark.asyncio
async def test_multiple_calls_run_sequentially_in_model_order():
    order: list[str] = []

    class OrderedTool(Tool):
        description = "records order"
        input_schema = {"type": "object", "properties": {}}

        def __init__(self, name: str, delay: float) -> None:
            self.name = name
            self.delay = delay

        async def call(self, arguments: dict[str, Any]) -> str:
            order.append(f"start:{self.name}")
            await asyncio.sleep(self.delay)
            order.append(f"end:{self.name}")
            return self.name

    model = ScriptedChatModel([tool_turn(("slow", {}), ("fast", {})), AssistantTurn(text="done")])
    await make_agent(model, OrderedTool("slow", 0.01), OrderedTool("fast", 0)).run("q")
    assert order == ["start:slow", "end:slow", "start:fast", "end:fast"]
    tool_messages = [m for m in model.requests[1].messages if m["role"] == "tool"]
    assert [m["content"] for m in tool_messages] == ["slow", "fast"]


@pytest.mark.asyncio
async def test_observer_receives_events_in_order_with_streaming():
    fragments = [
        {"choices": [{"delta": {"content": "Let me "}}]},
        {"choices": [{"delta": {"content": "check."}}]},
        {"choices": [{"delta": {"tool_calls": [{"index": 0, "id": "c0", "function": {"name": "calc", "arguments": "{}"}}]}}]},
    ]
    model = ScriptedChatModel([fragments, AssistantTurn(text="It is 4.")])
    events: list[AgentEvent] = []

    async def observer(event: AgentEvent) -> None:
        await asyncio.sleep(0)
        events.append(event)

    result = await make_agent(model, stream=True).run("q", stream_observer=observer)
    assert result.answer == "It is 4."
    assert [event.type for event in events] == [
        "step_started",
        "message_chunk",
        "message_chunk",
        "message_completed",
        "tool_call",
        "tool_result",
        "step_started",
        "message_chunk",
        "message_completed",
        "run_completed",
    ]
    assert [event.chunk for event in events if event.type == "message_chunk"] == ["Let me ", "check.", "It is 4."]
    completed = [event for event in events if event.type == "message_completed"]
    assert completed[0].is_final is False
    assert completed[0].tool_calls[0].name == "calc"
    assert completed[1].is_final is True
    assert events[-1].answer == "It is 4."
    tool_result = next(event for event in events if event.type == "tool_result")
    assert tool_result.is_error is False
    assert tool_result.result == "4"


@pytest.mark.asyncio
async def test_observer_does_not_change_result():
    def script() -> list:
        return [tool_turn(("calc", {})), AssistantTurn(text="4")]

    plain = await make_agent(ScriptedChatModel(script())).run("q", debug=True)
    seen: list[AgentEvent] = []
    observed = await make_agent(ScriptedChatModel(script())).run("q", debug=True, stream_observer=seen.append)
    assert plain == observed
    assert seen


@pytest.mark.asyncio
async def test_tool_error_event_flag():
    model = ScriptedChatModel([tool_turn(("flaky", {})), AssistantTurn(text="ok")])
    events: list[AgentEvent] = []
    await make_agent(model, FailingTool()).run("q", stream_observer=events.append)
    tool_result = next(event for event in events if event.type == "tool_result")
    assert tool_result.is_error is True
    assert "flaky" in tool_result.result


@pytest.mark.asyncio
async def test_transcript_truncates_large_tool_output_but_conversation_keeps_it():
    big = "x" * 5000
    model = ScriptedChatModel([tool_turn(("calc", {"expression": "big"}), text="thinking"), AssistantTurn(text="ok")])
    result = await make_agent(model, CalcTool(big)).run("q", debug=True)
    assert result.transcript[0] == "Step 1 thought:\nthinking"
    truncated = result.transcript[2]
    assert truncated.endswith("...(truncated)")
    assert len(truncated) == 1200 + len("...(truncated)")
    assert model.requests[1].messages[-1]["content"] == big
