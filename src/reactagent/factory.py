"""Shared construction helpers for models, tools, agents and evaluators."""

from __future__ import annotations

from typing import Iterable

from reactagent.agent import ReActAgent
from reactagent.config import AgentConfig
from reactagent.evaluator import AnswerQualityEvaluator
from reactagent.models.base import BaseChatModel
from reactagent.models.openai_compat import OpenAICompatChatModel
from reactagent.tools import Tool, ToolRegistry, default_tools


def build_model(config: AgentConfig) -> BaseChatModel:
    return OpenAICompatChatModel(
        base_url=config.base_url,
        api_key=config.api_key,
        model=config.model,
        timeout_seconds=config.timeout_seconds,
    )


def build_registry(tools: Iterable[Tool] | None = None) -> ToolRegistry:
    return ToolRegistry(default_tools() if tools is None else tools)


def build_agent(
    config: AgentConfig,
    model: BaseChatModel | None = None,
    tools: Iterable[Tool] | None = None,
) -> ReActAgent:
    return ReActAgent(
        model=model or build_model(config),
        registry=build_registry(tools),
        config=config,
    )


def build_evaluator(
    config: AgentConfig,
    model: BaseChatModel | None = None,
    model_override: str | None = None,
) -> AnswerQualityEvaluator:
    return AnswerQualityEvaluator(model or build_model(config), config, model_override=model_override)
