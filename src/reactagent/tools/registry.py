"""Tool registry."""

from __future__ import annotations

from collections import Counter
from typing import Any, Iterable

from reactagent.errors import ConfigurationError, UnknownToolError
from reactagent.tools.base import Tool, ToolSpec
from reactagent.util.logging import get_logger

logger = get_logger(__name__)


class ToolRegistry:
    """Fixed set of tools available to one agent, looked up by name."""

    def __init__(self, tools: Iterable[Tool]) -> None:
        tools = list(tools)
        if not tools:
            raise ConfigurationError("At least one tool must be provided")
        duplicates = sorted(name for name, count in Counter(tool.name for tool in tools).items() if count > 1)
        if duplicates:
            raise ConfigurationError(f"Duplicate tool names: {', '.join(duplicates)}")
        self._tools: dict[str, Tool] = {tool.name: tool for tool in tools}
        self.specs: tuple[ToolSpec, ...] = tuple(tool.spec() for tool in tools)

    def get(self, name: str) -> Tool | None:
        return self._tools.get(name)

    def names(self) -> list[str]:
        return list(self._tools)

    def openai_schemas(self) -> list[dict[str, Any]]:
        return [spec.openai_schema() for spec in self.specs]

    async def execute(self, name: str, arguments: dict[str, Any] | None = None) -> str:
        tool = self._tools.get(name)
        if tool is None:
            raise UnknownToolError(name)
        logger.info("Executing tool %s.", name)
        return await tool.call(arguments if arguments is not None else {})
