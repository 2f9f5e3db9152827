"""Tool package."""

from reactagent.tools.base import Tool, ToolSpec
from reactagent.tools.builtins.web_fetch import WebFetchTool
from reactagent.tools.builtins.web_search import WebSearchTool
from reactagent.tools.registry import ToolRegistry


def default_tools() -> list[Tool]:
    return [WebSearchTool(), WebFetchTool()]


__all__ = ["Tool", "ToolRegistry", "ToolSpec", "WebFetchTool", "WebSearchTool", "default_tools"]
