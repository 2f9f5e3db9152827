"""Base tool definitions."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from pydantic import BaseModel, ConfigDict


class ToolSpec(BaseModel):
    """Public description of a tool as advertised to the model."""

    model_config = ConfigDict(frozen=True)

    name: str
    description: str
    input_schema: dict[str, Any]

    def openai_schema(self) -> dict[str, Any]:
        """Return OpenAI-compatible tool schema."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.input_schema,
            },
        }


class Tool(ABC):
    """Abstract tool.

    ``input_schema`` is either a pydantic model describing the arguments or a
    ready-made JSON schema mapping. ``call`` returns text; it may also raise,
    in which case the agent reports the failure back to the model.
    """

    name: str
    description: str
    input_schema: type[BaseModel] | dict[str, Any]

    @abstractmethod
    async def call(self, arguments: dict[str, Any]) -> str:
        """Execute the tool."""
        raise NotImplementedError

    def json_schema(self) -> dict[str, Any]:
        if isinstance(self.input_schema, dict):
            return dict(self.input_schema)
        return self.input_schema.model_json_schema()

    def spec(self) -> ToolSpec:
        return ToolSpec(name=self.name, description=self.description, input_schema=self.json_schema())
