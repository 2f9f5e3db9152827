"""Web page fetch tool."""

from __future__ import annotations

import json
from typing import Any

import httpx
from bs4 import BeautifulSoup
from pydantic import BaseModel, Field, field_validator

from reactagent.tools.base import Tool

MIN_CHARS = 200
MAX_CHARS = 8000
DEFAULT_CHARS = 2000


class WebFetchInput(BaseModel):
    url: str = Field(description="Absolute HTTP or HTTPS URL to fetch")
    max_chars: int | None = Field(
        default=DEFAULT_CHARS,
        description="Optional override for the amount of text to return",
        json_schema_extra={"minimum": MIN_CHARS, "maximum": MAX_CHARS},
    )

    @field_validator("url")
    @classmethod
    def _require_url(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("url is required")
        return value.strip()

    @field_validator("max_chars")
    @classmethod
    def _clamp_chars(cls, value: int | None) -> int:
        if value is None:
            return DEFAULT_CHARS
        return max(MIN_CHARS, min(value, MAX_CHARS))


def extract_text(html: str) -> str:
    """Visible body text with scripts removed and whitespace collapsed."""
    soup = BeautifulSoup(html, "html.parser")
    root = soup.body or soup
    for element in root.find_all(["script", "style", "noscript"]):
        element.decompose()
    return " ".join(root.get_text(separator=" ").split())


class WebFetchTool(Tool):
    name = "web_fetch"
    description = (
        "Fetches a public web page by URL and returns the first few thousand characters "
        "of cleaned text for citation."
    )
    input_schema = WebFetchInput

    def __init__(
        self,
        timeout_seconds: float = 15,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.timeout_seconds = timeout_seconds
        self.transport = transport

    async def call(self, arguments: dict[str, Any]) -> str:
        payload = WebFetchInput.model_validate(arguments)
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout_seconds, transport=self.transport, follow_redirects=True
            ) as client:
                response = await client.get(payload.url)
        except httpx.HTTPError as exc:
            return json.dumps({"error": f"web_fetch failed: {exc}"})
        if not response.is_success:
            return json.dumps({"error": f"web_fetch failed with status {response.status_code}"})
        excerpt = extract_text(response.text)[: payload.max_chars]
        return json.dumps(
            {"url": str(response.url), "status": response.status_code, "excerpt": excerpt},
            indent=2,
            ensure_ascii=False,
        )
