"""Web search tool backed by the DuckDuckGo HTML endpoint."""

from __future__ import annotations

import json
import re
from typing import Any
from urllib.parse import unquote

import httpx
from bs4 import BeautifulSoup
from pydantic import BaseModel, Field, field_validator

from reactagent.tools.base import Tool

SEARCH_URL = "https://html.duckduckgo.com/html/"
USER_AGENT = "reactagent/0.1"
DEFAULT_RESULTS = 6
MAX_RESULTS = 10

_UDDG_RE = re.compile(r"uddg=([^&]+)")


class WebSearchInput(BaseModel):
    query: str = Field(description="Well-formed search query")
    max_results: int = Field(
        default=DEFAULT_RESULTS,
        description="Maximum number of results (<=10)",
        json_schema_extra={"minimum": 1, "maximum": MAX_RESULTS},
    )

    @field_validator("max_results")
    @classmethod
    def _clamp_results(cls, value: int) -> int:
        return max(1, min(value, MAX_RESULTS))


def _resolve_url(href: str) -> str:
    # DuckDuckGo wraps outbound links as //duckduckgo.com/l/?uddg=<encoded>
    match = _UDDG_RE.search(href)
    if match:
        return unquote(match.group(1))
    return href


def parse_results(html: str, limit: int) -> list[dict[str, str]]:
    soup = BeautifulSoup(html, "html.parser")
    items: list[dict[str, str]] = []
    for body in soup.select(".result__body"):
        if len(items) >= limit:
            break
        link = body.select_one(".result__a")
        if link is None:
            continue
        title = link.get_text(strip=True)
        url = _resolve_url(str(link.get("href") or ""))
        snippet_node = body.select_one(".result__snippet")
        snippet = snippet_node.get_text(strip=True) if snippet_node is not None else ""
        if title and url:
            items.append({"title": title, "url": url, "snippet": snippet})
    return items


class WebSearchTool(Tool):
    name = "web_search"
    description = (
        "Use this to discover recent information on the public internet. Provide focused "
        "queries; returns JSON with title, url, snippet."
    )
    input_schema = WebSearchInput

    def __init__(
        self,
        timeout_seconds: float = 15,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.timeout_seconds = timeout_seconds
        self.transport = transport

    async def call(self, arguments: dict[str, Any]) -> str:
        payload = WebSearchInput.model_validate(arguments)
        if not payload.query.strip():
            raise ValueError("query is required")
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout_seconds, transport=self.transport, follow_redirects=True
            ) as client:
                response = await client.get(
                    SEARCH_URL,
                    params={"q": payload.query, "kl": "wt-wt"},
                    headers={"User-Agent": USER_AGENT},
                )
        except httpx.HTTPError as exc:
            return json.dumps({"error": f"web_search failed: {exc}"})
        results = parse_results(response.text, payload.max_results)
        return json.dumps(results, indent=2, ensure_ascii=False)
