"""OpenAI-compatible chat model client."""

from __future__ import annotations

import asyncio
import json
from typing import Any, AsyncIterator
from urllib.parse import urlparse, urlunparse

import httpx

from reactagent.errors import ReActAgentError
from reactagent.models.base import AssistantTurn, BaseChatModel, ChunkCallback, CompletionRequest
from reactagent.models.stream import collect_stream, turn_from_message
from reactagent.util.logging import get_logger, redact

logger = get_logger(__name__)

_SSE_PREFIX = "data:"
_SSE_DONE = "[DONE]"


class OpenAICompatError(ReActAgentError):
    """Raised when the OpenAI-compatible backend returns an error."""


class OpenAICompatChatModel(BaseChatModel):
    """HTTP client for OpenAI-compatible chat/completions."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        model: str,
        timeout_seconds: float = 60,
        max_response_bytes: int = 2_000_000,
        max_attempts: int = 3,
        extra_headers: dict[str, str] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        normalized = base_url.strip()
        if not normalized.startswith(("http://", "https://")):
            normalized = f"http://{normalized}"
        self.base_url = normalized.rstrip("/")
        self.api_key = api_key
        self.model = model
        self.timeout_seconds = timeout_seconds
        self.max_response_bytes = max_response_bytes
        self.max_attempts = max(1, max_attempts)
        self.extra_headers = extra_headers or {}
        self.transport = transport
        self._client: httpx.AsyncClient | None = None

    def _http(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout_seconds), transport=self.transport
            )
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def _build_url(self) -> str:
        parsed = urlparse(self.base_url)
        path = parsed.path or ""
        if path in {"", "/"}:
            base_path = "/v1"
        else:
            base_path = path.rstrip("/")
            segments = [segment for segment in base_path.split("/") if segment]
            if "v1" not in segments:
                base_path = f"{base_path}/v1"
        if not base_path.endswith("/chat/completions"):
            base_path = f"{base_path}/chat/completions"
        return urlunparse(parsed._replace(path=base_path, params="", query="", fragment=""))

    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.api_key}", **self.extra_headers}

    def _request_payload(self, request: CompletionRequest) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "model": request.model or self.model,
            "messages": request.messages,
        }
        for key in ("temperature", "max_tokens", "top_p", "top_k"):
            value = getattr(request, key)
            if value is not None:
                payload[key] = value
        if request.tools:
            payload["tools"] = request.tools
        if request.stream:
            payload["stream"] = True
        return payload

    async def complete(
        self, request: CompletionRequest, on_chunk: ChunkCallback | None = None
    ) -> AssistantTurn:
        payload = self._request_payload(request)
        logger.debug(
            "Completion request: model=%s messages=%s tools=%s stream=%s",
            payload["model"],
            len(request.messages),
            len(request.tools),
            request.stream,
        )
        if request.stream:
            return await collect_stream(self._stream_fragments(payload), on_chunk)
        data = await self._post_with_retries(payload)
        choices = data.get("choices") or [{}]
        message = choices[0].get("message") or {}
        return turn_from_message(message)

    async def _post_with_retries(self, payload: dict[str, Any]) -> dict[str, Any]:
        url = self._build_url()
        last_error: Exception | None = None
        for attempt in range(self.max_attempts):
            try:
                response = await self._http().post(url, headers=self._headers(), json=payload)
                if response.status_code == 429 or response.status_code >= 500:
                    raise OpenAICompatError(
                        f"Retryable error {response.status_code}: {response.text[:200]}"
                    )
                response.raise_for_status()
                if len(response.content) > self.max_response_bytes:
                    raise OpenAICompatError("Response too large")
                try:
                    return response.json()
                except json.JSONDecodeError as exc:
                    raise OpenAICompatError("Malformed JSON response") from exc
            except (httpx.HTTPError, OpenAICompatError) as exc:
                last_error = exc
                logger.warning(
                    "Completion attempt %s/%s failed: %s",
                    attempt + 1,
                    self.max_attempts,
                    redact(str(exc), [self.api_key]),
                )
                if attempt == self.max_attempts - 1:
                    break
                await asyncio.sleep(2**attempt)
        raise OpenAICompatError(f"OpenAI-compatible request failed: {last_error}")

    async def _stream_fragments(self, payload: dict[str, Any]) -> AsyncIterator[dict[str, Any]]:
        url = self._build_url()
        try:
            async with self._http().stream(
                "POST", url, headers=self._headers(), json=payload
            ) as response:
                if response.status_code >= 400:
                    body = (await response.aread()).decode("utf-8", errors="replace")
                    raise OpenAICompatError(f"Streaming request failed {response.status_code}: {body[:200]}")
                async for line in response.aiter_lines():
                    fragment = parse_sse_line(line)
                    if fragment is None:
                        continue
                    if fragment is _END_OF_STREAM:
                        break
                    yield fragment
        except httpx.HTTPError as exc:
            raise OpenAICompatError(f"OpenAI-compatible stream failed: {exc}") from exc


_END_OF_STREAM: dict[str, Any] = {}


def parse_sse_line(line: str) -> dict[str, Any] | None:
    """Decode one Server-Sent Events line into a fragment.

    Returns ``None`` for blank lines, comments and non-data fields.
    """
    stripped = line.strip()
    if not stripped.startswith(_SSE_PREFIX):
        return None
    data = stripped[len(_SSE_PREFIX) :].strip()
    if data == _SSE_DONE:
        return _END_OF_STREAM
    if not data:
        return None
    try:
        fragment = json.loads(data)
    except json.JSONDecodeError as exc:
        raise OpenAICompatError(f"Malformed stream fragment: {data[:200]}") from exc
    if isinstance(fragment, dict) and "error" in fragment:
        raise OpenAICompatError(f"Stream error: {fragment['error']}")
    return fragment
