from __future__ import annotations

import json

import httpx
import pytest
from pydantic import ValidationError

from reactagent.tools.builtins.web_fetch import WebFetchTool, extract_text
from reactagent.tools.builtins.web_search import WebSearchTool, parse_results

SEARCH_HTML = """
<div class="result__body">
  <a class="result__a" href="https://example.com/post">Example title</a>
  <div class="result__snippet">Short snippet here.</div>
</div>
<div class="result__body">
  <a class="result__a" href="//duckduckgo.com/l/?uddg=https%3A%2F%2Fother.test%2Fpage&amp;rut=abc">Other</a>
  <div class="result__snippet">Second.</div>
</div>
<div class="result__body">
  <a class="result__a" href="">No url</a>
</div>
"""


@pytest.mark.asyncio
async def test_web_search_parses_results_and_sends_query():
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, text=SEARCH_HTML)

    tool = WebSearchTool(transport=httpx.MockTransport(handler))
    parsed = json.loads(await tool.call({"query": "test", "max_results": 1}))
    assert parsed == [{"title": "Example title", "url": "https://example.com/post", "snippet": "Short snippet here."}]
    assert requests[0].url.params["q"] == "test"
    assert requests[0].url.params["kl"] == "wt-wt"


def test_parse_results_decodes_redirects_and_skips_incomplete():
    results = parse_results(SEARCH_HTML, 10)
    assert [item["url"] for item in results] == ["https://example.com/post", "https://other.test/page"]


@pytest.mark.asyncio
async def test_web_search_rejects_blank_query():
    tool = WebSearchTool(transport=httpx.MockTransport(lambda request: httpx.Response(200)))
    with pytest.raises(ValueError, match="query is required"):
        await tool.call({"query": "   "})


@pytest.mark.asyncio
async def test_web_search_network_failure_is_error_text():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("offline", request=request)

    tool = WebSearchTool(transport=httpx.MockTransport(handler))
    payload = json.loads(await tool.call({"query": "x"}))
    assert payload["error"].startswith("web_search failed")


@pytest.mark.asyncio
async def test_web_fetch_returns_cleaned_excerpt():
    html = (
        "<html><head><title>t</title></head><body><h1>Hello</h1>"
        "<script>var x = 1;</script><p>This is an article with detailed info. "
        + "More words. " * 40
        + "</p></body></html>"
    )
    tool = WebFetchTool(transport=httpx.MockTransport(lambda request: httpx.Response(200, text=html)))
    parsed = json.loads(await tool.call({"url": "https://example.com/article", "max_chars": 50}))
    assert parsed["status"] == 200
    assert parsed["url"] == "https://example.com/article"
    assert parsed["excerpt"].startswith("Hello This is an article")
    assert "var x" not in parsed["excerpt"]
    assert len(parsed["excerpt"]) == 200


@pytest.mark.asyncio
async def test_web_fetch_default_and_max_caps():
    body = "<body><p>" + "word " * 3000 + "</p></body>"
    tool = WebFetchTool(transport=httpx.MockTransport(lambda request: httpx.Response(200, text=body)))
    default = json.loads(await tool.call({"url": "https://example.com"}))
    capped = json.loads(await tool.call({"url": "https://example.com", "max_chars": 100_000}))
    assert len(default["excerpt"]) == 2000
    assert len(capped["excerpt"]) == 8000
    null_chars = json.loads(await tool.call({"url": "https://example.com", "max_chars": None}))
    assert len(null_chars["excerpt"]) == 2000


@pytest.mark.asyncio
async def test_web_fetch_non_success_status():
    tool = WebFetchTool(transport=httpx.MockTransport(lambda request: httpx.Response(404, text="nope")))
    payload = json.loads(await tool.call({"url": "https://example.com/missing"}))
    assert payload == {"error": "web_fetch failed with status 404"}


@pytest.mark.asyncio
async def test_web_fetch_requires_url():
    tool = WebFetchTool(transport=httpx.MockTransport(lambda request: httpx.Response(200)))
    with pytest.raises(ValidationError):
        await tool.call({})
    with pytest.raises(ValidationError):
        await tool.call({"url": " "})


def test_extract_text_without_body():
    assert extract_text("<div>a<noscript>b</noscript>  c</div>") == "a c"
