"""Tests for the tool dispatcher and web tool backends."""

from __future__ import annotations

import asyncio

import httpx
import pytest

from riskguard.domain.models import ToolCall
from riskguard.tools.dispatcher import (
    BUILTIN_TOOL_DEFINITIONS,
    ToolDispatcher,
    ToolProviderRegistry,
    UnknownToolError,
)
from riskguard.tools.web import (
    MAX_CONTENT_CHARS,
    extract_text_from_html,
    search_web,
    validate_url,
)


def _transport(body: str, content_type: str = "text/html", status: int = 200):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status, text=body, headers={"content-type": content_type})

    return httpx.MockTransport(handler)


def _exec(dispatcher: ToolDispatcher, name: str, args: dict):
    return asyncio.run(dispatcher.execute(name, args))


class TestWeather:
    def test_synthetic_weather_shape(self) -> None:
        result = _exec(ToolDispatcher(), "get_weather", {"location": "Lisbon"})
        assert result["location"] == "Lisbon"
        assert -10 <= result["temperature"] < 30
        assert result["condition"] in ("Sunny", "Cloudy", "Rainy", "Snowy")
        assert 0 <= result["humidity"] < 100


class TestWebSearch:
    def test_fetch_extracts_text(self) -> None:
        html = (
            "<html><head><style>p{color:red}</style><script>var x = 1;</script></head>"
            "<body><p>Hello   <b>world</b></p></body></html>"
        )
        dispatcher = ToolDispatcher(transport=_transport(html))
        result = _exec(dispatcher, "web_search", {"url": "https://example.com"})
        assert result == {"content": "Content from https://example.com:\n\nHello world"}

    def test_fetch_truncates_long_pages(self) -> None:
        dispatcher = ToolDispatcher(transport=_transport("a" * (MAX_CONTENT_CHARS + 50)))
        content = _exec(dispatcher, "web_search", {"url": "https://example.com"})["content"]
        assert content.endswith("a" * 10 + "...")
        body = content.split("\n\n", 1)[1]
        assert len(body) == MAX_CONTENT_CHARS + 3

    def test_fetch_rejects_non_text_content(self) -> None:
        dispatcher = ToolDispatcher(transport=_transport("{}", content_type="application/json"))
        result = _exec(dispatcher, "web_search", {"url": "https://example.com/data"})
        assert result == {"error": "Failed to fetch: Unsupported content type"}

    def test_fetch_non_2xx_becomes_error(self) -> None:
        dispatcher = ToolDispatcher(transport=_transport("nope", status=404))
        result = _exec(dispatcher, "web_search", {"url": "https://example.com/missing"})
        assert result == {"error": "Failed to fetch: HTTP 404"}

    def test_invalid_url_becomes_error(self) -> None:
        result = _exec(ToolDispatcher(), "web_search", {"url": "not a url"})
        assert result["error"].startswith("Invalid URL")

    def test_url_takes_precedence_over_query(self) -> None:
        dispatcher = ToolDispatcher(transport=_transport("<p>page</p>"))
        result = _exec(dispatcher, "web_search", {"url": "https://example.com", "query": "q"})
        assert "page" in result["content"]

    def test_query_returns_search_link(self) -> None:
        result = _exec(ToolDispatcher(), "web_search", {"query": "shadow ai"})
        assert "https://www.google.com/search?q=shadow+ai" in result["content"]

    def test_neither_query_nor_url(self) -> None:
        result = _exec(ToolDispatcher(), "web_search", {})
        assert result == {"error": "Either query or url parameter is required"}


class TestRegistry:
    def test_unknown_tool_without_registry(self) -> None:
        assert _exec(ToolDispatcher(), "nope", {}) == {"error": "Unknown tool: nope"}

    def test_unknown_tool_with_registry(self) -> None:
        dispatcher = ToolDispatcher(registry=ToolProviderRegistry())
        assert _exec(dispatcher, "nope", {}) == {"error": "Unknown tool: nope"}

    def test_registered_tool_result_is_wrapped(self) -> None:
        registry = ToolProviderRegistry()
        registry.register(
            {"type": "function", "function": {"name": "echo"}}, lambda args: args["text"]
        )
        dispatcher = ToolDispatcher(registry=registry)
        assert _exec(dispatcher, "echo", {"text": "hi"}) == {"content": "hi"}

    def test_handler_exception_becomes_error(self) -> None:
        registry = ToolProviderRegistry()

        async def broken(args):
            raise RuntimeError("backend exploded")

        registry.register({"type": "function", "function": {"name": "broken"}}, broken)
        dispatcher = ToolDispatcher(registry=registry)
        assert _exec(dispatcher, "broken", {}) == {"error": "backend exploded"}

    def test_registry_raises_unknown_tool(self) -> None:
        with pytest.raises(UnknownToolError):
            asyncio.run(ToolProviderRegistry().execute_tool("missing", {}))

    def test_register_requires_name(self) -> None:
        with pytest.raises(ValueError):
            ToolProviderRegistry().register({"type": "function", "function": {}}, print)

    def test_definitions_builtins_first(self) -> None:
        registry = ToolProviderRegistry()
        registry.register({"type": "function", "function": {"name": "extra"}}, print)
        names = [d["function"]["name"] for d in ToolDispatcher(registry).tool_definitions()]
        assert names == ["get_weather", "web_search", "extra"]
        assert len(BUILTIN_TOOL_DEFINITIONS) == 2


class TestExecuteAll:
    def test_results_attached_in_request_order(self) -> None:
        calls = [
            ToolCall(id="1", name="web_search", arguments={}),
            ToolCall(id="2", name="missing", arguments={}),
        ]
        done = asyncio.run(ToolDispatcher().execute_all(calls))
        assert [c.id for c in done] == ["1", "2"]
        assert done[0].result == {"error": "Either query or url parameter is required"}
        assert done[1].result == {"error": "Unknown tool: missing"}


class TestWebHelpers:
    def test_extract_text_drops_noscript(self) -> None:
        assert extract_text_from_html("<noscript>x</noscript><div>y</div>") == "y"

    def test_extract_text_decodes_entities(self) -> None:
        assert extract_text_from_html("<p>A &amp; B</p><p>caf&eacute;</p>") == "A & B café"

    def test_extract_text_drops_inline_script_and_style(self) -> None:
        html = (
            '<div>keep<script type="text/javascript">if (a < b) {}</script>'
            "<style>p{}</style></div>"
        )
        assert extract_text_from_html(html) == "keep"

    def test_validate_url_rejects_ftp(self) -> None:
        with pytest.raises(ValueError):
            validate_url("ftp://example.com/file")

    def test_search_clamps_result_count(self) -> None:
        assert "requested 10 results" in search_web("q", 50)
        assert "requested 1 results" in search_web("q", 0)
