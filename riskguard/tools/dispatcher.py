"""Tool dispatcher — run model-requested tools and return JSON-safe results.

Built-ins:
  get_weather  synthetic weather data; no real weather provider is wired in
  web_search   fetch a URL's readable text, or return a search link

Any other name goes to the ToolProviderRegistry. Every execution is wrapped:
a raised exception becomes ``{"error": message}`` and never propagates.
"""

from __future__ import annotations

import asyncio
import inspect
import random
from collections.abc import Awaitable, Callable
from typing import Any

import httpx
import structlog

from riskguard.domain.errors import ErrorKind
from riskguard.domain.interfaces import ToolProvider
from riskguard.domain.models import ToolCall
from riskguard.tools.web import fetch_url, search_web

logger = structlog.get_logger()

ToolHandler = Callable[[dict[str, Any]], Any | Awaitable[Any]]

BUILTIN_TOOL_DEFINITIONS: list[dict[str, Any]] = [
    {
        "type": "function",
        "function": {
            "name": "get_weather",
            "description": "Get current weather information for a location",
            "parameters": {
                "type": "object",
                "properties": {
                    "location": {"type": "string", "description": "The city or location name"}
                },
                "required": ["location"],
            },
        },
    },
    {
        "type": "function",
        "function": {
            "name": "web_search",
            "description": "Search the web or fetch content from a specific URL",
            "parameters": {
                "type": "object",
                "properties": {
                    "query": {"type": "string", "description": "Search query"},
                    "url": {
                        "type": "string",
                        "description": "Specific URL to fetch content from (alternative to search)",
                    },
                    "num_results": {
                        "type": "number",
                        "description": "Number of search results to return (default: 5, max: 10)",
                        "default": 5,
                    },
                },
                "required": [],
            },
        },
    },
]

_CONDITIONS = ("Sunny", "Cloudy", "Rainy", "Snowy")


class UnknownToolError(KeyError):
    """Raised by a tool provider that has no tool with the requested name."""


class ToolProviderRegistry:
    """In-process registry of extra tools offered to the narrative model."""

    def __init__(self) -> None:
        self._tools: dict[str, tuple[dict[str, Any], ToolHandler]] = {}

    def register(self, definition: dict[str, Any], handler: ToolHandler) -> None:
        """Add a tool. ``definition`` uses the function-tool JSON schema."""
        name = definition.get("function", {}).get("name")
        if not name:
            raise ValueError("Tool definition missing 'function.name'")
        self._tools[name] = (definition, handler)

    def get_tool_definitions(self) -> list[dict[str, Any]]:
        return [definition for definition, _ in self._tools.values()]

    async def execute_tool(self, name: str, args: dict[str, Any]) -> Any:
        if name not in self._tools:
            raise UnknownToolError(name)
        _, handler = self._tools[name]
        result = handler(args)
        if inspect.isawaitable(result):
            result = await result
        return result


def synthetic_weather(location: str) -> dict[str, Any]:
    return {
        "location": location,
        "temperature": random.randint(-10, 29),
        "condition": random.choice(_CONDITIONS),
        "humidity": random.randint(0, 99),
        "source": "synthetic",
    }


class ToolDispatcher:
    def __init__(
        self,
        registry: ToolProvider | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._registry = registry
        self._transport = transport

    @property
    def registry(self) -> ToolProvider | None:
        return self._registry

    def tool_definitions(self) -> list[dict[str, Any]]:
        """Built-in definitions first, then registry tools."""
        definitions = list(BUILTIN_TOOL_DEFINITIONS)
        if self._registry is not None:
            definitions.extend(self._registry.get_tool_definitions())
        return definitions

    async def execute(self, name: str, args: dict[str, Any]) -> Any:
        """Run one tool. Returns its result, or ``{"error": ...}`` on any failure."""
        try:
            return await self._run(name, args)
        except Exception as exc:  # noqa: BLE001 - every tool failure becomes a result
            logger.warning(
                "tool_execution_failed",
                tool=name,
                error=str(exc),
                error_kind=ErrorKind.TOOL_EXECUTION_FAILURE.value,
            )
            return {"error": str(exc) or type(exc).__name__}

    async def execute_all(self, calls: list[ToolCall]) -> list[ToolCall]:
        """Run calls concurrently; results are filled in request order."""
        results = await asyncio.gather(*(self.execute(c.name, c.arguments) for c in calls))
        for call, result in zip(calls, results, strict=True):
            call.result = result
        return calls

    async def _run(self, name: str, args: dict[str, Any]) -> Any:
        if name == "get_weather":
            return synthetic_weather(str(args.get("location", "")))

        if name == "web_search":
            url = args.get("url")
            query = args.get("query")
            if isinstance(url, str):
                return {"content": await fetch_url(url, transport=self._transport)}
            if isinstance(query, str):
                return {"content": search_web(query, args.get("num_results", 5))}
            return {"error": "Either query or url parameter is required"}

        if self._registry is None:
            return {"error": f"Unknown tool: {name}"}
        try:
            content = await self._registry.execute_tool(name, args)
        except UnknownToolError:
            return {"error": f"Unknown tool: {name}"}
        return {"content": content}
