"""Narrative orchestrator — one tool-calling exchange with the chat model.

Exchange states:

  DISPATCHED     first chat-completion call issued (optionally streamed)
  STREAMING      content deltas go to ``content`` and the caller's sink;
                 tool-call deltas go to the ToolCallAccumulator
  TOOLS_PENDING  accumulated calls finalized and run concurrently
  FOLLOWUP       second call carrying the tool results; its text is final
  DONE           returns NarrativeResult(content, tool_calls)
  FALLBACK       any exception: returns the fixed insights payload

A first response without tool calls goes straight to DONE.
"""

from __future__ import annotations

import json
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any

import structlog
from openai import AsyncOpenAI

from riskguard.config import LLMConfig
from riskguard.domain.errors import ErrorKind
from riskguard.domain.models import Message, ToolCall
from riskguard.narrative.accumulator import ToolCallAccumulator
from riskguard.narrative.insights import fallback_payload
from riskguard.tools.dispatcher import ToolDispatcher

logger = structlog.get_logger()

SYSTEM_PROMPT = (
    "You are RiskGuard AI, a security consultant for Cloudflare Zero Trust. "
    "Provide professional, data-driven risk assessments."
)
FOLLOWUP_SYSTEM_PROMPT = (
    "You are RiskGuard AI Expert. Synthesize tool results into executive insights."
)

MAX_COMPLETION_TOKENS = 16000
FOLLOWUP_MAX_TOKENS = 4000
HISTORY_TURNS = 5
FOLLOWUP_HISTORY_TURNS = 3

ChunkSink = Callable[[str], None]


@dataclass
class NarrativeResult:
    content: str
    tool_calls: list[ToolCall] = field(default_factory=list)
    fell_back: bool = False


def _history_messages(history: Sequence[Message], turns: int) -> list[dict[str, Any]]:
    if turns <= 0:
        return []
    return [{"role": m.role, "content": m.content} for m in list(history)[-turns:]]


class NarrativeOrchestrator:
    def __init__(
        self,
        client: Any,
        model: str,
        dispatcher: ToolDispatcher | None = None,
    ) -> None:
        self._client = client
        self._model = model
        self._dispatcher = dispatcher or ToolDispatcher()

    async def generate_insights(
        self,
        prompt: str,
        history: Sequence[Message] = (),
        on_chunk: ChunkSink | None = None,
    ) -> NarrativeResult:
        """Run one exchange. Never raises; failures yield the fallback payload."""
        try:
            return await self._exchange(prompt, history, on_chunk)
        except Exception as exc:  # noqa: BLE001 - any failure falls back to fixed insights
            logger.warning(
                "narrative_generation_failed",
                error=type(exc).__name__,
                detail=str(exc)[:200],
                error_kind=ErrorKind.NARRATIVE_GENERATION_FAILURE.value,
            )
            return NarrativeResult(content=fallback_payload(), fell_back=True)

    async def _exchange(
        self,
        prompt: str,
        history: Sequence[Message],
        on_chunk: ChunkSink | None,
    ) -> NarrativeResult:
        messages = [
            {"role": "system", "content": SYSTEM_PROMPT},
            *_history_messages(history, HISTORY_TURNS),
            {"role": "user", "content": prompt},
        ]
        request: dict[str, Any] = {
            "model": self._model,
            "messages": messages,
            "tools": self._dispatcher.tool_definitions(),
            "tool_choice": "auto",
            "max_completion_tokens": MAX_COMPLETION_TOKENS,
        }

        accumulator = ToolCallAccumulator()
        if on_chunk is not None:
            stream = await self._client.chat.completions.create(**request, stream=True)
            content = await self._consume_stream(stream, accumulator, on_chunk)
        else:
            completion = await self._client.chat.completions.create(**request)
            if not completion.choices:
                raise ValueError("Chat completion returned no choices")
            message = completion.choices[0].message
            content = message.content or ""
            for tool_call in message.tool_calls or []:
                accumulator.add(tool_call)

        if not len(accumulator):
            logger.info("narrative_generated", tool_calls=0, chars=len(content))
            return NarrativeResult(content=content)

        raw_calls = accumulator.raw_calls()
        calls = await self._dispatcher.execute_all(accumulator.finalize())
        logger.info("narrative_tools_executed", tools=[c.name for c in calls])

        final = await self._follow_up(prompt, history, raw_calls, calls)
        return NarrativeResult(content=final, tool_calls=calls)

    async def _consume_stream(
        self,
        stream: Any,
        accumulator: ToolCallAccumulator,
        on_chunk: ChunkSink,
    ) -> str:
        parts: list[str] = []
        async for chunk in stream:
            if not chunk.choices:
                continue
            delta = chunk.choices[0].delta
            if delta is None:
                continue
            if delta.content:
                parts.append(delta.content)
                on_chunk(delta.content)
            for tool_delta in delta.tool_calls or []:
                accumulator.add(tool_delta)
        return "".join(parts)

    async def _follow_up(
        self,
        prompt: str,
        history: Sequence[Message],
        raw_calls: list[dict[str, Any]],
        calls: list[ToolCall],
    ) -> str:
        messages = [
            {"role": "system", "content": FOLLOWUP_SYSTEM_PROMPT},
            *_history_messages(history, FOLLOWUP_HISTORY_TURNS),
            {"role": "user", "content": prompt},
            {"role": "assistant", "content": None, "tool_calls": raw_calls},
            *(
                {
                    "role": "tool",
                    "tool_call_id": call.id,
                    "content": json.dumps(call.result, default=str),
                }
                for call in calls
            ),
        ]
        completion = await self._client.chat.completions.create(
            model=self._model,
            messages=messages,
            max_tokens=FOLLOWUP_MAX_TOKENS,
        )
        if not completion.choices or not completion.choices[0].message.content:
            raise ValueError("Follow-up completion returned no content")
        return completion.choices[0].message.content


def create_orchestrator(
    config: LLMConfig, dispatcher: ToolDispatcher | None = None
) -> NarrativeOrchestrator | None:
    """Build an orchestrator on the OpenAI-compatible API. None without an API key."""
    api_key = config.api_key
    if not api_key:
        return None
    client = AsyncOpenAI(api_key=api_key, base_url=config.base_url, timeout=config.timeout)
    return NarrativeOrchestrator(client=client, model=config.model, dispatcher=dispatcher)
