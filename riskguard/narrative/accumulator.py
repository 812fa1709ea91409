"""Streaming tool-call accumulator.

Chat-completion streams deliver each requested function call as a series
of partial deltas tagged with a positional ``index``:

- the first delta at an index opens a record ``{id, name, arguments: ""}``
- later deltas append to ``arguments`` and replace ``name`` only when they
  carry a non-empty one
- ids may arrive late or never; a missing id is synthesized from the index
  and the time the index was first seen

Argument strings are parsed once, in ``finalize()``, after the stream has
ended. Nothing mid-stream ever sees partial JSON.
"""

from __future__ import annotations

import json
import time
from dataclasses import dataclass
from typing import Any

from riskguard.domain.models import ToolCall


@dataclass
class _PendingCall:
    index: int
    received_ms: int
    id: str | None = None
    name: str = ""
    arguments: str = ""


def _field(obj: Any, name: str) -> Any:
    if isinstance(obj, dict):
        return obj.get(name)
    return getattr(obj, name, None)


def parse_arguments(raw: str | None) -> dict[str, Any]:
    """Decode a tool-call argument string. Empty object on anything unusable."""
    if not raw:
        return {}
    try:
        value = json.loads(raw)
    except ValueError:
        return {}
    return value if isinstance(value, dict) else {}


class ToolCallAccumulator:
    """Merge partial tool-call deltas keyed by positional index."""

    def __init__(self) -> None:
        self._calls: dict[int, _PendingCall] = {}

    def __len__(self) -> int:
        return len(self._calls)

    def add(self, delta: Any) -> None:
        """Merge one delta (SDK object or plain dict) into its record."""
        index = _field(delta, "index")
        if index is None:
            index = len(self._calls)
        function = _field(delta, "function")
        name = _field(function, "name") if function is not None else None
        arguments = _field(function, "arguments") if function is not None else None
        call_id = _field(delta, "id")

        pending = self._calls.get(index)
        if pending is None:
            pending = _PendingCall(index=index, received_ms=int(time.time() * 1000))
            self._calls[index] = pending
        if call_id and not pending.id:
            pending.id = call_id
        if name:
            pending.name = name
        if arguments:
            pending.arguments += arguments

    def raw_calls(self) -> list[dict[str, Any]]:
        """Accumulated calls in the assistant-message wire shape, index order."""
        return [
            {
                "id": self._call_id(p),
                "type": "function",
                "function": {"name": p.name, "arguments": p.arguments},
            }
            for p in self._ordered()
        ]

    def finalize(self) -> list[ToolCall]:
        """Parse argument strings and return tool calls in index order."""
        return [
            ToolCall(id=self._call_id(p), name=p.name, arguments=parse_arguments(p.arguments))
            for p in self._ordered()
        ]

    def _ordered(self) -> list[_PendingCall]:
        return [self._calls[i] for i in sorted(self._calls)]

    @staticmethod
    def _call_id(pending: _PendingCall) -> str:
        return pending.id or f"call_{pending.index}_{pending.received_ms}"
