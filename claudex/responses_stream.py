"""Translate an OpenAI Responses API SSE stream into Anthropic SSE events."""

from __future__ import annotations

import codecs
import json
import uuid
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from typing import Any

from claudex.util import ToolNameMap, format_sse

_U64_MAX = 2**64 - 1


def _get(value: Any, key: str, default: Any = None) -> Any:
    """Look up ``key`` when ``value`` is a JSON object, else return ``default``."""
    if isinstance(value, dict):
        return value.get(key, default)
    return default


def _get_str(value: Any, key: str) -> str | None:
    found = _get(value, key)
    return found if isinstance(found, str) else None


def _get_u64(value: Any, key: str) -> int:
    found = _get(value, key)
    if isinstance(found, int) and not isinstance(found, bool) and 0 <= found <= _U64_MAX:
        return found
    return 0


@dataclass
class ResponsesStreamState:
    """Tracks content blocks while converting Responses API events."""

    tool_name_map: ToolNameMap = field(default_factory=dict)
    block_index: int = 0
    block_started: bool = False
    has_tool_use: bool = False
    stop_reason: str = "end_turn"
    output_tokens: int = 0

    def _block_stop(self) -> str:
        return format_sse(
            "content_block_stop",
            {"type": "content_block_stop", "index": self.block_index},
        )

    def _close_block(self) -> list[str]:
        if not self.block_started:
            return []
        event = self._block_stop()
        self.block_started = False
        self.block_index += 1
        return [event]

    @property
    def final_stop_reason(self) -> str:
        """The stop reason reported when the stream ends."""
        return "tool_use" if self.has_tool_use else self.stop_reason

    def process_line(self, line: str) -> list[str]:
        """Turn one SSE line into Anthropic SSE events (possibly none)."""
        if line.startswith("event:"):
            return []
        if line.startswith("data: "):
            data = line[len("data: "):]
        elif line.startswith("data:"):
            data = line[len("data:"):]
        else:
            return []

        try:
            event = json.loads(data)
        except ValueError:
            return []

        event_type = _get_str(event, "type") or ""
        if event_type == "response.output_text.delta":
            return self._text_delta(_get_str(event, "delta") or "")
        if event_type in (
            "response.output_text.done",
            "response.content_part.done",
            "response.function_call_arguments.done",
        ):
            return self._close_block()
        if event_type == "response.output_item.added":
            return self._item_added(_get(event, "item", {}))
        if event_type == "response.function_call_arguments.delta":
            delta = _get_str(event, "delta") or ""
            if not delta:
                return []
            return [
                format_sse(
                    "content_block_delta",
                    {
                        "type": "content_block_delta",
                        "index": self.block_index,
                        "delta": {"type": "input_json_delta", "partial_json": delta},
                    },
                )
            ]
        if event_type == "response.completed":
            self._completed(_get(event, "response"))
            return []
        if event_type == "response.failed":
            self.stop_reason = "end_turn"
        return []

    def _text_delta(self, delta: str) -> list[str]:
        if not delta:
            return []
        events: list[str] = []
        if not self.block_started:
            events.append(
                format_sse(
                    "content_block_start",
                    {
                        "type": "content_block_start",
                        "index": self.block_index,
                        "content_block": {"type": "text", "text": ""},
                    },
                )
            )
            self.block_started = True
        events.append(
            format_sse(
                "content_block_delta",
                {
                    "type": "content_block_delta",
                    "index": self.block_index,
                    "delta": {"type": "text_delta", "text": delta},
                },
            )
        )
        return events

    def _item_added(self, item: Any) -> list[str]:
        if (_get_str(item, "type") or "") != "function_call":
            return []
        self.has_tool_use = True
        name = _get_str(item, "name") or "unknown"
        original_name = self.tool_name_map.get(name, name)
        call_id = _get_str(item, "call_id") or "call_0"

        events = self._close_block()
        events.append(
            format_sse(
                "content_block_start",
                {
                    "type": "content_block_start",
                    "index": self.block_index,
                    "content_block": {
                        "type": "tool_use",
                        "id": call_id,
                        "name": original_name,
                        "input": {},
                    },
                },
            )
        )
        self.block_started = True
        return events

    def _completed(self, response: Any) -> None:
        if not isinstance(response, dict):
            return
        if "usage" in response:
            self.output_tokens = _get_u64(response["usage"], "output_tokens")
        status = _get_str(response, "status") or "completed"
        if status == "incomplete":
            self.stop_reason = "max_tokens"


def _message_start() -> str:
    return format_sse(
        "message_start",
        {
            "type": "message_start",
            "message": {
                "id": f"msg_{uuid.uuid4()}",
                "type": "message",
                "role": "assistant",
                "model": "claudex-proxy",
                "content": [],
                "stop_reason": None,
                "stop_sequence": None,
                "usage": {"input_tokens": 0, "output_tokens": 0},
            },
        },
    )


def translate_responses_stream(
    chunks: Iterable[bytes], tool_name_map: ToolNameMap | None = None
) -> Iterator[bytes]:
    """Convert raw Responses API SSE chunks into Anthropic SSE event bytes.

    Errors raised while reading ``chunks`` propagate to the consumer.
    """
    state = ResponsesStreamState(tool_name_map=dict(tool_name_map or {}))
    decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")

    yield _message_start().encode("utf-8")

    buffer = ""
    for chunk in chunks:
        buffer += decoder.decode(chunk)
        while (pos := buffer.find("\n")) != -1:
            line, buffer = buffer[:pos], buffer[pos + 1:]
            if not line:
                continue
            for event in state.process_line(line):
                yield event.encode("utf-8")

    if state.block_started:
        yield state._block_stop().encode("utf-8")

    yield format_sse(
        "message_delta",
        {
            "type": "message_delta",
            "delta": {"stop_reason": state.final_stop_reason, "stop_sequence": None},
            "usage": {"output_tokens": state.output_tokens},
        },
    ).encode("utf-8")
    yield format_sse("message_stop", {"type": "message_stop"}).encode("utf-8")