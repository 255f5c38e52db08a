"""Translate an OpenAI Chat Completions SSE stream into Anthropic SSE events."""

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


def _get_u64(value: Any, key: str) -> int | None:
    found = _get(value, key)
    if isinstance(found, int) and not isinstance(found, bool) and 0 <= found <= _U64_MAX:
        return found
    return None


@dataclass
class ToolCallState:
    """A tool call whose arguments are still streaming in."""

    id: str
    name: str
    arguments_buffer: str = ""


@dataclass
class ChatStreamState:
    """Tracks content blocks while converting Chat Completions chunks."""

    tool_name_map: ToolNameMap = field(default_factory=dict)
    block_index: int = 0
    block_started: bool = False
    output_tokens: int = 0
    current_tool_call: ToolCallState | None = None

    def _block_stop(self) -> str:
        return format_sse(
            "content_block_stop",
            {"type": "content_block_stop", "index": self.block_index},
        )

    def _close_block(self) -> list[str]:
        if not self.block_started:
            return []
        event = self._block_stop()
        self.block_index += 1
        self.block_started = False
        return [event]

    def finalize_tool_call(self) -> list[str]:
        """Close the pending tool call's block, if a tool call is pending."""
        if self.current_tool_call is None:
            return []
        self.current_tool_call = None
        return self._close_block()

    def process_openai_line(self, line: str) -> list[str]:
        """Turn one ``data:`` line into Anthropic SSE events (possibly none)."""
        if not line.startswith("data: "):
            return []
        data = line[len("data: "):].strip()

        if data == "[DONE]":
            return self.finalize_tool_call()

        try:
            parsed = json.loads(data)
        except ValueError:
            return []
        choices = _get(parsed, "choices")
        if not isinstance(choices, list) or not choices:
            return []
        choice = choices[0]
        if not isinstance(choice, dict) or "delta" not in choice:
            return []
        delta = choice["delta"]

        events: list[str] = []

        tokens = _get_u64(_get(parsed, "usage"), "completion_tokens")
        if tokens is not None:
            self.output_tokens = tokens

        content = _get_str(delta, "content")
        if content:
            events.extend(self.finalize_tool_call())
            if not self.block_started or self.current_tool_call is not None:
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
                        "delta": {"type": "text_delta", "text": content},
                    },
                )
            )

        tool_calls = _get(delta, "tool_calls")
        if isinstance(tool_calls, list):
            for call in tool_calls:
                events.extend(self._process_tool_call(call))

        if _get_str(choice, "finish_reason") == "tool_calls":
            events.extend(self.finalize_tool_call())

        return events

    def _process_tool_call(self, call: Any) -> list[str]:
        events: list[str] = []
        function = _get(call, "function", {})

        call_id = _get_str(call, "id")
        if call_id is not None:
            events.extend(self._close_block())
            events.extend(self.finalize_tool_call())

            truncated = _get_str(function, "name") or ""
            name = self.tool_name_map.get(truncated, truncated)
            self.current_tool_call = ToolCallState(id=call_id, name=name)
            events.append(
                format_sse(
                    "content_block_start",
                    {
                        "type": "content_block_start",
                        "index": self.block_index,
                        "content_block": {
                            "type": "tool_use",
                            "id": call_id,
                            "name": name,
                            "input": {},
                        },
                    },
                )
            )
            self.block_started = True

        arguments = _get_str(function, "arguments")
        if arguments is not None and self.current_tool_call is not None:
            self.current_tool_call.arguments_buffer += arguments
            events.append(
                format_sse(
                    "content_block_delta",
                    {
                        "type": "content_block_delta",
                        "index": self.block_index,
                        "delta": {"type": "input_json_delta", "partial_json": arguments},
                    },
                )
            )
        return events


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


def translate_sse_stream(
    chunks: Iterable[bytes], tool_name_map: ToolNameMap | None = None
) -> Iterator[bytes]:
    """Convert raw Chat Completions SSE chunks into Anthropic SSE event bytes.

    Errors raised while reading ``chunks`` propagate to the consumer.
    """
    state = ChatStreamState(tool_name_map=dict(tool_name_map or {}))
    decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")

    yield _message_start().encode("utf-8")

    buffer = ""
    for chunk in chunks:
        buffer += decoder.decode(chunk)

        while (pos := buffer.find("\n\n")) != -1:
            line, buffer = buffer[:pos], buffer[pos + 2:]
            for event in state.process_openai_line(line):
                yield event.encode("utf-8")

        while (pos := buffer.find("\n")) != -1:
            line, buffer = buffer[:pos], buffer[pos + 1:]
            if not line:
                continue
            for event in state.process_openai_line(line):
                yield event.encode("utf-8")

    if state.block_started:
        yield state._block_stop().encode("utf-8")

    yield format_sse(
        "message_delta",
        {
            "type": "message_delta",
            "delta": {"stop_reason": "end_turn", "stop_sequence": None},
            "usage": {"output_tokens": state.output_tokens},
        },
    ).encode("utf-8")
    yield format_sse("message_stop", {"type": "message_stop"}).encode("utf-8")