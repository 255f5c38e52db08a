"""Translate OpenAI Chat Completions responses into Anthropic Messages responses."""

from __future__ import annotations

import json
from typing import Any

from claudex.util import ToolNameMap

_U64_MAX = 2**64 - 1

_STOP_REASONS = {
    "stop": "end_turn",
    "tool_calls": "tool_use",
    "length": "max_tokens",
    "content_filter": "end_turn",
}


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


def _parse_arguments(arguments: str) -> Any:
    try:
        return json.loads(arguments)
    except ValueError:
        return {}


def _tool_use_block(call: Any, tool_name_map: ToolNameMap) -> dict[str, Any]:
    function = _get(call, "function", {})
    arguments = _get_str(function, "arguments")
    name = _get_str(function, "name") or ""
    return {
        "type": "tool_use",
        "id": _get(call, "id", ""),
        "name": tool_name_map.get(name, name),
        "input": _parse_arguments(arguments if arguments is not None else "{}"),
    }


def openai_to_anthropic(openai: dict[str, Any], tool_name_map: ToolNameMap) -> dict[str, Any]:
    """Convert a Chat Completions response into an Anthropic Messages response.

    Tool names found in ``tool_name_map`` (truncated name to original) are
    restored to their original form.
    """
    choices = _get(openai, "choices")
    choice = choices[0] if isinstance(choices, list) and choices else {}
    message = _get(choice, "message", {})

    content: list[dict[str, Any]] = []

    text = _get_str(message, "content")
    if text:
        content.append({"type": "text", "text": text})

    tool_calls = _get(message, "tool_calls")
    if isinstance(tool_calls, list):
        content.extend(_tool_use_block(call, tool_name_map) for call in tool_calls)

    finish_reason = _get_str(choice, "finish_reason") or "end_turn"
    stop_reason = _STOP_REASONS.get(finish_reason, finish_reason)

    usage = _get(openai, "usage", {})
    model = _get_str(openai, "model")

    return {
        "id": _get(openai, "id", "msg_claudex"),
        "type": "message",
        "role": "assistant",
        "model": model if model is not None else "unknown",
        "content": content,
        "stop_reason": stop_reason,
        "stop_sequence": None,
        "usage": {
            "input_tokens": _get_u64(usage, "prompt_tokens"),
            "output_tokens": _get_u64(usage, "completion_tokens"),
        },
    }