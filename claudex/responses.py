"""Translate between Anthropic Messages and the OpenAI Responses API."""

from __future__ import annotations

import json
from typing import Any

from claudex.util import ToolNameMap, truncate_tool_name

_MISSING = object()
_U64_MAX = 2**64 - 1

_TOOL_CHOICE_MODES = {"auto": "auto", "any": "required", "none": "none"}


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


def _dump_json(value: Any) -> str:
    return json.dumps(value, separators=(",", ":"), sort_keys=True, ensure_ascii=False)


def _parse_arguments(arguments: str) -> Any:
    try:
        return json.loads(arguments)
    except ValueError:
        return {}


def _joined_texts(parts: list[Any]) -> str:
    return "\n".join(text for part in parts if (text := _get_str(part, "text")) is not None)


def _tool_result_content(block: Any) -> str:
    content = _get(block, "content")
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        return _joined_texts(content)
    return ""


def _system_text(system: Any) -> str:
    if isinstance(system, str):
        return system
    if isinstance(system, list):
        return _joined_texts(system)
    return ""


def _remember_truncation(name: str, tool_name_map: ToolNameMap) -> str:
    truncated = truncate_tool_name(name)
    if truncated != name:
        tool_name_map[truncated] = name
    return truncated


def _convert_user_part(part: Any) -> dict[str, Any] | None:
    part_type = _get_str(part, "type")
    if part_type == "text":
        return {"type": "input_text", "text": _get_str(part, "text") or ""}
    if part_type == "image":
        source = _get(part, "source")
        media_type = _get_str(source, "media_type") or "image/png"
        data = _get_str(source, "data") or ""
        return {"type": "input_image", "image_url": f"data:{media_type};base64,{data}"}
    return None


def _convert_user_content(content: Any) -> list[dict[str, Any]]:
    if isinstance(content, str):
        return [{"type": "input_text", "text": content}]
    if isinstance(content, list):
        return [converted for part in content if (converted := _convert_user_part(part)) is not None]
    return []


def _convert_user(content: Any) -> list[dict[str, Any]]:
    if isinstance(content, list) and any(
        _get_str(block, "type") == "tool_result" for block in content
    ):
        return [
            {
                "type": "function_call_output",
                "call_id": _get_str(block, "tool_use_id") or "call_0",
                "output": _tool_result_content(block),
            }
            for block in content
            if _get_str(block, "type") == "tool_result"
        ]
    return [{"role": "user", "type": "message", "content": _convert_user_content(content)}]


def _assistant_message(text_parts: list[dict[str, Any]]) -> dict[str, Any]:
    return {
        "type": "message",
        "role": "assistant",
        "status": "completed",
        "content": text_parts,
    }


def _convert_assistant(content: Any, tool_name_map: ToolNameMap) -> list[dict[str, Any]]:
    if isinstance(content, list):
        blocks = content
    elif isinstance(content, str):
        blocks = [{"type": "text", "text": content}]
    else:
        blocks = []

    items: list[dict[str, Any]] = []
    text_parts: list[dict[str, Any]] = []
    for block in blocks:
        block_type = _get_str(block, "type")
        if block_type == "text":
            text = _get_str(block, "text")
            if text is not None:
                text_parts.append({"type": "output_text", "text": text, "annotations": []})
        elif block_type == "tool_use":
            if text_parts:
                items.append(_assistant_message(text_parts))
                text_parts = []
            name = _remember_truncation(_get_str(block, "name") or "unknown", tool_name_map)
            tool_input = _get(block, "input", _MISSING)
            items.append(
                {
                    "type": "function_call",
                    "call_id": _get_str(block, "id") or "call_0",
                    "name": name,
                    "arguments": "{}" if tool_input is _MISSING else _dump_json(tool_input),
                    "status": "completed",
                }
            )
    if text_parts:
        items.append(_assistant_message(text_parts))
    return items


def _convert_other(content: Any) -> list[dict[str, Any]]:
    if isinstance(content, str) and content:
        return [
            {
                "role": "user",
                "type": "message",
                "content": [{"type": "input_text", "text": content}],
            }
        ]
    return []


def _convert_tool(tool: Any, tool_name_map: ToolNameMap) -> dict[str, Any]:
    name = _remember_truncation(_get_str(tool, "name") or "unknown", tool_name_map)
    return {
        "type": "function",
        "name": name,
        "description": _get(tool, "description", ""),
        "parameters": _get(tool, "input_schema", {"type": "object"}),
    }


def _convert_tool_choice(choice: Any) -> Any:
    choice_type = _get_str(choice, "type") or "auto"
    if choice_type == "tool":
        name = truncate_tool_name(_get_str(choice, "name") or "")
        return {"type": "function", "name": name}
    return _TOOL_CHOICE_MODES.get(choice_type, "auto")


def anthropic_to_responses(
    anthropic: dict[str, Any], default_model: str
) -> tuple[dict[str, Any], ToolNameMap]:
    """Convert an Anthropic Messages request into a Responses API request.

    Returns the request body and a map from truncated tool names back to the
    original names.
    """
    tool_name_map: ToolNameMap = {}
    input_items: list[dict[str, Any]] = []

    messages = anthropic.get("messages")
    if isinstance(messages, list):
        for msg in messages:
            role = _get_str(msg, "role") or "user"
            content = _get(msg, "content")
            if role == "user":
                input_items.extend(_convert_user(content))
            elif role == "assistant":
                input_items.extend(_convert_assistant(content, tool_name_map))
            else:
                input_items.extend(_convert_other(content))

    instructions = _system_text(anthropic["system"]) if "system" in anthropic else ""

    model = anthropic.get("model")
    stream = anthropic.get("stream")
    body: dict[str, Any] = {
        "model": model if isinstance(model, str) else default_model,
        "input": input_items,
        "stream": stream if isinstance(stream, bool) else False,
        "store": False,
    }

    if instructions:
        body["instructions"] = instructions

    # The ChatGPT backend rejects max_output_tokens, so max_tokens is not forwarded.
    for key in ("temperature", "top_p"):
        if key in anthropic:
            body[key] = anthropic[key]

    tools = anthropic.get("tools")
    if isinstance(tools, list):
        body["tools"] = [_convert_tool(tool, tool_name_map) for tool in tools]

    if "tool_choice" in anthropic:
        body["tool_choice"] = _convert_tool_choice(anthropic["tool_choice"])

    return body, tool_name_map


def _output_item_blocks(item: Any, tool_name_map: ToolNameMap) -> list[dict[str, Any]]:
    item_type = _get_str(item, "type") or ""
    if item_type == "message":
        parts = _get(item, "content")
        if not isinstance(parts, list):
            return []
        return [
            {"type": "text", "text": text}
            for part in parts
            if (_get_str(part, "type") or "") == "output_text"
            and (text := _get_str(part, "text")) is not None
        ]
    if item_type == "function_call":
        name = _get_str(item, "name") or "unknown"
        arguments = _get_str(item, "arguments")
        return [
            {
                "type": "tool_use",
                "id": _get_str(item, "call_id") or "call_0",
                "name": tool_name_map.get(name, name),
                "input": _parse_arguments(arguments if arguments is not None else "{}"),
            }
        ]
    return []


def responses_to_anthropic(resp: dict[str, Any], tool_name_map: ToolNameMap) -> dict[str, Any]:
    """Convert a Responses API response into an Anthropic Messages response."""
    content: list[dict[str, Any]] = []
    has_tool_use = False

    output = _get(resp, "output")
    if isinstance(output, list):
        for item in output:
            if _get_str(item, "type") == "function_call":
                has_tool_use = True
            content.extend(_output_item_blocks(item, tool_name_map))

    status = _get_str(resp, "status") or "completed"
    if has_tool_use:
        stop_reason = "tool_use"
    elif status == "incomplete":
        stop_reason = "max_tokens"
    else:
        stop_reason = "end_turn"

    usage = _get(resp, "usage", {})
    model = _get_str(resp, "model")
    resp_id = _get_str(resp, "id")

    return {
        "id": resp_id if resp_id is not None else "resp_0",
        "type": "message",
        "role": "assistant",
        "model": model if model is not None else "unknown",
        "content": content,
        "stop_reason": stop_reason,
        "stop_sequence": None,
        "usage": {
            "input_tokens": _get_u64(usage, "input_tokens"),
            "output_tokens": _get_u64(usage, "output_tokens"),
        },
    }