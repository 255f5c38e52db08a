"""Translate Anthropic Messages requests into OpenAI Chat Completions requests."""

from __future__ import annotations

import json
import logging
from typing import Any

from claudex.util import ToolNameMap, truncate_tool_name

logger = logging.getLogger(__name__)

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


def _as_u64(value: Any) -> int | None:
    if isinstance(value, int) and not isinstance(value, bool) and 0 <= value <= _U64_MAX:
        return value
    return None


def _dump_json(value: Any) -> str:
    return json.dumps(value, separators=(",", ":"), sort_keys=True, ensure_ascii=False)


def _joined_texts(parts: list[Any]) -> str:
    return "\n".join(text for part in parts if (text := _get_str(part, "text")) is not None)


def _system_text(system: Any) -> str:
    if isinstance(system, str):
        return system
    if isinstance(system, list):
        return _joined_texts(system)
    return ""


def _tool_result_content(block: Any) -> str:
    content = _get(block, "content")
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        return _joined_texts(content)
    return ""


def _convert_part(part: Any) -> dict[str, Any] | None:
    part_type = _get_str(part, "type")
    if part_type == "text":
        return {"type": "text", "text": _get(part, "text", "")}
    if part_type == "image":
        source = _get(part, "source", _MISSING)
        if source is _MISSING:
            return None
        media_type = _get_str(source, "media_type") or "image/png"
        data = _get_str(source, "data") or ""
        return {
            "type": "image_url",
            "image_url": {"url": f"data:{media_type};base64,{data}"},
        }
    # tool_result blocks are handled at the message level.
    return None


def _convert_content(content: Any) -> Any:
    """Convert Anthropic message content to OpenAI message content."""
    if content is _MISSING:
        return ""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = [converted for part in content if (converted := _convert_part(part)) is not None]
        if len(parts) == 1 and "text" in parts[0]:
            return parts[0]["text"]
        return parts
    return content


def _remember_truncation(name: str, tool_name_map: ToolNameMap) -> str:
    truncated = truncate_tool_name(name)
    if truncated != name:
        tool_name_map[truncated] = name
    return truncated


def _convert_user(msg: Any) -> list[dict[str, Any]]:
    content = _get(msg, "content", _MISSING)
    blocks = content if isinstance(content, list) else None
    if blocks is None or not any(_get_str(b, "type") == "tool_result" for b in blocks):
        return [{"role": "user", "content": _convert_content(content)}]

    converted: list[dict[str, Any]] = []
    user_parts: list[str] = []
    for block in blocks:
        block_type = _get_str(block, "type")
        if block_type == "tool_result":
            converted.append(
                {
                    "role": "tool",
                    "tool_call_id": _get_str(block, "tool_use_id") or "",
                    "content": _tool_result_content(block),
                }
            )
        elif block_type == "text":
            text = _get_str(block, "text")
            if text:
                user_parts.append(text)
    if user_parts:
        converted.append({"role": "user", "content": "\n".join(user_parts)})
    return converted


def _convert_assistant(msg: Any, tool_name_map: ToolNameMap) -> dict[str, Any]:
    assistant: dict[str, Any] = {"role": "assistant"}
    content = _get(msg, "content", _MISSING)
    if not isinstance(content, list):
        assistant["content"] = _convert_content(content)
        return assistant

    text_parts: list[str] = []
    tool_calls: list[dict[str, Any]] = []
    for block in content:
        block_type = _get_str(block, "type")
        if block_type == "text":
            text = _get_str(block, "text")
            if text is not None:
                text_parts.append(text)
        elif block_type == "tool_use":
            name = _remember_truncation(_get_str(block, "name") or "", tool_name_map)
            tool_calls.append(
                {
                    "id": _get(block, "id", ""),
                    "type": "function",
                    "function": {
                        "name": name,
                        "arguments": _dump_json(_get(block, "input", {})),
                    },
                }
            )
    if text_parts:
        assistant["content"] = "\n".join(text_parts)
    if tool_calls:
        assistant["tool_calls"] = tool_calls
    return assistant


def _convert_tool_choice(choice: Any) -> Any:
    if isinstance(choice, str):
        return _TOOL_CHOICE_MODES.get(choice, "auto")
    if isinstance(choice, dict):
        choice_type = _get_str(choice, "type") or "auto"
        if choice_type == "tool":
            name = truncate_tool_name(_get_str(choice, "name") or "")
            return {"type": "function", "function": {"name": name}}
        return _TOOL_CHOICE_MODES.get(choice_type, "auto")
    return "auto"


def _convert_tool(tool: Any, tool_name_map: ToolNameMap) -> dict[str, Any]:
    name = _remember_truncation(_get_str(tool, "name") or "", tool_name_map)
    return {
        "type": "function",
        "function": {
            "name": name,
            "description": _get(tool, "description", ""),
            "parameters": _get(tool, "input_schema", {}),
        },
    }


def anthropic_to_openai(
    anthropic: dict[str, Any],
    default_model: str,
    max_tokens_limit: int | None = None,
) -> tuple[dict[str, Any], ToolNameMap]:
    """Convert an Anthropic Messages request into a Chat Completions request.

    Returns the new request body and a map from truncated tool names back to
    the original names, used to restore names in the response.
    """
    tool_name_map: ToolNameMap = {}
    messages: list[dict[str, Any]] = []

    if "system" in anthropic:
        system_text = _system_text(anthropic["system"])
        if system_text:
            messages.append({"role": "system", "content": system_text})

    source_messages = anthropic.get("messages")
    if isinstance(source_messages, list):
        for msg in source_messages:
            role = _get_str(msg, "role") or "user"
            if role == "user":
                messages.extend(_convert_user(msg))
            elif role == "assistant":
                messages.append(_convert_assistant(msg, tool_name_map))
            else:
                content = _convert_content(_get(msg, "content", _MISSING))
                messages.append({"role": role, "content": content})

    model = anthropic.get("model")
    request: dict[str, Any] = {
        "model": model if isinstance(model, str) else default_model,
        "messages": messages,
    }

    if "max_tokens" in anthropic:
        max_tokens = anthropic["max_tokens"]
        requested = _as_u64(max_tokens)
        if requested is not None and max_tokens_limit is not None:
            max_tokens = min(requested, max_tokens_limit)
        request["max_tokens"] = max_tokens
    for key in ("temperature", "top_p", "stream"):
        if key in anthropic:
            request[key] = anthropic[key]

    tools = anthropic.get("tools")
    if isinstance(tools, list):
        request["tools"] = [_convert_tool(tool, tool_name_map) for tool in tools]

    if "tool_choice" in anthropic:
        request["tool_choice"] = _convert_tool_choice(anthropic["tool_choice"])

    if tool_name_map:
        logger.debug("truncated %d tool names for OpenAI compatibility", len(tool_name_map))

    return request, tool_name_map