"""Small helpers shared by the proxy: tool-name truncation, SSE framing, errors."""

from __future__ import annotations

import hashlib
import json
from typing import Any

MAX_TOOL_NAME_LEN = 64
"""Longest tool name an OpenAI-style endpoint accepts."""

ToolNameMap = dict[str, str]
"""Mapping from a truncated tool name back to its original name."""

_HASH_LEN = 8
_PREFIX_LEN = MAX_TOOL_NAME_LEN - _HASH_LEN - 1

_ERROR_TYPES = {
    401: "authentication_error",
    403: "permission_error",
    404: "not_found_error",
    429: "rate_limit_error",
}


def truncate_tool_name(name: str) -> str:
    """Shorten a tool name to at most 64 characters, keeping it recognisable.

    Long names keep their first 55 characters followed by ``_`` and an
    8-character hash of the full name, so distinct names stay distinct.
    """
    if len(name) <= MAX_TOOL_NAME_LEN:
        return name
    digest = hashlib.sha256(name.encode("utf-8")).hexdigest()[:_HASH_LEN]
    return f"{name[:_PREFIX_LEN]}_{digest}"


def format_sse(event: str, data: Any) -> str:
    """Frame a JSON payload as one server-sent event."""
    payload = json.dumps(data, separators=(",", ":"), ensure_ascii=False)
    return f"event: {event}\ndata: {payload}\n\n"


def format_key_preview(key: str) -> str:
    """Show the first and last four characters of an API key."""
    if not key:
        return "(empty)"
    if len(key) > 8:
        return f"{key[:4]}...{key[-4:]}"
    return "***"


def to_anthropic_error(status: int, message: str) -> dict[str, Any]:
    """Build an Anthropic-style error body for an HTTP status."""
    return {
        "type": "error",
        "error": {
            "type": _ERROR_TYPES.get(status, "invalid_request_error"),
            "message": message,
        },
    }