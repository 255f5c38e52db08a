"""Classify the intent of a request and pull the latest user text out of it."""

from __future__ import annotations

import json
import urllib.error
import urllib.request
from typing import Any

CLASSIFICATION_PROMPT = """Analyze the following user request and classify its intent into exactly ONE of these categories:
- code: Code generation, modification, debugging, or programming tasks
- analysis: Code review, project analysis, architecture discussion
- creative: Creative writing, brainstorming, content generation
- search: Questions requiring up-to-date information or web search
- math: Mathematical reasoning, calculations, proofs

Respond with ONLY the category name, nothing else."""

_TIMEOUT_SECONDS = 300.0


def _get(value: Any, key: str) -> Any:
    return value.get(key) if isinstance(value, dict) else None


def _intent_from_response(resp: Any) -> str:
    choices = _get(resp, "choices")
    first = choices[0] if isinstance(choices, list) and choices else None
    content = _get(_get(first, "message"), "content")
    if not isinstance(content, str):
        content = "default"
    return content.strip().lower()


def classify_intent(base_url: str, api_key: str, model: str, prompt: str) -> str:
    """Ask a Chat Completions endpoint which category ``prompt`` falls into.

    Returns the lower-cased category, or ``"default"`` when the answer holds
    none. Network failures and unparsable replies raise.
    """
    url = f"{base_url.rstrip('/')}/chat/completions"
    body = {
        "model": model,
        "messages": [
            {"role": "system", "content": CLASSIFICATION_PROMPT},
            {"role": "user", "content": prompt},
        ],
        "max_tokens": 10,
        "temperature": 0.0,
    }
    headers = {"Content-Type": "application/json"}
    if api_key:
        headers["Authorization"] = f"Bearer {api_key}"

    request = urllib.request.Request(
        url, data=json.dumps(body).encode("utf-8"), headers=headers, method="POST"
    )
    try:
        with urllib.request.urlopen(request, timeout=_TIMEOUT_SECONDS) as response:
            raw = response.read()
    except urllib.error.HTTPError as err:
        raw = err.read()
    return _intent_from_response(json.loads(raw))


def extract_last_user_message(body: Any) -> str | None:
    """Text of the last user message, joining text parts with newlines."""
    messages = _get(body, "messages")
    if not isinstance(messages, list):
        return None
    for msg in reversed(messages):
        if _get(msg, "role") != "user":
            continue
        content = _get(msg, "content")
        if isinstance(content, str):
            return content
        if isinstance(content, list):
            return "\n".join(
                part["text"]
                for part in content
                if _get(part, "type") == "text" and isinstance(_get(part, "text"), str)
            )
        return None
    return None