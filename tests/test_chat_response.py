import pytest

from claudex.chat_request import anthropic_to_openai
from claudex.chat_response import openai_to_anthropic


def test_openai_text_response():
    resp = {
        "id": "chatcmpl-123",
        "model": "gpt-4",
        "choices": [
            {
                "message": {"role": "assistant", "content": "Hello!"},
                "finish_reason": "stop",
            }
        ],
        "usage": {"prompt_tokens": 10, "completion_tokens": 5},
    }
    result = openai_to_anthropic(resp, {})
    assert result["type"] == "message"
    assert result["role"] == "assistant"
    assert result["model"] == "gpt-4"
    assert result["id"] == "chatcmpl-123"
    assert result["content"][0]["type"] == "text"
    assert result["content"][0]["text"] == "Hello!"
    assert result["stop_reason"] == "end_turn"
    assert result["stop_sequence"] is None
    assert result["usage"]["input_tokens"] == 10
    assert result["usage"]["output_tokens"] == 5


def test_openai_tool_call_response():
    resp = {
        "id": "chatcmpl-456",
        "model": "gpt-4",
        "choices": [
            {
                "message": {
                    "role": "assistant",
                    "content": None,
                    "tool_calls": [
                        {
                            "id": "call_abc",
                            "type": "function",
                            "function": {
                                "name": "get_weather",
                                "arguments": '{"city":"Tokyo"}',
                            },
                        }
                    ],
                },
                "finish_reason": "tool_calls",
            }
        ],
        "usage": {"prompt_tokens": 20, "completion_tokens": 15},
    }
    result = openai_to_anthropic(resp, {})
    assert result["stop_reason"] == "tool_use"
    assert len(result["content"]) == 1
    assert result["content"][0]["type"] == "tool_use"
    assert result["content"][0]["id"] == "call_abc"
    assert result["content"][0]["name"] == "get_weather"
    assert result["content"][0]["input"]["city"] == "Tokyo"


@pytest.mark.parametrize(
    ("finish_reason", "expected"),
    [
        ("stop", "end_turn"),
        ("length", "max_tokens"),
        ("tool_calls", "tool_use"),
        ("content_filter", "end_turn"),
        ("something_else", "something_else"),
    ],
)
def test_stop_reason_mapping(finish_reason, expected):
    resp = {
        "choices": [{"message": {"content": "x"}, "finish_reason": finish_reason}],
        "usage": {},
    }
    assert openai_to_anthropic(resp, {})["stop_reason"] == expected


def test_empty_openai_response():
    result = openai_to_anthropic({"choices": [], "usage": {}}, {})
    assert result["type"] == "message"
    assert result["content"] == []
    assert result["stop_reason"] == "end_turn"
    assert result["model"] == "unknown"
    assert result["id"] == "msg_claudex"
    assert result["usage"] == {"input_tokens": 0, "output_tokens": 0}


def test_empty_text_is_dropped():
    resp = {"choices": [{"message": {"content": ""}, "finish_reason": "stop"}]}
    assert openai_to_anthropic(resp, {})["content"] == []


def test_invalid_arguments_become_empty_object():
    resp = {
        "choices": [
            {
                "message": {
                    "tool_calls": [
                        {"id": "c1", "function": {"name": "f", "arguments": "{not json"}}
                    ]
                },
                "finish_reason": "tool_calls",
            }
        ]
    }
    assert openai_to_anthropic(resp, {})["content"][0]["input"] == {}


def test_missing_arguments_become_empty_object():
    resp = {"choices": [{"message": {"tool_calls": [{"function": {"name": "f"}}]}}]}
    block = openai_to_anthropic(resp, {})["content"][0]
    assert block["input"] == {}
    assert block["id"] == ""


def test_text_and_tool_calls_keep_order():
    resp = {
        "choices": [
            {
                "message": {
                    "content": "Let me check.",
                    "tool_calls": [
                        {"id": "c1", "function": {"name": "search", "arguments": "{}"}}
                    ],
                },
                "finish_reason": "tool_calls",
            }
        ]
    }
    content = openai_to_anthropic(resp, {})["content"]
    assert [block["type"] for block in content] == ["text", "tool_use"]


def test_tool_name_roundtrip():
    long_name = "mcp__claude_in_chrome__validate_and_render_mermaid_diagram_extra_long"
    req = {
        "messages": [],
        "tools": [{"name": long_name, "description": "test", "input_schema": {}}],
    }
    body, name_map = anthropic_to_openai(req, "m", None)
    truncated = body["tools"][0]["function"]["name"]
    assert len(truncated) <= 64

    resp = {
        "choices": [
            {
                "message": {
                    "tool_calls": [
                        {
                            "id": "c1",
                            "type": "function",
                            "function": {"name": truncated, "arguments": "{}"},
                        }
                    ]
                },
                "finish_reason": "tool_calls",
            }
        ],
        "usage": {},
    }
    result = openai_to_anthropic(resp, name_map)
    assert result["content"][0]["name"] == long_name