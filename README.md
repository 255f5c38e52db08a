# claudex

claudex is a library that converts messages between the Anthropic
Messages API and OpenAI-style back ends, in both directions, for a proxy
to use. It handles Chat Completions and the Responses API, and it
converts streamed Server-Sent Events as well as whole responses. It also
has some parts a proxy needs around that conversion: circuit breakers for
each profile, request metrics for each profile, and rules that route a
request by its intent.

The package uses only the standard library.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Translating to Chat Completions

`claudex.chat_request.anthropic_to_openai(anthropic, default_model, max_tokens_limit=None)`
turns an Anthropic request body into a Chat Completions body. It returns
the new body and a map of tool names.

- The system prompt becomes a `system` message.
- `tool_result` blocks become `tool` messages.
- `tool_use` blocks become `tool_calls`.
- Images become `image_url` data URLs.
- `max_tokens` is capped at `max_tokens_limit` when a limit is given.

Tool names longer than 64 characters are shortened. The map goes from
each shortened name back to the original one.

`claudex.chat_response.openai_to_anthropic(openai, tool_name_map)` turns
a Chat Completions response into an Anthropic message. It restores the
shortened tool names and maps the finish reason to a stop reason:
`stop` gives `end_turn`, `tool_calls` gives `tool_use`, `length` gives
`max_tokens` and `content_filter` gives `end_turn`.

```python
from claudex.chat_request import anthropic_to_openai
from claudex.chat_response import openai_to_anthropic

request = {
    "system": "You are helpful.",
    "messages": [{"role": "user", "content": "hello"}],
    "max_tokens": 4096,
}
body, tool_names = anthropic_to_openai(request, "gpt-4o", 1024)
assert body["max_tokens"] == 1024

reply = openai_to_anthropic(upstream_json, tool_names)
```

## Translating to the Responses API

`claudex.responses.anthropic_to_responses(anthropic, default_model)`
builds a Responses API body.

- Messages become `input` items.
- The system prompt becomes `instructions`.
- `store` is always `false`.
- `max_tokens` is not forwarded.

`responses_to_anthropic(resp, tool_name_map)` converts the reply back
into an Anthropic message.

```python
from claudex.responses import anthropic_to_responses, responses_to_anthropic

body, tool_names = anthropic_to_responses(request, "gpt-4o")
reply = responses_to_anthropic(upstream_json, tool_names)
```

## Streaming

Two functions read the raw byte chunks of an upstream SSE stream:

- `claudex.chat_stream.translate_sse_stream(chunks, tool_name_map=None)` for Chat Completions
- `claudex.responses_stream.translate_responses_stream(chunks, tool_name_map=None)` for the Responses API

Each one yields Anthropic SSE events as bytes, in this order:

1. `message_start`
2. the content block events
3. `message_delta`
4. `message_stop`

If reading the chunks raises an error, the error reaches the caller.

```python
from claudex.chat_stream import translate_sse_stream

for event in translate_sse_stream(upstream_chunks, tool_names):
    send_to_client(event)
```

If you split the lines yourself, you can use the state machines behind
these functions directly:

- `ChatStreamState.process_openai_line(line)` takes a single line and returns a list of event strings.
- `ResponsesStreamState.process_line(line)` does the same for Responses API lines.

## Circuit breakers

`claudex.fallback.CircuitBreaker` opens after `threshold` failures. The
default threshold is 3. Once `recovery_timeout` seconds have passed
(default 30), `can_attempt()` moves the breaker to half-open and lets a
request through. `record_success()` closes the breaker again.

`CircuitBreakerMap.get_or_create(profile)` creates a default breaker for
a profile if it has none. It returns a copy of that profile's breaker.

```python
from claudex.fallback import CircuitBreaker

breaker = CircuitBreaker(threshold=2, recovery_timeout=60.0)
breaker.record_failure()
breaker.record_failure()
assert breaker.is_open() and not breaker.can_attempt()
```

## Metrics

`claudex.metrics.MetricsStore.get_or_create(profile)` returns the shared
`ProfileMetrics` for a profile. `ProfileMetrics` provides:

- `record_request(success, latency, tokens)`, where `latency` is a `timedelta`
- `avg_latency()`, the average over the last 100 latencies
- `success_rate()`, a percentage that is `100.0` before any request is recorded

`snapshot()` returns a copy of the map of profiles.

## Routing

`claudex.router.RouterConfig.resolve_profile(intent)` maps an intent to a
profile name. If no rule matches the intent, it uses the `default` rule.

`claudex.classifier.extract_last_user_message(body)` returns the text of
the most recent user turn.

`classify_intent(base_url, api_key, model, prompt)` posts the prompt to
`<base_url>/chat/completions`. It returns the category name in lower
case, or `"default"` if the reply holds no answer. The call blocks until
the reply arrives.

```python
from claudex.classifier import classify_intent

intent = classify_intent("http://localhost:8000/v1", "placeholder", "some-model", "fix this bug")
```

## Utilities

- `claudex.util.truncate_tool_name`: shortens a tool name to at most 64 characters, adding a hash suffix
- `claudex.util.format_sse`: frames a JSON payload as one SSE event
- `claudex.util.format_key_preview`: shows a key as its first and last four characters
- `claudex.util.to_anthropic_error`: builds an Anthropic-style error body for an HTTP status

## What the package does not do

claudex is a library only. It does not provide:

- an HTTP server or a command to start one
- a way to load configuration files or store profiles
- error types that map to HTTP responses
- health checks
- calls to upstream providers, apart from `classify_intent`

The application that embeds claudex has to supply these.