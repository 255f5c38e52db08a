import json
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

import pytest

from claudex.classifier import classify_intent, extract_last_user_message


class _Recorder:
    def __init__(self):
        self.requests = []
        self.reply = {}
        self.status = 200


@pytest.fixture
def server():
    recorder = _Recorder()

    class Handler(BaseHTTPRequestHandler):
        def do_POST(self):
            length = int(self.headers.get("Content-Length", "0"))
            payload = json.loads(self.rfile.read(length))
            recorder.requests.append(
                {"path": self.path, "headers": dict(self.headers), "body": payload}
            )
            data = json.dumps(recorder.reply).encode("utf-8")
            self.send_response(recorder.status)
            self.send_header("Content-Type", "application/json")
            self.send_header("Content-Length", str(len(data)))
            self.end_headers()
            self.wfile.write(data)

        def log_message(self, *args):
            pass

    httpd = ThreadingHTTPServer(("127.0.0.1", 0), Handler)
    thread = threading.Thread(target=httpd.serve_forever, daemon=True)
    thread.start()
    host, port = httpd.server_address
    recorder.base_url = f"http://{host}:{port}/v1/"
    yield recorder
    httpd.shutdown()
    httpd.server_close()


def test_extract_string_content():
    body = {"messages": [{"role": "user", "content": "hello world"}]}
    assert extract_last_user_message(body) == "hello world"


def test_extract_array_content():
    body = {
        "messages": [
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": "part1"},
                    {"type": "image", "source": {}},
                    {"type": "text", "text": "part2"},
                ],
            }
        ]
    }
    assert extract_last_user_message(body) == "part1\npart2"


def test_extract_last_user_among_multiple():
    body = {
        "messages": [
            {"role": "user", "content": "first"},
            {"role": "assistant", "content": "reply"},
            {"role": "user", "content": "second"},
        ]
    }
    assert extract_last_user_message(body) == "second"


def test_extract_no_user_message():
    body = {"messages": [{"role": "assistant", "content": "hi"}]}
    assert extract_last_user_message(body) is None


def test_extract_empty_messages():
    assert extract_last_user_message({"messages": []}) is None


def test_extract_no_messages_field():
    assert extract_last_user_message({"other": "field"}) is None


def test_extract_last_user_without_content_gives_none():
    body = {
        "messages": [
            {"role": "user", "content": "earlier"},
            {"role": "user"},
        ]
    }
    assert extract_last_user_message(body) is None


def test_classify_intent_returns_trimmed_lowercase(server):
    server.reply = {"choices": [{"message": {"content": "  Code \n"}}]}
    intent = classify_intent(server.base_url, "placeholder", "small-model", "fix my bug")
    assert intent == "code"

    sent = server.requests[0]
    assert sent["path"] == "/v1/chat/completions"
    assert sent["headers"]["Authorization"] == "Bearer placeholder"
    assert sent["body"]["model"] == "small-model"
    assert sent["body"]["max_tokens"] == 10
    assert sent["body"]["temperature"] == 0.0
    assert sent["body"]["messages"][0]["role"] == "system"
    assert sent["body"]["messages"][1] == {"role": "user", "content": "fix my bug"}


def test_classify_intent_without_key_sends_no_auth(server):
    server.reply = {"choices": [{"message": {"content": "math"}}]}
    assert classify_intent(server.base_url, "", "m", "2+2") == "math"
    assert "Authorization" not in server.requests[0]["headers"]


def test_classify_intent_defaults_when_no_choice(server):
    server.reply = {"choices": []}
    assert classify_intent(server.base_url, "", "m", "hello") == "default"


def test_classify_intent_reads_error_body(server):
    server.status = 500
    server.reply = {"error": "boom"}
    assert classify_intent(server.base_url, "", "m", "hello") == "default"