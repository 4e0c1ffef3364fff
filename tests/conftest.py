"""Shared fixtures: a local chat-completions backend and a temp config."""

import json
import socket
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

import pytest

from gitscribe.config import ConfigManager, Profile
from gitscribe.llm import parse_provider


class FakeBackend:
    """Local /chat/completions endpoint with a scripted reply."""

    def __init__(self):
        self.requests = []
        self.status = 200
        self.body = json.dumps(chat_reply("ok"))
        self._server = ThreadingHTTPServer(("127.0.0.1", 0), self._handler())
        self._thread = threading.Thread(target=self._server.serve_forever, daemon=True)

    @property
    def url(self) -> str:
        host, port = self._server.server_address[:2]
        return f"http://{host}:{port}/v1"

    def reply(self, content: str) -> None:
        self.respond(200, chat_reply(content))

    def respond(self, status: int, body) -> None:
        self.status = status
        self.body = body if isinstance(body, str) else json.dumps(body)

    def start(self):
        self._thread.start()
        return self

    def stop(self):
        self._server.shutdown()
        self._server.server_close()

    def _handler(self):
        backend = self

        class Handler(BaseHTTPRequestHandler):
            def do_POST(self):
                length = int(self.headers.get("Content-Length", 0))
                raw = self.rfile.read(length).decode("utf-8")
                backend.requests.append({
                    "path": self.path,
                    "headers": {k.lower(): v for k, v in self.headers.items()},
                    "json": json.loads(raw),
                })
                data = backend.body.encode("utf-8")
                self.send_response(backend.status)
                self.send_header("Content-Type", "application/json")
                self.send_header("Content-Length", str(len(data)))
                self.end_headers()
                self.wfile.write(data)

            def log_message(self, format, *args):
                pass

        return Handler


def chat_reply(content: str) -> dict:
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


def chat_error(error_type: str, message: str) -> dict:
    return {"error": {"type": error_type, "message": message}}


@pytest.fixture
def backend():
    server = FakeBackend().start()
    yield server
    server.stop()


@pytest.fixture
def second_backend():
    server = FakeBackend().start()
    yield server
    server.stop()


@pytest.fixture
def dead_url():
    """Base URL of a port nothing listens on."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.bind(("127.0.0.1", 0))
    port = sock.getsockname()[1]
    sock.close()
    return f"http://127.0.0.1:{port}/v1"


@pytest.fixture
def silent_url():
    """Base URL of a socket that accepts connections but never answers."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.bind(("127.0.0.1", 0))
    sock.listen(8)
    port = sock.getsockname()[1]
    yield f"http://127.0.0.1:{port}/v1"
    sock.close()


@pytest.fixture
def config_path(tmp_path):
    return tmp_path / "gitscribe" / "config.json"


@pytest.fixture
def manager(config_path):
    return ConfigManager(config_path)


@pytest.fixture
def make_profile():
    """Factory for a complete OpenAI profile."""
    def _make(name="test-profile", **overrides):
        fields = {
            "type": "openai",
            "base_url": "https://api.openai.com/v1",
            "api_key": "sk-test-key-123",
            "model": "gpt-4",
        }
        fields.update(overrides)
        fields["type"] = parse_provider(fields["type"])
        return Profile(name=name, **fields)
    return _make
