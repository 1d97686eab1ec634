"""
pytest configuration and fixtures.
"""

import socket
import threading
from typing import Generator

import pytest

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from wirehttp import MessageServer, ServerConfig
from wirehttp.http import Request, Response, json_response


@pytest.fixture
def sample_get_request() -> str:
    """Sample GET request with two headers and no body."""
    return (
        "GET /api/users HTTP/1.1\r\n"
        "Host: localhost:3000\r\n"
        "Accept: application/json\r\n"
        "\r\n"
    )


@pytest.fixture
def sample_post_request() -> str:
    """Sample POST request with a JSON body."""
    body = '{"name": "John", "email": "john@example.com"}'
    return (
        "POST /api/users HTTP/1.1\r\n"
        "Host: localhost:3000\r\n"
        "Content-Type: application/json\r\n"
        f"Content-Length: {len(body)}\r\n"
        "\r\n"
    ) + body


@pytest.fixture
def free_port() -> int:
    """Get a free port for testing."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


class TestServer:
    """Runs a MessageServer in a background thread."""

    __test__ = False  # not a test class

    def __init__(self, server: MessageServer):
        self.server = server
        self._thread: threading.Thread = None

    @property
    def port(self) -> int:
        return self.server.address[1]

    def start(self):
        self._thread = threading.Thread(target=self.server.run, daemon=True)
        self._thread.start()

        if not self.server.wait_until_listening(timeout=5.0):
            raise RuntimeError("Server failed to start")

    def stop(self):
        self.server.shutdown()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=5.0)


def _boom(request: Request) -> Response:
    raise RuntimeError("handler exploded")


def _route(request: Request) -> Response:
    if request.target == "/boom":
        return _boom(request)
    if request.method == "POST":
        return json_response({"received": request.body, "headers": request.headers})
    return json_response({"name": "john", "age": 28})


@pytest.fixture
def test_server() -> Generator[TestServer, None, None]:
    """A running server on an OS-assigned port."""
    server = MessageServer(
        ServerConfig(host="127.0.0.1", port=0, timeout=2.0, log_level="WARNING"),
        _route,
    )

    test_srv = TestServer(server)
    test_srv.start()

    yield test_srv

    test_srv.stop()
