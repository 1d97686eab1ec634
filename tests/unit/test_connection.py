"""
Unit tests for connection framing.

Each test drives a Connection over a local socket pair, so no port is bound.
"""

import socket

import pytest

from wirehttp.core import Connection


@pytest.fixture
def socket_pair():
    server_side, client_side = socket.socketpair()
    yield server_side, client_side
    server_side.close()
    client_side.close()


class FailingSocket:
    """Socket stand-in: hands out chunks, then raises the given error."""

    def __init__(self, error: OSError, chunks=None):
        self.error = error
        self.chunks = list(chunks or [])

    def setblocking(self, flag):
        pass

    def settimeout(self, value):
        pass

    def recv(self, size):
        if self.chunks:
            return self.chunks.pop(0)
        raise self.error

    def shutdown(self, how):
        pass

    def close(self):
        pass


def make_connection(sock: socket.socket, **kwargs) -> Connection:
    kwargs.setdefault("timeout", 2.0)
    return Connection(socket=sock, address=("127.0.0.1", 50000), **kwargs)


class TestReadMessage:
    """Tests for Connection.read_message()."""

    def test_stops_at_blank_line(self, socket_pair, sample_get_request: str):
        """Without Content-Length the message ends at the blank line."""
        server_side, client_side = socket_pair
        client_side.sendall(sample_get_request.encode())

        conn = make_connection(server_side)

        assert conn.read_message() == sample_get_request

    def test_reads_content_length_body(self, socket_pair, sample_post_request: str):
        """The body announced by Content-Length is read in full."""
        server_side, client_side = socket_pair
        client_side.sendall(sample_post_request.encode())

        conn = make_connection(server_side)

        assert conn.read_message() == sample_post_request

    def test_body_split_across_chunks(self, socket_pair):
        """Framing does not depend on how TCP chunks the bytes."""
        server_side, client_side = socket_pair
        message = "POST / HTTP/1.1\r\nContent-Length: 10\r\n\r\n0123456789"
        encoded = message.encode()

        client_side.sendall(encoded[:10])
        client_side.sendall(encoded[10:45])
        client_side.sendall(encoded[45:])

        conn = make_connection(server_side, buffer_size=8)

        assert conn.read_message() == message

    def test_eof_returns_buffered(self, socket_pair):
        """A peer that closes early still delivers what it sent."""
        server_side, client_side = socket_pair
        client_side.sendall(b"Hello from Client")
        client_side.shutdown(socket.SHUT_WR)

        conn = make_connection(server_side)

        assert conn.read_message() == "Hello from Client"

    def test_eof_mid_body(self, socket_pair):
        """A short body is returned as received."""
        server_side, client_side = socket_pair
        client_side.sendall(b"POST / HTTP/1.1\r\nContent-Length: 100\r\n\r\nshort")
        client_side.shutdown(socket.SHUT_WR)

        conn = make_connection(server_side)

        assert conn.read_message() == "POST / HTTP/1.1\r\nContent-Length: 100\r\n\r\nshort"

    def test_body_without_length_read_to_eof(self, socket_pair):
        """Without Content-Length a body runs until the peer half-closes."""
        server_side, client_side = socket_pair
        client_side.sendall(b"POST / HTTP/1.1\r\n\r\nping")
        client_side.sendall(b" pong")
        client_side.shutdown(socket.SHUT_WR)

        conn = make_connection(server_side)

        assert conn.read_message() == "POST / HTTP/1.1\r\n\r\nping pong"

    def test_body_without_length_and_headers(self, socket_pair):
        server_side, client_side = socket_pair
        client_side.sendall(b"POST /x HTTP/1.1\r\nHost: a\r\n\r\nhello")
        client_side.shutdown(socket.SHUT_WR)

        conn = make_connection(server_side, buffer_size=4)

        assert conn.read_message() == "POST /x HTTP/1.1\r\nHost: a\r\n\r\nhello"

    def test_body_without_length_no_eof(self, socket_pair):
        """A peer that never half-closes still gets its body after the timeout."""
        server_side, client_side = socket_pair
        client_side.sendall(b"POST / HTTP/1.1\r\n\r\nping")

        conn = make_connection(server_side, timeout=0.2)

        assert conn.read_message() == "POST / HTTP/1.1\r\n\r\nping"

    def test_recv_error_reads_as_eof(self):
        """A connection error during recv ends the message instead of escaping."""
        conn = make_connection(FailingSocket(ConnectionAbortedError("aborted")))

        assert conn.read_message() is None

    def test_recv_error_keeps_buffered(self):
        sock = FailingSocket(OSError("gone"), chunks=[b"GET / HTTP/1.1\r\n"])
        conn = make_connection(sock)

        assert conn.read_message() == "GET / HTTP/1.1\r\n"

    def test_eof_without_data(self, socket_pair):
        server_side, client_side = socket_pair
        client_side.shutdown(socket.SHUT_WR)

        conn = make_connection(server_side)

        assert conn.read_message() is None

    def test_timeout(self, socket_pair):
        """A silent peer raises TimeoutError."""
        server_side, _ = socket_pair
        conn = make_connection(server_side, timeout=0.2)

        with pytest.raises(TimeoutError):
            conn.read_message()

    def test_too_large(self, socket_pair):
        server_side, client_side = socket_pair
        client_side.sendall(b"x" * 4096)

        conn = make_connection(server_side, buffer_size=1024, max_message_size=2048)

        with pytest.raises(ValueError, match="too large"):
            conn.read_message()

    def test_content_length_case_insensitive(self, socket_pair):
        server_side, client_side = socket_pair
        message = "POST / HTTP/1.1\r\ncontent-length: 3\r\n\r\nabc"
        client_side.sendall(message.encode())

        conn = make_connection(server_side)

        assert conn.read_message() == message


class TestSendAndClose:
    """Tests for Connection.send() and close()."""

    def test_send(self, socket_pair):
        server_side, client_side = socket_pair
        conn = make_connection(server_side)

        assert conn.send("HTTP/1.1 200 OK\r\n\r\n") is True
        assert client_side.recv(1024) == b"HTTP/1.1 200 OK\r\n\r\n"

    def test_close_is_idempotent(self, socket_pair):
        server_side, client_side = socket_pair
        conn = make_connection(server_side)

        conn.close()
        conn.close()

        assert conn.closed
        assert client_side.recv(1024) == b""

    def test_context_manager(self, socket_pair):
        server_side, _ = socket_pair

        with make_connection(server_side) as conn:
            assert not conn.closed

        assert conn.closed

    def test_send_after_close(self, socket_pair):
        """Sending on a closed connection reports failure."""
        server_side, _ = socket_pair
        conn = make_connection(server_side)
        conn.close()

        assert conn.send("late") is False
