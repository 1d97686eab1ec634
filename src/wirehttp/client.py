"""
=============================================================================
CLIENT
=============================================================================

The other end of the wire: connect, send one message, read the reply until
the server closes the connection.

    ┌──────────┐   connect()                       ┌──────────┐
    │          │ ────────────────────────────────► │          │
    │  client  │   sendall(message)                │  server  │
    │          │ ────────────────────────────────► │          │
    │          │   shutdown(SHUT_WR)   (EOF)       │          │
    │          │ ────────────────────────────────► │          │
    │          │                      reply bytes  │          │
    │          │ ◄──────────────────────────────── │          │
    │          │                        close      │          │
    │          │ ◄──────────────────────────────── │          │
    └──────────┘                                   └──────────┘

Since the server closes after every response, "read until EOF" is all the
framing the client needs.

=============================================================================
"""

import logging
import socket

from .http import Request, Response, parse_response, serialize_request


logger = logging.getLogger(__name__)


def send_message(
    host: str,
    port: int,
    message: str,
    timeout: float = 5.0,
    buffer_size: int = 8192,
) -> str:
    """
    Send a raw message and return the raw reply.

    Args:
        host: Server host.
        port: Server port.
        message: Text to send verbatim. Need not be a valid request.
        timeout: Socket timeout in seconds, for connect and each read.
        buffer_size: Bytes requested per recv() call.

    Returns:
        Everything the server sent before closing, decoded as UTF-8.

    Raises:
        OSError: If the connection fails or times out.
    """
    with socket.create_connection((host, port), timeout=timeout) as sock:
        logger.debug(f"Connected to {host}:{port}")

        sock.sendall(message.encode("utf-8"))
        sock.shutdown(socket.SHUT_WR)

        chunks = []
        while True:
            chunk = sock.recv(buffer_size)
            if not chunk:
                break
            chunks.append(chunk)

    reply = b"".join(chunks).decode("utf-8", errors="replace")
    logger.debug(f"Received {len(reply)} characters from {host}:{port}")
    return reply


def request(host: str, port: int, req: Request, timeout: float = 5.0) -> Response:
    """
    Send a Request and parse the reply.

    Raises:
        OSError: If the connection fails.
        MalformedMessage: If the reply is not a well-formed response.
    """
    return parse_response(send_message(host, port, serialize_request(req), timeout=timeout))
