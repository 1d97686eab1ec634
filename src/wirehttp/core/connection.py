"""
=============================================================================
CLIENT CONNECTION
=============================================================================

Wraps one accepted socket. Its job is FRAMING DETECTION: TCP delivers bytes
in arbitrary chunks, and the parser wants one complete message string.

=============================================================================
WHEN IS A MESSAGE COMPLETE?
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   recv() → buffer ... until b"\r\n\r\n" shows up                    │
    │        │                                                             │
    │        ▼                                                             │
    │   Content-Length: N in the header block?                             │
    │        │                                                             │
    │        ├── yes → recv() until N body bytes are buffered             │
    │        │                                                             │
    │        └── no  → body bytes already past the blank line?           │
    │                    ├── yes → recv() until the peer closes          │
    │                    └── no  → the message ends at the blank line    │
    │                                                                      │
    │   Peer closes the connection early?                                  │
    │        └── whatever was buffered is the message                     │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

A body without Content-Length is framed by connection close. Its first bytes
must arrive together with the header block; a header block that arrives
alone, with nothing after the blank line, is taken as a bodiless message.

One message per connection: after the response is sent the connection is
closed. There is no keep-alive and no pipelining.

=============================================================================
"""

import socket
import time
import logging
import uuid
from dataclasses import dataclass, field
from typing import Optional, Tuple


logger = logging.getLogger(__name__)

_BLANK_LINE = b"\r\n\r\n"


@dataclass
class Connection:
    """
    Represents a client connection.

    Attributes:
        socket: The accepted client socket.
        address: Client's (ip, port) tuple.
        id: Short identifier used in log lines.
        created_at: Timestamp when the connection was accepted.
    """

    socket: socket.socket
    address: Tuple[str, int]

    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    created_at: float = field(default_factory=time.time)

    buffer_size: int = 8192
    timeout: Optional[float] = 30.0
    max_message_size: int = 1024 * 1024

    _buffer: bytes = field(default=b"", repr=False)
    _closed: bool = field(default=False, repr=False)

    def __post_init__(self):
        self.socket.setblocking(True)
        if self.timeout:
            self.socket.settimeout(self.timeout)

    @property
    def client_ip(self) -> str:
        """Get the client IP address."""
        return self.address[0]

    @property
    def age(self) -> float:
        """Seconds since the connection was accepted."""
        return time.time() - self.created_at

    @property
    def closed(self) -> bool:
        return self._closed

    # =========================================================================
    # READING
    # =========================================================================

    def read_message(self) -> Optional[str]:
        """
        Read one complete message from the socket.

        Returns:
            The message decoded as UTF-8, or None if the peer closed the
            connection without sending anything. Without Content-Length,
            body bytes that came with the header block extend the message
            to EOF.

        Raises:
            TimeoutError: If the peer stops sending before the message is
                complete.
            ValueError: If the message grows past max_message_size.
        """
        try:
            # ─────────────────────────────────────────────────────────────
            # STEP 1: Read until the blank line
            # ─────────────────────────────────────────────────────────────
            while _BLANK_LINE not in self._buffer:
                chunk = self._recv()
                if not chunk:
                    return self._take(len(self._buffer))
                self._append(chunk)

            # ─────────────────────────────────────────────────────────────
            # STEP 2: Read the body, by Content-Length or to EOF
            # ─────────────────────────────────────────────────────────────
            header_end = self._buffer.find(_BLANK_LINE)
            body_start = header_end + len(_BLANK_LINE)
            content_length = self._parse_content_length(self._buffer[:header_end])

            if content_length is None:
                if len(self._buffer) > body_start:
                    self._read_until_close()
                return self._take(len(self._buffer))

            while len(self._buffer) - body_start < content_length:
                chunk = self._recv()
                if not chunk:
                    break  # Peer closed mid-body, keep what we have
                self._append(chunk)

            return self._take(body_start + content_length)

        except socket.timeout:
            raise TimeoutError("Message read timeout")

    def _read_until_close(self):
        """Buffer a length-less body until EOF. A timeout ends it as well."""
        try:
            while True:
                chunk = self._recv()
                if not chunk:
                    return
                self._append(chunk)
        except socket.timeout:
            logger.debug(f"[{self.id}] No EOF after body, using {len(self._buffer)} bytes")

    def _recv(self) -> bytes:
        """recv() one chunk. A broken connection reads as EOF."""
        try:
            return self.socket.recv(self.buffer_size)
        except socket.timeout:
            raise
        except OSError as e:
            logger.warning(f"[{self.id}] Receive failed: {e}")
            return b""

    def _append(self, chunk: bytes):
        self._buffer += chunk
        if len(self._buffer) > self.max_message_size:
            raise ValueError(f"Message too large: {len(self._buffer)} bytes")

    def _take(self, size: int) -> Optional[str]:
        """Remove ``size`` bytes from the buffer and decode them."""
        data, self._buffer = self._buffer[:size], self._buffer[size:]
        if not data:
            return None
        return data.decode("utf-8", errors="replace")

    def _parse_content_length(self, headers: bytes) -> Optional[int]:
        """
        Find Content-Length in the raw header block.

        A plain scan instead of a full parse: we need the number before the
        message is complete enough to hand to the parser.

        Returns:
            The announced length, None if the header is absent, 0 if it is
            not a number.
        """
        header_str = headers.decode("utf-8", errors="replace").lower()
        for line in header_str.split("\r\n"):
            if line.startswith("content-length:"):
                value = line.split(":", 1)[1].strip()
                return int(value) if value.isdigit() else 0
        return None

    # =========================================================================
    # WRITING
    # =========================================================================

    def send(self, text: str) -> bool:
        """
        Send a serialized response verbatim.

        Returns:
            True if everything was sent, False if the peer went away.
        """
        try:
            self.socket.sendall(text.encode("utf-8"))
            return True
        except OSError as e:
            logger.warning(f"[{self.id}] Send failed: {e}")
            return False

    # =========================================================================
    # CLOSING
    # =========================================================================

    def close(self):
        """
        Close the connection. Safe to call more than once.

        shutdown(SHUT_WR) first so the peer sees EOF after our response,
        then release the file descriptor.
        """
        if self._closed:
            return

        try:
            self.socket.shutdown(socket.SHUT_WR)
        except OSError:
            pass  # Peer already gone

        try:
            self.socket.close()
        except OSError:
            pass

        self._closed = True
        logger.debug(f"[{self.id}] Connection closed after {self.age:.3f}s")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
