"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

All transport settings in one dataclass. The protocol layer takes no
configuration at all; everything here belongs to the socket server and the
connection workers.

=============================================================================
CONFIGURATION SOURCES
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │   Priority (highest to lowest):                                     │
    │                                                                      │
    │   1. Command-line arguments                                         │
    │      └── wirehttp serve --port 4000                                 │
    │                                                                      │
    │   2. Environment variables                                          │
    │      └── WIREHTTP_PORT=4000 wirehttp serve                          │
    │                                                                      │
    │   3. Default values (in this dataclass)                             │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

import os
from dataclasses import dataclass
from typing import Optional


@dataclass
class ServerConfig:
    """
    Configuration for the message server.

    NETWORK SETTINGS
    - host, port, backlog, buffer_size, timeout

    MESSAGE LIMITS
    - max_message_size

    LOGGING
    - log_level
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    host: str = "127.0.0.1"
    """Address to bind the listener to. "0.0.0.0" for all interfaces."""

    port: int = 3000
    """Port to listen on. 0 lets the OS pick a free port (tests)."""

    backlog: int = 100
    """
    Depth of the accept queue.
    Connections beyond this many waiting to be accepted are refused by
    the OS.
    """

    buffer_size: int = 8192
    """Bytes requested per recv() call."""

    timeout: Optional[float] = 30.0
    """
    Per-connection socket timeout in seconds.
    None = blocking forever.
    """

    # ─────────────────────────────────────────────────────────────────────
    # MESSAGE LIMITS
    # ─────────────────────────────────────────────────────────────────────

    max_message_size: int = 1024 * 1024  # 1 MB
    """
    Largest message a connection will buffer.
    Larger messages are answered with 413 Payload Too Large.
    """

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "INFO"
    """DEBUG, INFO, WARNING, ERROR or CRITICAL."""

    server_name: str = "wirehttp/1.0"
    """Name used in log lines and the startup message."""

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """
        Create configuration from environment variables.

        WIREHTTP_HOST       Listener host (default: 127.0.0.1)
        WIREHTTP_PORT       Listener port (default: 3000)
        WIREHTTP_BACKLOG    Accept queue depth (default: 100)
        WIREHTTP_TIMEOUT    Connection timeout in seconds (default: 30)
        WIREHTTP_LOG_LEVEL  Logging level (default: INFO)
        """
        return cls(
            host=os.getenv("WIREHTTP_HOST", "127.0.0.1"),
            port=int(os.getenv("WIREHTTP_PORT", "3000")),
            backlog=int(os.getenv("WIREHTTP_BACKLOG", "100")),
            timeout=float(os.getenv("WIREHTTP_TIMEOUT", "30")),
            log_level=os.getenv("WIREHTTP_LOG_LEVEL", "INFO"),
        )

    def validate(self) -> None:
        """
        Validate configuration values.

        Called at server construction so bad settings fail at startup,
        not on the first connection.

        Raises:
            ValueError: On the first invalid value found.
        """
        if not 0 <= self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 0-65535.")

        if self.backlog < 1:
            raise ValueError("backlog must be >= 1")

        if self.buffer_size < 1024:
            raise ValueError("buffer_size must be >= 1024")

        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be > 0")

        if self.max_message_size < self.buffer_size:
            raise ValueError("max_message_size must be >= buffer_size")

        if self.log_level.upper() not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Invalid log level: {self.log_level}")
