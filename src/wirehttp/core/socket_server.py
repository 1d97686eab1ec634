"""
=============================================================================
SOCKET SERVER
=============================================================================

Owns exactly one bound listening socket. Accepts connections and hands each
one to a callback; it knows nothing about the message format.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                      Listener Lifecycle                              │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │    start(callback)                                                   │
    │        ├──► _listen()            socket, SO_REUSEADDR, bind, listen  │
    │        │                         (accept queue = config.backlog)     │
    │        ├──► _install_signal_handlers()   main thread only            │
    │        └──► until shutdown():                                        │
    │                 _accept()        None on each 1 second tick          │
    │                 callback(conn)                                       │
    │                                                                      │
    │    shutdown()   clears the running flag; the loop notices on the     │
    │                 next tick, closes the listener, restores signals     │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

The listener is an instance, not module state: a process may run several
servers, and tests create and tear one down per test.

=============================================================================
"""

import socket
import signal
import logging
import threading
from typing import Callable, Dict, Optional, Tuple

from ..config import ServerConfig
from .connection import Connection


logger = logging.getLogger(__name__)

ConnectionCallback = Callable[[Connection], None]

_ACCEPT_TICK = 1.0
_SHUTDOWN_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class SocketServer:
    """
    Low-level TCP listener.

    Usage:
        def handle_connection(conn: Connection):
            ...

        server = SocketServer(config)
        server.start(handle_connection)  # Blocks until shutdown()
    """

    def __init__(self, config: ServerConfig):
        self.config = config

        self._socket: Optional[socket.socket] = None
        self._running = False

        self._listening_event = threading.Event()
        self._shutdown_event = threading.Event()

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def address(self) -> Tuple[str, int]:
        """
        The bound (host, port).

        Before start() this is the configured address. Once listening it is
        the real one, so port 0 resolves to the port the OS picked.
        """
        listener = self._socket
        if listener is None:
            return (self.config.host, self.config.port)
        host, port = listener.getsockname()[:2]
        return (host, port)

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def start(self, on_connection: ConnectionCallback):
        """
        Listen and hand accepted connections to ``on_connection`` until
        shutdown() is called.

        The callback runs on the accept thread and should return quickly;
        MessageServer starts a worker thread per connection.

        Raises:
            OSError: If the address cannot be bound.
        """
        self._socket = self._listen()
        self._running = True
        self._shutdown_event.clear()
        previous_handlers = self._install_signal_handlers()

        host, port = self.address
        logger.info(f"Listening on {host}:{port} (backlog={self.config.backlog})")
        self._listening_event.set()

        try:
            while self._running:
                conn = self._accept()
                if conn is not None:
                    on_connection(conn)
        finally:
            self._close(previous_handlers)

    def shutdown(self):
        """Stop accepting connections. Idempotent."""
        if self._running:
            logger.info("Shutting down socket server...")
            self._running = False

    def wait_until_listening(self, timeout: Optional[float] = None) -> bool:
        """Block until the socket is listening. False on timeout."""
        return self._listening_event.wait(timeout)

    def wait_for_shutdown(self, timeout: Optional[float] = None) -> bool:
        """Block until the accept loop has exited. False on timeout."""
        return self._shutdown_event.wait(timeout)

    # =========================================================================
    # INTERNALS
    # =========================================================================

    def _listen(self) -> socket.socket:
        """Create the listener, bound and listening with config.backlog."""
        endpoint = (self.config.host, self.config.port)
        listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        listener.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        listener.settimeout(_ACCEPT_TICK)

        try:
            listener.bind(endpoint)
            listener.listen(self.config.backlog)
        except OSError as e:
            logger.error(f"Cannot listen on {endpoint[0]}:{endpoint[1]}: {e}")
            listener.close()
            raise

        return listener

    def _accept(self) -> Optional[Connection]:
        """
        Wait up to one tick for a client.

        Returns None when the tick passes with nobody connecting, or when
        the listener fails (which also ends the loop).
        """
        try:
            client, peer = self._socket.accept()
        except socket.timeout:
            return None
        except OSError as e:
            if self._running:
                logger.error(f"Accept failed: {e}")
            self._running = False
            return None

        logger.debug(f"Accepted {peer[0]}:{peer[1]}")
        return Connection(
            socket=client,
            address=peer,
            buffer_size=self.config.buffer_size,
            timeout=self.config.timeout,
            max_message_size=self.config.max_message_size,
        )

    def _install_signal_handlers(self) -> Dict[int, object]:
        """
        Route SIGINT/SIGTERM to shutdown().

        Only the main thread may install signal handlers. Elsewhere (tests,
        embedding) nothing is installed and the owner calls shutdown().

        Returns:
            The handlers that were replaced, for _close() to put back.
        """
        if threading.current_thread() is not threading.main_thread():
            return {}
        return {sig: signal.signal(sig, self._on_signal) for sig in _SHUTDOWN_SIGNALS}

    def _on_signal(self, signum, frame):
        logger.info(f"Received {signal.Signals(signum).name}, initiating shutdown...")
        self.shutdown()

    def _close(self, previous_handlers: Dict[int, object]):
        self._running = False
        for sig, handler in previous_handlers.items():
            signal.signal(sig, handler)

        listener, self._socket = self._socket, None
        if listener is not None:
            try:
                listener.close()
            except OSError:
                pass

        self._listening_event.clear()
        self._shutdown_event.set()
        logger.info("Socket server stopped")
