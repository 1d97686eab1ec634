"""
=============================================================================
MESSAGE SERVER
=============================================================================

Ties the transport to the protocol layer and an application handler.

=============================================================================
PER-CONNECTION FLOW
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │  accept loop (SocketServer)                                          │
    │        │                                                             │
    │        └──► new thread per connection                                │
    │                 │                                                    │
    │                 ├──► conn.read_message()      complete string        │
    │                 ├──► parser.parse(raw)        Request                │
    │                 ├──► handler(request)         Response               │
    │                 ├──► serializer.serialize()   string                 │
    │                 ├──► conn.send(text)                                 │
    │                 └──► conn.close()             one message only      │
    │                                                                      │
    │  Failures become responses:                                          │
    │      MalformedMessage         → 400 Bad Request                      │
    │      message too large        → 413 Payload Too Large                │
    │      read timeout             → 408 Request Timeout                  │
    │      handler raised           → 500 Internal Server Error (logged)   │
    └─────────────────────────────────────────────────────────────────────┘

The parser and serializer are shared by every worker thread; both are
stateless.

=============================================================================
"""

import logging
import threading
from typing import Callable, Optional, Tuple

from .config import ServerConfig
from .core import Connection, SocketServer
from .handlers import json_greeting
from .http import (
    HTTPStatus,
    MalformedMessage,
    Request,
    RequestParser,
    Response,
    ResponseSerializer,
    json_response,
)


logger = logging.getLogger(__name__)

Handler = Callable[[Request], Response]


class MessageServer:
    """
    Serves one request/response exchange per connection.

    Usage:
        from wirehttp.handlers import json_greeting

        server = MessageServer(ServerConfig(port=3000), json_greeting)
        server.run()  # Blocks until Ctrl+C
    """

    def __init__(self, config: Optional[ServerConfig] = None, handler: Optional[Handler] = None):
        """
        Args:
            config: Server configuration. Defaults are used if omitted.
            handler: Application handler. Defaults to json_greeting.
        """
        self.config = config or ServerConfig()
        self.config.validate()

        self.handler = handler or json_greeting

        self._socket_server = SocketServer(self.config)
        self._parser = RequestParser()
        self._serializer = ResponseSerializer()

        self._workers: set = set()
        self._workers_lock = threading.Lock()

    @property
    def address(self) -> Tuple[str, int]:
        return self._socket_server.address

    def run(self):
        """Start serving. Blocks until shutdown() or a signal."""
        logger.info(f"Starting {self.config.server_name} on {self.config.host}:{self.config.port}")
        try:
            self._socket_server.start(self._handle_connection)
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")
        finally:
            self._join_workers()
            logger.info("Server stopped")

    def shutdown(self):
        """Stop accepting connections. Workers already running finish."""
        self._socket_server.shutdown()

    def wait_until_listening(self, timeout: Optional[float] = None) -> bool:
        return self._socket_server.wait_until_listening(timeout)

    def wait_for_shutdown(self, timeout: Optional[float] = None) -> bool:
        return self._socket_server.wait_for_shutdown(timeout)

    # =========================================================================
    # CONNECTION HANDLING
    # =========================================================================

    def _handle_connection(self, conn: Connection):
        """Start a worker thread for the connection (called by the accept loop)."""
        worker = threading.Thread(
            target=self._run_worker,
            args=(conn,),
            name=f"wirehttp-{conn.id}",
            daemon=True,
        )
        with self._workers_lock:
            self._workers.add(worker)
        worker.start()

    def _run_worker(self, conn: Connection):
        try:
            self._process_connection(conn)
        finally:
            with self._workers_lock:
                self._workers.discard(threading.current_thread())

    def _join_workers(self, timeout: float = 5.0):
        with self._workers_lock:
            workers = list(self._workers)
        for worker in workers:
            worker.join(timeout)

    def _process_connection(self, conn: Connection):
        """Read one message, answer it, close the connection."""
        with conn:
            try:
                raw = conn.read_message()
            except TimeoutError:
                logger.info(f"[{conn.id}] Read timeout from {conn.client_ip}")
                self._send_error(conn, HTTPStatus.REQUEST_TIMEOUT, "Request timeout")
                return
            except ValueError as e:
                logger.warning(f"[{conn.id}] {e}")
                self._send_error(conn, HTTPStatus.PAYLOAD_TOO_LARGE, str(e))
                return

            if raw is None:
                logger.debug(f"[{conn.id}] Closed by peer before sending")
                return

            logger.debug(f"[{conn.id}] Received {len(raw)} characters")

            try:
                request = self._parser.parse(raw)
            except MalformedMessage as e:
                logger.info(f"[{conn.id}] Malformed message from {conn.client_ip}: {e}")
                self._send_error(conn, HTTPStatus(e.status_code), str(e))
                return

            try:
                response = self.handler(request)
            except Exception as e:
                logger.exception(f"[{conn.id}] Handler error: {e}")
                response = json_response(
                    {"error": "Internal Server Error"},
                    HTTPStatus.INTERNAL_SERVER_ERROR,
                )

            logger.info(
                f"{conn.client_ip} \"{request.method} {request.target} {request.protocol}\" "
                f"{response.status_code}"
            )
            conn.send(self._serializer.serialize(response))

    def _send_error(self, conn: Connection, status: HTTPStatus, message: str):
        response = json_response({"error": message}, status)
        conn.send(self._serializer.serialize(response))
