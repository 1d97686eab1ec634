"""
=============================================================================
TRANSPORT LAYER
=============================================================================

Sockets and framing detection. Delivers complete message strings to the
protocol layer and writes its output back verbatim.

    socket_server.py  SocketServer: one listener, accept loop
    connection.py     Connection: read one message, send, close

=============================================================================
"""

from .connection import Connection
from .socket_server import SocketServer

__all__ = ["Connection", "SocketServer"]
