"""
=============================================================================
WIREHTTP - A Minimal HTTP-Like Request/Response Codec
=============================================================================

Parses raw request strings into structured requests and serializes
structured responses back into wire strings, plus a small socket server
and client to carry them.

=============================================================================
PACKAGE LAYOUT
=============================================================================

    wirehttp/
    ├── __init__.py          # This file
    ├── __main__.py          # CLI: wirehttp serve / wirehttp send
    ├── config.py            # ServerConfig
    ├── server.py            # MessageServer: transport + parser + handler
    ├── handlers.py          # Application handlers
    ├── client.py            # send_message(), request()
    ├── http/                # Protocol layer (pure, no I/O)
    │   ├── wire.py          # split_on(), delimiters, MalformedMessage
    │   ├── request.py       # Request, RequestParser
    │   ├── response.py      # Response, ResponseSerializer
    │   └── status_codes.py  # HTTPStatus
    └── core/                # Transport layer
        ├── socket_server.py # One listener, accept loop
        └── connection.py    # Per-connection framing detection

=============================================================================
QUICK START
=============================================================================

    from wirehttp.http import parse_request, serialize_response, Response

    request = parse_request("GET /foo HTTP/1.1\\r\\nHost: x\\r\\n\\r\\n")
    request.method    # "GET"
    request.headers   # {"Host": "x"}

    serialize_response(Response(headers={"Content-Type": "application/json"}, body="{}"))
    # "HTTP/1.1 200 OK\\r\\nContent-Type: application/json\\r\\n\\r\\n{}"

    # Serving:
    from wirehttp import MessageServer, ServerConfig
    MessageServer(ServerConfig(port=3000)).run()

=============================================================================
"""

__version__ = "1.0.0"

from .config import ServerConfig
from .server import MessageServer

__all__ = ["MessageServer", "ServerConfig", "__version__"]
