"""
=============================================================================
PROTOCOL LAYER
=============================================================================

Pure functions over the wire grammar. No sockets, no threads, no logging.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   transport                protocol layer              application   │
    │                                                                      │
    │   "GET / ...\r\n\r\n" ──► RequestParser.parse ──► Request ──┐        │
    │                                                             │        │
    │                                                       handler(req)   │
    │                                                             │        │
    │   "HTTP/1.1 200 ..."  ◄── ResponseSerializer.serialize ◄── Response  │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

    wire.py          split_on() and the CRLF / ": " delimiters
    request.py       Request, RequestParser, parse_request()
    response.py      Response, ResponseSerializer, serialize_response()
    status_codes.py  HTTPStatus with reason phrases

Both components raise or return synchronously and share no state, so any
number of threads may call them at once.

=============================================================================
"""

from .wire import split_on, MalformedMessage, CRLF, BLANK_LINE
from .request import Request, RequestParser, parse_request
from .response import (
    Response,
    ResponseSerializer,
    serialize_response,
    serialize_request,
    parse_response,
    json_response,
    text_response,
)
from .status_codes import HTTPStatus

__all__ = [
    # Framing
    "split_on",
    "MalformedMessage",
    "CRLF",
    "BLANK_LINE",

    # Requests
    "Request",
    "RequestParser",
    "parse_request",

    # Responses
    "Response",
    "ResponseSerializer",
    "serialize_response",
    "serialize_request",
    "parse_response",
    "json_response",
    "text_response",

    # Status codes
    "HTTPStatus",
]
