"""
=============================================================================
RESPONSE SERIALIZER
=============================================================================

Turns a Response into the exact string written to the socket. This is the
inverse of the request parser: the same CRLF line endings, the same ": "
header separator and the same blank line before the body.

=============================================================================
SERIALIZATION
=============================================================================

    Response(
        protocol="HTTP/1.1",
        status_code=200,
        status="OK",
        headers={"Content-Type": "application/json", "Content-Length": 2},
        body="{}",
    )

                │ serialize_response()
                ▼

    "HTTP/1.1 200 OK\r\n"                  ← status line
    "Content-Type: application/json\r\n"   ← headers, mapping order
    "Content-Length: 2\r\n"                ← ints rendered in decimal
    "\r\n"                                 ← blank line
    "{}"                                   ← body, as-is

With no headers at all the status line is followed directly by the blank
line:

    "HTTP/1.1 204 No Content\r\n\r\n"

Nothing is validated and nothing is added. If the caller wants a
Content-Length header, the caller puts one in the mapping (see
json_response() below for the usual way).

=============================================================================
ROUND TRIP
=============================================================================

The serializer writes exactly the framing the parser reads:

    parse_request(serialize_response(r))
        .method   == r.protocol
        .target   == str(r.status_code)
        .protocol == r.status
        .headers  == r.headers   (values as strings)
        .body     == r.body

(as long as the reason phrase is a single token)

=============================================================================
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Mapping, Optional, Union
import json

from .request import Request, parse_headers, split_message
from .status_codes import HTTPStatus
from .wire import CRLF, BLANK_LINE, HEADER_SEPARATOR, TOKEN_SEPARATOR, MalformedMessage


HeaderValue = Union[str, int]


@dataclass(frozen=True)
class Response:
    """
    A response to be serialized.

    Built by the application handler, serialized once, then discarded.

    Attributes:
        protocol:    Version token ("HTTP/1.1").
        status_code: Integer status code.
        status:      Reason token ("OK").
        headers:     Header name → value. Integer values are written in
                     decimal.
        body:        Response body, possibly empty.
    """

    protocol: str = "HTTP/1.1"
    status_code: int = 200
    status: str = "OK"
    headers: Dict[str, HeaderValue] = field(default_factory=dict)
    body: str = ""

    @classmethod
    def for_status(
        cls,
        status: HTTPStatus,
        body: str = "",
        headers: Optional[Dict[str, HeaderValue]] = None,
        protocol: str = "HTTP/1.1",
    ) -> "Response":
        """
        Build a response from an HTTPStatus member.

        Example:
            Response.for_status(HTTPStatus.NOT_FOUND)
            # Response(protocol="HTTP/1.1", status_code=404, status="Not Found", ...)
        """
        return cls(
            protocol=protocol,
            status_code=int(status),
            status=status.phrase,
            headers=dict(headers or {}),
            body=body,
        )

    @property
    def status_line(self) -> str:
        """Status line without its CRLF, e.g. "HTTP/1.1 200 OK"."""
        return f"{self.protocol} {self.status_code} {self.status}"


class ResponseSerializer:
    """
    Serializes Response objects to wire strings.

    Stateless: one instance can be shared by every connection thread.

    Usage:
        serializer = ResponseSerializer()
        text = serializer.serialize(Response(headers={"X": "1"}, body="hi"))
        # "HTTP/1.1 200 OK\\r\\nX: 1\\r\\n\\r\\nhi"
    """

    def serialize(self, response: Response) -> str:
        """
        Render a response as one complete string.

        Args:
            response: The response to render.

        Returns:
            Status line, headers and body in wire format.
        """
        return _render(response.status_line, response.headers, response.body)


def _render(start_line: str, headers: Mapping[str, HeaderValue], body: str) -> str:
    """Join a start line, header lines and body with the wire framing."""
    lines = [start_line]
    lines.extend(_render_headers(headers.items()))
    return CRLF.join(lines) + BLANK_LINE + body


def _render_headers(items: Iterable[Any]) -> Iterable[str]:
    for name, value in items:
        # bool is an int subclass but True/False are not header values
        if isinstance(value, int) and not isinstance(value, bool):
            value = str(int(value))
        yield f"{name}{HEADER_SEPARATOR}{value}"


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================

_serializer = ResponseSerializer()


def serialize_response(response: Response) -> str:
    """Serialize a response with a shared ResponseSerializer."""
    return _serializer.serialize(response)


def serialize_request(request: Request) -> str:
    """
    Render a Request with the same framing.

    Used by the client to send requests, and handy in tests to build raw
    messages from field values.
    """
    start_line = TOKEN_SEPARATOR.join((request.method, request.target, request.protocol))
    return _render(start_line, request.headers, request.body)


def parse_response(raw: str) -> Response:
    """
    Parse a response string back into a Response.

    The status line is split into at most three tokens, so a reason phrase
    may contain spaces ("404 Not Found"). The status code must be a
    decimal number.

    Raises:
        MalformedMessage: If the framing is broken or the status code is not
            a number.
    """
    status_line, header_block, body = split_message(raw)

    tokens = status_line.split(TOKEN_SEPARATOR, 2)
    if len(tokens) != 3 or not all(tokens):
        raise MalformedMessage(f"Invalid status line: {status_line!r}")

    protocol, code, status = tokens
    if not code.isdigit():
        raise MalformedMessage(f"Invalid status code: {code!r}")

    return Response(
        protocol=protocol,
        status_code=int(code),
        status=status,
        headers=parse_headers(header_block),
        body=body,
    )


def json_response(data: Any, status: HTTPStatus = HTTPStatus.OK) -> Response:
    """
    Build a JSON response with Content-Type and Content-Length set.

    The body is compact, with no spaces after separators.

    Content-Length counts UTF-8 bytes, not characters, since that is what
    the peer reads off the socket.

    Example:
        json_response({"name": "john", "age": 28})
    """
    body = json.dumps(data, separators=(",", ":"))
    return Response.for_status(
        status,
        body=body,
        headers={
            "Content-Type": "application/json",
            "Content-Length": len(body.encode("utf-8")),
        },
    )


def text_response(text: str, status: HTTPStatus = HTTPStatus.OK) -> Response:
    """Build a plain-text response with Content-Type and Content-Length set."""
    return Response.for_status(
        status,
        body=text,
        headers={
            "Content-Type": "text/plain; charset=utf-8",
            "Content-Length": len(text.encode("utf-8")),
        },
    )
