"""
=============================================================================
STATUS CODES
=============================================================================

The status codes this package produces on its own, with reason phrases.

The protocol layer does not care which code a Response carries: the caller
supplies any integer and any reason token. This enum exists so the server
and the bundled handlers don't scatter magic numbers and phrases around.

    HTTP/1.1 400 Bad Request
             ─── ───────────
              │       │
              │       └── HTTPStatus.BAD_REQUEST.phrase
              └────────── int(HTTPStatus.BAD_REQUEST)

=============================================================================
"""

from enum import IntEnum


class HTTPStatus(IntEnum):
    """
    Status codes usable as plain integers.

        >>> HTTPStatus.OK == 200
        True
        >>> HTTPStatus.NOT_FOUND.phrase
        'Not Found'
    """

    # 2xx
    OK = 200
    CREATED = 201
    NO_CONTENT = 204

    # 4xx
    BAD_REQUEST = 400
    NOT_FOUND = 404
    METHOD_NOT_ALLOWED = 405
    REQUEST_TIMEOUT = 408
    PAYLOAD_TOO_LARGE = 413

    # 5xx
    INTERNAL_SERVER_ERROR = 500
    SERVICE_UNAVAILABLE = 503

    @property
    def phrase(self) -> str:
        """Reason phrase for the status line."""
        return _STATUS_PHRASES.get(self, "Unknown")

    @property
    def is_error(self) -> bool:
        """True for 4xx and 5xx codes."""
        return self >= 400


_STATUS_PHRASES = {
    HTTPStatus.OK: "OK",
    HTTPStatus.CREATED: "Created",
    HTTPStatus.NO_CONTENT: "No Content",
    HTTPStatus.BAD_REQUEST: "Bad Request",
    HTTPStatus.NOT_FOUND: "Not Found",
    HTTPStatus.METHOD_NOT_ALLOWED: "Method Not Allowed",
    HTTPStatus.REQUEST_TIMEOUT: "Request Timeout",
    HTTPStatus.PAYLOAD_TOO_LARGE: "Payload Too Large",
    HTTPStatus.INTERNAL_SERVER_ERROR: "Internal Server Error",
    HTTPStatus.SERVICE_UNAVAILABLE: "Service Unavailable",
}
