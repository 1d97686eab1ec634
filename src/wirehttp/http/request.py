"""
=============================================================================
REQUEST PARSER
=============================================================================

Turns one complete, already-buffered message string into a Request.

The transport hands us the whole message at once (it detected the end of
the message itself, using Content-Length or connection close). We only
deal with framing: start line, header block, blank line, body.

=============================================================================
PARSING STEPS
=============================================================================

    raw = "POST /users HTTP/1.1\r\nHost: x\r\nContent-Length: 2\r\n\r\nhi"

    ┌─────────────────────────────────────────────────────────────────────┐
    │  1. split on CRLF                                                    │
    │        start line  = "POST /users HTTP/1.1"                          │
    │        remainder   = "Host: x\r\nContent-Length: 2\r\n\r\nhi"        │
    │                                                                      │
    │  2. split start line on " " → exactly 3 tokens                       │
    │        method="POST"  target="/users"  protocol="HTTP/1.1"           │
    │                                                                      │
    │  3. split remainder on CRLF CRLF                                     │
    │        header block = "Host: x\r\nContent-Length: 2"                 │
    │        body         = "hi"                                           │
    │                                                                      │
    │  4. split header block on CRLF, each line on ": "                    │
    │        {"Host": "x", "Content-Length": "2"}                          │
    │                                                                      │
    │  5. Request(protocol, method, target, headers, body)                 │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
WHAT COUNTS AS MALFORMED
=============================================================================

    ┌──────────────────────────────────────┬──────────────────────────────┐
    │  Input                               │  Result                      │
    ├──────────────────────────────────────┼──────────────────────────────┤
    │  ""                                  │  MalformedMessage (no CRLF)  │
    │  "GET\r\n\r\n"                       │  MalformedMessage (1 token)  │
    │  "GET /a b HTTP/1.1\r\n\r\n"         │  MalformedMessage (4 tokens) │
    │  "GET / HTTP/1.1\r\nBroken\r\n\r\n"  │  MalformedMessage (no ": ")  │
    │  "GET / HTTP/1.1\r\nHost: x"         │  OK, body ""                 │
    │  "GET / HTTP/1.1\r\n\r\n"            │  OK, no headers, body ""     │
    │  "BREW /pot HTCPCP/1.0\r\n\r\n"      │  OK, tokens are not checked  │
    └──────────────────────────────────────┴──────────────────────────────┘

Header names keep the case they were received with. A repeated header
name replaces the earlier value.

=============================================================================
"""

from dataclasses import dataclass, field
from typing import Dict, Tuple

from .wire import (
    CRLF,
    BLANK_LINE,
    HEADER_SEPARATOR,
    TOKEN_SEPARATOR,
    MalformedMessage,
    split_on,
)


@dataclass(frozen=True)
class Request:
    """
    A parsed request.

    Built once by RequestParser and never changed afterwards. Nothing here
    is validated against a vocabulary: the method, target and protocol are
    whatever tokens the start line carried.

    Attributes:
        protocol: Version token from the start line ("HTTP/1.1").
        method:   Verb token from the start line ("GET").
        target:   Resource token from the start line ("/foo").
        headers:  Header name → value, names case-sensitive as received.
        body:     Everything after the blank line, possibly empty.
    """

    protocol: str
    method: str
    target: str
    headers: Dict[str, str] = field(default_factory=dict)
    body: str = ""

    def get_header(self, name: str, default: str = "") -> str:
        """Look up a header by its exact name."""
        return self.headers.get(name, default)

    @property
    def content_length(self) -> int:
        """
        Content-Length as an integer.

        Returns 0 if the header is missing or is not a plain decimal number.
        """
        value = self.headers.get("Content-Length", "")
        if not value.isdigit():
            return 0
        return int(value)


class RequestParser:
    """
    Parses message strings into Request objects.

    The parser holds no state between calls, so one instance can be shared
    by every connection thread.

    Usage:
        parser = RequestParser()
        request = parser.parse("GET /foo HTTP/1.1\\r\\nHost: x\\r\\n\\r\\n")
        request.method   # "GET"
        request.headers  # {"Host": "x"}
    """

    def parse(self, raw: str) -> Request:
        """
        Parse a complete message into a Request.

        Args:
            raw: The whole message as received.

        Returns:
            The parsed Request.

        Raises:
            MalformedMessage: If the start line has no terminator, does not
                split into exactly three tokens, or a header line has no
                ": " separator.
        """
        # STEPS 1 and 3: start line, header block, body
        start_line, header_block, body = split_message(raw)

        # STEP 2: method, target, protocol
        method, target, protocol = self._parse_start_line(start_line)

        # STEP 4: headers
        headers = parse_headers(header_block)

        return Request(
            protocol=protocol,
            method=method,
            target=target,
            headers=headers,
            body=body,
        )

    def _parse_start_line(self, line: str) -> Tuple[str, str, str]:
        """
        Split the start line into (method, target, protocol).

        Exactly three non-empty tokens separated by single spaces. A target
        that contains a space produces a fourth token and is rejected.
        """
        tokens = line.split(TOKEN_SEPARATOR)
        if len(tokens) != 3 or not all(tokens):
            raise MalformedMessage(f"Invalid start line: {line!r}")

        method, target, protocol = tokens
        return method, target, protocol


# =============================================================================
# FRAMING HELPERS
# =============================================================================
#
# Shared with parse_response() in response.py. A response only differs from
# a request in how its start line is tokenized.
#
# =============================================================================

def split_message(raw: str) -> Tuple[str, str, str]:
    """
    Split a message into (start line, header block, body).

    Raises:
        MalformedMessage: If there is no CRLF ending the start line.
    """
    if CRLF not in raw:
        raise MalformedMessage("Missing start line terminator")

    start_line, rest = split_on(raw, CRLF)

    # A remainder that starts with CRLF means there are no header lines:
    # the start line's CRLF and this one form the blank line.
    if rest.startswith(CRLF):
        return start_line, "", rest[len(CRLF):]

    header_block, body = split_on(rest, BLANK_LINE)
    return start_line, header_block, body


def parse_headers(header_block: str) -> Dict[str, str]:
    """
    Parse a header block into a dictionary.

    Empty lines are ignored and an empty block gives an empty dict. Later
    duplicates overwrite earlier values.

    Raises:
        MalformedMessage: If a non-empty line has no ": " separator.
    """
    headers: Dict[str, str] = {}

    for line in header_block.split(CRLF):
        if not line:
            continue

        if HEADER_SEPARATOR not in line:
            raise MalformedMessage(f"Invalid header line: {line!r}")

        name, value = split_on(line, HEADER_SEPARATOR)
        headers[name] = value

    return headers


# =============================================================================
# CONVENIENCE FUNCTION
# =============================================================================

_parser = RequestParser()


def parse_request(raw: str) -> Request:
    """
    Parse a message string with a shared RequestParser.

    Args:
        raw: The whole message as received.

    Returns:
        Parsed Request.
    """
    return _parser.parse(raw)
