"""
=============================================================================
WIRE GRAMMAR PRIMITIVES
=============================================================================

Shared building blocks for the request parser and the response serializer.
Both sides speak the same framing, so the delimiters live in one place.

=============================================================================
FRAMING
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                         MESSAGE FRAMING                              │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   GET /foo HTTP/1.1\r\n        ← start line, ends with CRLF          │
    │   Host: x\r\n                  ← "name: value" lines, CRLF each     │
    │   \r\n                         ← blank line (CRLF CRLF with above)  │
    │   body...                      ← everything that remains            │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
SPLITTING ON A DELIMITER
=============================================================================

Every framing step is the same operation: find the FIRST occurrence of a
marker, keep what comes before it, keep what comes after it, and drop the
marker itself.

    split_on("GET / HTTP/1.1\r\nHost: x", "\r\n")
        → ("GET / HTTP/1.1", "Host: x")

When the marker is missing, the whole string is the head and the tail is
empty:

    split_on("Host: x", "\r\n\r\n")
        → ("Host: x", "")

That choice means "no blank line" reads as "headers only, empty body".
Callers that REQUIRE a marker (the start line terminator) check for it
themselves and raise MalformedMessage.

=============================================================================
"""

from typing import Tuple


# Line terminator used everywhere in the grammar
CRLF = "\r\n"

# Blank-line separator between the header block and the body
BLANK_LINE = CRLF + CRLF

# Separator between a header name and its value
HEADER_SEPARATOR = ": "

# Separator between start line tokens
TOKEN_SEPARATOR = " "


class MalformedMessage(ValueError):
    """
    Raised when a message violates the wire grammar.

    This is the only error the protocol layer raises. It carries a status
    code so the transport can answer with a matching response without
    inspecting the message text:

        400 Bad Request - the message could not be framed

    The parser never logs or recovers from this error. Deciding what to
    send back is the caller's job.
    """

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


def split_on(s: str, search: str) -> Tuple[str, str]:
    """
    Partition ``s`` at the first occurrence of ``search``.

    Args:
        s: String to split.
        search: Non-empty marker to split on.

    Returns:
        ``(head, tail)`` with the marker removed. If the marker does not
        occur, ``(s, "")``.

    Raises:
        ValueError: If ``search`` is empty.

    Example:
        split_on("This is a new message.", "is")
        # ("Th", " is a new message.")
    """
    if not search:
        raise ValueError("search marker must not be empty")

    index = s.find(search)
    if index == -1:
        return s, ""

    return s[:index], s[index + len(search):]
