"""
Application handlers.

A handler is any callable taking a Request and returning a Response. The
server calls it once per connection, in the connection's worker thread.
"""

from .http import Request, Response, json_response, text_response


GREETING = {"name": "john", "age": 28}


def json_greeting(request: Request) -> Response:
    """
    Answer every request with a small JSON document.

        HTTP/1.1 200 OK
        Content-Type: application/json
        Content-Length: 24

        {"name":"john","age":28}
    """
    return json_response(GREETING)


def echo(request: Request) -> Response:
    """Send the request body back as plain text."""
    return text_response(request.body)
