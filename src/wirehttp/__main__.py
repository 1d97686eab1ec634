"""
=============================================================================
CLI ENTRY POINT
=============================================================================

    # Run the server with defaults (127.0.0.1:3000)
    python -m wirehttp serve

    # Custom address and accept queue
    python -m wirehttp serve --host 0.0.0.0 --port 8080 --backlog 256

    # Echo request bodies instead of the JSON greeting
    python -m wirehttp serve --handler echo

    # Send a message to a running server and print the reply
    python -m wirehttp send --message "GET / HTTP/1.1\\r\\nHost: x\\r\\n\\r\\n"

Environment variables (WIREHTTP_HOST, WIREHTTP_PORT, ...) provide the
defaults that command-line flags override.

=============================================================================
"""

import argparse
import logging
import sys

from . import __version__
from .client import send_message
from .config import ServerConfig
from .handlers import echo, json_greeting
from .server import MessageServer


logger = logging.getLogger(__name__)

HANDLERS = {
    "greeting": json_greeting,
    "echo": echo,
}

DEFAULT_MESSAGE = "GET / HTTP/1.1\r\nHost: localhost\r\n\r\n"


def decode_escapes(text: str) -> str:
    """
    Turn backslash escapes typed on the command line (a literal backslash
    followed by "r") into the characters they name.

    Characters outside Latin-1 are escaped first so unicode_escape decodes
    them back to themselves.
    """
    return text.encode("latin-1", "backslashreplace").decode("unicode_escape")


def setup_logging(log_level: str):
    """Configure root logging once for the process."""
    level = getattr(logging, log_level.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logging.getLogger("wirehttp").setLevel(level)


def build_parser() -> argparse.ArgumentParser:
    env = ServerConfig.from_env()

    parser = argparse.ArgumentParser(
        prog="wirehttp",
        description="Minimal HTTP-like request/response server and client",
    )
    parser.add_argument("--version", "-v", action="version", version=f"wirehttp {__version__}")
    parser.add_argument(
        "--log-level", "-l",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=env.log_level.upper(),
        help=f"Logging level (default: {env.log_level.upper()})",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # ── serve ────────────────────────────────────────────────────────────
    serve = subparsers.add_parser("serve", help="Run the server")
    serve.add_argument("--host", "-H", default=env.host, help=f"Host to bind to (default: {env.host})")
    serve.add_argument("--port", "-p", type=int, default=env.port, help=f"Port to listen on (default: {env.port})")
    serve.add_argument(
        "--backlog", "-b",
        type=int,
        default=env.backlog,
        help=f"Accept queue depth (default: {env.backlog})",
    )
    serve.add_argument(
        "--handler",
        choices=sorted(HANDLERS),
        default="greeting",
        help="Application handler (default: greeting)",
    )

    # ── send ─────────────────────────────────────────────────────────────
    send = subparsers.add_parser("send", help="Send one message and print the reply")
    send.add_argument("--host", "-H", default=env.host, help=f"Server host (default: {env.host})")
    send.add_argument("--port", "-p", type=int, default=env.port, help=f"Server port (default: {env.port})")
    send.add_argument(
        "--message", "-m",
        default=DEFAULT_MESSAGE,
        help="Message to send; backslash escapes like \\r\\n are decoded",
    )
    send.add_argument("--timeout", "-t", type=float, default=5.0, help="Socket timeout (default: 5)")

    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level)

    if args.command == "serve":
        config = ServerConfig.from_env()
        config.host = args.host
        config.port = args.port
        config.backlog = args.backlog
        config.log_level = args.log_level

        try:
            MessageServer(config, HANDLERS[args.handler]).run()
        except (OSError, ValueError) as e:
            logger.error(f"Server failed: {e}")
            return 1
        return 0

    message = decode_escapes(args.message)
    try:
        reply = send_message(args.host, args.port, message, timeout=args.timeout)
    except OSError as e:
        logger.error(f"Could not reach {args.host}:{args.port}: {e}")
        return 1

    print(reply)
    return 0


if __name__ == "__main__":
    sys.exit(main())
