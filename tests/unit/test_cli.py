"""
Unit tests for the command-line interface.
"""

import json

from wirehttp.__main__ import build_parser, decode_escapes, main, DEFAULT_MESSAGE
from wirehttp.http import parse_response


class TestBuildParser:

    def test_serve_defaults(self, monkeypatch):
        monkeypatch.delenv("WIREHTTP_PORT", raising=False)
        monkeypatch.delenv("WIREHTTP_BACKLOG", raising=False)

        args = build_parser().parse_args(["serve"])

        assert args.command == "serve"
        assert args.port == 3000
        assert args.backlog == 100
        assert args.handler == "greeting"

    def test_serve_flags(self):
        args = build_parser().parse_args(
            ["--log-level", "DEBUG", "serve", "-H", "0.0.0.0", "-p", "8080", "-b", "5", "--handler", "echo"]
        )

        assert args.log_level == "DEBUG"
        assert args.host == "0.0.0.0"
        assert args.port == 8080
        assert args.backlog == 5
        assert args.handler == "echo"

    def test_env_supplies_defaults(self, monkeypatch):
        monkeypatch.setenv("WIREHTTP_PORT", "4100")

        args = build_parser().parse_args(["send"])

        assert args.port == 4100
        assert args.message == DEFAULT_MESSAGE


class TestMain:

    def test_send_prints_reply(self, test_server, capsys):
        code = main([
            "--log-level", "WARNING",
            "send", "-p", str(test_server.port),
            "-m", "GET / HTTP/1.1\\r\\n\\r\\n",
        ])

        assert code == 0
        assert capsys.readouterr().out.startswith("HTTP/1.1 200 OK")

    def test_send_unreachable(self, free_port):
        code = main(["--log-level", "ERROR", "send", "-p", str(free_port), "-t", "1"])

        assert code == 1

    def test_send_non_ascii_body(self, test_server, capsys):
        """Non-ASCII text reaches the server as typed."""
        code = main([
            "--log-level", "WARNING",
            "send", "-p", str(test_server.port),
            "-m", "POST /notes HTTP/1.1\\r\\n\\r\\nhéllo 日本",
        ])

        assert code == 0
        reply = parse_response(capsys.readouterr().out)
        assert json.loads(reply.body)["received"] == "héllo 日本"


class TestDecodeEscapes:

    def test_crlf(self):
        assert decode_escapes("GET / HTTP/1.1\\r\\n\\r\\n") == "GET / HTTP/1.1\r\n\r\n"

    def test_non_ascii_unchanged(self):
        assert decode_escapes("héllo\\r\\n日本") == "héllo\r\n日本"

    def test_plain_text(self):
        assert decode_escapes("Hello from Client") == "Hello from Client"
