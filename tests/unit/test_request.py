"""
Unit tests for HTTP request parsing.
"""

import pytest

from staticserver.errors import ProtocolError
from staticserver.http.request import (
    Request,
    RequestParser,
    parse_request,
)


class TestRequestParser:
    """Tests for RequestParser class."""

    def test_parse_simple_get(self, sample_get_request: bytes):
        """Test parsing a simple GET request."""
        parser = RequestParser()
        request = parser.parse(sample_get_request)

        assert request.method == "GET"
        assert request.target == "/docs/index.html?page=1"
        assert request.version == "HTTP/1.1"

    def test_parse_headers(self, sample_get_request: bytes):
        """Test that headers are parsed correctly."""
        request = parse_request(sample_get_request)

        assert request.headers["Host"] == "localhost:8080"
        assert request.headers["User-Agent"] == "pytest"
        assert request.headers["Accept"] == "text/html"
        assert "accept" not in request.headers

    def test_target_is_kept_raw(self):
        """Percent-escapes and dot segments are left for the path resolver."""
        request = parse_request(b"GET /a/%2e%2e/b+c HTTP/1.1\r\n\r\n")
        assert request.target == "/a/%2e%2e/b+c"

    def test_bare_lf_line_endings(self):
        request = parse_request(b"GET / HTTP/1.1\nHost: x\r\n\r\n")
        assert request.method == "GET"
        assert request.headers == {"Host": "x"}

    def test_bytes_after_terminator_ignored(self):
        request = parse_request(b"GET / HTTP/1.1\r\n\r\nBody: not-a-header\r\n\r\n")
        assert request.headers == {}


class TestHeaderParsing:
    """Header edge cases."""

    def test_duplicate_header_last_wins(self):
        request = parse_request(
            b"GET / HTTP/1.1\r\n"
            b"X-Tag: one\r\n"
            b"X-Tag: two\r\n"
            b"\r\n"
        )
        assert request.headers["X-Tag"] == "two"

    def test_line_without_colon_skipped(self):
        request = parse_request(
            b"GET / HTTP/1.1\r\n"
            b"garbage line\r\n"
            b"Host: x\r\n"
            b"\r\n"
        )
        assert request.headers == {"Host": "x"}

    def test_value_split_on_first_colon_and_trimmed(self):
        request = parse_request(b"GET / HTTP/1.1\r\nHost:  example.com:8080 \t\r\n\r\n")
        assert request.headers["Host"] == "example.com:8080"

    def test_empty_value(self):
        request = parse_request(b"GET / HTTP/1.1\r\nX-Empty:\r\n\r\n")
        assert request.headers["X-Empty"] == ""


class TestMalformedRequests:
    """Tests for what the parser refuses or tolerates."""

    def test_empty_request(self):
        with pytest.raises(ProtocolError):
            parse_request(b"")

    def test_missing_terminator(self):
        with pytest.raises(ProtocolError):
            parse_request(b"GET / HTTP/1.1\r\nHost: x\r\n")

    def test_blank_request_line_gives_empty_method(self):
        """Not a parse error: the handler answers it with 501."""
        request = parse_request(b"\r\n\r\n")
        assert request.method == ""
        assert request.target == ""

    def test_missing_version(self):
        request = parse_request(b"GET /\r\n\r\n")
        assert request.method == "GET"
        assert request.target == "/"
        assert request.version == ""

    def test_non_utf8_bytes_survive(self):
        request = parse_request(b"GET /caf\xe9 HTTP/1.1\r\n\r\n")
        assert request.target.encode("utf-8", "surrogateescape") == b"/caf\xe9"


class TestRequest:
    def test_defaults(self):
        request = Request(method="GET", target="/")
        assert request.version == ""
        assert request.headers == {}
