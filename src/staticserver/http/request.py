"""
=============================================================================
REQUEST PARSING
=============================================================================

Turns the buffered header block of one connection into a Request.

=============================================================================
WHAT WE ACCEPT
=============================================================================

    ┌─────────────────────────────────────────────────────────────────┐
    │  GET /css/site.css?v=3 HTTP/1.1\r\n      ← request line         │
    │  └─┘ └──────────────┘ └──────┘                                  │
    │  method    target      version (kept, never checked)            │
    │                                                                  │
    │  Host: localhost:8080\r\n                ← headers               │
    │  Accept:   text/css   \r\n               ← value is trimmed      │
    │  \r\n                                    ← end of headers        │
    └─────────────────────────────────────────────────────────────────┘

The parser is deliberately lenient. It never rejects a request line; a
strange method simply fails the GET check later and earns a 501. Header
lines without a ":" are skipped.

Header names are stored exactly as received. A name that appears twice
keeps only its LAST value:

    X-Tag: one
    X-Tag: two        → headers["X-Tag"] == "two"

No request body is ever read: only GET is served, and a GET body has no
meaning here.

=============================================================================
"""

from dataclasses import dataclass, field
from typing import Dict

from ..errors import ProtocolError


HEADER_TERMINATOR = b"\r\n\r\n"


@dataclass
class Request:
    """
    A parsed request.

    Attributes:
        method:  Request method token, e.g. "GET".
        target:  Raw request target, still percent-encoded and possibly
                 carrying a query string or fragment.
        version: Version token, e.g. "HTTP/1.1". Informational only.
        headers: Header name → value, names in the case they arrived in.
    """

    method: str
    target: str
    version: str = ""
    headers: Dict[str, str] = field(default_factory=dict)


class RequestParser:
    """
    Parses raw header bytes into a Request.

    Stateless; one instance is shared by every worker.

        parser = RequestParser()
        request = parser.parse(b"GET / HTTP/1.1\\r\\nHost: x\\r\\n\\r\\n")
        request.method   # "GET"
        request.target   # "/"
    """

    def parse(self, data: bytes) -> Request:
        """
        Parse everything up to the first blank line.

        Args:
            data: Bytes read from the socket. Must contain the header
                  terminator; anything after it is ignored.

        Returns:
            The parsed Request.

        Raises:
            ProtocolError: If the data is empty or has no header terminator.
        """
        if not data:
            raise ProtocolError("Empty request")

        header_end = data.find(HEADER_TERMINATOR)
        if header_end == -1:
            raise ProtocolError("Incomplete request: no header terminator")

        # surrogateescape keeps non-UTF-8 bytes recoverable for the path
        # decoder instead of replacing them
        text = data[:header_end].decode("utf-8", errors="surrogateescape")
        lines = [line.rstrip("\r") for line in text.split("\n")]

        method, target, version = self._parse_request_line(lines[0])
        headers = self._parse_headers(lines[1:])

        return Request(method=method, target=target, version=version, headers=headers)

    @staticmethod
    def _parse_request_line(line: str) -> tuple[str, str, str]:
        """Split "METHOD SP target SP version"; missing tokens become ""."""
        tokens = line.split()
        tokens += [""] * (3 - len(tokens))
        return tokens[0], tokens[1], tokens[2]

    @staticmethod
    def _parse_headers(lines: list[str]) -> Dict[str, str]:
        """Split each "Name: value" line on its first colon."""
        headers: Dict[str, str] = {}
        for line in lines:
            if not line:
                break
            name, colon, value = line.partition(":")
            if not colon:
                continue
            # plain assignment: a repeated name overwrites the earlier value
            headers[name] = value.strip(" \t")
        return headers


def parse_request(data: bytes) -> Request:
    """Convenience wrapper around RequestParser().parse()."""
    return RequestParser().parse(data)
