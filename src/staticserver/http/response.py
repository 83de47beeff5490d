"""
=============================================================================
RESPONSE ASSEMBLY
=============================================================================

Builds the literal bytes of every response the server can send. Nothing
here touches a socket; ConnectionHandler decides WHICH response to send
and writes it.

=============================================================================
THE FOUR RESPONSES
=============================================================================

    200 (file found)                    404 / 500 (error page)
    ────────────────                    ──────────────────────
    HTTP/1.1 200 OK\r\n                 HTTP/1.1 404 Not Found\r\n
    Content-Type: text/css\r\n          Content-Type: text/html\r\n
    Content-Length: 1832\r\n            Content-Length: 49\r\n
    Connection: close\r\n               Connection: close\r\n
    Cache-Control: no-cache\r\n         \r\n
    \r\n                                <html><body><h1>404 Not ...
    <file bytes>

    501 (any method but GET)
    ────────────────────────
    HTTP/1.1 501 Not Implemented\r\n
    Content-Length: 0\r\n
    Connection: close\r\n
    \r\n

Every response says "Connection: close". The server never offers a
persistent connection, so the client must not wait for one.

Content-Length is always exact. With "Connection: close" a client could
read to EOF instead, but an exact length lets it detect a truncated body.

=============================================================================
"""

from dataclasses import dataclass, field
from typing import Dict

from .status_codes import HTTPStatus


HTTP_VERSION = "HTTP/1.1"


@dataclass
class ResponseFrame:
    """
    One response: status, ordered headers, body.

    The header block and the body are kept apart because they are written
    to the socket separately: the body of a large file is never copied
    into a second buffer just to prepend the headers.
    """

    status: HTTPStatus = HTTPStatus.OK
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""

    @property
    def status_line(self) -> str:
        """e.g. "HTTP/1.1 404 Not Found"."""
        return f"{HTTP_VERSION} {self.status.value} {self.status.phrase}"

    def head(self) -> bytes:
        """Status line plus headers, terminated by the blank line."""
        lines = [self.status_line]
        lines.extend(f"{name}: {value}" for name, value in self.headers.items())
        lines.append("")
        lines.append("")
        return "\r\n".join(lines).encode("latin-1")

    def to_bytes(self) -> bytes:
        """Head and body in one buffer. Handy for tests and small replies."""
        return self.head() + self.body


def error_body(status: HTTPStatus) -> bytes:
    """The fixed HTML page sent with an error status."""
    return f"<html><body><h1>{status.value} {status.phrase}</h1></body></html>".encode("ascii")


def file_response(body: bytes, content_type: str) -> ResponseFrame:
    """200 OK carrying a file's contents."""
    return ResponseFrame(
        status=HTTPStatus.OK,
        headers={
            "Content-Type": content_type,
            "Content-Length": str(len(body)),
            "Connection": "close",
            "Cache-Control": "no-cache",
        },
        body=body,
    )


def error_response(status: HTTPStatus) -> ResponseFrame:
    """404 or 500 with the small HTML error page."""
    body = error_body(status)
    return ResponseFrame(
        status=status,
        headers={
            "Content-Type": "text/html",
            "Content-Length": str(len(body)),
            "Connection": "close",
        },
        body=body,
    )


def not_implemented() -> ResponseFrame:
    """501 with an empty body, so no Content-Type either."""
    return ResponseFrame(
        status=HTTPStatus.NOT_IMPLEMENTED,
        headers={
            "Content-Length": "0",
            "Connection": "close",
        },
    )
