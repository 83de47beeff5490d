"""
Exceptions raised while serving a connection or starting the server.

Each connection-level error maps to exactly one outcome, decided in one
place (ConnectionHandler):

    ProtocolError       close the socket, send nothing
    MethodNotSupported  501 Not Implemented
    NotFound            404 Not Found
    FileReadError       500 Internal Server Error
    TransportError      abort, close the socket, send nothing more

StartupError is the only fatal one. It escapes to the CLI, which exits
with status 1.
"""

from typing import Optional

from .http.status_codes import HTTPStatus


class ServerError(Exception):
    """
    Base class for every error this package raises on purpose.

    Errors that still allow an HTTP reply carry the status to send in
    ``status_code``; the rest leave it as None.
    """

    status_code: Optional[HTTPStatus] = None

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message


class ProtocolError(ServerError):
    """Request was empty, unterminated, oversized or timed out."""


class MethodNotSupported(ServerError):
    """Request method is anything but GET."""

    status_code = HTTPStatus.NOT_IMPLEMENTED

    def __init__(self, method: str):
        super().__init__(f"Method not supported: {method!r}")
        self.method = method


class NotFound(ServerError):
    """Target is missing or is not a regular file."""

    status_code = HTTPStatus.NOT_FOUND

    def __init__(self, path: str):
        super().__init__(f"Not found: {path}")
        self.path = path


class FileReadError(ServerError):
    """Target passed stat() but could not be read."""

    status_code = HTTPStatus.INTERNAL_SERVER_ERROR

    def __init__(self, path: str, cause: Optional[BaseException] = None):
        super().__init__(f"Failed to read {path}: {cause}")
        self.path = path
        self.cause = cause


class TransportError(ServerError):
    """A socket read or write failed mid-connection."""


class StartupError(ServerError):
    """The listening socket could not be created, bound or put to listen."""
