"""
=============================================================================
HTTP STATUS CODES
=============================================================================

The server only ever answers with four status codes:

    ┌───────┬──────────────────────────┬─────────────────────────────────┐
    │ Code  │ Reason phrase            │ When                            │
    ├───────┼──────────────────────────┼─────────────────────────────────┤
    │  200  │ OK                       │ File found and read             │
    │  404  │ Not Found                │ Missing, or not a regular file  │
    │  500  │ Internal Server Error    │ stat() worked but read() failed │
    │  501  │ Not Implemented          │ Any method other than GET       │
    └───────┴──────────────────────────┴─────────────────────────────────┘

A malformed or abandoned request gets NO status at all: the connection is
simply closed. There is nothing sensible to reply to a client that never
finished its headers.

=============================================================================
"""

from enum import IntEnum


class HTTPStatus(IntEnum):
    """
    Status codes used on the wire.

    IntEnum so the codes compare and format as plain integers:

        >>> HTTPStatus.NOT_FOUND == 404
        True
        >>> f"{HTTPStatus.NOT_FOUND.value} {HTTPStatus.NOT_FOUND.phrase}"
        '404 Not Found'
    """

    OK = 200
    NOT_FOUND = 404
    INTERNAL_SERVER_ERROR = 500
    NOT_IMPLEMENTED = 501

    @property
    def phrase(self) -> str:
        """Reason phrase that follows the code in the status line."""
        return _STATUS_PHRASES[self]


_STATUS_PHRASES = {
    HTTPStatus.OK: "OK",
    HTTPStatus.NOT_FOUND: "Not Found",
    HTTPStatus.INTERNAL_SERVER_ERROR: "Internal Server Error",
    HTTPStatus.NOT_IMPLEMENTED: "Not Implemented",
}
