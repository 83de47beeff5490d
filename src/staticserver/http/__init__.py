"""
=============================================================================
HTTP PROTOCOL LAYER
=============================================================================

Everything that knows about HTTP but nothing about sockets or threads:

    request.py       header bytes  → Request
    paths.py         raw target    → traversal-safe filesystem path
    mime_types.py    extension     → Content-Type
    response.py      outcome       → literal response bytes
    status_codes.py  the four status codes we send

These are pure functions and immutable tables, which is what lets every
worker thread share them without locks.

request.py is not re-exported here: it depends on staticserver.errors,
which in turn depends on status_codes, and importing it from this
package's __init__ would make the two import each other.
=============================================================================
"""

from .status_codes import HTTPStatus
from .mime_types import MIME_TYPES, DEFAULT_MIME_TYPE, get_mime_type
from .paths import PathResolver, sanitize_path
from .response import (
    ResponseFrame,
    file_response,
    error_response,
    not_implemented,
)

__all__ = [
    "HTTPStatus",
    "MIME_TYPES",
    "DEFAULT_MIME_TYPE",
    "get_mime_type",
    "PathResolver",
    "sanitize_path",
    "ResponseFrame",
    "file_response",
    "error_response",
    "not_implemented",
]
