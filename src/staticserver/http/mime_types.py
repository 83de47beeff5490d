"""
=============================================================================
CONTENT-TYPE LOOKUP
=============================================================================

Maps a file extension to the Content-Type sent with it.

The table is FIXED: it is built once at import time, wrapped in a
read-only mapping, and shared by every worker thread. Because nobody can
mutate it, no lock is needed to read it.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    EXTENSION → CONTENT-TYPE                         │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   html, htm    text/html              png         image/png          │
    │   css          text/css               jpg, jpeg   image/jpeg         │
    │   js           application/javascript gif         image/gif          │
    │   json         application/json       svg         image/svg+xml      │
    │   txt          text/plain             ico         image/x-icon       │
    │   pdf          application/pdf                                       │
    │                                                                      │
    │   anything else → application/octet-stream                           │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
CASE SENSITIVITY
=============================================================================

Extensions are looked up exactly as they appear on disk. "logo.PNG" is
NOT in the table and is served as application/octet-stream. Browsers
sniff most binary formats anyway, and folding case here would make two
different files on a case-sensitive filesystem look alike.

=============================================================================
"""

from types import MappingProxyType
from typing import Mapping


DEFAULT_MIME_TYPE = "application/octet-stream"

MIME_TYPES: Mapping[str, str] = MappingProxyType({
    "html": "text/html",
    "htm": "text/html",
    "css": "text/css",
    "js": "application/javascript",
    "json": "application/json",
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "gif": "image/gif",
    "svg": "image/svg+xml",
    "txt": "text/plain",
    "pdf": "application/pdf",
    "ico": "image/x-icon",
})


def get_extension(path: str) -> str:
    """
    Return the text after the last "." in the file name, or "".

    Only the final path component is considered, so a dot in a directory
    name ("/v1.2/readme") does not count as an extension.

        >>> get_extension("/css/site.min.css")
        'css'
        >>> get_extension("/Makefile")
        ''
    """
    name = path.rsplit("/", 1)[-1]
    _, dot, extension = name.rpartition(".")
    return extension if dot else ""


def get_mime_type(path: str, table: Mapping[str, str] = MIME_TYPES) -> str:
    """
    Look up the Content-Type for a file path.

    Args:
        path: Filesystem or URL path; only its extension matters.
        table: Extension table. Defaults to the fixed server table.

    Returns:
        The mapped type, or application/octet-stream on a miss.

    Examples:
        >>> get_mime_type("data.json")
        'application/json'
        >>> get_mime_type("blob.xyz")
        'application/octet-stream'
    """
    return table.get(get_extension(path), DEFAULT_MIME_TYPE)
