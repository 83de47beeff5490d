"""
=============================================================================
STATICSERVER
=============================================================================

A multi-threaded HTTP/1.1 static file server built directly on sockets.

    ┌─────────────────────────────────────────────────────────────────────┐
    │  One request per connection. GET only. Files under one directory.   │
    └─────────────────────────────────────────────────────────────────────┘

    from staticserver import HTTPServer, ServerConfig

    HTTPServer(ServerConfig(port=8080, doc_root="./public")).run()

=============================================================================
PACKAGE LAYOUT
=============================================================================

    staticserver/
    ├── config.py          ServerConfig (frozen dataclass)
    ├── errors.py          ServerError hierarchy
    ├── access_log.py      per-request log lines
    ├── server.py          HTTPServer: wiring and lifecycle
    ├── __main__.py        CLI
    ├── core/
    │   ├── cancellation.py  CancellationToken
    │   ├── listener.py      bind + accept loop
    │   ├── thread_pool.py   WorkerPool
    │   ├── connection.py    header read, retrying write, close
    │   └── handler.py       one connection, start to finish
    └── http/
        ├── paths.py         traversal-safe path sanitizing
        ├── request.py       request line + header parsing
        ├── response.py      response framing
        ├── mime_types.py    extension → content type
        └── status_codes.py  the four statuses used

=============================================================================
"""

__version__ = "1.0.0"

from .server import HTTPServer, configure_logging
from .config import ServerConfig
from .errors import (
    ServerError,
    ProtocolError,
    MethodNotSupported,
    NotFound,
    FileReadError,
    TransportError,
    StartupError,
)

__all__ = [
    "HTTPServer",
    "ServerConfig",
    "configure_logging",
    "ServerError",
    "ProtocolError",
    "MethodNotSupported",
    "NotFound",
    "FileReadError",
    "TransportError",
    "StartupError",
    "__version__",
]
