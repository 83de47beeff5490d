"""
=============================================================================
CONNECTION HANDLER
=============================================================================

Everything that happens to one accepted connection, start to finish,
on one worker thread:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                     handle(conn) walkthrough                        │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   READING_HEADERS   conn.read_headers()                              │
    │        │               └── ProtocolError → close, say nothing        │
    │        ▼                                                             │
    │   PARSED            parser.parse()                                   │
    │        │               └── method != GET → 501                       │
    │        │                                                             │
    │        │            resolver.resolve(target)                         │
    │        │            os.stat(path)                                    │
    │        │               └── missing / not a regular file → 404        │
    │        │            read the whole file                              │
    │        │               └── read fails → 500                          │
    │        │            200 + mime type from the extension               │
    │        ▼                                                             │
    │   RESPONDING        send head, then send body                        │
    │        │               └── TransportError → stop, send nothing more  │
    │        ▼                                                             │
    │   CLOSED            always, on every path above                      │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Every error is contained here. Nothing a client does can raise out of
handle() into the worker pool.

=============================================================================
"""

import os
import stat
import time
import logging
from typing import Mapping

from ..errors import (
    ServerError,
    ProtocolError,
    MethodNotSupported,
    NotFound,
    FileReadError,
    TransportError,
)
from ..access_log import log_request
from ..http.mime_types import MIME_TYPES, get_mime_type
from ..http.paths import PathResolver
from ..http.request import Request, RequestParser
from ..http.response import (
    ResponseFrame,
    file_response,
    error_response,
    not_implemented,
)
from .connection import Connection, ConnectionState


logger = logging.getLogger(__name__)


class ConnectionHandler:
    """
    Serves one connection per call to handle().

    Holds only read-only collaborators (resolver, parser, mime table), so
    a single instance is shared by every worker thread.

    Usage:
        handler = ConnectionHandler(PathResolver("/srv/www"))
        pool.submit(handler.handle, conn)
    """

    def __init__(
        self,
        resolver: PathResolver,
        mime_types: Mapping[str, str] = MIME_TYPES,
        log_format: str = "text",
    ):
        self.resolver = resolver
        self.mime_types = mime_types
        self.log_format = log_format
        self._parser = RequestParser()

    def handle(self, conn: Connection) -> None:
        """
        Run the connection through the state machine and close it.

        Never raises: unexpected exceptions are logged here so that one
        broken connection cannot take a worker with it.
        """
        started_at = time.monotonic()

        try:
            # ─────────────────────────────────────────────────────────────
            # READ + PARSE
            # ─────────────────────────────────────────────────────────────
            try:
                raw = conn.read_headers()
                request = self._parser.parse(raw)
            except ProtocolError as e:
                logger.debug(f"[{conn.id}] Abandoned request from {conn.client_ip}: {e}")
                return

            conn.state = ConnectionState.PARSED

            # ─────────────────────────────────────────────────────────────
            # DECIDE THE RESPONSE
            # ─────────────────────────────────────────────────────────────
            response = self.respond(request)

            # ─────────────────────────────────────────────────────────────
            # WRITE IT
            # ─────────────────────────────────────────────────────────────
            try:
                conn.send_all(response.head())
                if response.body:
                    conn.send_all(response.body)
            except TransportError as e:
                logger.debug(f"[{conn.id}] Aborted response to {conn.client_ip}: {e}")
                return
            finally:
                log_request(
                    connection_id=conn.id,
                    client_ip=conn.client_ip,
                    method=request.method,
                    target=request.target,
                    status_code=response.status,
                    content_length=len(response.body),
                    started_at=started_at,
                    log_format=self.log_format,
                )

        except Exception as e:
            logger.exception(f"[{conn.id}] Unexpected error handling {conn.client_ip}: {e}")

        finally:
            conn.close()

    def respond(self, request: Request) -> ResponseFrame:
        """
        Map a parsed request to its response. No socket I/O.

        Each failure is raised as a ServerError at the point it happens
        and turned into its status here, in one place.
        """
        try:
            body, content_type = self._load(request)
        except MethodNotSupported:
            return not_implemented()
        except ServerError as e:
            if e.status_code is None:
                raise
            logger.debug(f"{request.method} {request.target}: {e}")
            return error_response(e.status_code)

        return file_response(body, content_type)

    def _load(self, request: Request) -> tuple[bytes, str]:
        """
        Find and read the file a GET names.

        Returns:
            (file contents, content type)

        Raises:
            MethodNotSupported: Method is not GET (before any path work).
            NotFound: Missing, not a regular file, or not stat-able.
            FileReadError: stat() succeeded but reading failed.
        """
        if request.method != "GET":
            raise MethodNotSupported(request.method)

        path = self.resolver.resolve(request.target)

        # ValueError covers an embedded NUL smuggled in as %00
        try:
            st = os.stat(path)
        except (OSError, ValueError):
            raise NotFound(path)
        if not stat.S_ISREG(st.st_mode):
            raise NotFound(path)

        try:
            with open(path, "rb") as f:
                body = f.read()
        except OSError as e:
            logger.error(f"Failed to read {path}: {e}")
            raise FileReadError(path, e)

        return body, get_mime_type(path, self.mime_types)
