"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

All tunables of the server in one frozen dataclass.

=============================================================================
IMMUTABILITY
=============================================================================

The config is handed to every worker thread at startup. The document
root in particular is read by every request on every thread. Making the
dataclass frozen turns "nobody changes this after startup" from a
convention into a rule the interpreter enforces, so no lock is ever
needed to read it.

    config.doc_root = "/"   # dataclasses.FrozenInstanceError

Need a variant? Build a new one:

    dataclasses.replace(config, port=9090)

=============================================================================
CONFIGURATION SOURCES
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │   Priority (highest to lowest):                                     │
    │                                                                      │
    │   1. Command-line arguments                                         │
    │      └── staticserver 9090 ./public 8                               │
    │                                                                      │
    │   2. Environment variables                                          │
    │      └── STATIC_PORT=9090 staticserver                              │
    │                                                                      │
    │   3. Default values (in this dataclass)                             │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

import os
from dataclasses import dataclass, field
from typing import Optional


def default_thread_count() -> int:
    """One worker per CPU; 4 when the CPU count is unknown."""
    return os.cpu_count() or 4


@dataclass(frozen=True)
class ServerConfig:
    """
    Configuration for the static file server.

    =========================================================================
    CONFIGURATION GROUPS
    =========================================================================

    NETWORK
    - host, port, accept_poll_interval

    FILES
    - doc_root, index_file

    CONNECTION HANDLING
    - read_timeout, max_header_size, recv_chunk_size, write_timeout

    THREADING
    - threads, max_queue_size

    LOGGING
    - log_level, log_format

    =========================================================================
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK
    # ─────────────────────────────────────────────────────────────────────

    host: str = "0.0.0.0"
    """Address to bind. All interfaces by default."""

    port: int = 8080
    """Port to listen on. 0 lets the OS pick one (used by the tests)."""

    accept_poll_interval: float = 1.0
    """
    Upper bound in seconds on one blocking accept() call. Between calls
    the listener checks for shutdown, so this is also the worst-case
    delay between a shutdown request and the listener noticing it.
    """

    # ─────────────────────────────────────────────────────────────────────
    # FILES
    # ─────────────────────────────────────────────────────────────────────

    doc_root: str = "."
    """Directory every served file must live under."""

    index_file: str = "index.html"
    """File served for a path ending in "/"."""

    # ─────────────────────────────────────────────────────────────────────
    # CONNECTION HANDLING
    # ─────────────────────────────────────────────────────────────────────

    read_timeout: float = 5.0
    """
    Receive timeout in seconds while waiting for the request headers.
    A client that has not finished its headers by then is dropped
    without a response.
    """

    max_header_size: int = 64 * 1024
    """Request header block cap in bytes (64 KiB)."""

    recv_chunk_size: int = 8192
    """Bytes asked for per recv() call."""

    write_timeout: Optional[float] = None
    """
    Timeout in seconds for each send() while responding.
    None = block until the client accepts the bytes. A client that stops
    reading then holds its worker until the kernel gives up on it.
    """

    # ─────────────────────────────────────────────────────────────────────
    # THREADING
    # ─────────────────────────────────────────────────────────────────────

    threads: int = field(default_factory=default_thread_count)
    """Fixed number of worker threads."""

    max_queue_size: int = 0
    """
    Bound on connections waiting for a worker. 0 = unbounded.
    When bounded and full, new connections are closed unanswered.
    """

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "INFO"
    """DEBUG, INFO, WARNING or ERROR."""

    log_format: str = "text"
    """Access log format: 'text' (Apache-style) or 'json'."""

    @classmethod
    def from_env(cls, **overrides) -> "ServerConfig":
        """
        Build a config from environment variables.

        =====================================================================
        ENVIRONMENT VARIABLES
        =====================================================================

        STATIC_HOST       Bind address (default: 0.0.0.0)
        STATIC_PORT       Port (default: 8080)
        STATIC_DOC_ROOT   Document root (default: .)
        STATIC_THREADS    Worker threads (default: CPU count, or 4)
        STATIC_LOG_LEVEL  Logging level (default: INFO)

        Keyword arguments win over the environment, which is how the CLI
        layers its own arguments on top.

        =====================================================================
        """
        values = {
            "host": os.getenv("STATIC_HOST", "0.0.0.0"),
            "port": int(os.getenv("STATIC_PORT", "8080")),
            "doc_root": os.getenv("STATIC_DOC_ROOT", "."),
            "log_level": os.getenv("STATIC_LOG_LEVEL", "INFO"),
        }
        threads: Optional[str] = os.getenv("STATIC_THREADS")
        if threads:
            values["threads"] = int(threads)

        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)

    def validate(self) -> None:
        """
        Validate configuration values.

        Called once at startup so a bad value fails immediately with a
        clear message instead of surfacing on the first request.

        Raises:
            ValueError: On the first invalid field.
        """
        if not 0 <= self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 0-65535.")

        if self.threads < 1:
            raise ValueError(f"threads must be >= 1, got {self.threads}")

        if self.read_timeout <= 0:
            raise ValueError("read_timeout must be > 0")

        if self.accept_poll_interval <= 0:
            raise ValueError("accept_poll_interval must be > 0")

        if self.max_header_size < 1024:
            raise ValueError("max_header_size must be >= 1024")

        if self.recv_chunk_size < 1:
            raise ValueError("recv_chunk_size must be >= 1")

        if self.max_queue_size < 0:
            raise ValueError("max_queue_size must be >= 0")

        if self.write_timeout is not None and self.write_timeout <= 0:
            raise ValueError("write_timeout must be > 0 or None")

        if self.log_format not in ("text", "json"):
            raise ValueError(f"log_format must be 'text' or 'json', got {self.log_format!r}")

        if not os.path.isdir(self.doc_root):
            raise ValueError(f"Document root is not a directory: {self.doc_root}")
