"""
=============================================================================
LISTENER
=============================================================================

Owns the listening socket: bind, listen, and the accept loop that hands
every accepted client to the worker pool.

    ┌───────────────────────┐
    │   Listening Socket    │ ◄── bound once at startup
    └───────────┬───────────┘     never sends or receives data
                │ accept()
        ┌───────┼───────┬───────────────┐
        ▼       ▼       ▼               ▼
      conn    conn    conn    ...   (one socket per client)
        │       │       │
        └───────┴───────┴──► pool.submit(handler.handle, conn)

The listener never reads from a client socket. Everything after accept()
happens on a worker.

=============================================================================
INTERRUPTIBLE ACCEPT
=============================================================================

accept() blocks. To notice shutdown the listening socket has a timeout
(accept_poll_interval, 1 s by default):

    while not token.is_cancelled:
        try:
            accept()          # at most 1 s
        except timeout:
            continue          # re-check the token

So shutdown takes effect within one poll interval.

=============================================================================
"""

import socket
import logging
from typing import Optional, Tuple

from ..config import ServerConfig
from ..errors import StartupError
from .cancellation import CancellationToken
from .connection import Connection
from .handler import ConnectionHandler
from .thread_pool import WorkerPool


logger = logging.getLogger(__name__)


class Listener:
    """
    Accepts connections until its token is cancelled.

    Usage:
        listener = Listener(config, pool, handler, token)
        listener.bind()          # raises StartupError if the port is taken
        listener.serve()         # blocks until token.cancel()
    """

    def __init__(
        self,
        config: ServerConfig,
        pool: WorkerPool,
        handler: ConnectionHandler,
        token: CancellationToken,
    ):
        self.config = config
        self.pool = pool
        self.handler = handler
        self.token = token

        self._socket: Optional[socket.socket] = None
        self.connections_accepted = 0
        self.connections_rejected = 0

    @property
    def address(self) -> Tuple[str, int]:
        """Actual bound (host, port). Differs from config when port is 0."""
        if self._socket is None:
            return (self.config.host, self.config.port)
        return self._socket.getsockname()[:2]

    def bind(self) -> None:
        """
        Create, bind and listen.

        Raises:
            StartupError: The socket cannot be created (descriptor limit)
                          or the address cannot be bound (in use, no
                          permission, unknown host).
        """
        sock: Optional[socket.socket] = None
        try:
            sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)

            # Restarting within TIME_WAIT must not fail with "Address already in use"
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)

            sock.bind((self.config.host, self.config.port))
            sock.listen()
        except OSError as e:
            if sock is not None:
                sock.close()
            logger.error(f"Failed to bind to {self.config.host}:{self.config.port}: {e}")
            raise StartupError(f"Cannot listen on {self.config.host}:{self.config.port}: {e}") from e

        sock.settimeout(self.config.accept_poll_interval)
        self._socket = sock

        host, port = self.address
        logger.info(f"Listening on {host}:{port}")

    def serve(self) -> None:
        """
        Run the accept loop. Blocks until the token is cancelled, then
        closes the listening socket.
        """
        if self._socket is None:
            self.bind()

        try:
            while not self.token.is_cancelled:
                try:
                    client_socket, client_address = self._socket.accept()
                except (socket.timeout, InterruptedError):
                    continue
                except OSError as e:
                    if self.token.is_cancelled:
                        break
                    # Transient (EMFILE, ECONNABORTED): keep serving
                    logger.error(f"Accept error: {e}")
                    self.token.wait(0.1)
                    continue

                self._dispatch(client_socket, client_address)
        finally:
            self.close()

    def _dispatch(self, client_socket: socket.socket, client_address: tuple) -> None:
        """Wrap an accepted socket and queue it for a worker."""
        # Accepted sockets inherit the listener's timeout; Connection sets
        # its own per phase
        client_socket.settimeout(None)

        conn = Connection(
            client_socket,
            client_address,
            recv_chunk_size=self.config.recv_chunk_size,
            read_timeout=self.config.read_timeout,
            max_header_size=self.config.max_header_size,
            write_timeout=self.config.write_timeout,
        )
        self.connections_accepted += 1
        logger.debug(f"[{conn.id}] Accepted connection from {client_address[0]}:{client_address[1]}")

        try:
            queued = self.pool.submit(self.handler.handle, conn)
        except RuntimeError:
            queued = False

        if not queued:
            self.connections_rejected += 1
            logger.warning(f"[{conn.id}] Worker queue full, dropping connection from {conn.client_ip}")
            conn.close()

    def close(self) -> None:
        """Close the listening socket. Safe to call more than once."""
        if self._socket is None:
            return
        try:
            self._socket.close()
        except OSError:
            pass
        self._socket = None
        logger.info("Listener stopped")
