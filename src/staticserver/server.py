"""
=============================================================================
STATIC FILE SERVER
=============================================================================

Ties the components together and owns their lifecycle.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                         HTTPServer                                   │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │    ServerConfig ──► PathResolver ──► ConnectionHandler               │
    │                                             │                        │
    │    CancellationToken ─────┐                 │                        │
    │                           ▼                 ▼                        │
    │                       Listener ───────► WorkerPool                   │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
LIFECYCLE
=============================================================================

    server = HTTPServer(config)     validate config, build components
    server.start()                  start workers, bind (StartupError here)
    server.serve_forever()          accept until shutdown() is called
        ...
    server.shutdown()               from a signal handler or another thread

When serve_forever() returns the listening socket is closed and every
connection that was accepted has been handled: the pool drains its
queue before its workers exit.

=============================================================================
"""

import logging
import signal
import threading
from typing import Optional, Tuple

from .config import ServerConfig
from .core import CancellationToken, ConnectionHandler, Listener, WorkerPool
from .http.mime_types import MIME_TYPES
from .http.paths import PathResolver


logger = logging.getLogger(__name__)


LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Send log records to stderr at the given level name."""
    numeric = getattr(logging, level.upper(), logging.INFO)

    logging.basicConfig(
        level=numeric,
        format=LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    logging.getLogger("staticserver").setLevel(numeric)


class HTTPServer:
    """
    Multi-threaded static file server.

    Usage:
        server = HTTPServer(ServerConfig(port=8080, doc_root="./public"))
        server.run()        # blocks; Ctrl+C or SIGTERM stops it

    For embedding (tests, other programs):
        server.start()
        threading.Thread(target=server.serve_forever).start()
        ...
        server.shutdown()
    """

    def __init__(self, config: Optional[ServerConfig] = None):
        """
        Args:
            config: Server configuration. Defaults to ServerConfig().

        Raises:
            ValueError: If the configuration is invalid.
        """
        self.config = config or ServerConfig()
        self.config.validate()

        self.token = CancellationToken()
        self.resolver = PathResolver(self.config.doc_root, self.config.index_file)
        self.handler = ConnectionHandler(
            self.resolver,
            mime_types=MIME_TYPES,
            log_format=self.config.log_format,
        )

        self._pool: Optional[WorkerPool] = None
        self._listener: Optional[Listener] = None
        self._stopped = threading.Event()

    @property
    def address(self) -> Tuple[str, int]:
        """Bound (host, port), with the real port once started."""
        if self._listener is None:
            return (self.config.host, self.config.port)
        return self._listener.address

    @property
    def pool(self) -> Optional[WorkerPool]:
        return self._pool

    def start(self) -> None:
        """
        Start the workers and bind the listening socket.

        Raises:
            StartupError: If the socket cannot be bound. The workers are
                          stopped again before it propagates.
        """
        self._pool = WorkerPool(self.config.threads, self.config.max_queue_size)
        self._listener = Listener(self.config, self._pool, self.handler, self.token)

        try:
            self._listener.bind()
        except Exception:
            self._pool.shutdown()
            raise

        host, port = self.address
        logger.info(
            f"Serving {self.resolver.doc_root} on http://{host}:{port} "
            f"with {self.config.threads} worker threads"
        )

    def serve_forever(self) -> None:
        """Accept connections until shutdown(), then drain and stop."""
        if self._listener is None:
            self.start()

        try:
            self._listener.serve()
        finally:
            self._stop()

    def run(self, install_signals: bool = True) -> None:
        """
        start() + serve_forever(), with SIGINT/SIGTERM mapped to shutdown().

        Signal handlers can only be installed from the main thread; from
        any other thread install_signals is ignored.
        """
        self.start()

        original = {}
        if install_signals and threading.current_thread() is threading.main_thread():
            original = self._install_signal_handlers()

        try:
            self.serve_forever()
        finally:
            for sig, handler in original.items():
                signal.signal(sig, handler)

    def shutdown(self) -> None:
        """
        Ask the server to stop. Returns immediately; safe from any thread
        and from signal handlers. The listener notices within one poll
        interval.
        """
        if not self.token.is_cancelled:
            logger.info("Shutdown requested")
        self.token.cancel()

    def wait_stopped(self, timeout: Optional[float] = None) -> bool:
        """Block until serve_forever() has fully finished."""
        return self._stopped.wait(timeout)

    def _install_signal_handlers(self) -> dict:
        def on_signal(signum, frame):
            logger.info(f"Received {signal.Signals(signum).name}, shutting down...")
            self.shutdown()

        return {
            signal.SIGINT: signal.signal(signal.SIGINT, on_signal),
            signal.SIGTERM: signal.signal(signal.SIGTERM, on_signal),
        }

    def _stop(self) -> None:
        """
        Graceful shutdown:

        1. The listener has already closed its socket (no new connections).
        2. The pool runs every connection still queued, then joins.
        """
        if self._pool is not None:
            self._pool.shutdown()
            stats = self._pool.stats["tasks"]
            logger.info(
                f"Server stopped ({stats['completed']} connections handled, "
                f"{stats['failed']} failed)"
            )
        self._stopped.set()
