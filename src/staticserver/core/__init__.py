"""
=============================================================================
CORE SERVER COMPONENTS
=============================================================================

The networking and concurrency machinery. Nothing in here knows about
files or HTTP status codes except the handler.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                            LISTENER                                  │
    │  • Binds the listening socket, runs the accept() loop               │
    │  • Polls the CancellationToken between accepts                      │
    └─────────────────────────────────────────────────────────────────────┘
                                    │
                                    │ pool.submit(handler.handle, conn)
                                    ▼
    ┌─────────────────────────────────────────────────────────────────────┐
    │                           WORKER POOL                                │
    │  • N threads, fixed at startup, one shared FIFO queue               │
    │  • shutdown() runs everything queued, then stops                    │
    └─────────────────────────────────────────────────────────────────────┘
                                    │
                                    │ on a worker thread
                                    ▼
    ┌─────────────────────────────────────────────────────────────────────┐
    │                  CONNECTION HANDLER + CONNECTION                     │
    │  • Read headers, parse, resolve, read file, respond, close          │
    │  • Exactly one request per connection                               │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

from .cancellation import CancellationToken
from .connection import Connection, ConnectionState
from .handler import ConnectionHandler
from .listener import Listener
from .thread_pool import WorkerPool, WorkerState

__all__ = [
    "CancellationToken",
    "Connection",
    "ConnectionState",
    "ConnectionHandler",
    "Listener",
    "WorkerPool",
    "WorkerState",
]
