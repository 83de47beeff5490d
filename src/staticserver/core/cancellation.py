"""
Explicit shutdown signal.

One token is created per server and handed to the listener. Anything
that wants the server to stop (a signal handler, a test, another
thread) calls cancel(); the listener polls is_cancelled between accept
calls. There is no module-level "running" flag.
"""

import threading
from typing import Optional


class CancellationToken:
    """
    A one-way, thread-safe "please stop" flag.

    Once cancelled it stays cancelled. Backed by threading.Event, so it is
    safe to cancel from a signal handler running on the main thread while
    other threads read it.
    """

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        """Request shutdown. Safe to call more than once."""
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """
        Block until cancelled or until timeout.

        Returns:
            True if the token is cancelled.
        """
        return self._event.wait(timeout)
