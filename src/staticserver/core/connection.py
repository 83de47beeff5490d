"""
=============================================================================
CONNECTION
=============================================================================

Wraps one accepted client socket with the three operations the handler
needs: read the request headers, write bytes reliably, close.

=============================================================================
TCP IS A BYTE STREAM, NOT A MESSAGE PROTOCOL
=============================================================================

    Client sends:   "GET / HTTP/1.1\r\nHost: x\r\n\r\n"

    Server may receive it as:
        recv() → "GET / HT"
        recv() → "TP/1.1\r\nHost: x\r\n"
        recv() → "\r\n"

So we keep appending to a buffer until the blank line ("\r\n\r\n") that
ends the headers shows up. Reading stops early, and the request is
abandoned, when:

    ┌─────────────────────────────────────────────────────────────────┐
    │  - the buffer grows past the header cap (64 KiB)                │
    │  - recv() returns b"" (client closed) or fails                  │
    │  - the read deadline (5 s) passes                               │
    └─────────────────────────────────────────────────────────────────┘

The deadline covers the WHOLE header read, not each recv(). A client
dribbling one byte every few seconds is still cut off after 5 seconds.

=============================================================================
PARTIAL WRITES
=============================================================================

send() may accept fewer bytes than offered when the kernel's send
buffer is full. send_all() loops, re-sending the unsent remainder, until
everything is accepted or a send fails. This is the only retry anywhere
in the server: a FAILED send is never retried.

=============================================================================
CONNECTION STATE MACHINE
=============================================================================

    READING_HEADERS ──────► PARSED ──────► RESPONDING ──────┐
           │                   │                │            │
           │ (abandoned)       │                │ (write     │
           │                   │                │  failed)   ▼
           └───────────────────┴────────────────┴──────►  CLOSED

CLOSED is reached on every path, including unexpected exceptions.

=============================================================================
"""

import socket
import time
import logging
import uuid
from enum import Enum
from typing import Optional

from ..errors import ProtocolError, TransportError
from ..http.request import HEADER_TERMINATOR


logger = logging.getLogger(__name__)


class ConnectionState(Enum):
    """Lifecycle of one connection."""
    READING_HEADERS = "reading_headers"
    PARSED = "parsed"
    RESPONDING = "responding"
    CLOSED = "closed"


class Connection:
    """
    One accepted client connection.

    Attributes:
        socket: The client socket.
        address: Client's (ip, port).
        id: Short random id used to correlate log lines.
        state: Current ConnectionState.
    """

    def __init__(
        self,
        sock: socket.socket,
        address: tuple,
        recv_chunk_size: int = 8192,
        read_timeout: float = 5.0,
        max_header_size: int = 64 * 1024,
        write_timeout: Optional[float] = None,
    ):
        self.socket = sock
        self.address = address
        self.id = uuid.uuid4().hex[:8]
        self.state = ConnectionState.READING_HEADERS

        self.recv_chunk_size = recv_chunk_size
        self.read_timeout = read_timeout
        self.max_header_size = max_header_size
        self.write_timeout = write_timeout

        self.bytes_sent = 0

    @property
    def client_ip(self) -> str:
        return self.address[0] if self.address else "-"

    # =========================================================================
    # READING
    # =========================================================================

    def read_headers(self) -> bytes:
        """
        Read until the header block is complete.

        Returns:
            Everything received so far. It contains "\\r\\n\\r\\n" and may
            contain bytes after it (ignored by the parser).

        Raises:
            ProtocolError: Client closed, read failed, cap exceeded or the
                           deadline passed before the blank line arrived.
        """
        self.state = ConnectionState.READING_HEADERS
        deadline = time.monotonic() + self.read_timeout
        buffer = bytearray()

        while True:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise ProtocolError(f"Header read timed out after {len(buffer)} bytes")

            try:
                self.socket.settimeout(remaining)
                chunk = self.socket.recv(self.recv_chunk_size)
            except socket.timeout:
                raise ProtocolError(f"Header read timed out after {len(buffer)} bytes")
            except OSError as e:
                raise ProtocolError(f"Header read failed: {e}")

            if not chunk:
                raise ProtocolError(f"Client closed after {len(buffer)} bytes")

            buffer += chunk

            # Check the terminator before the cap: a terminated block that
            # arrived in one oversized chunk is still a request
            if HEADER_TERMINATOR in buffer:
                return bytes(buffer)

            if len(buffer) > self.max_header_size:
                raise ProtocolError(f"Request headers exceed {self.max_header_size} bytes")

    # =========================================================================
    # WRITING
    # =========================================================================

    def send_all(self, data: bytes) -> None:
        """
        Send every byte of data, re-sending after partial writes.

        Raises:
            TransportError: If a send fails or accepts zero bytes.
        """
        self.state = ConnectionState.RESPONDING
        view = memoryview(data)
        total = 0

        self.socket.settimeout(self.write_timeout)
        while total < len(view):
            try:
                sent = self.socket.send(view[total:])
            except OSError as e:
                raise TransportError(f"Send failed after {total}/{len(view)} bytes: {e}")
            if sent <= 0:
                raise TransportError(f"Send made no progress after {total}/{len(view)} bytes")
            total += sent
            self.bytes_sent += sent

    # =========================================================================
    # CLOSING
    # =========================================================================

    def close(self) -> None:
        """
        Close the connection. Idempotent; never raises; never waits.

        1. shutdown(SHUT_WR) sends our FIN so the client sees end-of-body.
        2. Discard whatever client input is ALREADY buffered (an unread
           request body, say), without blocking. Closing with unread data
           makes the kernel answer with RST, which can destroy the response
           before the client reads it.
        3. close() releases the file descriptor.

        The worker is free again as soon as this returns, whether or not
        the client has closed its side yet.
        """
        if self.state == ConnectionState.CLOSED:
            return

        try:
            self.socket.shutdown(socket.SHUT_WR)
        except OSError:
            pass  # Client already gone

        self._discard_pending(limit=64 * 1024)

        try:
            self.socket.close()
        except OSError:
            pass

        self.state = ConnectionState.CLOSED
        logger.debug(f"[{self.id}] Connection closed")

    def _discard_pending(self, limit: int) -> None:
        """Read and drop buffered input, up to limit bytes, without waiting."""
        discarded = 0
        try:
            self.socket.setblocking(False)
            while discarded < limit:
                chunk = self.socket.recv(4096)
                if not chunk:
                    break
                discarded += len(chunk)
        except OSError:
            pass  # BlockingIOError (nothing buffered) or reset

    def __enter__(self) -> "Connection":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
