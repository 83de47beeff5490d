"""
Per-request access logging.

One line per request that got far enough to be parsed, on the
"staticserver.access" logger, in a format close to Apache's common log:

    127.0.0.1 - - [19/Oct/2026:10:00:00 +0000] "GET /index.html" 200 1832 0.41ms

Abandoned connections (no complete header block) never produce a line:
there is no method or target to report. They show up at DEBUG level on
the handler's own logger instead.

Route the access log separately if needed:

    logging.getLogger("staticserver.access").addHandler(file_handler)
"""

import json
import logging
import time
from dataclasses import dataclass


logger = logging.getLogger("staticserver.access")


@dataclass
class RequestLog:
    """A single access-log entry."""

    connection_id: str
    client_ip: str
    method: str
    target: str
    status_code: int
    content_length: int
    duration_ms: float
    timestamp: str

    def to_dict(self) -> dict:
        return {
            "connection_id": self.connection_id,
            "client_ip": self.client_ip,
            "method": self.method,
            "target": self.target,
            "status_code": self.status_code,
            "content_length": self.content_length,
            "duration_ms": round(self.duration_ms, 2),
            "timestamp": self.timestamp,
        }

    def to_text(self) -> str:
        return (
            f'{self.client_ip} - - [{self.timestamp}] '
            f'"{self.method} {self.target}" {self.status_code} '
            f'{self.content_length} {self.duration_ms:.2f}ms'
        )


def log_request(
    connection_id: str,
    client_ip: str,
    method: str,
    target: str,
    status_code: int,
    content_length: int,
    started_at: float,
    log_format: str = "text",
) -> RequestLog:
    """
    Build an entry and emit it at INFO.

    Args:
        started_at: time.monotonic() when the connection was picked up.
        log_format: "text" for the Apache-style line, "json" for one JSON
                    object per line (log aggregators).

    Returns:
        The entry, so callers (and tests) can inspect what was logged.
    """
    entry = RequestLog(
        connection_id=connection_id,
        client_ip=client_ip,
        method=method,
        target=target,
        status_code=int(status_code),
        content_length=content_length,
        duration_ms=(time.monotonic() - started_at) * 1000,
        timestamp=time.strftime("%d/%b/%Y:%H:%M:%S %z"),
    )
    if log_format == "json":
        logger.info(json.dumps(entry.to_dict()))
    else:
        logger.info(entry.to_text())
    return entry
