"""
pytest configuration and fixtures.
"""

import socket
import threading
import time
from pathlib import Path
from typing import Generator, Tuple

import pytest

# Add src to path for imports
import sys
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from staticserver import HTTPServer, ServerConfig


INDEX_HTML = b"<!DOCTYPE html><html><body><h1>It works</h1></body></html>\n"


@pytest.fixture
def sample_get_request() -> bytes:
    """Sample HTTP GET request."""
    return (
        b"GET /docs/index.html?page=1 HTTP/1.1\r\n"
        b"Host: localhost:8080\r\n"
        b"User-Agent: pytest\r\n"
        b"Accept: text/html\r\n"
        b"\r\n"
    )


@pytest.fixture
def doc_root(tmp_path: Path) -> Path:
    """
    A small site:

        index.html
        data.json
        blob.xyz
        css/site.css
        sub/              (directory without an index)
        files/file0.txt .. file7.txt
    """
    root = tmp_path / "www"
    root.mkdir()
    (root / "index.html").write_bytes(INDEX_HTML)
    (root / "data.json").write_bytes(b'{"ok": true}')
    (root / "blob.xyz").write_bytes(bytes(range(256)))
    (root / "css").mkdir()
    (root / "css" / "site.css").write_bytes(b"body { color: red; }\n")
    (root / "sub").mkdir()
    (root / "files").mkdir()
    for i in range(8):
        # distinct content and length per file
        (root / "files" / f"file{i}.txt").write_bytes((f"file {i}\n" * (1000 * (i + 1))).encode())
    return root


class TestServer:
    """Test server helper that runs in a background thread."""

    __test__ = False

    def __init__(self, server: HTTPServer):
        self.server = server
        self._thread: threading.Thread = None

    @property
    def port(self) -> int:
        return self.server.address[1]

    def start(self):
        """Bind, then serve from a background thread."""
        self.server.start()
        self._thread = threading.Thread(target=self.server.serve_forever, daemon=True)
        self._thread.start()

    def stop(self):
        """Stop the server and wait for it to drain."""
        self.server.shutdown()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=10.0)

    def request(self, raw: bytes, timeout: float = 5.0) -> bytes:
        """Send raw bytes, return everything the server sends before closing."""
        return send_raw(self.port, raw, timeout)

    def get(self, target: str) -> Tuple[int, dict, bytes]:
        return parse_response(self.request(f"GET {target} HTTP/1.1\r\nHost: test\r\n\r\n".encode()))


def send_raw(port: int, raw: bytes, timeout: float = 5.0) -> bytes:
    """Connect, send, read until the server closes."""
    with socket.create_connection(("127.0.0.1", port), timeout=timeout) as s:
        if raw:
            s.sendall(raw)
        chunks = []
        while True:
            chunk = s.recv(65536)
            if not chunk:
                break
            chunks.append(chunk)
    return b"".join(chunks)


def parse_response(data: bytes) -> Tuple[int, dict, bytes]:
    """Split a raw response into (status, headers, body)."""
    head, _, body = data.partition(b"\r\n\r\n")
    lines = head.decode("latin-1").split("\r\n")
    status = int(lines[0].split(" ", 2)[1])
    headers = {}
    for line in lines[1:]:
        name, _, value = line.partition(":")
        headers[name] = value.strip()
    return status, headers, body


@pytest.fixture
def http_get():
    """GET a target from a server on 127.0.0.1:<port>, parsed."""
    def get(port: int, target: str) -> Tuple[int, dict, bytes]:
        return parse_response(send_raw(port, f"GET {target} HTTP/1.1\r\n\r\n".encode()))
    return get


@pytest.fixture
def test_server(doc_root: Path) -> Generator[TestServer, None, None]:
    """A running server on an ephemeral port serving doc_root."""
    server = HTTPServer(ServerConfig(
        host="127.0.0.1",
        port=0,
        doc_root=str(doc_root),
        threads=4,
        read_timeout=0.5,
        accept_poll_interval=0.1,
        log_level="WARNING",
    ))

    test_srv = TestServer(server)
    test_srv.start()

    yield test_srv

    test_srv.stop()
