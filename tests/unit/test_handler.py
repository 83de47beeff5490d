"""
Unit tests for ConnectionHandler.

respond() is tested directly against a temporary document root; handle()
is driven over a socketpair.
"""

import logging
import os
import socket
import threading

import pytest

from staticserver.core.connection import Connection, ConnectionState
from staticserver.core.handler import ConnectionHandler
from staticserver.http import HTTPStatus, PathResolver
from staticserver.http.request import Request


@pytest.fixture
def handler(doc_root) -> ConnectionHandler:
    return ConnectionHandler(PathResolver(str(doc_root)))


class TestRespond:
    def test_index(self, handler, doc_root):
        response = handler.respond(Request("GET", "/"))

        assert response.status == HTTPStatus.OK
        assert response.body == (doc_root / "index.html").read_bytes()
        assert response.headers["Content-Type"] == "text/html"
        assert response.headers["Content-Length"] == str(len(response.body))

    def test_content_types(self, handler):
        assert handler.respond(Request("GET", "/data.json")).headers["Content-Type"] == "application/json"
        assert handler.respond(Request("GET", "/blob.xyz")).headers["Content-Type"] == "application/octet-stream"
        assert handler.respond(Request("GET", "/css/site.css")).headers["Content-Type"] == "text/css"

    def test_missing_file_is_404(self, handler):
        response = handler.respond(Request("GET", "/nope.html"))
        assert response.status == HTTPStatus.NOT_FOUND
        assert response.body == b"<html><body><h1>404 Not Found</h1></body></html>"

    def test_directory_is_404(self, handler):
        assert handler.respond(Request("GET", "/sub")).status == HTTPStatus.NOT_FOUND

    def test_directory_without_index_is_404(self, handler):
        assert handler.respond(Request("GET", "/sub/")).status == HTTPStatus.NOT_FOUND

    def test_embedded_nul_is_404(self, handler):
        assert handler.respond(Request("GET", "/index.html%00.txt")).status == HTTPStatus.NOT_FOUND

    def test_traversal_stays_in_root(self, handler, doc_root):
        secret = doc_root.parent / "secret.txt"
        secret.write_bytes(b"top secret")

        response = handler.respond(Request("GET", "/../secret.txt"))
        assert response.status == HTTPStatus.NOT_FOUND

    def test_query_string_ignored(self, handler):
        assert handler.respond(Request("GET", "/data.json?v=2")).status == HTTPStatus.OK

    @pytest.mark.parametrize("method", ["POST", "PUT", "DELETE", "HEAD", "get", ""])
    def test_non_get_is_501(self, handler, method):
        response = handler.respond(Request(method, "/index.html"))
        assert response.status == HTTPStatus.NOT_IMPLEMENTED
        assert response.body == b""

    def test_non_get_never_resolves_path(self, doc_root):
        class ExplodingResolver(PathResolver):
            def resolve(self, target):
                raise AssertionError("resolve() called for a non-GET request")

        handler = ConnectionHandler(ExplodingResolver(str(doc_root)))
        assert handler.respond(Request("POST", "/")).status == HTTPStatus.NOT_IMPLEMENTED

    @pytest.mark.skipif(os.geteuid() == 0, reason="root can read anything")
    def test_unreadable_file_is_500(self, handler, doc_root):
        locked = doc_root / "locked.txt"
        locked.write_bytes(b"x")
        locked.chmod(0)
        try:
            response = handler.respond(Request("GET", "/locked.txt"))
        finally:
            locked.chmod(0o644)

        assert response.status == HTTPStatus.INTERNAL_SERVER_ERROR
        assert response.body == b"<html><body><h1>500 Internal Server Error</h1></body></html>"

    def test_read_failure_is_500(self, handler, monkeypatch):
        import builtins

        real_open = builtins.open

        def failing_open(path, *args, **kwargs):
            if str(path).endswith("data.json"):
                raise PermissionError("denied")
            return real_open(path, *args, **kwargs)

        monkeypatch.setattr(builtins, "open", failing_open)

        assert handler.respond(Request("GET", "/data.json")).status == HTTPStatus.INTERNAL_SERVER_ERROR


def run_handle(handler, raw: bytes, read_timeout: float = 1.0, half_close: bool = True) -> bytes:
    """Push raw bytes through handle() on a socketpair, return the reply."""
    server, client = socket.socketpair()
    conn = Connection(server, ("127.0.0.1", 4242), read_timeout=read_timeout)
    worker = threading.Thread(target=handler.handle, args=(conn,))
    worker.start()
    try:
        client.sendall(raw)
        if half_close:
            client.shutdown(socket.SHUT_WR)
        client.settimeout(5.0)
        chunks = []
        while True:
            chunk = client.recv(65536)
            if not chunk:
                break
            chunks.append(chunk)
    finally:
        worker.join(timeout=5.0)
        client.close()
    assert conn.state == ConnectionState.CLOSED
    return b"".join(chunks)


class TestHandle:
    def test_full_exchange(self, handler, doc_root):
        reply = run_handle(handler, b"GET /data.json HTTP/1.1\r\nHost: x\r\n\r\n")

        assert reply == (
            b"HTTP/1.1 200 OK\r\n"
            b"Content-Type: application/json\r\n"
            b"Content-Length: 12\r\n"
            b"Connection: close\r\n"
            b"Cache-Control: no-cache\r\n"
            b"\r\n"
            b'{"ok": true}'
        )

    def test_501_on_the_wire(self, handler):
        reply = run_handle(handler, b"POST / HTTP/1.1\r\nContent-Length: 3\r\n\r\nabc")
        assert reply == b"HTTP/1.1 501 Not Implemented\r\nContent-Length: 0\r\nConnection: close\r\n\r\n"

    def test_blank_request_is_501(self, handler):
        reply = run_handle(handler, b"\r\n\r\n")
        assert reply.startswith(b"HTTP/1.1 501 ")

    def test_incomplete_request_gets_no_response(self, handler):
        assert run_handle(handler, b"GET / HTTP/1.1\r\n") == b""

    def test_empty_connection_gets_no_response(self, handler):
        assert run_handle(handler, b"") == b""

    def test_timeout_gets_no_response(self, handler):
        reply = run_handle(handler, b"GET / HTTP/1.1\r\n", read_timeout=0.2, half_close=False)
        assert reply == b""

    def test_access_log_line(self, handler, caplog):
        with caplog.at_level(logging.INFO, logger="staticserver.access"):
            run_handle(handler, b"GET /missing HTTP/1.1\r\n\r\n")

        lines = [r.getMessage() for r in caplog.records if r.name == "staticserver.access"]
        assert len(lines) == 1
        assert '"GET /missing" 404' in lines[0]
        assert lines[0].startswith("127.0.0.1 ")

    def test_no_access_log_for_abandoned_connection(self, handler, caplog):
        with caplog.at_level(logging.INFO, logger="staticserver.access"):
            run_handle(handler, b"GET / HTTP")

        assert not [r for r in caplog.records if r.name == "staticserver.access"]

    def test_unexpected_error_still_closes(self, doc_root, caplog):
        class BrokenResolver(PathResolver):
            def resolve(self, target):
                raise KeyError("bug")

        handler = ConnectionHandler(BrokenResolver(str(doc_root)))
        with caplog.at_level(logging.ERROR):
            reply = run_handle(handler, b"GET / HTTP/1.1\r\n\r\n")

        assert reply == b""
        assert any("Unexpected error" in r.getMessage() for r in caplog.records)
