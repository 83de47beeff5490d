"""
Unit tests for the extension → content type table.
"""

import pytest

from staticserver.http.mime_types import (
    DEFAULT_MIME_TYPE,
    MIME_TYPES,
    get_extension,
    get_mime_type,
)


@pytest.mark.parametrize("path, expected", [
    ("/index.html", "text/html"),
    ("/old.htm", "text/html"),
    ("/site.css", "text/css"),
    ("/app.js", "application/javascript"),
    ("/data.json", "application/json"),
    ("/logo.png", "image/png"),
    ("/photo.jpg", "image/jpeg"),
    ("/photo.jpeg", "image/jpeg"),
    ("/anim.gif", "image/gif"),
    ("/icon.svg", "image/svg+xml"),
    ("/notes.txt", "text/plain"),
    ("/paper.pdf", "application/pdf"),
    ("/favicon.ico", "image/x-icon"),
])
def test_known_extensions(path, expected):
    assert get_mime_type(path) == expected


@pytest.mark.parametrize("path", [
    "/blob.xyz",
    "/Makefile",
    "/archive.tar.gz",
    "/trailing.",
])
def test_unknown_falls_back(path):
    assert get_mime_type(path) == DEFAULT_MIME_TYPE == "application/octet-stream"


def test_lookup_is_case_sensitive():
    assert get_mime_type("/INDEX.HTML") == DEFAULT_MIME_TYPE


def test_last_dot_wins():
    assert get_extension("/site.min.css") == "css"


def test_dot_in_directory_ignored():
    assert get_extension("/v1.2/README") == ""
    assert get_mime_type("/v1.2/README") == DEFAULT_MIME_TYPE


def test_hidden_file():
    assert get_extension("/.json") == "json"


def test_table_is_read_only():
    with pytest.raises(TypeError):
        MIME_TYPES["exe"] = "application/x-msdownload"


def test_custom_table():
    assert get_mime_type("/a.md", {"md": "text/markdown"}) == "text/markdown"
    assert get_mime_type("/a.html", {"md": "text/markdown"}) == DEFAULT_MIME_TYPE
