"""
=============================================================================
PATH SANITIZATION
=============================================================================

Turns an untrusted request target into a path that is guaranteed to stay
inside the document root.

=============================================================================
SECURITY: PATH TRAVERSAL
=============================================================================

    ATTACK ATTEMPT:
    ┌─────────────────────────────────────────────────────────────────────┐
    │  GET /../../../etc/passwd HTTP/1.1                                  │
    │  GET /%2e%2e/%2e%2e/etc/passwd HTTP/1.1                             │
    │  GET /img/..%2f..%2f..%2fetc/passwd HTTP/1.1                        │
    │                                                                      │
    │  Naive join:  "/srv/www" + "/../../../etc/passwd"                   │
    │               → /etc/passwd                (BREACH)                 │
    └─────────────────────────────────────────────────────────────────────┘

We do not try to DETECT an attack and reject it. We normalize the path
lexically so that an escape is impossible to express:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                       sanitize() pipeline                           │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   "/a/./b/../../../c%20d?x=1#top"                                   │
    │        │                                                             │
    │        ▼  1. cut at first "?" or "#"                                 │
    │   "/a/./b/../../../c%20d"                                           │
    │        │                                                             │
    │        ▼  2. "+" → " ", then percent-decode                          │
    │   "/a/./b/../../../c d"                                             │
    │        │                                                             │
    │        ▼  3. split on "/", drop "" and "."                           │
    │   ["a", "b", "..", "..", "..", "c d"]                               │
    │        │                                                             │
    │        ▼  4. ".." pops one segment, never past the root              │
    │   ["c d"]                                                            │
    │        │                                                             │
    │        ▼  5. "/" + each segment, or "/" if none left                 │
    │   "/c d"                                                             │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Decoding happens BEFORE splitting, so an encoded slash ("%2F") or an
encoded dot-dot ("%2e%2e") is just another separator or ".." by the time
step 3 sees it. Nothing that survives step 4 can be "..".

Note that this is purely lexical. A symlink inside the document root that
points elsewhere is followed by the OS like any other file; the root is
trusted content.

=============================================================================
"""

import os
from urllib.parse import unquote_to_bytes


def _decode(target: str) -> str:
    """
    Percent-decode a target and map "+" to a space.

    "+" is replaced first so that an encoded plus ("%2B") survives as a
    literal "+". Malformed escapes ("%zz", a trailing "%") are kept as
    they are. The decoded bytes are mapped to a str with the filesystem
    encoding, so any byte sequence round-trips to the same file name.
    """
    raw = target.replace("+", " ").encode("utf-8", "surrogateescape")
    return os.fsdecode(unquote_to_bytes(raw))


def sanitize_path(target: str) -> str:
    """
    Reduce a raw request target to a traversal-safe absolute path.

    Args:
        target: The request target exactly as received, possibly with a
                query string, fragment, percent-escapes and ".." segments.

    Returns:
        A path that starts with "/" and contains no "." or ".." segment.
        "/" when nothing is left.

    Examples:
        >>> sanitize_path("/../../etc/passwd")
        '/etc/passwd'
        >>> sanitize_path("/a/../../b")
        '/b'
        >>> sanitize_path("/docs/?page=2")
        '/docs'
    """
    for stop in ("?", "#"):
        cut = target.find(stop)
        if cut != -1:
            target = target[:cut]

    parts: list[str] = []
    for segment in _decode(target).split("/"):
        if segment in ("", "."):
            continue
        if segment == "..":
            if parts:
                parts.pop()
            continue
        parts.append(segment)

    if not parts:
        return "/"
    return "".join("/" + part for part in parts)


class PathResolver:
    """
    Maps request targets to filesystem paths under one document root.

    The root is fixed at construction and never changes, so a single
    resolver is shared by every worker without locking.

    Usage:
        resolver = PathResolver("/srv/www/")
        resolver.resolve("/")              # "/srv/www/index.html"
        resolver.resolve("/css/site.css")  # "/srv/www/css/site.css"
        resolver.resolve("/../secret")     # "/srv/www/secret"
    """

    def __init__(self, doc_root: str, index_file: str = "index.html"):
        # "/srv/www/" and "/srv/www" must produce the same joins
        self._doc_root = doc_root.rstrip("/")
        self._index_file = index_file

    @property
    def doc_root(self) -> str:
        return self._doc_root or "/"

    def resolve(self, target: str) -> str:
        """
        Sanitize a target, add the index file for directory paths, and
        join the result onto the document root.
        """
        path = sanitize_path(target)
        if path.endswith("/"):
            path += self._index_file
        return self._doc_root + path
