"""Node address helpers.

Users name a node in whichever way is handy:

- localhost:15680
- http://node1.internal:15680
- https://node1.internal:15680/some/path

Every node endpoint lives at the server root, so any path component is
dropped and the scheme defaults to http.
"""

from __future__ import annotations

from urllib.parse import urlparse


def _ensure_scheme(node: str) -> str:
    node = (node or "").strip()
    if not node:
        return node
    if "://" not in node:
        return "http://" + node
    return node


def node_url(node: str) -> str:
    """Return the node's root URL: scheme://host:port"""
    u = urlparse(_ensure_scheme(node))
    scheme = u.scheme or "http"
    netloc = u.netloc or u.path
    return f"{scheme}://{netloc}".rstrip("/")


def node_display(node: str) -> str:
    """Short host:port form used in messages."""
    u = urlparse(_ensure_scheme(node))
    return u.netloc or (node or "").strip()


def endpoint(node: str, path: str) -> str:
    return node_url(node) + "/" + path.lstrip("/")
