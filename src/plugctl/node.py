"""Node client.

Talks to a running service node over HTTP:

- GET  /health                 liveness probe
- GET  /api/plugins/active     {"plugins": [...]}
- POST /api/plugins/enable     {"plugins": [...]}
- POST /api/plugins/disable    {"plugins": [...]}

A node that cannot be reached is always reported apart from a node that
answered with an error.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, List, Optional

import requests

from .models import ActivePlugins, PlugctlError
from .urls import endpoint, node_display

logger = logging.getLogger(__name__)

DEFAULT_PING_TIMEOUT_S = 1.5
DEFAULT_QUERY_TIMEOUT_S = 10.0


class NodeDownError(PlugctlError):
    """The node went away (or was never there) during a call."""

    def __init__(self, node: str, reason: str = ""):
        self.node = node
        self.reason = reason
        super().__init__(f"Node {node} is down" + (f": {reason}" if reason else ""))


class NodeRPCError(PlugctlError):
    """The node answered, but refused or failed the operation."""

    def __init__(self, action: str, payload: Any):
        self.action = action
        self.payload = payload
        super().__init__(f"Node failed to {action} plugins: {payload}")


class NodeClient:
    """HTTP client for a node's plugin endpoints."""

    def __init__(
        self,
        node: str,
        ping_timeout_s: float = DEFAULT_PING_TIMEOUT_S,
        query_timeout_s: float = DEFAULT_QUERY_TIMEOUT_S,
        session: Optional[requests.Session] = None,
    ):
        self.node = node
        self.ping_timeout_s = ping_timeout_s
        self.query_timeout_s = query_timeout_s
        self._session = session or requests.Session()
        self._session.headers["Accept"] = "application/json"

    @property
    def name(self) -> str:
        return node_display(self.node)

    def ping(self) -> bool:
        """Cheap reachability check, separate from the plugin calls."""
        try:
            r = self._session.get(endpoint(self.node, "/health"), timeout=self.ping_timeout_s)
            return r.status_code == 200
        except requests.exceptions.RequestException as e:
            logger.debug("Ping %s failed: %s", self.name, e)
            return False

    def active(self) -> ActivePlugins:
        """Ask the node which plugins it is running."""
        url = endpoint(self.node, "/api/plugins/active")
        try:
            r = self._session.get(url, timeout=self.query_timeout_s)
            r.raise_for_status()
            data = r.json()
        except (requests.exceptions.RequestException, ValueError) as e:
            logger.debug("Active plugins query to %s failed: %s", self.name, e)
            return ActivePlugins.unreachable()

        names = data.get("plugins") if isinstance(data, dict) else data
        if not isinstance(names, list):
            logger.debug("Unexpected active plugins payload from %s: %r", self.name, data)
            return ActivePlugins.unreachable()

        logger.debug("Node %s reports active: %s", self.name, names)
        return ActivePlugins.live(str(n) for n in names)

    def _change(self, action: str, names: Iterable[str]) -> None:
        plugins: List[str] = sorted(names)
        url = endpoint(self.node, f"/api/plugins/{action}")
        logger.debug("POST %s %s", url, plugins)

        try:
            # No read timeout: the caller polls and reports progress
            r = self._session.post(url, json={"plugins": plugins}, timeout=None)
        except (requests.exceptions.ConnectionError, requests.exceptions.Timeout) as e:
            raise NodeDownError(self.name, str(e))
        except requests.exceptions.RequestException as e:
            raise NodeRPCError(action, str(e))

        try:
            body = r.json() if r.content else {}
        except ValueError:
            body = r.text

        if r.status_code >= 300:
            raise NodeRPCError(action, body or f"HTTP {r.status_code}")
        if isinstance(body, dict) and body.get("status") == "error":
            raise NodeRPCError(action, body.get("error", body))

    def enable(self, names: Iterable[str]) -> None:
        self._change("enable", names)

    def disable(self, names: Iterable[str]) -> None:
        self._change("disable", names)
