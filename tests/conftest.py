"""Shared fakes for plugctl tests."""

import os
import time
from typing import Iterable, List, Optional, Set

import pytest

from plugctl.models import ActivePlugins, Plugin
from plugctl.store import StateStoreError


class FakeCatalog:
    """In-memory catalog reader."""

    def __init__(self, plugins: Optional[List[Plugin]] = None):
        self.plugins = list(plugins or [])
        self.calls = 0

    def list(self) -> List[Plugin]:
        self.calls += 1
        return list(self.plugins)


class MemoryStore:
    """In-memory enabled plugins store."""

    def __init__(self, enabled: Optional[Iterable[str]] = None, fail_writes: bool = False):
        self.enabled: Set[str] = set(enabled or [])
        self.fail_writes = fail_writes
        self.writes: List[Set[str]] = []

    def read_enabled(self) -> Set[str]:
        return set(self.enabled)

    def write_enabled(self, names: Iterable[str]) -> None:
        if self.fail_writes:
            raise StateStoreError("disk full")
        self.enabled = set(names)
        self.writes.append(set(names))


class FakeNode:
    """Scriptable node client.

    ``active_plugins`` of None means the node cannot be reached.
    ``rpc_delay_s`` delays enable/disable; ``rpc_error`` is raised from them.
    """

    def __init__(
        self,
        active_plugins: Optional[Iterable[str]] = (),
        alive: bool = True,
        rpc_delay_s: float = 0.0,
        rpc_error: Optional[Exception] = None,
        name: str = "node1:15680",
    ):
        self.active_plugins = None if active_plugins is None else set(active_plugins)
        self.alive = alive
        self.rpc_delay_s = rpc_delay_s
        self.rpc_error = rpc_error
        self.name = name
        self.calls: List[tuple] = []

    def ping(self) -> bool:
        self.calls.append(("ping",))
        return self.alive

    def active(self) -> ActivePlugins:
        self.calls.append(("active",))
        if self.active_plugins is None:
            return ActivePlugins.unreachable()
        return ActivePlugins.live(self.active_plugins)

    def _change(self, action: str, names: Iterable[str]) -> None:
        self.calls.append((action, set(names)))
        if self.rpc_delay_s:
            time.sleep(self.rpc_delay_s)
        if self.rpc_error is not None:
            raise self.rpc_error

    def enable(self, names: Iterable[str]) -> None:
        self._change("enable", names)

    def disable(self, names: Iterable[str]) -> None:
        self._change("disable", names)

    @property
    def rpc_calls(self) -> List[tuple]:
        return [c for c in self.calls if c[0] in ("enable", "disable")]


@pytest.fixture
def chain_catalog() -> List[Plugin]:
    """A <- B <- C: B depends on A, C depends on B."""
    return [
        Plugin(name="A", version="1.0"),
        Plugin(name="B", version="1.0", dependencies=("A",)),
        Plugin(name="C", version="1.0", dependencies=("B",)),
    ]


@pytest.fixture
def isolated_env(tmp_path, monkeypatch):
    """Private config dir and cwd, with no PLUGCTL_* variables inherited."""
    environ = {k: v for k, v in os.environ.items() if not k.startswith("PLUGCTL_")}
    monkeypatch.setattr(os, "environ", environ)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.chdir(tmp_path)
    return tmp_path
