"""Plugin data models.

Defines catalog entries, the live node's active set, and the base error
type shared by the collaborators.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import FrozenSet, Iterable, Optional, Set, Tuple


class PlugctlError(Exception):
    """Base error for plugctl operations."""
    pass


@dataclass(frozen=True)
class Plugin:
    """A plugin as described by its catalog manifest."""
    name: str                                   # Unique symbolic identifier
    version: Optional[str] = None
    description: Optional[str] = None
    dependencies: Tuple[str, ...] = ()          # Direct deps, may be absent from catalog

    def __post_init__(self):
        # Manifests hand us lists; keep the instance hashable
        if not isinstance(self.dependencies, tuple):
            object.__setattr__(self, "dependencies", tuple(self.dependencies))

    @classmethod
    def from_dict(cls, data: dict, default_name: str = "") -> "Plugin":
        """Build a plugin from a manifest dictionary."""
        version = data.get("version")
        description = data.get("description")
        return cls(
            name=str(data.get("name") or default_name),
            version=str(version) if version is not None else None,
            description=str(description) if description is not None else None,
            dependencies=tuple(str(d) for d in data.get("dependencies", [])),
        )

    def sort_key(self) -> Tuple[str, str]:
        return (self.name, self.version or "")


@dataclass(frozen=True)
class ActivePlugins:
    """Plugins reported active by a node, or the fact that it could not be reached."""
    reachable: bool
    plugins: FrozenSet[str] = field(default_factory=frozenset)

    @classmethod
    def live(cls, names: Iterable[str]) -> "ActivePlugins":
        return cls(reachable=True, plugins=frozenset(names))

    @classmethod
    def unreachable(cls) -> "ActivePlugins":
        return cls(reachable=False)


def plugin_names(catalog: Iterable[Plugin]) -> Set[str]:
    """Return the names of the given plugins."""
    return {p.name for p in catalog}
