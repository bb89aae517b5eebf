"""Dependency closure over the plugin catalog.

Forward closure follows "depends on" edges and yields everything a set of
plugins needs. Reverse closure follows the inverted edges and yields
everything that needs them, which is what a disable has to take down.
"""

from __future__ import annotations

from typing import Dict, Iterable, Set

from .models import Plugin


def _adjacency(reverse: bool, catalog: Iterable[Plugin]) -> Dict[str, Set[str]]:
    edges: Dict[str, Set[str]] = {}
    for plugin in catalog:
        for dep in plugin.dependencies:
            if reverse:
                edges.setdefault(dep, set()).add(plugin.name)
            else:
                edges.setdefault(plugin.name, set()).add(dep)
    return edges


def closure(reverse: bool, seeds: Iterable[str], catalog: Iterable[Plugin]) -> Set[str]:
    """Return every name reachable from ``seeds``, seeds included.

    The graph may contain cycles. Names that are not in the catalog are kept
    in the result; callers report them as missing.
    """
    edges = _adjacency(reverse, catalog)
    visited: Set[str] = set()
    pending = list(seeds)

    while pending:
        name = pending.pop()
        if name in visited:
            continue
        visited.add(name)
        for nxt in edges.get(name, ()):
            if nxt not in visited:
                pending.append(nxt)

    return visited


def dependencies_of(seeds: Iterable[str], catalog: Iterable[Plugin]) -> Set[str]:
    return closure(False, seeds, catalog)


def dependents_of(seeds: Iterable[str], catalog: Iterable[Plugin]) -> Set[str]:
    return closure(True, seeds, catalog)


def implicit(explicit: Iterable[str], catalog: Iterable[Plugin]) -> Set[str]:
    """Plugins enabled only because something explicit depends on them."""
    explicit = set(explicit)
    return dependencies_of(explicit, catalog) - explicit
