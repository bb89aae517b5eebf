"""Plugin enablement reconciliation.

Works out what the persisted explicit set and the node's active set must
become after an enable or disable request. The ``plan_*`` functions are pure
and take everything they need as arguments; ``PluginReconciler`` wires them
to a catalog, a state store and a node, and does the persisting.

Expected failures (missing plugins, unreachable node, failed write) come
back as an ``Outcome`` carrying an ``ErrorKind``; nothing here raises for
them.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, List, Optional, Set

from .catalog import CatalogReader
from .closure import closure, dependencies_of, dependents_of
from .models import ActivePlugins, Plugin, plugin_names
from .node import NodeClient
from .store import EnabledPluginsStore, StateStoreError

logger = logging.getLogger(__name__)


class OutcomeKind(str, Enum):
    ENABLED = "enabled"
    DISABLED = "disabled"
    UNCHANGED = "unchanged"
    FAILED = "failed"


class ErrorKind(str, Enum):
    INVALID_REQUEST = "invalid_request"
    MISSING_PLUGINS = "missing_plugins"
    MISSING_DEPENDENCIES = "missing_dependencies"
    NODE_UNREACHABLE = "node_unreachable"
    PERSISTENCE_FAILED = "persistence_failed"


@dataclass
class Outcome:
    """Result of an enable or disable request."""
    action: str                                 # "enable" or "disable"
    kind: OutcomeKind
    error: Optional[ErrorKind] = None
    message: str = ""

    changed: Set[str] = field(default_factory=set)  # Delta to push to the node
    new_explicit: Set[str] = field(default_factory=set)
    implicit_before: Set[str] = field(default_factory=set)
    implicit_after: Set[str] = field(default_factory=set)

    missing_plugins: Set[str] = field(default_factory=set)
    missing_dependencies: Set[str] = field(default_factory=set)
    warnings: Set[str] = field(default_factory=set)  # Unknown names on disable

    persist: bool = False

    @property
    def ok(self) -> bool:
        return self.kind != OutcomeKind.FAILED

    @classmethod
    def failed(cls, action: str, error: ErrorKind, message: str, **kwargs) -> "Outcome":
        return cls(action=action, kind=OutcomeKind.FAILED, error=error, message=message, **kwargs)


def format_missing(desc: str, names: Iterable[str]) -> str:
    body = ", ".join(sorted(names))
    return f"The following {desc} could not be found: {body}"


def unreachable_message(node_name: str) -> str:
    return (
        f"Unable to contact node: {node_name} - "
        "To make your changes anyway, try again with --offline"
    )


def plan_enable(
    requested: Iterable[str],
    explicit: Iterable[str],
    catalog: List[Plugin],
    active: ActivePlugins,
    offline: bool = False,
    node_name: str = "",
) -> Outcome:
    """Plan an enable request without touching any state."""
    requested = set(requested)
    explicit = set(explicit)

    if not requested:
        return Outcome.failed("enable", ErrorKind.INVALID_REQUEST,
                              "Not enough arguments for 'enable'")

    available = plugin_names(catalog)
    implicit_before = dependencies_of(explicit, catalog) - explicit
    new_explicit = explicit | requested
    missing_plugins = requested - available
    implicit_after = dependencies_of(new_explicit, catalog) - new_explicit
    missing_deps = (implicit_after - available) - missing_plugins

    if missing_plugins or missing_deps:
        parts = []
        if missing_plugins:
            parts.append(format_missing("plugins", missing_plugins))
        if missing_deps:
            parts.append(format_missing("dependencies", missing_deps))
        error = ErrorKind.MISSING_PLUGINS if missing_plugins else ErrorKind.MISSING_DEPENDENCIES
        return Outcome.failed(
            "enable", error, "; ".join(parts),
            missing_plugins=missing_plugins,
            missing_dependencies=missing_deps,
        )

    if active.reachable:
        basis = set(active.plugins)
    elif offline:
        basis = explicit | implicit_before
    else:
        return Outcome.failed("enable", ErrorKind.NODE_UNREACHABLE, unreachable_message(node_name))

    target = (new_explicit | implicit_after) - basis
    delta = target - (implicit_before - (new_explicit - explicit))
    logger.debug("enable: new_explicit=%s implicit_after=%s target=%s delta=%s",
                 sorted(new_explicit), sorted(implicit_after), sorted(target), sorted(delta))

    return Outcome(
        action="enable",
        kind=OutcomeKind.ENABLED if delta else OutcomeKind.UNCHANGED,
        changed=delta,
        new_explicit=new_explicit,
        implicit_before=implicit_before,
        implicit_after=implicit_after,
        persist=True,
    )


def plan_disable(
    requested: Iterable[str],
    explicit: Iterable[str],
    catalog: List[Plugin],
    active: ActivePlugins,
    offline: bool = False,
    node_name: str = "",
) -> Outcome:
    """Plan a disable request without touching any state."""
    requested = set(requested)
    explicit = set(explicit)

    if not requested:
        return Outcome.failed("disable", ErrorKind.INVALID_REQUEST,
                              "Not enough arguments for 'disable'")

    missing = requested - plugin_names(catalog)
    to_disable = dependents_of(requested, catalog)
    new_explicit = explicit - to_disable

    if active.reachable and active.plugins:
        running = set(active.plugins)
    elif active.reachable or offline:
        running = set(explicit)
    else:
        return Outcome.failed("disable", ErrorKind.NODE_UNREACHABLE,
                              unreachable_message(node_name), warnings=missing)

    # Size comparison only; two different sets of equal size count as unchanged
    if len(running) == len(new_explicit):
        return Outcome(
            action="disable",
            kind=OutcomeKind.UNCHANGED,
            new_explicit=new_explicit,
            warnings=missing,
        )

    implicit_before = closure(False, running, catalog)
    implicit_after = closure(False, new_explicit, catalog)
    delta = implicit_before - implicit_after
    logger.debug("disable: to_disable=%s new_explicit=%s delta=%s",
                 sorted(to_disable), sorted(new_explicit), sorted(delta))

    return Outcome(
        action="disable",
        kind=OutcomeKind.DISABLED,
        changed=delta,
        new_explicit=new_explicit,
        implicit_before=implicit_before,
        implicit_after=implicit_after,
        warnings=missing,
        persist=True,
    )


@dataclass
class PluginStatus:
    """Snapshot used by the ``list`` command."""
    catalog: List[Plugin]
    explicit: Set[str]
    implicit: Set[str]
    missing: Set[str]
    running: Set[str]
    node_reachable: bool


class PluginReconciler:
    """Applies enable/disable plans against injected collaborators.

    Persistence always happens here, before anything is sent to the node;
    pushing the change to the node is left to ``LiveApplier``.
    """

    def __init__(self, catalog: CatalogReader, store: EnabledPluginsStore, node: NodeClient):
        self.catalog = catalog
        self.store = store
        self.node = node

    def _commit(self, outcome: Outcome) -> Outcome:
        if not outcome.persist:
            return outcome
        try:
            self.store.write_enabled(outcome.new_explicit)
        except StateStoreError as e:
            logger.debug("Discarding %s plan after failed write", outcome.action)
            return Outcome.failed(outcome.action, ErrorKind.PERSISTENCE_FAILED, str(e))
        return outcome

    def enable(self, names: Iterable[str], offline: bool = False) -> Outcome:
        names = list(names)
        if not names:
            return plan_enable(names, set(), [], ActivePlugins.unreachable())

        plugins = self.catalog.list()
        explicit = self.store.read_enabled()
        active = self.node.active()
        outcome = plan_enable(names, explicit, plugins, active,
                              offline=offline, node_name=self.node.name)
        return self._commit(outcome)

    def disable(self, names: Iterable[str], offline: bool = False) -> Outcome:
        names = list(names)
        if not names:
            return plan_disable(names, set(), [], ActivePlugins.unreachable())

        plugins = self.catalog.list()
        explicit = self.store.read_enabled()
        active = self.node.active()
        outcome = plan_disable(names, explicit, plugins, active,
                               offline=offline, node_name=self.node.name)
        return self._commit(outcome)

    def status(self, probe_node: bool = True) -> PluginStatus:
        plugins = self.catalog.list()
        explicit = self.store.read_enabled()
        enabled = dependencies_of(explicit, plugins)
        active = self.node.active() if probe_node else ActivePlugins.unreachable()
        # An unreachable node is shown as running everything that is enabled
        running = set(active.plugins) if active.reachable else set(enabled)
        return PluginStatus(
            catalog=plugins,
            explicit=explicit,
            implicit=enabled - explicit,
            missing=enabled - plugin_names(plugins),
            running=running,
            node_reachable=active.reachable,
        )
