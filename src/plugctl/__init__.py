"""plugctl - plugin enablement for service nodes.

Keeps the persisted set of explicitly enabled plugins in step with a catalog
of available plugins and pushes changes to a running node:

- plugctl list      - Show available, enabled and running plugins
- plugctl enable    - Enable plugins and everything they depend on
- plugctl disable   - Disable plugins and everything that depends on them
"""

from .models import ActivePlugins, Plugin, PlugctlError, plugin_names
from .closure import closure, dependencies_of, dependents_of, implicit
from .catalog import CatalogError, CatalogReader
from .store import EnabledPluginsStore, StateStoreError
from .node import NodeClient, NodeDownError, NodeRPCError
from .engine import (
    ErrorKind,
    Outcome,
    OutcomeKind,
    PluginReconciler,
    PluginStatus,
    plan_disable,
    plan_enable,
)
from .apply import ApplyReport, ApplyState, LiveApplier

__all__ = [
    "ActivePlugins",
    "Plugin",
    "PlugctlError",
    "plugin_names",
    "closure",
    "dependencies_of",
    "dependents_of",
    "implicit",
    "CatalogError",
    "CatalogReader",
    "EnabledPluginsStore",
    "StateStoreError",
    "NodeClient",
    "NodeDownError",
    "NodeRPCError",
    "ErrorKind",
    "Outcome",
    "OutcomeKind",
    "PluginReconciler",
    "PluginStatus",
    "plan_disable",
    "plan_enable",
    "ApplyReport",
    "ApplyState",
    "LiveApplier",
]
