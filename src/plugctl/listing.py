"""Filtering and rendering for ``plugctl list``."""

from __future__ import annotations

import re
from enum import Enum
from typing import List

from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.text import Text

from .engine import PluginStatus
from .models import Plugin


class ListFormat(str, Enum):
    NORMAL = "normal"
    VERBOSE = "verbose"
    MINIMAL = "minimal"


LEGEND = (
    " Configured: E = explicitly enabled; e = implicitly enabled; ! = missing\n"
    " | Status:   * = running on {node}\n"
    " |/"
)


def select_plugins(
    status: PluginStatus,
    pattern: str = ".*",
    only_explicit: bool = False,
    only_enabled: bool = False,
) -> List[Plugin]:
    """Pick the plugins to show, missing ones included, sorted by (name, version).

    Raises ``re.error`` for an invalid pattern.
    """
    regex = re.compile(pattern)
    candidates = list(status.catalog) + [Plugin(name=n) for n in status.missing]

    selected = set()
    for plugin in candidates:
        if not regex.search(plugin.name):
            continue
        if only_explicit and plugin.name not in status.explicit:
            continue
        if only_enabled and plugin.name not in status.explicit | status.implicit:
            continue
        selected.add(plugin)

    return sorted(selected, key=Plugin.sort_key)


def glyph(plugin: Plugin, status: PluginStatus) -> str:
    name = plugin.name
    if name in status.missing:
        enabled = "!"
    elif name in status.explicit:
        enabled = "E"
    elif name in status.implicit:
        enabled = "e"
    else:
        enabled = " "
    running = "*" if name in status.running else " "
    return f"[{enabled}{running}]"


def render(
    console: Console,
    plugins: List[Plugin],
    status: PluginStatus,
    fmt: ListFormat = ListFormat.NORMAL,
    node_name: str = "",
) -> None:
    if fmt == ListFormat.MINIMAL:
        for plugin in plugins:
            console.print(plugin.name, markup=False, highlight=False)
        return

    console.print(LEGEND.format(node=node_name), markup=False, highlight=False)

    if fmt == ListFormat.VERBOSE:
        for plugin in plugins:
            console.print(f"{glyph(plugin, status)} {plugin.name}", markup=False, highlight=False)
            if plugin.version is not None:
                console.print(f"     Version:     \t{plugin.version}", markup=False)
            if plugin.dependencies:
                deps = ", ".join(plugin.dependencies)
                console.print(f"     Dependencies:\t{deps}", markup=False)
            if plugin.description is not None:
                console.print(f"     Description: \t{plugin.description}", markup=False)
            console.print()
        return

    table = Table(show_header=False, box=None, pad_edge=False)
    table.add_column("Status", no_wrap=True)
    table.add_column("Name", style="cyan", no_wrap=True)
    table.add_column("Version", style="dim")

    for plugin in plugins:
        table.add_row(
            Text(glyph(plugin, status)),
            Text(plugin.name),
            escape(plugin.version or ""),
        )

    if plugins:
        console.print(table)
