"""plugctl CLI - manage the plugins enabled on a service node.

Usage:
    plugctl list [pattern] [-v|-m] [-E|-e]   # Show available and enabled plugins
    plugctl enable <name>... [--offline]     # Enable plugins and their dependencies
    plugctl disable <name>... [--offline]    # Disable plugins and their dependents

Global options:
    -n NODE      Node to talk to (host:port or URL)
    --debug      Log diagnostics to stderr

Exit codes: 0 success, 1 usage error, 2 operational error.
"""

from __future__ import annotations

import argparse
import logging
import re
from typing import Iterable, List, Optional

from rich.console import Console

from .apply import ApplyReport, ApplyState, LiveApplier
from .catalog import CatalogReader
from .config import Settings
from .engine import Outcome, OutcomeKind, PluginReconciler
from .listing import ListFormat, render, select_plugins
from .models import PlugctlError
from .node import NodeClient
from .store import EnabledPluginsStore

logger = logging.getLogger(__name__)

console = Console()
err_console = Console(stderr=True, soft_wrap=True)

EXIT_OK = 0
EXIT_USAGE = 1
EXIT_ERROR = 2


def print_error(message: str) -> None:
    err_console.print(f"Error: {message}", markup=False, highlight=False, style="red")


def print_list(header: str, names: Iterable[str]) -> None:
    console.print(header, markup=False, highlight=False)
    for name in sorted(names):
        console.print(f"  {name}", markup=False, highlight=False)


def _configure_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def build_reconciler(settings: Settings) -> PluginReconciler:
    node = NodeClient(settings.node, ping_timeout_s=settings.ping_timeout_s)
    return PluginReconciler(
        catalog=CatalogReader(settings.plugins_dir),
        store=EnabledPluginsStore(settings.enabled_plugins_file),
        node=node,
    )


# --- list ---

def cmd_list(args: argparse.Namespace, settings: Settings) -> int:
    """Show plugins with their enabled/running status."""
    if args.verbose and args.minimal:
        print_error("Cannot specify -m and -v together")
        return EXIT_USAGE

    fmt = ListFormat.NORMAL
    if args.verbose:
        fmt = ListFormat.VERBOSE
    elif args.minimal:
        fmt = ListFormat.MINIMAL

    reconciler = build_reconciler(settings)
    status = reconciler.status(probe_node=not args.offline)

    try:
        plugins = select_plugins(
            status,
            pattern=args.pattern,
            only_explicit=args.enabled,
            only_enabled=args.enabled_all,
        )
    except re.error as e:
        print_error(f"invalid pattern '{args.pattern}': {e}")
        return EXIT_ERROR

    render(console, plugins, status, fmt=fmt, node_name=reconciler.node.name)
    return EXIT_OK


# --- enable / disable ---

def _report_outcome(outcome: Outcome) -> None:
    if outcome.warnings:
        print_list("Warning: the following plugins could not be found:", outcome.warnings)

    if outcome.kind == OutcomeKind.UNCHANGED:
        console.print("Plugin configuration unchanged.")
    elif outcome.kind == OutcomeKind.ENABLED:
        print_list("The following plugins have been enabled:", outcome.changed)
    elif outcome.kind == OutcomeKind.DISABLED:
        print_list("The following plugins have been disabled:", outcome.changed)


def _report_apply(report: ApplyReport) -> None:
    if report.state == ApplyState.DONE:
        console.print(" done.", highlight=False)
        return

    if not report.dispatched:
        console.print(f"[yellow]{report.message}[/yellow]")
        console.print("Please start the node to apply your changes.")
        return

    console.print(" error.", style="red", highlight=False)
    console.print(report.message, markup=False)
    if report.state == ApplyState.REMOTE_ERROR:
        console.print(f"Error: {report.error}", markup=False, style="yellow")


def live_apply(node: NodeClient, outcome: Outcome, poll_interval_s: float) -> Optional[ApplyReport]:
    """Push a committed change to the node, showing progress dots."""
    if not outcome.changed:
        return None

    def on_state(state: ApplyState) -> None:
        if state == ApplyState.DISPATCHED:
            console.print(f"Changing plugin configuration on {node.name}.", end="", highlight=False)

    applier = LiveApplier(
        node,
        poll_interval_s=poll_interval_s,
        on_progress=lambda: console.print(".", end="", highlight=False),
        on_state=on_state,
    )
    report = applier.apply(outcome.action, outcome.changed)
    _report_apply(report)
    return report


def _run_change(action: str, args: argparse.Namespace, settings: Settings) -> int:
    reconciler = build_reconciler(settings)
    if action == "enable":
        outcome = reconciler.enable(args.plugins, offline=args.offline)
    else:
        outcome = reconciler.disable(args.plugins, offline=args.offline)

    if not outcome.ok:
        if outcome.warnings:
            print_list("Warning: the following plugins could not be found:", outcome.warnings)
        print_error(outcome.message)
        return EXIT_ERROR

    _report_outcome(outcome)
    # Already persisted; live apply problems are reported but not fatal
    live_apply(reconciler.node, outcome, settings.poll_interval_s)
    return EXIT_OK


def cmd_enable(args: argparse.Namespace, settings: Settings) -> int:
    """Enable plugins (and everything they depend on)."""
    return _run_change("enable", args, settings)


def cmd_disable(args: argparse.Namespace, settings: Settings) -> int:
    """Disable plugins (and everything that depends on them)."""
    return _run_change("disable", args, settings)


# --- Parser Setup ---

def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="plugctl",
        description="plugctl: enable and disable plugins on a service node",
    )
    parser.add_argument("-n", "--node", help="Node to contact (host:port or URL)")
    parser.add_argument("--debug", action="store_true", help="Log diagnostics to stderr")

    sub = parser.add_subparsers(dest="subcmd")

    # list
    p_list = sub.add_parser("list", help="List plugins")
    p_list.add_argument("pattern", nargs="?", default=".*", help="Regular expression matched against plugin names")
    p_list.add_argument("-v", "--verbose", action="store_true", help="Show version, dependencies and description")
    p_list.add_argument("-m", "--minimal", action="store_true", help="Show plugin names only")
    p_list.add_argument("-E", dest="enabled", action="store_true", help="Only explicitly enabled plugins")
    p_list.add_argument("-e", dest="enabled_all", action="store_true", help="Only explicitly or implicitly enabled plugins")
    p_list.add_argument("--offline", action="store_true", help="Do not contact the node")
    p_list.set_defaults(func=cmd_list)

    # enable
    p_enable = sub.add_parser("enable", help="Enable plugins")
    p_enable.add_argument("plugins", nargs="*", help="Plugin names")
    p_enable.add_argument("--offline", action="store_true", help="Proceed even if the node cannot be contacted")
    p_enable.set_defaults(func=cmd_enable)

    # disable
    p_disable = sub.add_parser("disable", help="Disable plugins")
    p_disable.add_argument("plugins", nargs="*", help="Plugin names")
    p_disable.add_argument("--offline", action="store_true", help="Proceed even if the node cannot be contacted")
    p_disable.set_defaults(func=cmd_disable)

    return parser


def run(argv: Optional[List[str]] = None) -> int:
    parser = create_parser()
    try:
        args = parser.parse_args(argv)
    except SystemExit as e:
        # argparse exits 2 on bad usage; 2 is reserved for operational errors here
        return EXIT_OK if e.code in (0, None) else EXIT_USAGE

    _configure_logging(args.debug)

    if not getattr(args, "func", None):
        print_error("could not recognise command")
        parser.print_usage()
        return EXIT_USAGE

    settings = Settings.load()
    if args.node:
        settings.node = args.node

    try:
        return args.func(args, settings)
    except PlugctlError as e:
        print_error(str(e))
        return EXIT_ERROR
    except Exception as e:
        logger.debug("Unhandled error", exc_info=True)
        print_error(f"unexpected error: {e}")
        return EXIT_ERROR


def main() -> None:
    raise SystemExit(run())


if __name__ == "__main__":
    main()
