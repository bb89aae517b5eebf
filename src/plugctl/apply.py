"""Pushing a plugin change to a running node.

The change is sent as a single RPC run on a worker thread. The caller's
thread waits on it in short ticks, reporting progress after each tick, until
the node answers or goes away. There is no overall deadline.

    IDLE -> DISPATCHED -> POLLING* -> DONE | NODE_DOWN | REMOTE_ERROR

When the node cannot be pinged, nothing is dispatched and the change stays
pending until the node next starts (it has already been persisted).
"""

from __future__ import annotations

import concurrent.futures
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Iterable, Optional, Set

from .node import NodeClient, NodeDownError, NodeRPCError

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL_S = 1.0


class ApplyState(str, Enum):
    IDLE = "idle"
    DISPATCHED = "dispatched"
    POLLING = "polling"
    DONE = "done"
    NODE_DOWN = "node_down"
    REMOTE_ERROR = "remote_error"


@dataclass
class ApplyReport:
    """How a live apply ended."""
    state: ApplyState
    action: str
    targets: Set[str] = field(default_factory=set)
    dispatched: bool = False
    error: Any = None                           # Raw payload from the node
    message: str = ""
    ticks: int = 0

    @property
    def applied(self) -> bool:
        return self.state == ApplyState.DONE


def _pending_message(action: str) -> str:
    verb = "started" if action == "enable" else "stopped"
    return (
        f"Plugin configuration has changed. Plugins were not {verb} since the node is down. "
        "Changes pending until next start."
    )


class LiveApplier:
    """Runs one enable/disable RPC against a node and waits for it."""

    def __init__(
        self,
        node: NodeClient,
        poll_interval_s: float = DEFAULT_POLL_INTERVAL_S,
        on_progress: Optional[Callable[[], None]] = None,
        on_state: Optional[Callable[[ApplyState], None]] = None,
    ):
        self.node = node
        self.poll_interval_s = poll_interval_s
        self.on_progress = on_progress
        self.on_state = on_state
        self.state = ApplyState.IDLE

    def _enter(self, state: ApplyState) -> None:
        logger.debug("Live apply on %s: %s -> %s", self.node.name, self.state.value, state.value)
        self.state = state
        if self.on_state:
            self.on_state(state)

    def apply(self, action: str, targets: Iterable[str]) -> ApplyReport:
        if action not in ("enable", "disable"):
            raise ValueError(f"Unknown action: {action}")
        targets = set(targets)
        self.state = ApplyState.IDLE

        if not self.node.ping():
            self._enter(ApplyState.NODE_DOWN)
            return ApplyReport(
                state=ApplyState.NODE_DOWN,
                action=action,
                targets=targets,
                message=_pending_message(action),
            )

        call = self.node.enable if action == "enable" else self.node.disable
        executor = concurrent.futures.ThreadPoolExecutor(max_workers=1, thread_name_prefix="plugctl-rpc")
        try:
            future = executor.submit(call, targets)
            self._enter(ApplyState.DISPATCHED)
            return self._wait(future, action, targets)
        finally:
            executor.shutdown(wait=False)

    def _wait(self, future: concurrent.futures.Future, action: str, targets: Set[str]) -> ApplyReport:
        ticks = 0
        while True:
            try:
                future.result(timeout=self.poll_interval_s)
            except concurrent.futures.TimeoutError:
                ticks += 1
                if self.state != ApplyState.POLLING:
                    self._enter(ApplyState.POLLING)
                if self.on_progress:
                    self.on_progress()
                continue
            except NodeDownError as e:
                self._enter(ApplyState.NODE_DOWN)
                return ApplyReport(
                    state=ApplyState.NODE_DOWN,
                    action=action,
                    targets=targets,
                    dispatched=True,
                    error=e.reason,
                    message=f"Unable to contact {self.node.name}. "
                            "Please start the node to apply your changes.",
                    ticks=ticks,
                )
            except NodeRPCError as e:
                self._enter(ApplyState.REMOTE_ERROR)
                return ApplyReport(
                    state=ApplyState.REMOTE_ERROR,
                    action=action,
                    targets=targets,
                    dispatched=True,
                    error=e.payload,
                    message=f"Unable to {action} plugin(s). "
                            "Please restart the node to apply your changes.",
                    ticks=ticks,
                )

            self._enter(ApplyState.DONE)
            return ApplyReport(
                state=ApplyState.DONE,
                action=action,
                targets=targets,
                dispatched=True,
                ticks=ticks,
            )
