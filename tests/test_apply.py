"""Tests for the live apply protocol."""

import pytest

from plugctl.apply import ApplyState, LiveApplier
from plugctl.node import NodeDownError, NodeRPCError

from conftest import FakeNode


class TestLiveApplier:
    """Tests for LiveApplier."""

    def test_done(self):
        """Test a successful enable."""
        node = FakeNode()
        states = []
        applier = LiveApplier(node, poll_interval_s=0.01, on_state=states.append)

        report = applier.apply("enable", {"A", "B"})

        assert report.state == ApplyState.DONE
        assert report.applied is True
        assert report.dispatched is True
        assert node.rpc_calls == [("enable", {"A", "B"})]
        assert states[0] == ApplyState.DISPATCHED
        assert states[-1] == ApplyState.DONE

    def test_disable_calls_disable(self):
        """Test the action selects the RPC."""
        node = FakeNode()
        LiveApplier(node, poll_interval_s=0.01).apply("disable", {"A"})
        assert node.rpc_calls == [("disable", {"A"})]

    def test_node_down_before_dispatch(self):
        """Test nothing is sent when the ping fails."""
        node = FakeNode(alive=False)
        applier = LiveApplier(node, poll_interval_s=0.01)

        report = applier.apply("enable", {"A"})

        assert report.state == ApplyState.NODE_DOWN
        assert report.dispatched is False
        assert node.rpc_calls == []
        assert "not started" in report.message
        assert "pending until next start" in report.message

    def test_node_down_before_dispatch_disable_wording(self):
        """Test the pending message names the right verb."""
        report = LiveApplier(FakeNode(alive=False)).apply("disable", {"A"})
        assert "not stopped" in report.message

    def test_progress_while_waiting(self):
        """Test progress is reported on every poll timeout."""
        node = FakeNode(rpc_delay_s=0.3)
        ticks = []
        states = []
        applier = LiveApplier(
            node,
            poll_interval_s=0.05,
            on_progress=lambda: ticks.append(1),
            on_state=states.append,
        )

        report = applier.apply("enable", {"A"})

        assert report.state == ApplyState.DONE
        assert len(ticks) >= 2
        assert report.ticks == len(ticks)
        assert states[:2] == [ApplyState.DISPATCHED, ApplyState.POLLING]

    def test_node_down_mid_call(self):
        """Test the node disappearing while the call runs."""
        node = FakeNode(rpc_error=NodeDownError("node1:15680", "connection reset"))
        applier = LiveApplier(node, poll_interval_s=0.01)

        report = applier.apply("enable", {"A"})

        assert report.state == ApplyState.NODE_DOWN
        assert report.dispatched is True
        assert "Please start the node" in report.message

    def test_remote_error(self):
        """Test an error from the node is surfaced with its payload."""
        node = FakeNode(rpc_error=NodeRPCError("enable", {"reason": "boot failed"}))
        applier = LiveApplier(node, poll_interval_s=0.01)

        report = applier.apply("enable", {"A"})

        assert report.state == ApplyState.REMOTE_ERROR
        assert report.error == {"reason": "boot failed"}
        assert "Unable to enable plugin(s)" in report.message
        assert "restart" in report.message

    def test_unexpected_error_propagates(self):
        """Test programmer errors are not turned into reports."""
        node = FakeNode(rpc_error=KeyError("boom"))
        applier = LiveApplier(node, poll_interval_s=0.01)

        with pytest.raises(KeyError):
            applier.apply("enable", {"A"})

    def test_unknown_action(self):
        """Test an unknown action is rejected."""
        with pytest.raises(ValueError):
            LiveApplier(FakeNode()).apply("restart", {"A"})
