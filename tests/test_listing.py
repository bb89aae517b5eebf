"""Tests for list filtering and status glyphs."""

import re

import pytest

from plugctl.engine import PluginStatus
from plugctl.listing import glyph, select_plugins
from plugctl.models import Plugin


def make_status(catalog, explicit=(), implicit=(), missing=(), running=()):
    return PluginStatus(
        catalog=list(catalog),
        explicit=set(explicit),
        implicit=set(implicit),
        missing=set(missing),
        running=set(running),
        node_reachable=True,
    )


@pytest.fixture
def broker_catalog():
    return [
        Plugin(name="rabbitmq_mqtt", version="3.12"),
        Plugin(name="rabbitmq_stomp", version="3.12"),
        Plugin(name="rabbitmq_web_mqtt", version="3.12", dependencies=("rabbitmq_mqtt",)),
    ]


class TestSelectPlugins:
    """Tests for select_plugins."""

    def test_pattern_inside_name(self, broker_catalog):
        """Test a pattern matches anywhere in the name."""
        status = make_status(broker_catalog)

        names = [p.name for p in select_plugins(status, pattern="mqtt")]

        assert names == ["rabbitmq_mqtt", "rabbitmq_web_mqtt"]

    def test_anchored_pattern(self, broker_catalog):
        """Test an explicit anchor is respected."""
        status = make_status(broker_catalog)
        assert [p.name for p in select_plugins(status, pattern="^rabbitmq_s")] == ["rabbitmq_stomp"]

    def test_missing_included(self, broker_catalog):
        """Test enabled names absent from the catalog are selected too."""
        status = make_status(broker_catalog, explicit={"gone"}, missing={"gone"})
        assert [p.name for p in select_plugins(status, only_explicit=True)] == ["gone"]

    def test_only_enabled(self, broker_catalog):
        """Test -e keeps explicit and implicit plugins."""
        status = make_status(
            broker_catalog,
            explicit={"rabbitmq_web_mqtt"},
            implicit={"rabbitmq_mqtt"},
        )
        names = [p.name for p in select_plugins(status, only_enabled=True)]
        assert names == ["rabbitmq_mqtt", "rabbitmq_web_mqtt"]

    def test_invalid_pattern(self, broker_catalog):
        """Test a bad regex raises re.error."""
        with pytest.raises(re.error):
            select_plugins(make_status(broker_catalog), pattern="(")


class TestGlyph:
    """Tests for glyph."""

    def test_missing_takes_precedence(self):
        """Test a missing plugin shows ! even when explicitly enabled."""
        status = make_status([], explicit={"gone"}, missing={"gone"})
        assert glyph(Plugin(name="gone"), status) == "[! ]"

    def test_implicit_running(self, broker_catalog):
        """Test an implicit dependency running on the node."""
        status = make_status(broker_catalog, implicit={"rabbitmq_mqtt"}, running={"rabbitmq_mqtt"})
        assert glyph(broker_catalog[0], status) == "[e*]"
