"""Tests for plugin discovery."""

import pytest
from infracanvas import plugins, synthesizers
from infracanvas.graph import GraphSnapshot, Node
from infracanvas.plugins import (
    ALL_GROUPS,
    SCHEMA_GROUP,
    SYNTHESIZER_GROUP,
    discover_plugins,
    discover_schemas,
    discover_synthesizers,
    list_plugins,
)
from infracanvas.records import Ref
from infracanvas.schema import SchemaStore


class FakeEntryPoint:
    def __init__(self, name, obj=None, error=None):
        self.name = name
        self._obj = obj
        self._error = error

    def load(self):
        if self._error is not None:
            raise self._error
        return self._obj


def _widget(ctx):
    return {"size": ctx.get_int("size", 1), "subnet_id": Ref("aws_subnet.main.id")}


WIDGET_SCHEMAS = {
    "widget": {"name": "Widget", "category": "compute", "resource_type": "aws_widget", "default_config": {"size": 2}},
}


@pytest.fixture
def fake_entry_points(monkeypatch):
    installed = {
        SYNTHESIZER_GROUP: [
            FakeEntryPoint("aws:widget", _widget),
            FakeEntryPoint("broken", error=ImportError("missing module")),
        ],
        SCHEMA_GROUP: [FakeEntryPoint("aws", lambda: WIDGET_SCHEMAS)],
    }

    def entry_points(group):
        return installed.get(group, [])

    monkeypatch.setattr(plugins, "entry_points", entry_points)
    monkeypatch.setattr(synthesizers, "_REGISTRY", dict(synthesizers._REGISTRY))
    monkeypatch.setattr(synthesizers, "_plugins_loaded", False)
    return installed


class TestPluginDiscovery:
    def test_discover_all_groups(self):
        """discover_plugins returns all groups even if empty."""
        result = discover_plugins()
        assert len(result) == 2
        for group in ALL_GROUPS:
            assert group in result
            assert isinstance(result[group], dict)

    def test_discover_single_group(self):
        result = discover_plugins(SYNTHESIZER_GROUP)
        assert list(result) == [SYNTHESIZER_GROUP]

    def test_list_plugins(self):
        result = list_plugins()
        assert set(result) == set(ALL_GROUPS)
        for names in result.values():
            assert isinstance(names, list)

    def test_broken_plugin_is_skipped(self, fake_entry_points, caplog):
        result = discover_synthesizers()
        assert list(result) == [("aws", "widget")]
        assert "broken" in caplog.text

    def test_discover_schemas(self, fake_entry_points):
        result = discover_schemas()
        assert result == {"aws": WIDGET_SCHEMAS}


class TestPluginIntegration:
    def test_synthesizer_plugin_registered(self, fake_entry_points):
        assert synthesizers.get_synthesizer("aws", "widget") is _widget
        assert ("aws", "widget") in synthesizers.registered("aws")

    def test_builtins_win_over_plugins(self, fake_entry_points):
        fake_entry_points[SYNTHESIZER_GROUP].append(FakeEntryPoint("aws:s3", _widget))
        assert synthesizers.get_synthesizer("aws", "s3") is not _widget

    def test_malformed_plugin_name_ignored(self, fake_entry_points, caplog):
        fake_entry_points[SYNTHESIZER_GROUP].append(FakeEntryPoint("nocolon", _widget))
        assert ("", "nocolon") not in discover_synthesizers()
        assert "Ignoring synthesizer plugin 'nocolon'" in caplog.text
        assert ("", "nocolon") not in synthesizers.registered()
        assert all(service != "nocolon" for _, service in synthesizers.registered())

    def test_schema_plugin_loaded_by_store(self, fake_entry_points):
        store = SchemaStore()
        entry = store.resolve("aws", "widget")
        assert entry is not None
        assert entry.resource_type == "aws_widget"

    def test_plugin_compiles_end_to_end(self, fake_entry_points):
        from infracanvas.compiler import compile_graph

        store = SchemaStore()
        snapshot = GraphSnapshot(provider="aws", nodes=[Node(id="w", service_id="widget", display_name="Gadget")])
        result = compile_graph(snapshot, store=store)
        record = next(r for r in result.resources if r.node_id == "w")
        assert record.address == "aws_widget.gadget"
        assert record.attributes["size"] == 2
        assert "aws_subnet.main" in [r.address for r in result.resources]

    def test_non_mapping_schema_plugin_ignored(self, fake_entry_points, caplog):
        fake_entry_points[SCHEMA_GROUP] = [FakeEntryPoint("gcp", ["not", "a", "mapping"])]
        store = SchemaStore()
        assert store.resolve("aws", "widget") is None
        assert "Ignoring schema plugin" in caplog.text
