"""Tests for PluginManager — registration, hook relay, failure isolation."""

from __future__ import annotations

import logging
from typing import Any

import pytest

from cqrskit.plugins import PluginManager, get_plugin_manager, hookimpl
from tests.conftest import CreateUser, RecordingPlugin


class _DummyPlugin:
    """Minimal plugin for registration tests."""

    @hookimpl
    def post_dispatch(self, definition: str, result: Any) -> None:
        pass


class _ExplodingPlugin:
    @hookimpl
    def post_create(self, definition: str, instance: Any) -> None:
        raise RuntimeError("boom")


class TestPluginManager:
    def test_hook_relay_accessible(self) -> None:
        pm = PluginManager()
        assert hasattr(pm.hook, "post_create")
        assert hasattr(pm.hook, "post_dispatch")
        assert hasattr(pm.hook, "post_execute")

    def test_register_and_unregister(self) -> None:
        pm = PluginManager()
        plugin = _DummyPlugin()
        pm.register_plugin(plugin, name="dummy")
        assert "dummy" in pm.list_plugin_names()
        assert plugin in pm.get_plugins()
        pm.unregister(plugin)
        assert "dummy" not in pm.list_plugin_names()

    def test_default_name_is_class_name(self) -> None:
        pm = PluginManager()
        pm.register_plugin(_DummyPlugin())
        assert pm.list_plugin_names() == ["_DummyPlugin"]

    def test_notify_calls_hooks(self) -> None:
        pm = PluginManager()
        plugin = RecordingPlugin()
        pm.register_plugin(plugin)
        pm.notify("post_execute", definition="x.Y", result=1)
        assert plugin.calls == [("post_execute", {"definition": "x.Y", "result": 1})]

    def test_notify_swallows_plugin_failures(self, caplog: pytest.LogCaptureFixture) -> None:
        pm = PluginManager()
        pm.register_plugin(_ExplodingPlugin())
        with caplog.at_level(logging.WARNING, logger="cqrskit.plugins.manager"):
            pm.notify("post_create", definition="x.Y", instance=None)
        assert "post_create failed" in caplog.text

    def test_discover_and_load_without_entry_points(self) -> None:
        pm = PluginManager()
        assert not pm.is_loaded
        pm.discover_and_load()
        assert pm.is_loaded

    def test_entry_point_classes_are_instantiated(self) -> None:
        pm = PluginManager()
        pm._pm.register(RecordingPlugin, name="recording-class")
        pm._normalize_plugin_instances()
        plugins = pm.get_plugins()
        assert len(plugins) == 1
        assert isinstance(plugins[0], RecordingPlugin)


class TestProcessWideManager:
    def test_singleton(self) -> None:
        assert get_plugin_manager() is get_plugin_manager()

    def test_failing_plugin_does_not_break_creation(self) -> None:
        plugin = _ExplodingPlugin()
        get_plugin_manager().register_plugin(plugin, name="exploding")
        try:
            assert CreateUser.new({"email": "a@b", "name": "x"}).ok
        finally:
            get_plugin_manager().unregister(plugin)
