"""Plugin discovery, registration and hook notification."""

from __future__ import annotations

import functools
import inspect
import logging
from typing import Any

import pluggy

from cqrskit.plugins.hookspecs import CqrsHookSpec

PROJECT_NAME = "cqrskit"
ENTRY_POINT_GROUP = "cqrskit.plugins"

logger = logging.getLogger(__name__)


class PluginManager:
    """Manages plugin loading and hook dispatch."""

    def __init__(self) -> None:
        self._pm = pluggy.PluginManager(PROJECT_NAME)
        self._pm.add_hookspecs(CqrsHookSpec)
        self._loaded: bool = False

    def discover_and_load(self) -> list[str]:
        """Load plugins registered under the ``cqrskit.plugins`` entry point group.

        Returns a list of loaded plugin names.
        """
        self._pm.load_setuptools_entrypoints(ENTRY_POINT_GROUP)
        self._normalize_plugin_instances()
        self._loaded = True
        return self.list_plugin_names()

    def register_plugin(self, plugin: object, name: str | None = None) -> None:
        """Register a plugin instance directly."""
        resolved_name = name or plugin.__class__.__name__
        self._pm.register(plugin, name=resolved_name)
        logger.debug(
            "Registered plugin: %s", resolved_name, extra={"plugin": resolved_name}
        )

    def unregister(self, plugin: object) -> None:
        """Unregister a plugin instance."""
        self._pm.unregister(plugin)

    @property
    def is_loaded(self) -> bool:
        """Whether discover_and_load() has been called."""
        return self._loaded

    @property
    def hook(self) -> pluggy.HookRelay:
        return self._pm.hook

    def get_plugins(self) -> list[object]:
        return list(self._pm.get_plugins())

    def list_plugin_names(self) -> list[str]:
        return [self._pm.get_name(p) or p.__class__.__name__ for p in self._pm.get_plugins()]

    def notify(self, hook_name: str, **payload: Any) -> None:
        """Call *hook_name* on every plugin.

        A failing plugin is logged as a warning; the caller never sees it.
        """
        caller = getattr(self._pm.hook, hook_name)
        try:
            caller(**payload)
        except Exception:
            logger.warning(
                "Plugin hook %s failed",
                hook_name,
                exc_info=True,
                extra={"hook": hook_name, "definition": payload.get("definition")},
            )

    def _normalize_plugin_instances(self) -> None:
        """Replace registered plugin classes with instantiated objects.

        Entry-point loading may register a plugin class directly, which
        leaves ``self`` unbound when hooks are called.
        """
        for plugin in list(self._pm.get_plugins()):
            if not inspect.isclass(plugin) or not self._has_hook_impls(plugin):
                continue

            plugin_name = self._pm.get_name(plugin) or plugin.__name__
            self._pm.unregister(plugin)
            try:
                instance = plugin()
            except Exception:
                logger.warning(
                    "Failed to instantiate entry-point plugin %s",
                    plugin_name,
                    exc_info=True,
                )
                continue

            self._pm.register(instance, name=plugin_name)
            logger.debug("Instantiated entry-point plugin: %s", plugin_name)

    @staticmethod
    def _has_hook_impls(cls: type) -> bool:
        """Whether *cls* has methods decorated with ``@hookimpl``.

        ``HookimplMarker("cqrskit")`` sets a ``cqrskit_impl`` attribute on
        decorated methods.
        """
        for name in dir(cls):
            if name.startswith("_"):
                continue
            method = getattr(cls, name, None)
            if callable(method) and getattr(method, "cqrskit_impl", None):
                return True
        return False


@functools.lru_cache(maxsize=1)
def get_plugin_manager() -> PluginManager:
    """Process-wide plugin manager (entry points are not loaded implicitly)."""
    return PluginManager()
