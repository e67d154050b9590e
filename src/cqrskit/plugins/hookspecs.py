"""Pluggy hook specifications for cqrskit lifecycle events.

Hooks are notifications: return values are ignored and failures are logged,
never raised into the lifecycle that triggered them.
"""

from __future__ import annotations

from typing import Any

import pluggy

hookspec = pluggy.HookspecMarker("cqrskit")
hookimpl = pluggy.HookimplMarker("cqrskit")


class CqrsHookSpec:
    """Hook specifications for the cqrskit plugin system."""

    @hookspec
    def post_create(self, definition: str, instance: Any) -> None:
        """Called after ``new`` succeeds, with the created instance."""

    @hookspec
    def post_dispatch(self, definition: str, result: Any) -> None:
        """Called after a command dispatch that did not return ``Err``."""

    @hookspec
    def post_execute(self, definition: str, result: Any) -> None:
        """Called after a query execution that did not return ``Err``."""
