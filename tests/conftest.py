"""Shared pytest fixtures and sample definitions for cqrskit tests."""

from __future__ import annotations

import logging
from collections.abc import Generator
from datetime import UTC, datetime
from typing import Any
from uuid import NAMESPACE_OID, UUID, uuid5

import pytest
from click.testing import CliRunner

from cqrskit import Command, Ok, Query, ValueObject
from cqrskit.domain.clock import FixedClock
from cqrskit.plugins import get_plugin_manager, hookimpl

FIXED_INSTANT = datetime(2024, 1, 1, 12, 0, tzinfo=UTC)


# ---------------------------------------------------------------------------
# Sample definitions (imported by test modules and the CLI tests)
# ---------------------------------------------------------------------------


class Address(ValueObject):
    @classmethod
    def define(cls, schema):
        schema.field("street", str)
        schema.field("city", str)
        schema.field("zip", str, required=False)

    @classmethod
    def handle_validate(cls, state, opts):
        return state.validate_length("zip", is_=5)


class CreateUser(Command):
    """Create a user account."""

    @classmethod
    def define(cls, schema):
        schema.field("email", str, description="Login address")
        schema.field("name", str)
        schema.internal_field("id", UUID)
        schema.option("notify", "boolean", default=True)
        schema.derive_event("UserCreated")
        schema.derive_event(
            "UserRenamed", drop=["email"], with_=[("reason", "unknown")], version=2
        )

    @classmethod
    def handle_validate(cls, state, opts):
        return state.validate_format("email", r"@")

    def after_validate(self):
        return self.replace(id=uuid5(NAMESPACE_OID, self.email))

    def handle_dispatch(self, opts):
        return Ok("dispatched")


class GetUser(Query):
    @classmethod
    def define(cls, schema):
        schema.field("email", str)

    @classmethod
    def handle_validate(cls, state, opts):
        return state.validate_format("email", r"@")

    def handle_execute(self, opts):
        return {"email": self.email}


class RelocateUser(Command):
    @classmethod
    def define(cls, schema):
        schema.field("email", str)
        schema.field("address", Address)
        schema.field("previous", list[Address], required=False)

    def handle_dispatch(self, opts):
        return self.address.city


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _restore_logging() -> Generator[None]:
    """Undo root handler and level changes made by configure_logging."""
    root = logging.getLogger()
    original_handlers = root.handlers[:]
    original_level = root.level
    cqrs = logging.getLogger("cqrskit")
    cqrs_level = cqrs.level
    yield
    root.handlers = original_handlers
    root.setLevel(original_level)
    cqrs.setLevel(cqrs_level)


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def fixed_clock(monkeypatch: pytest.MonkeyPatch) -> FixedClock:
    """Freeze the clock every command uses to stamp ``created_at``."""
    clock = FixedClock(FIXED_INSTANT)
    monkeypatch.setattr(Command, "clock", clock)
    return clock


class RecordingPlugin:
    """Plugin that records every hook call."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, dict[str, Any]]] = []

    @hookimpl
    def post_create(self, definition: str, instance: Any) -> None:
        self.calls.append(("post_create", {"definition": definition, "instance": instance}))

    @hookimpl
    def post_dispatch(self, definition: str, result: Any) -> None:
        self.calls.append(("post_dispatch", {"definition": definition, "result": result}))

    @hookimpl
    def post_execute(self, definition: str, result: Any) -> None:
        self.calls.append(("post_execute", {"definition": definition, "result": result}))

    def hooks(self) -> list[str]:
        return [name for name, _ in self.calls]


@pytest.fixture
def recording_plugin() -> Generator[RecordingPlugin]:
    """Register a RecordingPlugin on the process-wide plugin manager."""
    plugin = RecordingPlugin()
    manager = get_plugin_manager()
    manager.register_plugin(plugin, name="recording")
    try:
        yield plugin
    finally:
        manager.unregister(plugin)
