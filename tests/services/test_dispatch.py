"""Tests for the dispatch pipeline and query execution."""

from __future__ import annotations

from typing import Any

import pytest

from cqrskit import HALT, INVALID_COMMAND, INVALID_QUERY, UNAUTHORIZED, Command, Err, Ok
from cqrskit.domain.errors import QueryInvalidError
from tests.conftest import CreateUser, GetUser, RecordingPlugin, RelocateUser


def _make(**hooks: Any) -> type[Command]:
    """Build a command class with the given hook overrides."""

    def define(cls, schema):
        schema.field("name", str)

    namespace = {"define": classmethod(define), **hooks}
    return type("Sample", (Command,), namespace)


class TestDispatchInput:
    def test_scenario(self) -> None:
        invalid = CreateUser.dispatch(CreateUser.new({"name": "chris", "email": "wrong"}))
        assert invalid == Err((INVALID_COMMAND, {"email": ["has invalid format"]}))

        valid = CreateUser.new({"name": "chris", "email": "chris@example.com"})
        assert CreateUser.dispatch(valid) == Ok("dispatched")

    def test_bare_instance(self) -> None:
        user = CreateUser.new_or_raise({"name": "chris", "email": "chris@example.com"})
        assert CreateUser.dispatch(user) == Ok("dispatched")

    def test_err_short_circuits_hooks(self) -> None:
        calls: list[str] = []
        sample = _make(before_dispatch=lambda self, opts: calls.append("before") or Ok(self))
        assert sample.dispatch(Err({"name": ["can't be blank"]})) == Err(
            (INVALID_COMMAND, {"name": ["can't be blank"]})
        )
        assert calls == []

    def test_wrong_type_raises(self) -> None:
        query = GetUser.new_or_raise({"email": "a@b"})
        with pytest.raises(TypeError, match="CreateUser"):
            CreateUser.dispatch(query)
        with pytest.raises(TypeError):
            CreateUser.dispatch(Ok("not a command"))


class TestBeforeDispatch:
    def test_err_returned_and_flattened(self) -> None:
        sample = _make(before_dispatch=lambda self, opts: Err([["a", "b"], "c"]))
        assert sample.dispatch(sample.new({"name": "x"})) == Err(["a", "b", "c"])

    def test_deeply_nested_errors_flattened(self) -> None:
        sample = _make(before_dispatch=lambda self, opts: Err([["a", ["b", ["c"]]], "d"]))
        assert sample.dispatch(sample.new({"name": "x"})) == Err(["a", "b", "c", "d"])

    def test_bare_instance_accepted(self) -> None:
        sample = _make(
            before_dispatch=lambda self, opts: self.replace(name="changed"),
            handle_dispatch=lambda self, opts: self.name,
        )
        assert sample.dispatch(sample.new({"name": "x"})) == "changed"

    def test_other_values_rejected(self) -> None:
        sample = _make(before_dispatch=lambda self, opts: True)
        with pytest.raises(TypeError, match="before_dispatch"):
            sample.dispatch(sample.new({"name": "x"}))


class TestAuthorization:
    def test_halt_skips_handler(self) -> None:
        calls: list[str] = []
        sample = _make(
            handle_authorize=lambda self, opts: Ok(HALT),
            handle_dispatch=lambda self, opts: calls.append("dispatch"),
        )
        command = sample.new_or_raise({"name": "x"})
        assert sample.dispatch(command) == Ok(command)
        assert calls == []

    @pytest.mark.parametrize("outcome", [Err("nope"), False, None, Ok("other")])
    def test_unauthorized(self, outcome: Any) -> None:
        sample = _make(
            handle_authorize=lambda self, opts: outcome,
            handle_dispatch=lambda self, opts: "ran",
        )
        assert sample.dispatch(sample.new({"name": "x"})) == Err(UNAUTHORIZED)

    def test_authorize_sees_metadata(self) -> None:
        sample = _make(
            handle_authorize=lambda self, opts: (
                Ok(self) if opts["metadata"].get("admin") else Err(1)
            ),
            handle_dispatch=lambda self, opts: "ran",
        )
        command = sample.new_or_raise({"name": "x"})
        assert sample.dispatch(command, metadata={"admin": True}) == "ran"
        assert sample.dispatch(command) == Err(UNAUTHORIZED)


class TestTagging:
    def test_bare_value_untagged_by_default(self) -> None:
        command = RelocateUser.new_or_raise(
            {"email": "a@b", "address": {"street": "Main", "city": "Springfield"}}
        )
        assert RelocateUser.dispatch(command) == "Springfield"
        assert RelocateUser.dispatch(command, tag=True) == Ok("Springfield")

    def test_results_pass_through_when_tagged(self) -> None:
        user = CreateUser.new_or_raise({"name": "chris", "email": "chris@example.com"})
        assert CreateUser.dispatch(user, tag=True) == Ok("dispatched")


class TestDispatcher:
    def test_delegates_to_dispatcher(self) -> None:
        class Bus:
            def __init__(self) -> None:
                self.seen: list[Any] = []

            def dispatch(self, command: Any, opts: dict[str, Any]) -> Any:
                self.seen.append(command)
                return Ok("bus")

        bus = Bus()

        class Routed(Command, dispatcher=bus):
            @classmethod
            def define(cls, schema):
                schema.field("name", str)

        command = Routed.new_or_raise({"name": "x"})
        assert Routed.dispatch(command) == Ok("bus")
        assert bus.seen == [command]

    def test_missing_handler(self) -> None:
        sample = _make()
        with pytest.raises(NotImplementedError):
            sample.dispatch(sample.new({"name": "x"}))


class TestPostDispatchHook:
    def test_notified(self, recording_plugin: RecordingPlugin) -> None:
        user = CreateUser.new_or_raise({"name": "chris", "email": "chris@example.com"})
        CreateUser.dispatch(user)
        assert recording_plugin.hooks() == ["post_create", "post_dispatch"]
        assert recording_plugin.calls[-1][1]["result"] == Ok("dispatched")

    def test_not_notified_for_errors(self, recording_plugin: RecordingPlugin) -> None:
        CreateUser.dispatch(CreateUser.new({}))
        assert recording_plugin.hooks() == []


class TestExecute:
    def test_execute(self) -> None:
        assert GetUser.execute(GetUser.new({"email": "a@b"})) == {"email": "a@b"}
        assert GetUser.execute(GetUser.new({"email": "a@b"}), tag=True) == Ok({"email": "a@b"})

    def test_invalid_query(self) -> None:
        assert GetUser.execute(GetUser.new({"email": "wrong"})) == Err(
            (INVALID_QUERY, {"email": ["has invalid format"]})
        )

    def test_execute_or_raise(self) -> None:
        with pytest.raises(QueryInvalidError) as exc_info:
            GetUser.execute_or_raise(GetUser.new({}))
        assert exc_info.value.errors == {"email": ["can't be blank"]}

    def test_post_execute_hook(self, recording_plugin: RecordingPlugin) -> None:
        GetUser.execute(GetUser.new_or_raise({"email": "a@b"}))
        assert recording_plugin.hooks() == ["post_create", "post_execute"]
