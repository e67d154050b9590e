"""Tests for BoundedContext registration and proxying."""

from __future__ import annotations

from typing import Any

import pytest

from cqrskit import INVALID_COMMAND, BoundedContext, Command, Err, Ok, Query
from cqrskit.definitions.bounded_context import snake_case
from cqrskit.domain.errors import (
    CommandInvalidError,
    DefinitionError,
    NotACommandError,
    NotAQueryError,
    QueryInvalidError,
)
from tests.conftest import Address, CreateUser, GetUser


@pytest.fixture
def users() -> BoundedContext:
    context = BoundedContext("users")
    context.command(CreateUser)
    context.command(CreateUser, as_="create_user2")
    context.query(GetUser)
    return context


class TestSnakeCase:
    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("CreateUser", "create_user"),
            ("GetHTTPStatus", "get_http_status"),
            ("Ping", "ping"),
            ("V2Import", "v2_import"),
        ],
    )
    def test_names(self, name: str, expected: str) -> None:
        assert snake_case(name) == expected


class TestRegistration:
    def test_names(self, users: BoundedContext) -> None:
        assert users.commands == ("create_user", "create_user2")
        assert users.queries == ("get_user",)

    def test_not_a_command(self, users: BoundedContext) -> None:
        with pytest.raises(NotACommandError):
            users.command(GetUser)  # type: ignore[arg-type]
        with pytest.raises(NotACommandError):
            users.command(Command)
        with pytest.raises(NotACommandError):
            users.command("CreateUser")  # type: ignore[arg-type]

    def test_not_a_query(self, users: BoundedContext) -> None:
        with pytest.raises(NotAQueryError):
            users.query(Address)  # type: ignore[arg-type]
        with pytest.raises(NotAQueryError):
            users.query(Query)

    def test_duplicate_name(self, users: BoundedContext) -> None:
        with pytest.raises(DefinitionError, match="create_user"):
            users.command(CreateUser)

    def test_decorator_use(self) -> None:
        context = BoundedContext("billing")

        @context.command
        class ChargeCard(Command):
            @classmethod
            def define(cls, schema):
                schema.field("amount", int)

            def handle_dispatch(self, opts):
                return Ok(self.amount)

        assert context.dispatch("charge_card", {"amount": "5"}) == Ok(5)

    def test_unknown_name(self, users: BoundedContext) -> None:
        with pytest.raises(KeyError, match="delete_user"):
            users.dispatch("delete_user", {})


class TestCommands:
    def test_dispatch(self, users: BoundedContext) -> None:
        attrs = {"name": "chris", "email": "chris@example.com"}
        assert users.dispatch("create_user", attrs) == Ok("dispatched")
        assert users.dispatch("create_user2", attrs) == Ok("dispatched")

    def test_dispatch_invalid(self, users: BoundedContext) -> None:
        result = users.dispatch("create_user", {"name": "chris", "email": "wrong"})
        assert result == Err((INVALID_COMMAND, {"email": ["has invalid format"]}))

    def test_dispatch_or_raise(self, users: BoundedContext) -> None:
        with pytest.raises(CommandInvalidError):
            users.dispatch_or_raise("create_user", {"name": "chris", "email": "wrong"})

    def test_then(self, users: BoundedContext) -> None:
        seen: list[Any] = []
        attrs = {"name": "chris", "email": "chris@example.com"}
        result = users.dispatch("create_user", attrs, then=lambda r: seen.append(r) or "done")
        assert result == "done"
        assert seen == [Ok("dispatched")]

    def test_then_must_be_callable(self, users: BoundedContext) -> None:
        with pytest.raises(TypeError, match="callable"):
            users.dispatch("create_user", {}, then="nope")  # type: ignore[arg-type]


class TestQueries:
    def test_execute(self, users: BoundedContext) -> None:
        assert users.execute("get_user", {"email": "a@b"}) == {"email": "a@b"}

    def test_execute_or_raise(self, users: BoundedContext) -> None:
        with pytest.raises(QueryInvalidError) as exc_info:
            users.execute_or_raise("get_user", {})
        assert exc_info.value.errors == {"email": ["can't be blank"]}

    def test_create_query(self, users: BoundedContext) -> None:
        result = users.create_query("get_user", {"email": "a@b"})
        assert isinstance(result.value, GetUser)
        assert users.create_query("get_user", {}).error == {"email": ["can't be blank"]}
        with pytest.raises(QueryInvalidError):
            users.create_query_or_raise("get_user", {"email": "wrong"})
