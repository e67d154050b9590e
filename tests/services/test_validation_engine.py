"""Tests for the validation engine: casting, embeds, two-pass protocol."""

from __future__ import annotations

from enum import Enum
from typing import Any
from uuid import UUID

import pytest

from cqrskit import Command, Ok, ValueObject
from cqrskit.domain.clock import FixedClock
from cqrskit.domain.types import ArrayOf, Enumerated, Scalar
from cqrskit.services.validation import CAST_FAILED, cast_value, run_validation, validate
from tests.conftest import Address, CreateUser, RelocateUser


class Tier(Enum):
    FREE = "free"
    PRO = "pro"


class TestCastValue:
    def test_lax_scalar_casting(self) -> None:
        assert cast_value(Scalar(int), "42") == 42
        assert cast_value(Scalar(UUID), "12345678-1234-5678-1234-567812345678") == UUID(
            "12345678-1234-5678-1234-567812345678"
        )

    def test_scalar_failure(self) -> None:
        assert cast_value(Scalar(int), "forty-two") is CAST_FAILED

    def test_none_stays_none(self) -> None:
        assert cast_value(Scalar(int), None) is None

    def test_any_passes_through(self) -> None:
        value = object()
        assert cast_value(Scalar(Any), value) is value

    def test_enum_by_value_name_or_member(self) -> None:
        tag = Enumerated.from_enum(Tier)
        assert cast_value(tag, "pro") is Tier.PRO
        assert cast_value(tag, "FREE") is Tier.FREE
        assert cast_value(tag, Tier.PRO) is Tier.PRO
        assert cast_value(tag, "gold") is CAST_FAILED

    def test_plain_choices(self) -> None:
        tag = Enumerated((1, 2, 3))
        assert cast_value(tag, 2) == 2
        assert cast_value(tag, "3") == 3
        assert cast_value(tag, 4) is CAST_FAILED

    def test_arrays(self) -> None:
        tag = ArrayOf(Scalar(int))
        assert cast_value(tag, ["1", 2]) == [1, 2]
        assert cast_value(tag, ("1",)) == [1]
        assert cast_value(tag, ["1", "x"]) is CAST_FAILED
        assert cast_value(tag, "12") is CAST_FAILED
        assert cast_value(tag, {"a": 1}) is CAST_FAILED


class TestRunValidation:
    def test_unknown_keys_ignored(self) -> None:
        state = run_validation(
            CreateUser, {"email": "a@b", "name": "x", "extra": 1}, ("email", "name"), {}
        )
        assert state.valid
        assert "extra" not in state.values

    def test_cast_error_context(self) -> None:
        class Counter(Command):
            @classmethod
            def define(cls, schema):
                schema.field("count", int)

        state = run_validation(Counter, {"count": "many"}, ("count",), {})
        assert state.error_map() == {"count": ["is invalid"]}
        assert state.errors["count"][0][1] == {"type": "int", "validation": "cast"}

    def test_handle_validate_must_return_state(self) -> None:
        class Broken(Command):
            @classmethod
            def define(cls, schema):
                schema.field("name", str)

            @classmethod
            def handle_validate(cls, state, opts):
                return None

        with pytest.raises(TypeError, match="ValidationState"):
            run_validation(Broken, {"name": "x"}, ("name",), {})

    def test_handle_validate_sees_opts(self) -> None:
        seen: dict[str, Any] = {}

        class Spy(Command):
            @classmethod
            def define(cls, schema):
                schema.field("name", str)

            @classmethod
            def handle_validate(cls, state, opts):
                seen.update(opts)
                return state

        run_validation(Spy, {"name": "x"}, ("name",), {"tenant": "acme"})
        assert seen == {"tenant": "acme"}


class TestEmbeds:
    def test_embedded_value_object_materialized(self) -> None:
        state = run_validation(
            RelocateUser,
            {"email": "a@b", "address": {"street": "Main", "city": "Springfield"}},
            ("email", "address"),
            {},
        )
        assert state.valid
        address = state.values["address"]
        assert isinstance(address, Address)
        assert address.city == "Springfield"

    def test_nested_errors_under_parent_field(self) -> None:
        state = run_validation(
            RelocateUser,
            {"email": "a@b", "address": {"street": "Main", "zip": "1"}},
            ("email", "address"),
            {},
        )
        assert state.error_map() == {
            "address": {"city": ["can't be blank"], "zip": ["should be 5 character(s)"]}
        }

    def test_array_of_value_objects(self) -> None:
        state = run_validation(
            RelocateUser,
            {
                "email": "a@b",
                "address": {"street": "Main", "city": "Springfield"},
                "previous": [{"street": "Elm", "city": "Shelbyville"}, {"street": "Oak"}],
            },
            ("email", "address"),
            {},
        )
        assert state.error_map() == {"previous": [{}, {"city": ["can't be blank"]}]}

    def test_non_mapping_embed_is_invalid(self) -> None:
        state = run_validation(
            RelocateUser, {"email": "a@b", "address": "Main St"}, ("email", "address"), {}
        )
        assert state.error_map() == {"address": ["is invalid"]}

    def test_missing_required_embed(self) -> None:
        state = run_validation(RelocateUser, {"email": "a@b"}, ("email", "address"), {})
        assert state.error_map() == {"address": ["can't be blank"]}

    def test_value_object_before_validate_runs(self) -> None:
        class Money(ValueObject):
            @classmethod
            def define(cls, schema):
                schema.field("cents", int)

            @classmethod
            def before_validate(cls, attrs):
                if "dollars" in attrs:
                    attrs["cents"] = int(attrs.pop("dollars")) * 100
                return attrs

        class Charge(Command):
            @classmethod
            def define(cls, schema):
                schema.field("amount", Money)

        state = run_validation(Charge, {"amount": {"dollars": "3"}}, ("amount",), {})
        assert state.values["amount"].cents == 300


class TestTwoPass:
    def test_after_validate_result_is_revalidated(self) -> None:
        class Sloppy(Command):
            @classmethod
            def define(cls, schema):
                schema.field("email", str)

            @classmethod
            def handle_validate(cls, state, opts):
                return state.validate_format("email", r"@")

            def after_validate(self):
                return self.replace(email="not-an-email")

        state = validate(Sloppy, {"email": "a@b"}, ("email",), {})
        assert state.error_map() == {"email": ["has invalid format"]}

    def test_after_validate_values_win(self) -> None:
        state = validate(CreateUser, {"email": "a@b", "name": "x"}, ("email", "name"), {})
        assert state.valid
        assert isinstance(state.values["id"], UUID)

    def test_second_pass_skipped_when_first_fails(self) -> None:
        calls: list[str] = []

        class Tracked(Command):
            @classmethod
            def define(cls, schema):
                schema.field("name", str)

            def after_validate(self):
                calls.append("after_validate")
                return self

        state = validate(Tracked, {}, ("name",), {})
        assert not state.valid
        assert calls == []

    def test_after_validate_must_return_instance(self) -> None:
        class Wrong(Command):
            @classmethod
            def define(cls, schema):
                schema.field("name", str)

            def after_validate(self):
                return Ok(self)

        with pytest.raises(TypeError, match="after_validate"):
            validate(Wrong, {"name": "x"}, ("name",), {})

    def test_draft_carries_implicit_attributes(self, fixed_clock: FixedClock) -> None:
        stamps: list[object] = []

        class Stamped(Command):
            @classmethod
            def define(cls, schema):
                schema.field("name", str)

            def after_validate(self):
                stamps.append(self.created_at)
                return self

        validate(Stamped, {"name": "x"}, ("name",), {}, implicit={"created_at": fixed_clock.now()})
        assert stamps == [fixed_clock.now()]

    def test_untouched_default_is_not_revalidated(self) -> None:
        class WithDefault(Command):
            @classmethod
            def define(cls, schema):
                schema.field("code", str, default="x")

            @classmethod
            def handle_validate(cls, state, opts):
                return state.validate_format("code", r"^\d+$")

        state = validate(WithDefault, {}, ("code",), {})
        assert state.valid
        assert state.values["code"] == "x"
        assert WithDefault.new({}).value.code == "x"

    def test_after_validate_change_away_from_default_is_checked(self) -> None:
        class Reset(Command):
            @classmethod
            def define(cls, schema):
                schema.field("code", str, default="1")

            @classmethod
            def handle_validate(cls, state, opts):
                return state.validate_format("code", r"^\d+$")

            def after_validate(self):
                return self.replace(code="abc")

        state = validate(Reset, {}, ("code",), {})
        assert state.error_map() == {"code": ["has invalid format"]}
