"""Validation engine — casting, embedded recursion, rules, two-pass protocol.

One validation run over normalized input:

1. cast declared scalar fields present in the input (unknown keys ignored);
   a value equal to the declared default is kept but is not a change;
2. cast embedded value-object fields recursively with the same engine;
3. run the definition's ``handle_validate`` rule hook;
4. require every required field to hold a present, non-null value.

:func:`validate` runs that sequence twice: once on the input, and, when the
first pass succeeds, again on the draft returned by ``after_validate``.

INVARIANT: anything ``after_validate`` changes is held to the same rules as
user input.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError as PydanticValidationError

from cqrskit.definitions.registry import qualified_name
from cqrskit.domain.fields import FieldSpec
from cqrskit.domain.normalize import normalize_input
from cqrskit.domain.types import ArrayOf, Embedded, Enumerated, Scalar, TypeTag
from cqrskit.domain.validation import INVALID_MESSAGE, ValidationState

if TYPE_CHECKING:
    from cqrskit.definitions.base import Definition
    from cqrskit.definitions.value_object import ValueObject

logger = logging.getLogger(__name__)


class _CastFailed:
    def __repr__(self) -> str:
        return "CAST_FAILED"


CAST_FAILED = _CastFailed()


# ---------------------------------------------------------------------------
# Casting
# ---------------------------------------------------------------------------


def _is_sequence(value: object) -> bool:
    return isinstance(value, Iterable) and not isinstance(value, (str, bytes, Mapping))


def _cast_enumerated(tag: Enumerated, value: Any) -> Any:
    if tag.enum_cls is not None:
        if isinstance(value, tag.enum_cls):
            return value
        try:
            return tag.enum_cls(value)
        except ValueError:
            pass
        if isinstance(value, str) and value in tag.enum_cls.__members__:
            return tag.enum_cls[value]
        return CAST_FAILED

    for choice in tag.choices:
        if value == choice or (isinstance(value, str) and str(choice) == value):
            return choice
    return CAST_FAILED


def cast_value(tag: TypeTag, value: Any) -> Any:
    """Cast *value* to a non-embedded *tag*. Returns ``CAST_FAILED`` on failure."""
    if value is None:
        return None
    if isinstance(tag, Scalar):
        if tag.passthrough:
            return value
        try:
            return tag.adapter().validate_python(value)
        except PydanticValidationError:
            return CAST_FAILED
    if isinstance(tag, Enumerated):
        return _cast_enumerated(tag, value)
    if isinstance(tag, ArrayOf):
        if not _is_sequence(value):
            return CAST_FAILED
        items = [cast_value(tag.inner, item) for item in value]
        if any(item is CAST_FAILED for item in items):
            return CAST_FAILED
        return items
    msg = f"Cannot cast to {tag!r}"
    raise TypeError(msg)


def _cast_field(state: ValidationState, spec: FieldSpec, value: Any) -> ValidationState:
    cast = cast_value(spec.type, value)
    if cast is CAST_FAILED:
        return state.add_error(
            spec.name,
            INVALID_MESSAGE,
            type=spec.type.describe(),
            validation="cast",
        )
    if spec.has_default and cast == spec.default:
        return state.put_value(spec.name, cast)
    return state.put_change(spec.name, cast)


def _nested_state(
    value_object: type[ValueObject],
    item: Any,
    opts: dict[str, Any],
) -> ValidationState | None:
    """Validate one embedded item. None if *item* is not mapping-like."""
    try:
        attrs = normalize_input(item)
    except TypeError:
        return None
    attrs = normalize_input(value_object.before_validate(attrs))
    return run_validation(value_object, attrs, value_object.__schema__.required_fields, opts)


def _cast_embed(
    state: ValidationState,
    spec: FieldSpec,
    value: Any,
    opts: dict[str, Any],
) -> ValidationState:
    if value is None:
        return state.put_change(spec.name, None)

    tag = spec.type
    invalid = {"type": tag.describe(), "validation": "embed"}

    if isinstance(tag, ArrayOf):
        assert isinstance(tag.inner, Embedded)
        value_object = tag.inner.value_object
        if not _is_sequence(value):
            return state.add_error(spec.name, INVALID_MESSAGE, **invalid)
        subs = [_nested_state(value_object, item, opts) for item in value]
        if any(sub is None for sub in subs):
            return state.add_error(spec.name, INVALID_MESSAGE, **invalid)
        checked = tuple(sub for sub in subs if sub is not None)
        if all(sub.valid for sub in checked):
            return state.put_change(
                spec.name, [value_object._materialize(sub.values) for sub in checked]
            )
        return state.put_nested(spec.name, checked)

    assert isinstance(tag, Embedded)
    sub = _nested_state(tag.value_object, value, opts)
    if sub is None:
        return state.add_error(spec.name, INVALID_MESSAGE, **invalid)
    if sub.valid:
        return state.put_change(spec.name, tag.value_object._materialize(sub.values))
    return state.put_nested(spec.name, sub)


# ---------------------------------------------------------------------------
# Validation runs
# ---------------------------------------------------------------------------


def run_validation(
    definition: type[Definition],
    attrs: Mapping[str, Any],
    required_fields: Iterable[str],
    opts: dict[str, Any],
) -> ValidationState:
    """Single pass: cast, cast embeds, ``handle_validate``, required check."""
    schema = definition.__schema__
    state = ValidationState.from_defaults(schema.defaults())

    for spec in schema.fields:
        if spec.name in attrs:
            state = _cast_field(state, spec, attrs[spec.name])
    for spec in schema.embeds:
        if spec.name in attrs:
            state = _cast_embed(state, spec, attrs[spec.name], opts)

    state = definition.handle_validate(state, opts)
    if not isinstance(state, ValidationState):
        msg = f"{definition.__name__}.handle_validate must return a ValidationState"
        raise TypeError(msg)

    return state.validate_required(required_fields)


def validate(
    definition: type[Definition],
    attrs: Mapping[str, Any],
    required_fields: Iterable[str],
    opts: dict[str, Any],
    *,
    implicit: Mapping[str, Any] | None = None,
) -> ValidationState:
    """Two-pass validation.

    Pass 1 validates *attrs*. Only if it succeeds is a draft materialized
    (with *implicit* attributes such as ``created_at``) and passed through
    ``after_validate``; pass 2 validates the transformed draft. The states
    are merged with pass 2 winning on conflicts.
    """
    required = tuple(required_fields)
    first = run_validation(definition, attrs, required, opts)
    if not first.valid:
        logger.debug(
            "%s failed first validation pass",
            definition.__name__,
            extra={"definition": qualified_name(definition)},
        )
        return first

    draft = definition._materialize(first.values, **(implicit or {}))
    transformed = draft.after_validate()
    if not isinstance(transformed, definition):
        msg = f"{definition.__name__}.after_validate must return a {definition.__name__}"
        raise TypeError(msg)

    second = run_validation(definition, normalize_input(transformed), required, opts)
    if not second.valid:
        logger.debug(
            "%s failed validation after after_validate",
            definition.__name__,
            extra={"definition": qualified_name(definition), "hook": "after_validate"},
        )
    return first.merge(second)
