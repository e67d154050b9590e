"""Validation state, rule helpers and error formatting.

A :class:`ValidationState` is the immutable in-progress result of casting
input against a schema. Rule helpers return a new state; user
``handle_validate`` hooks chain them::

    @classmethod
    def handle_validate(cls, state, opts):
        return state.validate_format("email", r"@").validate_length("name", max=80)

Errors are stored as ``(template, context)`` pairs and only rendered by
:meth:`ValidationState.error_map`, where ``{placeholder}`` names are
substituted from the context (falling back to the placeholder name).

INVARIANT: ``state.valid`` is False iff ``state.error_map()`` is non-empty.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Collection, Iterable, Mapping
from dataclasses import dataclass, field, replace
from typing import Any

ErrorEntry = tuple[str, dict[str, Any]]

REQUIRED_MESSAGE = "can't be blank"
INVALID_MESSAGE = "is invalid"
FORMAT_MESSAGE = "has invalid format"
EXCLUSION_MESSAGE = "is reserved"

_PLACEHOLDER = re.compile(r"\{(\w+)\}")

_LENGTH_MESSAGES: dict[tuple[str, bool], str] = {
    ("min", False): "should be at least {count} character(s)",
    ("max", False): "should be at most {count} character(s)",
    ("is", False): "should be {count} character(s)",
    ("min", True): "should have at least {count} item(s)",
    ("max", True): "should have at most {count} item(s)",
    ("is", True): "should have {count} item(s)",
}

_NUMBER_CHECKS: dict[str, tuple[Callable[[Any, Any], bool], str]] = {
    "less_than": (lambda v, n: v < n, "must be less than {number}"),
    "greater_than": (lambda v, n: v > n, "must be greater than {number}"),
    "less_than_or_equal_to": (lambda v, n: v <= n, "must be less than or equal to {number}"),
    "greater_than_or_equal_to": (
        lambda v, n: v >= n,
        "must be greater than or equal to {number}",
    ),
    "equal_to": (lambda v, n: v == n, "must be equal to {number}"),
    "not_equal_to": (lambda v, n: v != n, "must be not equal to {number}"),
}


def format_message(template: str, context: Mapping[str, Any]) -> str:
    """Substitute ``{name}`` placeholders from *context*.

    Unknown placeholders render as their bare name.
    """

    def _sub(match: re.Match[str]) -> str:
        key = match.group(1)
        return str(context.get(key, key))

    return _PLACEHOLDER.sub(_sub, template)


@dataclass(frozen=True)
class ValidationState:
    """In-progress field values plus accumulated errors.

    Attributes:
        values: Current value of every declared field (defaults first).
        changes: Values supplied by the input after casting.
        errors: Field name to ordered ``(template, context)`` entries.
        nested: Embedded field to its nested state (or tuple of states).
    """

    values: Mapping[str, Any] = field(default_factory=dict)
    changes: Mapping[str, Any] = field(default_factory=dict)
    errors: Mapping[str, tuple[ErrorEntry, ...]] = field(default_factory=dict)
    nested: Mapping[str, ValidationState | tuple[ValidationState, ...]] = field(
        default_factory=dict
    )

    @classmethod
    def from_defaults(cls, defaults: Mapping[str, Any]) -> ValidationState:
        return cls(values=dict(defaults))

    # ------------------------------------------------------------------
    # Inspection
    # ------------------------------------------------------------------

    @property
    def valid(self) -> bool:
        return not self.error_map()

    def get(self, name: str, default: Any = None) -> Any:
        """Current value of *name* (change if present, else default value)."""
        return self.values.get(name, default)

    def has_change(self, name: str) -> bool:
        return self.changes.get(name) is not None

    def errors_for(self, name: str) -> list[str]:
        return [format_message(t, c) for t, c in self.errors.get(name, ())]

    def error_map(self) -> dict[str, Any]:
        """Render every error, nesting embedded field errors."""
        rendered: dict[str, Any] = {
            name: [format_message(t, c) for t, c in entries]
            for name, entries in self.errors.items()
            if entries
        }
        for name, sub in self.nested.items():
            if isinstance(sub, tuple):
                items = [s.error_map() for s in sub]
                if any(items):
                    rendered[name] = items
            else:
                sub_errors = sub.error_map()
                if sub_errors:
                    rendered[name] = sub_errors
        return rendered

    # ------------------------------------------------------------------
    # Mutation (each returns a new state)
    # ------------------------------------------------------------------

    def put_change(self, name: str, value: Any) -> ValidationState:
        return replace(
            self,
            values={**self.values, name: value},
            changes={**self.changes, name: value},
        )

    def put_value(self, name: str, value: Any) -> ValidationState:
        """Set *name* without recording a change."""
        return replace(self, values={**self.values, name: value})

    def put_nested(
        self, name: str, sub: ValidationState | tuple[ValidationState, ...]
    ) -> ValidationState:
        return replace(self, nested={**self.nested, name: sub})

    def add_error(self, name: str, message: str, **context: Any) -> ValidationState:
        entries = (*self.errors.get(name, ()), (message, context))
        return replace(self, errors={**self.errors, name: entries})

    def merge(self, other: ValidationState) -> ValidationState:
        """Combine with a later state. *other* wins on conflicting keys."""
        return ValidationState(
            values={**self.values, **other.values},
            changes={**self.changes, **other.changes},
            errors={**self.errors, **other.errors},
            nested={**self.nested, **other.nested},
        )

    # ------------------------------------------------------------------
    # Rule helpers
    # ------------------------------------------------------------------

    def validate_required(
        self, names: Iterable[str], message: str = REQUIRED_MESSAGE
    ) -> ValidationState:
        """Require a present, non-null (and non-blank string) value."""
        state = self
        for name in names:
            if name in state.errors or name in state.nested:
                continue
            value = state.values.get(name)
            if value is None or (isinstance(value, str) and not value.strip()):
                state = state.add_error(name, message, validation="required")
        return state

    def validate_change(
        self,
        name: str,
        validator: Callable[[str, Any], Iterable[str | ErrorEntry]],
    ) -> ValidationState:
        """Run *validator(name, value)* on a present change.

        The validator returns messages, or ``(template, context)`` pairs.
        """
        if not self.has_change(name):
            return self
        state = self
        for item in validator(name, self.changes[name]):
            if isinstance(item, tuple):
                template, context = item
                state = state.add_error(name, template, **context)
            else:
                state = state.add_error(name, item)
        return state

    def validate_format(
        self,
        name: str,
        pattern: str | re.Pattern[str],
        message: str = FORMAT_MESSAGE,
    ) -> ValidationState:
        regex = re.compile(pattern) if isinstance(pattern, str) else pattern
        if not self.has_change(name):
            return self
        if regex.search(str(self.changes[name])) is None:
            return self.add_error(name, message, validation="format", format=regex.pattern)
        return self

    def validate_inclusion(
        self,
        name: str,
        choices: Collection[Any],
        message: str = INVALID_MESSAGE,
    ) -> ValidationState:
        if self.has_change(name) and self.changes[name] not in choices:
            return self.add_error(name, message, validation="inclusion", enum=list(choices))
        return self

    def validate_exclusion(
        self,
        name: str,
        choices: Collection[Any],
        message: str = EXCLUSION_MESSAGE,
    ) -> ValidationState:
        if self.has_change(name) and self.changes[name] in choices:
            return self.add_error(name, message, validation="exclusion", enum=list(choices))
        return self

    def validate_length(
        self,
        name: str,
        *,
        min: int | None = None,
        max: int | None = None,
        is_: int | None = None,
        message: str | None = None,
    ) -> ValidationState:
        """Check string length (characters) or collection size (items)."""
        if not self.has_change(name):
            return self
        value = self.changes[name]
        is_collection = not isinstance(value, str)
        length = len(value)

        for kind, bound, failed in (
            ("is", is_, is_ is not None and length != is_),
            ("min", min, min is not None and length < min),
            ("max", max, max is not None and length > max),
        ):
            if failed:
                template = message or _LENGTH_MESSAGES[(kind, is_collection)]
                return self.add_error(
                    name,
                    template,
                    validation="length",
                    kind=kind,
                    count=bound,
                    type="list" if is_collection else "string",
                )
        return self

    def validate_number(
        self, name: str, message: str | None = None, **checks: Any
    ) -> ValidationState:
        """Compare a numeric change, e.g. ``validate_number("age", greater_than=0)``.

        Raises:
            ValueError: For an unknown comparison keyword.
        """
        unknown = set(checks) - set(_NUMBER_CHECKS)
        if unknown:
            msg = f"Unknown number validations: {sorted(unknown)}"
            raise ValueError(msg)
        if not self.has_change(name):
            return self
        value = self.changes[name]
        for kind, number in checks.items():
            check, template = _NUMBER_CHECKS[kind]
            if not check(value, number):
                return self.add_error(
                    name,
                    message or template,
                    validation="number",
                    kind=kind,
                    number=number,
                )
        return self
