"""Record and Definition — the base classes behind commands and queries.

:class:`Record` is the immutable value holder shared by every generated
object (commands, queries, value objects, events): one value per declared
field plus a few implicit attributes such as ``created_at``.

:class:`Definition` adds definition-time registration and the creation
lifecycle. Subclasses declare their schema in ``define`` and override only
the hooks they need; every hook has a pass-through default.
"""

from __future__ import annotations

import copy
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, ClassVar, Literal, Self

from cqrskit.config.settings import get_settings
from cqrskit.definitions.registry import register_definition
from cqrskit.domain.builder import DefinitionBuilder, DefinitionDescriptor
from cqrskit.domain.errors import DefinitionError, ValidationError
from cqrskit.domain.result import Err, Ok
from cqrskit.services.lifecycle import create, create_or_raise

if TYPE_CHECKING:
    from cqrskit.domain.fields import SchemaDescriptor
    from cqrskit.domain.options import OptionSpec, OptionsRegistry
    from cqrskit.domain.validation import ValidationState

FieldKind = Literal["public", "internal", "required", "all"]


def _dump(value: Any) -> Any:
    if isinstance(value, Record):
        return value.to_dict()
    if isinstance(value, list):
        return [_dump(v) for v in value]
    return value


class Record:
    """Immutable holder of declared field values.

    Field values are read as attributes (``command.email``). Instances are
    never mutated; :meth:`replace` returns a modified copy.
    """

    __schema__: ClassVar[SchemaDescriptor]
    _implicit_defaults: ClassVar[Mapping[str, Any]] = {}

    def __init__(self, values: Mapping[str, Any], **implicit: Any) -> None:
        unknown = set(implicit) - set(self._implicit_defaults)
        if unknown:
            msg = f"{type(self).__name__} has no implicit attributes {sorted(unknown)}"
            raise TypeError(msg)
        declared = self.__schema__.field_names
        object.__setattr__(self, "_values", {name: values.get(name) for name in declared})
        for name, default in self._implicit_defaults.items():
            value = implicit[name] if name in implicit else copy.copy(default)
            object.__setattr__(self, name, value)

    def __getattr__(self, name: str) -> Any:
        values = self.__dict__.get("_values")
        if values is not None and name in values:
            return values[name]
        msg = f"{type(self).__name__!r} object has no attribute {name!r}"
        raise AttributeError(msg)

    def __setattr__(self, name: str, value: Any) -> None:
        msg = f"{type(self).__name__} is immutable; use replace({name}=...)"
        raise AttributeError(msg)

    def __delattr__(self, name: str) -> None:
        msg = f"{type(self).__name__} is immutable"
        raise AttributeError(msg)

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return self._values == other._values and all(
            getattr(self, n) == getattr(other, n) for n in self._implicit_defaults
        )

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        fields = ", ".join(f"{k}={v!r}" for k, v in self._values.items())
        return f"{type(self).__name__}({fields})"

    def replace(self, **changes: Any) -> Self:
        """Return a copy with *changes* applied to fields or implicit attributes.

        Raises:
            TypeError: If a name is neither a declared field nor implicit.
        """
        unknown = set(changes) - set(self._values) - set(self._implicit_defaults)
        if unknown:
            msg = f"{type(self).__name__} has no fields {sorted(unknown)}"
            raise TypeError(msg)
        values = {**self._values}
        implicit = {n: getattr(self, n) for n in self._implicit_defaults}
        for name, value in changes.items():
            if name in values:
                values[name] = value
            else:
                implicit[name] = value
        return type(self)(values, **implicit)

    def to_dict(self) -> dict[str, Any]:
        """Declared field values, with nested records dumped to dicts."""
        return {name: _dump(value) for name, value in self._values.items()}


class Definition(Record):
    """Base class of commands, queries and value objects.

    Subclasses are registered when created: a :class:`DefinitionBuilder` is
    passed to :meth:`define`, then frozen into ``__schema__`` and
    ``__options__``. Pass ``abstract=True`` to skip registration for shared
    intermediate base classes.

    Class keywords:
        abstract: Skip schema building and registration.
        require_all_fields: Default ``required`` for declared fields.
            Falls back to the ``definitions.require_all_fields`` setting.
    """

    __options__: ClassVar[OptionsRegistry]
    _abstract: ClassVar[bool] = True
    _allow_events: ClassVar[bool] = False
    _invalid_error: ClassVar[type[ValidationError]] = ValidationError

    def __init_subclass__(
        cls,
        *,
        abstract: bool = False,
        require_all_fields: bool | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init_subclass__(**kwargs)
        cls._abstract = abstract
        if abstract:
            return

        if require_all_fields is None:
            require_all_fields = get_settings().definitions.require_all_fields

        builder = DefinitionBuilder(
            cls.__name__,
            require_all_fields=require_all_fields,
            reserved=cls._implicit_defaults,
            allow_events=cls._allow_events,
        )
        cls.define(builder)
        descriptor = builder.build()

        for name in descriptor.schema.field_names:
            owner = next((k for k in cls.__mro__ if name in vars(k)), None)
            if owner is not None and owner is not object:
                msg = f"Field {name!r} of {cls.__name__} shadows {owner.__name__}.{name}"
                raise DefinitionError(msg)

        cls.__schema__ = descriptor.schema
        cls.__options__ = descriptor.options
        cls._finalize(descriptor)
        register_definition(cls)

    @classmethod
    def _finalize(cls, descriptor: DefinitionDescriptor) -> None:
        """Extra definition-time setup for subclasses (events, dispatcher)."""

    @classmethod
    def define(cls, schema: DefinitionBuilder) -> None:
        """Declare fields, options and events. Declares nothing by default."""

    # ------------------------------------------------------------------
    # Hooks (override as needed)
    # ------------------------------------------------------------------

    @classmethod
    def before_validate(cls, attrs: dict[str, Any]) -> dict[str, Any]:
        """Transform normalized input before casting. Keys are strings."""
        return attrs

    @classmethod
    def handle_validate(cls, state: ValidationState, opts: dict[str, Any]) -> ValidationState:
        """Add custom rules on top of casting and required checks."""
        return state

    def after_validate(self) -> Self:
        """Adjust a validated draft. The result is validated again."""
        return self

    def after_create(self, opts: dict[str, Any]) -> Ok | Err:
        """Final step of ``new``; must return a Result."""
        return Ok(self)

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    @classmethod
    def new(cls, attrs: Any = None, /, **opts: Any) -> Ok | Err:
        """Validate *attrs* and return ``Ok(instance)`` or ``Err(error_map)``."""
        cls._ensure_concrete()
        return create(cls, attrs, cls.__schema__.required_fields, cls.__options__.resolve(opts))

    @classmethod
    def new_or_raise(cls, attrs: Any = None, /, **opts: Any) -> Self:
        """Like :meth:`new` but return the instance or raise the invalid error."""
        cls._ensure_concrete()
        return create_or_raise(
            cls, attrs, cls.__schema__.required_fields, cls.__options__.resolve(opts)
        )

    @classmethod
    def _materialize(cls, values: Mapping[str, Any], **implicit: Any) -> Self:
        return cls(values, **{k: v for k, v in implicit.items() if k in cls._implicit_defaults})

    @classmethod
    def _creation_stamp(cls) -> dict[str, Any]:
        """Implicit attribute values fixed once per ``new`` call."""
        return {}

    @classmethod
    def _ensure_concrete(cls) -> None:
        if cls._abstract:
            msg = f"{cls.__name__} is abstract and has no schema"
            raise DefinitionError(msg)

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @classmethod
    def schema(cls) -> SchemaDescriptor:
        return cls.__schema__

    @classmethod
    def field_names(cls, kind: FieldKind = "all") -> tuple[str, ...]:
        schema = cls.__schema__
        by_kind = {
            "public": schema.public_fields,
            "internal": schema.internal_fields,
            "required": schema.required_fields,
            "all": schema.field_names,
        }
        if kind in by_kind:
            return by_kind[kind]
        msg = f"Unknown field kind {kind!r}"
        raise ValueError(msg)

    @classmethod
    def public_fields(cls) -> tuple[str, ...]:
        return cls.field_names("public")

    @classmethod
    def internal_fields(cls) -> tuple[str, ...]:
        return cls.field_names("internal")

    @classmethod
    def required_fields(cls) -> tuple[str, ...]:
        return cls.field_names("required")

    @classmethod
    def options(cls) -> tuple[OptionSpec, ...]:
        return cls.__options__.options

    @classmethod
    def known_keys(cls) -> frozenset[str]:
        """Declared field names plus implicit attribute names."""
        return frozenset(cls.__schema__.field_names) | frozenset(cls._implicit_defaults)
