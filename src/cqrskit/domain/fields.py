"""Field registry and the frozen schema descriptor it produces.

Fields are declared once while a definition class is being created. The
registry routes value-object fields (bare or array-of) to a separate
``embeds`` list so the validation engine can cast them recursively.

INVARIANT: field names are unique within a schema, and implicit attribute
names (``created_at``, ``discarded_fields`` ...) cannot be redeclared.
INVARIANT: internal fields are never required.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any, Final

from cqrskit.domain.errors import DefinitionError, DuplicateFieldError
from cqrskit.domain.types import TypeTag, as_type_tag, is_value_object_tag

logger = logging.getLogger(__name__)


class _Missing:
    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Final = _Missing()


@dataclass(frozen=True)
class FieldSpec:
    """One declared field."""

    name: str
    type: TypeTag
    required: bool = False
    internal: bool = False
    default: Any = MISSING
    description: str | None = None

    @property
    def has_default(self) -> bool:
        return self.default is not MISSING

    @property
    def embedded(self) -> bool:
        return is_value_object_tag(self.type)


@dataclass(frozen=True)
class SchemaDescriptor:
    """Ordered, immutable field schema of a definition.

    ``fields`` holds scalar, enumerated and array-of-scalar fields;
    ``embeds`` holds value-object fields.
    """

    name: str
    fields: tuple[FieldSpec, ...] = ()
    embeds: tuple[FieldSpec, ...] = ()

    @property
    def all_fields(self) -> tuple[FieldSpec, ...]:
        return self.fields + self.embeds

    @property
    def field_names(self) -> tuple[str, ...]:
        return tuple(f.name for f in self.all_fields)

    @property
    def required_fields(self) -> tuple[str, ...]:
        return tuple(f.name for f in self.all_fields if f.required)

    @property
    def public_fields(self) -> tuple[str, ...]:
        return tuple(f.name for f in self.all_fields if not f.internal)

    @property
    def internal_fields(self) -> tuple[str, ...]:
        return tuple(f.name for f in self.all_fields if f.internal)

    def get(self, name: str) -> FieldSpec | None:
        for spec in self.all_fields:
            if spec.name == name:
                return spec
        return None

    def defaults(self) -> dict[str, Any]:
        """Declared defaults, with ``None`` for fields that have none."""
        return {f.name: (f.default if f.has_default else None) for f in self.all_fields}


class FieldRegistry:
    """Accumulates field declarations for one definition.

    Usage::

        registry = FieldRegistry("CreateUser", require_all_fields=True)
        registry.declare_field("email", str)
        registry.declare_internal_field("id", UUID)
        schema = registry.build()
    """

    def __init__(
        self,
        name: str,
        *,
        require_all_fields: bool = True,
        reserved: Iterable[str] = (),
    ) -> None:
        self.name = name
        self.require_all_fields = require_all_fields
        self._reserved = frozenset(reserved)
        self._fields: list[FieldSpec] = []
        self._embeds: list[FieldSpec] = []
        self._closed = False

    def declare_field(
        self,
        name: str,
        type: Any,
        *,
        required: bool | None = None,
        internal: bool = False,
        default: Any = MISSING,
        description: str | None = None,
    ) -> FieldSpec:
        """Append a field. ``required=None`` follows ``require_all_fields``."""
        if self._closed:
            msg = f"Field registration for {self.name} is closed; cannot add {name!r}"
            raise DefinitionError(msg)
        if not name.isidentifier():
            msg = f"{self.name}: field name {name!r} is not a valid identifier"
            raise DefinitionError(msg)
        if name in self._reserved or any(f.name == name for f in self._fields + self._embeds):
            raise DuplicateFieldError(self.name, name)

        if internal:
            required = False
        elif required is None:
            required = self.require_all_fields

        spec = FieldSpec(
            name=name,
            type=as_type_tag(type),
            required=required,
            internal=internal,
            default=default,
            description=description,
        )
        if spec.embedded:
            self._embeds.append(spec)
        else:
            self._fields.append(spec)
        return spec

    def declare_internal_field(
        self,
        name: str,
        type: Any,
        *,
        required: bool | None = None,
        default: Any = MISSING,
        description: str | None = None,
    ) -> FieldSpec:
        """Same as :meth:`declare_field` with ``internal=True``.

        Internal fields are never required; an explicit ``required`` is ignored.
        """
        if required:
            logger.debug("Ignoring required=True on internal field %s.%s", self.name, name)
        return self.declare_field(
            name,
            type,
            required=False,
            internal=True,
            default=default,
            description=description,
        )

    def build(self) -> SchemaDescriptor:
        """Freeze the declarations into a :class:`SchemaDescriptor`."""
        self._closed = True
        schema = SchemaDescriptor(
            name=self.name,
            fields=tuple(self._fields),
            embeds=tuple(self._embeds),
        )
        logger.debug(
            "Built schema %s: %d fields, %d embeds",
            self.name,
            len(schema.fields),
            len(schema.embeds),
        )
        return schema
