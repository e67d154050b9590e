"""Field type tags.

A declared field type is one of four closed variants:

- :class:`Scalar` — any Python type pydantic can cast (``str``, ``int``,
  ``UUID``, ``datetime``, ``Any`` ...).
- :class:`Enumerated` — one of a fixed set of choices (or an ``Enum``).
- :class:`ArrayOf` — a list of another tag.
- :class:`Embedded` — a value object carrying its own nested field schema.

Embedding is detected structurally through :class:`EmbeddableType`: a type
qualifies when it exposes ``value_object_schema()``, whether it is used
bare or inside ``list[...]``.
"""

from __future__ import annotations

import typing
from dataclasses import dataclass, field
from enum import Enum
from functools import lru_cache
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from pydantic import TypeAdapter

if TYPE_CHECKING:
    from cqrskit.domain.fields import SchemaDescriptor


@runtime_checkable
class EmbeddableType(Protocol):
    """Capability of types that can be embedded as a nested field set."""

    def value_object_schema(self) -> SchemaDescriptor: ...


class TypeTag:
    """Base class for the closed set of field type variants."""

    def describe(self) -> str:
        raise NotImplementedError


@dataclass(frozen=True)
class Scalar(TypeTag):
    python_type: Any

    def describe(self) -> str:
        if self.python_type is Any:
            return "any"
        return getattr(self.python_type, "__name__", None) or repr(self.python_type)

    @property
    def passthrough(self) -> bool:
        """``Any`` fields keep input values as-is."""
        return self.python_type is Any

    def adapter(self) -> TypeAdapter[Any]:
        return _adapter_for(self.python_type)


@dataclass(frozen=True)
class Enumerated(TypeTag):
    choices: tuple[Any, ...]
    enum_cls: type[Enum] | None = field(default=None, compare=False)

    @classmethod
    def from_enum(cls, enum_cls: type[Enum]) -> Enumerated:
        return cls(choices=tuple(enum_cls), enum_cls=enum_cls)

    def describe(self) -> str:
        if self.enum_cls is not None:
            return self.enum_cls.__name__
        return "enum(" + ", ".join(str(c) for c in self.choices) + ")"


@dataclass(frozen=True)
class ArrayOf(TypeTag):
    inner: TypeTag

    def describe(self) -> str:
        return f"list[{self.inner.describe()}]"


@dataclass(frozen=True)
class Embedded(TypeTag):
    value_object: type

    def describe(self) -> str:
        return self.value_object.__name__

    def schema(self) -> SchemaDescriptor:
        return self.value_object.value_object_schema()


def is_embeddable(tp: object) -> bool:
    """Whether *tp* exposes the value-object capability."""
    return isinstance(tp, type) and isinstance(tp, EmbeddableType)


def as_type_tag(tp: Any) -> TypeTag:
    """Coerce a Python annotation (or an existing tag) into a :class:`TypeTag`."""
    if isinstance(tp, TypeTag):
        return tp

    origin = typing.get_origin(tp)
    if origin in (list, tuple, set, frozenset):
        args = [a for a in typing.get_args(tp) if a is not Ellipsis]
        if len(args) != 1:
            msg = f"Array field types need exactly one item type, got {tp!r}"
            raise TypeError(msg)
        return ArrayOf(as_type_tag(args[0]))

    if is_embeddable(tp):
        return Embedded(tp)
    if isinstance(tp, type) and issubclass(tp, Enum):
        return Enumerated.from_enum(tp)
    return Scalar(tp)


def is_value_object_tag(tag: TypeTag) -> bool:
    """Whether *tag* routes a field to the embedded list (bare or array)."""
    if isinstance(tag, ArrayOf):
        return isinstance(tag.inner, Embedded)
    return isinstance(tag, Embedded)


@lru_cache(maxsize=256)
def _adapter_for(python_type: Any) -> TypeAdapter[Any]:
    return TypeAdapter(python_type)
