"""ValueObject — an embeddable nested field set.

Declaring a field with a value object type (or ``list[...]`` of one) embeds
it: the nested input is validated with the value object's own schema and
hooks, and errors are reported under the parent field::

    class Address(ValueObject):
        @classmethod
        def define(cls, schema):
            schema.field("street", str)
            schema.field("zip", str)

    class Relocate(Command):
        @classmethod
        def define(cls, schema):
            schema.field("address", Address)
"""

from __future__ import annotations

from cqrskit.definitions.base import Definition
from cqrskit.domain.fields import SchemaDescriptor


class ValueObject(Definition, abstract=True):
    """Base class for embeddable value objects."""

    @classmethod
    def value_object_schema(cls) -> SchemaDescriptor:
        """Nested schema; its presence is what makes a type embeddable."""
        cls._ensure_concrete()
        return cls.__schema__
