"""Definition builder — collects fields, options and event requests.

Every definition class gets a fresh :class:`DefinitionBuilder` passed to its
``define`` classmethod while the class is being created::

    class CreateUser(Command):
        @classmethod
        def define(cls, schema):
            schema.field("email", str, description="Login address")
            schema.field("name", str)
            schema.internal_field("id", UUID)
            schema.option("notify", "boolean", default=True)
            schema.derive_event("UserCreated", drop=["name"])

:meth:`DefinitionBuilder.build` freezes everything into a
:class:`DefinitionDescriptor`; the builder rejects further declarations.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any, Self

from cqrskit.domain.errors import DefinitionError
from cqrskit.domain.events import EventRequest, FieldSelection
from cqrskit.domain.fields import MISSING, FieldRegistry, SchemaDescriptor
from cqrskit.domain.options import OptionsRegistry


@dataclass(frozen=True)
class DefinitionDescriptor:
    """Frozen output of a :class:`DefinitionBuilder`."""

    schema: SchemaDescriptor
    options: OptionsRegistry
    events: tuple[EventRequest, ...]


class DefinitionBuilder:
    """Mutable, definition-time collector for one definition class."""

    def __init__(
        self,
        name: str,
        *,
        require_all_fields: bool = True,
        reserved: Iterable[str] = (),
        allow_events: bool = False,
    ) -> None:
        self.name = name
        self._fields = FieldRegistry(name, require_all_fields=require_all_fields, reserved=reserved)
        self._options = OptionsRegistry(name)
        self._events: list[EventRequest] = []
        self._allow_events = allow_events

    def field(self, name: str, type: Any, **opts: Any) -> Self:
        """Declare a field. See :meth:`FieldRegistry.declare_field`."""
        self._fields.declare_field(name, type, **opts)
        return self

    def internal_field(self, name: str, type: Any, **opts: Any) -> Self:
        """Declare a field that is never required and hidden from public listings."""
        self._fields.declare_internal_field(name, type, **opts)
        return self

    def option(
        self,
        name: str,
        hint: str,
        *,
        default: Any = MISSING,
        description: str | None = None,
    ) -> Self:
        """Declare a runtime option accepted by ``new``/``dispatch``/``execute``."""
        self._options.declare_option(name, hint, default=default, description=description)
        return self

    def derive_event(
        self,
        name: str,
        *,
        with_: Iterable[FieldSelection] = (),
        drop: Iterable[str] = (),
        version: int = 1,
    ) -> Self:
        """Request an event class derived from this definition's fields."""
        if not self._allow_events:
            msg = f"{self.name} cannot derive events; only commands can"
            raise DefinitionError(msg)
        if any(e.name == name for e in self._events):
            msg = f"{self.name} already derives an event named {name!r}"
            raise DefinitionError(msg)
        self._events.append(
            EventRequest(name=name, with_=tuple(with_), drop=tuple(drop), version=version)
        )
        return self

    def build(self) -> DefinitionDescriptor:
        schema = self._fields.build()
        self._options.close()
        return DefinitionDescriptor(
            schema=schema,
            options=self._options,
            events=tuple(self._events),
        )
