"""DomainEvent — records derived from a command's field set.

Event classes are not written by hand; ``schema.derive_event("UserCreated")``
in a command's ``define`` produces one when the command class is created::

    UserCreated = CreateUser.events["UserCreated"]
    event = UserCreated.new(command, reason="signup")

Events are facts, not input: ``new`` copies matching fields from the source
command and applies overrides without validation.
"""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, ClassVar, Self

from cqrskit.definitions.base import Record
from cqrskit.definitions.registry import register_event
from cqrskit.domain.fields import FieldRegistry
from cqrskit.domain.normalize import normalize_input

if TYPE_CHECKING:
    from cqrskit.definitions.command import Command
    from cqrskit.domain.events import EventDescriptor


class DomainEvent(Record):
    """Base class of derived events.

    Implicit attributes: ``created_at`` (from the source command's clock)
    and ``version``.
    """

    __event__: ClassVar[EventDescriptor]
    __command__: ClassVar[type[Command]]
    _implicit_defaults: ClassVar[Mapping[str, Any]] = MappingProxyType(
        {"created_at": None, "version": 1}
    )

    @classmethod
    def new(cls, source: Any = None, /, **attrs: Any) -> Self:
        """Build an event from *source* (a command or mapping) plus overrides.

        Keys that are not event fields are ignored.
        """
        names = set(cls.__schema__.field_names)
        values = cls.__schema__.defaults()

        if isinstance(source, Record):
            copied = dict(source._values)
            for implicit in source._implicit_defaults:
                copied.setdefault(implicit, getattr(source, implicit))
            values.update({k: v for k, v in copied.items() if k in names})
        elif source is not None:
            copied = normalize_input(source)
            values.update({k: v for k, v in copied.items() if k in names})

        values.update({k: v for k, v in normalize_input(attrs).items() if k in names})
        return cls(values, created_at=cls.__command__.clock.now(), version=cls.__event__.version)

    @classmethod
    def field_names(cls) -> tuple[str, ...]:
        return cls.__schema__.field_names


def realize_event(command_cls: type[Command], descriptor: EventDescriptor) -> type[DomainEvent]:
    """Create and register the event class described by *descriptor*.

    Field types are taken from the command's schema where the field exists
    there; extra ``with_`` fields are untyped.
    """
    registry = FieldRegistry(
        descriptor.name,
        require_all_fields=False,
        reserved=DomainEvent._implicit_defaults,
    )
    command_schema = command_cls.__schema__
    for name, default in descriptor.fields():
        spec = command_schema.get(name)
        registry.declare_field(
            name,
            spec.type if spec is not None else Any,
            default=default,
            description=spec.description if spec is not None else None,
        )

    event_cls = type(
        descriptor.name,
        (DomainEvent,),
        {
            "__module__": command_cls.__module__,
            "__qualname__": descriptor.name,
            "__doc__": f"Event derived from {command_cls.__name__}.",
            "__schema__": registry.build(),
            "__event__": descriptor,
            "__command__": command_cls,
        },
    )
    register_event(event_cls)
    return event_cls
