"""Event descriptors derived from a command's field schema.

A command can declare events it produces; each event inherits the
command's fields, minus ``drop``, plus any explicit ``with_`` entries.
``discarded_fields`` is always dropped unless ``with_`` names it.

The descriptor is pure data. It is realized as a ``DomainEvent`` class by
:func:`cqrskit.definitions.event.realize_event`, using the same
:class:`~cqrskit.domain.fields.FieldRegistry` as commands do.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from cqrskit.domain.fields import MISSING, SchemaDescriptor

DISCARDED_FIELDS = "discarded_fields"

FieldSelection = str | tuple[str, Any]


@dataclass(frozen=True)
class EventRequest:
    """A ``derive_event`` call captured at definition time."""

    name: str
    with_: tuple[FieldSelection, ...] = ()
    drop: tuple[str, ...] = ()
    version: int = 1


@dataclass(frozen=True)
class EventDescriptor:
    """Field selection of one derived event.

    ``inherited_fields`` keeps ``(name, default)`` pairs in declaration
    order; a default of ``MISSING`` means the field has no default.
    """

    name: str
    inherited_fields: tuple[tuple[str, Any], ...]
    dropped_fields: frozenset[str]
    version: int = 1

    @property
    def field_names(self) -> tuple[str, ...]:
        return tuple(n for n, _ in self.inherited_fields if n not in self.dropped_fields)

    def fields(self) -> tuple[tuple[str, Any], ...]:
        """Inherited fields that survive the drop set."""
        return tuple((n, d) for n, d in self.inherited_fields if n not in self.dropped_fields)


def _selection(entry: FieldSelection) -> tuple[str, Any]:
    if isinstance(entry, str):
        return entry, MISSING
    name, default = entry
    return name, default


def derive_event_descriptor(
    schema: SchemaDescriptor,
    name: str,
    *,
    with_: Iterable[FieldSelection] = (),
    drop: Iterable[str] = (),
    default_values: bool = True,
    version: int = 1,
) -> EventDescriptor:
    """Derive the field selection of event *name* from a command *schema*.

    Explicit ``with_`` entries come first and win over inherited fields with
    the same name. With *default_values* each inherited field carries the
    command field's declared default.
    """
    explicit = [_selection(e) for e in with_]
    inherited = [
        (spec.name, spec.default if default_values else MISSING) for spec in schema.all_fields
    ]

    selected: dict[str, Any] = {}
    for field_name, default in explicit + inherited:
        selected.setdefault(field_name, default)

    dropped = set(drop)
    if DISCARDED_FIELDS not in {n for n, _ in explicit}:
        dropped.add(DISCARDED_FIELDS)

    return EventDescriptor(
        name=name,
        inherited_fields=tuple(selected.items()),
        dropped_fields=frozenset(dropped),
        version=version,
    )
