"""Definitions layer — the classes users subclass.

Import order matters: ``base`` must load before ``command``/``query`` since
both subclass :class:`Definition` at import time.
"""

from cqrskit.definitions.base import Definition, Record
from cqrskit.definitions.event import DomainEvent
from cqrskit.definitions.command import Command, Dispatcher
from cqrskit.definitions.query import Query
from cqrskit.definitions.value_object import ValueObject
from cqrskit.definitions.bounded_context import BoundedContext
from cqrskit.definitions.registry import get_definition, get_event

__all__ = [
    "BoundedContext",
    "Command",
    "Definition",
    "Dispatcher",
    "DomainEvent",
    "Query",
    "Record",
    "ValueObject",
    "get_definition",
    "get_event",
]
