"""cqrskit — declarative commands and queries with a validation lifecycle."""

from cqrskit.definitions import (
    BoundedContext,
    Command,
    DomainEvent,
    Query,
    ValueObject,
    get_definition,
    get_event,
)
from cqrskit.domain.clock import FixedClock, SystemClock
from cqrskit.domain.errors import (
    CommandInvalidError,
    CqrsError,
    DefinitionError,
    QueryInvalidError,
)
from cqrskit.domain.result import HALT, INVALID_COMMAND, INVALID_QUERY, UNAUTHORIZED, Err, Ok

__version__ = "0.1.0"

__all__ = [
    "HALT",
    "INVALID_COMMAND",
    "INVALID_QUERY",
    "UNAUTHORIZED",
    "BoundedContext",
    "Command",
    "CommandInvalidError",
    "CqrsError",
    "DefinitionError",
    "DomainEvent",
    "Err",
    "FixedClock",
    "Ok",
    "Query",
    "QueryInvalidError",
    "SystemClock",
    "ValueObject",
    "__version__",
    "get_definition",
    "get_event",
]
