"""Exception hierarchy for cqrskit.

Definition-time mistakes (duplicate fields, a dispatcher without a
``dispatch`` method, registering a non-command) raise immediately while
the class is being created. Per-call failures are returned as
:class:`~cqrskit.domain.result.Err` values; only the ``*_or_raise`` entry
points convert them into :class:`ValidationError` subclasses.
"""

from __future__ import annotations

from typing import Any


class CqrsError(Exception):
    """Base class for every error raised by cqrskit."""


class DefinitionError(CqrsError):
    """A command, query, value object or event was declared incorrectly."""


class DuplicateFieldError(DefinitionError):
    """A field name was declared twice on the same definition."""

    def __init__(self, definition: str, field_name: str) -> None:
        self.definition = definition
        self.field_name = field_name
        super().__init__(f"{definition} already declares a field named {field_name!r}")


class DispatcherMisconfiguredError(DefinitionError):
    """The configured dispatcher does not expose ``dispatch(command, opts)``."""

    def __init__(self, definition: str, dispatcher: object) -> None:
        self.definition = definition
        self.dispatcher = dispatcher
        super().__init__(
            f"{definition} was configured with dispatcher {dispatcher!r}, "
            "which does not define a callable dispatch(command, opts)"
        )


class NotACommandError(DefinitionError):
    """An object registered as a command is not a Command subclass."""

    def __init__(self, target: object) -> None:
        self.target = target
        super().__init__(f"{target!r} is not a cqrskit Command")


class NotAQueryError(DefinitionError):
    """An object registered as a query is not a Query subclass."""

    def __init__(self, target: object) -> None:
        self.target = target
        super().__init__(f"{target!r} is not a cqrskit Query")


class ValidationError(CqrsError):
    """Input failed validation.

    Attributes:
        errors: Field name to list of formatted messages. Embedded fields map
            to a nested error map (or a list of them for arrays).
    """

    def __init__(self, errors: dict[str, Any]) -> None:
        self.errors = errors
        super().__init__(str(errors))


class CommandInvalidError(ValidationError):
    """Raised by ``Command.new_or_raise`` for invalid input."""


class QueryInvalidError(ValidationError):
    """Raised by ``Query.new_or_raise`` and ``Query.execute_or_raise``."""
