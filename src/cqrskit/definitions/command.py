"""Command — a validated, immutable input that triggers an action.

Example::

    class CreateUser(Command):
        @classmethod
        def define(cls, schema):
            schema.field("email", str)
            schema.field("name", str)
            schema.internal_field("id", UUID)
            schema.derive_event("UserCreated")

        @classmethod
        def handle_validate(cls, state, opts):
            return state.validate_format("email", r"@")

        def after_validate(self):
            return self.replace(id=uuid5(NAMESPACE_OID, self.email))

        def handle_dispatch(self, opts):
            return Ok("dispatched")

    CreateUser.dispatch(CreateUser.new({"email": "chris@example.com", "name": "chris"}))

Class keywords:
    dispatcher: Object with ``dispatch(command, opts)``. When set,
        ``handle_dispatch`` delegates to it.
    default_event_values: Whether derived events inherit field defaults.
        Falls back to the ``definitions.default_event_values`` setting.
"""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, ClassVar, Protocol, runtime_checkable

from cqrskit.config.settings import get_settings
from cqrskit.definitions.base import Definition
from cqrskit.definitions.event import DomainEvent, realize_event
from cqrskit.domain.clock import Clock, SystemClock
from cqrskit.domain.errors import CommandInvalidError, DispatcherMisconfiguredError
from cqrskit.domain.events import derive_event_descriptor
from cqrskit.domain.result import Err, Ok
from cqrskit.services.dispatch import dispatch_command

if TYPE_CHECKING:
    from cqrskit.domain.builder import DefinitionDescriptor


@runtime_checkable
class Dispatcher(Protocol):
    """External collaborator that runs commands (e.g. a command bus)."""

    def dispatch(self, command: Command, opts: dict[str, Any]) -> Any: ...


class Command(Definition, abstract=True):
    """Base class for commands.

    Implicit attributes: ``created_at`` (stamped from :attr:`clock`) and
    ``discarded_fields`` (input keys that matched no declared field).
    """

    _implicit_defaults: ClassVar[Mapping[str, Any]] = MappingProxyType(
        {"created_at": None, "discarded_fields": {}}
    )
    _allow_events: ClassVar[bool] = True
    _invalid_error = CommandInvalidError

    clock: ClassVar[Clock] = SystemClock()
    dispatcher: ClassVar[Dispatcher | None] = None
    default_event_values: ClassVar[bool | None] = None
    events: ClassVar[Mapping[str, type[DomainEvent]]] = MappingProxyType({})

    def __init_subclass__(
        cls,
        *,
        dispatcher: Any = None,
        default_event_values: bool | None = None,
        **kwargs: Any,
    ) -> None:
        if dispatcher is not None:
            if not (isinstance(dispatcher, Dispatcher) and callable(dispatcher.dispatch)):
                raise DispatcherMisconfiguredError(cls.__name__, dispatcher)
            cls.dispatcher = dispatcher
        if default_event_values is not None:
            cls.default_event_values = default_event_values
        super().__init_subclass__(**kwargs)

    @classmethod
    def _finalize(cls, descriptor: DefinitionDescriptor) -> None:
        default_values = cls.default_event_values
        if default_values is None:
            default_values = get_settings().definitions.default_event_values

        events: dict[str, type[DomainEvent]] = {}
        for request in descriptor.events:
            event_descriptor = derive_event_descriptor(
                descriptor.schema,
                request.name,
                with_=request.with_,
                drop=request.drop,
                default_values=default_values,
                version=request.version,
            )
            events[request.name] = realize_event(cls, event_descriptor)
        cls.events = MappingProxyType(events)

    @classmethod
    def _creation_stamp(cls) -> dict[str, Any]:
        return {"created_at": cls.clock.now()}

    # ------------------------------------------------------------------
    # Dispatch hooks
    # ------------------------------------------------------------------

    def before_dispatch(self, opts: dict[str, Any]) -> Ok | Err | Command:
        """Last chance for checks that perform I/O. Runs before authorization."""
        return Ok(self)

    def handle_authorize(self, opts: dict[str, Any]) -> Any:
        """Return ``Ok(self)`` to proceed, ``Ok(HALT)`` to stop successfully.

        Anything else is treated as unauthorized.
        """
        return Ok(self)

    def handle_dispatch(self, opts: dict[str, Any]) -> Any:
        """Run the command. Delegates to the configured dispatcher by default."""
        dispatcher = type(self).dispatcher
        if dispatcher is None:
            msg = f"{type(self).__name__} must implement handle_dispatch or set a dispatcher"
            raise NotImplementedError(msg)
        return dispatcher.dispatch(self, opts)

    @classmethod
    def dispatch(cls, command: Any, /, **opts: Any) -> Any:
        """Dispatch an instance, or the Result of :meth:`new`."""
        cls._ensure_concrete()
        return dispatch_command(cls, command, cls.__options__.resolve(opts))
