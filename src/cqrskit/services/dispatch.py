"""Dispatch pipeline — command dispatch and query execution.

Commands::

    Err(errors)         -> Err((INVALID_COMMAND, errors)), no hooks run
    Ok(cmd) | cmd       -> before_dispatch -> handle_authorize -> handle_dispatch

Queries skip the before-dispatch and authorization stages and call
``handle_execute``. Both tag the handler's return value when the ``tag``
option is set.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from cqrskit.definitions.registry import qualified_name
from cqrskit.domain.result import (
    HALT,
    INVALID_COMMAND,
    INVALID_QUERY,
    UNAUTHORIZED,
    Err,
    Ok,
    tag_result,
)
from cqrskit.plugins.manager import get_plugin_manager

if TYPE_CHECKING:
    from cqrskit.definitions.command import Command
    from cqrskit.definitions.query import Query

logger = logging.getLogger(__name__)


def _unwrap(definition: type, value: Any) -> Any:
    instance = value.value if isinstance(value, Ok) else value
    if not isinstance(instance, definition):
        msg = f"Expected a {definition.__name__} instance, got {type(instance).__name__}"
        raise TypeError(msg)
    return instance


def _flatten(error: Any) -> Any:
    """Flatten arbitrarily nested lists of errors into one list."""
    if not isinstance(error, list):
        return error
    flat: list[Any] = []
    for item in error:
        if isinstance(item, list):
            flat.extend(_flatten(item))
        else:
            flat.append(item)
    return flat


def _before_dispatch(
    command_cls: type[Command], command: Command, opts: dict[str, Any]
) -> Ok | Err:
    outcome = command.before_dispatch(opts)
    if isinstance(outcome, Err):
        return Err(_flatten(outcome.error))
    if isinstance(outcome, Ok):
        return Ok(_unwrap(command_cls, outcome))
    if isinstance(outcome, command_cls):
        return Ok(outcome)
    msg = f"{command_cls.__name__}.before_dispatch must return Ok, Err or a command"
    raise TypeError(msg)


def _run_dispatch(command_cls: type[Command], command: Command, opts: dict[str, Any]) -> Any:
    authorized = command.handle_authorize(opts)
    if isinstance(authorized, Ok) and authorized.value is HALT:
        logger.debug(
            "%s halted by handle_authorize",
            command_cls.__name__,
            extra={"definition": qualified_name(command_cls), "hook": "handle_authorize"},
        )
        return Ok(command)
    if not (isinstance(authorized, Ok) and isinstance(authorized.value, command_cls)):
        logger.debug(
            "%s unauthorized",
            command_cls.__name__,
            extra={"definition": qualified_name(command_cls), "hook": "handle_authorize"},
        )
        return Err(UNAUTHORIZED)

    return tag_result(authorized.value.handle_dispatch(opts), bool(opts.get("tag")))


def dispatch_command(command_cls: type[Command], command: Any, opts: dict[str, Any]) -> Any:
    """Dispatch *command* (an instance or the Result of ``new``).

    Raises:
        TypeError: If *command* is not an instance of *command_cls*.
    """
    if isinstance(command, Err):
        return Err((INVALID_COMMAND, command.error))

    instance = _unwrap(command_cls, command)
    prepared = _before_dispatch(command_cls, instance, opts)
    if isinstance(prepared, Err):
        return prepared

    result = _run_dispatch(command_cls, prepared.value, opts)
    if not isinstance(result, Err):
        get_plugin_manager().notify(
            "post_dispatch", definition=qualified_name(command_cls), result=result
        )
    return result


def execute_query(query_cls: type[Query], query: Any, opts: dict[str, Any]) -> Any:
    """Execute *query* (an instance or the Result of ``new``).

    Raises:
        TypeError: If *query* is not an instance of *query_cls*.
    """
    if isinstance(query, Err):
        return Err((INVALID_QUERY, query.error))

    instance = _unwrap(query_cls, query)
    result = tag_result(instance.handle_execute(opts), bool(opts.get("tag")))
    if not isinstance(result, Err):
        get_plugin_manager().notify(
            "post_execute", definition=qualified_name(query_cls), result=result
        )
    return result
