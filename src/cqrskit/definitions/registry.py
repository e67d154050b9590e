"""Process-wide registry of definition and event classes.

Keyed by ``module.qualname``. Classes register themselves when they are
created; re-creating a class under the same name (module reloads, tests)
replaces the earlier entry. Two different commands may not derive events
under the same name.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from cqrskit.domain.errors import DefinitionError

if TYPE_CHECKING:
    from cqrskit.definitions.base import Definition
    from cqrskit.definitions.event import DomainEvent

logger = logging.getLogger(__name__)

DEFINITION_REGISTRY: dict[str, type[Definition]] = {}
EVENT_REGISTRY: dict[str, type[DomainEvent]] = {}


def qualified_name(cls: type) -> str:
    return f"{cls.__module__}.{cls.__qualname__}"


def register_definition(cls: type[Definition]) -> None:
    key = qualified_name(cls)
    if key in DEFINITION_REGISTRY and DEFINITION_REGISTRY[key] is not cls:
        logger.debug("Replacing registered definition %s", key)
    DEFINITION_REGISTRY[key] = cls


def register_event(cls: type[DomainEvent]) -> None:
    """Register a derived event.

    Raises:
        DefinitionError: If another command already derives an event under
            the same ``module.qualname``.
    """
    key = qualified_name(cls)
    existing = EVENT_REGISTRY.get(key)
    if existing is not None and existing is not cls:
        owner = qualified_name(existing.__command__)
        if owner != qualified_name(cls.__command__):
            msg = f"Event {key} is already derived by {owner}"
            raise DefinitionError(msg)
        logger.debug("Replacing registered event %s", key)
    EVENT_REGISTRY[key] = cls


def get_definition(name: str) -> type[Definition]:
    """Look up a command, query or value object by ``module.qualname``.

    Raises:
        KeyError: If nothing is registered under *name*.
    """
    try:
        return DEFINITION_REGISTRY[name]
    except KeyError:
        msg = f"No definition registered as {name!r}"
        raise KeyError(msg) from None


def get_event(name: str) -> type[DomainEvent]:
    """Look up a derived event by ``module.qualname``.

    Raises:
        KeyError: If nothing is registered under *name*.
    """
    try:
        return EVENT_REGISTRY[name]
    except KeyError:
        msg = f"No event registered as {name!r}"
        raise KeyError(msg) from None
