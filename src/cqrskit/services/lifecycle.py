"""Lifecycle orchestrator — turns raw input into an instance or an error map.

Phases of ``new``::

    normalize -> before_validate -> normalize -> validate (two passes)
      -> stamp implicit attributes -> after_create

``after_create`` only runs for valid input and its Result is the outcome.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING, Any, TypeVar

from cqrskit.definitions.registry import qualified_name
from cqrskit.domain.normalize import normalize_input
from cqrskit.domain.result import Err, Ok
from cqrskit.plugins.manager import get_plugin_manager
from cqrskit.services.validation import validate

if TYPE_CHECKING:
    from cqrskit.definitions.base import Definition

D = TypeVar("D", bound="Definition")

logger = logging.getLogger(__name__)


def _discarded(definition: type[Definition], attrs: dict[str, Any]) -> dict[str, Any]:
    known = definition.known_keys()
    return {key: value for key, value in attrs.items() if key not in known}


def create(
    definition: type[D],
    raw: Any,
    required_fields: Iterable[str],
    opts: dict[str, Any],
) -> Ok | Err:
    """Run the creation lifecycle of *definition* over *raw* input.

    Returns:
        ``Ok(instance)`` (or whatever Result ``after_create`` returns) on
        success, ``Err(error_map)`` when validation fails.
    """
    attrs = normalize_input(raw)
    attrs = normalize_input(definition.before_validate(dict(attrs)))
    discarded = _discarded(definition, attrs)

    stamp = definition._creation_stamp()
    state = validate(definition, attrs, required_fields, opts, implicit=stamp)
    if not state.valid:
        errors = state.error_map()
        logger.debug(
            "%s invalid: %s",
            definition.__name__,
            sorted(errors),
            extra={"definition": qualified_name(definition)},
        )
        return Err(errors)

    instance = definition._materialize(state.values, **stamp, discarded_fields=discarded)
    result = instance.after_create(opts)
    if not isinstance(result, (Ok, Err)):
        msg = f"{definition.__name__}.after_create must return Ok or Err"
        raise TypeError(msg)

    if result.ok:
        get_plugin_manager().notify(
            "post_create", definition=qualified_name(definition), instance=result.value
        )
    return result


def create_or_raise(
    definition: type[D],
    raw: Any,
    required_fields: Iterable[str],
    opts: dict[str, Any],
) -> D:
    """Like :func:`create` but unwrap ``Ok`` or raise the definition's invalid error."""
    result = create(definition, raw, required_fields, opts)
    if isinstance(result, Err):
        raise definition._invalid_error(result.error)
    return result.value
