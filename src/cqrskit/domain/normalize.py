"""Input normalization.

Raw input may be a mapping, a sequence of ``(key, value)`` pairs, a record
instance or a pydantic model, with keys given as strings, enum members or
other hashables. Everything is reduced to a ``dict`` keyed by the string
form of each key before any validation runs. Values pass through
untouched.

INVARIANT: ``normalize_input(normalize_input(x)) == normalize_input(x)``.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from enum import Enum
from typing import Any, Protocol, runtime_checkable

from pydantic import BaseModel


@runtime_checkable
class SupportsToDict(Protocol):
    def to_dict(self) -> dict[str, Any]: ...


def key_to_str(key: object) -> str:
    """String form of an input key."""
    if isinstance(key, str):
        return key
    if isinstance(key, Enum):
        return key.value if isinstance(key.value, str) else key.name
    return str(key)


def normalize_input(raw: Any) -> dict[str, Any]:
    """Return *raw* as a dict keyed by string field identifiers.

    Raises:
        TypeError: If *raw* is not a mapping-like value or a pair sequence.
    """
    if raw is None:
        return {}
    if isinstance(raw, SupportsToDict) and not isinstance(raw, Mapping):
        raw = raw.to_dict()
    elif isinstance(raw, BaseModel):
        raw = raw.model_dump()

    if isinstance(raw, Mapping):
        items: Iterable[Any] = raw.items()
    elif isinstance(raw, (str, bytes)):
        msg = f"Cannot normalize {type(raw).__name__} input; expected a mapping or pairs"
        raise TypeError(msg)
    elif isinstance(raw, Iterable):
        items = raw
    else:
        msg = f"Cannot normalize {type(raw).__name__} input; expected a mapping or pairs"
        raise TypeError(msg)

    normalized: dict[str, Any] = {}
    for item in items:
        try:
            key, value = item
        except (TypeError, ValueError) as exc:
            msg = f"Expected (key, value) pairs, got {item!r}"
            raise TypeError(msg) from exc
        normalized[key_to_str(key)] = value
    return normalized
