"""Ok / Err result values returned by every per-call operation.

INVARIANT: ``new``, ``dispatch`` and ``execute`` never raise for invalid
input or failed authorization; they return ``Err``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Final

INVALID_COMMAND: Final = "invalid_command"
INVALID_QUERY: Final = "invalid_query"
UNAUTHORIZED: Final = "unauthorized"


class _Halt:
    """Sentinel returned by an authorization hook as ``Ok(HALT)``."""

    def __repr__(self) -> str:
        return "HALT"


HALT: Final = _Halt()


@dataclass(frozen=True)
class Ok:
    """Successful outcome carrying ``value``."""

    value: Any = None

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Err:
    """Failed outcome carrying ``error``."""

    error: Any = None

    @property
    def ok(self) -> bool:
        return False


Result = Ok | Err


def is_result(value: object) -> bool:
    """Whether *value* is already shaped as an ``Ok`` or ``Err``."""
    return isinstance(value, (Ok, Err))


def tag_result(value: Any, tag: bool) -> Any:
    """Wrap a handler return value when tagging is requested.

    With *tag* set, ``Ok``/``Err`` values pass through and any other value
    becomes ``Ok(value)``. Without it the value is returned untouched.
    """
    if not tag or is_result(value):
        return value
    return Ok(value)
