"""Runtime options accepted by ``new``, ``dispatch`` and ``execute``.

Options are not part of the field schema. Each definition owns exactly one
:class:`OptionsRegistry`; :meth:`OptionsRegistry.resolve` merges built-in
defaults, declared defaults and caller-supplied values (caller wins).
"""

from __future__ import annotations

import copy
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from cqrskit.domain.errors import DefinitionError
from cqrskit.domain.fields import MISSING


@dataclass(frozen=True)
class OptionSpec:
    """One declared option."""

    name: str
    hint: str
    default: Any = MISSING
    description: str | None = None

    @property
    def has_default(self) -> bool:
        return self.default is not MISSING


TAG_OPTION = OptionSpec(
    name="tag",
    hint="boolean",
    default=False,
    description="Wrap a bare handler return value as Ok(value).",
)

METADATA_OPTION = OptionSpec(
    name="metadata",
    hint="mapping",
    description="Free-form metadata passed through to hooks and handlers.",
)

BUILTIN_OPTIONS: tuple[OptionSpec, ...] = (TAG_OPTION, METADATA_OPTION)


class OptionsRegistry:
    """Declared options of one definition."""

    def __init__(self, name: str) -> None:
        self.name = name
        self._options: dict[str, OptionSpec] = {o.name: o for o in BUILTIN_OPTIONS}
        self._closed = False

    def declare_option(
        self,
        name: str,
        hint: str,
        *,
        default: Any = MISSING,
        description: str | None = None,
    ) -> OptionSpec:
        if self._closed:
            msg = f"Option registration for {self.name} is closed; cannot add {name!r}"
            raise DefinitionError(msg)
        if name in self._options:
            msg = f"{self.name} already declares an option named {name!r}"
            raise DefinitionError(msg)
        spec = OptionSpec(name=name, hint=hint, default=default, description=description)
        self._options[name] = spec
        return spec

    def close(self) -> None:
        self._closed = True

    @property
    def options(self) -> tuple[OptionSpec, ...]:
        return tuple(self._options.values())

    @property
    def declared(self) -> tuple[OptionSpec, ...]:
        """Options declared by the definition itself (built-ins excluded)."""
        return tuple(o for o in self._options.values() if o not in BUILTIN_OPTIONS)

    def resolve(self, call_options: Mapping[str, Any] | None = None) -> dict[str, Any]:
        """Merge defaults with *call_options*. Caller values always win."""
        resolved: dict[str, Any] = {
            spec.name: copy.copy(spec.default)
            for spec in self._options.values()
            if spec.has_default
        }
        resolved["metadata"] = {}
        if call_options:
            resolved.update(call_options)
        if resolved.get("metadata") is None:
            resolved["metadata"] = {}
        return resolved
