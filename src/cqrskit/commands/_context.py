"""AppContext — shared Click context for all commands.

Created once by the root CLI group and flows to all subcommands via
``@click.pass_obj``.  Configures logging and centralizes output
(stdout/stderr routing and exit codes).
"""

from __future__ import annotations

import importlib
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

import click

from cqrskit.config.logging import configure_from_settings
from cqrskit.definitions.base import Definition
from cqrskit.output.formatters import to_json

if TYPE_CHECKING:
    from cqrskit.config.settings import CqrsSettings


class AppContext:
    """Shared context flowing through Click's command hierarchy."""

    def __init__(self, settings: CqrsSettings, *, json_output: bool = False) -> None:
        self.settings = settings
        self.json_output = json_output
        configure_from_settings(settings.logging)

    def load_definition(self, target: str) -> type[Definition]:
        """Import ``package.module:ClassName`` and check it is a concrete definition.

        Raises:
            click.BadParameter: If the target cannot be imported or is not a
                command, query or value object.
        """
        module_name, sep, attr = target.partition(":")
        if not sep or not module_name or not attr:
            msg = f"expected 'module:Class', got {target!r}"
            raise click.BadParameter(msg, param_hint="TARGET")
        try:
            module = importlib.import_module(module_name)
        except ImportError as exc:
            msg = f"cannot import {module_name!r}: {exc}"
            raise click.BadParameter(msg, param_hint="TARGET") from exc

        obj: Any = module
        for part in attr.split("."):
            obj = getattr(obj, part, None)
        if not (isinstance(obj, type) and issubclass(obj, Definition)) or obj._abstract:
            msg = f"{target!r} is not a command, query or value object"
            raise click.BadParameter(msg, param_hint="TARGET")
        return obj

    def emit(
        self,
        payload: dict[str, Any],
        render: Callable[[dict[str, Any]], str],
        *,
        ok: bool = True,
    ) -> None:
        """Write *payload* as JSON or rendered text.

        * ``ok``: writes to stdout, returns normally.
        * otherwise: writes to stderr, exits with code 1.
        """
        output = to_json(payload) if self.json_output else render(payload).rstrip("\n")
        if ok:
            click.echo(output)
        else:
            click.echo(output, err=True)
            raise SystemExit(1)
