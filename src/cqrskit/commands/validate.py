"""Command: run ``new`` for a definition against JSON input."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

import click

from cqrskit.commands._base import CqrsCommand

if TYPE_CHECKING:
    from cqrskit.commands._context import AppContext


@click.command(
    cls=CqrsCommand,
    examples="""\
  cqrskit validate myapp.users:CreateUser --attrs '{"email": "chris@example.com"}'
  cqrskit --json validate myapp.users:CreateUser --attrs '{"email": "wrong"}'""",
)
@click.argument("target")
@click.option("--attrs", default="{}", help="Input attributes as a JSON object.")
@click.pass_obj
def validate(app: AppContext, target: str, attrs: str) -> None:
    """Validate --attrs against TARGET (module:Class). Exits 1 when invalid."""
    from cqrskit.output.formatters import render_validation, validation_payload

    try:
        raw = json.loads(attrs)
    except json.JSONDecodeError as exc:
        msg = f"not valid JSON: {exc}"
        raise click.BadParameter(msg, param_hint="--attrs") from exc
    if not isinstance(raw, dict):
        raise click.BadParameter("must be a JSON object", param_hint="--attrs")

    definition = app.load_definition(target)
    result = definition.new(raw)
    app.emit(validation_payload(definition, result), render_validation, ok=result.ok)
