"""Command: show the fields, options and events of a definition."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from cqrskit.commands._base import CqrsCommand

if TYPE_CHECKING:
    from cqrskit.commands._context import AppContext


@click.command(
    cls=CqrsCommand,
    examples="""\
  cqrskit describe myapp.users:CreateUser
  cqrskit --json describe myapp.users:GetUser""",
)
@click.argument("target")
@click.pass_obj
def describe(app: AppContext, target: str) -> None:
    """Describe the definition TARGET (module:Class)."""
    from cqrskit.output.formatters import describe_definition, render_description

    definition = app.load_definition(target)
    app.emit(describe_definition(definition), render_description)
