"""Subcommand modules for cqrskit.

Provides register_commands() which uses deferred imports to keep
``cqrskit --help`` fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register the standalone commands on the root CLI group."""
    from cqrskit.commands.describe import describe
    from cqrskit.commands.validate import validate

    cli.add_command(describe)
    cli.add_command(validate)
