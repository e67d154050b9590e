"""Describe and validation payloads, rendered as Rich tables or JSON.

Payloads are plain dicts so the JSON mode is a straight ``json.dumps``;
the human mode builds Rich tables from the same data.
"""

from __future__ import annotations

import json as _json
from typing import TYPE_CHECKING, Any

from rich.markup import escape
from rich.table import Table

from cqrskit.domain.fields import FieldSpec
from cqrskit.domain.options import OptionSpec
from cqrskit.output.console import create_console, get_output

if TYPE_CHECKING:
    from cqrskit.definitions.base import Definition
    from cqrskit.domain.result import Err, Ok


def _field_row(spec: FieldSpec) -> dict[str, Any]:
    return {
        "name": spec.name,
        "type": spec.type.describe(),
        "required": spec.required,
        "internal": spec.internal,
        "default": spec.default if spec.has_default else None,
        "description": spec.description,
    }


def _option_row(spec: OptionSpec) -> dict[str, Any]:
    return {
        "name": spec.name,
        "hint": getattr(spec.hint, "__name__", str(spec.hint)),
        "default": spec.default if spec.has_default else None,
        "description": spec.description,
    }


def describe_definition(definition: type[Definition]) -> dict[str, Any]:
    """Introspection payload for a command, query or value object."""
    schema = definition.schema()
    events = getattr(definition, "events", {})
    return {
        "name": definition.__name__,
        "module": definition.__module__,
        "fields": [_field_row(spec) for spec in schema.all_fields],
        "options": [_option_row(spec) for spec in definition.options()],
        "events": [
            {
                "name": name,
                "fields": list(event_cls.field_names()),
                "version": event_cls.__event__.version,
            }
            for name, event_cls in events.items()
        ],
    }


def validation_payload(definition: type[Definition], result: Ok | Err) -> dict[str, Any]:
    """Payload for a ``new`` result: the instance values or the error map."""
    if result.ok:
        instance = result.value
        return {
            "name": definition.__name__,
            "ok": True,
            "values": instance.to_dict(),
            "discarded_fields": dict(getattr(instance, "discarded_fields", {})),
        }
    return {"name": definition.__name__, "ok": False, "errors": result.error}


def to_json(payload: dict[str, Any]) -> str:
    return _json.dumps(payload, indent=2, default=str)


def render_description(payload: dict[str, Any]) -> str:
    console = create_console()
    console.print(f"[cqrs.name]{payload['name']}[/] [cqrs.key]({payload['module']})[/]")

    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("Field", style="cqrs.name")
    table.add_column("Type")
    table.add_column("Required")
    table.add_column("Internal")
    table.add_column("Default")
    for row in payload["fields"]:
        table.add_row(
            row["name"],
            row["type"],
            "yes" if row["required"] else "",
            "[cqrs.internal]yes[/]" if row["internal"] else "",
            "" if row["default"] is None else escape(repr(row["default"])),
        )
    console.print(table)

    if payload["options"]:
        options = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
        options.add_column("Option", style="cqrs.name")
        options.add_column("Type")
        options.add_column("Default")
        for row in payload["options"]:
            options.add_row(
                row["name"],
                row["hint"],
                "" if row["default"] is None else escape(repr(row["default"])),
            )
        console.print(options)

    for event in payload["events"]:
        fields = ", ".join(event["fields"])
        console.print(f"[cqrs.key]event[/] {event['name']} v{event['version']}: {fields}")

    return get_output(console)


def render_validation(payload: dict[str, Any]) -> str:
    console = create_console()
    if payload["ok"]:
        console.print(f"[cqrs.ok]OK[/]: {payload['name']}")
        for key, value in payload["values"].items():
            console.print(f"  [cqrs.key]{key}[/]: {escape(str(value))}")
        if payload["discarded_fields"]:
            discarded = ", ".join(payload["discarded_fields"])
            console.print(f"  [cqrs.key]discarded[/]: {escape(discarded)}")
    else:
        console.print(f"[cqrs.error]INVALID[/]: {payload['name']}")
        errors = payload["errors"]
        if not isinstance(errors, dict):
            console.print(f"  {escape(str(errors))}")
            return get_output(console)
        for key, messages in errors.items():
            console.print(f"  [cqrs.key]{key}[/]: {escape(_json.dumps(messages, default=str))}")
    return get_output(console)
