"""Pattern subcommands: learn, show, forget."""

from __future__ import annotations

from typing import Optional

import typer
from rich.markup import escape

from memcore.cli._shared import FORMAT_OPTION, get_store, handle_errors
from memcore.core.schema import PATTERN_FIELDS, PatternRecord
from memcore.utils.output import console, info, output, success, warning

pattern_app = typer.Typer(no_args_is_help=True)


def _print_record(key: str, record: PatternRecord) -> None:
    console.print(f"  [bold]{escape(key)}[/bold]")
    for field in PATTERN_FIELDS:
        value = getattr(record, field)
        if value:
            console.print(f"    {field}: {escape(value)}")


@pattern_app.command("learn")
def pattern_learn(
    pattern_type: str = typer.Argument(..., help="api-patterns, error-handling, ui-patterns or database-patterns"),
    key: str = typer.Argument(..., help="Pattern identifier"),
    pattern: Optional[str] = typer.Option(None, "--pattern", help="The pattern itself"),
    description: Optional[str] = typer.Option(None, "--description", help="What it is for"),
    example: Optional[str] = typer.Option(None, "--example", help="Example usage"),
    usage: Optional[str] = typer.Option(None, "--usage", help="Where it applies"),
    fmt: Optional[str] = FORMAT_OPTION,
) -> None:
    """Learn a pattern, merging into an existing one with the same key."""
    store = get_store()
    given = {"pattern": pattern, "description": description, "example": example, "usage": usage}
    data = {k: v for k, v in given.items() if v is not None}
    with handle_errors():
        record = store.learn_pattern(pattern_type, key, data)
    if fmt == "json":
        output({"type": pattern_type, "key": key, "record": record}, fmt="json")
    else:
        success(f"Learned {escape(pattern_type)} pattern '{escape(key)}'")


@pattern_app.command("show")
def pattern_show(
    pattern_type: Optional[str] = typer.Argument(None, help="Pattern type (all types when omitted)"),
    key: Optional[str] = typer.Argument(None, help="Pattern key"),
    fmt: Optional[str] = FORMAT_OPTION,
) -> None:
    """Show learned patterns."""
    store = get_store()
    with handle_errors():
        if pattern_type is not None and key is not None:
            record = store.get_pattern(pattern_type, key)
            if fmt == "json":
                output(record, fmt="json")
            else:
                _print_record(key, record)
            return
        if pattern_type is not None:
            grouped = {pattern_type: store.get_patterns(pattern_type)}
        else:
            grouped = store.all_patterns()

    if fmt == "json":
        output(grouped, fmt="json")
        return
    if not any(grouped.values()):
        info("No patterns learned")
        return
    for ptype, records in grouped.items():
        console.print(f"[bold]{ptype}[/bold] ({len(records)})")
        for k, record in records.items():
            _print_record(k, record)


@pattern_app.command("forget")
def pattern_forget(
    pattern_type: str = typer.Argument(..., help="Pattern type"),
    key: str = typer.Argument(..., help="Pattern key"),
    fmt: Optional[str] = FORMAT_OPTION,
) -> None:
    """Remove a learned pattern."""
    store = get_store()
    with handle_errors():
        removed = store.forget_pattern(pattern_type, key)
    if fmt == "json":
        output({"type": pattern_type, "key": key, "removed": removed}, fmt="json")
    elif removed:
        success(f"Forgot {escape(pattern_type)} pattern '{escape(key)}'")
    else:
        warning(f"No {escape(pattern_type)} pattern named '{escape(key)}'")
