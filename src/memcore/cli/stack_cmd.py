"""Tech stack subcommands: show, set."""

from __future__ import annotations

from typing import List, Optional

import typer
from rich.markup import escape

from memcore.cli._shared import FORMAT_OPTION, get_store, handle_errors
from memcore.core.schema import KNOWN_STACK_FIELDS
from memcore.utils.output import console, error, info, output, success

stack_app = typer.Typer(no_args_is_help=True)


@stack_app.command("show")
def stack_show(fmt: Optional[str] = FORMAT_OPTION) -> None:
    """Show the recorded tech stack."""
    store = get_store()
    with handle_errors():
        stack = store.get_tech_stack()
    if fmt == "json":
        output(stack if stack else {}, fmt="json")
        return
    if stack is None or not stack.entries:
        info("No tech stack recorded")
        return
    entries = stack.entries
    known = [k for k in KNOWN_STACK_FIELDS if k in entries]
    for key in known + sorted(k for k in entries if k not in known):
        console.print(f"  {key}: {escape(entries[key])}")
    console.print(f"  [dim]updated {stack.last_updated:%Y-%m-%d %H:%M}[/dim]")


@stack_app.command("set")
def stack_set(
    pairs: List[str] = typer.Argument(..., help="key=value pairs, e.g. framework=Next.js"),
    fmt: Optional[str] = FORMAT_OPTION,
) -> None:
    """Merge fields into the tech stack."""
    fields: dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key.strip():
            error(f"Expected key=value, got: {pair}")
            raise typer.Exit(1)
        fields[key.strip()] = value.strip()

    store = get_store()
    with handle_errors():
        stack = store.update_tech_stack(fields)
    if fmt == "json":
        output(stack, fmt="json")
    else:
        success(f"Tech stack updated: {escape(', '.join(sorted(fields)))}")
