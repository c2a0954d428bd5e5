"""Output formatting utilities: text vs JSON, rich panels, logging setup."""

from __future__ import annotations

import json
import logging
import sys
from typing import Any

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

console = Console()
error_console = Console(stderr=True)

RULE_WIDTH = 70


def is_piped() -> bool:
    return not sys.stdout.isatty()


def _to_jsonable(data: Any) -> Any:
    if hasattr(data, "model_dump"):
        return data.model_dump(mode="json", by_alias=True)
    if isinstance(data, dict):
        return {k: _to_jsonable(v) for k, v in data.items()}
    if isinstance(data, list):
        return [_to_jsonable(v) for v in data]
    return data


def output(data: Any, fmt: str | None = None, title: str | None = None) -> None:
    """Output data in the requested format.

    If fmt is None, auto-detect: json when piped, text for TTY.
    """
    if fmt is None:
        fmt = "json" if is_piped() else "text"

    if fmt == "json":
        if isinstance(data, str):
            print(json.dumps({"value": data}))
        elif hasattr(data, "model_dump") or isinstance(data, (dict, list)):
            print(json.dumps(_to_jsonable(data), indent=2, default=str))
        else:
            print(json.dumps({"value": str(data)}, default=str))
    else:
        if isinstance(data, str):
            if title:
                console.print(Panel(data, title=title))
            else:
                console.print(data)
        elif hasattr(data, "model_dump") or isinstance(data, (dict, list)):
            console.print_json(json.dumps(_to_jsonable(data), default=str))
        else:
            console.print(str(data))


def output_table(rows: list[dict[str, str]], columns: list[str], fmt: str | None = None, title: str | None = None) -> None:
    if fmt is None:
        fmt = "json" if is_piped() else "text"

    if fmt == "json":
        print(json.dumps(rows, indent=2, default=str))
    else:
        table = Table(title=title)
        for col in columns:
            table.add_column(col.title())
        for row in rows:
            table.add_row(*[str(row.get(col, "")) for col in columns])
        console.print(table)


def heading(text: str, char: str = "=") -> None:
    console.print(char * RULE_WIDTH, markup=False)
    console.print(f"[bold]{text}[/bold]")
    console.print(char * RULE_WIDTH, markup=False)


def error(msg: str) -> None:
    error_console.print(f"[red]Error:[/red] {msg}")


def tip(msg: str) -> None:
    error_console.print(f"[dim]Tip: {msg}[/dim]")


def success(msg: str) -> None:
    console.print(f"[green]{msg}[/green]")


def warning(msg: str) -> None:
    console.print(f"[yellow]{msg}[/yellow]")


def info(msg: str) -> None:
    console.print(f"[dim]{msg}[/dim]")


def setup_logging(level: str = "WARNING") -> None:
    """Route library logging to stderr through rich."""
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=error_console, show_path=False)],
        force=True,
    )
