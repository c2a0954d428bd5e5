"""Hook subcommands: entry points for assistant lifecycle hooks.

Each command reads the hook payload as JSON from stdin
(``tool_name``, ``tool_input``, ``prompt``, ``cwd``) and always exits 0 so a
failing hook never blocks the assistant.
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Optional

import typer

from memcore import hooks
from memcore.cli._shared import FORMAT_OPTION
from memcore.core.errors import StoreError
from memcore.core.store import MemoryStore
from memcore.utils.config import load_settings
from memcore.utils.output import output
from memcore.utils.paths import find_project_root

logger = logging.getLogger(__name__)

hook_app = typer.Typer(no_args_is_help=True)


def _read_payload() -> dict:
    raw = sys.stdin.read()
    if not raw.strip():
        return {}
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as e:
        logger.warning("Ignoring malformed hook payload: %s", e)
        return {}
    return payload if isinstance(payload, dict) else {}


def _tool_input(payload: dict) -> dict:
    tool_input = payload.get("tool_input")
    return tool_input if isinstance(tool_input, dict) else {}


def _text(payload: dict, key: str) -> str:
    value = payload.get(key)
    return value if isinstance(value, str) else ""


def _store_for(payload: dict) -> MemoryStore | None:
    cwd = _text(payload, "cwd")
    start = Path(cwd) if cwd else None
    root = find_project_root(start) or start or Path.cwd()
    store = MemoryStore(root, settings=load_settings())
    try:
        store.initialize()
    except StoreError as e:
        logger.warning("Memory store unavailable: %s", e)
        return None
    return store


def _emit(result: hooks.HookResult, fmt: Optional[str]) -> None:
    if fmt == "json":
        output(result, fmt="json")
    elif result.message:
        print(result.message)


@hook_app.command("post-tool-use")
def hook_post_tool_use(fmt: Optional[str] = FORMAT_OPTION) -> None:
    """Record the file touched by a Write, Edit or Bash tool call."""
    payload = _read_payload()
    store = _store_for(payload)
    if store is None:
        result = hooks.HookResult(triggered=False, reason="error", error="store unavailable")
    else:
        result = hooks.on_post_tool_use(store, _text(payload, "tool_name"), _tool_input(payload))
    _emit(result, fmt)


@hook_app.command("pre-tool-use")
def hook_pre_tool_use(fmt: Optional[str] = FORMAT_OPTION) -> None:
    """Remind the assistant to update memory before `git add`."""
    payload = _read_payload()
    store = _store_for(payload)
    if store is None:
        result = hooks.HookResult(triggered=False, reason="error", error="store unavailable")
    else:
        result = hooks.on_pre_tool_use(store, _text(payload, "tool_name"), _tool_input(payload))
    _emit(result, fmt)


@hook_app.command("user-prompt-submit")
def hook_user_prompt_submit(fmt: Optional[str] = FORMAT_OPTION) -> None:
    """Suggest documentation updates when the user wraps up."""
    payload = _read_payload()
    store = _store_for(payload)
    if store is None:
        result = hooks.HookResult(triggered=False, reason="error", error="store unavailable")
    else:
        result = hooks.on_user_prompt_submit(store, _text(payload, "prompt"))
    _emit(result, fmt)
