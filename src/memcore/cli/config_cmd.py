"""Config subcommands: get, set, list for global memory-core settings."""

from __future__ import annotations

from typing import Optional

import typer

from memcore.cli._shared import FORMAT_OPTION
from memcore.utils.config import VALID_LOG_LEVELS, Settings, load_global_config, save_global_config
from memcore.utils.output import error, info, output, success

config_app = typer.Typer(no_args_is_help=True)

_VALID_KEYS = ("log_level", "session_ttl_hours", "strict_sessions")


def _check_key(key: str) -> None:
    if key not in _VALID_KEYS:
        error(f"Unknown key: {key}. Valid keys: {', '.join(_VALID_KEYS)}")
        raise typer.Exit(1)


def _parse_value(key: str, value: str):
    if key == "session_ttl_hours":
        if not value.isdigit() or int(value) <= 0:
            raise ValueError("expected a positive number of hours")
        return int(value)
    if key == "strict_sessions":
        lowered = value.lower()
        if lowered not in ("true", "false"):
            raise ValueError("expected true or false")
        return lowered == "true"
    upper = value.upper()
    if upper not in VALID_LOG_LEVELS:
        raise ValueError(f"valid values: {', '.join(VALID_LOG_LEVELS)}")
    return upper


@config_app.command("get")
def config_get(
    key: str = typer.Argument(..., help="Configuration key"),
    fmt: Optional[str] = FORMAT_OPTION,
) -> None:
    """Get a configuration value."""
    _check_key(key)
    value = load_global_config().get(key)
    if fmt == "json":
        output({"key": key, "value": value}, fmt="json")
    elif value is None:
        info(f"{key}: (not set, default {Settings.model_fields[key].default})")
    else:
        info(f"{key}: {value}")


@config_app.command("set")
def config_set(
    key: str = typer.Argument(..., help="Configuration key"),
    value: str = typer.Argument(..., help="Value to set"),
    fmt: Optional[str] = FORMAT_OPTION,
) -> None:
    """Set a configuration value."""
    _check_key(key)
    try:
        parsed = _parse_value(key, value)
    except ValueError as e:
        error(f"Invalid value for {key}: {value} ({e})")
        raise typer.Exit(1)

    config = load_global_config()
    config[key] = parsed
    save_global_config(config)
    if fmt == "json":
        output({"key": key, "value": parsed, "status": "set"}, fmt="json")
    else:
        success(f"{key} = {parsed}")


@config_app.command("list")
def config_list(fmt: Optional[str] = FORMAT_OPTION) -> None:
    """List all configuration values (defaults included)."""
    config = load_global_config()
    values = {key: config.get(key, Settings.model_fields[key].default) for key in _VALID_KEYS}
    if fmt == "json":
        output(values, fmt="json")
    else:
        for key, value in values.items():
            marker = "" if key in config else " (default)"
            info(f"{key}: {value}{marker}")
