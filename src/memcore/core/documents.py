"""Whole-document JSON persistence with atomic replace."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from memcore.core.errors import StorageError

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


def write_text_atomic(path: Path, text: str) -> None:
    """Write text to path via a sibling temp file and ``os.replace``.

    On failure the temp file is removed and the previous document is left
    untouched.
    """
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    except OSError as e:
        raise StorageError(f"Cannot write {path}: {e}") from e
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(text)
        os.replace(tmp_name, path)
    except OSError as e:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise StorageError(f"Cannot write {path}: {e}") from e
    logger.debug("Wrote %s", path)


def write_document(path: Path, model: BaseModel) -> None:
    if hasattr(model, "to_json"):
        text = model.to_json()
    else:
        text = model.model_dump_json(indent=2, by_alias=True)
    write_text_atomic(path, text + "\n")


def write_mapping(path: Path, data: dict[str, Any]) -> None:
    write_text_atomic(path, json.dumps(data, indent=2, default=str) + "\n")


def _read_text(path: Path) -> str | None:
    if not path.is_file():
        return None
    try:
        return path.read_text(encoding="utf-8")
    except OSError as e:
        raise StorageError(f"Cannot read {path}: {e}") from e


def read_document(path: Path, model: type[M]) -> M | None:
    """Load and validate a document, or None when the file is absent."""
    text = _read_text(path)
    if text is None:
        return None
    try:
        return model.model_validate_json(text)
    except PydanticValidationError as e:
        raise StorageError(f"Corrupt document {path}: {e.error_count()} invalid field(s)") from e


def read_mapping(path: Path) -> dict[str, Any]:
    """Load a JSON object, or an empty dict when the file is absent."""
    text = _read_text(path)
    if text is None or not text.strip():
        return {}
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise StorageError(f"Corrupt document {path}: {e}") from e
    if not isinstance(data, dict):
        raise StorageError(f"Corrupt document {path}: expected a JSON object")
    return data


def remove_document(path: Path) -> bool:
    try:
        path.unlink()
    except FileNotFoundError:
        return False
    except OSError as e:
        raise StorageError(f"Cannot remove {path}: {e}") from e
    return True
