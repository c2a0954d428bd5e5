"""Project tech-stack record with shallow-merge updates."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from memcore.core.clock import Clock, utcnow
from memcore.core.documents import read_document, write_document
from memcore.core.errors import ValidationError
from memcore.core.schema import TechStack
from memcore.utils.paths import TECHSTACK_FILE

_RESERVED_KEYS = {"lastUpdated", "last_updated"}


class TechStackRegistry:
    def __init__(self, store_dir: Path, clock: Clock = utcnow) -> None:
        self.path = store_dir / TECHSTACK_FILE
        self.clock = clock

    def get_tech_stack(self) -> TechStack | None:
        return read_document(self.path, TechStack)

    def update_tech_stack(self, fields: dict[str, Any]) -> TechStack:
        """Overwrite same-named fields, keep the rest, stamp ``lastUpdated``."""
        cleaned: dict[str, str] = {}
        for raw_key, value in fields.items():
            if not isinstance(raw_key, str) or not raw_key.strip():
                raise ValidationError("Tech stack keys cannot be empty")
            key = raw_key.strip()
            if key in _RESERVED_KEYS:
                raise ValidationError(f"'{key}' is managed by the store")
            if not isinstance(value, str):
                raise ValidationError(f"Tech stack value for '{key}' must be a string")
            cleaned[key] = value

        current = self.get_tech_stack()
        merged = dict(current.entries) if current is not None else {}
        merged.update(cleaned)
        try:
            stack = TechStack(last_updated=self.clock(), **merged)
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid tech stack: {e.error_count()} invalid field(s)") from e
        write_document(self.path, stack)
        return stack
