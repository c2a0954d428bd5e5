"""Learned code patterns, one mapping document per pattern type."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from memcore.core.clock import Clock, utcnow
from memcore.core.documents import read_mapping, write_mapping
from memcore.core.errors import NotFoundError, StorageError, ValidationError
from memcore.core.schema import PATTERN_FIELDS, PatternRecord, PatternType
from memcore.utils.paths import PATTERNS_DIR

logger = logging.getLogger(__name__)


class PatternLibrary:
    def __init__(self, store_dir: Path, clock: Clock = utcnow) -> None:
        self.patterns_dir = store_dir / PATTERNS_DIR
        self.clock = clock

    def _path(self, pattern_type: PatternType) -> Path:
        return self.patterns_dir / f"{pattern_type.value}.json"

    def _load(self, pattern_type: PatternType) -> dict[str, PatternRecord]:
        path = self._path(pattern_type)
        raw = read_mapping(path)
        try:
            return {key: PatternRecord.model_validate(value) for key, value in raw.items()}
        except PydanticValidationError as e:
            raise StorageError(f"Corrupt document {path}: {e.error_count()} invalid field(s)") from e

    def _save(self, pattern_type: PatternType, records: dict[str, PatternRecord]) -> None:
        data = {
            key: record.model_dump(mode="json", by_alias=True, exclude_none=True)
            for key, record in records.items()
        }
        write_mapping(self._path(pattern_type), data)

    def learn_pattern(self, pattern_type: PatternType | str, key: str, data: dict[str, Any]) -> PatternRecord:
        """Merge ``data`` into the record at (type, key).

        ``learnedAt`` is stamped on first creation and kept on later learns;
        ``updatedAt`` is refreshed every time.
        """
        ptype = PatternType.parse(pattern_type)
        key = (key or "").strip()
        if not key:
            raise ValidationError("Pattern key cannot be empty")

        unknown = sorted(set(data) - set(PATTERN_FIELDS))
        if unknown:
            raise ValidationError(f"Unknown pattern field(s): {', '.join(unknown)}")
        updates: dict[str, str] = {}
        for field in PATTERN_FIELDS:
            value = data.get(field)
            if value is None or value == "":
                continue
            if not isinstance(value, str):
                raise ValidationError(f"Pattern field '{field}' must be a string")
            updates[field] = value
        if not updates:
            raise ValidationError(f"Provide at least one of: {', '.join(PATTERN_FIELDS)}")

        now = self.clock()
        records = self._load(ptype)
        existing = records.get(key)
        if existing is None:
            record = PatternRecord(**updates, learned_at=now, updated_at=now)
        else:
            record = existing.model_copy(update={**updates, "updated_at": now})
        records[key] = record
        self._save(ptype, records)
        logger.debug("Learned pattern %s/%s", ptype.value, key)
        return record

    def get_patterns(self, pattern_type: PatternType | str) -> dict[str, PatternRecord]:
        return self._load(PatternType.parse(pattern_type))

    def get_pattern(self, pattern_type: PatternType | str, key: str) -> PatternRecord:
        ptype = PatternType.parse(pattern_type)
        record = self._load(ptype).get(key)
        if record is None:
            raise NotFoundError(f"Pattern '{key}' not found in {ptype.value}")
        return record

    def all_patterns(self) -> dict[str, dict[str, PatternRecord]]:
        return {ptype.value: self._load(ptype) for ptype in PatternType}

    def forget_pattern(self, pattern_type: PatternType | str, key: str) -> bool:
        ptype = PatternType.parse(pattern_type)
        records = self._load(ptype)
        if key not in records:
            return False
        del records[key]
        self._save(ptype, records)
        return True
