"""Tests for the tech stack registry."""

import json

import pytest

from memcore.core.errors import ValidationError


def test_empty_stack(store):
    assert store.get_tech_stack() is None


def test_update_merges(store, clock):
    store.update_tech_stack({"framework": "Next.js"})
    clock.advance(minutes=10)
    stack = store.update_tech_stack({"language": "TypeScript"})
    assert stack.entries == {"framework": "Next.js", "language": "TypeScript"}
    assert stack.last_updated == clock.now

    data = json.loads((store.store_dir / "techstack.json").read_text())
    assert data["framework"] == "Next.js"
    assert data["language"] == "TypeScript"
    assert "lastUpdated" in data


def test_update_overwrites_field(store):
    store.update_tech_stack({"database": "SQLite"})
    stack = store.update_tech_stack({"database": "PostgreSQL"})
    assert stack.entries["database"] == "PostgreSQL"


def test_custom_keys_allowed(store):
    stack = store.update_tech_stack({"queue": "Redis"})
    assert store.get_tech_stack().entries == stack.entries == {"queue": "Redis"}


@pytest.mark.parametrize(
    "fields",
    [{"": "x"}, {"lastUpdated": "2020"}, {"lastUpdated ": "x"}, {" last_updated": "x"}, {"framework": 3}],
)
def test_invalid_updates(store, fields):
    with pytest.raises(ValidationError):
        store.update_tech_stack(fields)
    assert store.get_tech_stack() is None
