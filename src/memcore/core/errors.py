"""Store error hierarchy."""

from __future__ import annotations


class StoreError(Exception):
    pass


class NotFoundError(StoreError):
    """No active session, pattern or archive at the requested key."""


class ValidationError(StoreError):
    """Unrecognized enum value or empty required field."""


class ConflictError(StoreError):
    """A session is already active and replacement was not requested."""


class StorageError(StoreError):
    """Durable storage could not be read or written."""
