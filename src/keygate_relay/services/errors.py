"""Error taxonomy shared by the tracker and the HTTP edge."""

from __future__ import annotations


class RelayError(RuntimeError):
    """Base exception for completion-tracking failures."""


class ValidationError(RelayError):
    """A required field is missing or malformed. No state was touched."""

    def __init__(self, field: str, message: str) -> None:
        super().__init__(f"{field}: {message}")
        self.field = field
        self.message = message


class StorageError(RelayError):
    """The backing store failed; nothing from the operation was committed."""


class ConflictError(StorageError):
    """A concurrent writer committed the same unique row first."""


class NotFoundError(RelayError):
    """Reserved for optional lookups that must distinguish absence."""
