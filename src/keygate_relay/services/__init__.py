"""Service layer for the keygate relay."""

from .errors import (
    ConflictError,
    NotFoundError,
    RelayError,
    StorageError,
    ValidationError,
)
from .links import IssuedLink, LinkIssuer
from .normalize import normalize_notification
from .state_store import StateStore
from .tracker import CompletionOutcome, CompletionTracker, UnlockKey, UnlockStats

__all__ = [
    "CompletionOutcome",
    "CompletionTracker",
    "ConflictError",
    "IssuedLink",
    "LinkIssuer",
    "NotFoundError",
    "RelayError",
    "StateStore",
    "StorageError",
    "UnlockKey",
    "UnlockStats",
    "ValidationError",
    "normalize_notification",
]
