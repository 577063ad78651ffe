# src/keygate_relay/models/__init__.py
"""SQLAlchemy models for the keygate relay."""

from .completion import CompletionRecord
from .pending import PendingRequest
from .progress import UserProgress

__all__ = [
    "CompletionRecord",
    "PendingRequest",
    "UserProgress",
]
