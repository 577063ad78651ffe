"""Pydantic schemas for the keygate relay API."""

from .unlock import (
    CallbackResult,
    LinkCreate,
    LinkResponse,
    PendingOut,
    StatsResponse,
    StatusResponse,
)

__all__ = [
    "CallbackResult",
    "LinkCreate",
    "LinkResponse",
    "PendingOut",
    "StatsResponse",
    "StatusResponse",
]
