# src/keygate_relay/schemas/unlock.py
"""Unlock-flow Pydantic schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class LinkCreate(BaseModel):
    """Request to issue an ad link for one key.

    Fields are loosely typed here; the tracker performs the strict checks so
    failures name the offending field consistently.
    """

    user_id: Any = None
    script_id: Any = None
    key_index: Any = Field(None, description="Non-negative key index")


class PendingOut(BaseModel):
    """A pending unlock request."""

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    user_id: str
    script_id: str
    key_index: int
    registered_at: datetime
    metadata: dict[str, Any] = Field(default_factory=dict, validation_alias="metadata_")


class LinkResponse(BaseModel):
    """URLs for the frontend plus the registered pending entry."""

    ad_url: str
    callback_url: str
    pending: PendingOut


class CallbackResult(BaseModel):
    """JSON acknowledgement of a completion notification."""

    status: str = "ok"
    user_id: str
    script_id: str
    key_index: int
    already_completed: bool


class StatusResponse(BaseModel):
    """Completed key indexes for a user and script."""

    model_config = ConfigDict(populate_by_name=True)

    completed_keys: list[int] = Field(
        default_factory=list,
        serialization_alias="completedKeys",
    )


class StatsResponse(BaseModel):
    """Aggregate counters plus the raw state views."""

    model_config = ConfigDict(populate_by_name=True)

    total_users: int = Field(serialization_alias="totalUsers")
    total_completions: int = Field(serialization_alias="totalCompletions")
    pending_count: int = Field(serialization_alias="pendingCount")
    pending: dict[str, Any] = Field(default_factory=dict)
    completed: dict[str, list[dict[str, Any]]] = Field(default_factory=dict)
    users: dict[str, Any] = Field(default_factory=dict)
