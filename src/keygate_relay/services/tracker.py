"""Completion tracking for ad-unlock keys.

Each key moves through at most two recorded states: *pending* (a link was
issued) and *completed* (the ad network confirmed it). Completion is
idempotent: the first notification for a ``(user_id, script_id, key_index)``
triple appends one log record and drops any pending entry; every later
notification for the same triple only refreshes the user's ``last_active``.
"""

from __future__ import annotations

import logging
import numbers
from dataclasses import dataclass
from datetime import timedelta
from typing import Any

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from keygate_relay.db.time import utcnow
from keygate_relay.models import CompletionRecord, PendingRequest, UserProgress
from keygate_relay.services.errors import ConflictError, ValidationError
from keygate_relay.services.state_store import StateStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UnlockKey:
    """Validated identity of one unlock key."""

    user_id: str
    script_id: str
    key_index: int

    @property
    def storage_key(self) -> str:
        return f"{self.user_id}:{self.script_id}:{self.key_index}"


@dataclass(frozen=True)
class CompletionOutcome:
    """Result of applying a completion notification."""

    key: UnlockKey
    already_completed: bool


@dataclass(frozen=True)
class UnlockStats:
    """Aggregate counters over the current state."""

    total_users: int
    total_completions: int
    pending_count: int


def normalize_key_index(value: Any) -> int:
    """Coerce ``value`` to a non-negative integer key index.

    Accepts ints, integral floats and decimal strings, so ``"2"`` and ``2``
    name the same key.

    Raises:
        ValidationError: If the value is missing, not integral or negative.
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError("key_index", "is required")
    if isinstance(value, bool):
        raise ValidationError("key_index", "must be an integer")

    if isinstance(value, numbers.Integral):
        index = int(value)
    elif isinstance(value, float):
        if not value.is_integer():
            raise ValidationError("key_index", "must be an integer")
        index = int(value)
    elif isinstance(value, str):
        try:
            index = int(value.strip(), 10)
        except ValueError as err:
            raise ValidationError("key_index", "must be an integer") from err
    else:
        raise ValidationError("key_index", "must be an integer")

    if index < 0:
        raise ValidationError("key_index", "must be non-negative")
    return index


def _require_identifier(field: str, value: Any) -> str:
    if value is None:
        raise ValidationError(field, "is required")
    if not isinstance(value, str):
        raise ValidationError(field, "must be a string")
    text = value.strip()
    if not text:
        raise ValidationError(field, "is required")
    return text


def validate_key(user_id: Any, script_id: Any, key_index: Any) -> UnlockKey:
    """Validate and normalize the three key fields."""
    return UnlockKey(
        user_id=_require_identifier("user_id", user_id),
        script_id=_require_identifier("script_id", script_id),
        key_index=normalize_key_index(key_index),
    )


class CompletionTracker:
    """Owns the pending -> completed transition rules."""

    def __init__(self, store: StateStore) -> None:
        self._store = store

    @property
    def store(self) -> StateStore:
        return self._store

    def register_pending(
        self,
        user_id: Any,
        script_id: Any,
        key_index: Any,
        metadata: dict[str, Any] | None = None,
    ) -> PendingRequest:
        """Upsert the pending entry for a key; the latest registration wins."""
        key = validate_key(user_id, script_id, key_index)
        with self._store.write() as session:
            pending = session.get(
                PendingRequest, (key.user_id, key.script_id, key.key_index)
            )
            if pending is None:
                pending = PendingRequest(
                    user_id=key.user_id,
                    script_id=key.script_id,
                    key_index=key.key_index,
                )
                session.add(pending)
            pending.registered_at = utcnow()
            pending.metadata_ = dict(metadata) if metadata else {}
            session.flush()

        logger.info(
            "Pending unlock registered",
            extra={
                "user_id": key.user_id,
                "script_id": key.script_id,
                "key_index": key.key_index,
            },
        )
        return pending

    def apply_completion(
        self, user_id: Any, script_id: Any, key_index: Any
    ) -> CompletionOutcome:
        """Record a completion notification exactly once per key.

        Raises:
            ValidationError: On missing or malformed fields, before any write.
            StorageError: If the change could not be committed.
        """
        key = validate_key(user_id, script_id, key_index)
        try:
            outcome = self._apply(key)
        except ConflictError:
            # Another writer inserted the same record first; re-reading now
            # reports it as already completed.
            outcome = self._apply(key)

        logger.info(
            "Duplicate completion ignored" if outcome.already_completed else "Key completed",
            extra={
                "user_id": key.user_id,
                "script_id": key.script_id,
                "key_index": key.key_index,
                "already_completed": outcome.already_completed,
            },
        )
        return outcome

    def _apply(self, key: UnlockKey) -> CompletionOutcome:
        now = utcnow()
        with self._store.write() as session:
            progress = session.get(UserProgress, key.user_id)
            if progress is None:
                progress = UserProgress(user_id=key.user_id, created_at=now)
                session.add(progress)
            progress.last_active = now

            if self._is_completed(session, key):
                return CompletionOutcome(key=key, already_completed=True)

            session.add(
                CompletionRecord(
                    user_id=key.user_id,
                    script_id=key.script_id,
                    key_index=key.key_index,
                    completed_at=now,
                )
            )
            pending = session.get(
                PendingRequest, (key.user_id, key.script_id, key.key_index)
            )
            if pending is not None:
                session.delete(pending)
            session.flush()
        return CompletionOutcome(key=key, already_completed=False)

    @staticmethod
    def _is_completed(session: Session, key: UnlockKey) -> bool:
        found = session.scalar(
            select(CompletionRecord.id).where(
                CompletionRecord.user_id == key.user_id,
                CompletionRecord.script_id == key.script_id,
                CompletionRecord.key_index == key.key_index,
            )
        )
        return found is not None

    def get_status(self, user_id: Any, script_id: Any) -> set[int]:
        """Return the completed key indexes for a user and script.

        Identifiers are stripped the same way completions store them.
        Unknown or blank users or scripts yield an empty set.
        """
        try:
            user = _require_identifier("user_id", user_id)
            script = _require_identifier("script_id", script_id)
        except ValidationError:
            return set()
        with self._store.read() as session:
            rows = session.scalars(
                select(CompletionRecord.key_index).where(
                    CompletionRecord.user_id == user,
                    CompletionRecord.script_id == script,
                )
            ).all()
        return set(rows)

    def get_stats(self) -> UnlockStats:
        """Count users, logged completions and pending entries."""
        with self._store.read() as session:
            total_users = session.scalar(select(func.count()).select_from(UserProgress))
            total_completions = session.scalar(
                select(func.count()).select_from(CompletionRecord)
            )
            pending_count = session.scalar(select(func.count()).select_from(PendingRequest))
        return UnlockStats(
            total_users=int(total_users or 0),
            total_completions=int(total_completions or 0),
            pending_count=int(pending_count or 0),
        )

    def snapshot(self) -> dict[str, Any]:
        """Return the raw ``pending`` / ``completed`` / ``users`` views."""
        return self._store.snapshot()

    def purge_pending(self, older_than: timedelta) -> int:
        """Delete pending entries registered before ``now - older_than``.

        Returns:
            Number of pending entries removed.
        """
        if older_than < timedelta(0):
            raise ValidationError("older_than", "must not be negative")
        cutoff = utcnow() - older_than
        with self._store.write() as session:
            result = session.execute(
                delete(PendingRequest).where(PendingRequest.registered_at < cutoff)
            )
            removed = int(result.rowcount or 0)
        logger.info("Stale pending entries purged", extra={"removed": removed})
        return removed
