"""Durable storage for pending requests, the completion log and user progress.

The store is a plain data-access object: it owns the engine, serializes
read-modify-write cycles, and renders the logical three-view document. It
holds no completion rules of its own.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from sqlalchemy import select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from keygate_relay.db.session import build_engine, create_tables
from keygate_relay.db.time import as_utc
from keygate_relay.models import CompletionRecord, PendingRequest, UserProgress
from keygate_relay.services.errors import ConflictError, StorageError

logger = logging.getLogger(__name__)


class StateStore:
    """Owns the database engine and hands out sessions.

    Writers go through :meth:`write`, which holds a process-wide lock for the
    whole read-modify-write cycle so two cycles never interleave. Readers use
    :meth:`read` and do not block on the lock.
    """

    def __init__(
        self,
        database_url: str,
        *,
        engine: Engine | None = None,
        echo: bool = False,
        auto_create: bool = True,
    ) -> None:
        self.database_url = database_url
        self._engine = engine
        self._owns_engine = engine is None
        self._echo = echo
        self._auto_create = auto_create
        self._sessionmaker: sessionmaker[Session] | None = None
        self._write_lock = threading.Lock()

    @property
    def is_open(self) -> bool:
        return self._sessionmaker is not None

    def open(self) -> None:
        """Connect to the database and create tables if configured."""
        if self.is_open:
            return
        if self._engine is None:
            self._engine = build_engine(self.database_url, echo=self._echo)
        try:
            if self._auto_create:
                create_tables(self._engine)
        except SQLAlchemyError as exc:
            raise StorageError("Unable to initialise state store") from exc
        self._sessionmaker = sessionmaker(
            bind=self._engine,
            autocommit=False,
            autoflush=False,
            expire_on_commit=False,
        )
        logger.info("State store opened")

    def close(self) -> None:
        """Release pooled connections."""
        if self._engine is not None and self._owns_engine:
            self._engine.dispose()
            self._engine = None
        self._sessionmaker = None
        logger.info("State store closed")

    def _session(self) -> Session:
        if self._sessionmaker is None:
            raise StorageError("State store is not open")
        return self._sessionmaker()

    @contextmanager
    def write(self) -> Iterator[Session]:
        """Yield a session for one serialized read-modify-write cycle.

        The transaction is committed when the block exits normally and
        rolled back on any exception, so callers never see a partial write.
        """
        with self._write_lock:
            session = self._session()
            try:
                yield session
                session.commit()
            except IntegrityError as exc:
                session.rollback()
                raise ConflictError("Conflicting write to state store") from exc
            except SQLAlchemyError as exc:
                session.rollback()
                logger.error("State store write failed", extra={"error": str(exc)})
                raise StorageError("State store write failed") from exc
            except BaseException:
                session.rollback()
                raise
            finally:
                session.close()

    @contextmanager
    def read(self) -> Iterator[Session]:
        """Yield a session for read-only queries."""
        session = self._session()
        try:
            yield session
        except SQLAlchemyError as exc:
            logger.error("State store read failed", extra={"error": str(exc)})
            raise StorageError("State store read failed") from exc
        finally:
            session.close()

    def snapshot(self) -> dict[str, Any]:
        """Render the state as the ``pending`` / ``completed`` / ``users`` document."""
        with self.read() as session:
            pending_rows = session.scalars(select(PendingRequest)).all()
            completion_rows = session.scalars(
                select(CompletionRecord).order_by(CompletionRecord.id)
            ).all()
            user_rows = session.scalars(select(UserProgress)).all()

        pending = {
            row.storage_key: {
                "userId": row.user_id,
                "scriptId": row.script_id,
                "keyIndex": row.key_index,
                "registeredAt": as_utc(row.registered_at).isoformat(),
                "metadata": row.metadata_ or {},
            }
            for row in pending_rows
        }

        completed: dict[str, list[dict[str, Any]]] = {}
        user_keys: dict[str, dict[str, set[int]]] = {}
        for record in completion_rows:
            completed.setdefault(record.script_id, []).append(
                {
                    "userId": record.user_id,
                    "keyIndex": record.key_index,
                    "completedAt": as_utc(record.completed_at).isoformat(),
                }
            )
            user_keys.setdefault(record.user_id, {}).setdefault(
                record.script_id, set()
            ).add(record.key_index)

        users = {
            row.user_id: {
                "completedKeys": {
                    script_id: sorted(keys)
                    for script_id, keys in user_keys.get(row.user_id, {}).items()
                },
                "lastActive": as_utc(row.last_active).isoformat(),
            }
            for row in user_rows
        }

        return {"pending": pending, "completed": completed, "users": users}
