# src/keygate_relay/models/completion.py
"""Append-only log of confirmed key completions."""

from datetime import datetime

from sqlalchemy import BigInteger, DateTime, Index, Integer, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from keygate_relay.db.session import Base
from keygate_relay.db.time import utcnow


class CompletionRecord(Base):
    """Immutable fact that a user completed one key of a script.

    The unique constraint keeps exactly one record per triple, so the set of
    completed keys for a user is the set of rows matching that user.
    """

    __tablename__ = "completion_record"
    __table_args__ = (
        UniqueConstraint(
            "user_id", "script_id", "key_index", name="uq_completion_record_triple"
        ),
        Index("ix_completion_record_script_id", "script_id"),
    )

    # Monotonic id preserves append order within each script's log.
    id: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer, "sqlite"),
        primary_key=True,
        autoincrement=True,
    )
    user_id: Mapped[str] = mapped_column(Text, nullable=False)
    script_id: Mapped[str] = mapped_column(Text, nullable=False)
    key_index: Mapped[int] = mapped_column(Integer, nullable=False)
    completed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
