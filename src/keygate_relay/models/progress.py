# src/keygate_relay/models/progress.py
"""Per-user activity bookkeeping."""

from datetime import datetime

from sqlalchemy import DateTime, Text
from sqlalchemy.orm import Mapped, mapped_column

from keygate_relay.db.session import Base
from keygate_relay.db.time import utcnow


class UserProgress(Base):
    """A user who has completed at least one key.

    Completed keys themselves are read from ``completion_record``.
    """

    __tablename__ = "user_progress"

    user_id: Mapped[str] = mapped_column(Text, primary_key=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
    last_active: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
