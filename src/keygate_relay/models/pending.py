# src/keygate_relay/models/pending.py
"""Unconfirmed unlock attempts awaiting an ad-network callback."""

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from keygate_relay.db.session import Base
from keygate_relay.db.time import utcnow


class PendingRequest(Base):
    """A registered intent to complete one key.

    Re-registering the same triple overwrites the row; completing it deletes
    the row.
    """

    __tablename__ = "pending_request"

    # (user_id, script_id, key_index) -> at most one pending entry.
    user_id: Mapped[str] = mapped_column(Text, primary_key=True)
    script_id: Mapped[str] = mapped_column(Text, primary_key=True)
    key_index: Mapped[int] = mapped_column(Integer, primary_key=True)

    registered_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
    # Issuer metadata such as the generated callback URL.
    metadata_: Mapped[dict[str, Any] | None] = mapped_column(
        JSON,
        nullable=True,
        name="metadata",
    )

    @property
    def storage_key(self) -> str:
        return f"{self.user_id}:{self.script_id}:{self.key_index}"
