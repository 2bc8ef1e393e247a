"""
SyncMetadata model for persisting sync bookkeeping.
"""

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from ticketdash.database import Base


# Key under which the last successful sync timestamp is stored
LAST_SYNC_KEY = "last_sync_at"


class SyncMetadata(Base):
    """
    Key/value store for sync state.

    One row per key; writing a key replaces its previous value, so no
    history is retained.
    """

    __tablename__ = "sync_metadata"

    key: Mapped[str] = mapped_column(String(100), primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)

    def __repr__(self) -> str:
        return f"<SyncMetadata(key={self.key!r}, value={self.value!r})>"
