"""
Ticket model for Jira issues.
"""

from typing import Optional

from sqlalchemy import Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from ticketdash.database import Base


class Ticket(Base):
    """
    Represents a Jira issue synced into the local store.

    The Jira key is the natural identity; ``id`` only exists for storage
    convenience. Timestamps are kept exactly as Jira returned them and are
    parsed on read by the aggregation layer.
    """

    __tablename__ = "tickets"

    # Primary key
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Jira fields
    jira_key: Mapped[str] = mapped_column(
        String(64),
        unique=True,
        nullable=False,
        index=True
    )
    summary: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(String(100), nullable=False)
    priority: Mapped[str] = mapped_column(String(50), nullable=False)
    issue_type: Mapped[str] = mapped_column(String(100), nullable=False)
    assignee: Mapped[Optional[str]] = mapped_column(String(255))
    reporter: Mapped[Optional[str]] = mapped_column(String(255))
    labels: Mapped[str] = mapped_column(Text, default="", server_default="")
    project_key: Mapped[str] = mapped_column(String(64), nullable=False)

    # Set by the categorizer, never by sync
    category: Mapped[Optional[str]] = mapped_column(String(100))

    # Timestamp fields (ISO-8601 text)
    created_at: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    updated_at: Mapped[str] = mapped_column(String(64), nullable=False)
    resolved_at: Mapped[Optional[str]] = mapped_column(String(64), index=True)

    def __repr__(self) -> str:
        return f"<Ticket(id={self.id}, jira_key={self.jira_key}, summary='{self.summary}')>"
