"""
Persistence gateway for tickets and sync metadata.

Upserts are keyed on the Jira key and written with the dialect's native
``INSERT ... ON CONFLICT DO UPDATE`` so SQLite and PostgreSQL behave the
same. Nothing here commits; the caller owns the transaction.
"""

import logging
from typing import Iterable, List, Optional

from sqlalchemy import select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from ticketdash.models import SyncMetadata, Ticket
from ticketdash.schemas.ticket import TicketData

logger = logging.getLogger(__name__)

# Identity and creation time survive every re-sync
IMMUTABLE_COLUMNS = {"id", "jira_key", "created_at"}

_INSERT_BY_DIALECT = {
    "sqlite": sqlite.insert,
    "postgresql": postgresql.insert,
}


class UnsupportedDialectError(ValueError):
    """Raised when the bound database has no native upsert support here."""
    pass


class TicketRepository:
    """Reads and writes tickets and sync metadata through one session."""

    def __init__(self, db: AsyncSession):
        """
        Initialize repository.

        Args:
            db: Async database session
        """
        self.db = db

    def _insert(self, table):
        """Dialect-specific insert() that supports on_conflict_do_update."""
        dialect = self.db.get_bind().dialect.name
        try:
            insert = _INSERT_BY_DIALECT[dialect]
        except KeyError:
            raise UnsupportedDialectError(
                f"Upsert is not supported on the {dialect!r} dialect; "
                f"use one of {sorted(_INSERT_BY_DIALECT)}"
            )
        return insert(table)

    async def upsert(self, ticket: TicketData) -> None:
        """
        Insert a ticket or overwrite the stored copy with the same key.

        Every column except id, jira_key and created_at is replaced.

        Args:
            ticket: Ticket as materialized by the sync client
        """
        values = ticket.model_dump()
        stmt = self._insert(Ticket).values(**values)
        stmt = stmt.on_conflict_do_update(
            index_elements=["jira_key"],
            set_={
                column: stmt.excluded[column]
                for column in values
                if column not in IMMUTABLE_COLUMNS
            }
        )
        await self.db.execute(stmt)

    async def upsert_many(self, tickets: Iterable[TicketData]) -> int:
        """
        Upsert a batch of tickets.

        Returns:
            Number of tickets written
        """
        count = 0
        for ticket in tickets:
            await self.upsert(ticket)
            count += 1
        return count

    async def list_all(self) -> List[Ticket]:
        """All tickets, newest created first."""
        # populate_existing refreshes objects already loaded before an upsert
        result = await self.db.execute(
            select(Ticket)
            .order_by(Ticket.created_at.desc())
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def get_by_key(self, jira_key: str) -> Optional[Ticket]:
        """Single ticket by Jira key, or None."""
        result = await self.db.execute(
            select(Ticket)
            .where(Ticket.jira_key == jira_key)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_metadata(self, key: str) -> Optional[str]:
        """Stored value for a metadata key, or None if never written."""
        result = await self.db.execute(
            select(SyncMetadata.value).where(SyncMetadata.key == key)
        )
        return result.scalar_one_or_none()

    async def set_metadata(self, key: str, value: str) -> None:
        """Write a metadata value, replacing any previous one."""
        stmt = self._insert(SyncMetadata).values(key=key, value=value)
        stmt = stmt.on_conflict_do_update(
            index_elements=["key"],
            set_={"value": stmt.excluded.value}
        )
        await self.db.execute(stmt)
        logger.debug(f"Sync metadata {key} set to {value}")
