"""
Sync service for fetching Jira issues and storing them as tickets.

This module provides the SyncService class that:
1. Reads the high-water mark left by the previous sync
2. Pulls changed issues from Jira page by page
3. Upserts each page and commits it before requesting the next
4. Advances the high-water mark once every page has been stored
"""

import logging
from datetime import datetime, timedelta, timezone

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ticketdash.models import LAST_SYNC_KEY, Ticket
from ticketdash.schemas.sync import SyncResult, SyncStatusResponse
from ticketdash.services.jira import JiraClient, get_jira_client
from ticketdash.services.repository import TicketRepository
from ticketdash.services.timestamps import format_timestamp, parse_timestamp

logger = logging.getLogger(__name__)

# Re-fetched window before the pass start; re-covered issues upsert idempotently
HIGH_WATER_MARK_OVERLAP = timedelta(minutes=5)


class SyncConfigurationError(Exception):
    """Raised when Jira credentials have not been configured."""
    pass


class SyncInProgressError(RuntimeError):
    """Raised when a sync is requested while one is already running."""
    pass


class SyncService:
    """Handles syncing tickets from Jira to the database."""

    def __init__(self, db: AsyncSession, jira_client: JiraClient):
        """
        Initialize sync service.

        Args:
            db: Async database session
            jira_client: Configured Jira API client
        """
        self.db = db
        self.jira = jira_client
        self.repository = TicketRepository(db)
        self._is_running = False

    @property
    def is_running(self) -> bool:
        """Check if sync is currently running."""
        return self._is_running

    async def sync_tickets(self) -> SyncResult:
        """
        Run one sync pass.

        Each page is committed as soon as it is stored, so a failure on a
        later page keeps the earlier ones. The high-water mark only moves
        after the last page, so the next pass re-covers anything missed.

        Returns:
            SyncResult with counts and the new high-water mark

        Raises:
            SyncInProgressError: If sync is already in progress
            JiraError: Any failure reported by the Jira client
        """
        if self._is_running:
            raise SyncInProgressError("Sync already in progress")

        self._is_running = True
        tickets_synced = 0
        pages = 0

        try:
            last_sync_at = await self.repository.get_metadata(LAST_SYNC_KEY)
            incremental = parse_timestamp(last_sync_at) is not None
            started_at = datetime.now(timezone.utc)

            if incremental:
                logger.info(f"Starting incremental sync from {last_sync_at}")
            else:
                logger.info("Starting full sync")

            async for batch in self.jira.iter_ticket_pages(last_sync_at):
                tickets_synced += await self.repository.upsert_many(batch)
                await self.db.commit()
                pages += 1

            # The mark comes from the local clock; stepping back by the
            # overlap covers a local clock running ahead of Jira's
            new_mark = format_timestamp(started_at - HIGH_WATER_MARK_OVERLAP)
            await self.repository.set_metadata(LAST_SYNC_KEY, new_mark)
            await self.db.commit()

            logger.info(
                f"Sync complete: {tickets_synced} tickets synced over {pages} pages"
            )
            return SyncResult(
                tickets_synced=tickets_synced,
                pages=pages,
                incremental=incremental,
                started_at=started_at,
                last_sync_at=new_mark,
            )

        except Exception:
            # Drop the uncommitted remainder of the failed page
            await self.db.rollback()
            raise

        finally:
            self._is_running = False

    async def get_sync_status(self) -> SyncStatusResponse:
        """
        Get current sync status.

        Returns:
            SyncStatusResponse with the stored high-water mark, the number
            of tickets in the store and whether a sync is running
        """
        last_sync_at = await self.repository.get_metadata(LAST_SYNC_KEY)
        total = (
            await self.db.execute(select(func.count()).select_from(Ticket))
        ).scalar_one()

        return SyncStatusResponse(
            last_sync_at=last_sync_at,
            total_tickets=total,
            is_running=self._is_running,
        )


def get_sync_service(db: AsyncSession) -> SyncService:
    """
    Factory function to create SyncService with dependencies.

    Args:
        db: Async database session

    Returns:
        Configured SyncService instance

    Raises:
        SyncConfigurationError: If Jira URL, email or token is missing

    Example:
        >>> async with AsyncSessionLocal() as db:
        ...     sync_service = get_sync_service(db)
        ...     async with sync_service.jira:
        ...         await sync_service.sync_tickets()
    """
    from ticketdash.config import settings

    if not settings.jira_configured:
        raise SyncConfigurationError(
            "No Jira settings found. Set JIRA_URL, JIRA_EMAIL and JIRA_API_TOKEN."
        )

    return SyncService(db=db, jira_client=get_jira_client())
