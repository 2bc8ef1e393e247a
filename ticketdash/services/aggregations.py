"""
Dashboard aggregations over the local ticket table.

This module provides the AggregationService class that computes:
1. Ticket counts grouped by status, priority or category
2. A monthly created/resolved series over the last 12 active months
3. Business-hours resolution time statistics per priority
4. An overall summary block

Every view is recomputed from the ticket table on each call.
"""

import logging
import statistics
from collections import Counter
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple, Union

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ticketdash.models import PRIORITY_ORDER, Ticket
from ticketdash.schemas.aggregation import (
    AggregationResult,
    AvgEntry,
    CountEntry,
    SummaryStats,
    TimeSeriesEntry,
)
from ticketdash.services.business_hours import (
    DEFAULT_CLOSING_HOUR,
    DEFAULT_OPENING_HOUR,
    business_hours_between,
)
from ticketdash.services.timestamps import month_key, parse_timestamp

logger = logging.getLogger(__name__)

UNCATEGORIZED = "Uncategorized"
TIMELINE_MONTHS = 12


class InternalError(Exception):
    """Raised on programmer errors such as an unknown grouping field."""
    pass


class AggregationError(Exception):
    """Raised when the combined aggregation result cannot be produced."""
    pass


class GroupField(str, Enum):
    """Fields the dashboard may group ticket counts by."""
    STATUS = "status"
    PRIORITY = "priority"
    CATEGORY = "category"


_GROUP_COLUMNS = {
    GroupField.STATUS: Ticket.status,
    GroupField.PRIORITY: Ticket.priority,
    GroupField.CATEGORY: Ticket.category,
}


def _mean(values: Sequence[float]) -> float:
    return statistics.fmean(values) if values else 0.0


def _median(values: Sequence[float]) -> float:
    return statistics.median(values) if values else 0.0


def _priority_rank(name: str) -> int:
    try:
        return PRIORITY_ORDER.index(name)
    except ValueError:
        return len(PRIORITY_ORDER)


class AggregationService:
    """Computes dashboard aggregations from the ticket table."""

    def __init__(
        self,
        db: AsyncSession,
        opening_hour: int = DEFAULT_OPENING_HOUR,
        closing_hour: int = DEFAULT_CLOSING_HOUR,
    ):
        """
        Initialize aggregation service.

        Args:
            db: Async database session
            opening_hour: Start of the business day for resolution times
            closing_hour: End of the business day for resolution times
        """
        self.db = db
        self.opening_hour = opening_hour
        self.closing_hour = closing_hour

    def resolution_hours(self, created_at: str, resolved_at: str) -> Optional[float]:
        """
        Business hours between creation and resolution.

        Returns:
            Hours, or None when either timestamp is unparseable or the
            ticket resolves before it was created
        """
        created = parse_timestamp(created_at)
        resolved = parse_timestamp(resolved_at)
        if created is None or resolved is None:
            logger.debug(
                f"Skipping unparseable timestamps {created_at!r} / {resolved_at!r}"
            )
            return None
        try:
            return business_hours_between(
                created, resolved, self.opening_hour, self.closing_hour
            )
        except ValueError as e:
            logger.debug(f"Skipping resolution time: {e}")
            return None

    async def counts_by_field(self, field: Union[GroupField, str]) -> List[CountEntry]:
        """
        Ticket counts grouped by one allow-listed field, largest first.

        Null values are counted under "Uncategorized".

        Args:
            field: A GroupField member (or its value)

        Raises:
            InternalError: If field is not one of status, priority, category
        """
        try:
            column = _GROUP_COLUMNS[GroupField(field)]
        except ValueError:
            raise InternalError(f"Invalid field name: {field!r}")

        name = func.coalesce(column, UNCATEGORIZED).label("name")
        count = func.count().label("count")
        result = await self.db.execute(
            select(name, count)
            .group_by(column)
            .order_by(count.desc(), name)
        )
        return [CountEntry(name=value, count=total) for value, total in result]

    async def _month_counts(self, column) -> Counter:
        """Tickets per UTC month of one timestamp column, nulls ignored."""
        result = await self.db.execute(select(column).where(column.is_not(None)))
        months = Counter()
        for value in result.scalars():
            key = month_key(value)
            if key is not None:
                months[key] += 1
        return months

    async def tickets_over_time(self) -> List[TimeSeriesEntry]:
        """
        Monthly created and resolved counts, oldest month first.

        Creation and resolution months are counted independently and then
        merged, so a ticket resolved in a later month adds to that month's
        resolved count rather than its creation month. Only the 12 most
        recent months appearing in either series are kept.
        """
        created = await self._month_counts(Ticket.created_at)
        resolved = await self._month_counts(Ticket.resolved_at)

        months = sorted(set(created) | set(resolved), reverse=True)[:TIMELINE_MONTHS]
        return [
            TimeSeriesEntry(
                date=month,
                created=created.get(month, 0),
                resolved=resolved.get(month, 0),
            )
            for month in reversed(months)
        ]

    async def _resolved_rows(self) -> List[Tuple[str, str, str]]:
        result = await self.db.execute(
            select(Ticket.priority, Ticket.created_at, Ticket.resolved_at)
            .where(Ticket.resolved_at.is_not(None))
            .order_by(Ticket.id)
        )
        return list(result.all())

    async def resolution_time_by_priority(self) -> List[AvgEntry]:
        """
        Mean and median business-hours resolution time per priority.

        Ordered Critical, High, Medium, Low, then any other priority.
        Tickets with unusable timestamps are left out of these figures.
        """
        durations: Dict[str, List[float]] = {}
        for priority, created_at, resolved_at in await self._resolved_rows():
            hours = self.resolution_hours(created_at, resolved_at)
            if hours is not None:
                durations.setdefault(priority, []).append(hours)

        entries = [
            AvgEntry(
                name=priority,
                avg_hours=_mean(values),
                median_hours=_median(values),
                count=len(values),
            )
            for priority, values in durations.items()
        ]
        # sort() is stable, so unranked priorities keep grouping order
        entries.sort(key=lambda entry: _priority_rank(entry.name))
        return entries

    async def summary(self) -> SummaryStats:
        """Totals plus pooled resolution time across all priorities."""
        total = (
            await self.db.execute(select(func.count()).select_from(Ticket))
        ).scalar_one()
        open_count = (
            await self.db.execute(
                select(func.count())
                .select_from(Ticket)
                .where(Ticket.resolved_at.is_(None))
            )
        ).scalar_one()

        hours = []
        for _, created_at, resolved_at in await self._resolved_rows():
            value = self.resolution_hours(created_at, resolved_at)
            if value is not None:
                hours.append(value)

        return SummaryStats(
            total_tickets=total,
            open_tickets=open_count,
            resolved_tickets=total - open_count,
            avg_resolution_hours=_mean(hours),
            median_resolution_hours=_median(hours),
        )

    async def get_aggregations(self) -> AggregationResult:
        """
        Compute every dashboard view.

        Returns:
            AggregationResult with all six views

        Raises:
            AggregationError: If any view fails; no partial result is returned
        """
        try:
            return AggregationResult(
                tickets_by_status=await self.counts_by_field(GroupField.STATUS),
                tickets_by_priority=await self.counts_by_field(GroupField.PRIORITY),
                tickets_by_category=await self.counts_by_field(GroupField.CATEGORY),
                tickets_over_time=await self.tickets_over_time(),
                resolution_time_by_priority=await self.resolution_time_by_priority(),
                summary=await self.summary(),
            )
        except (SQLAlchemyError, InternalError) as e:
            logger.error(f"Aggregation failed: {e}")
            raise AggregationError(f"Failed to compute aggregations: {e}") from e


def get_aggregation_service(db: AsyncSession) -> AggregationService:
    """
    Factory function to create AggregationService with settings.

    Args:
        db: Async database session

    Returns:
        Configured AggregationService instance
    """
    from ticketdash.config import settings

    return AggregationService(
        db=db,
        opening_hour=settings.BUSINESS_HOURS_START,
        closing_hour=settings.BUSINESS_HOURS_END,
    )
