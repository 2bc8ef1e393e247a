"""
API dependency functions for database sessions and services.
"""

from fastapi import Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from ticketdash.database import get_db
from ticketdash.services import (
    AggregationService,
    SyncConfigurationError,
    SyncService,
    get_aggregation_service,
    get_sync_service,
)

__all__ = ["get_db", "get_aggregations_service", "get_sync"]


async def get_aggregations_service(
    db: AsyncSession = Depends(get_db)
) -> AggregationService:
    """Aggregation service bound to the request's session."""
    return get_aggregation_service(db)


async def get_sync(db: AsyncSession = Depends(get_db)) -> SyncService:
    """
    Sync service bound to the request's session.

    Raises:
        HTTPException: 400 if Jira settings are missing
    """
    try:
        return get_sync_service(db)
    except SyncConfigurationError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )
