"""
Sync API endpoints for triggering and monitoring Jira sync operations.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse

from ticketdash.api.deps import get_sync
from ticketdash.schemas import SyncResult, SyncStatusResponse
from ticketdash.services import (
    JiraAPIError,
    JiraAuthenticationError,
    JiraError,
    JiraRateLimitError,
    SyncService,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sync", tags=["sync"])

# Global flag to track if sync is running
# Only one process writes to the store, so an in-memory flag is enough
_sync_running = False


@router.post("", response_model=SyncResult)
async def trigger_sync(service: SyncService = Depends(get_sync)):
    """
    Run one sync pass and return its result.

    Only one sync can run at a time. Jira failures map to:
    - 401 when Jira rejects the credentials
    - 429 with Retry-After when Jira is rate limiting
    - 502 for any other Jira error

    Returns:
        SyncResult with tickets synced and the new high-water mark
    """
    global _sync_running

    if _sync_running:
        raise HTTPException(
            status_code=409,
            detail="Sync is already running"
        )

    _sync_running = True
    try:
        async with service.jira:
            return await service.sync_tickets()

    except JiraAuthenticationError as e:
        raise HTTPException(status_code=401, detail=str(e))

    except JiraRateLimitError as e:
        return JSONResponse(
            status_code=429,
            content={"detail": str(e), "retry_after": e.retry_after},
            headers={"Retry-After": str(e.retry_after)},
        )

    except JiraAPIError as e:
        raise HTTPException(
            status_code=502,
            detail=f"Jira returned HTTP {e.status_code}: {e.body}"
        )

    except JiraError as e:
        logger.error(f"Sync failed: {e}")
        raise HTTPException(status_code=502, detail=str(e))

    finally:
        _sync_running = False


@router.get("/status", response_model=SyncStatusResponse)
async def get_sync_status(service: SyncService = Depends(get_sync)):
    """
    Get the stored high-water mark and ticket count.

    Returns:
    - Last successful sync timestamp
    - Number of tickets in the local store
    - Whether a sync is running right now
    """
    status = await service.get_sync_status()
    status.is_running = _sync_running
    return status
