from pydantic import BaseModel
from typing import Optional
from datetime import datetime


class SyncResult(BaseModel):
    """Outcome of one completed sync pass."""
    tickets_synced: int
    pages: int
    incremental: bool
    started_at: datetime
    last_sync_at: str


class SyncStatusResponse(BaseModel):
    """Response for sync status endpoint."""
    last_sync_at: Optional[str] = None
    total_tickets: int
    is_running: bool = False
