from pydantic import BaseModel
from typing import Optional


class TicketData(BaseModel):
    """A Jira issue materialized by the sync client, ready to upsert."""
    jira_key: str
    summary: str
    status: str
    priority: str
    issue_type: str
    assignee: Optional[str] = None
    reporter: Optional[str] = None
    created_at: str
    updated_at: str
    resolved_at: Optional[str] = None
    labels: str = ""
    project_key: str
    category: Optional[str] = None


class TicketResponse(TicketData):
    id: int

    class Config:
        from_attributes = True
