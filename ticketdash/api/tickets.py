"""
Tickets API endpoints for listing synced tickets.
"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from ticketdash.api.deps import get_db
from ticketdash.schemas import TicketResponse
from ticketdash.services import TicketRepository

router = APIRouter(prefix="/tickets", tags=["tickets"])


@router.get("", response_model=List[TicketResponse])
async def list_tickets(db: AsyncSession = Depends(get_db)):
    """
    List every synced ticket, newest created first.
    """
    return await TicketRepository(db).list_all()


@router.get("/{jira_key}", response_model=TicketResponse)
async def get_ticket(jira_key: str, db: AsyncSession = Depends(get_db)):
    """
    Get a single ticket by its Jira key.

    Args:
        jira_key: Jira issue key (e.g., 'PROJ-123')
    """
    ticket = await TicketRepository(db).get_by_key(jira_key)
    if not ticket:
        raise HTTPException(status_code=404, detail="Ticket not found")
    return ticket
