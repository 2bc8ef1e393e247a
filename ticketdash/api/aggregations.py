"""
Aggregations API endpoint feeding the dashboard charts.
"""

from fastapi import APIRouter, Depends, HTTPException

from ticketdash.api.deps import get_aggregations_service
from ticketdash.schemas import AggregationResult
from ticketdash.services import AggregationError, AggregationService

router = APIRouter(prefix="/aggregations", tags=["aggregations"])


@router.get("", response_model=AggregationResult)
async def get_aggregations(
    service: AggregationService = Depends(get_aggregations_service)
):
    """
    Get every dashboard aggregation in one response.

    Returns:
    - Ticket counts by status, priority and category
    - Monthly created/resolved series (last 12 months)
    - Business-hours resolution time per priority
    - Summary totals
    """
    try:
        return await service.get_aggregations()
    except AggregationError as e:
        raise HTTPException(status_code=500, detail=str(e))
