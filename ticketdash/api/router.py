"""
Main API router aggregating all endpoint modules.
"""

from fastapi import APIRouter

from ticketdash.api import tickets, aggregations, sync

# Create main API router with /api prefix
api_router = APIRouter(prefix="/api")

# Include all sub-routers
api_router.include_router(tickets.router)
api_router.include_router(aggregations.router)
api_router.include_router(sync.router)
