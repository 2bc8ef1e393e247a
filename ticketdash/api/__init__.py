"""
API endpoints module.
"""

from ticketdash.api import tickets, aggregations, sync
from ticketdash.api.router import api_router

__all__ = [
    "tickets",
    "aggregations",
    "sync",
    "api_router",
]
