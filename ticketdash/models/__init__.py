"""
Database models for the ticket dashboard.

This module exports all SQLAlchemy models and the well-known
sync metadata keys used throughout the application.
"""

from ticketdash.models.ticket import Ticket
from ticketdash.models.sync_metadata import SyncMetadata, LAST_SYNC_KEY

# Priority names in display order; anything else sorts after these
PRIORITY_ORDER = ["Critical", "High", "Medium", "Low"]

__all__ = [
    "Ticket",
    "SyncMetadata",
    "LAST_SYNC_KEY",
    "PRIORITY_ORDER",
]
