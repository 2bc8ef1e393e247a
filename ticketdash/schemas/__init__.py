from ticketdash.schemas.common import HealthResponse
from ticketdash.schemas.ticket import TicketData, TicketResponse
from ticketdash.schemas.aggregation import (
    CountEntry, TimeSeriesEntry, AvgEntry, SummaryStats, AggregationResult
)
from ticketdash.schemas.sync import SyncResult, SyncStatusResponse
from ticketdash.schemas.jira import JiraIssue, JiraSearchResponse

__all__ = [
    # Common
    "HealthResponse",
    # Ticket
    "TicketData",
    "TicketResponse",
    # Aggregation
    "CountEntry",
    "TimeSeriesEntry",
    "AvgEntry",
    "SummaryStats",
    "AggregationResult",
    # Sync
    "SyncResult",
    "SyncStatusResponse",
    # Jira wire format
    "JiraIssue",
    "JiraSearchResponse",
]
