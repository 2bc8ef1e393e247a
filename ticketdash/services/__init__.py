"""
Services module for the Jira API client and business logic.
"""

from ticketdash.services.jira import (
    JiraClient,
    JiraError,
    JiraAuthenticationError,
    JiraRateLimitError,
    JiraAPIError,
    JiraParseError,
    JiraConnectionError,
    get_jira_client
)
from ticketdash.services.business_hours import business_hours_between
from ticketdash.services.repository import TicketRepository, UnsupportedDialectError
from ticketdash.services.aggregations import (
    AggregationService,
    AggregationError,
    GroupField,
    InternalError,
    get_aggregation_service
)
from ticketdash.services.sync import (
    SyncService,
    SyncConfigurationError,
    SyncInProgressError,
    get_sync_service
)

__all__ = [
    "JiraClient",
    "JiraError",
    "JiraAuthenticationError",
    "JiraRateLimitError",
    "JiraAPIError",
    "JiraParseError",
    "JiraConnectionError",
    "get_jira_client",
    "business_hours_between",
    "TicketRepository",
    "UnsupportedDialectError",
    "AggregationService",
    "AggregationError",
    "GroupField",
    "InternalError",
    "get_aggregation_service",
    "SyncService",
    "SyncConfigurationError",
    "SyncInProgressError",
    "get_sync_service",
]
