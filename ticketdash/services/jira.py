"""
Jira API client with outcome classification and token pagination.

This module provides an async client for the Jira Cloud search endpoint.
It builds incremental or full-history JQL from the last sync timestamp,
follows ``nextPageToken`` until Jira stops returning one, and converts
each issue into a TicketData ready for upsert.

The client never retries. Rate limiting surfaces as JiraRateLimitError
carrying the wait Jira asked for; pausing and calling again is up to the
caller.
"""

import base64
import logging
from typing import Any, AsyncGenerator, Dict, List, Optional

import httpx
from pydantic import ValidationError

from ticketdash.schemas.jira import JiraIssue, JiraSearchResponse
from ticketdash.schemas.ticket import TicketData
from ticketdash.services.timestamps import format_timestamp, parse_timestamp

logger = logging.getLogger(__name__)


class JiraError(Exception):
    """Base class for failures of a sync attempt."""
    pass


class JiraAuthenticationError(JiraError):
    """Raised when Jira rejects the credentials (HTTP 401)."""

    def __init__(self, message: str = "Jira authentication failed"):
        super().__init__(message)


class JiraRateLimitError(JiraError):
    """Raised on HTTP 429; ``retry_after`` is the suggested wait in seconds."""

    def __init__(self, retry_after: int):
        self.retry_after = retry_after
        super().__init__(f"Rate limited by Jira, retry after {retry_after} seconds")


class JiraAPIError(JiraError):
    """Raised when Jira returns any other non-success status."""

    def __init__(self, status_code: int, body: str):
        self.status_code = status_code
        self.body = body
        super().__init__(f"HTTP {status_code}: {body}")


class JiraParseError(JiraError):
    """Raised when a success response body cannot be understood."""
    pass


class JiraConnectionError(JiraError):
    """Raised when the request never got a response (DNS, connect, timeout)."""
    pass


class JiraClient:
    """Async client for the Jira Cloud search API."""

    API_PATH = "/rest/api/3"
    SEARCH_ENDPOINT = "/search/jql"
    DEFAULT_SCOPE = "assignee = currentUser()"
    DEFAULT_PAGE_SIZE = 100
    DEFAULT_RETRY_AFTER = 60  # seconds
    MAX_RETRY_AFTER = 300  # seconds
    UNREADABLE_BODY = "Failed to read error response"
    SEARCH_FIELDS = [
        "summary",
        "status",
        "priority",
        "issuetype",
        "assignee",
        "reporter",
        "created",
        "updated",
        "resolutiondate",
        "labels",
        "project",
    ]

    def __init__(
        self,
        jira_url: str,
        email: str,
        api_token: str,
        scope: str = DEFAULT_SCOPE,
        page_size: int = DEFAULT_PAGE_SIZE,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize Jira client.

        Args:
            jira_url: Jira site URL (e.g., 'https://company.atlassian.net')
            email: Email address for API authentication
            api_token: API token for authentication
            scope: JQL clause every query is restricted to
            page_size: Results requested per page
            timeout: Transport timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        self.base_url = f"{jira_url.rstrip('/')}{self.API_PATH}"
        # Basic auth format: email:api_token
        credentials = f"{email}:{api_token}"
        self.auth_header = base64.b64encode(credentials.encode()).decode()
        self.scope = scope
        self.page_size = page_size
        self.timeout = timeout
        self._transport = transport

        # HTTP client
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self):
        """Async context manager entry."""
        await self._ensure_client()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()

    async def _ensure_client(self):
        """Ensure HTTP client is initialized."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                headers={
                    "Authorization": f"Basic {self.auth_header}",
                    "Content-Type": "application/json",
                    "Accept": "application/json"
                },
                timeout=self.timeout,
                transport=self._transport,
            )

    async def close(self):
        """Close HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def build_jql(self, last_sync_timestamp: Optional[str]) -> str:
        """
        Build the search query for a sync pass.

        A parseable high-water mark produces an incremental query over
        issues updated since then, oldest first, so an interrupted sync
        resumes without skipping anything. Otherwise the full history is
        requested, newest created first.

        Args:
            last_sync_timestamp: Last successful sync time, if any

        Returns:
            JQL string

        Example:
            >>> client.build_jql("2025-01-01T00:00:00Z")
            'assignee = currentUser() AND updated >= "2025-01-01T00:00:00+00:00" ORDER BY updated ASC'
        """
        if last_sync_timestamp:
            parsed = parse_timestamp(last_sync_timestamp)
            if parsed is not None:
                return (
                    f'{self.scope} AND updated >= "{format_timestamp(parsed)}" '
                    f"ORDER BY updated ASC"
                )

            logger.warning(
                f"Invalid last_sync_at value '{last_sync_timestamp}'; "
                f"falling back to full sync query"
            )

        return f"{self.scope} ORDER BY created DESC"

    @classmethod
    def _retry_after(cls, response: httpx.Response) -> int:
        """Seconds to wait from Retry-After, defaulted and capped."""
        header = response.headers.get("Retry-After")
        try:
            retry_after = int(header.strip())
            if retry_after < 0:
                raise ValueError(header)
        except (AttributeError, TypeError, ValueError):
            logger.warning(
                f"Rate limited but Retry-After header missing or invalid "
                f"({header!r}), defaulting to {cls.DEFAULT_RETRY_AFTER} seconds"
            )
            retry_after = cls.DEFAULT_RETRY_AFTER

        return min(retry_after, cls.MAX_RETRY_AFTER)

    async def search(
        self,
        jql: str,
        next_page_token: Optional[str] = None
    ) -> JiraSearchResponse:
        """
        Run one page of a JQL search.

        Args:
            jql: Query to run
            next_page_token: Continuation token from the previous page

        Returns:
            Parsed page of issues plus the next continuation token

        Raises:
            JiraAuthenticationError: On HTTP 401
            JiraRateLimitError: On HTTP 429
            JiraAPIError: On any other non-success status
            JiraParseError: When a success body is not a valid search page
            JiraConnectionError: When no response was received
        """
        await self._ensure_client()

        body: Dict[str, Any] = {
            "jql": jql,
            "maxResults": self.page_size,
            "fields": self.SEARCH_FIELDS,
        }
        if next_page_token is not None:
            body["nextPageToken"] = next_page_token

        url = f"{self.base_url}{self.SEARCH_ENDPOINT}"
        request = self._client.build_request("POST", url, json=body)
        try:
            # Streamed so the status survives a failure while reading the body
            response = await self._client.send(request, stream=True)
        except httpx.RequestError as e:
            logger.error(f"Request error on {self.SEARCH_ENDPOINT}: {e}")
            raise JiraConnectionError(f"Request to Jira failed: {e}") from e

        try:
            if response.is_success:
                try:
                    await response.aread()
                except httpx.RequestError as e:
                    logger.error(f"Request error on {self.SEARCH_ENDPOINT}: {e}")
                    raise JiraConnectionError(f"Request to Jira failed: {e}") from e
                try:
                    return JiraSearchResponse.model_validate(response.json())
                except (ValueError, ValidationError) as e:
                    # json.JSONDecodeError is a ValueError
                    raise JiraParseError(f"Invalid search response: {e}") from e

            if response.status_code == 401:
                raise JiraAuthenticationError()

            if response.status_code == 429:
                raise JiraRateLimitError(self._retry_after(response))

            try:
                await response.aread()
                error_body = response.text
            except httpx.HTTPError as e:
                logger.warning(f"Could not read error body: {e}")
                error_body = self.UNREADABLE_BODY

            logger.error(
                f"HTTP error {response.status_code} on {self.SEARCH_ENDPOINT}: "
                f"{error_body}"
            )
            raise JiraAPIError(response.status_code, error_body)
        finally:
            await response.aclose()

    @staticmethod
    def convert_issue(issue: JiraIssue) -> TicketData:
        """
        Map a Jira issue onto a ticket.

        Missing assignee, reporter or resolution date stay None; labels
        are comma-joined. Category is always left unset.
        """
        fields = issue.fields
        return TicketData(
            jira_key=issue.key,
            summary=fields.summary,
            status=fields.status.name,
            priority=fields.priority.name,
            issue_type=fields.issuetype.name,
            assignee=fields.assignee.display_name if fields.assignee else None,
            reporter=fields.reporter.display_name if fields.reporter else None,
            created_at=fields.created,
            updated_at=fields.updated,
            resolved_at=fields.resolutiondate,
            labels=",".join(fields.labels),
            project_key=fields.project.key,
            category=None,
        )

    async def iter_ticket_pages(
        self,
        last_sync_timestamp: Optional[str] = None
    ) -> AsyncGenerator[List[TicketData], None]:
        """
        Generator that yields one batch of tickets per search page.

        Follows nextPageToken until a page arrives without one. A batch is
        only yielded after its page was fetched and parsed successfully.

        Args:
            last_sync_timestamp: High-water mark scoping the query

        Yields:
            Lists of TicketData (one per page)

        Example:
            >>> async for batch in client.iter_ticket_pages(last_sync):
            ...     for ticket in batch:
            ...         print(ticket.jira_key)
        """
        jql = self.build_jql(last_sync_timestamp)
        next_page_token: Optional[str] = None
        page = 0
        total_fetched = 0

        while True:
            response = await self.search(jql, next_page_token)
            page += 1

            tickets = [self.convert_issue(issue) for issue in response.issues]
            total_fetched += len(tickets)
            logger.info(
                f"Jira search page {page}: fetched {len(tickets)} issues "
                f"(total: {total_fetched})"
            )

            yield tickets

            if response.next_page_token is None:
                break
            next_page_token = response.next_page_token

        logger.info(f"Search complete: {total_fetched} total issues")

    async def fetch_tickets(
        self,
        last_sync_timestamp: Optional[str] = None
    ) -> List[TicketData]:
        """
        Fetch every ticket matching the sync query, across all pages.

        Args:
            last_sync_timestamp: High-water mark, or None for full history

        Returns:
            All tickets in the order Jira returned them
        """
        all_tickets: List[TicketData] = []
        async for batch in self.iter_ticket_pages(last_sync_timestamp):
            all_tickets.extend(batch)
        return all_tickets


def get_jira_client() -> JiraClient:
    """
    Factory function to create Jira client with settings.

    Returns:
        Configured JiraClient instance

    Example:
        >>> client = get_jira_client()
        >>> async with client:
        ...     tickets = await client.fetch_tickets(None)
    """
    from ticketdash.config import settings

    return JiraClient(
        jira_url=settings.JIRA_URL,
        email=settings.JIRA_EMAIL,
        api_token=settings.JIRA_API_TOKEN,
        scope=settings.JIRA_JQL_SCOPE,
        page_size=settings.JIRA_PAGE_SIZE,
        timeout=settings.JIRA_TIMEOUT_SECONDS,
    )
