"""
Tests for Jira API client.

Tests cover:
- JQL construction from the high-water mark
- Token pagination
- Outcome classification (401, 429, other errors, bad bodies)
- Retry-After defaulting and clamping
- Issue to ticket conversion
"""

import base64
import pytest
import httpx

from ticketdash.schemas import JiraIssue
from ticketdash.services.jira import (
    JiraClient,
    JiraAPIError,
    JiraAuthenticationError,
    JiraConnectionError,
    JiraParseError,
    JiraRateLimitError,
)


def _client() -> JiraClient:
    return JiraClient(
        jira_url="https://example.atlassian.net",
        email="test@example.com",
        api_token="token",
    )


class BrokenBodyStream(httpx.AsyncByteStream):
    """Response body that drops the connection after the first chunk."""

    async def __aiter__(self):
        yield b"partial"
        raise httpx.ReadError("connection reset mid-body")


@pytest.mark.jira
class TestBuildJql:
    """Query construction from the last sync timestamp."""

    def test_client_initialization(self):
        """Base URL and basic auth header are derived from the settings."""
        client = JiraClient(
            jira_url="https://example.atlassian.net/",
            email="test@example.com",
            api_token="test_token_12345",
        )

        assert client.base_url == "https://example.atlassian.net/rest/api/3"
        assert base64.b64decode(client.auth_header).decode() == (
            "test@example.com:test_token_12345"
        )
        assert client.page_size == 100

    def test_incremental_query_for_valid_timestamp(self):
        """A valid timestamp yields an updated-since query, oldest first."""
        jql = _client().build_jql("2025-01-01T00:00:00Z")

        assert jql == (
            'assignee = currentUser() AND updated >= "2025-01-01T00:00:00+00:00" '
            "ORDER BY updated ASC"
        )

    def test_incremental_query_keeps_offset(self):
        """Non-UTC offsets survive normalisation."""
        jql = _client().build_jql("2025-03-10T08:15:00+02:00")

        assert 'updated >= "2025-03-10T08:15:00+02:00"' in jql

    def test_full_query_without_timestamp(self):
        """No high-water mark means a full-history query."""
        assert _client().build_jql(None) == "assignee = currentUser() ORDER BY created DESC"

    def test_full_query_for_invalid_timestamp(self, caplog):
        """An unparseable mark falls back to a full sync and logs a warning."""
        with caplog.at_level("WARNING"):
            jql = _client().build_jql("not-a-timestamp")

        assert jql == "assignee = currentUser() ORDER BY created DESC"
        assert "falling back to full sync query" in caplog.text

    def test_full_query_for_timestamp_without_offset(self):
        """Timestamps without a UTC offset are not trusted."""
        jql = _client().build_jql("2025-01-01T00:00:00")

        assert jql.endswith("ORDER BY created DESC")

    def test_custom_scope(self):
        """The scoping clause is configurable."""
        client = JiraClient(
            jira_url="https://example.atlassian.net",
            email="e",
            api_token="t",
            scope="project = OPS",
        )

        assert client.build_jql(None) == "project = OPS ORDER BY created DESC"


@pytest.mark.jira
class TestConvertIssue:
    """Mapping of raw Jira issues onto TicketData."""

    def test_convert_full_issue(self, jira_issue):
        raw = jira_issue(
            key="TEST-1",
            summary="Login fails",
            resolutiondate="2025-01-08T12:00:00.000+0000",
        )
        ticket = JiraClient.convert_issue(JiraIssue.model_validate(raw))

        assert ticket.jira_key == "TEST-1"
        assert ticket.summary == "Login fails"
        assert ticket.status == "In Progress"
        assert ticket.priority == "High"
        assert ticket.issue_type == "Task"
        assert ticket.assignee == "Alice Example"
        assert ticket.reporter == "Bob Example"
        assert ticket.created_at == "2025-01-06T09:00:00.000+0000"
        assert ticket.resolved_at == "2025-01-08T12:00:00.000+0000"
        assert ticket.labels == "backend,urgent"
        assert ticket.project_key == "TEST"
        assert ticket.category is None

    def test_missing_optional_fields_become_none(self, jira_issue):
        raw = jira_issue(assignee=None, reporter=None, labels=[])
        del raw["fields"]["resolutiondate"]
        ticket = JiraClient.convert_issue(JiraIssue.model_validate(raw))

        assert ticket.assignee is None
        assert ticket.reporter is None
        assert ticket.resolved_at is None
        assert ticket.labels == ""


@pytest.mark.asyncio
@pytest.mark.jira
class TestJiraClient:
    """Requests, pagination and outcome classification."""

    async def test_context_manager(self):
        """Test async context manager functionality."""
        client = _client()

        async with client as c:
            assert c._client is not None

        # Client should be closed after context
        assert client._client is None

    async def test_search_request_shape(
        self, make_jira_client, search_page, jira_issue, recorded_requests
    ):
        """The search POST carries JQL, page size, fields and auth."""
        client = make_jira_client(search_page([jira_issue()]))

        async with client:
            await client.search("project = TEST")

        request = recorded_requests[0]
        assert request["url"] == "https://example.atlassian.net/rest/api/3/search/jql"
        assert request["headers"]["authorization"].startswith("Basic ")
        assert request["body"]["jql"] == "project = TEST"
        assert request["body"]["maxResults"] == 100
        assert request["body"]["fields"] == JiraClient.SEARCH_FIELDS
        assert "nextPageToken" not in request["body"]

    async def test_fetch_tickets_follows_tokens(
        self, make_jira_client, search_page, jira_issue, recorded_requests
    ):
        """Pages are requested until a response has no continuation token."""
        client = make_jira_client(
            search_page([jira_issue(key="TEST-1"), jira_issue(key="TEST-2")], "page-2"),
            search_page([jira_issue(key="TEST-3")], "page-3"),
            search_page([jira_issue(key="TEST-4")]),
        )

        async with client:
            tickets = await client.fetch_tickets("2025-01-01T00:00:00Z")

        assert [t.jira_key for t in tickets] == ["TEST-1", "TEST-2", "TEST-3", "TEST-4"]
        assert len(recorded_requests) == 3
        assert "nextPageToken" not in recorded_requests[0]["body"]
        assert recorded_requests[1]["body"]["nextPageToken"] == "page-2"
        assert recorded_requests[2]["body"]["nextPageToken"] == "page-3"
        # The same query is used for every page
        assert len({r["body"]["jql"] for r in recorded_requests}) == 1
        assert "ORDER BY updated ASC" in recorded_requests[0]["body"]["jql"]

    async def test_empty_result(self, make_jira_client, search_page):
        """A single empty page yields no tickets."""
        client = make_jira_client(search_page([]))

        async with client:
            assert await client.fetch_tickets(None) == []

    async def test_iter_pages_yields_before_later_failure(
        self, make_jira_client, search_page, jira_issue
    ):
        """Pages fetched before a failure are still delivered."""
        client = make_jira_client(
            search_page([jira_issue(key="TEST-1")], "page-2"),
            httpx.Response(500, text="boom"),
        )
        batches = []

        async with client:
            with pytest.raises(JiraAPIError):
                async for batch in client.iter_ticket_pages(None):
                    batches.append(batch)

        assert [[t.jira_key for t in b] for b in batches] == [["TEST-1"]]

    async def test_unauthorized(self, make_jira_client):
        """401 is an authentication failure regardless of the body."""
        client = make_jira_client(httpx.Response(401, json={"issues": []}))

        async with client:
            with pytest.raises(JiraAuthenticationError):
                await client.fetch_tickets(None)

    @pytest.mark.parametrize(
        "headers,expected",
        [
            ({}, 60),
            ({"Retry-After": "not-a-number"}, 60),
            ({"Retry-After": "-5"}, 60),
            ({"Retry-After": "120"}, 120),
            ({"Retry-After": "300"}, 300),
            ({"Retry-After": "900"}, 300),
        ],
    )
    async def test_rate_limited(self, make_jira_client, headers, expected):
        """429 carries the Retry-After hint, defaulted to 60 and capped at 300."""
        client = make_jira_client(httpx.Response(429, headers=headers))

        async with client:
            with pytest.raises(JiraRateLimitError) as exc_info:
                await client.fetch_tickets(None)

        assert exc_info.value.retry_after == expected

    async def test_rate_limited_is_not_retried(self, make_jira_client, recorded_requests):
        """The client makes exactly one request on 429."""
        client = make_jira_client(httpx.Response(429, headers={"Retry-After": "1"}))

        async with client:
            with pytest.raises(JiraRateLimitError):
                await client.fetch_tickets(None)

        assert len(recorded_requests) == 1

    async def test_other_status_is_api_error(self, make_jira_client):
        """Other non-success statuses keep their code and body."""
        client = make_jira_client(
            httpx.Response(400, text='{"errorMessages":["Bad JQL"]}')
        )

        async with client:
            with pytest.raises(JiraAPIError) as exc_info:
                await client.fetch_tickets(None)

        assert exc_info.value.status_code == 400
        assert "Bad JQL" in exc_info.value.body

    async def test_server_error_is_not_retried(self, make_jira_client, recorded_requests):
        client = make_jira_client(httpx.Response(503, text="Service Unavailable"))

        async with client:
            with pytest.raises(JiraAPIError) as exc_info:
                await client.fetch_tickets(None)

        assert exc_info.value.status_code == 503
        assert len(recorded_requests) == 1

    async def test_invalid_json_is_parse_error(self, make_jira_client):
        """A 200 whose body is not JSON cannot be used."""
        client = make_jira_client(httpx.Response(200, text="<html>login</html>"))

        async with client:
            with pytest.raises(JiraParseError):
                await client.fetch_tickets(None)

    async def test_unexpected_shape_is_parse_error(self, make_jira_client):
        """A 200 with issues missing required fields cannot be used."""
        client = make_jira_client(
            httpx.Response(200, json={"issues": [{"key": "TEST-1", "fields": {}}]})
        )

        async with client:
            with pytest.raises(JiraParseError):
                await client.fetch_tickets(None)

    async def test_transport_failure(self, make_jira_client):
        """Connection failures surface as JiraConnectionError."""
        client = make_jira_client(httpx.ConnectError("connection refused"))

        async with client:
            with pytest.raises(JiraConnectionError):
                await client.fetch_tickets(None)

    async def test_unreadable_error_body_keeps_status(
        self, make_jira_client, recorded_requests
    ):
        """A body that fails mid-read is replaced by a placeholder."""
        client = make_jira_client(httpx.Response(500, stream=BrokenBodyStream()))

        async with client:
            with pytest.raises(JiraAPIError) as exc_info:
                await client.fetch_tickets(None)

        assert exc_info.value.status_code == 500
        assert exc_info.value.body == "Failed to read error response"
        assert len(recorded_requests) == 1

    async def test_unreadable_success_body_is_connection_error(self, make_jira_client):
        client = make_jira_client(httpx.Response(200, stream=BrokenBodyStream()))

        async with client:
            with pytest.raises(JiraConnectionError):
                await client.fetch_tickets(None)

    async def test_empty_page_token_is_followed(
        self, make_jira_client, jira_issue, search_page, recorded_requests
    ):
        """Only an absent token ends pagination; an empty one is sent back."""
        client = make_jira_client(
            httpx.Response(
                200,
                json={"issues": [jira_issue(key="TEST-1")], "nextPageToken": ""},
            ),
            search_page([jira_issue(key="TEST-2")]),
        )

        async with client:
            tickets = await client.fetch_tickets(None)

        assert [t.jira_key for t in tickets] == ["TEST-1", "TEST-2"]
        assert len(recorded_requests) == 2
        assert recorded_requests[1]["body"]["nextPageToken"] == ""
