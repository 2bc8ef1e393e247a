"""
Pytest fixtures and configuration for ticket dashboard tests.

This module provides shared fixtures for:
- Test database setup/teardown with async support
- Jira clients backed by scripted httpx transports
- Raw Jira issue payloads and TicketData factories
- Database model factories
"""

import json
import pytest
import pytest_asyncio
from typing import AsyncGenerator, Callable, List, Optional
from faker import Faker

import httpx
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    AsyncEngine,
    create_async_engine,
    async_sessionmaker,
)
from sqlalchemy.pool import StaticPool

from ticketdash.database import Base
from ticketdash.models import Ticket
from ticketdash.schemas import TicketData
from ticketdash.services.jira import JiraClient

# Initialize Faker for generating test data
fake = Faker()


# In-memory SQLite shared across the session's single connection
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture(scope="function")
async def test_engine() -> AsyncGenerator[AsyncEngine, None]:
    """
    Create test database engine with in-memory SQLite.

    Each test gets a fresh database instance.
    """
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    # Create all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    # Drop all tables after test
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(test_engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """
    Create test database session.

    Provides a clean database session for each test with automatic rollback.
    """
    async_session = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    async with async_session() as session:
        yield session
        await session.rollback()


# Jira payload fixtures
@pytest.fixture
def jira_issue() -> Callable[..., dict]:
    """
    Factory for raw issues as returned by /rest/api/3/search/jql.

    Keyword arguments override individual ``fields`` entries; pass
    ``key=`` to set the issue key.
    """
    def _jira_issue(key: Optional[str] = None, **fields) -> dict:
        defaults = {
            "summary": fake.sentence(),
            "status": {"name": "In Progress"},
            "priority": {"name": "High"},
            "issuetype": {"name": "Task"},
            "assignee": {"displayName": "Alice Example"},
            "reporter": {"displayName": "Bob Example"},
            "created": "2025-01-06T09:00:00.000+0000",
            "updated": "2025-01-07T10:30:00.000+0000",
            "resolutiondate": None,
            "labels": ["backend", "urgent"],
            "project": {"key": "TEST"},
        }
        defaults.update(fields)
        return {
            "key": key or f"TEST-{fake.unique.random_int(min=1, max=99999)}",
            "fields": defaults,
        }

    return _jira_issue


@pytest.fixture
def search_page() -> Callable[..., httpx.Response]:
    """Factory for a 200 search/jql response carrying one page of issues."""
    def _search_page(
        issues: List[dict],
        next_page_token: Optional[str] = None
    ) -> httpx.Response:
        body = {"issues": issues, "isLast": next_page_token is None}
        if next_page_token:
            body["nextPageToken"] = next_page_token
        return httpx.Response(200, json=body)

    return _search_page


@pytest.fixture
def recorded_requests() -> List[dict]:
    """JSON bodies of every request a scripted Jira transport received."""
    return []


@pytest.fixture
def make_jira_client(recorded_requests: List[dict]) -> Callable[..., JiraClient]:
    """
    Build a JiraClient whose HTTP traffic is answered by scripted responses.

    Each element of ``responses`` is either an httpx.Response or an
    exception to raise, consumed in order, one per request.
    """
    def _make(*responses) -> JiraClient:
        queue = list(responses)

        def handler(request: httpx.Request) -> httpx.Response:
            recorded_requests.append(
                {
                    "url": str(request.url),
                    "headers": dict(request.headers),
                    "body": json.loads(request.content),
                }
            )
            response = queue.pop(0)
            if isinstance(response, Exception):
                raise response
            return response

        return JiraClient(
            jira_url="https://example.atlassian.net/",
            email="test@example.com",
            api_token="test_token_12345",
            transport=httpx.MockTransport(handler),
        )

    return _make


# Database model factory fixtures
@pytest.fixture
def ticket_data() -> Callable[..., TicketData]:
    """Factory for TicketData as produced by the sync client."""
    def _ticket_data(**kwargs) -> TicketData:
        defaults = {
            "jira_key": f"TEST-{fake.unique.random_int(min=1, max=99999)}",
            "summary": fake.sentence(),
            "status": "Open",
            "priority": "Medium",
            "issue_type": "Task",
            "assignee": fake.name(),
            "reporter": fake.name(),
            "created_at": "2025-01-06T09:00:00Z",
            "updated_at": "2025-01-06T09:30:00Z",
            "resolved_at": None,
            "labels": "",
            "project_key": "TEST",
            "category": None,
        }
        defaults.update(kwargs)
        return TicketData(**defaults)

    return _ticket_data


@pytest_asyncio.fixture
async def create_ticket(db_session: AsyncSession):
    """
    Factory fixture for creating test tickets.

    Returns a function that creates and persists a Ticket.
    """
    async def _create_ticket(**kwargs) -> Ticket:
        defaults = {
            "jira_key": f"TEST-{fake.unique.random_int(min=1, max=99999)}",
            "summary": fake.sentence(),
            "status": "Done",
            "priority": "Medium",
            "issue_type": "Task",
            "assignee": None,
            "reporter": None,
            "created_at": "2025-01-06T09:00:00Z",
            "updated_at": "2025-01-06T09:00:00Z",
            "resolved_at": None,
            "labels": "",
            "project_key": "TEST",
            "category": None,
        }
        defaults.update(kwargs)

        ticket = Ticket(**defaults)
        db_session.add(ticket)
        await db_session.commit()
        await db_session.refresh(ticket)
        return ticket

    return _create_ticket
