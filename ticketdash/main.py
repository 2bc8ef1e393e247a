"""
Ticket Dashboard API - Main FastAPI Application
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator
from fastapi import FastAPI
from ticketdash.config import settings
from ticketdash.database import close_db, init_db
from ticketdash.middleware import RequestLoggingMiddleware
from ticketdash.api.router import api_router
from ticketdash.schemas import HealthResponse

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Lifespan context manager for startup and shutdown events.

    Handles:
    - Table creation on startup
    - Database connection cleanup on shutdown
    """
    # Startup
    logger.info("Starting up Ticket Dashboard API...")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    if not settings.jira_configured:
        logger.warning("Jira settings are missing; sync is disabled until configured")

    await init_db()
    logger.info("Startup complete")

    yield

    # Shutdown
    logger.info("Shutting down Ticket Dashboard API...")
    await close_db()
    logger.info("Shutdown complete")


# Create FastAPI application
app = FastAPI(
    title="Ticket Dashboard API",
    description="Syncs Jira issues into a local store and serves dashboard aggregations",
    version=VERSION,
    lifespan=lifespan,
)

app.add_middleware(RequestLoggingMiddleware)


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """
    Health check endpoint.

    Returns:
        dict: Health status
    """
    return {
        "status": "healthy",
        "service": "ticketdash-api",
        "version": VERSION
    }


app.include_router(api_router)
