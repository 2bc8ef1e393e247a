"""
Middleware module for FastAPI application.
"""

from ticketdash.middleware.request_logging import RequestLoggingMiddleware

__all__ = [
    "RequestLoggingMiddleware",
]
