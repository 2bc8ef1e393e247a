"""
Request logging middleware.

Logs method, path, status and duration for every API call the
dashboard makes. Header values are never logged.
"""

import time
import logging
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log each request with its outcome and timing."""

    QUIET_PATHS = {"/health", "/docs", "/openapi.json", "/redoc"}

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """Log request and response with timing."""
        method = request.method
        path = request.url.path

        if path in self.QUIET_PATHS:
            return await call_next(request)

        start_time = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as e:
            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.error(
                f"Error: {method} {path} -> {type(e).__name__}: {e} "
                f"({duration_ms:.2f}ms)"
            )
            raise

        duration_ms = (time.perf_counter() - start_time) * 1000
        logger.info(
            f"{method} {path} -> {response.status_code} ({duration_ms:.2f}ms)"
        )
        response.headers["X-Response-Time"] = f"{duration_ms:.2f}ms"
        return response
