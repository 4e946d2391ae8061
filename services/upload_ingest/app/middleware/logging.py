"""Request/response logging middleware."""

import time
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from shared.utils.logging import get_logger

logger = get_logger(__name__)


def _get_client_ip(request: Request) -> str:
    """Extract client IP address from request."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs one ``request_completed`` event per request, with timing."""

    def __init__(self, app, exclude_paths: list[str] | None = None):
        """Initialize middleware.

        Args:
            app: ASGI application
            exclude_paths: Paths that are not logged (health checks, metrics scrapes)
        """
        super().__init__(app)
        self.exclude_paths = exclude_paths or ["/health", "/ready", "/metrics"]

    async def dispatch(
        self,
        request: Request,
        call_next: Callable,
    ) -> Response:
        path = request.url.path
        if path in self.exclude_paths:
            return await call_next(request)

        start_time = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                "request_failed",
                method=request.method,
                path=path,
                duration_ms=round((time.perf_counter() - start_time) * 1000, 2),
                client_ip=_get_client_ip(request),
                error=str(e),
                error_type=type(e).__name__,
            )
            raise

        log_method = logger.info if response.status_code < 400 else logger.warning
        log_method(
            "request_completed",
            method=request.method,
            path=path,
            status_code=response.status_code,
            duration_ms=round((time.perf_counter() - start_time) * 1000, 2),
            client_ip=_get_client_ip(request),
            content_length=request.headers.get("Content-Length"),
        )
        return response
