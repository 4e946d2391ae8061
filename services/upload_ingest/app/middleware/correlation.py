"""Correlation ID middleware for request tracing."""

from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from shared.utils.logging import correlation_scope


class CorrelationMiddleware(BaseHTTPMiddleware):
    """Reads ``X-Correlation-ID`` or generates one, and echoes it back."""

    CORRELATION_ID_HEADER = "X-Correlation-ID"

    async def dispatch(
        self,
        request: Request,
        call_next: Callable,
    ) -> Response:
        with correlation_scope(request.headers.get(self.CORRELATION_ID_HEADER)) as correlation_id:
            request.state.correlation_id = correlation_id
            response = await call_next(request)

        response.headers[self.CORRELATION_ID_HEADER] = correlation_id
        return response
