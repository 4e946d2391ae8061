"""Prometheus metrics for the upload services.

HTTP traffic is recorded per route template; requests that match no route
share a single ``unmatched`` series. Upload bodies dominate both latency and
size, which the bucket boundaries below reflect.
"""

import time
from typing import Callable

from fastapi import Request, Response
from prometheus_client import CONTENT_TYPE_LATEST, REGISTRY, Counter, Histogram, generate_latest
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response as StarletteResponse

UNMATCHED_ROUTE = "unmatched"


def create_counter(
    name: str,
    description: str,
    labels: list[str] | None = None,
) -> Counter:
    """Create a Prometheus counter metric.

    Args:
        name: Metric name (e.g., 'upload_requests_total')
        description: Human-readable description
        labels: List of label names for the metric
    """
    return Counter(name, description, labels or [])


HTTP_REQUESTS = create_counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status_code"],
)

HTTP_LATENCY = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency in seconds",
    ["method", "endpoint"],
    buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0),
)

HTTP_BODY_BYTES = Histogram(
    "http_request_body_bytes",
    "Declared request body size in bytes",
    ["endpoint"],
    buckets=(1 << 10, 16 << 10, 64 << 10, 256 << 10, 1 << 20, 4 << 20),
)


def route_template(request: Request) -> str:
    """Path template of the matched route, e.g. ``/upload``."""
    route = request.scope.get("route")
    return getattr(route, "path", UNMATCHED_ROUTE)


def _declared_length(request: Request) -> int | None:
    value = request.headers.get("Content-Length")
    if value and value.isdigit():
        return int(value)
    return None


class MetricsMiddleware(BaseHTTPMiddleware):
    """Records count, latency and body size of every HTTP request.

    A request whose handler raises is counted with status 500.
    """

    def __init__(self, app, exclude_paths: list[str] | None = None):
        """Initialize middleware.

        Args:
            app: ASGI application
            exclude_paths: Paths that are not recorded (the scrape endpoint itself)
        """
        super().__init__(app)
        self.exclude_paths = set(exclude_paths or ["/metrics"])

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Response]
    ) -> Response:
        if request.url.path in self.exclude_paths:
            return await call_next(request)

        start_time = time.perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            endpoint = route_template(request)
            HTTP_REQUESTS.labels(
                method=request.method,
                endpoint=endpoint,
                status_code=status_code,
            ).inc()
            HTTP_LATENCY.labels(method=request.method, endpoint=endpoint).observe(
                time.perf_counter() - start_time
            )
            length = _declared_length(request)
            if length is not None:
                HTTP_BODY_BYTES.labels(endpoint=endpoint).observe(length)


async def metrics_endpoint(request: Request) -> StarletteResponse:
    """Prometheus scrape endpoint."""
    return StarletteResponse(content=generate_latest(REGISTRY), media_type=CONTENT_TYPE_LATEST)
