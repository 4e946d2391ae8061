"""Middleware for the upload ingest service."""

from services.upload_ingest.app.middleware.correlation import CorrelationMiddleware
from services.upload_ingest.app.middleware.logging import RequestLoggingMiddleware

__all__ = ["CorrelationMiddleware", "RequestLoggingMiddleware"]
