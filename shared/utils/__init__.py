"""Shared utilities for the upload services."""

from shared.utils.logging import configure_logging, correlation_scope, get_logger
from shared.utils.metrics import MetricsMiddleware, create_counter, metrics_endpoint
from shared.utils.sqs import SQSClient

__all__ = [
    "configure_logging",
    "correlation_scope",
    "get_logger",
    "MetricsMiddleware",
    "create_counter",
    "metrics_endpoint",
    "SQSClient",
]
