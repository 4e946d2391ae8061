"""Structured logging shared by the upload services.

Events are rendered by structlog through the standard library logger. Every
event carries the service name, the deployment environment when one is set,
and the correlation ID of the request being served.
"""

import contextvars
import logging
import sys
import uuid
from contextlib import contextmanager
from typing import Any, Iterator

import structlog

_correlation_id: contextvars.ContextVar[str] = contextvars.ContextVar(
    "correlation_id", default=""
)

# Event keys whose values never reach the log output
SENSITIVE_KEYS = frozenset({"authorization", "token", "jwt_secret_key", "aws_secret_access_key"})
REDACTED = "[redacted]"


def get_correlation_id() -> str:
    """Get the current correlation ID from context."""
    return _correlation_id.get()


@contextmanager
def correlation_scope(correlation_id: str | None = None) -> Iterator[str]:
    """Bind a correlation ID for the duration of one request.

    The previous value is restored on exit, so IDs never leak between
    requests served by the same task.
    """
    cid = correlation_id or str(uuid.uuid4())
    token = _correlation_id.set(cid)
    try:
        yield cid
    finally:
        _correlation_id.reset(token)


def add_correlation_id(
    logger: logging.Logger, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Processor that stamps the request correlation ID onto every event."""
    correlation_id = get_correlation_id()
    if correlation_id:
        event_dict["correlation_id"] = correlation_id
    return event_dict


def redact_sensitive(
    logger: logging.Logger, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Processor that masks credentials passed as event keys."""
    for key in event_dict.keys() & SENSITIVE_KEYS:
        event_dict[key] = REDACTED
    return event_dict


def configure_logging(
    service_name: str,
    log_level: str = "INFO",
    json_format: bool = True,
    environment: str | None = None,
) -> None:
    """Configure structlog on top of the standard library logger.

    Args:
        service_name: Bound to every event as ``service``
        log_level: Log level (DEBUG, INFO, WARNING, ERROR)
        json_format: JSON output for production, console renderer otherwise
        environment: Deployment namespace, bound as ``environment`` when set
    """
    renderer: Any = structlog.processors.JSONRenderer() if json_format else structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            add_correlation_id,
            redact_sensitive,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper()),
    )

    context: dict[str, Any] = {"service": service_name}
    if environment:
        context["environment"] = environment
    structlog.contextvars.bind_contextvars(**context)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a configured logger instance."""
    return structlog.get_logger(name)
