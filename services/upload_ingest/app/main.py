"""Upload Ingest Service - FastAPI application entry point."""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse

from services.upload_ingest.app.api import health_router, upload_router
from services.upload_ingest.app.clients.lifecycle import BackoffConfig
from services.upload_ingest.app.clients.queue_client import ManagedQueue
from services.upload_ingest.app.clients.redis_client import ManagedRedis
from services.upload_ingest.app.config import Settings, get_settings
from services.upload_ingest.app.middleware import CorrelationMiddleware, RequestLoggingMiddleware
from shared.utils.logging import configure_logging, get_logger
from shared.utils.metrics import MetricsMiddleware, metrics_endpoint
from shared.utils.sqs import SQSClient

settings = get_settings()

configure_logging(
    service_name=settings.service_name,
    log_level=settings.log_level,
    json_format=settings.log_json,
    environment=settings.app_env or None,
)

logger = get_logger(__name__)


def build_resources(settings: Settings) -> tuple[ManagedRedis, ManagedQueue]:
    """Create the process-wide cache and queue clients (not yet connected)."""
    backoff = BackoffConfig(
        max_attempts=settings.reconnect_max_attempts,
        base_delay=settings.reconnect_base_delay_seconds,
        max_delay=settings.reconnect_max_delay_seconds,
    )
    cache = ManagedRedis(
        settings.redis_url,
        backoff=backoff,
        socket_timeout=settings.cache_timeout_seconds,
    )
    queue = ManagedQueue(
        SQSClient(
            queue_url=settings.sqs_queue_url,
            queue_name=settings.sqs_queue_name,
            region=settings.sqs_region,
            endpoint_url=settings.sqs_endpoint_url,
            access_key=settings.aws_access_key_id,
            secret_key=settings.aws_secret_access_key,
        ),
        backoff=backoff,
    )
    return cache, queue


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    logger.info("starting_service", service=settings.service_name)

    if not settings.jwt_secret_key:
        logger.error("jwt_secret_key_not_set", detail="every upload will be rejected with 401")

    settings.staging_root.mkdir(parents=True, exist_ok=True)

    cache, queue = build_resources(settings)
    app.state.cache = cache
    app.state.queue = queue

    # A backend that stays down is reconnected on first use instead of halting startup
    if settings.presence_enabled:
        await cache.connect()
    await queue.connect()

    yield

    logger.info("shutting_down_service")
    await cache.close()
    await queue.close()
    logger.info("service_shutdown_complete")


app = FastAPI(
    title="Upload Ingest Service",
    description="Authenticated upload endpoint feeding the object-storage uploader",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    RequestLoggingMiddleware,
    exclude_paths=["/health", "/ready", "/metrics"],
)
app.add_middleware(MetricsMiddleware)
app.add_middleware(CorrelationMiddleware)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler for unhandled errors."""
    logger.exception("unhandled_exception", error=str(exc), path=request.url.path)
    return PlainTextResponse("An internal error occurred", status_code=500)


app.include_router(health_router)
app.include_router(upload_router)

app.add_route("/metrics", metrics_endpoint)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "services.upload_ingest.app.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
