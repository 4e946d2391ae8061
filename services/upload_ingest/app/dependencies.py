"""FastAPI dependency injection."""

from typing import Annotated

from fastapi import Depends, Request

from services.upload_ingest.app.clients.queue_client import ManagedQueue
from services.upload_ingest.app.clients.redis_client import ManagedRedis
from services.upload_ingest.app.config import Settings, get_settings
from services.upload_ingest.app.pipeline.notifier import UploadNotifier
from services.upload_ingest.app.pipeline.orchestrator import UploadPipeline
from services.upload_ingest.app.pipeline.presence import PresenceCache
from services.upload_ingest.app.pipeline.staging import StagingSink

AppSettings = Annotated[Settings, Depends(get_settings)]


def get_cache_resource(request: Request) -> ManagedRedis:
    """Process-wide Redis created in the app lifespan."""
    return request.app.state.cache


def get_queue_resource(request: Request) -> ManagedQueue:
    """Process-wide notification queue created in the app lifespan."""
    return request.app.state.queue


CacheResource = Annotated[ManagedRedis, Depends(get_cache_resource)]
QueueResource = Annotated[ManagedQueue, Depends(get_queue_resource)]


def get_staging_sink(settings: AppSettings) -> StagingSink:
    """Get staging sink dependency."""
    return StagingSink(
        root=settings.staging_root,
        namespace=settings.app_env,
        chunk_size=settings.staging_chunk_size,
    )


def get_presence_cache(settings: AppSettings, cache: CacheResource) -> PresenceCache:
    """Get presence cache dependency."""
    return PresenceCache(
        cache,
        ttl_seconds=settings.presence_ttl_seconds,
        timeout_seconds=settings.cache_timeout_seconds,
        enabled=settings.presence_enabled,
    )


def get_upload_notifier(settings: AppSettings, queue: QueueResource) -> UploadNotifier:
    """Get notification publisher dependency."""
    return UploadNotifier(queue, timeout_seconds=settings.queue_timeout_seconds)


def get_upload_pipeline(
    settings: AppSettings,
    staging: Annotated[StagingSink, Depends(get_staging_sink)],
    presence: Annotated[PresenceCache, Depends(get_presence_cache)],
    notifier: Annotated[UploadNotifier, Depends(get_upload_notifier)],
) -> UploadPipeline:
    """Get upload pipeline dependency."""
    return UploadPipeline(settings, staging, presence, notifier)


Pipeline = Annotated[UploadPipeline, Depends(get_upload_pipeline)]
