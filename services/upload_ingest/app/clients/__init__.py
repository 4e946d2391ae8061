"""Long-lived backing service clients."""

from services.upload_ingest.app.clients.lifecycle import (
    BackoffConfig,
    ManagedResource,
    ResourceState,
)
from services.upload_ingest.app.clients.queue_client import ManagedQueue
from services.upload_ingest.app.clients.redis_client import ManagedRedis

__all__ = [
    "BackoffConfig",
    "ManagedResource",
    "ResourceState",
    "ManagedQueue",
    "ManagedRedis",
]
