"""Presence markers for recently uploaded objects."""

import asyncio

from services.upload_ingest.app.clients.redis_client import ManagedRedis
from services.upload_ingest.app.core.errors import CacheError
from shared.utils.logging import get_logger

logger = get_logger(__name__)

PRESENCE_MARKER_VALUE = "1"
DEFAULT_PRESENCE_TTL_SECONDS = 300


class PresenceCache:
    """Writes short-lived ``<key>/<fileName>`` markers to the shared cache.

    The markers are read by a downstream consumer, never by this service,
    and expire on their own.
    """

    def __init__(
        self,
        resource: ManagedRedis,
        ttl_seconds: int = DEFAULT_PRESENCE_TTL_SECONDS,
        timeout_seconds: float = 2.0,
        enabled: bool = True,
    ):
        """Initialize presence cache.

        Args:
            resource: Managed Redis connection
            ttl_seconds: Marker lifetime
            timeout_seconds: Deadline for reconnecting and setting the marker
            enabled: False when an external platform tracks presence itself
        """
        self.resource = resource
        self.ttl_seconds = ttl_seconds
        self.timeout_seconds = timeout_seconds
        self.enabled = enabled

    async def mark(self, composite_key: str) -> bool:
        """Set the marker for ``composite_key``.

        Returns:
            True if a marker was written, False if presence is externally managed

        Raises:
            CacheError: If the marker could not be written
        """
        if not self.enabled:
            logger.debug("presence_marker_skipped", key=composite_key)
            return False

        try:
            await asyncio.wait_for(self._set(composite_key), timeout=self.timeout_seconds)
        except asyncio.TimeoutError as e:
            self.resource.mark_failed(e)
            raise CacheError(f"cache set timed out after {self.timeout_seconds}s") from e
        except Exception as e:
            self.resource.mark_failed(e)
            logger.error("presence_marker_failed", key=composite_key, error=str(e))
            raise CacheError(str(e)) from e

        logger.info("presence_marker_set", key=composite_key, ttl_seconds=self.ttl_seconds)
        return True

    async def _set(self, composite_key: str) -> None:
        # reconnect and command share one deadline
        await self.resource.ensure_connected()
        await self.resource.client.set(
            composite_key,
            PRESENCE_MARKER_VALUE,
            ex=self.ttl_seconds,
        )
