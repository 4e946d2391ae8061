"""Managed Redis connection for presence markers."""

import redis.asyncio as redis

from services.upload_ingest.app.clients.lifecycle import BackoffConfig, ManagedResource


class ManagedRedis(ManagedResource):
    """Process-wide Redis client."""

    def __init__(
        self,
        url: str,
        backoff: BackoffConfig | None = None,
        socket_timeout: float | None = None,
        client: redis.Redis | None = None,
    ):
        """Initialize managed Redis.

        Args:
            url: Redis URL (database index included)
            backoff: Reconnect backoff configuration
            socket_timeout: Socket timeout applied to every command
            client: Pre-built client, used instead of creating one from ``url``
        """
        super().__init__("cache", backoff)
        self.url = url
        self.socket_timeout = socket_timeout
        self.client = client

    async def _open(self) -> None:
        if self.client is None:
            self.client = redis.from_url(
                self.url,
                socket_timeout=self.socket_timeout,
                socket_connect_timeout=self.socket_timeout,
            )

    async def _ping(self) -> None:
        await self.client.ping()

    async def _close(self) -> None:
        if self.client is not None:
            await self.client.aclose()
