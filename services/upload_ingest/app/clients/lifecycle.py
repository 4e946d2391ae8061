"""Lifecycle management for long-lived backing service clients."""

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum

from services.upload_ingest.app.core.errors import ResourceUnavailableError
from shared.utils.logging import get_logger

logger = get_logger(__name__)


class ResourceState(str, Enum):
    """Connection states of a managed resource."""

    DISCONNECTED = "disconnected"
    CONNECTED = "connected"
    FAILED = "failed"  # last connect or health check failed, reconnect on next use
    CLOSED = "closed"


@dataclass
class BackoffConfig:
    """Reconnect backoff configuration."""

    max_attempts: int = 5
    base_delay: float = 0.5  # Seconds before the second attempt
    max_delay: float = 10.0

    def delay_for(self, attempt: int) -> float:
        """Delay to sleep after a failed ``attempt`` (0-based)."""
        return min(self.base_delay * (2**attempt), self.max_delay)


class ManagedResource(ABC):
    """A process-wide client with connect, health-check and reconnect.

    Subclasses implement ``_open``, ``_ping`` and ``_close``. Concurrent
    callers that find the resource down join the reconnect attempt already
    in flight instead of starting their own. The attempt runs as its own task,
    so a caller giving up on its deadline does not cancel it for the others.
    """

    def __init__(self, name: str, backoff: BackoffConfig | None = None):
        """Initialize resource.

        Args:
            name: Resource name used in logs and readiness checks
            backoff: Reconnect backoff configuration
        """
        self.name = name
        self.backoff = backoff or BackoffConfig()
        self.state = ResourceState.DISCONNECTED
        self.last_error: str | None = None
        self._connecting: asyncio.Task[bool] | None = None

    @abstractmethod
    async def _open(self) -> None:
        """Create the underlying client."""

    @abstractmethod
    async def _ping(self) -> None:
        """Round-trip to the backing service, raising on failure."""

    @abstractmethod
    async def _close(self) -> None:
        """Release the underlying client."""

    @property
    def is_connected(self) -> bool:
        return self.state == ResourceState.CONNECTED

    async def connect(self, max_attempts: int | None = None) -> bool:
        """Connect with exponential backoff, or join the attempt in flight.

        Args:
            max_attempts: Override for the configured number of attempts,
                ignored when joining an attempt that is already running

        Returns:
            True once connected, False when every attempt failed
        """
        if self.state == ResourceState.CONNECTED:
            return True

        if self._connecting is None or self._connecting.done():
            attempts = max_attempts or self.backoff.max_attempts
            self._connecting = asyncio.create_task(self._connect(attempts))
        return await asyncio.shield(self._connecting)

    async def _connect(self, attempts: int) -> bool:
        for attempt in range(attempts):
            try:
                await self._open()
                await self._ping()
            except Exception as e:
                self.last_error = str(e) or type(e).__name__
                logger.warning(
                    "resource_connect_failed",
                    resource=self.name,
                    attempt=attempt + 1,
                    max_attempts=attempts,
                    error=self.last_error,
                )
                if attempt + 1 < attempts:
                    await asyncio.sleep(self.backoff.delay_for(attempt))
                continue

            self.state = ResourceState.CONNECTED
            self.last_error = None
            logger.info("resource_connected", resource=self.name, attempt=attempt + 1)
            return True

        self.state = ResourceState.FAILED
        logger.error(
            "resource_unavailable",
            resource=self.name,
            attempts=attempts,
            error=self.last_error,
        )
        return False

    async def ensure_connected(self) -> None:
        """Make sure the resource is usable, reconnecting once if needed.

        Callers bound this with their own deadline.

        Raises:
            ResourceUnavailableError: If the resource cannot be reached
        """
        if self.state == ResourceState.CONNECTED:
            return
        if not await self.connect(max_attempts=1):
            raise ResourceUnavailableError(
                self.name,
                f"{self.name} is unavailable: {self.last_error}",
            )

    def mark_failed(self, error: Exception) -> None:
        """Record an operational failure so the next use reconnects."""
        self.state = ResourceState.FAILED
        self.last_error = str(error) or type(error).__name__

    async def health_check(self) -> bool:
        """Ping the backing service, reconnecting when it was marked failed."""
        if self.state != ResourceState.CONNECTED:
            return await self.connect(max_attempts=1)
        try:
            await self._ping()
        except Exception as e:
            self.mark_failed(e)
            logger.warning("resource_health_check_failed", resource=self.name, error=self.last_error)
            return False
        return True

    async def close(self) -> None:
        """Release the resource, abandoning any reconnect in flight."""
        if self._connecting is not None and not self._connecting.done():
            self._connecting.cancel()
            await asyncio.gather(self._connecting, return_exceptions=True)
        try:
            await self._close()
        finally:
            self.state = ResourceState.CLOSED
            logger.info("resource_closed", resource=self.name)
