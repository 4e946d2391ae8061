"""Managed SQS queue for upload notifications."""

from services.upload_ingest.app.clients.lifecycle import BackoffConfig, ManagedResource
from shared.utils.sqs import SQSClient


class ManagedQueue(ManagedResource):
    """Notification queue whose URL is resolved and verified on connect."""

    def __init__(self, sqs_client: SQSClient, backoff: BackoffConfig | None = None):
        """Initialize managed queue.

        Args:
            sqs_client: Configured SQS client
            backoff: Reconnect backoff configuration
        """
        super().__init__("queue", backoff)
        self.sqs = sqs_client
        self.queue_url: str | None = None

    async def _open(self) -> None:
        self.queue_url = await self.sqs.resolve_queue_url()

    async def _ping(self) -> None:
        await self.sqs.ping()

    async def _close(self) -> None:
        # publishing channels are opened per message, nothing is held open
        self.queue_url = None
