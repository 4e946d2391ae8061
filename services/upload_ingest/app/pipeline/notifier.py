"""Upload notifications for the downstream object-storage uploader."""

import asyncio

from services.upload_ingest.app.clients.queue_client import ManagedQueue
from services.upload_ingest.app.core.errors import PublishError
from shared.utils.logging import get_logger
from shared.utils.metrics import create_counter

logger = get_logger(__name__)

NOTIFICATION_CONTENT_TYPE = "text/plain"

NOTIFICATIONS_PUBLISHED = create_counter(
    "upload_notifications_published_total",
    "Upload notifications handed to the queue",
)
NOTIFICATIONS_FAILED = create_counter(
    "upload_notifications_failed_total",
    "Upload notifications that could not be published",
)


class UploadNotifier:
    """Publishes ``<key>/<fileName>`` to the uploader queue.

    At most once: no retry, and nothing beyond the send call is awaited.
    """

    def __init__(self, resource: ManagedQueue, timeout_seconds: float = 5.0):
        """Initialize notifier.

        Args:
            resource: Managed notification queue
            timeout_seconds: Deadline covering reconnect, channel and send
        """
        self.resource = resource
        self.timeout_seconds = timeout_seconds

    async def notify(self, payload: str) -> str:
        """Publish one notification.

        Args:
            payload: Relative ``<key>/<fileName>`` path, the entire message body

        Returns:
            Message ID

        Raises:
            PublishError: If the channel could not be opened or the send failed
        """
        try:
            message_id = await asyncio.wait_for(self._send(payload), timeout=self.timeout_seconds)
        except asyncio.TimeoutError as e:
            NOTIFICATIONS_FAILED.inc()
            self.resource.mark_failed(e)
            raise PublishError(f"publish timed out after {self.timeout_seconds}s") from e
        except Exception as e:
            NOTIFICATIONS_FAILED.inc()
            self.resource.mark_failed(e)
            logger.error("upload_notification_failed", payload=payload, error=str(e))
            raise PublishError(str(e)) from e

        NOTIFICATIONS_PUBLISHED.inc()
        logger.info("upload_notification_published", payload=payload, message_id=message_id)
        return message_id

    async def _send(self, payload: str) -> str:
        await self.resource.ensure_connected()
        return await self.resource.sqs.send_message(
            payload,
            content_type=NOTIFICATION_CONTENT_TYPE,
            queue_url=self.resource.queue_url,
        )
