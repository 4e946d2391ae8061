"""SQS publisher helpers."""

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

from aiobotocore.session import get_session

from shared.utils.logging import get_logger

logger = get_logger(__name__)


class SQSClient:
    """Async SQS client wrapper.

    No connection is held between calls: every operation opens a short-lived
    client through :meth:`channel`, which is closed on all exit paths.
    """

    def __init__(
        self,
        queue_url: str | None = None,
        queue_name: str | None = None,
        region: str = "us-east-1",
        endpoint_url: str | None = None,
        access_key: str | None = None,
        secret_key: str | None = None,
    ):
        """Initialize SQS client.

        Args:
            queue_url: SQS queue URL; resolved from ``queue_name`` when omitted
            queue_name: Queue name used to look up the URL
            region: AWS region
            endpoint_url: Custom endpoint (for LocalStack/ElasticMQ)
            access_key: AWS access key (or fake for LocalStack)
            secret_key: AWS secret key (or fake for LocalStack)
        """
        if not queue_url and not queue_name:
            raise ValueError("Either queue_url or queue_name is required")
        self.queue_url = queue_url
        self.queue_name = queue_name
        self.region = region
        self.endpoint_url = endpoint_url
        self.access_key = access_key or ("test" if endpoint_url else None)
        self.secret_key = secret_key or ("test" if endpoint_url else None)
        self._session = get_session()

    @asynccontextmanager
    async def channel(self) -> AsyncIterator[Any]:
        """Open a publishing channel (a scoped SQS client)."""
        async with self._session.create_client(
            "sqs",
            region_name=self.region,
            endpoint_url=self.endpoint_url,
            aws_access_key_id=self.access_key,
            aws_secret_access_key=self.secret_key,
        ) as client:
            yield client

    async def resolve_queue_url(self) -> str:
        """Return the queue URL, looking it up by name on first use."""
        if self.queue_url:
            return self.queue_url

        async with self.channel() as client:
            response = await client.get_queue_url(QueueName=self.queue_name)

        self.queue_url = response["QueueUrl"]
        logger.info(
            "sqs_queue_resolved",
            queue_name=self.queue_name,
            queue_url=self.queue_url,
        )
        return self.queue_url

    async def ping(self) -> None:
        """Check that the queue is reachable.

        Raises:
            botocore.exceptions.ClientError: If the queue does not exist or is not accessible
        """
        url = await self.resolve_queue_url()
        async with self.channel() as client:
            await client.get_queue_attributes(
                QueueUrl=url,
                AttributeNames=["QueueArn"],
            )

    async def send_message(
        self,
        body: str,
        content_type: str = "text/plain",
        queue_url: str | None = None,
    ) -> str:
        """Send a message to the queue.

        Args:
            body: Message body, sent verbatim
            content_type: Value of the ``ContentType`` message attribute
            queue_url: Optional queue URL (defaults to the client's queue)

        Returns:
            Message ID from SQS
        """
        url = queue_url or await self.resolve_queue_url()

        async with self.channel() as client:
            response = await client.send_message(
                QueueUrl=url,
                MessageBody=body,
                MessageAttributes={
                    "ContentType": {"DataType": "String", "StringValue": content_type},
                },
            )

        message_id = response["MessageId"]
        logger.info(
            "sqs_message_sent",
            message_id=message_id,
            queue_url=url,
        )
        return message_id
