"""Pytest fixtures for Upload Ingest tests."""

from typing import AsyncGenerator
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from jose import jwt
from starlette.requests import Request

from services.upload_ingest.app.clients.lifecycle import BackoffConfig
from services.upload_ingest.app.clients.queue_client import ManagedQueue
from services.upload_ingest.app.clients.redis_client import ManagedRedis
from services.upload_ingest.app.config import Settings, get_settings
from services.upload_ingest.app.dependencies import get_cache_resource, get_queue_resource
from services.upload_ingest.app.main import app

TEST_SECRET = "test-hmac-secret"
TEST_QUEUE_URL = "http://test/queue/upload_s3"


def make_token(secret: str = TEST_SECRET, algorithm: str = "HS256", **claims) -> str:
    """Create a signed bearer token."""
    payload = {"sub": "gallery-frontend", **claims}
    return jwt.encode(payload, secret, algorithm=algorithm)


def build_form_request(
    data: dict[str, str] | None = None,
    files: dict | None = None,
    headers: dict[str, str] | None = None,
) -> Request:
    """Build a Starlette request carrying a multipart body."""
    built = httpx.Request(
        "POST",
        "http://test/upload",
        data=data,
        files=files,
        headers=headers,
    )
    body = built.read()
    scope = {
        "type": "http",
        "method": "POST",
        "path": "/upload",
        "query_string": b"",
        "headers": [(k.lower().encode(), v.encode()) for k, v in built.headers.items()],
    }
    sent = False

    async def receive():
        nonlocal sent
        if sent:
            return {"type": "http.disconnect"}
        sent = True
        return {"type": "http.request", "body": body, "more_body": False}

    return Request(scope, receive)


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    """Create test settings with the staging area under tmp_path."""
    return Settings(
        jwt_secret_key=TEST_SECRET,
        app_env="test",
        deployment_mode="",
        staging_root=tmp_path / "uploads",
        sqs_queue_url=TEST_QUEUE_URL,
        sqs_endpoint_url=None,
        reconnect_max_attempts=1,
        reconnect_base_delay_seconds=0,
        log_json=False,
    )


@pytest.fixture
def mock_redis():
    """Create mock Redis client."""
    mock = MagicMock()
    mock.ping = AsyncMock(return_value=True)
    mock.set = AsyncMock(return_value=True)
    mock.aclose = AsyncMock()
    return mock


@pytest.fixture
def mock_sqs_client():
    """Create mock SQS client."""
    mock = MagicMock()
    mock.queue_url = TEST_QUEUE_URL
    mock.send_message = AsyncMock(return_value="test-message-id-123")
    mock.resolve_queue_url = AsyncMock(return_value=TEST_QUEUE_URL)
    mock.ping = AsyncMock()
    return mock


@pytest.fixture
def no_backoff() -> BackoffConfig:
    """Single attempt, no sleeping."""
    return BackoffConfig(max_attempts=1, base_delay=0, max_delay=0)


@pytest.fixture
def cache_resource(mock_redis, no_backoff) -> ManagedRedis:
    """Managed Redis wrapping the mock client."""
    return ManagedRedis("redis://test:6379/2", backoff=no_backoff, client=mock_redis)


@pytest.fixture
def queue_resource(mock_sqs_client, no_backoff) -> ManagedQueue:
    """Managed queue wrapping the mock SQS client."""
    return ManagedQueue(mock_sqs_client, backoff=no_backoff)


@pytest_asyncio.fixture
async def test_client(
    test_settings, cache_resource, queue_resource
) -> AsyncGenerator[AsyncClient, None]:
    """Create test client with mocked backing services."""
    app.dependency_overrides[get_settings] = lambda: test_settings
    app.dependency_overrides[get_cache_resource] = lambda: cache_resource
    app.dependency_overrides[get_queue_resource] = lambda: queue_resource

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers() -> dict[str, str]:
    """Authorization header carrying a valid token."""
    return {"Authorization": f"Bearer {make_token()}"}


@pytest.fixture
def upload_form() -> dict[str, str]:
    """Text fields of a valid upload."""
    return {"origin": "albums", "key": "abc123", "fileName": "photo.jpg"}
