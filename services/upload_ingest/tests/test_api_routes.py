"""Tests for the upload endpoint."""

from unittest.mock import AsyncMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from conftest import make_token


def staged_files(settings) -> list:
    if not settings.staging_root.exists():
        return []
    return [p for p in settings.staging_root.rglob("*") if p.is_file()]


class TestHealthEndpoints:
    """Tests for health check endpoints."""

    @pytest.mark.asyncio
    async def test_health_check(self, test_client):
        """Test liveness endpoint."""
        response = await test_client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["service"] == "upload-ingest"

    @pytest.mark.asyncio
    async def test_readiness_check(self, test_client, test_settings):
        """Test readiness with every backend up."""
        test_settings.staging_root.mkdir(parents=True)

        response = await test_client.get("/ready")

        assert response.status_code == 200
        data = response.json()
        assert data["ready"] is True
        assert data["checks"] == {"staging": True, "queue": True, "cache": True}

    @pytest.mark.asyncio
    async def test_readiness_reports_cache_down(self, test_client, test_settings, mock_redis):
        """Test that readiness reports an unreachable cache."""
        test_settings.staging_root.mkdir(parents=True)
        mock_redis.ping = AsyncMock(side_effect=RedisConnectionError("Connection refused"))

        response = await test_client.get("/ready")

        data = response.json()
        assert data["ready"] is False
        assert data["checks"]["cache"] is False

    @pytest.mark.asyncio
    async def test_correlation_id_echoed(self, test_client):
        """Test that the correlation ID header is echoed."""
        response = await test_client.get("/health", headers={"X-Correlation-ID": "corr-42"})

        assert response.headers["X-Correlation-ID"] == "corr-42"


class TestUploadSuccess:
    """Tests for successful uploads."""

    @pytest.mark.asyncio
    async def test_upload_stages_marks_and_notifies(
        self, test_client, test_settings, auth_headers, upload_form, mock_redis, mock_sqs_client
    ):
        """Test a successful upload end to end."""
        content = b"\xff\xd8\xff\xe0 fake jpeg bytes" * 100

        response = await test_client.post(
            "/upload",
            data=upload_form,
            files={"file": ("original.jpg", content, "image/jpeg")},
            headers=auth_headers,
        )

        assert response.status_code == 200
        assert response.text == "Uploaded successfully"

        staged = test_settings.staging_root / "test" / "albums" / "abc123" / "photo.jpg"
        assert staged.read_bytes() == content

        mock_redis.set.assert_awaited_once_with("abc123/photo.jpg", "1", ex=300)

        mock_sqs_client.send_message.assert_awaited_once()
        args, kwargs = mock_sqs_client.send_message.call_args
        assert args[0] == "abc123/photo.jpg"
        assert kwargs["content_type"] == "text/plain"

    @pytest.mark.asyncio
    async def test_second_upload_replaces_first(
        self, test_client, test_settings, auth_headers, upload_form
    ):
        """Test that a repeated upload replaces the staged file."""
        for content in (b"a much longer first version of the file", b"short"):
            response = await test_client.post(
                "/upload",
                data=upload_form,
                files={"file": ("photo.jpg", content, "image/jpeg")},
                headers=auth_headers,
            )
            assert response.status_code == 200

        staged = test_settings.staging_root / "test" / "albums" / "abc123" / "photo.jpg"
        assert staged.read_bytes() == b"short"

    @pytest.mark.asyncio
    async def test_external_platform_mode_skips_cache(
        self, test_client, test_settings, auth_headers, upload_form, mock_redis, mock_sqs_client
    ):
        """Test that external-platform mode writes no cache entry."""
        test_settings.deployment_mode = "gae"

        response = await test_client.post(
            "/upload",
            data=upload_form,
            files={"file": ("photo.jpg", b"data", "image/jpeg")},
            headers=auth_headers,
        )

        assert response.status_code == 200
        mock_redis.set.assert_not_called()
        mock_sqs_client.send_message.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_publish_failure_still_succeeds(
        self, test_client, test_settings, auth_headers, upload_form, mock_redis, mock_sqs_client
    ):
        """Test that a publish failure does not change the response."""
        mock_sqs_client.send_message = AsyncMock(side_effect=Exception("queue unreachable"))

        response = await test_client.post(
            "/upload",
            data=upload_form,
            files={"file": ("photo.jpg", b"data", "image/jpeg")},
            headers=auth_headers,
        )

        assert response.status_code == 200
        assert response.text == "Uploaded successfully"
        staged = test_settings.staging_root / "test" / "albums" / "abc123" / "photo.jpg"
        assert staged.read_bytes() == b"data"
        mock_redis.set.assert_awaited_once()


class TestUploadRejected:
    """Tests for requests rejected before staging."""

    @pytest.mark.asyncio
    async def test_missing_token(self, test_client, test_settings, upload_form, mock_sqs_client):
        """Test upload without a bearer token."""
        response = await test_client.post(
            "/upload",
            data=upload_form,
            files={"file": ("photo.jpg", b"data", "image/jpeg")},
        )

        assert response.status_code == 401
        assert response.text == "missing bearer token"
        assert staged_files(test_settings) == []
        mock_sqs_client.send_message.assert_not_called()

    @pytest.mark.asyncio
    async def test_token_signed_with_other_secret(self, test_client, test_settings, upload_form):
        """Test upload with a token signed by another key."""
        response = await test_client.post(
            "/upload",
            data=upload_form,
            files={"file": ("photo.jpg", b"data", "image/jpeg")},
            headers={"Authorization": f"Bearer {make_token(secret='someone-else')}"},
        )

        assert response.status_code == 401
        assert staged_files(test_settings) == []

    @pytest.mark.asyncio
    async def test_auth_checked_before_form(self, test_client):
        """Test that authentication runs before form validation."""
        response = await test_client.post("/upload", data={})

        assert response.status_code == 401

    @pytest.mark.asyncio
    @pytest.mark.parametrize("missing", ["key", "origin", "fileName"])
    async def test_missing_field(
        self, test_client, test_settings, auth_headers, upload_form, mock_redis, mock_sqs_client, missing
    ):
        """Test upload with a required field missing."""
        del upload_form[missing]

        response = await test_client.post(
            "/upload",
            data=upload_form,
            files={"file": ("photo.jpg", b"data", "image/jpeg")},
            headers=auth_headers,
        )

        assert response.status_code == 400
        assert response.text == f"required fields are not provided: {missing}"
        assert staged_files(test_settings) == []
        mock_redis.set.assert_not_called()
        mock_sqs_client.send_message.assert_not_called()

    @pytest.mark.asyncio
    async def test_missing_file_part(
        self, test_client, test_settings, auth_headers, upload_form, mock_redis, mock_sqs_client
    ):
        """Test that a form without the file part is rejected."""
        response = await test_client.post("/upload", data=upload_form, headers=auth_headers)

        assert response.status_code == 400
        assert response.text == "file part 'file' is missing"
        assert staged_files(test_settings) == []
        mock_redis.set.assert_not_called()
        mock_sqs_client.send_message.assert_not_called()

    @pytest.mark.asyncio
    async def test_oversized_file(self, test_client, test_settings, auth_headers, upload_form):
        """Test that a file over the size limit is rejected."""
        test_settings.max_upload_bytes = 16

        response = await test_client.post(
            "/upload",
            data=upload_form,
            files={"file": ("photo.jpg", b"x" * 17, "image/jpeg")},
            headers=auth_headers,
        )

        assert response.status_code == 400
        assert "exceeds maximum size of 16 bytes" in response.text
        assert staged_files(test_settings) == []

    @pytest.mark.asyncio
    async def test_unset_secret_rejects_forged_token(self, test_client, test_settings, upload_form):
        """Test that an empty signing secret rejects every token."""
        test_settings.jwt_secret_key = ""

        response = await test_client.post(
            "/upload",
            data=upload_form,
            files={"file": ("photo.jpg", b"data", "image/jpeg")},
            headers={"Authorization": f"Bearer {make_token(secret='')}"},
        )

        assert response.status_code == 401
        assert response.text == "signing secret is not configured"
        assert staged_files(test_settings) == []


class TestUploadFailures:
    """Tests for failures after validation."""

    @pytest.mark.asyncio
    async def test_cache_failure_aborts_before_publish(
        self, test_client, test_settings, auth_headers, upload_form, mock_redis, mock_sqs_client
    ):
        """Test that a cache failure returns 500 and publishes nothing."""
        mock_redis.set = AsyncMock(side_effect=RedisConnectionError("Connection refused"))

        response = await test_client.post(
            "/upload",
            data=upload_form,
            files={"file": ("photo.jpg", b"data", "image/jpeg")},
            headers=auth_headers,
        )

        assert response.status_code == 500
        assert response.text == "Connection refused"
        mock_sqs_client.send_message.assert_not_called()

    @pytest.mark.asyncio
    async def test_cache_failure_hides_details_when_configured(
        self, test_client, test_settings, auth_headers, upload_form, mock_redis
    ):
        """Test that cache errors are hidden when configured."""
        test_settings.expose_error_details = False
        mock_redis.set = AsyncMock(side_effect=RedisConnectionError("redis-internal:6379 refused"))

        response = await test_client.post(
            "/upload",
            data=upload_form,
            files={"file": ("photo.jpg", b"data", "image/jpeg")},
            headers=auth_headers,
        )

        assert response.status_code == 500
        assert response.text == "An internal error occurred"

    @pytest.mark.asyncio
    async def test_traversal_in_key_is_rejected(
        self, test_client, test_settings, auth_headers, upload_form, mock_redis
    ):
        """Test that a traversal key is refused without side effects."""
        upload_form["key"] = ".."

        response = await test_client.post(
            "/upload",
            data=upload_form,
            files={"file": ("photo.jpg", b"data", "image/jpeg")},
            headers=auth_headers,
        )

        assert response.status_code == 500
        assert "path traversal rejected" in response.text
        assert staged_files(test_settings) == []
        mock_redis.set.assert_not_called()
