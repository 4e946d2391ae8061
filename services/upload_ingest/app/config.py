"""Upload ingest configuration via environment variables."""

from functools import lru_cache
from pathlib import Path

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Deployment mode in which the hosting platform tracks uploaded objects itself
EXTERNAL_PLATFORM_MODE = "gae"


class Settings(BaseSettings):
    """Upload ingest service configuration.

    A handful of fields also accept the bare variable names used by the
    existing deployments (``JWT_SECRET_KEY``, ``APP_ENV``, ``LINK_SERVICE_MODE``).
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="UPLOAD_",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Service settings
    service_name: str = "upload-ingest"
    debug: bool = False
    log_level: str = "INFO"
    log_json: bool = True
    host: str = "0.0.0.0"
    port: int = 7008

    # Authentication
    jwt_secret_key: str = Field(
        default="",
        validation_alias=AliasChoices("UPLOAD_JWT_SECRET_KEY", "JWT_SECRET_KEY"),
        description="Pre-shared HMAC key used to verify bearer tokens",
    )
    jwt_algorithms: list[str] = ["HS256", "HS384", "HS512"]

    # Staging area
    app_env: str = Field(
        default="",
        validation_alias=AliasChoices("UPLOAD_APP_ENV", "APP_ENV"),
        description="Deployment namespace, first directory under the staging root",
    )
    staging_root: Path = Path("./uploads")
    staging_chunk_size: int = 64 * 1024
    max_upload_bytes: int = 1 << 20

    # Presence cache
    deployment_mode: str = Field(
        default="",
        validation_alias=AliasChoices("UPLOAD_DEPLOYMENT_MODE", "LINK_SERVICE_MODE"),
    )
    redis_url: str = "redis://localhost:6379/2"
    presence_ttl_seconds: int = 300
    cache_timeout_seconds: float = 2.0

    # Notification queue
    sqs_queue_name: str = "upload_s3"
    sqs_queue_url: str | None = None  # resolved from the queue name when unset
    sqs_region: str = "us-east-1"
    sqs_endpoint_url: str | None = "http://localhost:4566"  # LocalStack
    aws_access_key_id: str | None = None
    aws_secret_access_key: str | None = None
    queue_timeout_seconds: float = 5.0

    # Backing service lifecycle
    reconnect_max_attempts: int = 5
    reconnect_base_delay_seconds: float = 0.5
    reconnect_max_delay_seconds: float = 10.0

    # Error bodies for 5xx responses carry the underlying error text when enabled
    expose_error_details: bool = True

    @property
    def presence_enabled(self) -> bool:
        """Whether this deployment records presence markers itself."""
        return self.deployment_mode.strip().lower() != EXTERNAL_PLATFORM_MODE


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
