"""Bearer token authentication."""

from services.upload_ingest.app.auth.jwt import (
    BEARER_PREFIX,
    HMAC_ALGORITHMS,
    extract_bearer_token,
    verify_bearer_token,
)

__all__ = [
    "BEARER_PREFIX",
    "HMAC_ALGORITHMS",
    "extract_bearer_token",
    "verify_bearer_token",
]
