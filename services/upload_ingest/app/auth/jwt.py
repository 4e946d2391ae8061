"""Bearer token verification.

Only the signature is checked: the token must be signed with the pre-shared
key using one of the HMAC-SHA2 algorithms. Registered time claims are still
enforced by the JWT library when a token carries them.
"""

from collections.abc import Sequence
from typing import Any

from jose import JWTError, jwt

from services.upload_ingest.app.core.errors import AuthError
from shared.utils.logging import get_logger

logger = get_logger(__name__)

BEARER_PREFIX = "Bearer "
HMAC_ALGORITHMS = ("HS256", "HS384", "HS512")

# The service consumes no claims, so audience checks are left to the issuer
_DECODE_OPTIONS = {"verify_aud": False}


def extract_bearer_token(authorization: str | None) -> str:
    """Strip the bearer scheme from an ``Authorization`` header value.

    A value without the prefix is returned unchanged so that it fails
    signature verification rather than being treated specially.
    """
    if not authorization:
        return ""
    if authorization.startswith(BEARER_PREFIX):
        return authorization[len(BEARER_PREFIX):]
    return authorization


def verify_bearer_token(
    authorization: str | None,
    secret_key: str,
    algorithms: Sequence[str] = HMAC_ALGORITHMS,
) -> dict[str, Any]:
    """Verify a bearer token signature.

    Args:
        authorization: Raw ``Authorization`` header value
        secret_key: Pre-shared HMAC key
        algorithms: Accepted signing algorithms, restricted to the HMAC family

    Returns:
        Decoded claims

    Raises:
        AuthError: If no secret is configured, or the token is missing,
            malformed, signed with another key, or declares an algorithm
            outside the HMAC family
    """
    allowed = [alg for alg in algorithms if alg in HMAC_ALGORITHMS]
    if not allowed:
        raise AuthError("no HMAC signing algorithm is configured")
    if not secret_key:
        raise AuthError("signing secret is not configured")

    token = extract_bearer_token(authorization)
    if not token:
        raise AuthError("missing bearer token")

    try:
        header = jwt.get_unverified_header(token)
    except JWTError as e:
        raise AuthError(str(e)) from e

    declared = header.get("alg")
    if declared not in allowed:
        logger.warning("token_algorithm_rejected", algorithm=declared)
        raise AuthError(f"unexpected signing method: {declared}")

    try:
        return jwt.decode(
            token,
            secret_key,
            algorithms=allowed,
            options=_DECODE_OPTIONS,
        )
    except JWTError as e:
        raise AuthError(str(e)) from e
