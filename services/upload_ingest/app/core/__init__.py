"""Core pipeline types: error taxonomy and request state machine."""

from services.upload_ingest.app.core.errors import (
    AuthError,
    CacheError,
    PublishError,
    ResourceUnavailableError,
    StagingIOError,
    UploadPipelineError,
    ValidationError,
)
from services.upload_ingest.app.core.state_machine import (
    InvalidTransitionError,
    UploadState,
    UploadStateMachine,
)

__all__ = [
    "AuthError",
    "CacheError",
    "PublishError",
    "ResourceUnavailableError",
    "StagingIOError",
    "UploadPipelineError",
    "ValidationError",
    "InvalidTransitionError",
    "UploadState",
    "UploadStateMachine",
]
