"""Upload pipeline error taxonomy.

Every stage failure is an ``UploadPipelineError`` carrying the HTTP status the
orchestrator maps it to. The message is what the caller sees in the body.
"""


class UploadPipelineError(Exception):
    """Base class for failures raised by a pipeline stage."""

    status_code: int = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class AuthError(UploadPipelineError):
    """Bearer token missing, malformed, badly signed or using a foreign algorithm."""

    status_code = 401


class ValidationError(UploadPipelineError):
    """Required form field or file part missing, oversized or malformed."""

    status_code = 400


class StagingIOError(UploadPipelineError):
    """Directory creation, file creation or stream copy failed."""

    status_code = 500


class CacheError(UploadPipelineError):
    """Presence marker could not be written."""

    status_code = 500


class PublishError(UploadPipelineError):
    """Notification could not be published. Never surfaced to the caller."""

    status_code = 500


class ResourceUnavailableError(Exception):
    """A managed backing service could not be (re)connected."""

    def __init__(self, resource: str, message: str | None = None):
        self.resource = resource
        self.message = message or f"{resource} is unavailable"
        super().__init__(self.message)
