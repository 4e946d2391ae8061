"""Upload ingestion pipeline stages."""

from services.upload_ingest.app.pipeline.notifier import UploadNotifier
from services.upload_ingest.app.pipeline.orchestrator import (
    ActionPolicy,
    PostWriteAction,
    UploadOutcome,
    UploadPipeline,
)
from services.upload_ingest.app.pipeline.presence import PresenceCache
from services.upload_ingest.app.pipeline.staging import StagedFile, StagingSink
from services.upload_ingest.app.pipeline.validator import UploadForm, validate_upload_form

__all__ = [
    "UploadNotifier",
    "ActionPolicy",
    "PostWriteAction",
    "UploadOutcome",
    "UploadPipeline",
    "PresenceCache",
    "StagedFile",
    "StagingSink",
    "UploadForm",
    "validate_upload_form",
]
