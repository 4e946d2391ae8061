"""Upload API routes."""

from fastapi import APIRouter, Request
from fastapi.responses import PlainTextResponse

from services.upload_ingest.app.dependencies import Pipeline

router = APIRouter(tags=["Upload"])


@router.post(
    "/upload",
    response_class=PlainTextResponse,
    responses={
        400: {"description": "Missing field, missing file part or malformed multipart body"},
        401: {"description": "Bearer token missing or invalid"},
        500: {"description": "Staging or cache failure"},
    },
    summary="Upload a file into the staging area",
)
async def upload(request: Request, pipeline: Pipeline) -> PlainTextResponse:
    """Stage an uploaded file and notify the object-storage uploader.

    Expects ``multipart/form-data`` with the text fields ``key``, ``origin``
    and ``fileName`` plus a file part ``file``, and an
    ``Authorization: Bearer <token>`` header. The token is checked before the
    body is parsed.
    """
    outcome = await pipeline.run(request, should_abort=request.is_disconnected)
    return PlainTextResponse(outcome.body, status_code=outcome.status_code)
