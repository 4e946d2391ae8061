"""Multipart upload form validation."""

import os
from dataclasses import dataclass

from fastapi import Request
from starlette.datastructures import FormData, UploadFile
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.formparsers import MultiPartException

from services.upload_ingest.app.core.errors import ValidationError

REQUIRED_FIELDS = ("key", "origin", "fileName")
FILE_FIELD = "file"


@dataclass
class UploadForm:
    """Validated upload form."""

    key: str
    origin: str
    file_name: str
    file: UploadFile
    form: FormData

    @property
    def composite_key(self) -> str:
        """``<key>/<fileName>``, the address shared by the cache marker and the notification."""
        return f"{self.key}/{self.file_name}"

    async def close(self) -> None:
        """Release spooled file parts."""
        await self.form.close()


def _file_size(upload: UploadFile) -> int:
    if upload.size is not None:
        return upload.size
    stream = upload.file
    position = stream.tell()
    size = stream.seek(0, os.SEEK_END)
    stream.seek(position)
    return size


async def parse_form(request: Request) -> FormData:
    """Parse the request body into form data.

    Raises:
        ValidationError: If the multipart body is malformed
    """
    try:
        return await request.form()
    except MultiPartException as e:
        raise ValidationError(e.message) from e
    except StarletteHTTPException as e:
        # Starlette reports multipart errors as HTTP 400 when running inside an app
        raise ValidationError(str(e.detail)) from e


async def validate_upload_form(request: Request, max_upload_bytes: int) -> UploadForm:
    """Check required fields and extract the file part.

    Args:
        request: Incoming request with a multipart/form-data body
        max_upload_bytes: Largest accepted file part

    Returns:
        The validated form, with the file positioned at its start

    Raises:
        ValidationError: Naming the missing or invalid field
    """
    form = await parse_form(request)

    try:
        values = {}
        for name in REQUIRED_FIELDS:
            value = form.get(name)
            values[name] = value if isinstance(value, str) else ""

        missing = [name for name in REQUIRED_FIELDS if not values[name]]
        if missing:
            raise ValidationError(f"required fields are not provided: {', '.join(missing)}")

        upload = form.get(FILE_FIELD)
        if not isinstance(upload, UploadFile):
            raise ValidationError(f"file part '{FILE_FIELD}' is missing")

        if _file_size(upload) > max_upload_bytes:
            raise ValidationError(
                f"file part '{FILE_FIELD}' exceeds maximum size of {max_upload_bytes} bytes"
            )

        await upload.seek(0)
    except ValidationError:
        await form.close()
        raise

    return UploadForm(
        key=values["key"],
        origin=values["origin"],
        file_name=values["fileName"],
        file=upload,
        form=form,
    )
