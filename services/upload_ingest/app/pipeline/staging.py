"""Staging area writes.

Uploads land at ``<staging_root>/<namespace>/<origin>/<key>/<file_name>``
before the downstream uploader moves them to object storage. Writes are
last-write-wins and a failed copy may leave a partial file behind.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Awaitable, Callable, Protocol

import aiofiles
import aiofiles.os

from services.upload_ingest.app.core.errors import StagingIOError
from shared.utils.logging import get_logger
from shared.utils.metrics import create_counter

logger = get_logger(__name__)

BYTES_STAGED = create_counter(
    "upload_bytes_staged_total",
    "Total bytes written to the staging area",
)

_FORBIDDEN_SEGMENTS = {"", ".", ".."}
_FORBIDDEN_CHARACTERS = ("/", "\\", "\x00")


class AsyncReadable(Protocol):
    """Source stream, e.g. a Starlette ``UploadFile``."""

    async def read(self, size: int = -1) -> bytes: ...


@dataclass(frozen=True)
class StagedFile:
    """Result of a staging write."""

    path: Path
    size_bytes: int


def _check_segment(name: str, value: str) -> None:
    if value in _FORBIDDEN_SEGMENTS or any(c in value for c in _FORBIDDEN_CHARACTERS):
        raise StagingIOError(f"path traversal rejected: invalid {name} {value!r}")


class StagingSink:
    """Writes uploaded files into a namespaced directory tree."""

    def __init__(self, root: Path | str, namespace: str = "", chunk_size: int = 64 * 1024):
        """Initialize staging sink.

        Args:
            root: Staging root directory
            namespace: Deployment namespace (may be empty)
            chunk_size: Bytes copied per read
        """
        self.root = Path(root)
        self.namespace = namespace
        self.chunk_size = chunk_size

    @property
    def namespace_dir(self) -> Path:
        """Directory all origins are created under."""
        return self.root / self.namespace if self.namespace else self.root

    def path_for(self, origin: str, key: str, file_name: str) -> Path:
        """Compute the staging path for an upload.

        Raises:
            StagingIOError: If a segment would escape the namespace directory
        """
        _check_segment("origin", origin)
        _check_segment("key", key)
        _check_segment("fileName", file_name)

        base = self.namespace_dir.resolve()
        path = (base / origin / key / file_name).resolve()
        if not path.is_relative_to(base):
            raise StagingIOError(f"path traversal rejected: {origin}/{key}/{file_name}")
        return path

    async def stage(
        self,
        origin: str,
        key: str,
        file_name: str,
        stream: AsyncReadable,
        should_abort: Callable[[], Awaitable[bool]] | None = None,
    ) -> StagedFile:
        """Copy ``stream`` to its staging path.

        Args:
            origin: Origin segment (e.g. "albums")
            key: Object key segment
            file_name: File name segment
            stream: Source, read ``chunk_size`` bytes at a time
            should_abort: Polled between chunks; a truthy result stops the copy

        Returns:
            Staged file path and size

        Raises:
            StagingIOError: On path, directory, file or copy failure
        """
        path = self.path_for(origin, key, file_name)

        try:
            await aiofiles.os.makedirs(path.parent, exist_ok=True)
        except OSError as e:
            raise StagingIOError(str(e)) from e

        written = 0
        try:
            async with aiofiles.open(path, "wb") as dst:
                while True:
                    chunk = await stream.read(self.chunk_size)
                    if not chunk:
                        break
                    if should_abort is not None and await should_abort():
                        raise StagingIOError("client disconnected during upload")
                    await dst.write(chunk)
                    written += len(chunk)
                await dst.flush()
        except StagingIOError:
            logger.warning("upload_staging_aborted", path=str(path), bytes_written=written)
            raise
        except OSError as e:
            logger.error("upload_staging_failed", path=str(path), error=str(e))
            raise StagingIOError(str(e)) from e

        BYTES_STAGED.inc(written)
        logger.info("upload_staged", path=str(path), size_bytes=written)
        return StagedFile(path=path, size_bytes=written)
