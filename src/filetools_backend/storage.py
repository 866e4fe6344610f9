"""
Upload intake and the on-disk layout shared by uploads and outputs.

Uploads land in ``upload_root`` under generated names and live only for the
duration of one request. Everything a tool produces goes to
``output_root``, where the lifecycle manager schedules its deletion.
"""

from __future__ import annotations

import logging
import mimetypes
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

from starlette.datastructures import UploadFile

from .errors import ErrorKind, ToolError
from .models import UploadedFile
from .utils import BYTES_PER_MEGABYTE, ensure_directory, generate_output_name, generate_storage_name

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024


class StorageLayout:
    """
    The two directories the service writes to.

    Attributes:
        upload_root: Directory for request-scoped uploaded inputs
        output_root: Directory for generated artifacts
    """

    def __init__(self, upload_root: Path, output_root: Path) -> None:
        self.upload_root = Path(upload_root)
        self.output_root = Path(output_root)

    def ensure(self) -> None:
        ensure_directory(self.upload_root)
        ensure_directory(self.output_root)

    def output_path(self, prefix: str, extension: str) -> Path:
        """
        Reserve a fresh ``<prefix>_<ms>_<rand>.<ext>`` path inside the output directory.

        The file is created empty before the path is returned, so two
        requests can never be handed the same name.
        """
        ensure_directory(self.output_root)
        while True:
            candidate = self.output_root / generate_output_name(prefix, extension)
            try:
                candidate.touch(exist_ok=False)
            except FileExistsError:
                continue
            return candidate


class UploadIntake:
    """
    Streams multipart parts to disk while enforcing count and size limits.

    Attributes:
        layout: Where uploads are written
        max_files: Most parts accepted in one request
        max_file_size_bytes: Per-file ceiling
    """

    def __init__(self, layout: StorageLayout, max_files: int, max_file_size_bytes: int) -> None:
        self.layout = layout
        self.max_files = max_files
        self.max_file_size_bytes = max_file_size_bytes

    async def receive(self, parts: Sequence[UploadFile], field: str = "files") -> List[UploadedFile]:
        """
        Persist uploaded parts under generated names.

        Args:
            parts: Multipart file parts in the order the client sent them
            field: Multipart field name, used as the stored-name prefix

        Returns:
            One ``UploadedFile`` per part, in order

        Raises:
            ToolError: ``upload_rejected`` with status 400 for too many
                parts, 413 for a part above the size ceiling, 500 when the
                upload directory cannot be created
        """
        if len(parts) > self.max_files:
            logger.warning(f"Rejected upload with {len(parts)} parts (limit {self.max_files})")
            raise ToolError(ErrorKind.UPLOAD_REJECTED, message=f"Too many files. Maximum is {self.max_files}")

        try:
            ensure_directory(self.layout.upload_root)
        except OSError as exc:
            logger.exception(f"Could not create upload directory {self.layout.upload_root}")
            raise ToolError(
                ErrorKind.UPLOAD_REJECTED,
                message="Upload storage is unavailable",
                cause=exc,
                status_override=500,
            ) from exc

        stored: List[UploadedFile] = []
        try:
            for part in parts:
                stored.append(await self._store_part(part, field))
        except BaseException:
            self.discard(stored)
            raise
        return stored

    async def _store_part(self, part: UploadFile, field: str) -> UploadedFile:
        original_name = Path(part.filename or "upload").name
        destination = self.layout.upload_root / generate_storage_name(field, original_name)
        written = 0
        try:
            with destination.open("wb") as buffer:
                while chunk := await part.read(CHUNK_SIZE):
                    written += len(chunk)
                    if written > self.max_file_size_bytes:
                        limit_mb = self.max_file_size_bytes // BYTES_PER_MEGABYTE
                        logger.warning(f"Rejected {original_name}: larger than {limit_mb}MB")
                        raise ToolError(
                            ErrorKind.UPLOAD_REJECTED,
                            message=f"File too large. Maximum size is {limit_mb}MB",
                            status_override=413,
                        )
                    buffer.write(chunk)
        except BaseException:
            destination.unlink(missing_ok=True)
            raise
        finally:
            await part.close()

        mime_type = part.content_type or mimetypes.guess_type(original_name)[0] or "application/octet-stream"
        return UploadedFile(
            original_name=original_name,
            stored_path=destination,
            size_bytes=written,
            mime_type=mime_type,
        )

    def discard(self, files: Optional[Iterable[UploadedFile]]) -> None:
        for uploaded in files or ():
            try:
                uploaded.stored_path.unlink(missing_ok=True)
            except OSError:
                logger.warning(f"Could not remove upload {uploaded.stored_path}")
