"""
Lookup of generated artifacts for ``GET /api/download/{filename}``.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict

from fastapi.responses import FileResponse
from starlette.types import Receive, Scope, Send

from .errors import ErrorKind, ToolError
from .lifecycle import OutputLifecycle
from .storage import StorageLayout

logger = logging.getLogger(__name__)

DEFAULT_MEDIA_TYPE = "application/octet-stream"

MEDIA_TYPES: Dict[str, str] = {
    ".pdf": "application/pdf",
    ".docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    ".doc": "application/msword",
    ".xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    ".xls": "application/vnd.ms-excel",
    ".pptx": "application/vnd.openxmlformats-officedocument.presentationml.presentation",
    ".ppt": "application/vnd.ms-powerpoint",
    ".csv": "text/csv",
    ".json": "application/json",
    ".xml": "application/xml",
    ".txt": "text/plain",
    ".html": "text/html",
    ".zip": "application/zip",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".webp": "image/webp",
    ".bmp": "image/bmp",
    ".tiff": "image/tiff",
    ".svg": "image/svg+xml",
    ".mp4": "video/mp4",
    ".avi": "video/x-msvideo",
    ".mov": "video/quicktime",
    ".webm": "video/webm",
    ".mkv": "video/x-matroska",
    ".mp3": "audio/mpeg",
    ".wav": "audio/wav",
    ".aac": "audio/aac",
    ".flac": "audio/flac",
    ".ogg": "audio/ogg",
    ".m4a": "audio/mp4",
}


def media_type_for(name: str) -> str:
    """
    Content type for a file name, by extension.

    Example:
        >>> media_type_for("report.PDF")
        "application/pdf"
        >>> media_type_for("archive.7z")
        "application/octet-stream"
    """
    return MEDIA_TYPES.get(Path(name).suffix.lower(), DEFAULT_MEDIA_TYPE)


def _is_bare_name(name: str) -> bool:
    return bool(name) and name not in (".", "..") and Path(name).name == name and "\\" not in name


def resolve_artifact(name: str, layout: StorageLayout, lifecycle: OutputLifecycle) -> Path:
    """
    Find the file behind a download handle.

    Due artifacts are evicted first, so an expired handle is never served
    even when the background sweeper is behind. A file in the output
    directory is only served while the lifecycle tracks it, so an output
    that is still being written is never exposed.

    Args:
        name: The ``fileId`` from a process response
        layout: Storage directories to search (output, then uploads)
        lifecycle: Lifecycle manager whose due entries are swept

    Returns:
        Path of an existing regular file

    Raises:
        ToolError: ``artifact_not_found`` for a missing, expired or
            non-bare name
    """
    lifecycle.sweep()
    if not _is_bare_name(name):
        logger.warning(f"Rejected download name {name!r}")
        raise ToolError(ErrorKind.ARTIFACT_NOT_FOUND)

    output = layout.output_root / name
    if output.is_file() and lifecycle.is_live(name):
        return output
    upload = layout.upload_root / name
    if upload.is_file():
        return upload
    raise ToolError(ErrorKind.ARTIFACT_NOT_FOUND)


class WholeFileResponse(FileResponse):
    """
    ``FileResponse`` that always sends the complete file with status 200.

    Range and If-Range request headers are ignored and the response
    advertises ``Accept-Ranges: none``.
    """

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        headers = [(key, value) for key, value in scope.get("headers", []) if key.lower() not in (b"range", b"if-range")]
        await super().__call__({**scope, "headers": headers}, receive, send)
