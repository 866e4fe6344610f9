"""Uniform JSON envelopes returned by every endpoint."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi.responses import JSONResponse

from .models import ArtifactPayload, ErrorEnvelope, ProcessEnvelope, ProcessResult

DOWNLOAD_PREFIX = "/api/download/"


def download_url(file_id: str) -> str:
    return f"{DOWNLOAD_PREFIX}{file_id}"


def process_envelope(result: ProcessResult) -> Dict[str, Any]:
    """
    Success body for a processed tool request.

    ``additionalFiles`` and ``data`` are omitted when empty.
    """
    artifact = result.artifact
    payload = ArtifactPayload(
        file_id=artifact.file_id,
        file_name=artifact.file_name,
        file_size=artifact.size_bytes,
        message=result.message,
        additional_files=result.additional_files or None,
        data=result.data,
    )
    envelope = ProcessEnvelope(data=payload, download_url=download_url(artifact.file_id))
    return envelope.model_dump(by_alias=True, exclude_none=True)


def data_envelope(data: Any) -> Dict[str, Any]:
    return {"success": True, "data": data}


def health_envelope(with_timestamp: bool = False) -> Dict[str, Any]:
    body: Dict[str, Any] = {"success": True, "message": "ok"}
    if with_timestamp:
        body["timestamp"] = datetime.now(timezone.utc).isoformat()
    return body


def error_response(status_code: int, message: str, headers: Optional[Dict[str, str]] = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ErrorEnvelope(error=message).model_dump(), headers=headers)
