"""
Typed failures raised anywhere between upload intake and download.

Every failure a client can observe is a ``ToolError``. The HTTP layer maps
it to a status code and a ``{"success": false, "error": ...}`` envelope in
one place, so processing code never builds responses itself.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    UNSUPPORTED_TOOL = "unsupported_tool"
    INVALID_FILE_COUNT = "invalid_file_count"
    INVALID_OPTION = "invalid_option"
    UPLOAD_REJECTED = "upload_rejected"
    PROCESSING_FAILURE = "processing_failure"
    ARTIFACT_NOT_FOUND = "artifact_not_found"


_STATUS_CODES = {
    ErrorKind.UNSUPPORTED_TOOL: 400,
    ErrorKind.INVALID_FILE_COUNT: 400,
    ErrorKind.INVALID_OPTION: 400,
    ErrorKind.UPLOAD_REJECTED: 400,
    ErrorKind.PROCESSING_FAILURE: 500,
    ErrorKind.ARTIFACT_NOT_FOUND: 404,
}

_DEFAULT_MESSAGES = {
    ErrorKind.UNSUPPORTED_TOOL: "Unsupported tool",
    ErrorKind.INVALID_FILE_COUNT: "Invalid number of files",
    ErrorKind.INVALID_OPTION: "Invalid option",
    ErrorKind.UPLOAD_REJECTED: "Upload rejected",
    ErrorKind.PROCESSING_FAILURE: "Processing failed",
    ErrorKind.ARTIFACT_NOT_FOUND: "File not found",
}


class ToolError(Exception):
    """
    A client-visible failure scoped to one tool.

    Attributes:
        kind: Category of the failure, decides the HTTP status
        tool_id: Tool the request targeted, if known
        message: Human-readable text sent to the client
        cause: Underlying exception, kept for logs only
        status_override: Explicit status code (e.g. 413 for oversized uploads)
    """

    def __init__(
        self,
        kind: ErrorKind,
        tool_id: Optional[str] = None,
        message: Optional[str] = None,
        cause: Optional[BaseException] = None,
        status_override: Optional[int] = None,
    ) -> None:
        self.kind = kind
        self.tool_id = tool_id
        self.message = message or _DEFAULT_MESSAGES[kind]
        self.cause = cause
        self.status_override = status_override
        super().__init__(self.message)

    @property
    def status_code(self) -> int:
        if self.status_override is not None:
            return self.status_override
        return _STATUS_CODES[self.kind]

    def __repr__(self) -> str:
        return f"ToolError(kind={self.kind.value!r}, tool_id={self.tool_id!r}, message={self.message!r})"


def invalid_option(tool_id: str, message: str) -> ToolError:
    return ToolError(ErrorKind.INVALID_OPTION, tool_id, message)
