"""
Handler records: how a catalog tool is turned into a processing call.

Each tool id in the catalog has exactly one ``ToolHandler``. The handler
declares how many files it needs, which option a file may stand in for,
an optional cross-field check, and the function that does the work. The
router owns everything around that function (counting files, coercing
options, scheduling outputs, deleting uploads), so handlers stay small.
"""

from __future__ import annotations

import json
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, Sequence, Type

from ..errors import ErrorKind, ToolError, invalid_option
from ..models import UploadedFile
from ..processors.office import read_document_text
from ..storage import StorageLayout
from ..utils import sanitize_label


@dataclass(frozen=True)
class FileRule:
    """Accepted number of uploaded files and the message used when it is not met."""

    minimum: int = 0
    maximum: Optional[int] = None
    message: Optional[str] = None

    def check(self, tool_id: str, count: int, ceiling: int) -> None:
        maximum = ceiling if self.maximum is None else min(self.maximum, ceiling)
        if count < self.minimum or count > maximum:
            if self.message:
                message = self.message
            elif maximum == 0:
                message = "This tool does not accept files"
            elif self.minimum == maximum:
                noun = "file is" if maximum == 1 else "files are"
                message = f"Exactly {maximum} {noun} required"
            elif count < self.minimum:
                message = f"At least {self.minimum} files are required"
            else:
                message = f"At most {maximum} files are allowed"
            raise ToolError(ErrorKind.INVALID_FILE_COUNT, tool_id, message)


def exactly(count: int, message: Optional[str] = None) -> FileRule:
    return FileRule(count, count, message)


def at_least(count: int, message: Optional[str] = None) -> FileRule:
    return FileRule(count, None, message)


def optional_one() -> FileRule:
    return FileRule(0, 1)


def no_files() -> FileRule:
    return FileRule(0, 0)


@contextmanager
def rejecting(tool_id: str, *errors: Type[Exception]) -> Iterator[None]:
    """
    Report routine errors caused by bad input as 400s instead of failures.

    Example:
        >>> with rejecting(context.tool_id, EmptyDocumentError):
        ...     word_to_pdf(source, destination)
    """
    caught = errors or (ValueError,)
    try:
        yield
    except caught as exc:
        raise invalid_option(tool_id, str(exc)) from exc


@dataclass
class ToolContext:
    """
    Everything a handler sees for one request.

    Every output path handed out is recorded in ``produced`` so the router
    can delete whatever a failed run left behind.
    """

    tool_id: str
    files: Sequence[UploadedFile]
    options: Dict[str, Any]
    layout: StorageLayout
    produced: List[Path] = field(default_factory=list)
    display_names: Dict[Path, str] = field(default_factory=dict)

    @property
    def file(self) -> UploadedFile:
        return self.files[0]

    def output(self, prefix: str, extension: str) -> Path:
        path = self.layout.output_path(prefix, extension)
        self.produced.append(path)
        return path

    def named_output(self, file_name: str) -> Path:
        """
        Output path for a conversion whose download keeps a readable name.

        The stored file (and so the ``fileId``) is a generated unique name;
        ``file_name`` such as ``report.docx`` is only the display name.
        """
        extension = Path(file_name).suffix.lstrip(".") or "bin"
        path = self.output(self.tool_id.replace("-", "_"), extension)
        self.display_names[path] = sanitize_label(Path(file_name).name, path.name)
        return path

    def display_name(self, path: Path) -> Optional[str]:
        return self.display_names.get(path)

    def text(self, option: str = "text", encoding: str = "utf-8") -> str:
        """Option text, or the uploaded file's content when a file was sent instead."""
        if self.files:
            upload = self.files[0]
            if upload.extension in (".docx", ".pdf", ".html", ".htm"):
                return "\n".join(read_document_text(upload.stored_path))
            return upload.stored_path.read_text(encoding=encoding, errors="replace")
        return self.options.get(option) or ""

    def write_text(self, prefix: str, content: str, extension: str = "txt") -> Path:
        destination = self.output(prefix, extension)
        destination.write_text(content, encoding="utf-8")
        return destination

    def write_json(self, prefix: str, payload: Any) -> Path:
        return self.write_text(prefix, json.dumps(payload, indent=2, ensure_ascii=False, default=str), "json")


@dataclass
class ToolOutcome:
    """
    What a handler produced.

    Attributes:
        path: Primary artifact in the output directory
        message: Success message shown to the client
        file_name: Display name when it differs from the stored name
        additional_paths: Further artifacts returned alongside the primary one
        data: JSON-serializable result echoed in the response
    """

    path: Path
    message: str
    file_name: Optional[str] = None
    additional_paths: Sequence[Path] = ()
    data: Any = None


Validator = Callable[[Sequence[UploadedFile], Dict[str, Any]], None]
Runner = Callable[[ToolContext], ToolOutcome]


@dataclass(frozen=True)
class ToolHandler:
    tool_id: str
    run: Runner
    files: FileRule = field(default_factory=no_files)
    validate: Optional[Validator] = None
    text_option: Optional[str] = None
    failure_message: Optional[str] = None
    required_messages: Mapping[str, str] = field(default_factory=dict)

    @property
    def failure(self) -> str:
        return self.failure_message or "Processing failed"


class HandlerSet:
    """
    Collects handlers declared with the ``@handlers.tool(...)`` decorator.

    Example:
        >>> HANDLERS = HandlerSet()
        >>> @HANDLERS.tool("pdf-merge", files=at_least(2))
        ... def merge(context: ToolContext) -> ToolOutcome:
        ...     ...
    """

    def __init__(self) -> None:
        self._handlers: Dict[str, ToolHandler] = {}

    def tool(
        self,
        tool_id: str,
        files: Optional[FileRule] = None,
        validate: Optional[Validator] = None,
        text_option: Optional[str] = None,
        failure: Optional[str] = None,
        required: Optional[Mapping[str, str]] = None,
    ) -> Callable[[Runner], Runner]:
        def decorator(run: Runner) -> Runner:
            self.add(
                ToolHandler(
                    tool_id=tool_id,
                    run=run,
                    files=files or no_files(),
                    validate=validate,
                    text_option=text_option,
                    failure_message=failure,
                    required_messages=dict(required or {}),
                )
            )
            return run

        return decorator

    def add(self, handler: ToolHandler) -> None:
        if handler.tool_id in self._handlers:
            raise ValueError(f"Handler for {handler.tool_id} registered twice")
        self._handlers[handler.tool_id] = handler

    def merge(self, other: "HandlerSet") -> "HandlerSet":
        for handler in other:
            self.add(handler)
        return self

    def get(self, tool_id: str) -> Optional[ToolHandler]:
        return self._handlers.get(tool_id)

    def ids(self) -> List[str]:
        return list(self._handlers)

    def __iter__(self) -> Iterator[ToolHandler]:
        return iter(self._handlers.values())

    def __len__(self) -> int:
        return len(self._handlers)
