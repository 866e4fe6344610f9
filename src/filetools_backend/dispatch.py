"""
Dispatch of a tool request to its processing routine.

``ToolRouter.process`` is the single path every tool request takes: look up
the tool, check the file count, coerce options, run the handler, hand the
outputs to the lifecycle manager, and always delete the uploaded inputs.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence

from .errors import ErrorKind, ToolError
from .lifecycle import OutputLifecycle
from .models import ProcessResult, ToolDescriptor, UploadedFile
from .options import coerce_options
from .registry import ToolRegistry
from .storage import StorageLayout, UploadIntake
from .tools.base import HandlerSet, ToolContext, ToolHandler

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ToolEntry:
    descriptor: ToolDescriptor
    handler: ToolHandler


class ToolRouter:
    """
    Maps tool ids to handlers and runs one request end to end.

    The catalog and the handler set must describe exactly the same tools;
    a mismatch is a packaging error and is reported at construction time
    rather than as a 400 on first use.

    Attributes:
        registry: Tool catalog
        intake: Upload intake, used to delete inputs after processing
        layout: Output directory layout handed to handlers
        lifecycle: Receives every produced artifact
    """

    def __init__(
        self,
        registry: ToolRegistry,
        handlers: HandlerSet,
        intake: UploadIntake,
        layout: StorageLayout,
        lifecycle: OutputLifecycle,
    ) -> None:
        self.registry = registry
        self.intake = intake
        self.layout = layout
        self.lifecycle = lifecycle

        catalog_ids = set(registry.ids())
        handler_ids = set(handlers.ids())
        if catalog_ids != handler_ids:
            missing = sorted(catalog_ids - handler_ids)
            extra = sorted(handler_ids - catalog_ids)
            raise ValueError(f"Catalog and handlers disagree (no handler: {missing}, not in catalog: {extra})")

        self._entries: Dict[str, ToolEntry] = {}
        for tool_id in registry.ids():
            descriptor = registry.describe(tool_id)
            handler = handlers.get(tool_id)
            if descriptor is None or handler is None:
                raise ValueError(f"Catalog entry for {tool_id} has no descriptor or handler")
            self._entries[tool_id] = ToolEntry(descriptor, handler)

    def supports(self, tool_id: str) -> bool:
        return tool_id in self._entries

    def process(
        self,
        tool_id: str,
        files: Sequence[UploadedFile],
        raw_options: Optional[Mapping[str, Any]] = None,
    ) -> ProcessResult:
        """
        Run ``tool_id`` against uploaded files and raw form options.

        Uploaded inputs are deleted before this method returns, whatever the
        outcome. Produced artifacts are scheduled for eviction; nothing here
        deletes them.

        Args:
            tool_id: Catalog id from the request path
            files: Uploads already persisted by the intake
            raw_options: Form fields other than ``files``

        Returns:
            ProcessResult for the primary artifact

        Raises:
            ToolError: For an unknown tool, a wrong file count, invalid
                options, or (as ``processing_failure``) any error raised by
                the routine itself
        """
        try:
            entry = self._entries.get(tool_id)
            if entry is None:
                raise ToolError(ErrorKind.UNSUPPORTED_TOOL, tool_id)
            return self._run(entry, files, raw_options or {})
        finally:
            self.intake.discard(files)

    def _run(self, entry: ToolEntry, files: Sequence[UploadedFile], raw_options: Mapping[str, Any]) -> ProcessResult:
        descriptor, handler = entry.descriptor, entry.handler
        handler.files.check(descriptor.id, len(files), descriptor.max_files)

        satisfied = {handler.text_option} if handler.text_option and files else set()
        options = coerce_options(descriptor, raw_options, satisfied=satisfied, messages=handler.required_messages)
        if handler.validate is not None:
            handler.validate(files, options)

        context = ToolContext(tool_id=descriptor.id, files=files, options=options, layout=self.layout)
        try:
            outcome = handler.run(context)
        except ToolError:
            self._discard_outputs(context.produced)
            raise
        except Exception as exc:
            logger.exception(f"{descriptor.id} failed while processing {len(files)} file(s)")
            self._discard_outputs(context.produced)
            raise ToolError(ErrorKind.PROCESSING_FAILURE, descriptor.id, handler.failure, cause=exc) from exc

        kept = {outcome.path, *outcome.additional_paths}
        self._discard_outputs([path for path in context.produced if path not in kept])

        artifact = self.lifecycle.track(outcome.path, outcome.file_name or context.display_name(outcome.path))
        additional: List[str] = []
        for path in outcome.additional_paths:
            additional.append(self.lifecycle.track(path, context.display_name(path)).file_id)

        logger.info(f"{descriptor.id} produced {artifact.file_id} ({artifact.size_bytes} bytes)")
        return ProcessResult(
            artifact=artifact,
            message=outcome.message,
            additional_files=additional,
            data=outcome.data,
        )

    @staticmethod
    def _discard_outputs(paths: Sequence[Path]) -> None:
        """Delete outputs a run reserved but did not return."""
        for path in paths:
            try:
                path.unlink(missing_ok=True)
            except OSError as exc:
                logger.warning(f"Could not delete unused output {path.name}: {exc}")
