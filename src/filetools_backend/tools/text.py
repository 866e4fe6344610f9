"""
Text tools. Each accepts pasted text in the ``text`` option or one .txt upload.

Counters write their statistics as JSON; transforms write the resulting text.
"""

from __future__ import annotations

from typing import Any, Callable, Dict

from ..errors import invalid_option
from ..processors import text as routines
from .base import FileRule, HandlerSet, ToolContext, ToolOutcome, optional_one, rejecting

HANDLERS = HandlerSet()

TEXT_REQUIRED = "Text input is required"
ANALYSIS_DONE = "Text analysis completed"
PROCESSING_DONE = "Text processing completed"


def _input(context: ToolContext) -> str:
    content = context.text()
    if not content.strip():
        raise invalid_option(context.tool_id, TEXT_REQUIRED)
    return content


def _analysis(tool_id: str, prefix: str, analyze: Callable[[str, Dict[str, Any]], Any]) -> None:
    @HANDLERS.tool(
        tool_id,
        files=optional_one(),
        text_option="text",
        failure="Failed to analyze text",
        required={"text": TEXT_REQUIRED},
    )
    def run(context: ToolContext) -> ToolOutcome:
        result = analyze(_input(context), context.options)
        return ToolOutcome(context.write_json(prefix, result), ANALYSIS_DONE, data=result)


def _transform(tool_id: str, prefix: str, transform: Callable[[str, Dict[str, Any]], str]) -> None:
    @HANDLERS.tool(
        tool_id,
        files=optional_one(),
        text_option="text",
        failure="Failed to process text",
        required={"text": TEXT_REQUIRED},
    )
    def run(context: ToolContext) -> ToolOutcome:
        with rejecting(context.tool_id):
            result = transform(_input(context), context.options)
        return ToolOutcome(context.write_text(prefix, result), PROCESSING_DONE, data={"result": result})


_analysis(
    "word-counter",
    "word_count",
    lambda text, options: routines.count_words(
        text,
        include_spaces=options.get("includeSpaces", True),
        count_paragraphs=options.get("countParagraphs", True),
    ),
)
_analysis(
    "character-counter",
    "character_count",
    lambda text, options: routines.count_characters(
        text,
        include_spaces=options.get("includeSpaces", True),
        include_newlines=options.get("includeNewlines", True),
    ),
)
_analysis(
    "line-counter",
    "line_count",
    lambda text, options: routines.count_lines(text, count_empty_lines=options.get("countEmptyLines", True)),
)
_transform(
    "case-converter",
    "case_converted",
    lambda text, options: routines.convert_case(text, options.get("caseType") or "uppercase"),
)
_transform(
    "text-formatter",
    "formatted",
    lambda text, options: routines.format_text(
        text,
        remove_extra_spaces=options.get("removeExtraSpaces", True),
        remove_empty_lines=options.get("removeEmptyLines", True),
        trim_lines=options.get("trimLines", True),
    ),
)
_transform(
    "text-reverser",
    "reversed",
    lambda text, options: routines.reverse_text(text, options.get("reverseType") or "characters"),
)
_transform(
    "text-sorter",
    "sorted",
    lambda text, options: routines.sort_lines(
        text,
        sort_type=options.get("sortType") or "alphabetical",
        case_sensitive=options.get("caseSensitive", False),
    ),
)
_transform(
    "duplicate-remover",
    "deduplicated",
    lambda text, options: routines.remove_duplicates(
        text,
        case_sensitive=options.get("caseSensitive", False),
        keep_first=options.get("keepFirst", True),
    ),
)


@HANDLERS.tool(
    "text-diff",
    files=FileRule(2, 2, "Two text files are required for comparison"),
    failure="Failed to compare texts",
)
def diff(context: ToolContext) -> ToolOutcome:
    first, second = (upload.stored_path.read_text(encoding="utf-8", errors="replace") for upload in context.files)
    result = routines.compare_texts(
        first,
        second,
        ignore_whitespace=context.options.get("ignoreWhitespace", False),
        ignore_case=context.options.get("ignoreCase", False),
    )
    return ToolOutcome(context.write_json("text_diff", result), "Text comparison completed", data=result)
