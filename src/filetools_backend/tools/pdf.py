"""PDF tools: merge, split, compress, office conversions, watermark, signature and forms."""

from __future__ import annotations

import json
import logging

from ..errors import invalid_option
from ..processors import EmptyDocumentError
from ..processors import office, pdf
from ..utils import compression_summary
from .base import HandlerSet, ToolContext, ToolOutcome, at_least, exactly, rejecting

logger = logging.getLogger(__name__)


def build_pdf_handlers(soffice: str = "soffice") -> HandlerSet:
    """
    PDF handlers. ``soffice`` is the LibreOffice binary used for PowerPoint input.
    """
    handlers = HandlerSet()

    @handlers.tool(
        "pdf-merge",
        files=at_least(2, "At least 2 PDF files are required for merging"),
        failure="Failed to merge PDF files. Please ensure all files are valid PDFs.",
    )
    def merge(context: ToolContext) -> ToolOutcome:
        files = list(context.files)
        if context.options.get("order") == "alphabetical":
            files.sort(key=lambda upload: upload.original_name.lower())
        destination = context.output("merged", "pdf")
        pages = pdf.merge_pdfs([upload.stored_path for upload in files], destination)
        logger.info(f"Merged {len(files)} PDFs into {pages} pages")
        return ToolOutcome(destination, f"Successfully merged {len(files)} PDF files")

    @handlers.tool(
        "pdf-split",
        files=exactly(1, "Exactly 1 PDF file is required for splitting"),
        failure="Failed to split PDF. The PDF file may be corrupted or password-protected.",
    )
    def split(context: ToolContext) -> ToolOutcome:
        with rejecting(context.tool_id):
            parts = pdf.split_pdf(
                context.file.stored_path,
                context.options.get("pageRanges") or "1-1",
                lambda index: context.output(f"split_part{index}", "pdf"),
            )
        return ToolOutcome(
            parts[0],
            f"Successfully split PDF into {len(parts)} parts",
            additional_paths=parts[1:],
        )

    @handlers.tool(
        "pdf-compress",
        files=exactly(1, "Exactly 1 PDF file is required for compression"),
        failure="Failed to compress PDF. The PDF file may be corrupted or password-protected.",
    )
    def compress(context: ToolContext) -> ToolOutcome:
        source = context.file
        destination = context.output("compressed", "pdf")
        pdf.compress_pdf(
            source.stored_path,
            destination,
            quality=context.options.get("quality") or "medium",
            remove_metadata=context.options.get("removeMetadata", True),
        )
        return ToolOutcome(destination, compression_summary("PDF", source.size_bytes, destination.stat().st_size))

    @handlers.tool(
        "pdf-to-word",
        files=exactly(1, "Exactly 1 PDF file is required for conversion"),
        failure="Failed to convert PDF to Word. The PDF file may be corrupted or password-protected.",
    )
    def to_word(context: ToolContext) -> ToolOutcome:
        source = context.file
        destination = context.named_output(f"{source.stem}.docx")
        pages = office.pdf_to_word(
            source.stored_path,
            destination,
            title=source.original_name,
            preserve_layout=context.options.get("preserveLayout", True),
        )
        return ToolOutcome(destination, f"Successfully converted PDF to DOCX with {pages} pages")

    @handlers.tool(
        "word-to-pdf",
        files=exactly(1, "Exactly 1 Word document is required for conversion"),
        failure="Failed to convert Word to PDF. The Word document may be corrupted or in an unsupported format.",
    )
    def word_to_pdf(context: ToolContext) -> ToolOutcome:
        source = context.file
        destination = context.named_output(f"{source.stem}.pdf")
        with rejecting(context.tool_id, EmptyDocumentError):
            office.word_to_pdf(
                source.stored_path,
                destination,
                quality=context.options.get("quality") or "high",
                preserve_formatting=context.options.get("preserveFormatting", True),
            )
        return ToolOutcome(destination, "Successfully converted Word document to PDF")

    @handlers.tool(
        "excel-to-pdf",
        files=exactly(1, "Exactly 1 Excel file is required for conversion"),
        failure="Failed to convert Excel to PDF. The Excel file may be corrupted or in an unsupported format.",
    )
    def excel_to_pdf(context: ToolContext) -> ToolOutcome:
        source = context.file
        destination = context.named_output(f"{source.stem}.pdf")
        sheets = office.excel_to_pdf(
            source.stored_path,
            destination,
            orientation=context.options.get("orientation") or "portrait",
            fit_to_page=context.options.get("fitToPage", True),
        )
        return ToolOutcome(destination, f"Successfully converted Excel to PDF with {sheets} worksheet(s)")

    @handlers.tool(
        "powerpoint-to-pdf",
        files=exactly(1, "Exactly 1 PowerPoint file is required for conversion"),
        failure=(
            "Failed to convert PowerPoint to PDF. The PowerPoint file may be corrupted "
            "or LibreOffice is not installed on the system."
        ),
    )
    def powerpoint_to_pdf(context: ToolContext) -> ToolOutcome:
        source = context.file
        destination = context.named_output(f"{source.stem}.pdf")
        office.powerpoint_to_pdf(soffice, source.stored_path, destination)
        return ToolOutcome(destination, "Successfully converted PowerPoint to PDF")

    @handlers.tool(
        "pdf-to-excel",
        files=exactly(1, "Exactly 1 PDF file is required for conversion"),
        failure="Failed to convert PDF to Excel. The PDF file may be corrupted or password-protected.",
    )
    def to_excel(context: ToolContext) -> ToolOutcome:
        source = context.file
        destination = context.named_output(f"{source.stem}.xlsx")
        with rejecting(context.tool_id, EmptyDocumentError):
            rows = office.pdf_to_excel(
                source.stored_path,
                destination,
                extract_tables=context.options.get("extractTables", False),
            )
        return ToolOutcome(destination, f"Successfully converted PDF to XLSX with {rows} rows of data")

    @handlers.tool(
        "pdf-to-powerpoint",
        files=exactly(1, "Exactly 1 PDF file is required for conversion"),
        failure="Failed to convert PDF to PowerPoint. The PDF file may be corrupted or password-protected.",
    )
    def to_powerpoint(context: ToolContext) -> ToolOutcome:
        source = context.file
        destination = context.named_output(f"{source.stem}.pptx")
        with rejecting(context.tool_id, EmptyDocumentError):
            slides = office.pdf_to_powerpoint(
                source.stored_path,
                destination,
                pages_per_slide=int(context.options.get("slidesPerPage") or 1),
            )
        return ToolOutcome(destination, f"Successfully converted PDF to PPTX with {slides} slides")

    @handlers.tool(
        "pdf-watermark",
        files=exactly(1, "Exactly 1 PDF file is required for watermark"),
        failure="Failed to add watermark to PDF",
    )
    def watermark(context: ToolContext) -> ToolOutcome:
        options = context.options
        destination = context.output("watermarked", "pdf")
        pdf.watermark_pdf(
            context.file.stored_path,
            destination,
            text=options.get("watermarkText") or "CONFIDENTIAL",
            opacity=options.get("opacity", 0.3),
            font_size=options.get("fontSize", 48),
            rotation=options.get("rotation", -45),
            color=options.get("color") or "#808080",
        )
        return ToolOutcome(destination, "Successfully added watermark to PDF")

    @handlers.tool(
        "pdf-signature",
        files=exactly(1, "Exactly 1 PDF file is required for signature"),
        failure="Failed to add signature to PDF",
    )
    def signature(context: ToolContext) -> ToolOutcome:
        options = context.options
        destination = context.output("signed", "pdf")
        with rejecting(context.tool_id, IndexError):
            pdf.sign_pdf(
                context.file.stored_path,
                destination,
                text=options.get("signatureText") or "Digital Signature",
                page_number=int(options.get("page", 1)),
                x=options.get("x", 100),
                y=options.get("y", 100),
                width=options.get("width", 200),
                height=options.get("height", 50),
            )
        return ToolOutcome(destination, "Successfully added signature to PDF")

    @handlers.tool(
        "pdf-form-filler",
        files=exactly(1, "Exactly 1 PDF file is required for form filling"),
        failure="Failed to fill PDF form",
        required={"formData": "Form data is required"},
    )
    def fill_form(context: ToolContext) -> ToolOutcome:
        try:
            values = json.loads(context.options["formData"])
        except json.JSONDecodeError as exc:
            raise invalid_option(context.tool_id, "Form data must be valid JSON") from exc
        if not isinstance(values, dict):
            raise invalid_option(context.tool_id, "Form data must be a JSON object")

        destination = context.output("filled_form", "pdf")
        with rejecting(context.tool_id):
            filled = pdf.fill_form(context.file.stored_path, destination, values)
        return ToolOutcome(destination, "Successfully filled PDF form", data={"filledFields": filled})

    return handlers
