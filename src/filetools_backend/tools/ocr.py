"""OCR tools backed by Tesseract."""

from __future__ import annotations

import logging

from ..processors import ocr
from .base import HandlerSet, ToolContext, ToolOutcome, exactly

logger = logging.getLogger(__name__)

HANDLERS = HandlerSet()


def _single_image(purpose: str):
    return exactly(1, f"Exactly 1 image file is required for {purpose}")


def _language(context: ToolContext) -> str:
    return context.options.get("language") or "eng"


@HANDLERS.tool("image-to-text", files=_single_image("OCR"), failure="Failed to extract text from image")
def image_to_text(context: ToolContext) -> ToolOutcome:
    result = ocr.recognize_file(context.file.stored_path, _language(context))
    return ToolOutcome(
        context.write_text("extracted_text", result.text),
        f"Successfully extracted text with {result.confidence:.1f}% confidence",
        data=result.to_dict(),
    )


@HANDLERS.tool(
    "pdf-ocr",
    files=exactly(1, "Exactly 1 PDF file is required for OCR"),
    failure="Failed to extract text from PDF",
)
def pdf_ocr(context: ToolContext) -> ToolOutcome:
    result = ocr.recognize_pdf(context.file.stored_path, _language(context))
    return ToolOutcome(
        context.write_text("pdf_text", result.text),
        f"Successfully extracted text from PDF with {result.confidence:.1f}% confidence",
        data=result.to_dict(),
    )


@HANDLERS.tool(
    "handwriting-recognition",
    files=_single_image("handwriting recognition"),
    failure="Failed to recognize handwriting",
)
def handwriting(context: ToolContext) -> ToolOutcome:
    result = ocr.recognize_handwriting(context.file.stored_path, _language(context))
    return ToolOutcome(
        context.write_text("handwriting", result.text),
        f"Successfully recognized handwriting with {result.confidence:.1f}% confidence",
        data=result.to_dict(),
    )


@HANDLERS.tool("document-scanner", files=_single_image("document scanning"), failure="Failed to scan document")
def document_scanner(context: ToolContext) -> ToolOutcome:
    # Automatic page segmentation for full pages
    result = ocr.recognize_file(context.file.stored_path, _language(context), psm=3)
    return ToolOutcome(
        context.write_text("scanned_document", result.text),
        f"Successfully scanned document with {result.confidence:.1f}% confidence",
        data=result.to_dict(),
    )


@HANDLERS.tool("table-extractor", files=_single_image("table extraction"), failure="Failed to extract table")
def table_extractor(context: ToolContext) -> ToolOutcome:
    result = ocr.recognize_file(context.file.stored_path, _language(context), psm=6)
    table = ocr.parse_table(result.text)
    return ToolOutcome(
        context.write_json("table", table),
        f"Successfully extracted table with {len(table['headers'])} columns and {len(table['rows'])} rows",
        data=table,
    )


@HANDLERS.tool("receipt-scanner", files=_single_image("receipt scanning"), failure="Failed to scan receipt")
def receipt_scanner(context: ToolContext) -> ToolOutcome:
    result = ocr.recognize_file(context.file.stored_path, _language(context))
    receipt = ocr.parse_receipt(result.text)
    merchant = receipt.get("merchant") or "unknown merchant"
    return ToolOutcome(
        context.write_json("receipt", receipt),
        f"Successfully scanned receipt from {merchant}",
        data=receipt,
    )


@HANDLERS.tool(
    "business-card-scanner",
    files=_single_image("business card scanning"),
    failure="Failed to scan business card",
)
def business_card_scanner(context: ToolContext) -> ToolOutcome:
    result = ocr.recognize_file(context.file.stored_path, _language(context))
    card = ocr.parse_business_card(result.text)
    name = card.get("name") or "unknown person"
    return ToolOutcome(
        context.write_json("business_card", card),
        f"Successfully scanned business card for {name}",
        data=card,
    )


@HANDLERS.tool(
    "license-plate-reader",
    files=_single_image("license plate reading"),
    failure="Failed to read license plate",
)
def license_plate(context: ToolContext) -> ToolOutcome:
    plate = ocr.read_license_plate(context.file.stored_path)
    return ToolOutcome(
        context.write_text("license_plate", plate),
        f"Successfully read license plate: {plate or 'no characters recognized'}",
        data={"plate": plate},
    )


@HANDLERS.tool("qr-code-reader", files=_single_image("QR code reading"), failure="Failed to read QR code")
def qr_code_reader(context: ToolContext) -> ToolOutcome:
    # No symbol decoder in the stack; any text printed in or under the code is recognized instead
    result = ocr.recognize_file(context.file.stored_path, "eng", psm=6)
    logger.debug(f"QR reader recognized {len(result.text)} characters")
    return ToolOutcome(
        context.write_text("qr_content", result.text),
        "Successfully read QR code content",
        data={"content": result.text},
    )
