"""
Text recognition with Tesseract (pytesseract), plus field extraction for
receipts, business cards, tables and license plates.

PDF pages are rasterized with PyMuPDF before recognition.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import fitz
import pytesseract
from PIL import Image, ImageFilter, ImageOps

logger = logging.getLogger(__name__)

PDF_RENDER_DPI = 200
PLATE_WHITELIST = "ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789"
CELL_SPLIT = re.compile(r"\s{2,}|\t")

EMAIL_PATTERN = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")
PHONE_PATTERN = re.compile(r"[+]?[1-9]?[-\s()]?\(?\d{3}\)?[-\s]?\d{3}[-\s]?\d{4}")
WEBSITE_PATTERN = re.compile(r"(?:https?://)?(?:www\.)?[a-zA-Z0-9][a-zA-Z0-9-]+[a-zA-Z0-9]*\.[^\s]{2,}")
COMPANY_PATTERN = re.compile(r"\b(inc|llc|corp|company|ltd|limited)\b", re.IGNORECASE)
TOTAL_PATTERN = re.compile(r"(?<!sub)total[:\s]*\$?([\d,]+\.\d{2})", re.IGNORECASE)
SUBTOTAL_PATTERN = re.compile(r"subtotal[:\s]*\$?([\d,]+\.\d{2})", re.IGNORECASE)
TAX_PATTERN = re.compile(r"tax[:\s]*\$?([\d,]+\.\d{2})", re.IGNORECASE)
DATE_PATTERN = re.compile(r"\d{1,2}[/-]\d{1,2}[/-]\d{2,4}")


@dataclass
class OcrResult:
    text: str
    confidence: float
    lines: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"text": self.text, "confidence": round(self.confidence, 2), "lines": self.lines}


def configure_tesseract(command: Optional[str]) -> None:
    """Point pytesseract at a specific tesseract binary; ``None`` keeps the PATH lookup."""
    if command:
        pytesseract.pytesseract.tesseract_cmd = command


def _preprocess(image: Image.Image) -> Image.Image:
    # Grayscale, stretch contrast, then sharpen
    gray = ImageOps.grayscale(image)
    return ImageOps.autocontrast(gray).filter(ImageFilter.SHARPEN)


def _config(psm: int = 6, oem: int = 3, whitelist: Optional[str] = None) -> str:
    config = f"--psm {psm} --oem {oem}"
    if whitelist:
        config += f" -c tessedit_char_whitelist={whitelist}"
    return config


def recognize(image: Image.Image, language: str = "eng", psm: int = 6, oem: int = 3, whitelist: Optional[str] = None) -> OcrResult:
    """
    Run Tesseract on an in-memory image.

    Confidence is the mean word confidence (0-100), ignoring the ``-1``
    entries Tesseract reports for non-word boxes.

    Raises:
        pytesseract.TesseractNotFoundError: If the tesseract binary is missing
    """
    prepared = _preprocess(image)
    config = _config(psm, oem, whitelist)
    text = (pytesseract.image_to_string(prepared, lang=language, config=config) or "").strip()
    data = pytesseract.image_to_data(prepared, lang=language, config=config, output_type=pytesseract.Output.DICT)

    scores = []
    for token, raw_conf in zip(data.get("text", []), data.get("conf", [])):
        try:
            score = float(raw_conf)
        except (TypeError, ValueError):
            continue
        if (token or "").strip() and score >= 0:
            scores.append(score)
    confidence = sum(scores) / len(scores) if scores else 0.0
    return OcrResult(text=text, confidence=confidence, lines=[line.strip() for line in text.splitlines() if line.strip()])


def recognize_file(source: Path, language: str = "eng", **kwargs: Any) -> OcrResult:
    source = Path(source)
    if not source.exists():
        raise FileNotFoundError(f"File not found: {source}")
    with Image.open(source) as image:
        image.load()
        return recognize(image, language, **kwargs)


def recognize_pdf(source: Path, language: str = "eng", dpi: int = PDF_RENDER_DPI) -> OcrResult:
    """Render every page with PyMuPDF and recognize it; confidence is the page average."""
    source = Path(source)
    if not source.exists():
        raise FileNotFoundError(f"File not found: {source}")

    zoom = dpi / 72.0
    texts: List[str] = []
    confidences: List[float] = []
    document = fitz.open(str(source))
    try:
        for page in document:
            pixmap = page.get_pixmap(matrix=fitz.Matrix(zoom, zoom), alpha=False)
            image = Image.frombytes("RGB", [pixmap.width, pixmap.height], pixmap.samples)
            result = recognize(image, language)
            texts.append(result.text)
            confidences.append(result.confidence)
    finally:
        document.close()

    text = "\n\n".join(texts).strip()
    confidence = sum(confidences) / len(confidences) if confidences else 0.0
    logger.debug(f"Recognized {len(texts)} page(s) of {source.name}")
    return OcrResult(text=text, confidence=confidence, lines=[line.strip() for line in text.splitlines() if line.strip()])


def recognize_handwriting(source: Path, language: str = "eng") -> OcrResult:
    # LSTM engine only
    return recognize_file(source, language, psm=6, oem=1)


def parse_table_row(row: str) -> List[str]:
    return [cell.strip() for cell in CELL_SPLIT.split(row) if cell.strip()]


def parse_table(text: str) -> Dict[str, Any]:
    """
    Treat the first non-empty line as headers and the rest as rows.

    Example:
        >>> parse_table("Name  Qty\\nApple  3")
        {"headers": ["Name", "Qty"], "rows": [["Apple", "3"]]}
    """
    lines = [line for line in text.splitlines() if line.strip()]
    if not lines:
        return {"headers": [], "rows": []}
    return {"headers": parse_table_row(lines[0]), "rows": [parse_table_row(line) for line in lines[1:]]}


def parse_receipt(text: str) -> Dict[str, Any]:
    receipt: Dict[str, Any] = {"items": []}
    lines = [line.strip() for line in text.splitlines() if line.strip()]
    if lines:
        receipt["merchant"] = lines[0]
    for key, pattern in (("total", TOTAL_PATTERN), ("subtotal", SUBTOTAL_PATTERN), ("tax", TAX_PATTERN)):
        match = pattern.search(text)
        if match:
            receipt[key] = match.group(1)
    date = DATE_PATTERN.search(text)
    if date:
        receipt["date"] = date.group(0)
    return receipt


def parse_business_card(text: str) -> Dict[str, Any]:
    card: Dict[str, Any] = {}
    lines = [line.strip() for line in text.splitlines() if line.strip()]
    if lines:
        card["name"] = lines[0]
    without_emails = EMAIL_PATTERN.sub(" ", text)
    for key, pattern, source in (
        ("email", EMAIL_PATTERN, text),
        ("phone", PHONE_PATTERN, text),
        ("website", WEBSITE_PATTERN, without_emails),
    ):
        match = pattern.search(source)
        if match:
            card[key] = match.group(0).strip()
    company = next((line for line in lines if COMPANY_PATTERN.search(line)), None)
    if company:
        card["company"] = company
    return card


def read_license_plate(source: Path) -> str:
    result = recognize_file(source, "eng", psm=8, whitelist=PLATE_WHITELIST)
    return re.sub(r"[^A-Z0-9]", "", result.text.upper())
