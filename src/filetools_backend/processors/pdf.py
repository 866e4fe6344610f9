"""
PDF routines built on pypdf, with reportlab drawing the overlays.

Every routine reads its inputs, writes exactly the destination it was
given and never modifies the input file.
"""

from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import Callable, Dict, List, Mapping, Sequence, Tuple, Union

from pypdf import PdfReader, PdfWriter
from reportlab.pdfgen import canvas

logger = logging.getLogger(__name__)

# pypdf image re-encoding quality per compression setting
IMAGE_QUALITY = {"low": 40, "medium": 60, "high": 85}


def _require(path: Path) -> Path:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")
    return path


def page_count(path: Path) -> int:
    return len(PdfReader(_require(path)).pages)


def extract_pages_text(path: Path) -> List[str]:
    reader = PdfReader(_require(path))
    return [page.extract_text() or "" for page in reader.pages]


def merge_pdfs(sources: Sequence[Path], destination: Path) -> int:
    """
    Concatenate ``sources`` in order into ``destination``.

    Returns:
        Page count of the merged document
    """
    writer = PdfWriter()
    for source in sources:
        reader = PdfReader(_require(source))
        for page in reader.pages:
            writer.add_page(page)
    with destination.open("wb") as handle:
        writer.write(handle)
    return len(writer.pages)


def parse_page_ranges(spec: str, total_pages: int) -> List[Tuple[int, int]]:
    """
    Parse ``"1-3,5,7-9"`` into zero-based inclusive ``(start, end)`` pairs.

    Ranges are clamped to the document. A range that starts past the last
    page is skipped.

    Example:
        >>> parse_page_ranges("1-2,4", 5)
        [(0, 1), (3, 3)]
    """
    ranges: List[Tuple[int, int]] = []
    for chunk in (spec or "1-1").split(","):
        chunk = chunk.strip()
        if not chunk:
            continue
        start_text, _, end_text = chunk.partition("-")
        start = int(start_text) - 1
        end = int(end_text) - 1 if end_text.strip() else start
        start = max(0, start)
        end = min(total_pages - 1, end)
        if start > end or start >= total_pages:
            continue
        ranges.append((start, end))
    if not ranges:
        raise ValueError(f"No pages selected by range '{spec}'")
    return ranges


def split_pdf(source: Path, ranges: str, make_destination: Callable[[int], Path]) -> List[Path]:
    """
    Write one PDF per page range.

    Args:
        source: PDF to split
        ranges: Comma-separated 1-based ranges, e.g. ``"1-3,4-6"``
        make_destination: Returns the output path for the n-th part (1-based)

    Returns:
        Output paths in range order
    """
    reader = PdfReader(_require(source))
    outputs: List[Path] = []
    for index, (start, end) in enumerate(parse_page_ranges(ranges, len(reader.pages)), start=1):
        writer = PdfWriter()
        for page_index in range(start, end + 1):
            writer.add_page(reader.pages[page_index])
        destination = make_destination(index)
        with destination.open("wb") as handle:
            writer.write(handle)
        outputs.append(destination)
    return outputs


def compress_pdf(source: Path, destination: Path, quality: str = "medium", remove_metadata: bool = True) -> Path:
    reader = PdfReader(_require(source))
    if remove_metadata:
        writer = PdfWriter()
        for page in reader.pages:
            writer.add_page(page)
    else:
        writer = PdfWriter(clone_from=reader)

    image_quality = IMAGE_QUALITY.get(quality, IMAGE_QUALITY["medium"])
    for page in writer.pages:
        for image in page.images:
            try:
                image.replace(image.image, quality=image_quality)
            except (OSError, ValueError, NotImplementedError) as exc:
                logger.debug(f"Keeping original image {image.name}: {exc}")
        page.compress_content_streams(level=9)

    writer.compress_identical_objects(remove_identicals=True, remove_orphans=True)
    with destination.open("wb") as handle:
        writer.write(handle)
    return destination


def parse_hex_color(value: str, fallback: Tuple[float, float, float] = (0.5, 0.5, 0.5)) -> Tuple[float, float, float]:
    text = (value or "").strip().lstrip("#")
    if len(text) == 3:
        text = "".join(char * 2 for char in text)
    try:
        return tuple(int(text[i : i + 2], 16) / 255 for i in (0, 2, 4))  # type: ignore[return-value]
    except ValueError:
        return fallback


def _overlay_page(width: float, height: float, draw: Callable[[canvas.Canvas], None]):
    buffer = io.BytesIO()
    sheet = canvas.Canvas(buffer, pagesize=(width, height))
    draw(sheet)
    sheet.save()
    buffer.seek(0)
    return PdfReader(buffer).pages[0]


def watermark_pdf(
    source: Path,
    destination: Path,
    text: str,
    opacity: float = 0.3,
    font_size: float = 48,
    rotation: float = -45,
    color: str = "#808080",
) -> Path:
    reader = PdfReader(_require(source))
    writer = PdfWriter()
    red, green, blue = parse_hex_color(color)

    for page in reader.pages:
        width, height = float(page.mediabox.width), float(page.mediabox.height)

        def draw(sheet: canvas.Canvas) -> None:
            sheet.saveState()
            sheet.setFillColorRGB(red, green, blue, alpha=opacity)
            sheet.setFont("Helvetica", font_size)
            sheet.translate(width / 2, height / 2)
            sheet.rotate(rotation)
            sheet.drawCentredString(0, 0, text)
            sheet.restoreState()

        page.merge_page(_overlay_page(width, height, draw))
        writer.add_page(page)

    with destination.open("wb") as handle:
        writer.write(handle)
    return destination


def sign_pdf(
    source: Path,
    destination: Path,
    text: str,
    page_number: int = 1,
    x: float = 100,
    y: float = 100,
    width: float = 200,
    height: float = 50,
) -> Path:
    """
    Draw a text signature and a box around it on one page.

    Raises:
        IndexError: If ``page_number`` is outside the document
    """
    reader = PdfReader(_require(source))
    index = page_number - 1
    if index < 0 or index >= len(reader.pages):
        raise IndexError(f"Page {page_number} does not exist")

    writer = PdfWriter()
    for position, page in enumerate(reader.pages):
        if position == index:
            page_width, page_height = float(page.mediabox.width), float(page.mediabox.height)

            def draw(sheet: canvas.Canvas) -> None:
                sheet.setFont("Helvetica", 12)
                sheet.setFillColorRGB(0, 0, 0)
                sheet.drawString(x, y, text)
                sheet.setLineWidth(1)
                sheet.rect(x - 5, y - 5, width, height, stroke=1, fill=0)

            page.merge_page(_overlay_page(page_width, page_height, draw))
        writer.add_page(page)

    with destination.open("wb") as handle:
        writer.write(handle)
    return destination


def fill_form(source: Path, destination: Path, values: Mapping[str, Union[str, bool, int, float]]) -> List[str]:
    """
    Fill AcroForm fields by name.

    Booleans set checkboxes (``/Yes`` or ``/Off``); other values are written
    as text. Names the form does not declare are skipped with a warning.

    Returns:
        Names of the fields that were filled

    Raises:
        ValueError: If the PDF has no form fields
    """
    reader = PdfReader(_require(source))
    fields = reader.get_fields() or {}
    if not fields:
        raise ValueError("PDF has no form fields")

    prepared: Dict[str, str] = {}
    for name, value in values.items():
        if name not in fields:
            logger.warning(f"Could not fill field {name}: not present in form")
            continue
        if isinstance(value, bool):
            prepared[name] = "/Yes" if value else "/Off"
        else:
            prepared[name] = str(value)

    writer = PdfWriter(clone_from=reader)
    for page in writer.pages:
        if "/Annots" not in page:
            continue
        writer.update_page_form_field_values(page, prepared, auto_regenerate=False)
    writer.set_need_appearances_writer(True)

    with destination.open("wb") as handle:
        writer.write(handle)
    return list(prepared)
