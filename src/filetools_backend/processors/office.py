"""
Office document conversions.

Word, Excel and PDF are handled in-process (python-docx, openpyxl, pypdf
and reportlab); PowerPoint rendering is delegated to headless LibreOffice.
"""

from __future__ import annotations

import html
import logging
import re
from pathlib import Path
from typing import List, Optional, Tuple

from bs4 import BeautifulSoup
from docx import Document
from docx.enum.text import WD_BREAK
from docx.shared import Pt
from openpyxl import Workbook, load_workbook
from pptx import Presentation
from pptx.util import Inches
from pptx.util import Pt as PptPt
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.platypus import PageBreak, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from . import EmptyDocumentError
from .commands import soffice_convert
from .pdf import extract_pages_text

logger = logging.getLogger(__name__)

TABLE_SPLIT = re.compile(r"\s{2,}|\t")
SLIDE_TEXT_LIMIT = 800
WORD_HEADING_STYLES = {"Title": "Title", "Heading 1": "Heading1", "Heading 2": "Heading2", "Heading 3": "Heading3"}


def _require(path: Path) -> Path:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")
    return path


def _escape(text: str) -> str:
    # reportlab Paragraph parses a small XML dialect
    return html.escape(text, quote=False)


def read_docx_blocks(source: Path) -> List[Tuple[str, str]]:
    """Return ``(style name, text)`` for every non-empty paragraph of a .docx file."""
    document = Document(str(_require(source)))
    blocks = []
    for paragraph in document.paragraphs:
        text = paragraph.text.strip()
        if text:
            blocks.append((paragraph.style.name if paragraph.style is not None else "Normal", text))
    for table in document.tables:
        for row in table.rows:
            text = " | ".join(cell.text.strip() for cell in row.cells)
            if text.strip(" |"):
                blocks.append(("Normal", text))
    return blocks


def _write_pdf(blocks: List[Tuple[str, str]], destination: Path, font_size: float = 11) -> Path:
    styles = getSampleStyleSheet()
    body = styles["BodyText"].clone("Body", fontSize=font_size, leading=font_size * 1.35)
    story = []
    for style_name, text in blocks:
        style = styles[WORD_HEADING_STYLES[style_name]] if style_name in WORD_HEADING_STYLES else body
        story.append(Paragraph(_escape(text).replace("\n", "<br/>"), style))
        story.append(Spacer(1, 4))
    SimpleDocTemplate(str(destination), pagesize=A4).build(story)
    return destination


def word_to_pdf(source: Path, destination: Path, quality: str = "high", preserve_formatting: bool = True) -> Path:
    """
    Render a Word document's text to PDF.

    With ``preserve_formatting`` headings keep a heading style; otherwise
    every paragraph is body text.

    Raises:
        EmptyDocumentError: If the document has no text
    """
    blocks = read_docx_blocks(source)
    if not blocks:
        raise EmptyDocumentError("No content found in Word document")
    if not preserve_formatting:
        blocks = [("Normal", text) for _, text in blocks]
    font_size = {"standard": 10, "high": 11, "maximum": 12}.get(quality, 11)
    return _write_pdf(blocks, destination, font_size)


def excel_to_pdf(source: Path, destination: Path, orientation: str = "portrait", fit_to_page: bool = True) -> int:
    """
    Render every worksheet as a table, one sheet per page run.

    Returns:
        Number of worksheets rendered
    """
    workbook = load_workbook(str(_require(source)), data_only=True, read_only=True)
    page_size = landscape(A4) if orientation == "landscape" else A4
    styles = getSampleStyleSheet()
    story = []
    try:
        for index, sheet in enumerate(workbook.worksheets):
            rows = [["" if value is None else str(value) for value in row] for row in sheet.iter_rows(values_only=True)]
            rows = [row for row in rows if any(row)]
            if index:
                story.append(PageBreak())
            story.append(Paragraph(_escape(sheet.title), styles["Heading2"]))
            if not rows:
                story.append(Paragraph("(empty sheet)", styles["Italic"]))
                continue

            width = max(len(row) for row in rows)
            rows = [row + [""] * (width - len(row)) for row in rows]
            font_size = 9
            if fit_to_page and width > 6:
                font_size = max(5, 9 - (width - 6) // 2)
            usable = page_size[0] - 72
            table = Table(rows, colWidths=[usable / width] * width if fit_to_page else None, repeatRows=1)
            table.setStyle(
                TableStyle(
                    [
                        ("FONTSIZE", (0, 0), (-1, -1), font_size),
                        ("GRID", (0, 0), (-1, -1), 0.25, colors.grey),
                        ("BACKGROUND", (0, 0), (-1, 0), colors.lightgrey),
                        ("VALIGN", (0, 0), (-1, -1), "TOP"),
                    ]
                )
            )
            story.append(table)
        sheet_count = len(workbook.worksheets)
    finally:
        workbook.close()

    SimpleDocTemplate(str(destination), pagesize=page_size, leftMargin=36, rightMargin=36).build(story)
    return sheet_count


def powerpoint_to_pdf(soffice: str, source: Path, destination: Path) -> Path:
    return soffice_convert(soffice, _require(source), "pdf", destination)


def pdf_to_word(source: Path, destination: Path, title: str, preserve_layout: bool = True) -> int:
    """
    Write the PDF's text to a .docx file, one paragraph per line.

    Returns:
        Number of source pages
    """
    pages = extract_pages_text(source)
    document = Document()
    heading = document.add_paragraph()
    run = heading.add_run(f"PDF: {title}")
    run.bold = True
    run.font.size = Pt(14)

    if not any(page.strip() for page in pages):
        document.add_paragraph("No extractable text was found in this PDF.")
    for index, page in enumerate(pages):
        for line in page.splitlines():
            document.add_paragraph(line or " ").runs[0].font.size = Pt(12)
        if preserve_layout and index < len(pages) - 1:
            document.add_paragraph().add_run().add_break(WD_BREAK.PAGE)

    document.save(str(destination))
    return len(pages)


def pdf_to_excel(source: Path, destination: Path, extract_tables: bool = False) -> int:
    """
    Put each text line of the PDF in its own row.

    With ``extract_tables`` a line is split into cells on tabs or runs of
    two or more spaces.

    Returns:
        Number of rows written

    Raises:
        EmptyDocumentError: If the PDF has no extractable text
    """
    text = "\n".join(extract_pages_text(source))
    lines = [line.strip() for line in text.splitlines() if line.strip()]
    if not lines:
        raise EmptyDocumentError("No text content found in PDF file")

    workbook = Workbook()
    sheet = workbook.active
    sheet.title = "PDF Content"
    for line in lines:
        sheet.append(TABLE_SPLIT.split(line) if extract_tables else [line])
    workbook.save(str(destination))
    return len(lines)


def _clip(text: str, limit: int = SLIDE_TEXT_LIMIT) -> str:
    return text[:limit] + ("..." if len(text) > limit else "")


def pdf_to_powerpoint(source: Path, destination: Path, pages_per_slide: int = 1) -> int:
    """
    Build one text slide per group of ``pages_per_slide`` PDF pages.

    Returns:
        Number of slides

    Raises:
        EmptyDocumentError: If the PDF has no extractable text
    """
    pages = extract_pages_text(source)
    if not any(page.strip() for page in pages):
        raise EmptyDocumentError("No text content found in PDF file")

    presentation = Presentation()
    presentation.slide_width, presentation.slide_height = Inches(13.333), Inches(7.5)
    layout = presentation.slide_layouts[6]
    pages_per_slide = max(1, pages_per_slide)

    for start in range(0, len(pages), pages_per_slide):
        group = pages[start : start + pages_per_slide]
        first, last = start + 1, start + len(group)
        title = f"Page {first}" if first == last else f"Pages {first}-{last}"
        slide = presentation.slides.add_slide(layout)

        title_box = slide.shapes.add_textbox(Inches(0.5), Inches(0.3), Inches(12.3), Inches(0.8)).text_frame
        title_box.text = title
        title_box.paragraphs[0].runs[0].font.size = PptPt(28)
        title_box.paragraphs[0].runs[0].font.bold = True

        body = slide.shapes.add_textbox(Inches(0.5), Inches(1.3), Inches(12.3), Inches(5.8)).text_frame
        body.word_wrap = True
        body.text = _clip("\n\n".join(page.strip() for page in group)) or " "
        for paragraph in body.paragraphs:
            for run in paragraph.runs:
                run.font.size = PptPt(14)

    presentation.save(str(destination))
    return len(presentation.slides)


def html_to_text(markup: str) -> str:
    """Visible text of an HTML document, one block element per line."""
    soup = BeautifulSoup(markup, "html.parser")
    for element in soup(["script", "style", "noscript"]):
        element.decompose()
    return soup.get_text("\n")


def read_document_text(source: Path) -> List[str]:
    """Plain-text paragraphs of a pdf, docx, txt or html file."""
    source = _require(source)
    suffix = source.suffix.lower()
    if suffix == ".pdf":
        text = "\n".join(extract_pages_text(source))
    elif suffix == ".docx":
        return [text for _, text in read_docx_blocks(source)]
    elif suffix in (".html", ".htm"):
        text = html_to_text(source.read_text(encoding="utf-8", errors="replace"))
    elif suffix in (".txt", ".md", ".csv", ".rtf"):
        text = source.read_text(encoding="utf-8", errors="replace")
    else:
        raise ValueError(f"Unsupported document format: {suffix or 'unknown'}")
    return [line.strip() for line in text.splitlines() if line.strip()]


def convert_document(source: Path, destination: Path, title: Optional[str] = None) -> Path:
    """
    Convert between pdf, docx, txt and html through the document's text.

    The target format follows ``destination``'s extension. Layout is not
    preserved; headings in a .docx source stay headings in pdf and html.

    Raises:
        EmptyDocumentError: If the source has no text
        ValueError: For an unsupported source or target format
    """
    source = _require(source)
    if source.suffix.lower() == ".docx":
        blocks = read_docx_blocks(source)
    else:
        blocks = [("Normal", text) for text in read_document_text(source)]
    if not blocks:
        raise EmptyDocumentError("No content found in document")

    target = destination.suffix.lower()
    if target == ".pdf":
        return _write_pdf(blocks, destination)
    if target == ".docx":
        document = Document()
        for style_name, text in blocks:
            if style_name in WORD_HEADING_STYLES:
                level = 0 if style_name == "Title" else int(style_name[-1])
                document.add_heading(text, level=level)
            else:
                document.add_paragraph(text)
        document.save(str(destination))
        return destination
    if target == ".txt":
        destination.write_text("\n\n".join(text for _, text in blocks) + "\n", encoding="utf-8")
        return destination
    if target == ".html":
        body = []
        for style_name, text in blocks:
            tag = {"Title": "h1", "Heading 1": "h1", "Heading 2": "h2", "Heading 3": "h3"}.get(style_name, "p")
            body.append(f"<{tag}>{html.escape(text)}</{tag}>")
        page_title = html.escape(title or source.stem)
        destination.write_text(
            f"<!DOCTYPE html>\n<html>\n<head><meta charset=\"utf-8\"><title>{page_title}</title></head>\n"
            f"<body>\n" + "\n".join(body) + "\n</body>\n</html>\n",
            encoding="utf-8",
        )
        return destination
    raise ValueError(f"Unsupported target format: {target}")
