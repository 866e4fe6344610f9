"""
Spreadsheet and structured-data conversions (CSV, Excel, XML, JSON).

Split operations bundle their parts into a single zip archive so one
request always yields one downloadable artifact.
"""

from __future__ import annotations

import csv
import io
import json
import logging
import re
import zipfile
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from openpyxl import Workbook, load_workbook

from . import EmptyDocumentError

logger = logging.getLogger(__name__)

TAG_PATTERN = re.compile(r"[^a-zA-Z0-9]")


def _require(path: Path) -> Path:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")
    return path


def _delimiter(value: str) -> str:
    return "\t" if value in ("\\t", "tab") else (value or ",")


def clean_tag(name: Any, fallback: str = "field") -> str:
    """
    Turn a header or key into a usable XML element name.

    Example:
        >>> clean_tag("Unit Price ($)")
        "Unit_Price____"
        >>> clean_tag("2024")
        "_2024"
    """
    tag = TAG_PATTERN.sub("_", str(name)) or fallback
    return f"_{tag}" if tag[0].isdigit() else tag


def read_csv(source: Path, delimiter: str = ",") -> List[List[str]]:
    with _require(source).open(newline="", encoding="utf-8-sig") as handle:
        return [row for row in csv.reader(handle, delimiter=_delimiter(delimiter)) if any(cell.strip() for cell in row)]


def _csv_text(rows: Sequence[Sequence[Any]], delimiter: str = ",") -> str:
    buffer = io.StringIO()
    csv.writer(buffer, delimiter=_delimiter(delimiter)).writerows(rows)
    return buffer.getvalue()


def read_sheet_rows(source: Path, sheet_name: Optional[str] = None) -> List[List[Any]]:
    workbook = load_workbook(str(_require(source)), data_only=True, read_only=True)
    try:
        sheet = workbook[sheet_name] if sheet_name else workbook.worksheets[0]
        return [list(row) for row in sheet.iter_rows(values_only=True) if any(cell is not None for cell in row)]
    finally:
        workbook.close()


def _workbook_bytes(rows: Sequence[Sequence[Any]], sheet_name: str = "Sheet1") -> bytes:
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = (sheet_name or "Sheet1")[:31]
    for row in rows:
        sheet.append(list(row))
    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


def _chunks(rows: Sequence[Any], size: int) -> List[Sequence[Any]]:
    size = max(1, int(size))
    return [rows[start : start + size] for start in range(0, len(rows), size)]


def split_csv(source: Path, destination: Path, stem: str, rows_per_file: int = 1000, include_header: bool = True) -> int:
    """
    Split a CSV into ``<stem>_part<N>.csv`` members of a zip archive.

    The first row is treated as the header.

    Returns:
        Number of parts written

    Raises:
        EmptyDocumentError: If the CSV has no data rows
    """
    rows = read_csv(source)
    if len(rows) < 2:
        raise EmptyDocumentError("CSV file has no data rows")
    header, data = rows[0], rows[1:]
    parts = _chunks(data, rows_per_file)
    with zipfile.ZipFile(destination, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        for index, chunk in enumerate(parts, start=1):
            content = [header, *chunk] if include_header else list(chunk)
            archive.writestr(f"{stem}_part{index}.csv", _csv_text(content))
    return len(parts)


def split_excel(source: Path, destination: Path, stem: str, split_by: str = "rows", rows_per_file: int = 1000) -> int:
    """
    Split a workbook into a zip of workbooks, either one per sheet or by row count.

    Row splits read the first sheet and repeat its header row in every part.

    Returns:
        Number of parts written
    """
    if split_by == "sheets":
        workbook = load_workbook(str(_require(source)), data_only=True, read_only=True)
        try:
            sheets = [(sheet.title, [list(row) for row in sheet.iter_rows(values_only=True)]) for sheet in workbook.worksheets]
        finally:
            workbook.close()
        with zipfile.ZipFile(destination, "w", compression=zipfile.ZIP_DEFLATED) as archive:
            for title, rows in sheets:
                archive.writestr(f"{stem}_{clean_tag(title, 'sheet')}.xlsx", _workbook_bytes(rows, title))
        return len(sheets)

    rows = read_sheet_rows(source)
    if len(rows) < 2:
        raise EmptyDocumentError("Excel file has no data rows")
    header, data = rows[0], rows[1:]
    parts = _chunks(data, rows_per_file)
    with zipfile.ZipFile(destination, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        for index, chunk in enumerate(parts, start=1):
            archive.writestr(f"{stem}_part{index}.xlsx", _workbook_bytes([header, *chunk]))
    return len(parts)


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def parse_xml_records(source: Path, include_attributes: bool = True, nested_attributes: bool = False) -> List[Dict[str, Any]]:
    """
    Flatten an XML document into one record per child of the root element.

    Each leaf element under a record becomes a field named after its tag.
    Attributes are kept as ``<tag>_<attr>`` fields, or as a
    ``<tag>_attributes`` mapping when ``nested_attributes`` is set. A root
    whose children are all leaves is read as a single record.
    """
    root = ET.parse(_require(source)).getroot()
    children = list(root)
    if children and all(len(child) == 0 for child in children):
        record_elements = [root]
    else:
        record_elements = children

    records: List[Dict[str, Any]] = []
    for element in record_elements:
        record: Dict[str, Any] = {}
        for leaf in element.iter():
            if leaf is element or len(leaf):
                continue
            tag = _local_name(leaf.tag)
            record[tag] = (leaf.text or "").strip()
            if include_attributes and leaf.attrib:
                if nested_attributes:
                    record[f"{tag}_attributes"] = {_local_name(key): value for key, value in leaf.attrib.items()}
                else:
                    for key, value in leaf.attrib.items():
                        record[f"{tag}_{_local_name(key)}"] = value
        if record:
            records.append(record)
    return records


def _table(records: Sequence[Dict[str, Any]]) -> List[List[Any]]:
    headers: List[str] = []
    for record in records:
        for key in record:
            if key not in headers:
                headers.append(key)
    return [headers, *[[record.get(header, "") for header in headers] for record in records]]


def xml_to_excel(source: Path, destination: Path, sheet_name: str = "Sheet1", include_attributes: bool = True) -> int:
    """Returns the number of records written."""
    records = parse_xml_records(source, include_attributes)
    destination.write_bytes(_workbook_bytes(_table(records), sheet_name))
    return len(records)


def xml_to_csv(source: Path, destination: Path, delimiter: str = ",", include_attributes: bool = True) -> int:
    records = parse_xml_records(source, include_attributes)
    destination.write_text(_csv_text(_table(records), delimiter), encoding="utf-8")
    return len(records)


def xml_to_json(source: Path, destination: Path, pretty_print: bool = True, include_attributes: bool = True) -> int:
    records = parse_xml_records(source, include_attributes, nested_attributes=True)
    destination.write_text(json.dumps(records, indent=2 if pretty_print else None, ensure_ascii=False), encoding="utf-8")
    return len(records)


def _xml_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _write_xml(root: ET.Element, destination: Path, pretty_print: bool = True) -> None:
    if pretty_print:
        ET.indent(root, space="  ")
    ET.ElementTree(root).write(destination, encoding="UTF-8", xml_declaration=True)


def excel_to_xml(source: Path, destination: Path, root_element: str = "data", row_element: str = "row") -> int:
    """
    Write the first sheet as ``<root><row><Header>value</Header>...</row></root>``.

    Returns:
        Number of data rows written

    Raises:
        EmptyDocumentError: If the sheet is empty
    """
    rows = read_sheet_rows(source)
    if not rows:
        raise EmptyDocumentError("Excel file is empty")
    headers = [clean_tag(header if header is not None else f"column{index + 1}") for index, header in enumerate(rows[0])]
    root = ET.Element(clean_tag(root_element, "data"))
    for row in rows[1:]:
        item = ET.SubElement(root, clean_tag(row_element, "row"))
        for index, header in enumerate(headers):
            ET.SubElement(item, header).text = _xml_text(row[index] if index < len(row) else None)
    _write_xml(root, destination)
    return len(rows) - 1


def _append_json(parent: ET.Element, value: Any) -> None:
    if isinstance(value, list):
        for entry in value:
            _append_json(ET.SubElement(parent, "item"), entry)
    elif isinstance(value, dict):
        for key, entry in value.items():
            _append_json(ET.SubElement(parent, clean_tag(key)), entry)
    else:
        parent.text = _xml_text(value)


def json_to_xml(source: Path, destination: Path, root_element: str = "root", pretty_print: bool = True) -> Path:
    """
    Raises:
        json.JSONDecodeError: If the source is not valid JSON
    """
    data = json.loads(_require(source).read_text(encoding="utf-8-sig"))
    root = ET.Element(clean_tag(root_element, "root"))
    _append_json(root, data)
    _write_xml(root, destination, pretty_print)
    return destination


def csv_to_excel(source: Path, destination: Path, sheet_name: str = "Sheet1", delimiter: str = ",") -> int:
    rows = read_csv(source, delimiter)
    destination.write_bytes(_workbook_bytes(rows, sheet_name))
    return len(rows)


def csv_to_json(source: Path, destination: Path, delimiter: str = ",", pretty_print: bool = True) -> int:
    """Write one object per data row keyed by the header row. Returns the record count."""
    rows = read_csv(source, delimiter)
    if not rows:
        records: List[Dict[str, str]] = []
    else:
        header = rows[0]
        records = [dict(zip(header, row)) for row in rows[1:]]
    destination.write_text(json.dumps(records, indent=2 if pretty_print else None, ensure_ascii=False), encoding="utf-8")
    return len(records)
