"""
Tests for CSV, Excel, XML and JSON conversions.
"""

import io
import json
import xml.etree.ElementTree as ET
import zipfile

import pytest
from openpyxl import Workbook, load_workbook

from filetools_backend.processors import EmptyDocumentError, tabular

CSV_CONTENT = "name,qty\napple,3\npear,5\nplum,7\n"

XML_CONTENT = """<?xml version="1.0"?>
<catalog>
  <item><name lang="en">Apple</name><qty>3</qty></item>
  <item><name lang="fr">Poire</name><qty>5</qty></item>
</catalog>
"""


@pytest.fixture
def csv_file(tmp_path):
    path = tmp_path / "fruit.csv"
    path.write_text(CSV_CONTENT)
    return path


@pytest.fixture
def xml_file(tmp_path):
    path = tmp_path / "catalog.xml"
    path.write_text(XML_CONTENT)
    return path


@pytest.fixture
def xlsx_file(tmp_path):
    path = tmp_path / "book.xlsx"
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = "First"
    for row in (["Unit Price", "Count"], [1.5, 2], [3.0, 4], [4.5, 6]):
        sheet.append(row)
    workbook.create_sheet("Second").append(["only", "header"])
    workbook.save(path)
    return path


class TestCsv:
    """Tests for CSV conversions and splits."""

    def test_split_csv_repeats_header(self, csv_file, tmp_path):
        destination = tmp_path / "parts.zip"
        assert tabular.split_csv(csv_file, destination, "fruit", rows_per_file=2) == 2
        with zipfile.ZipFile(destination) as archive:
            assert archive.namelist() == ["fruit_part1.csv", "fruit_part2.csv"]
            second = archive.read("fruit_part2.csv").decode().splitlines()
        assert second == ["name,qty", "plum,7"]

    def test_split_csv_without_header(self, csv_file, tmp_path):
        destination = tmp_path / "parts.zip"
        tabular.split_csv(csv_file, destination, "fruit", rows_per_file=5, include_header=False)
        with zipfile.ZipFile(destination) as archive:
            assert archive.read("fruit_part1.csv").decode().splitlines()[0] == "apple,3"

    def test_split_header_only_csv(self, tmp_path):
        source = tmp_path / "empty.csv"
        source.write_text("a,b\n")
        with pytest.raises(EmptyDocumentError):
            tabular.split_csv(source, tmp_path / "out.zip", "empty")

    def test_csv_to_json(self, csv_file, tmp_path):
        destination = tmp_path / "fruit.json"
        assert tabular.csv_to_json(csv_file, destination) == 3
        records = json.loads(destination.read_text())
        assert records[0] == {"name": "apple", "qty": "3"}

    def test_csv_to_excel_with_semicolons(self, tmp_path):
        source = tmp_path / "semi.csv"
        source.write_text("a;b\n1;2\n")
        destination = tmp_path / "semi.xlsx"
        assert tabular.csv_to_excel(source, destination, sheet_name="Data", delimiter=";") == 2
        workbook = load_workbook(destination)
        assert workbook.sheetnames == ["Data"]
        assert [cell.value for cell in workbook["Data"][2]] == ["1", "2"]


class TestExcel:
    """Tests for Excel splits and XML export."""

    def test_split_by_rows(self, xlsx_file, tmp_path):
        destination = tmp_path / "rows.zip"
        assert tabular.split_excel(xlsx_file, destination, "book", rows_per_file=2) == 2
        with zipfile.ZipFile(destination) as archive:
            part = load_workbook(io.BytesIO(archive.read("book_part2.xlsx")))
        rows = [[cell.value for cell in row] for row in part.active.iter_rows()]
        assert rows == [["Unit Price", "Count"], [4.5, 6]]

    def test_split_by_sheets(self, xlsx_file, tmp_path):
        destination = tmp_path / "sheets.zip"
        assert tabular.split_excel(xlsx_file, destination, "book", split_by="sheets") == 2

    def test_excel_to_xml_cleans_tags(self, xlsx_file, tmp_path):
        destination = tmp_path / "book.xml"
        assert tabular.excel_to_xml(xlsx_file, destination, root_element="prices", row_element="entry") == 3
        root = ET.parse(destination).getroot()
        assert root.tag == "prices"
        first = root.find("entry")
        assert first.find("Unit_Price").text == "1.5"


class TestXml:
    """Tests for XML flattening and conversions."""

    def test_records_with_attributes(self, xml_file):
        records = tabular.parse_xml_records(xml_file)
        assert records == [
            {"name": "Apple", "name_lang": "en", "qty": "3"},
            {"name": "Poire", "name_lang": "fr", "qty": "5"},
        ]

    def test_records_without_attributes(self, xml_file):
        records = tabular.parse_xml_records(xml_file, include_attributes=False)
        assert records[0] == {"name": "Apple", "qty": "3"}

    def test_xml_to_json_nests_attributes(self, xml_file, tmp_path):
        destination = tmp_path / "catalog.json"
        assert tabular.xml_to_json(xml_file, destination) == 2
        records = json.loads(destination.read_text())
        assert records[0]["name_attributes"] == {"lang": "en"}

    def test_xml_to_csv(self, xml_file, tmp_path):
        destination = tmp_path / "catalog.csv"
        tabular.xml_to_csv(xml_file, destination, delimiter="|")
        assert destination.read_text().splitlines()[0] == "name|name_lang|qty"

    def test_json_to_xml(self, tmp_path):
        source = tmp_path / "data.json"
        source.write_text(json.dumps({"people": [{"first name": "Ada"}], "count": 1, "active": True}))
        destination = tmp_path / "data.xml"
        tabular.json_to_xml(source, destination, root_element="export")
        root = ET.parse(destination).getroot()
        assert root.tag == "export"
        assert root.find("people/item/first_name").text == "Ada"
        assert root.find("active").text == "true"


class TestTabularTools:
    """Tests for the tabular tools through the API."""

    def test_csv_to_json_keeps_base_name_for_display(self, client):
        response = client.post(
            "/api/tools/csv-to-json/process",
            files=[("files", ("inventory.csv", CSV_CONTENT.encode(), "text/csv"))],
        )
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["fileName"] == "inventory.json"
        assert data["fileId"].startswith("csv_to_json_")
        assert data["fileId"].endswith(".json")
        assert data["data"] == {"records": 3}

    def test_csv_split_returns_zip(self, client):
        response = client.post(
            "/api/tools/csv-split/process",
            files=[("files", ("inventory.csv", CSV_CONTENT.encode(), "text/csv"))],
            data={"rowsPerFile": "1"},
        )
        data = response.json()["data"]
        assert data["message"] == "Successfully split CSV into 3 files"
        download = client.get(f"/api/download/{data['fileId']}")
        assert download.headers["content-type"] == "application/zip"

    def test_missing_csv(self, client):
        response = client.post("/api/tools/csv-to-excel/process")
        assert response.status_code == 400
        assert response.json()["error"] == "CSV file is required"

    def test_malformed_xml_is_processing_failure(self, client):
        response = client.post(
            "/api/tools/xml-to-json/process",
            files=[("files", ("broken.xml", b"<a><b></a>", "application/xml"))],
        )
        assert response.status_code == 500
        assert response.json()["error"] == "Failed to convert XML to JSON"
