"""CSV, Excel, XML and JSON tools."""

from __future__ import annotations

from ..processors import EmptyDocumentError, tabular
from .base import HandlerSet, ToolContext, ToolOutcome, exactly, rejecting

HANDLERS = HandlerSet()

CSV_FILE = exactly(1, "CSV file is required")
EXCEL_FILE = exactly(1, "Excel file is required")
XML_FILE = exactly(1, "XML file is required")
JSON_FILE = exactly(1, "JSON file is required")


@HANDLERS.tool("csv-split", files=CSV_FILE, failure="Failed to split CSV file")
def split_csv(context: ToolContext) -> ToolOutcome:
    source = context.file
    destination = context.output(f"{source.stem}_split", "zip")
    with rejecting(context.tool_id, EmptyDocumentError):
        parts = tabular.split_csv(
            source.stored_path,
            destination,
            stem=source.stem,
            rows_per_file=int(context.options.get("rowsPerFile") or 1000),
            include_header=context.options.get("includeHeader", True),
        )
    return ToolOutcome(destination, f"Successfully split CSV into {parts} files", data={"parts": parts})


@HANDLERS.tool("excel-split", files=EXCEL_FILE, failure="Failed to split Excel file")
def split_excel(context: ToolContext) -> ToolOutcome:
    source = context.file
    destination = context.output(f"{source.stem}_split", "zip")
    with rejecting(context.tool_id, EmptyDocumentError):
        parts = tabular.split_excel(
            source.stored_path,
            destination,
            stem=source.stem,
            split_by=context.options.get("splitBy") or "rows",
            rows_per_file=int(context.options.get("rowsPerFile") or 1000),
        )
    return ToolOutcome(destination, f"Successfully split Excel into {parts} files", data={"parts": parts})


@HANDLERS.tool("xml-to-excel", files=XML_FILE, failure="Failed to convert XML to Excel")
def xml_to_excel(context: ToolContext) -> ToolOutcome:
    source = context.file
    destination = context.named_output(f"{source.stem}.xlsx")
    records = tabular.xml_to_excel(
        source.stored_path,
        destination,
        sheet_name=context.options.get("sheetName") or "Sheet1",
        include_attributes=context.options.get("includeAttributes", True),
    )
    return ToolOutcome(destination, "Successfully converted XML to Excel", data={"records": records})


@HANDLERS.tool("excel-to-xml", files=EXCEL_FILE, failure="Failed to convert Excel to XML")
def excel_to_xml(context: ToolContext) -> ToolOutcome:
    source = context.file
    destination = context.named_output(f"{source.stem}.xml")
    with rejecting(context.tool_id, EmptyDocumentError):
        rows = tabular.excel_to_xml(
            source.stored_path,
            destination,
            root_element=context.options.get("rootElement") or "data",
            row_element=context.options.get("rowElement") or "row",
        )
    return ToolOutcome(destination, "Successfully converted Excel to XML", data={"rows": rows})


@HANDLERS.tool("csv-to-excel", files=CSV_FILE, failure="Failed to convert CSV to Excel")
def csv_to_excel(context: ToolContext) -> ToolOutcome:
    source = context.file
    destination = context.named_output(f"{source.stem}.xlsx")
    rows = tabular.csv_to_excel(
        source.stored_path,
        destination,
        sheet_name=context.options.get("sheetName") or "Sheet1",
        delimiter=context.options.get("delimiter") or ",",
    )
    return ToolOutcome(destination, "Successfully converted CSV to Excel", data={"rows": rows})


@HANDLERS.tool("xml-to-csv", files=XML_FILE, failure="Failed to convert XML to CSV")
def xml_to_csv(context: ToolContext) -> ToolOutcome:
    source = context.file
    destination = context.named_output(f"{source.stem}.csv")
    records = tabular.xml_to_csv(
        source.stored_path,
        destination,
        delimiter=context.options.get("delimiter") or ",",
        include_attributes=context.options.get("includeAttributes", True),
    )
    return ToolOutcome(destination, "Successfully converted XML to CSV", data={"records": records})


@HANDLERS.tool("xml-to-json", files=XML_FILE, failure="Failed to convert XML to JSON")
def xml_to_json(context: ToolContext) -> ToolOutcome:
    source = context.file
    destination = context.named_output(f"{source.stem}.json")
    records = tabular.xml_to_json(
        source.stored_path,
        destination,
        pretty_print=context.options.get("prettyPrint", True),
        include_attributes=context.options.get("includeAttributes", True),
    )
    return ToolOutcome(destination, "Successfully converted XML to JSON", data={"records": records})


@HANDLERS.tool("json-to-xml", files=JSON_FILE, failure="Failed to convert JSON to XML")
def json_to_xml(context: ToolContext) -> ToolOutcome:
    source = context.file
    destination = context.named_output(f"{source.stem}.xml")
    tabular.json_to_xml(
        source.stored_path,
        destination,
        root_element=context.options.get("rootElement") or "root",
        pretty_print=context.options.get("prettyPrint", True),
    )
    return ToolOutcome(destination, "Successfully converted JSON to XML")


@HANDLERS.tool("csv-to-json", files=CSV_FILE, failure="Failed to convert CSV to JSON")
def csv_to_json(context: ToolContext) -> ToolOutcome:
    source = context.file
    destination = context.named_output(f"{source.stem}.json")
    records = tabular.csv_to_json(
        source.stored_path,
        destination,
        delimiter=context.options.get("delimiter") or ",",
        pretty_print=context.options.get("prettyPrint", True),
    )
    return ToolOutcome(destination, "Successfully converted CSV to JSON", data={"records": records})
